import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from src.api.database import build_engine

RUNAWAY = text("WITH RECURSIVE n(i) AS (SELECT 1 UNION ALL SELECT i + 1 FROM n) SELECT count(*) FROM n")


@pytest.fixture
def slow_engine():
    eng = build_engine("sqlite://", timeout=0.05, poolclass=StaticPool)
    yield eng
    eng.dispose()


def test_sqlite_statement_is_interrupted_at_deadline(slow_engine):
    with slow_engine.connect() as conn:
        with pytest.raises(OperationalError, match="interrupted"):
            conn.execute(RUNAWAY)
        conn.rollback()

        # each statement gets a fresh deadline
        assert conn.execute(text("SELECT 1")).scalar() == 1


def test_sqlite_foreign_keys_enforced(slow_engine):
    with slow_engine.connect() as conn:
        assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
