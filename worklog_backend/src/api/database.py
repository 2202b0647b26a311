import time

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from src.api.config import DATABASE_URL, DB_TIMEOUT_SECONDS
from src.api.models import Base

# VM instructions between deadline checks
SQLITE_PROGRESS_STEPS = 1000


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _install_sqlite_deadline(engine: Engine, timeout: float) -> None:
    """
    Interrupt any SQLite statement that runs longer than `timeout` seconds.

    The deadline is armed when a statement starts and lives in the pooled
    connection's info dict, where the progress handler reads it. An interrupted
    statement raises sqlite3.OperationalError("interrupted").
    """

    @event.listens_for(engine, "connect")
    def _set_progress_handler(dbapi_connection, connection_record):
        info = connection_record.info

        def _past_deadline():
            deadline = info.get("deadline")
            return 1 if deadline is not None and time.monotonic() > deadline else 0

        dbapi_connection.set_progress_handler(_past_deadline, SQLITE_PROGRESS_STEPS)

    @event.listens_for(engine, "before_cursor_execute")
    def _arm_deadline(conn, cursor, statement, parameters, context, executemany):
        conn.info["deadline"] = time.monotonic() + timeout

    @event.listens_for(engine, "checkin")
    def _disarm_deadline(dbapi_connection, connection_record):
        connection_record.info.pop("deadline", None)


def build_engine(url: str = DATABASE_URL, timeout: float = DB_TIMEOUT_SECONDS, **kwargs) -> Engine:
    """
    Create an engine whose every statement is bounded by `timeout` seconds.

    SQLite gets a busy timeout, a progress-handler deadline and enforced foreign
    keys; PostgreSQL gets a server-side statement_timeout.
    """
    if url.startswith("sqlite"):
        # SQLite needs check_same_thread=False for multithreading in FastAPI
        connect_args = {"check_same_thread": False, "timeout": timeout}
    elif url.startswith("postgresql"):
        timeout_ms = int(timeout * 1000)
        connect_args = {
            "connect_timeout": max(1, int(timeout)),
            "options": f"-c statement_timeout={timeout_ms}",
        }
    else:
        connect_args = {}
    connect_args.update(kwargs.pop("connect_args", {}))

    engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True, **kwargs)
    if url.startswith("sqlite"):
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        _install_sqlite_deadline(engine, timeout)
    return engine


engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(bind: Engine) -> None:
    """Create all tables on the given engine."""
    Base.metadata.create_all(bind=bind)


def get_db():
    """
    Dependency that provides a database session and ensures proper cleanup.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
