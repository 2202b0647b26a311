from datetime import date, datetime, timedelta

import pytest

from src.api.models import LogEntry, Task, utcnow
from src.api.repository import LogEntryRepository, ProjectRepository, TaskRepository


@pytest.fixture
def owners(make_user):
    return make_user(), make_user()


@pytest.fixture
def projects(db):
    return ProjectRepository(db)


@pytest.fixture
def tasks(db):
    return TaskRepository(db)


@pytest.fixture
def entries(db):
    return LogEntryRepository(db)


def test_project_crud_for_owner(projects, owners):
    alice, _ = owners
    project = projects.create(alice, "Website", "Marketing site")
    assert projects.get_by_id(project.id, alice).name == "Website"

    updated = projects.update(project.id, alice, name="Website v2", description="")
    assert updated.name == "Website v2"
    assert updated.description == ""
    assert updated.updated_at >= project.created_at

    assert projects.delete(project.id, alice) is True
    assert projects.get_by_id(project.id, alice) is None
    assert projects.delete(project.id, alice) is False


def test_projects_are_invisible_to_other_users(projects, owners):
    alice, bob = owners
    project = projects.create(alice, "Secret")

    assert projects.get_by_id(project.id, bob) is None
    assert projects.update(project.id, bob, name="Hijacked", description="") is None
    assert projects.delete(project.id, bob) is False
    assert projects.list(bob) == []

    # untouched for the owner
    assert projects.get_by_id(project.id, alice).name == "Secret"


def test_get_is_idempotent(projects, owners):
    alice, _ = owners
    project = projects.create(alice, "Stable", "same every time")
    first = projects.get_by_id(project.id, alice)
    second = projects.get_by_id(project.id, alice)
    assert (first.id, first.name, first.description, first.updated_at) == (
        second.id,
        second.name,
        second.description,
        second.updated_at,
    )


def test_projects_listed_newest_first(db, projects, owners):
    alice, _ = owners
    older = projects.create(alice, "Older")
    newer = projects.create(alice, "Newer")
    older.created_at = datetime(2024, 1, 1)
    newer.created_at = datetime(2024, 1, 2)
    db.commit()
    assert [p.name for p in projects.list(alice)] == ["Newer", "Older"]


def test_task_default_status_and_filter(projects, tasks, owners):
    alice, _ = owners
    p1 = projects.create(alice, "One")
    p2 = projects.create(alice, "Two")
    t1 = tasks.create(alice, p1.id, "First")
    tasks.create(alice, p2.id, "Second", status="done")

    assert t1.status == "todo"
    assert [t.title for t in tasks.list(alice, project_id=p1.id)] == ["First"]
    assert {t.title for t in tasks.list(alice)} == {"First", "Second"}


def test_task_filter_never_crosses_owners(projects, tasks, owners):
    alice, bob = owners
    project = projects.create(alice, "Alice's")
    tasks.create(alice, project.id, "Hers")
    assert tasks.list(bob, project_id=project.id) == []


def test_task_isolation(projects, tasks, owners):
    alice, bob = owners
    task = tasks.create(alice, projects.create(alice, "P").id, "Mine")
    assert tasks.get_by_id(task.id, bob) is None
    assert tasks.update(task.id, bob, title="x", description="", status="done") is None
    assert tasks.delete(task.id, bob) is False
    assert tasks.get_by_id(task.id, alice).title == "Mine"


def test_task_update_replaces_fields(projects, tasks, owners):
    alice, _ = owners
    task = tasks.create(alice, projects.create(alice, "P").id, "Draft", description="old", status="in_progress")
    updated = tasks.update(task.id, alice, title="Final", description="", status="done")
    assert (updated.title, updated.description, updated.status) == ("Final", "", "done")
    assert updated.project_id == task.project_id


def test_delete_task_leaves_others_untouched(db, projects, tasks, owners):
    alice, bob = owners
    project = projects.create(alice, "P")
    target = tasks.create(alice, project.id, "Target")
    sibling = tasks.create(alice, project.id, "Sibling")
    foreign = tasks.create(bob, projects.create(bob, "Q").id, "Bob's")

    assert tasks.delete(target.id, alice) is True
    assert tasks.get_by_id(target.id, alice) is None
    assert tasks.get_by_id(sibling.id, alice).title == "Sibling"
    assert tasks.get_by_id(foreign.id, bob).title == "Bob's"
    assert db.query(Task).count() == 2


def test_deleting_project_cascades_to_tasks_and_detaches_entries(db, projects, tasks, entries, owners):
    alice, _ = owners
    project = projects.create(alice, "P")
    task = tasks.create(alice, project.id, "T")
    entry = entries.create(alice, "worked", task_id=task.id, project_id=project.id)
    task_id, entry_id = task.id, entry.id

    assert projects.delete(project.id, alice) is True
    db.expire_all()
    assert tasks.get_by_id(task_id, alice) is None
    detached = entries.get_by_id(entry_id, alice)
    assert detached is not None
    assert detached.project_id is None
    assert detached.task_id is None


def test_log_entry_defaults_to_now(entries, owners):
    alice, _ = owners
    before = utcnow() - timedelta(seconds=1)
    entry = entries.create(alice, "did a thing")
    assert entry.log_date >= before
    assert entry.task_id is None
    assert entry.project_id is None


def _entry(db, owner, content, log_date, created_at):
    entry = LogEntry(user_id=owner, content=content, log_date=log_date, created_at=created_at, updated_at=created_at)
    db.add(entry)
    db.commit()
    return entry


def test_log_entries_ordered_by_log_date_then_created(db, entries, owners):
    alice, _ = owners
    _entry(db, alice, "old day, recorded late", datetime(2024, 1, 4), datetime(2024, 1, 10, 12))
    _entry(db, alice, "new day, first", datetime(2024, 1, 5), datetime(2024, 1, 5, 9))
    _entry(db, alice, "new day, second", datetime(2024, 1, 5), datetime(2024, 1, 5, 10))

    assert [e.content for e in entries.list(alice)] == [
        "new day, second",
        "new day, first",
        "old day, recorded late",
    ]


def test_log_entries_filtered_by_project(entries, projects, owners):
    alice, _ = owners
    project = projects.create(alice, "P")
    entries.create(alice, "in project", project_id=project.id)
    entries.create(alice, "loose")
    assert [e.content for e in entries.list(alice, project_id=project.id)] == ["in project"]
    assert len(entries.list(alice)) == 2


def test_today_matches_calendar_day_only(db, entries, owners):
    alice, bob = owners
    morning = _entry(db, alice, "morning", datetime(2024, 1, 5, 9, 0), datetime(2024, 1, 5, 9, 0))
    night = _entry(db, alice, "night", datetime(2024, 1, 5, 23, 0), datetime(2024, 1, 5, 23, 0))
    _entry(db, alice, "day before", datetime(2024, 1, 4, 23, 59), datetime(2024, 1, 4, 23, 59))
    _entry(db, bob, "bob's", datetime(2024, 1, 5, 12, 0), datetime(2024, 1, 5, 12, 0))

    result = entries.today(alice, date(2024, 1, 5))
    assert [e.id for e in result] == [night.id, morning.id]

    # time of day on the reference is ignored
    assert [e.id for e in entries.today(alice, datetime(2024, 1, 5, 3, 30))] == [night.id, morning.id]


def test_log_entry_update_and_isolation(entries, owners):
    alice, bob = owners
    entry = entries.create(alice, "draft", log_date=datetime(2024, 1, 1))
    assert entries.update(entry.id, bob, content="x", log_date=datetime(2024, 1, 2)) is None
    assert entries.delete(entry.id, bob) is False

    updated = entries.update(entry.id, alice, content="final", log_date=datetime(2024, 1, 2))
    assert updated.content == "final"
    assert updated.log_date == datetime(2024, 1, 2)
    assert entries.delete(entry.id, alice) is True
