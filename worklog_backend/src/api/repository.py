"""
Ownership-scoped data access.

Every read, update and delete on projects, tasks and log entries filters on
(id, user_id) jointly, so a row owned by another user is indistinguishable
from a missing one: lookups return None, deletes return False.
"""
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from src.api.models import DEFAULT_TASK_STATUS, LogEntry, Project, Task, User, UserSession, utcnow


def _day_bounds(reference: Union[date, datetime]):
    day = reference.date() if isinstance(reference, datetime) else reference
    start = datetime.combine(day, time.min)
    return start, start + timedelta(days=1)


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, email: str, password_hash: str, name: str) -> User:
        user = User(email=email, password_hash=password_hash, name=name)
        self.db.add(user)
        self.db.commit()
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def get_by_id(self, user_id: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()


class SessionRepository:
    """Persisted sessions backing revocation."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, expires_at: datetime) -> UserSession:
        record = UserSession(user_id=user_id, expires_at=expires_at)
        self.db.add(record)
        self.db.commit()
        return record

    def get_active(self, session_id: str, user_id: str, now: datetime) -> Optional[UserSession]:
        return (
            self.db.query(UserSession)
            .filter(
                UserSession.id == session_id,
                UserSession.user_id == user_id,
                UserSession.expires_at > now,
            )
            .first()
        )

    def delete(self, session_id: str) -> bool:
        result = self.db.execute(delete(UserSession).where(UserSession.id == session_id))
        self.db.commit()
        return result.rowcount > 0


class ProjectRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, owner_id: str, name: str, description: str = "") -> Project:
        project = Project(user_id=owner_id, name=name, description=description)
        self.db.add(project)
        self.db.commit()
        return project

    def get_by_id(self, project_id: str, owner_id: str) -> Optional[Project]:
        return (
            self.db.query(Project)
            .filter(Project.id == project_id, Project.user_id == owner_id)
            .first()
        )

    def list(self, owner_id: str) -> List[Project]:
        return (
            self.db.query(Project)
            .filter(Project.user_id == owner_id)
            .order_by(Project.created_at.desc())
            .all()
        )

    def update(self, project_id: str, owner_id: str, name: str, description: str) -> Optional[Project]:
        stmt = (
            update(Project)
            .where(Project.id == project_id, Project.user_id == owner_id)
            .values(name=name, description=description, updated_at=utcnow())
            .returning(Project)
        )
        project = self.db.scalars(stmt).first()
        self.db.commit()
        return project

    def delete(self, project_id: str, owner_id: str) -> bool:
        result = self.db.execute(
            delete(Project).where(Project.id == project_id, Project.user_id == owner_id)
        )
        self.db.commit()
        return result.rowcount > 0


class TaskRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        owner_id: str,
        project_id: str,
        title: str,
        description: str = "",
        status: str = DEFAULT_TASK_STATUS,
    ) -> Task:
        task = Task(
            user_id=owner_id,
            project_id=project_id,
            title=title,
            description=description,
            status=status or DEFAULT_TASK_STATUS,
        )
        self.db.add(task)
        self.db.commit()
        return task

    def get_by_id(self, task_id: str, owner_id: str) -> Optional[Task]:
        return (
            self.db.query(Task)
            .filter(Task.id == task_id, Task.user_id == owner_id)
            .first()
        )

    def list(self, owner_id: str, project_id: Optional[str] = None) -> List[Task]:
        query = self.db.query(Task).filter(Task.user_id == owner_id)
        if project_id is not None:
            query = query.filter(Task.project_id == project_id)
        return query.order_by(Task.created_at.desc()).all()

    def update(
        self, task_id: str, owner_id: str, title: str, description: str, status: str
    ) -> Optional[Task]:
        stmt = (
            update(Task)
            .where(Task.id == task_id, Task.user_id == owner_id)
            .values(title=title, description=description, status=status, updated_at=utcnow())
            .returning(Task)
        )
        task = self.db.scalars(stmt).first()
        self.db.commit()
        return task

    def delete(self, task_id: str, owner_id: str) -> bool:
        result = self.db.execute(delete(Task).where(Task.id == task_id, Task.user_id == owner_id))
        self.db.commit()
        return result.rowcount > 0


class LogEntryRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        owner_id: str,
        content: str,
        log_date: Optional[datetime] = None,
        task_id: Optional[str] = None,
        project_id: Optional[str] = None,
    ) -> LogEntry:
        """Create a log entry. A missing log_date means now, by the server clock."""
        entry = LogEntry(
            user_id=owner_id,
            task_id=task_id,
            project_id=project_id,
            content=content,
            log_date=log_date if log_date is not None else utcnow(),
        )
        self.db.add(entry)
        self.db.commit()
        return entry

    def get_by_id(self, entry_id: str, owner_id: str) -> Optional[LogEntry]:
        return (
            self.db.query(LogEntry)
            .filter(LogEntry.id == entry_id, LogEntry.user_id == owner_id)
            .first()
        )

    def list(self, owner_id: str, project_id: Optional[str] = None) -> List[LogEntry]:
        """Latest log date first; entries sharing a log date are newest-created first."""
        query = self.db.query(LogEntry).filter(LogEntry.user_id == owner_id)
        if project_id is not None:
            query = query.filter(LogEntry.project_id == project_id)
        return query.order_by(LogEntry.log_date.desc(), LogEntry.created_at.desc()).all()

    def today(self, owner_id: str, reference: Union[date, datetime]) -> List[LogEntry]:
        """
        Entries whose log date falls on the calendar day of `reference`.

        Time-of-day on either side is ignored; results are newest-created first.
        """
        start, end = _day_bounds(reference)
        stmt = (
            select(LogEntry)
            .where(
                LogEntry.user_id == owner_id,
                LogEntry.log_date >= start,
                LogEntry.log_date < end,
            )
            .order_by(LogEntry.created_at.desc())
        )
        return list(self.db.scalars(stmt).all())

    def update(
        self, entry_id: str, owner_id: str, content: str, log_date: datetime
    ) -> Optional[LogEntry]:
        stmt = (
            update(LogEntry)
            .where(LogEntry.id == entry_id, LogEntry.user_id == owner_id)
            .values(content=content, log_date=log_date, updated_at=utcnow())
            .returning(LogEntry)
        )
        entry = self.db.scalars(stmt).first()
        self.db.commit()
        return entry

    def delete(self, entry_id: str, owner_id: str) -> bool:
        result = self.db.execute(
            delete(LogEntry).where(LogEntry.id == entry_id, LogEntry.user_id == owner_id)
        )
        self.db.commit()
        return result.rowcount > 0
