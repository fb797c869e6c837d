from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Integer, String, Text, create_engine, delete, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import TaskNotFound
from .models import TaskEntity
from .repositories import Repository
from .schemas import TaskCreate
from .utils import next_timestamp, to_utc, utcnow

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class TaskRow(Base):
    """
    ORM mapping of the `tasks` table.
    """

    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, nullable=False)
    due_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:
        return f"<TaskRow(id={self.id}, title={self.title!r}, status={self.status!r})>"


def _row_to_entity(row: TaskRow) -> TaskEntity:
    # SQLite hands back naive datetimes; to_utc treats them as UTC
    return {
        "id": int(row.id),
        "title": row.title,
        "description": row.description,
        "status": row.status,
        "due_date": to_utc(row.due_date),
        "created_at": to_utc(row.created_at),
        "updated_at": to_utc(row.updated_at),
    }


def _engine_kwargs(database_url: str) -> Dict[str, Any]:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_pre_ping": True}

    # Sync routes run in a thread pool, so connections cross threads
    kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        # One shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    else:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)
    return kwargs


class SQLAlchemyRepository(Repository):
    """
    Repository backed by a relational `tasks` table through the SQLAlchemy ORM.

    Every operation runs in its own session and transaction.
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self._database_url = database_url
        self._echo = echo
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker[Session]] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("SQLAlchemyRepository is not open")
        return self._engine

    def open(self) -> None:
        if self._engine is not None:
            return
        engine = create_engine(self._database_url, echo=self._echo, **_engine_kwargs(self._database_url))
        Base.metadata.create_all(engine)
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)
        logger.info("Task table ready at %s", engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("Database connections closed")

    def _begin(self):
        if self._sessions is None:
            raise RuntimeError("SQLAlchemyRepository is not open")
        return self._sessions.begin()

    def create(self, data: TaskCreate) -> TaskEntity:
        now = utcnow()
        with self._begin() as session:
            row = TaskRow(
                title=data.title,
                description=data.description,
                status=data.status,
                due_date=to_utc(data.due_date),
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.flush()
            return _row_to_entity(row)

    def list_all(self) -> List[TaskEntity]:
        stmt = select(TaskRow).order_by(TaskRow.created_at.desc(), TaskRow.id.desc())
        with self._begin() as session:
            return [_row_to_entity(r) for r in session.scalars(stmt)]

    def find_by_id(self, task_id: int) -> Optional[TaskEntity]:
        with self._begin() as session:
            row = session.get(TaskRow, task_id)
            return _row_to_entity(row) if row is not None else None

    def update_status(self, task_id: int, status: str) -> TaskEntity:
        with self._begin() as session:
            row = session.get(TaskRow, task_id)
            if row is None:
                raise TaskNotFound(task_id)
            row.status = status
            row.updated_at = next_timestamp(row.updated_at)
            session.flush()
            return _row_to_entity(row)

    def delete_by_id(self, task_id: int) -> None:
        with self._begin() as session:
            result = session.execute(delete(TaskRow).where(TaskRow.id == task_id))
            if result.rowcount == 0:
                raise TaskNotFound(task_id)
