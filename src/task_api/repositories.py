from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import RLock
from typing import List, Optional

from .errors import TaskNotFound
from .models import TaskEntity
from .schemas import TaskCreate
from .settings import Settings, get_settings
from .utils import next_timestamp, utcnow

logger = logging.getLogger(__name__)


def _sort_key(t: TaskEntity):
    return (t["created_at"], t["id"])


# PUBLIC_INTERFACE
class Repository(ABC):
    """
    Abstract persistence gateway for tasks.

    Implementations translate between TaskEntity and their storage, and raise
    TaskNotFound (never a storage-specific error) when an update or delete
    targets a missing id. Other failures propagate to the caller.
    """

    def open(self) -> None:
        """Acquire storage resources. Called once at application startup."""

    def close(self) -> None:
        """Release storage resources. Called once at application shutdown."""

    @abstractmethod
    def create(self, data: TaskCreate) -> TaskEntity:
        """Create and return a new task with storage-assigned id and timestamps."""

    @abstractmethod
    def list_all(self) -> List[TaskEntity]:
        """Return every task, most recently created first."""

    @abstractmethod
    def find_by_id(self, task_id: int) -> Optional[TaskEntity]:
        """Return a task by id, or None if absent."""

    @abstractmethod
    def update_status(self, task_id: int, status: str) -> TaskEntity:
        """Set status and refresh updated_at. Raises TaskNotFound if absent."""

    @abstractmethod
    def delete_by_id(self, task_id: int) -> None:
        """Hard-delete a task. Raises TaskNotFound if absent."""


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and local runs.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TaskEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def close(self) -> None:
        with self._lock:
            self._items.clear()

    def create(self, data: TaskCreate) -> TaskEntity:
        now = utcnow()
        with self._lock:
            entity: TaskEntity = {
                "id": self._allocate_id(),
                "title": data.title,
                "description": data.description,
                "status": data.status,
                "due_date": data.due_date,
                "created_at": now,
                "updated_at": now,
            }
            self._items[entity["id"]] = entity
            return entity.copy()

    def list_all(self) -> List[TaskEntity]:
        with self._lock:
            items = sorted(self._items.values(), key=_sort_key, reverse=True)
            # Return copies to avoid external mutation
            return [t.copy() for t in items]

    def find_by_id(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            item = self._items.get(task_id)
            return None if item is None else item.copy()

    def update_status(self, task_id: int, status: str) -> TaskEntity:
        with self._lock:
            existing = self._items.get(task_id)
            if existing is None:
                raise TaskNotFound(task_id)

            updated = existing.copy()
            updated["status"] = status
            updated["updated_at"] = next_timestamp(existing["updated_at"])
            self._items[task_id] = updated
            return updated.copy()

    def delete_by_id(self, task_id: int) -> None:
        with self._lock:
            if self._items.pop(task_id, None) is None:
                raise TaskNotFound(task_id)


# PUBLIC_INTERFACE
def get_repository(settings: Optional[Settings] = None) -> Repository:
    """
    Factory returning the repository configured in settings.
    - database: SQLAlchemyRepository over settings.database_url
    - memory: InMemoryRepository
    The repository is not opened here; the application lifespan does that.
    """
    settings = settings or get_settings()
    if settings.persistence_backend == "memory":
        logger.info("Using in-memory task repository")
        return InMemoryRepository()

    from .db import SQLAlchemyRepository

    return SQLAlchemyRepository(settings.database_url, echo=settings.database_echo)
