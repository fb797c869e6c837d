"""
Request handler core: validate the raw input, delegate to the repository and
map the outcome to a status code and JSON body.

Every operation returns a HandlerResult; no exception escapes an operation.
Validation happens before any storage call, TaskNotFound becomes 404, and any
other failure becomes a 500 with a generic message (details go to the log).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import InternalError, NotFoundError, TaskApiError, ValidationError
from .repositories import Repository
from .schemas import parse_status_update, parse_task_create, parse_task_id, serialize_task

logger = logging.getLogger(__name__)

TASK_NOT_FOUND = "Task not found."


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class HandlerResult:
    """
    Outcome of a handler operation: an HTTP status code and a JSON-ready body.
    A body of None means the response has no content (204).
    """

    status_code: int
    body: Any = None


def _error(exc: TaskApiError) -> HandlerResult:
    return HandlerResult(exc.status_code, {"error": exc.message})


# PUBLIC_INTERFACE
class TaskHandlers:
    """
    The five task operations, bound to an injected repository.
    """

    def __init__(self, repository: Repository) -> None:
        self._repo = repository

    def create(self, payload: Mapping[str, Any]) -> HandlerResult:
        try:
            data = parse_task_create(payload)
        except ValidationError as exc:
            return _error(exc)

        try:
            created = self._repo.create(data)
            body = serialize_task(created)
        except Exception:
            logger.exception("Error creating task")
            return _error(InternalError("Failed to create task."))

        logger.debug("Created task %s", created["id"])
        return HandlerResult(201, body)

    def list_all(self) -> HandlerResult:
        try:
            body = [serialize_task(t) for t in self._repo.list_all()]
        except Exception:
            logger.exception("Error retrieving tasks")
            return _error(InternalError("Failed to retrieve tasks."))
        return HandlerResult(200, body)

    def get(self, raw_id: Any) -> HandlerResult:
        try:
            task_id = parse_task_id(raw_id)
        except ValidationError as exc:
            return _error(exc)

        try:
            task = self._repo.find_by_id(task_id)
            body = None if task is None else serialize_task(task)
        except Exception:
            logger.exception("Error retrieving task %s", task_id)
            return _error(InternalError("Failed to retrieve task."))

        if body is None:
            return _error(NotFoundError(TASK_NOT_FOUND))
        return HandlerResult(200, body)

    def update_status(self, raw_id: Any, payload: Mapping[str, Any]) -> HandlerResult:
        try:
            task_id = parse_task_id(raw_id)
            update = parse_status_update(payload)
        except ValidationError as exc:
            return _error(exc)

        try:
            body = serialize_task(self._repo.update_status(task_id, update.status))
        except NotFoundError:
            logger.info("Update failed: task %s not found", task_id)
            return _error(NotFoundError(TASK_NOT_FOUND))
        except Exception:
            logger.exception("Error updating status for task %s", task_id)
            return _error(InternalError("Failed to update task status."))

        return HandlerResult(200, body)

    def delete(self, raw_id: Any) -> HandlerResult:
        try:
            task_id = parse_task_id(raw_id)
        except ValidationError as exc:
            return _error(exc)

        try:
            self._repo.delete_by_id(task_id)
        except NotFoundError:
            logger.info("Delete failed: task %s not found", task_id)
            return _error(NotFoundError(TASK_NOT_FOUND))
        except Exception:
            logger.exception("Error deleting task %s", task_id)
            return _error(InternalError("Failed to delete task."))

        return HandlerResult(204)

