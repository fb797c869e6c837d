from __future__ import annotations


# PUBLIC_INTERFACE
class TaskApiError(Exception):
    """
    Base error carrying the HTTP status code and the client-facing message.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


# PUBLIC_INTERFACE
class ValidationError(TaskApiError):
    """Malformed or missing client input."""

    status_code = 400


# PUBLIC_INTERFACE
class NotFoundError(TaskApiError):
    """The referenced resource does not exist."""

    status_code = 404


# PUBLIC_INTERFACE
class InternalError(TaskApiError):
    """Unexpected storage or runtime failure. The message is generic by contract."""

    status_code = 500


# PUBLIC_INTERFACE
class TaskNotFound(NotFoundError):
    """
    Raised by repositories when an update or delete targets an id with no row.
    """

    def __init__(self, task_id: int) -> None:
        super().__init__("Task not found.")
        self.task_id = task_id
