from __future__ import annotations

from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    Storage-independent representation of a task, as returned by every
    repository implementation.

    Fields:
    - id: Unique integer identifier assigned by storage
    - title: Non-empty title
    - description: Optional free-form description
    - status: Non-empty status label (any value, e.g. "To Do", "Done")
    - due_date: Due datetime (aware, UTC)
    - created_at: Creation timestamp (aware, UTC), never mutated
    - updated_at: Last mutation timestamp (aware, UTC)
    """

    id: int
    title: str
    description: Optional[str]
    status: str
    due_date: datetime
    created_at: datetime
    updated_at: datetime
