"""Pydantic schemas for tasks.

Learn: TaskUpdate is the partial-update DTO behind PUT /tasks/{id}.
Sending only {"status": "completed"} changes the status and nothing else.
"""

from datetime import date, datetime
from typing import Annotated, ClassVar, Optional

from pydantic import AfterValidator, BaseModel

from crmdesk.schemas.common import NonBlank, PartialUpdate, RowId

TASK_STATUSES = ("pending", "in_progress", "completed")

# The task form has historically sent "complete".
_STATUS_ALIASES = {"complete": "completed", "done": "completed"}


def _normalize_status(value: str) -> str:
    value = _STATUS_ALIASES.get(value.strip().lower(), value.strip().lower())
    if value not in TASK_STATUSES:
        raise ValueError(f"status must be one of {', '.join(TASK_STATUSES)}")
    return value


TaskStatus = Annotated[str, AfterValidator(_normalize_status)]


class TaskCreate(BaseModel):
    title: NonBlank
    description: Optional[str] = None
    status: TaskStatus = "pending"
    due_date: Optional[date] = None
    contact_id: Optional[RowId] = None


class TaskUpdate(PartialUpdate):
    """Partial update — only fields present in the body are applied."""
    not_nullable: ClassVar[frozenset[str]] = frozenset({"title", "status"})

    title: Optional[NonBlank] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[date] = None
    contact_id: Optional[RowId] = None


class TaskCreated(BaseModel):
    ok: bool = True
    id: int
    taskId: int


class TaskRead(BaseModel):
    id: int
    user_id: int
    contact_id: Optional[int]
    title: str
    description: Optional[str]
    status: str
    due_date: Optional[date]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class TaskListItem(TaskRead):
    """A task row plus the (externally maintained) display name of its contact."""
    contact_name: Optional[str] = None
