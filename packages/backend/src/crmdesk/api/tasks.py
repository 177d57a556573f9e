"""Task API routes.

Key patterns:
- POST creates (returns 200 with the new id, as the front-end expects)
- PUT is a merge: send only what changes, e.g. {"status": "completed"}
- Every lookup is scoped to the signed-in user
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.api.params import PathId
from crmdesk.auth.dependencies import CurrentUser, get_current_user
from crmdesk.db.engine import get_db
from crmdesk.schemas.common import OkResponse
from crmdesk.schemas.task import (
    TaskCreate,
    TaskCreated,
    TaskListItem,
    TaskRead,
    TaskUpdate,
)
from crmdesk.services.task_service import TaskService

router = APIRouter(prefix="/tasks")


def _svc(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> TaskService:
    return TaskService(db, user.user_id)


@router.post("", response_model=TaskCreated)
async def create_task(body: TaskCreate, svc: TaskService = Depends(_svc)):
    task = await svc.create_task(
        title=body.title,
        description=body.description,
        status=body.status,
        due_date=body.due_date,
        contact_id=body.contact_id,
    )
    return TaskCreated(id=task.id, taskId=task.id)


@router.get("", response_model=list[TaskListItem])
async def list_tasks(svc: TaskService = Depends(_svc)):
    """List the user's tasks, newest first."""
    return await svc.list_tasks()


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(task_id: PathId, svc: TaskService = Depends(_svc)):
    return await svc.get_task(task_id)


@router.put("/{task_id}", response_model=OkResponse)
async def update_task(
    task_id: PathId,
    body: TaskUpdate,
    svc: TaskService = Depends(_svc),
):
    """Partially update a task. Omitted fields keep their stored values."""
    await svc.update_task(task_id, body.changes())
    return OkResponse()


@router.delete("/{task_id}", response_model=OkResponse)
async def delete_task(task_id: PathId, svc: TaskService = Depends(_svc)):
    await svc.delete_task(task_id)
    return OkResponse()
