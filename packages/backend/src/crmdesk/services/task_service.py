"""Task service — ownership-scoped task CRUD with merge-on-update.

Learn: PUT /tasks/{id} is a merge. The stored row is fetched (scoped by
id AND owner), the fields the client actually sent are laid over it, and
the merged contact reference is re-checked for ownership before anything
is written. A bare {"status": "completed"} therefore leaves title,
description, due_date and contact_id untouched.
"""

from datetime import date
from typing import Optional

import structlog
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.db.models import Contact, Task
from crmdesk.errors import NotFound
from crmdesk.schemas.task import TaskListItem
from crmdesk.services.contact_service import require_owned_contact

logger = structlog.get_logger()


class TaskService:
    """Business logic for a single user's tasks."""

    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def _scoped(self, task_id: int) -> Optional[Task]:
        result = await self.db.execute(
            select(Task).where(Task.id == task_id, Task.user_id == self.user_id)
        )
        return result.scalars().first()

    # ─── Create ──────────────────────────────────────────

    async def create_task(
        self,
        title: str,
        description: Optional[str] = None,
        status: str = "pending",
        due_date: Optional[date] = None,
        contact_id: Optional[int] = None,
    ) -> Task:
        if contact_id is not None:
            await require_owned_contact(self.db, self.user_id, contact_id)

        task = Task(
            user_id=self.user_id,
            contact_id=contact_id,
            title=title,
            description=description or None,
            status=status or "pending",
            due_date=due_date,
            created_by=self.user_id,
            updated_by=self.user_id,
        )
        self.db.add(task)
        await self.db.commit()
        logger.info("tasks.created", task_id=task.id, contact_id=contact_id)
        return task

    # ─── Read ────────────────────────────────────────────

    async def list_tasks(self) -> list[TaskListItem]:
        """All of the user's tasks, newest first, with their contact's display name."""
        result = await self.db.execute(
            select(Task, Contact.contact_full_name)
            .outerjoin(
                Contact,
                (Contact.id == Task.contact_id) & (Contact.user_id == Task.user_id),
            )
            .where(Task.user_id == self.user_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
        )
        items = []
        for task, contact_name in result.all():
            item = TaskListItem.model_validate(task)
            item.contact_name = contact_name
            items.append(item)
        return items

    async def get_task(self, task_id: int) -> Task:
        task = await self._scoped(task_id)
        if task is None:
            raise NotFound()
        return task

    # ─── Update ──────────────────────────────────────────

    async def update_task(self, task_id: int, changes: dict) -> Task:
        task = await self._scoped(task_id)
        if task is None:
            raise NotFound()

        merged_contact_id = changes.get("contact_id", task.contact_id)
        if merged_contact_id is not None:
            await require_owned_contact(self.db, self.user_id, merged_contact_id)

        for field, value in changes.items():
            setattr(task, field, value)
        task.updated_by = self.user_id
        await self.db.commit()
        logger.info("tasks.updated", task_id=task_id, fields=sorted(changes))
        return task

    # ─── Delete ──────────────────────────────────────────

    async def delete_task(self, task_id: int) -> None:
        result = await self.db.execute(
            delete(Task).where(Task.id == task_id, Task.user_id == self.user_id)
        )
        if result.rowcount == 0:
            await self.db.rollback()
            raise NotFound()
        await self.db.commit()
        logger.info("tasks.deleted", task_id=task_id)
