"""Contact service — ownership-scoped contact CRUD.

Learn: Every statement here carries `Contact.user_id == <principal>` next
to the row id, so a contact that belongs to someone else is simply not
found. "Absent" and "not yours" produce the same NotFound; the caller can
never probe for another user's rows.

Listing contacts returns each contact with its addresses and tasks
nested inside. That is three queries (contacts, then all their addresses,
then all their tasks) and one in-memory group-by-parent step, instead of
two extra queries per contact.
"""

from typing import Iterable, Optional, Sequence

import structlog
from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.db.models import Address, Contact, Task
from crmdesk.errors import Conflict, InvalidReference, NotFound
from crmdesk.schemas.contact import AddressRead, ContactRead
from crmdesk.schemas.task import TaskRead

logger = structlog.get_logger()

DUPLICATE_NUMBER = "Contact number already exists for this user"


async def require_owned_contact(
    db: AsyncSession, user_id: int, contact_id: int
) -> Contact:
    """Return the contact if `user_id` owns it, else raise InvalidReference.

    Used before any write that points at a contact (tasks, addresses).
    """
    result = await db.execute(
        select(Contact).where(Contact.id == contact_id, Contact.user_id == user_id)
    )
    contact = result.scalars().first()
    if contact is None:
        raise InvalidReference("Invalid contact")
    return contact


def nest_children(
    contacts: Sequence[Contact],
    addresses: Iterable[Address],
    tasks: Iterable[Task],
) -> list[ContactRead]:
    """Attach each address and task to its parent contact.

    Contacts keep their input order; children keep theirs. A child whose
    parent is not in `contacts` is dropped rather than misattributed.
    """
    by_id: dict[int, ContactRead] = {}
    for contact in contacts:
        by_id[contact.id] = ContactRead.model_validate(contact, from_attributes=True)

    for address in addresses:
        parent = by_id.get(address.contact_id)
        if parent is not None:
            parent.addresses.append(AddressRead.model_validate(address))

    for task in tasks:
        parent = by_id.get(task.contact_id) if task.contact_id is not None else None
        if parent is not None:
            parent.tasks.append(TaskRead.model_validate(task))

    return list(by_id.values())


class ContactService:
    """Business logic for a single user's contacts."""

    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def _scoped(self, contact_id: int) -> Optional[Contact]:
        result = await self.db.execute(
            select(Contact).where(
                Contact.id == contact_id, Contact.user_id == self.user_id
            )
        )
        return result.scalars().first()

    async def _commit_or_conflict(self) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict(DUPLICATE_NUMBER)

    # ─── Create ──────────────────────────────────────────

    async def create_contact(
        self,
        contact_first_name: str,
        contact_last_name: str,
        contact_number: str,
        contact_email: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Contact:
        contact = Contact(
            user_id=self.user_id,
            contact_first_name=contact_first_name,
            contact_last_name=contact_last_name,
            contact_number=contact_number,
            contact_email=contact_email or None,
            note=note or None,
            created_by=self.user_id,
            updated_by=self.user_id,
        )
        self.db.add(contact)
        await self._commit_or_conflict()
        logger.info("contacts.created", contact_id=contact.id)
        return contact

    # ─── Read ────────────────────────────────────────────

    async def list_contacts(self) -> list[ContactRead]:
        result = await self.db.execute(
            select(Contact)
            .where(Contact.user_id == self.user_id)
            .order_by(Contact.id)
        )
        contacts = list(result.scalars().all())
        if not contacts:
            return []

        ids = [c.id for c in contacts]
        addresses = await self.db.execute(
            select(Address).where(Address.contact_id.in_(ids)).order_by(Address.id)
        )
        tasks = await self.db.execute(
            select(Task)
            .where(Task.contact_id.in_(ids), Task.user_id == self.user_id)
            .order_by(Task.id)
        )
        return nest_children(contacts, addresses.scalars().all(), tasks.scalars().all())

    async def get_contact(self, contact_id: int) -> ContactRead:
        contact = await self._scoped(contact_id)
        if contact is None:
            raise NotFound()

        addresses = await self.db.execute(
            select(Address).where(Address.contact_id == contact.id).order_by(Address.id)
        )
        tasks = await self.db.execute(
            select(Task)
            .where(Task.contact_id == contact.id, Task.user_id == self.user_id)
            .order_by(Task.id)
        )
        return nest_children([contact], addresses.scalars().all(), tasks.scalars().all())[0]

    # ─── Update ──────────────────────────────────────────

    async def update_contact(self, contact_id: int, changes: dict) -> Contact:
        """Apply only the given fields; everything else keeps its stored value."""
        contact = await self._scoped(contact_id)
        if contact is None:
            raise NotFound()

        for field, value in changes.items():
            setattr(contact, field, value)
        contact.updated_by = self.user_id
        await self._commit_or_conflict()
        logger.info("contacts.updated", contact_id=contact_id, fields=sorted(changes))
        return contact

    # ─── Delete ──────────────────────────────────────────

    async def delete_contact(self, contact_id: int) -> None:
        """Delete a contact and its addresses; its tasks survive without a contact."""
        contact = await self._scoped(contact_id)
        if contact is None:
            raise NotFound()

        await self.db.execute(delete(Address).where(Address.contact_id == contact.id))
        await self.db.execute(
            update(Task)
            .where(Task.contact_id == contact.id, Task.user_id == self.user_id)
            .values(contact_id=None, updated_by=self.user_id)
        )
        await self.db.delete(contact)
        await self.db.commit()
        logger.info("contacts.deleted", contact_id=contact_id)
