"""Address service — addresses are owned through their contact.

Learn: contact_address has no user_id column. Ownership is transitive:
every query joins users_contact and filters on its user_id, so scoping
is still a single statement per lookup.
"""

from typing import Optional

import structlog
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.db.models import Address, Contact
from crmdesk.errors import NotFound
from crmdesk.services.contact_service import require_owned_contact

logger = structlog.get_logger()


class AddressService:
    """Business logic for addresses of a single user's contacts."""

    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    def _owned(self) -> Select:
        return (
            select(Address)
            .join(Contact, Contact.id == Address.contact_id)
            .where(Contact.user_id == self.user_id)
        )

    async def _scoped(self, address_id: int) -> Optional[Address]:
        result = await self.db.execute(self._owned().where(Address.id == address_id))
        return result.scalars().first()

    # ─── Create ──────────────────────────────────────────

    async def create_address(
        self,
        contact_id: int,
        address_line1: str,
        address_line2: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        pincode: Optional[str] = None,
        country: Optional[str] = None,
    ) -> Address:
        """Add an address to a contact the user owns (InvalidReference otherwise)."""
        await require_owned_contact(self.db, self.user_id, contact_id)

        address = Address(
            contact_id=contact_id,
            address_line1=address_line1,
            address_line2=address_line2 or None,
            city=city or None,
            state=state or None,
            pincode=pincode or None,
            country=country or None,
            created_by=self.user_id,
            updated_by=self.user_id,
        )
        self.db.add(address)
        await self.db.commit()
        logger.info("addresses.created", address_id=address.id, contact_id=contact_id)
        return address

    # ─── Read ────────────────────────────────────────────

    async def list_addresses(self, contact_id: Optional[int] = None) -> list[Address]:
        query = self._owned().order_by(Address.id)
        if contact_id is not None:
            query = query.where(Address.contact_id == contact_id)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_address(self, address_id: int) -> Address:
        address = await self._scoped(address_id)
        if address is None:
            raise NotFound()
        return address

    # ─── Update ──────────────────────────────────────────

    async def update_address(self, address_id: int, changes: dict) -> Address:
        address = await self._scoped(address_id)
        if address is None:
            raise NotFound()

        if "contact_id" in changes and changes["contact_id"] != address.contact_id:
            await require_owned_contact(self.db, self.user_id, changes["contact_id"])

        for field, value in changes.items():
            setattr(address, field, value)
        address.updated_by = self.user_id
        await self.db.commit()
        logger.info("addresses.updated", address_id=address_id, fields=sorted(changes))
        return address

    # ─── Delete ──────────────────────────────────────────

    async def delete_address(self, address_id: int) -> None:
        address = await self._scoped(address_id)
        if address is None:
            raise NotFound()
        await self.db.delete(address)
        await self.db.commit()
        logger.info("addresses.deleted", address_id=address_id)
