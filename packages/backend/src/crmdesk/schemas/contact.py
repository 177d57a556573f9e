"""Pydantic schemas for contacts and addresses.

Learn: Separate schemas for create/update/read keeps the API clean.
- ContactCreate / AddressCreate: what you POST
- ContactUpdate / AddressUpdate: what you PUT (all optional, merged)
- ContactRead: what the API returns, with nested addresses and tasks
"""

from datetime import datetime
from typing import ClassVar, Optional

from pydantic import BaseModel, Field

from crmdesk.schemas.common import NonBlank, PartialUpdate, RowId
from crmdesk.schemas.task import TaskRead


# ─── Addresses ───────────────────────────────────────────

class AddressFields(BaseModel):
    address_line2: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None


class AddressCreate(AddressFields):
    """POST /addresses — the contact comes from the body."""
    contact_id: RowId
    address_line1: NonBlank
    city: NonBlank


class ContactAddressCreate(AddressFields):
    """POST /contacts/{id}/address — the contact comes from the path."""
    address_line1: NonBlank
    city: Optional[str] = None


class AddressUpdate(PartialUpdate):
    not_nullable: ClassVar[frozenset[str]] = frozenset({"contact_id", "address_line1"})

    contact_id: Optional[RowId] = None
    address_line1: Optional[NonBlank] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None
    country: Optional[str] = None


class AddressRead(BaseModel):
    id: int
    contact_id: int
    address_line1: str
    address_line2: Optional[str]
    city: Optional[str]
    state: Optional[str]
    pincode: Optional[str]
    country: Optional[str]
    created_by: Optional[int]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}


# ─── Contacts ────────────────────────────────────────────

class ContactCreate(BaseModel):
    contact_first_name: NonBlank
    contact_last_name: NonBlank
    contact_number: NonBlank
    contact_email: Optional[str] = None
    note: Optional[str] = None


class ContactUpdate(PartialUpdate):
    not_nullable: ClassVar[frozenset[str]] = frozenset(
        {"contact_first_name", "contact_last_name", "contact_number"}
    )

    contact_first_name: Optional[NonBlank] = None
    contact_last_name: Optional[NonBlank] = None
    contact_number: Optional[NonBlank] = None
    contact_email: Optional[str] = None
    note: Optional[str] = None


class ContactCreated(BaseModel):
    ok: bool = True
    id: int
    contactId: int


class ContactRead(BaseModel):
    id: int
    contact_first_name: str
    contact_last_name: str
    contact_number: str
    contact_email: Optional[str]
    note: Optional[str]
    contact_full_name: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    addresses: list[AddressRead] = Field(default_factory=list)
    tasks: list[TaskRead] = Field(default_factory=list)


class AddressCreated(BaseModel):
    ok: bool = True
    id: int
    addressId: int
