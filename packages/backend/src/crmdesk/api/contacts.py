"""Contact API routes.

Learn: Routes translate HTTP to service calls. The service raises
NotFound / Conflict / InvalidReference and the app-level error handlers
render them, so handlers stay free of status-code plumbing.

- POST   /contacts              → create (201)
- GET    /contacts              → list, each with nested addresses + tasks
- GET    /contacts/{id}         → one contact, nested the same way
- PUT    /contacts/{id}         → partial update (merge)
- DELETE /contacts/{id}         → delete (addresses go too, tasks are detached)
- POST   /contacts/{id}/address → add an address to this contact (201)
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.api.params import PathId
from crmdesk.auth.dependencies import CurrentUser, get_current_user
from crmdesk.db.engine import get_db
from crmdesk.schemas.common import OkResponse
from crmdesk.schemas.contact import (
    AddressCreated,
    ContactAddressCreate,
    ContactCreate,
    ContactCreated,
    ContactRead,
    ContactUpdate,
)
from crmdesk.services.address_service import AddressService
from crmdesk.services.contact_service import ContactService

router = APIRouter(prefix="/contacts")


def _svc(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> ContactService:
    return ContactService(db, user.user_id)


def _address_svc(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AddressService:
    return AddressService(db, user.user_id)


@router.post("", response_model=ContactCreated, status_code=201)
async def create_contact(body: ContactCreate, svc: ContactService = Depends(_svc)):
    contact = await svc.create_contact(
        contact_first_name=body.contact_first_name,
        contact_last_name=body.contact_last_name,
        contact_number=body.contact_number,
        contact_email=body.contact_email,
        note=body.note,
    )
    return ContactCreated(id=contact.id, contactId=contact.id)


@router.get("", response_model=list[ContactRead])
async def list_contacts(svc: ContactService = Depends(_svc)):
    """List the user's contacts including nested addresses and tasks."""
    return await svc.list_contacts()


@router.get("/{contact_id}", response_model=ContactRead)
async def get_contact(contact_id: PathId, svc: ContactService = Depends(_svc)):
    return await svc.get_contact(contact_id)


@router.put("/{contact_id}", response_model=OkResponse)
async def update_contact(
    contact_id: PathId,
    body: ContactUpdate,
    svc: ContactService = Depends(_svc),
):
    await svc.update_contact(contact_id, body.changes())
    return OkResponse()


@router.delete("/{contact_id}", response_model=OkResponse)
async def delete_contact(contact_id: PathId, svc: ContactService = Depends(_svc)):
    await svc.delete_contact(contact_id)
    return OkResponse()


@router.post("/{contact_id}/address", response_model=AddressCreated, status_code=201)
async def add_contact_address(
    contact_id: PathId,
    body: ContactAddressCreate,
    svc: AddressService = Depends(_address_svc),
):
    """Add an address to one of the user's contacts."""
    address = await svc.create_address(
        contact_id=contact_id,
        address_line1=body.address_line1,
        address_line2=body.address_line2,
        city=body.city,
        state=body.state,
        pincode=body.pincode,
        country=body.country,
    )
    return AddressCreated(id=address.id, addressId=address.id)
