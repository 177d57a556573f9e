"""Address API routes.

The contact is named in the body (POST /addresses) and must belong to
the signed-in user; POST /contacts/{id}/address is the path-addressed
twin of the create route.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.api.params import ContactFilter, PathId
from crmdesk.auth.dependencies import CurrentUser, get_current_user
from crmdesk.db.engine import get_db
from crmdesk.schemas.common import OkResponse
from crmdesk.schemas.contact import (
    AddressCreate,
    AddressCreated,
    AddressRead,
    AddressUpdate,
)
from crmdesk.services.address_service import AddressService

router = APIRouter(prefix="/addresses")


def _svc(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> AddressService:
    return AddressService(db, user.user_id)


@router.post("", response_model=AddressCreated, status_code=201)
async def create_address(body: AddressCreate, svc: AddressService = Depends(_svc)):
    address = await svc.create_address(
        contact_id=body.contact_id,
        address_line1=body.address_line1,
        address_line2=body.address_line2,
        city=body.city,
        state=body.state,
        pincode=body.pincode,
        country=body.country,
    )
    return AddressCreated(id=address.id, addressId=address.id)


@router.get("", response_model=list[AddressRead])
async def list_addresses(
    contact_id: ContactFilter = None,
    svc: AddressService = Depends(_svc),
):
    return await svc.list_addresses(contact_id=contact_id)


@router.get("/{address_id}", response_model=AddressRead)
async def get_address(address_id: PathId, svc: AddressService = Depends(_svc)):
    return await svc.get_address(address_id)


@router.put("/{address_id}", response_model=OkResponse)
async def update_address(
    address_id: PathId,
    body: AddressUpdate,
    svc: AddressService = Depends(_svc),
):
    await svc.update_address(address_id, body.changes())
    return OkResponse()


@router.delete("/{address_id}", response_model=OkResponse)
async def delete_address(address_id: PathId, svc: AddressService = Depends(_svc)):
    await svc.delete_address(address_id)
    return OkResponse()
