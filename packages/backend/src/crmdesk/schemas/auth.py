"""Pydantic schemas for registration and login."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from crmdesk.schemas.common import NonBlank, Password


class RegisterRequest(BaseModel):
    first_name: NonBlank
    last_name: NonBlank
    email: NonBlank
    phone: NonBlank
    password: Password


class RegisterResponse(BaseModel):
    ok: bool = True
    userId: int


class LoginRequest(BaseModel):
    """Login accepts the front-end's "emailOrPhone" key or "identifier"."""

    model_config = ConfigDict(populate_by_name=True)

    identifier: NonBlank = Field(alias="emailOrPhone")
    password: Password


class TokenResponse(BaseModel):
    token: str
    expiresInSeconds: int
    token_type: str = "bearer"


class UserRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    phone: str
    created_by: Optional[int] = None

    model_config = {"from_attributes": True}
