"""Pydantic schemas for the simulated email log."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from crmdesk.schemas.common import NonBlank


class EmailSend(BaseModel):
    to_email: NonBlank
    subject: NonBlank
    body: Optional[str] = None


class EmailRead(BaseModel):
    id: int
    to_email: str
    subject: str
    body: Optional[str]
    status: str
    sent_at: Optional[datetime]

    model_config = {"from_attributes": True}
