"""Email log API — simulated sending and the user's outbox."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.auth.dependencies import CurrentUser, get_current_user
from crmdesk.db.engine import get_db
from crmdesk.schemas.common import CreatedResponse
from crmdesk.schemas.email import EmailRead, EmailSend
from crmdesk.services.email_service import MAX_LOG_ENTRIES, EmailService

router = APIRouter(prefix="/email")


def _svc(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
) -> EmailService:
    return EmailService(db, user.user_id)


@router.post("/send", response_model=CreatedResponse)
async def send_email(body: EmailSend, svc: EmailService = Depends(_svc)):
    """Simulate sending an email (records it in the log)."""
    entry = await svc.send(to_email=body.to_email, subject=body.subject, body=body.body)
    return CreatedResponse(id=entry.id)


@router.get("", response_model=list[EmailRead])
async def list_emails(
    limit: int = Query(MAX_LOG_ENTRIES, ge=1, le=MAX_LOG_ENTRIES),
    svc: EmailService = Depends(_svc),
):
    """Most recent simulated emails, newest first."""
    return await svc.recent(limit=limit)
