"""Email service — a simulated outbox.

Nothing leaves the building: "sending" records a row in email_logs with
status "sent". The log is per user.
"""

from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crmdesk.db.models import EmailLog

logger = structlog.get_logger()

MAX_LOG_ENTRIES = 200


class EmailService:
    def __init__(self, db: AsyncSession, user_id: int):
        self.db = db
        self.user_id = user_id

    async def send(self, to_email: str, subject: str, body: Optional[str] = None) -> EmailLog:
        entry = EmailLog(
            user_id=self.user_id,
            to_email=to_email,
            subject=subject,
            body=body or None,
            status="sent",
        )
        self.db.add(entry)
        await self.db.commit()
        logger.info("email.simulated_send", email_id=entry.id)
        return entry

    async def recent(self, limit: int = MAX_LOG_ENTRIES) -> list[EmailLog]:
        result = await self.db.execute(
            select(EmailLog)
            .where(EmailLog.user_id == self.user_id)
            .order_by(EmailLog.sent_at.desc(), EmailLog.id.desc())
            .limit(min(limit, MAX_LOG_ENTRIES))
        )
        return list(result.scalars().all())
