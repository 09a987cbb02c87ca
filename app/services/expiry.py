import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.note import Note
from app.models.published_page import PublishedPage
from app.models.share import Share, ShareStatus
from app.services.notifications import NotificationService
from app.utils.datetime_helper import utcnow

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    expired_count: int
    notified: int = 0
    failed: int = 0


async def sweep_expired_shares(
    db: AsyncSession,
    notifier: NotificationService,
    now: Optional[datetime] = None,
) -> SweepResult:
    """Revoke every active share past its expiry and tell each invitee.

    The status change is committed as one bulk update before any email goes
    out; each notification then succeeds or fails on its own.
    """
    now = now or utcnow()
    result = await db.execute(
        select(Share.id, Share.invited_email, Note.title)
        .join(PublishedPage, Share.page_id == PublishedPage.id)
        .join(Note, PublishedPage.note_id == Note.id)
        .where(
            Share.status == ShareStatus.ACTIVE,
            Share.expires_at.is_not(None),
            Share.expires_at <= now,
        )
    )
    expired = result.all()

    if not expired:
        logger.info("No expired shares found")
        return SweepResult(expired_count=0)

    logger.info("Found %d expired shares", len(expired))
    share_ids = [row.id for row in expired]
    await db.execute(
        update(Share)
        .where(Share.id.in_(share_ids), Share.status == ShareStatus.ACTIVE)
        .values(status=ShareStatus.REVOKED)
    )
    await db.commit()

    outcomes = await asyncio.gather(
        *(notifier.share_expired(row.invited_email, row.title) for row in expired),
        return_exceptions=True,
    )

    failed = 0
    for row, outcome in zip(expired, outcomes):
        if isinstance(outcome, Exception):
            failed += 1
            logger.warning("Expiry notification for share %s failed: %s", row.id, outcome)

    logger.info("Expired %d shares (%d notifications failed)", len(expired), failed)
    return SweepResult(expired_count=len(expired), notified=len(expired) - failed, failed=failed)
