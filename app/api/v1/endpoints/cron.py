import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import ShareAccessError, Unauthorized
from app.services.expiry import sweep_expired_shares
from app.services.notifications import NotificationService, get_notifier
from app.utils.datetime_helper import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


async def verify_cron_secret(authorization: Optional[str] = Header(None)):
    if not settings.CRON_SECRET:
        if settings.DEBUG:
            return
        logger.error("CRON_SECRET not configured")
        raise ShareAccessError("Server configuration error")

    expected = f"Bearer {settings.CRON_SECRET}"
    if not authorization or not hmac.compare_digest(authorization, expected):
        logger.warning("Rejected cron call with invalid secret")
        raise Unauthorized("Unauthorized")


@router.api_route("/expire-shares", methods=["GET", "POST"], dependencies=[Depends(verify_cron_secret)])
async def expire_shares(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier)
):
    """Revoke expired shares; called by the scheduler"""
    result = await sweep_expired_shares(db, notifier)
    return {
        "success": True,
        "expired": result.expired_count,
        "notified": result.notified,
        "failed": result.failed,
        "timestamp": utcnow().isoformat(),
    }
