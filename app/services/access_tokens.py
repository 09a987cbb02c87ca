"""Opaque bearer tokens that point at exactly one share.

A token is a random value stored on its share. Verification only trusts the
store: the share is looked up by token and its live status and expiry are
checked on every call.
"""
import enum
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.share import Share, ShareStatus
from app.utils.datetime_helper import as_utc, utcnow

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32
MAX_TOKEN_ATTEMPTS = 5


class TokenError(str, enum.Enum):
    INVALID = "invalid token"
    REVOKED = "revoked"
    EXPIRED = "expired"
    MISMATCHED_PAGE = "mismatched page"
    UNPUBLISHED = "unpublished"


@dataclass
class TokenVerification:
    valid: bool
    share: Optional[Share] = None
    error: Optional[TokenError] = None


def generate_token() -> str:
    # 256 bits, base64url without padding (43 characters)
    return secrets.token_urlsafe(TOKEN_BYTES)


async def issue(share: Share, db: AsyncSession) -> str:
    """Assign a fresh, unique token to ``share`` and return it"""
    for _ in range(MAX_TOKEN_ATTEMPTS):
        token = generate_token()
        result = await db.execute(select(Share.id).where(Share.access_token == token))
        if result.scalar_one_or_none() is None:
            share.access_token = token
            return token
        logger.warning("Access token collision, regenerating")

    raise RuntimeError("Failed to generate unique access token")


def is_expired(share: Share, now: Optional[datetime] = None) -> bool:
    expires_at = as_utc(share.expires_at)
    if expires_at is None:
        return False
    return expires_at <= (now or utcnow())


async def verify(token: str, db: AsyncSession, now: Optional[datetime] = None) -> TokenVerification:
    """Check a presented token against the store. Has no side effects."""
    if not token:
        return TokenVerification(valid=False, error=TokenError.INVALID)

    result = await db.execute(select(Share).where(Share.access_token == token))
    share = result.scalar_one_or_none()

    if share is None:
        return TokenVerification(valid=False, error=TokenError.INVALID)

    # Expiry wins over status so an expired link always reads as expired
    if is_expired(share, now):
        return TokenVerification(valid=False, error=TokenError.EXPIRED)

    if share.status is not ShareStatus.ACTIVE:
        return TokenVerification(valid=False, error=TokenError.REVOKED)

    return TokenVerification(valid=True, share=share)


async def record_access(share_id: str, db: AsyncSession):
    """Bump the access counter of an honoured share in one statement"""
    await db.execute(
        update(Share)
        .where(Share.id == share_id)
        .values(access_count=Share.access_count + 1, last_accessed_at=utcnow())
        .execution_options(synchronize_session=False)
    )
