"""Effective permission of a caller on a note.

Resolution runs in a fixed order and the first match wins:

1. the owner of the note's folio gets owner access;
2. a materialized collaborator gets the access of its role;
3. a presented share token that verifies for this note's published page
   grants the share's permission and materializes a collaborator, so the
   next request stops at step 2;
4. everything else is denied.

A collaborator keeps access after the share it came from is revoked. A
revoked or expired token on its own never grants anything.
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import Forbidden, NotFound, Unauthorized
from app.models.collaborator import Collaborator
from app.models.note import Note
from app.models.share import Share, SharePermission
from app.services import access_tokens, collaborators
from app.services.access_tokens import TokenError

logger = logging.getLogger(__name__)


class AccessLevel(str, enum.Enum):
    READ = "read"
    EDIT = "edit"
    OWNER = "owner"

    @classmethod
    def from_permission(cls, permission: SharePermission) -> "AccessLevel":
        return cls.EDIT if SharePermission(permission) is SharePermission.EDIT else cls.READ

    @property
    def rank(self) -> int:
        return {AccessLevel.READ: 1, AccessLevel.EDIT: 2, AccessLevel.OWNER: 3}[self]

    def covers(self, required: "AccessLevel") -> bool:
        return self.rank >= required.rank


class AccessSource(str, enum.Enum):
    OWNER = "owner"
    COLLABORATOR = "collaborator"
    TOKEN = "token"


class DenialReason(str, enum.Enum):
    SIGN_IN_REQUIRED = "sign_in_required"
    FORBIDDEN = "forbidden"
    LINK_INVALID = "link_invalid"


_TOKEN_MESSAGES = {
    TokenError.INVALID: "Invalid access token",
    TokenError.REVOKED: "Access has been revoked",
    TokenError.EXPIRED: "Access token has expired",
    TokenError.MISMATCHED_PAGE: "Access token does not match this page",
    TokenError.UNPUBLISHED: "Page is no longer published",
}


@dataclass
class Access:
    level: AccessLevel
    source: AccessSource
    share: Optional[Share] = None
    collaborator: Optional[Collaborator] = None

    @property
    def can_edit(self) -> bool:
        return self.level.covers(AccessLevel.EDIT)


@dataclass
class Denied:
    reason: DenialReason
    token_error: Optional[TokenError] = None

    def message(self, anonymous: bool) -> str:
        if self.reason is DenialReason.SIGN_IN_REQUIRED:
            return "You must sign in to view this page"
        if self.reason is DenialReason.FORBIDDEN:
            return "You do not have permission to access this page"
        # Anonymous callers do not learn why a link failed
        if anonymous or self.token_error is None:
            return "Access denied"
        return _TOKEN_MESSAGES[self.token_error]

    def to_error(self, anonymous: bool):
        if self.reason is DenialReason.SIGN_IN_REQUIRED:
            return Unauthorized(self.message(anonymous))
        return Forbidden(self.message(anonymous), reason=self.reason.value)


Resolution = Union[Access, Denied]


async def load_note(note_id: str, db: AsyncSession) -> Note:
    """Fetch a note with everything the resolver reads"""
    result = await db.execute(
        select(Note)
        .options(selectinload(Note.folio), selectinload(Note.published))
        .where(Note.id == note_id)
    )
    note = result.scalar_one_or_none()
    if note is None:
        raise NotFound("Note not found")
    return note


async def resolve(
    note: Note,
    user_id: Optional[str],
    db: AsyncSession,
    token: Optional[str] = None,
) -> Resolution:
    """Work out what ``user_id`` (None when anonymous) may do with ``note``"""
    page = note.published

    if user_id is not None and note.folio.owner_id == user_id:
        return Access(AccessLevel.OWNER, AccessSource.OWNER)

    if user_id is not None and page is not None:
        collaborator = await collaborators.get_collaborator(page.id, user_id, db)
        if collaborator is not None:
            return Access(
                AccessLevel.from_permission(collaborator.role.permission),
                AccessSource.COLLABORATOR,
                collaborator=collaborator,
            )

    if token:
        verification = await access_tokens.verify(token, db)
        if not verification.valid:
            logger.info("Token rejected for note %s: %s", note.id, verification.error.value)
            return Denied(DenialReason.LINK_INVALID, verification.error)

        share = verification.share
        if page is None or share.page_id != page.id:
            logger.info("Token for page %s presented on note %s", share.page_id, note.id)
            return Denied(DenialReason.LINK_INVALID, TokenError.MISMATCHED_PAGE)
        if not page.is_published:
            return Denied(DenialReason.LINK_INVALID, TokenError.UNPUBLISHED)

        await access_tokens.record_access(share.id, db)
        collaborator = None
        if user_id is not None:
            collaborator = await collaborators.materialize(page.id, user_id, share.id, share.permission, db)
        await db.commit()
        return Access(
            AccessLevel.from_permission(share.permission),
            AccessSource.TOKEN,
            share=share,
            collaborator=collaborator,
        )

    if user_id is None:
        return Denied(DenialReason.SIGN_IN_REQUIRED)
    return Denied(DenialReason.FORBIDDEN)


async def require_access(
    note: Note,
    user_id: Optional[str],
    db: AsyncSession,
    required: AccessLevel = AccessLevel.READ,
    token: Optional[str] = None,
) -> Access:
    """Resolve and raise unless the caller has at least ``required``"""
    resolution = await resolve(note, user_id, db, token)
    if isinstance(resolution, Denied):
        raise resolution.to_error(anonymous=user_id is None)
    if not resolution.level.covers(required):
        raise Forbidden(f"This action requires {required.value} access")
    return resolution
