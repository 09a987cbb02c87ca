"""Lifecycle of invitation shares: create, change permission, revoke."""
import logging
from datetime import datetime
from typing import Awaitable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.errors import Conflict, Forbidden, NotFound, ValidationError
from app.models.note import Note
from app.models.published_page import PublishedPage
from app.models.share import Share, SharePermission, ShareStatus
from app.models.user import User
from app.services import access_tokens, collaborators
from app.services.notifications import NotificationService
from app.utils.datetime_helper import as_utc, utcnow

logger = logging.getLogger(__name__)


def coerce_enum(enum_cls, value, field: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} {value!r}; expected one of: {allowed}")


def ensure_page_owner(page: PublishedPage, user_id: str, action: str = "manage shares"):
    if page.note.folio.owner_id != user_id:
        raise Forbidden(f"Only the page owner can {action}")


class ShareRegistry:
    def __init__(self, db: AsyncSession, notifier: NotificationService):
        self.db = db
        self.notifier = notifier

    async def get_page(self, page_id: str) -> PublishedPage:
        result = await self.db.execute(
            select(PublishedPage)
            .options(selectinload(PublishedPage.note).selectinload(Note.folio))
            .where(PublishedPage.id == page_id)
        )
        page = result.scalar_one_or_none()
        if page is None:
            raise NotFound("Published page not found")
        return page

    async def get_share(self, page_id: str, share_id: str) -> Share:
        result = await self.db.execute(
            select(Share).where(Share.id == share_id, Share.page_id == page_id)
        )
        share = result.scalar_one_or_none()
        if share is None:
            raise NotFound("Share not found")
        return share

    async def list_shares(self, page_id: str) -> List[Share]:
        result = await self.db.execute(
            select(Share).where(Share.page_id == page_id).order_by(Share.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_share(
        self,
        page: PublishedPage,
        invited_email: str,
        permission,
        inviter: User,
        expires_at: Optional[datetime] = None,
    ) -> Share:
        """Invite ``invited_email`` to ``page``. Ownership is checked by the caller."""
        permission = coerce_enum(SharePermission, permission, "permission")
        if permission is None:
            raise ValidationError("permission is required")
        invited_email = (invited_email or "").strip().lower()
        if not invited_email:
            raise ValidationError("invitedEmail is required")
        if not page.is_published:
            raise ValidationError("Page must be published before sharing")

        expires_at = as_utc(expires_at)
        if expires_at is not None and expires_at <= utcnow():
            raise ValidationError("expiresAt must be in the future")

        result = await self.db.execute(
            select(Share.id).where(
                Share.page_id == page.id,
                Share.invited_email == invited_email,
                Share.status == ShareStatus.ACTIVE,
            )
        )
        if result.first() is not None:
            raise Conflict("This email already has access to this page")

        share = Share(
            page_id=page.id,
            invited_email=invited_email,
            invited_by=inviter.id,
            permission=permission,
            status=ShareStatus.ACTIVE,
            expires_at=expires_at,
            access_count=0,
            created_at=utcnow(),
        )
        token = await access_tokens.issue(share, self.db)
        self.db.add(share)
        await self.db.flush()

        # Invitees who already have an account see the page right away
        result = await self.db.execute(select(User.id).where(User.email == invited_email))
        invitee_id = result.scalar_one_or_none()
        if invitee_id is not None and invitee_id != page.note.folio.owner_id:
            await collaborators.materialize(page.id, invitee_id, share.id, permission, self.db)
        else:
            logger.info("No account for %s yet; collaborator will be created on first access", invited_email)

        await self.db.commit()
        logger.info("Share %s created on page %s (%s)", share.id, page.id, permission.value)

        await self._notify(
            "share-invitation",
            self.notifier.share_invitation(
                to_email=invited_email,
                from_name=inviter.display_name,
                page_title=page.note.title,
                access_link=self.notifier.access_link(token),
                permission=permission,
                expires_at=expires_at,
            ),
        )
        return share

    async def update_share(
        self,
        share: Share,
        page: PublishedPage,
        actor: User,
        permission=None,
        status=None,
    ) -> Share:
        permission = coerce_enum(SharePermission, permission, "permission")
        status = coerce_enum(ShareStatus, status, "status")
        if permission is None and status is None:
            raise ValidationError("Either permission or status must be provided")
        if status is not None and not share.status.can_transition_to(status):
            raise ValidationError("A revoked share cannot be reactivated")

        old_permission = share.permission
        permission_changed = permission is not None and permission is not old_permission
        revoked = status is ShareStatus.REVOKED and share.status is ShareStatus.ACTIVE

        if not permission_changed and not revoked:
            return share

        if permission_changed:
            share.permission = permission
            await collaborators.sync_role(share.id, permission, self.db)
        if revoked:
            # Collaborators materialized from this share keep their access
            share.status = ShareStatus.REVOKED

        await self.db.commit()

        if permission_changed:
            logger.info("Share %s permission %s -> %s", share.id, old_permission.value, permission.value)
            await self._notify(
                "permission-changed",
                self.notifier.permission_changed(
                    to_email=share.invited_email,
                    page_title=page.note.title,
                    old_permission=old_permission,
                    new_permission=permission,
                    page_url=self.notifier.page_url(page.slug),
                ),
            )
        if revoked:
            logger.info("Share %s revoked by %s", share.id, actor.id)
            await self._notify(
                "access-revoked",
                self.notifier.access_revoked(
                    to_email=share.invited_email,
                    page_title=page.note.title,
                    revoked_by=actor.display_name,
                ),
            )
        return share

    async def revoke_share(self, share: Share, page: PublishedPage, actor: User) -> Share:
        return await self.update_share(share, page, actor, status=ShareStatus.REVOKED)

    async def _notify(self, event: str, delivery: Awaitable):
        try:
            await delivery
        except Exception:
            logger.warning("Failed to send %s notification", event, exc_info=True)
