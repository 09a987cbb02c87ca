import logging
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import NotFound
from app.core.security import get_current_user
from app.models.user import User
from app.schemas.share import (
    RevokeResponse,
    ShareCreate,
    ShareCreatedResponse,
    ShareResponse,
    ShareUpdate,
)
from app.services import collaborators
from app.services.notifications import NotificationService, get_notifier
from app.services.shares import ShareRegistry, ensure_page_owner

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_registry(
    db: AsyncSession = Depends(get_db),
    notifier: NotificationService = Depends(get_notifier),
) -> ShareRegistry:
    return ShareRegistry(db, notifier)


@router.get("/{page_id}/shares", response_model=List[ShareResponse])
async def list_page_shares(
    page_id: str,
    current_user: User = Depends(get_current_user),
    registry: ShareRegistry = Depends(get_registry)
):
    """List all shares of a published page (only owner)"""
    page = await registry.get_page(page_id)
    ensure_page_owner(page, current_user.id, "view shares")
    return await registry.list_shares(page.id)


@router.post("/{page_id}/shares", response_model=ShareCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_page_share(
    page_id: str,
    share_in: ShareCreate,
    current_user: User = Depends(get_current_user),
    registry: ShareRegistry = Depends(get_registry)
):
    """Invite someone to a published page by email (only owner)"""
    page = await registry.get_page(page_id)
    ensure_page_owner(page, current_user.id, "create shares")

    share = await registry.create_share(
        page,
        invited_email=str(share_in.invited_email),
        permission=share_in.permission,
        inviter=current_user,
        expires_at=share_in.expires_at,
    )
    return ShareCreatedResponse(
        share=ShareResponse.model_validate(share),
        access_link=registry.notifier.access_link(share.access_token),
    )


@router.patch("/{page_id}/shares/{share_id}", response_model=ShareResponse)
async def update_page_share(
    page_id: str,
    share_id: str,
    share_update: ShareUpdate,
    current_user: User = Depends(get_current_user),
    registry: ShareRegistry = Depends(get_registry)
):
    """Change a share's permission and/or revoke it (only owner)"""
    page = await registry.get_page(page_id)
    ensure_page_owner(page, current_user.id, "update shares")
    share = await registry.get_share(page.id, share_id)

    return await registry.update_share(
        share,
        page,
        current_user,
        permission=share_update.permission,
        status=share_update.status,
    )


@router.delete("/{page_id}/shares/{share_id}", response_model=RevokeResponse)
async def revoke_page_share(
    page_id: str,
    share_id: str,
    current_user: User = Depends(get_current_user),
    registry: ShareRegistry = Depends(get_registry)
):
    """Revoke a share (only owner). The record is kept for the audit trail."""
    page = await registry.get_page(page_id)
    ensure_page_owner(page, current_user.id, "revoke shares")
    share = await registry.get_share(page.id, share_id)

    await registry.revoke_share(share, page, current_user)
    return RevokeResponse(success=True)


@router.delete("/{page_id}/collaborators/{user_id}", response_model=RevokeResponse)
async def remove_page_collaborator(
    page_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user),
    registry: ShareRegistry = Depends(get_registry)
):
    """Explicit unshare: the user loses access even if they joined through a link (only owner)"""
    page = await registry.get_page(page_id)
    ensure_page_owner(page, current_user.id, "remove collaborators")

    if not await collaborators.remove_collaborator(page.id, user_id, registry.db):
        raise NotFound("Collaborator not found")
    await registry.db.commit()

    logger.info("Collaborator %s removed from page %s", user_id, page.id)
    return RevokeResponse(success=True)
