from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import NotFound
from app.core.security import get_current_user_id
from app.models.collaborator import Collaborator
from app.models.folio import Folio
from app.models.note import Note
from app.models.published_page import PublishedPage
from app.models.user import User
from app.schemas.share import AcceptShareResponse, AccessRequest, SharedPageResponse
from app.services import access_tokens
from app.services.permissions import DenialReason, Denied, load_note, require_access

router = APIRouter()


@router.post("/accept", response_model=AcceptShareResponse)
async def accept_share(
    accept_in: AccessRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Accept an invitation link; the page then shows up under the user's shared pages"""
    verification = await access_tokens.verify(accept_in.access_token, db)
    if not verification.valid:
        raise Denied(DenialReason.LINK_INVALID, verification.error).to_error(anonymous=False)

    page = await db.get(PublishedPage, verification.share.page_id)
    if not page:
        raise NotFound("Published page not found")

    note = await load_note(page.note_id, db)
    access = await require_access(note, user_id, db, token=accept_in.access_token)

    return AcceptShareResponse(page_id=page.id, note_id=note.id, permission=access.level.value)


@router.get("/mine", response_model=List[SharedPageResponse])
async def get_my_shared_pages(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Pages the current user collaborates on ("Shared with Me")"""
    result = await db.execute(
        select(Collaborator, PublishedPage, Note, User)
        .join(PublishedPage, Collaborator.page_id == PublishedPage.id)
        .join(Note, PublishedPage.note_id == Note.id)
        .join(Folio, Note.folio_id == Folio.id)
        .join(User, Folio.owner_id == User.id)
        .where(Collaborator.user_id == user_id)
        .order_by(Collaborator.created_at.desc())
    )

    return [
        SharedPageResponse(
            id=collaborator.id,
            page_id=page.id,
            note_id=note.id,
            page_title=note.title,
            slug=page.slug,
            sharer_name=owner.name,
            sharer_email=owner.email,
            permission=collaborator.role.permission,
            shared_at=collaborator.created_at,
        )
        for collaborator, page, note, owner in result.all()
    ]
