import copy
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import Conflict, NotFound, ValidationError
from app.core.security import get_current_user_id, get_optional_user_id
from app.models.folder import Folder
from app.models.folio import Folio
from app.models.note import Note
from app.models.published_page import PublishedPage
from app.schemas.note import (
    CloneRequest,
    CloneResponse,
    MoveRequest,
    NoteAccessMeta,
    NoteCreate,
    NoteDetailResponse,
    NoteResponse,
    NoteUpdate,
    PublishResponse,
    PublishStatusResponse,
)
from app.services.names import NameMode, NameScope, place_with_unique_name
from app.services.permissions import Access, AccessLevel, AccessSource, load_note, require_access
from app.services.slugs import slugify, unique_slug
from app.utils.datetime_helper import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_owned_folio(folio_id: str, user_id: str, db: AsyncSession) -> Folio:
    result = await db.execute(select(Folio).where(Folio.id == folio_id, Folio.owner_id == user_id))
    folio = result.scalar_one_or_none()
    if not folio:
        raise NotFound("Folio not found")
    return folio


async def get_default_folio(user_id: str, db: AsyncSession) -> Folio:
    """The user's oldest regular folio, where clones of other people's notes land"""
    result = await db.execute(
        select(Folio)
        .where(Folio.owner_id == user_id, Folio.is_system.is_(False))
        .order_by(Folio.created_at.asc())
        .limit(1)
    )
    folio = result.scalar_one_or_none()
    if not folio:
        raise NotFound("No folio found for user")
    return folio


async def get_folder_in_folio(folder_id: str, folio_id: str, db: AsyncSession) -> Folder:
    folder = await db.get(Folder, folder_id)
    if not folder:
        raise NotFound("Target folder not found")
    if folder.folio_id != folio_id:
        raise ValidationError("Folder belongs to a different folio")
    return folder


def note_detail(note: Note, access: Access) -> NoteDetailResponse:
    return NoteDetailResponse(
        id=note.id,
        title=note.title,
        content=note.content,
        folio_id=note.folio_id,
        folder_id=note.folder_id,
        created_at=note.created_at,
        updated_at=note.updated_at,
        access=NoteAccessMeta(
            level=access.level.value,
            is_owner=access.source is AccessSource.OWNER,
            collaborator_role=access.collaborator.role.value if access.collaborator else None,
            can_edit=access.can_edit,
        ),
    )


@router.get("/", response_model=List[NoteResponse])
async def get_notes(
    folio_id: Optional[str] = Query(None, alias="folioId"),
    folder_id: Optional[str] = Query(None, alias="folderId"),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get the user's notes, most recently updated first"""
    query = select(Note).join(Folio, Note.folio_id == Folio.id).where(Folio.owner_id == user_id)
    if folio_id:
        query = query.where(Note.folio_id == folio_id)
    if folder_id:
        query = query.where(Note.folder_id == folder_id)

    result = await db.execute(query.order_by(Note.updated_at.desc()))
    return result.scalars().all()


@router.post("/", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    note_in: NoteCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Create a new note in one of the user's folios"""
    await get_owned_folio(note_in.folio_id, user_id, db)
    if note_in.folder_id:
        await get_folder_in_folio(note_in.folder_id, note_in.folio_id, db)

    note = Note(
        title=note_in.title,
        content=note_in.content,
        folio_id=note_in.folio_id,
        folder_id=note_in.folder_id,
    )
    db.add(note)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("A note with this title already exists here")

    return note


@router.get("/{note_id}", response_model=NoteDetailResponse)
async def get_note(
    note_id: str,
    access_token: Optional[str] = Query(None, alias="accessToken"),
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get a note as its owner, a collaborator or a token holder"""
    note = await load_note(note_id, db)
    access = await require_access(note, user_id, db, token=access_token)
    return note_detail(note, access)


@router.patch("/{note_id}", response_model=NoteDetailResponse)
async def update_note(
    note_id: str,
    note_update: NoteUpdate,
    access_token: Optional[str] = Query(None, alias="accessToken"),
    user_id: Optional[str] = Depends(get_optional_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Update a note (owner or editor)"""
    note = await load_note(note_id, db)
    access = await require_access(note, user_id, db, AccessLevel.EDIT, token=access_token)

    update_data = note_update.model_dump(exclude_unset=True)
    if "title" in update_data and update_data["title"] is None:
        raise ValidationError("title cannot be null")

    for field, value in update_data.items():
        setattr(note, field, value)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("A note with this title already exists here")

    await db.refresh(note)
    return note_detail(note, access)


@router.delete("/{note_id}")
async def delete_note(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete a note (only owner)"""
    note = await load_note(note_id, db)
    await require_access(note, user_id, db, AccessLevel.OWNER)

    await db.execute(delete(Note).where(Note.id == note.id))
    await db.commit()

    return {"message": "Note deleted"}


@router.post("/{note_id}/publish", response_model=PublishResponse)
async def publish_note(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Publish a note as a public page (only owner)"""
    note = await load_note(note_id, db)
    await require_access(note, user_id, db, AccessLevel.OWNER)

    page = note.published
    if page and page.is_published:
        raise Conflict("Page is already published", reason="already_published")

    slug = await unique_slug(slugify(note.title), note.id, db)

    if page:
        # Re-publishing keeps the page id so shares and collaborators survive
        page.slug = slug
        page.is_published = True
        page.published_at = utcnow()
    else:
        page = PublishedPage(note=note, slug=slug, is_published=True, published_at=utcnow())
        db.add(page)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Unable to reserve a unique URL for this page. Please try again.", reason="slug_taken")

    logger.info("Note %s published at /public/%s", note.id, slug)
    return PublishResponse(
        page_id=page.id,
        slug=page.slug,
        public_url=f"/public/{page.slug}",
        published_at=page.published_at,
    )


@router.get("/{note_id}/publish/status", response_model=PublishStatusResponse)
async def get_publish_status(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    note = await load_note(note_id, db)
    await require_access(note, user_id, db, AccessLevel.OWNER)

    page = note.published
    if not page:
        return PublishStatusResponse(is_published=False)
    return PublishStatusResponse(is_published=page.is_published, slug=page.slug)


@router.delete("/{note_id}/publish")
async def unpublish_note(
    note_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Take a page offline; the slug stays reserved for re-publishing"""
    note = await load_note(note_id, db)
    await require_access(note, user_id, db, AccessLevel.OWNER)

    page = note.published
    if not page:
        raise NotFound("Page is not published")
    if not page.is_published:
        raise NotFound("Page is already unpublished")

    page.is_published = False
    await db.commit()

    return {"message": "Page unpublished"}


@router.post("/{note_id}/clone", response_model=CloneResponse, status_code=status.HTTP_201_CREATED)
async def clone_note(
    note_id: str,
    clone_in: Optional[CloneRequest] = None,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Copy a note into the caller's folio; any level of access is enough"""
    clone_in = clone_in or CloneRequest()
    note = await load_note(note_id, db)
    await require_access(note, user_id, db, AccessLevel.READ, token=clone_in.access_token)

    if note.folio.owner_id == user_id:
        folio_id = note.folio_id
        folder_id = note.folder_id
    else:
        folio_id = (await get_default_folio(user_id, db)).id
        folder_id = None

    if clone_in.target_folder_id is not None:
        await get_folder_in_folio(clone_in.target_folder_id, folio_id, db)
        folder_id = clone_in.target_folder_id

    title, content = note.title, note.content

    async def write(name: str) -> Note:
        clone = Note(
            title=name,
            content=copy.deepcopy(content),
            folio_id=folio_id,
            folder_id=folder_id,
        )
        db.add(clone)
        await db.flush()
        return clone

    clone = await place_with_unique_name(
        title, NameScope(folio_id, folder_id), NameMode.CLONE, write, db
    )
    await db.commit()

    logger.info("Note %s cloned to %s as %r", note.id, clone.id, clone.title)
    return CloneResponse(note_id=clone.id, title=clone.title, redirect_url=f"/editor/{clone.id}")


@router.post("/{note_id}/move", response_model=NoteResponse)
async def move_note(
    note_id: str,
    move_in: MoveRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Move a note to another folder of its folio, renaming it on a clash (only owner)"""
    note = await load_note(note_id, db)
    await require_access(note, user_id, db, AccessLevel.OWNER)

    target_folder_id = move_in.target_folder_id
    if target_folder_id is not None:
        await get_folder_in_folio(target_folder_id, note.folio_id, db)

    title = note.title

    async def write(name: str) -> Note:
        note.folder_id = target_folder_id
        note.title = name
        await db.flush()
        return note

    await place_with_unique_name(
        title, NameScope(note.folio_id, target_folder_id), NameMode.MOVE, write, db, exclude_id=note.id
    )
    await db.commit()
    await db.refresh(note)

    return note
