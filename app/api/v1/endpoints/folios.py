from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import Conflict, NotFound, ValidationError
from app.core.security import get_current_user
from app.models.folder import Folder
from app.models.folio import Folio
from app.models.user import User
from app.schemas.folio import FolderCreate, FolderResponse, FolioCreate, FolioResponse, FolioUpdate

router = APIRouter()


async def get_owned_folio(folio_id: str, user: User, db: AsyncSession) -> Folio:
    result = await db.execute(
        select(Folio).where(Folio.id == folio_id, Folio.owner_id == user.id)
    )
    folio = result.scalar_one_or_none()
    if not folio:
        raise NotFound("Folio not found")
    return folio


@router.get("/", response_model=List[FolioResponse])
async def get_folios(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get all folios of the current user, oldest first"""
    result = await db.execute(
        select(Folio).where(Folio.owner_id == current_user.id).order_by(Folio.created_at.asc())
    )
    return result.scalars().all()


@router.post("/", response_model=FolioResponse, status_code=status.HTTP_201_CREATED)
async def create_folio(
    folio_in: FolioCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a new folio"""
    folio = Folio(name=folio_in.name, owner_id=current_user.id, is_system=False)
    db.add(folio)
    await db.commit()
    return folio


@router.patch("/{folio_id}", response_model=FolioResponse)
async def rename_folio(
    folio_id: str,
    folio_in: FolioUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Rename a folio; names are unique per owner"""
    folio = await get_owned_folio(folio_id, current_user, db)

    result = await db.execute(
        select(Folio.id).where(
            Folio.owner_id == current_user.id,
            Folio.name == folio_in.name,
            Folio.id != folio.id,
        )
    )
    if result.first() is not None:
        raise Conflict("A folio with this name already exists")

    folio.name = folio_in.name
    await db.commit()
    await db.refresh(folio)
    return folio


@router.delete("/{folio_id}")
async def delete_folio(
    folio_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a folio with its folders and notes; the last one cannot go"""
    folio = await get_owned_folio(folio_id, current_user, db)

    remaining = await db.scalar(
        select(func.count()).select_from(Folio).where(Folio.owner_id == current_user.id)
    )
    if remaining <= 1:
        raise ValidationError("Cannot delete your last folio")

    await db.execute(delete(Folio).where(Folio.id == folio.id))
    await db.commit()

    return {"success": True}


@router.get("/{folio_id}/folders", response_model=List[FolderResponse])
async def get_folders(
    folio_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get every folder of a folio, by name"""
    await get_owned_folio(folio_id, current_user, db)

    result = await db.execute(
        select(Folder).where(Folder.folio_id == folio_id).order_by(Folder.name.asc())
    )
    return result.scalars().all()


@router.post("/{folio_id}/folders", response_model=FolderResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    folio_id: str,
    folder_in: FolderCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a folder inside one of the user's folios"""
    await get_owned_folio(folio_id, current_user, db)

    if folder_in.parent_id:
        parent = await db.get(Folder, folder_in.parent_id)
        if not parent or parent.folio_id != folio_id:
            raise ValidationError("Parent folder must belong to the same folio")

    folder = Folder(name=folder_in.name, folio_id=folio_id, parent_id=folder_in.parent_id)
    db.add(folder)
    await db.commit()
    return folder
