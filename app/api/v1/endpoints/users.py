from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import Conflict
from app.core.security import get_current_user, get_current_user_id
from app.models.folio import Folio
from app.models.user import User
from app.schemas.user import UserProfile, UserResponse

router = APIRouter()

DEFAULT_FOLIO_NAME = "My Folio"


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return current_user


@router.put("/me", response_model=UserResponse)
async def sync_current_user(
    profile: UserProfile,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Create or refresh the local profile of the signed-in user"""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    email = str(profile.email).strip().lower()
    if user is None:
        # First sign-in: the account starts with one regular folio
        user = User(id=user_id, email=email, name=profile.name or email.split("@")[0])
        db.add(user)
        db.add(Folio(name=DEFAULT_FOLIO_NAME, owner=user, is_system=False))
    else:
        user.email = email
        user.name = profile.name

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise Conflict("Email already registered to another account")

    return user
