from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.errors import Unauthorized
from app.models.user import User

bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> str:
    """Return the user id carried by a valid identity token"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        raise Unauthorized("Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise Unauthorized("Could not validate credentials")
    return user_id


async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[str]:
    """User id of the caller, or None for anonymous requests"""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


async def get_current_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    if user_id is None:
        raise Unauthorized("Authentication required")
    return user_id


async def get_current_user(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise Unauthorized("Unknown user")
    return user
