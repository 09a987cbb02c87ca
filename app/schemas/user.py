from datetime import datetime
from typing import Optional

from pydantic import EmailStr

from app.schemas.common import CamelModel


class UserProfile(CamelModel):
    email: EmailStr
    name: Optional[str] = None


class UserResponse(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    created_at: datetime
