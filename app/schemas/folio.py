from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class FolioCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)


class FolioResponse(CamelModel):
    id: str
    name: str
    is_system: bool
    created_at: datetime


class FolderCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    parent_id: Optional[str] = None


class FolderResponse(CamelModel):
    id: str
    name: str
    folio_id: str
    parent_id: Optional[str] = None
    created_at: datetime


class FolioUpdate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
