from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from app.schemas.common import CamelModel


class NoteCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: Optional[Any] = None
    folio_id: str
    folder_id: Optional[str] = None


class NoteUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    content: Optional[Any] = None


class NoteResponse(CamelModel):
    id: str
    title: str
    content: Optional[Any] = None
    folio_id: str
    folder_id: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class NoteAccessMeta(CamelModel):
    level: str
    is_owner: bool
    collaborator_role: Optional[str] = None
    can_edit: bool


class NoteDetailResponse(NoteResponse):
    access: NoteAccessMeta


class CloneRequest(CamelModel):
    target_folder_id: Optional[str] = None
    access_token: Optional[str] = None


class CloneResponse(CamelModel):
    note_id: str
    title: str
    redirect_url: str


class MoveRequest(CamelModel):
    target_folder_id: Optional[str] = None


class PublishResponse(CamelModel):
    page_id: str
    slug: str
    public_url: str
    published_at: datetime


class PublicPageResponse(CamelModel):
    id: str
    title: str
    slug: str
    content: Optional[Any] = None
    published_at: datetime


class PublishStatusResponse(CamelModel):
    is_published: bool
    slug: Optional[str] = None
