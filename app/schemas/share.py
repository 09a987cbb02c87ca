from datetime import datetime
from typing import Any, Optional

from pydantic import EmailStr, Field

from app.models.share import SharePermission, ShareStatus
from app.schemas.common import CamelModel


class ShareCreate(CamelModel):
    invited_email: EmailStr
    permission: SharePermission
    expires_at: Optional[datetime] = None


class ShareUpdate(CamelModel):
    permission: Optional[SharePermission] = None
    status: Optional[ShareStatus] = None


class ShareResponse(CamelModel):
    id: str
    page_id: str
    invited_email: str
    permission: SharePermission
    status: ShareStatus
    expires_at: Optional[datetime] = None
    access_count: int
    last_accessed_at: Optional[datetime] = None
    created_at: datetime


class ShareCreatedResponse(CamelModel):
    share: ShareResponse
    access_link: str


class RevokeResponse(CamelModel):
    success: bool = True


class AccessRequest(CamelModel):
    access_token: str = Field(..., min_length=1)


class PageData(CamelModel):
    id: str
    note_id: str
    title: str
    slug: str
    content: Optional[Any] = None


class AccessResponse(CamelModel):
    valid: bool
    permission: Optional[str] = None
    page_data: Optional[PageData] = None
    error: Optional[str] = None
    reason: Optional[str] = None


class AcceptShareResponse(CamelModel):
    page_id: str
    note_id: str
    permission: str


class SharedPageResponse(CamelModel):
    id: str
    page_id: str
    note_id: str
    page_title: str
    slug: str
    sharer_name: Optional[str] = None
    sharer_email: str
    permission: SharePermission
    shared_at: datetime
