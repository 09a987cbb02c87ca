from .user import UserProfile, UserResponse
from .folio import FolioCreate, FolioResponse, FolderCreate, FolderResponse
from .note import (
    NoteCreate, NoteUpdate, NoteResponse, NoteDetailResponse, NoteAccessMeta,
    CloneRequest, CloneResponse, MoveRequest, PublishResponse, PublicPageResponse,
)
from .share import (
    ShareCreate, ShareUpdate, ShareResponse, ShareCreatedResponse, RevokeResponse,
    AccessRequest, AccessResponse, PageData, AcceptShareResponse, SharedPageResponse,
)

__all__ = [
    "UserProfile", "UserResponse",
    "FolioCreate", "FolioResponse", "FolderCreate", "FolderResponse",
    "NoteCreate", "NoteUpdate", "NoteResponse", "NoteDetailResponse", "NoteAccessMeta",
    "CloneRequest", "CloneResponse", "MoveRequest", "PublishResponse", "PublicPageResponse",
    "ShareCreate", "ShareUpdate", "ShareResponse", "ShareCreatedResponse", "RevokeResponse",
    "AccessRequest", "AccessResponse", "PageData", "AcceptShareResponse", "SharedPageResponse",
]
