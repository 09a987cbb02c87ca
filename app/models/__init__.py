from .user import User
from .folio import Folio
from .folder import Folder
from .note import Note
from .published_page import PublishedPage
from .share import Share, SharePermission, ShareStatus
from .collaborator import Collaborator, CollaboratorRole

__all__ = [
    "User", "Folio", "Folder", "Note", "PublishedPage",
    "Share", "SharePermission", "ShareStatus",
    "Collaborator", "CollaboratorRole",
]
