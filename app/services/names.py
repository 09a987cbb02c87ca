"""Sibling-unique titles for cloned and moved notes."""
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict
from app.models.note import Note

logger = logging.getLogger(__name__)

MAX_NAME_ATTEMPTS = 100
MAX_PLACEMENT_RETRIES = 3


class NameMode(str, enum.Enum):
    CLONE = "clone"
    MOVE = "move"


@dataclass(frozen=True)
class NameScope:
    """A folder inside a folio; ``folder_id=None`` is the folio root"""
    folio_id: str
    folder_id: Optional[str] = None


def candidate_name(title: str, mode: NameMode, n: int) -> str:
    """The n-th name tried for ``title`` (n starts at 1).

    Clone: "T (Copy)", "T (Copy 2)", "T (Copy 3)"...
    Move: "T", "T (2)", "T (3)"...
    """
    if mode is NameMode.CLONE:
        return f"{title} (Copy)" if n == 1 else f"{title} (Copy {n})"
    return title if n == 1 else f"{title} ({n})"


async def name_taken(name: str, scope: NameScope, db: AsyncSession, exclude_id: Optional[str] = None) -> bool:
    query = select(Note.id).where(Note.folio_id == scope.folio_id, Note.title == name)
    if scope.folder_id is None:
        query = query.where(Note.folder_id.is_(None))
    else:
        query = query.where(Note.folder_id == scope.folder_id)
    if exclude_id is not None:
        query = query.where(Note.id != exclude_id)

    result = await db.execute(query.limit(1))
    return result.first() is not None


async def resolve_name(
    title: str,
    scope: NameScope,
    mode: NameMode,
    db: AsyncSession,
    exclude_id: Optional[str] = None,
) -> str:
    """First candidate name with no sibling of that title in ``scope``"""
    for n in range(1, MAX_NAME_ATTEMPTS + 1):
        candidate = candidate_name(title, mode, n)
        if not await name_taken(candidate, scope, db, exclude_id):
            return candidate

    raise Conflict(
        f'Unable to find a free name for "{title}" after {MAX_NAME_ATTEMPTS} attempts',
        reason="name_exhausted",
    )


async def place_with_unique_name(
    title: str,
    scope: NameScope,
    mode: NameMode,
    write: Callable[[str], Awaitable[Any]],
    db: AsyncSession,
    exclude_id: Optional[str] = None,
):
    """Resolve a name and run ``write(name)`` inside a savepoint, returning its result.

    ``write`` must flush. When a concurrent writer takes the same name the
    sibling-title constraint fails the flush and the name is resolved again.
    """
    for attempt in range(MAX_PLACEMENT_RETRIES):
        name = await resolve_name(title, scope, mode, db, exclude_id)
        try:
            async with db.begin_nested():
                placed = await write(name)
        except IntegrityError:
            logger.info("Name %r was taken concurrently (attempt %d), resolving again", name, attempt + 1)
            continue
        return placed

    raise Conflict(f'Could not place "{title}" after {MAX_PLACEMENT_RETRIES} attempts', reason="name_conflict")
