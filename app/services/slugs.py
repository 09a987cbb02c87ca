"""Public URL slugs for published pages."""
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Conflict
from app.models.published_page import PublishedPage

# Path segments that collide with application routes
RESERVED_SLUGS = frozenset([
    "api",
    "auth",
    "admin",
    "public",
    "login",
    "signup",
    "settings",
    "account",
])

MAX_SLUG_LENGTH = 100
MAX_SLUG_ATTEMPTS = 100
FALLBACK_SLUG = "untitled"

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")
_HYPHEN_RUNS = re.compile(r"-+")


def slugify(title: str) -> str:
    """Turn a page title into a URL-safe slug.

    >>> slugify("Hello, World!!!")
    'hello-world'
    >>> slugify("   ")
    'untitled'
    """
    slug = (title or "").lower().strip()
    slug = _WHITESPACE.sub("-", slug)
    slug = _DISALLOWED.sub("", slug)
    slug = _HYPHEN_RUNS.sub("-", slug).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    return slug or FALLBACK_SLUG


def is_reserved_slug(slug: str) -> bool:
    return slug.lower() in RESERVED_SLUGS


def _candidate(base_slug: str, attempt: int) -> str:
    if attempt == 0:
        return base_slug
    return f"{base_slug}-{attempt + 1}"


async def unique_slug(base_slug: str, note_id: str, db: AsyncSession) -> str:
    """Find a slug that is free or already belongs to ``note_id``.

    Collisions with other notes get ``-2``, ``-3``... appended. Reserved
    slugs and running out of attempts raise ``Conflict``; nothing is written.
    """
    if is_reserved_slug(base_slug):
        raise Conflict(
            f'The slug "{base_slug}" is reserved and cannot be used for published pages.',
            reason="reserved_slug",
        )

    for attempt in range(MAX_SLUG_ATTEMPTS):
        candidate = _candidate(base_slug, attempt)
        result = await db.execute(
            select(PublishedPage.note_id).where(PublishedPage.slug == candidate)
        )
        owner_note_id = result.scalar_one_or_none()
        if owner_note_id is None or owner_note_id == note_id:
            return candidate

    raise Conflict(
        f"Unable to generate unique slug after {MAX_SLUG_ATTEMPTS} attempts. Please try renaming the page.",
        reason="slug_exhausted",
    )
