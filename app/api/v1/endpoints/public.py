from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import get_db
from app.core.errors import NotFound, RateLimited
from app.core.security import get_optional_user_id
from app.models.published_page import PublishedPage
from app.schemas.note import PublicPageResponse
from app.schemas.share import AccessRequest, AccessResponse, PageData
from app.services.permissions import Denied, load_note, resolve
from app.services.rate_limit import AccessRateLimiter, get_access_rate_limiter
from app.utils.datetime_helper import utcnow


router = APIRouter()


@router.get("/{slug}", response_model=PublicPageResponse)
async def read_public_page(slug: str, db: AsyncSession = Depends(get_db)):
    """Read a live published page; no sign-in needed"""
    result = await db.execute(
        select(PublishedPage)
        .options(selectinload(PublishedPage.note))
        .where(PublishedPage.slug == slug)
    )
    page = result.scalar_one_or_none()
    if not page or not page.is_published:
        raise NotFound("Page not found")

    await db.execute(
        update(PublishedPage)
        .where(PublishedPage.id == page.id)
        .values(view_count=PublishedPage.view_count + 1, last_viewed_at=utcnow())
        .execution_options(synchronize_session=False)
    )
    await db.commit()

    return PublicPageResponse(
        id=page.id,
        title=page.note.title,
        slug=page.slug,
        content=page.note.content,
        published_at=page.published_at,
    )


@router.post("/{slug}/access", response_model=AccessResponse)
async def verify_access(
    slug: str,
    access_in: AccessRequest,
    request: Request,
    user_id: Optional[str] = Depends(get_optional_user_id),
    limiter: AccessRateLimiter = Depends(get_access_rate_limiter),
    db: AsyncSession = Depends(get_db)
):
    """Check an access token for a page; the first success materializes a collaborator"""
    client = request.client.host if request.client else "unknown"
    if not await limiter.hit(client):
        raise RateLimited("Too many access attempts, please try again later")

    result = await db.execute(select(PublishedPage).where(PublishedPage.slug == slug))
    page = result.scalar_one_or_none()
    if not page:
        return AccessResponse(valid=False, error="Page not found", reason="not_found")

    note = await load_note(page.note_id, db)
    resolution = await resolve(note, user_id, db, token=access_in.access_token)

    if isinstance(resolution, Denied):
        return AccessResponse(
            valid=False,
            error=resolution.message(anonymous=user_id is None),
            reason=resolution.reason.value,
        )

    return AccessResponse(
        valid=True,
        permission=resolution.level.value,
        page_data=PageData(
            id=page.id,
            note_id=note.id,
            title=note.title,
            slug=page.slug,
            content=note.content,
        ),
    )
