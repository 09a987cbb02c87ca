"""Durable per-user grants created from honoured share tokens."""
import logging
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import generate_id
from app.models.collaborator import Collaborator, CollaboratorRole
from app.models.share import SharePermission
from app.utils.datetime_helper import utcnow

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _insert_for(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    try:
        return _UPSERT_DIALECTS[dialect]
    except KeyError:
        raise RuntimeError(f"Collaborator upsert is not supported on {dialect}")


async def get_collaborator(page_id: str, user_id: str, db: AsyncSession) -> Optional[Collaborator]:
    result = await db.execute(
        select(Collaborator).where(
            Collaborator.page_id == page_id,
            Collaborator.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()


async def materialize(
    page_id: str,
    user_id: str,
    share_id: str,
    permission: SharePermission,
    db: AsyncSession,
) -> Collaborator:
    """Create the collaborator row for (page, user), or refresh its share link.

    Runs as a single INSERT ... ON CONFLICT on the (page_id, user_id) unique
    key, so concurrent first visits end with exactly one row. An existing
    row keeps its role.
    """
    insert = _insert_for(db)
    stmt = insert(Collaborator).values(
        id=generate_id(),
        page_id=page_id,
        user_id=user_id,
        share_id=share_id,
        role=CollaboratorRole.from_permission(permission),
        created_at=utcnow(),
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["page_id", "user_id"],
        set_={"share_id": stmt.excluded.share_id},
    )
    await db.execute(stmt)

    result = await db.execute(
        select(Collaborator)
        .where(Collaborator.page_id == page_id, Collaborator.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    collaborator = result.scalar_one()
    logger.info("Materialized collaborator %s on page %s as %s", user_id, page_id, collaborator.role.value)
    return collaborator


async def sync_role(share_id: str, permission: SharePermission, db: AsyncSession) -> int:
    """Align the role of collaborators created from ``share_id`` with its permission"""
    result = await db.execute(
        update(Collaborator)
        .where(Collaborator.share_id == share_id)
        .values(role=CollaboratorRole.from_permission(permission))
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount


async def remove_collaborator(page_id: str, user_id: str, db: AsyncSession) -> bool:
    """Explicit unshare. Returns False when there was nothing to remove."""
    result = await db.execute(
        delete(Collaborator).where(
            Collaborator.page_id == page_id,
            Collaborator.user_id == user_id,
        )
    )
    return result.rowcount > 0
