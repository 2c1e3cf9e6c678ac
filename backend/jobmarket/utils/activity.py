"""Business-scoped audit trail helpers.

Writers call `log_activity` inside the mutating service; the entry joins the
caller's transaction and is rolled back with it. Readers page through one
business's entries with `query_activity`.
"""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.models.activity_log import ActivityLog
from jobmarket.models.user import User


async def log_activity(
    db: AsyncSession,
    actor: User | None,
    *,
    business_id: str,
    action: str,
    entity_type: str,
    entity_id: str | None = None,
    summary: str | None = None,
    details: dict | None = None,
) -> None:
    """Record `action` against `business_id`. System actions pass actor=None."""
    db.add(ActivityLog(
        business_id=business_id,
        user_id=actor.id if actor else None,
        user_name=actor.full_name if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        summary=summary,
        details=details,
    ))


async def query_activity(
    db: AsyncSession,
    business_id: str,
    *,
    entity_type: str | None = None,
    action: str | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[ActivityLog], int]:
    """One page of entries, newest first, plus the filtered total."""
    filters = [ActivityLog.business_id == business_id]
    if entity_type:
        filters.append(ActivityLog.entity_type == entity_type)
    if action:
        filters.append(ActivityLog.action == action)

    total = (
        await db.execute(select(func.count()).select_from(ActivityLog).where(*filters))
    ).scalar() or 0

    result = await db.execute(
        select(ActivityLog)
        .where(*filters)
        .order_by(ActivityLog.created_at.desc())
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total
