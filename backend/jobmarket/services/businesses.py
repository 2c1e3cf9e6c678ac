"""Business lifecycle: creation, listing scope, deletion cascade."""

from __future__ import annotations

import logging

from sqlalchemy import delete as sa_delete, func, select, update as sa_update
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.middleware.exceptions import InvalidRequestError
from jobmarket.models.activity_log import ActivityLog
from jobmarket.models.business import Business
from jobmarket.models.team_member import TeamMember
from jobmarket.models.user import User, UserType
from jobmarket.services.access import AccessResult, accessible_business_ids
from jobmarket.utils.activity import log_activity

logger = logging.getLogger(__name__)


async def create_business(db: AsyncSession, owner: User, **fields) -> Business:
    business = Business(owner_id=owner.id, **fields)
    db.add(business)
    await db.flush()

    await log_activity(
        db, owner,
        business_id=business.id,
        action="business_created",
        entity_type="business",
        entity_id=business.id,
        summary=f"Created business {business.name}",
    )
    return business


async def list_visible_businesses(
    db: AsyncSession,
    user: User,
    owner_id: str | None = None,
) -> list[Business]:
    """Businesses shown to `user` in listings.

    Employers see what they own or belong to, admins see everything
    (optionally one owner's), workers browse active businesses.
    """
    query = select(Business).order_by(Business.created_at)

    if user.user_type == UserType.EMPLOYER:
        ids = await accessible_business_ids(db, user)
        if not ids:
            return []
        query = query.where(Business.id.in_(ids))
    elif user.user_type == UserType.ADMIN:
        if owner_id:
            query = query.where(Business.owner_id == owner_id)
    else:
        query = query.where(Business.is_active.is_(True))

    result = await db.execute(query)
    return list(result.scalars().all())


async def delete_business(db: AsyncSession, access: AccessResult, actor: User) -> None:
    """Delete a business with its team and activity rows.

    The owner keeps at least one business, whoever deletes it.
    """
    business = access.business

    owned = await db.execute(
        select(func.count()).select_from(Business).where(Business.owner_id == business.owner_id)
    )
    if owned.scalar_one() <= 1:
        raise InvalidRequestError("Employers must keep at least one business location")

    await db.execute(sa_delete(TeamMember).where(TeamMember.business_id == business.id))
    await db.execute(sa_delete(ActivityLog).where(ActivityLog.business_id == business.id))
    await db.execute(
        sa_update(User)
        .where(User.selected_business_id == business.id)
        .values(selected_business_id=None)
        .execution_options(synchronize_session="fetch")
    )
    await db.delete(business)
    await db.flush()

    logger.info(
        "Business deleted",
        extra={"business_id": business.id, "user_id": actor.id},
    )
