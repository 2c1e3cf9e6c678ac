"""Business router.

Endpoints:
    GET    /api/businesses                      Businesses visible to the caller
    POST   /api/businesses                      Create a business (employers)
    GET    /api/businesses/{business_id}        Business profile
    PATCH  /api/businesses/{business_id}        Update profile
    DELETE /api/businesses/{business_id}        Delete business and its team
    POST   /api/businesses/{business_id}/select Make it the caller's current business
    GET    /api/businesses/{business_id}/access Caller's resolved access
    GET    /api/businesses/{business_id}/activity Activity log
"""

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.deps import get_current_user, require_business_permission, require_user_type
from jobmarket.database import get_db
from jobmarket.models.user import User, UserType
from jobmarket.schemas.business import (
    ActivityEntry,
    ActivityListResponse,
    BusinessAccessOut,
    BusinessCreate,
    BusinessOut,
    BusinessUpdate,
)
from jobmarket.services.access import AccessResult, MembershipGrant
from jobmarket.services.businesses import create_business, delete_business, list_visible_businesses
from jobmarket.utils.activity import log_activity, query_activity

router = APIRouter()


@router.get("", response_model=list[BusinessOut])
async def list_businesses(
    owner_id: str | None = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Owned and member businesses for employers; all for admins."""
    businesses = await list_visible_businesses(db, user, owner_id=owner_id)
    return [BusinessOut.model_validate(b) for b in businesses]


@router.post("", response_model=BusinessOut, status_code=201)
async def create_new_business(
    body: BusinessCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_user_type(UserType.EMPLOYER)),
):
    business = await create_business(db, user, **body.model_dump())
    if not user.selected_business_id:
        user.selected_business_id = business.id
        await db.flush()
    return BusinessOut.model_validate(business)


@router.get("/{business_id}", response_model=BusinessOut)
async def get_business(
    access: AccessResult = Depends(require_business_permission("view_business_profile")),
):
    return BusinessOut.model_validate(access.business)


@router.patch("/{business_id}", response_model=BusinessOut)
async def update_business(
    body: BusinessUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    access: AccessResult = Depends(require_business_permission("edit_business")),
):
    business = access.business
    updates = body.model_dump(exclude_unset=True)
    changed = {}
    for key, value in updates.items():
        if getattr(business, key) != value:
            changed[key] = value
            setattr(business, key, value)
    await db.flush()

    if changed:
        await log_activity(
            db, user,
            business_id=business.id,
            action="business_updated",
            entity_type="business",
            entity_id=business.id,
            summary=f"Updated business {business.name}",
            details={"fields": sorted(changed)},
        )
    return BusinessOut.model_validate(business)


@router.delete("/{business_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_business(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    access: AccessResult = Depends(require_business_permission("delete_business")),
):
    await delete_business(db, access, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Context ─────────────────────────────────────────────────

@router.post("/{business_id}/select", response_model=BusinessOut)
async def select_business(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_user_type(UserType.EMPLOYER)),
    access: AccessResult = Depends(require_business_permission("view_business_profile")),
):
    """Persist this business as the default for requests that name none."""
    user.selected_business_id = access.business_id
    await db.flush()
    return BusinessOut.model_validate(access.business)


@router.get("/{business_id}/access", response_model=BusinessAccessOut)
async def my_access(
    access: AccessResult = Depends(require_business_permission(require_active=False)),
):
    active = True
    if isinstance(access.grant, MembershipGrant):
        active = access.grant.active
    return BusinessAccessOut(
        business_id=access.business_id,
        is_owner=access.is_owner,
        role=access.role,
        active=active,
        permissions=sorted(access.effective_permissions),
    )


@router.get("/{business_id}/activity", response_model=ActivityListResponse)
async def list_activity(
    entity_type: str | None = Query(None),
    action: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    access: AccessResult = Depends(require_business_permission("view_audit_logs")),
):
    """Activity log entries for one business, newest first."""
    entries, total = await query_activity(
        db,
        access.business_id,
        entity_type=entity_type,
        action=action,
        limit=limit,
        offset=offset,
    )
    return ActivityListResponse(
        items=[ActivityEntry.model_validate(e) for e in entries],
        total=total,
    )
