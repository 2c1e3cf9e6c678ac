"""Team member router, mounted under /api/businesses.

Endpoints:
    GET    /{business_id}/team-members                          List members
    POST   /{business_id}/team-members                          Invite a member
    PATCH  /{business_id}/team-members/{member_id}              Edit name / role / permissions
    PUT    /{business_id}/team-members/{member_id}/permissions  Replace explicit permissions
    DELETE /{business_id}/team-members/{member_id}              Soft-remove (deactivate)
    POST   /{business_id}/team-members/{member_id}/activate     Reactivate
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.deps import get_current_user, require_business_permission
from jobmarket.database import get_db
from jobmarket.models.user import User
from jobmarket.schemas.team import (
    TeamMemberInvite,
    TeamMemberOut,
    TeamMemberUpdate,
    TeamPermissionsUpdate,
)
from jobmarket.services import team as team_service
from jobmarket.services.access import AccessResult

router = APIRouter()


@router.get("/{business_id}/team-members", response_model=list[TeamMemberOut])
async def list_members(
    db: AsyncSession = Depends(get_db),
    access: AccessResult = Depends(require_business_permission("view_team_members")),
):
    members = await team_service.list_team_members(db, access.business_id)
    return [TeamMemberOut.model_validate(m) for m in members]


@router.post("/{business_id}/team-members", response_model=TeamMemberOut, status_code=201)
async def invite_member(
    body: TeamMemberInvite,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    access: AccessResult = Depends(require_business_permission("invite_team_members")),
):
    """Invite by email. Unknown emails get a placeholder employer account."""
    member = await team_service.invite_team_member(
        db, access, user,
        email=body.email,
        name=body.name,
        role=body.role,
        permissions=body.permissions,
    )
    return TeamMemberOut.model_validate(member)


@router.patch("/{business_id}/team-members/{member_id}", response_model=TeamMemberOut)
async def update_member(
    member_id: str,
    body: TeamMemberUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    access: AccessResult = Depends(require_business_permission("edit_team_members")),
):
    member = await team_service.update_team_member(
        db, access, user, member_id,
        **body.model_dump(exclude_unset=True),
    )
    return TeamMemberOut.model_validate(member)


@router.put("/{business_id}/team-members/{member_id}/permissions", response_model=TeamMemberOut)
async def replace_member_permissions(
    member_id: str,
    body: TeamPermissionsUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    access: AccessResult = Depends(require_business_permission("manage_permissions")),
):
    member = await team_service.set_team_member_permissions(
        db, access, user, member_id, body.permissions,
    )
    return TeamMemberOut.model_validate(member)


@router.delete("/{business_id}/team-members/{member_id}", response_model=TeamMemberOut)
async def remove_member(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    access: AccessResult = Depends(require_business_permission("remove_team_members")),
):
    """Soft-remove: the member keeps their row but loses all access."""
    member = await team_service.deactivate_team_member(db, access, user, member_id)
    return TeamMemberOut.model_validate(member)


@router.post("/{business_id}/team-members/{member_id}/activate", response_model=TeamMemberOut)
async def activate_member(
    member_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    access: AccessResult = Depends(require_business_permission("edit_team_members")),
):
    member = await team_service.activate_team_member(db, access, user, member_id)
    return TeamMemberOut.model_validate(member)
