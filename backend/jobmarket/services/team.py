"""Team membership mutations: invite, edit, permission grants, removal.

Every function takes the AccessResult the route guard already resolved for
the acting user, so extra requirements (e.g. `manage_permissions` when a
role changes) are checked against it without a second resolution.

Grant rules:
  - Explicit permissions and the owner/admin roles need `manage_permissions`.
  - A caller can only hand out permissions they hold themselves, whether as
    explicit grants or through a role's defaults. A role whose defaults go
    beyond the caller's set also needs `manage_permissions`.
  - Only an owner or full-access member can grant the owner/admin role.
  - Nobody edits or removes their own membership.
"""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.password import generate_temporary_password, hash_password
from jobmarket.auth.permissions import FULL_ACCESS_ROLES, ROLES, defaults_for_role, unknown_permissions
from jobmarket.middleware.exceptions import (
    InvalidRequestError,
    PermissionDeniedError,
    ResourceNotFoundError,
)
from jobmarket.models.team_member import TeamMember
from jobmarket.models.user import User, UserType
from jobmarket.services.access import AccessResult
from jobmarket.utils.activity import log_activity

logger = logging.getLogger(__name__)


# ── Validation ──────────────────────────────────────────────

def validate_role(role: str) -> str:
    normalized = (role or "").strip().lower()
    if normalized not in ROLES:
        raise InvalidRequestError(f"Invalid role. Must be one of: {', '.join(ROLES)}")
    return normalized


def validate_grant_permissions(permissions: list[str]) -> list[str]:
    unknown = unknown_permissions(permissions)
    if unknown:
        raise InvalidRequestError(f"Unknown permissions: {', '.join(unknown)}")
    return sorted(set(permissions))


def _require(access: AccessResult, permission: str) -> None:
    if not access.has(permission):
        raise PermissionDeniedError(
            f"Insufficient permissions. Required: {permission}",
            reason=PermissionDeniedError.INSUFFICIENT_PERMISSIONS,
        )


def _has_full_access(access: AccessResult) -> bool:
    return access.is_owner or access.role in FULL_ACCESS_ROLES


def _ensure_can_manage(access: AccessResult, member: TeamMember) -> None:
    if member.role in FULL_ACCESS_ROLES and not _has_full_access(access):
        raise PermissionDeniedError(
            "Only owners and admins can modify an owner or admin member",
            reason=PermissionDeniedError.INSUFFICIENT_PERMISSIONS,
        )


def _role_exceeds(access: AccessResult, role: str | None) -> bool:
    """True when the role's defaults include something the caller lacks."""
    if role is None or _has_full_access(access):
        return False
    return not defaults_for_role(role) <= access.effective_permissions


def _ensure_can_grant(access: AccessResult, role: str | None, permissions: list[str] | None) -> None:
    _require(access, "manage_permissions")
    if role in FULL_ACCESS_ROLES and not _has_full_access(access):
        raise PermissionDeniedError(
            f"Only owners and admins can grant the {role} role",
            reason=PermissionDeniedError.INSUFFICIENT_PERMISSIONS,
        )
    if _role_exceeds(access, role):
        beyond = sorted(defaults_for_role(role) - access.effective_permissions)
        raise PermissionDeniedError(
            f"Cannot grant the {role} role, it includes permissions you do not hold: {', '.join(beyond)}",
            reason=PermissionDeniedError.INSUFFICIENT_PERMISSIONS,
        )
    if permissions:
        beyond = sorted(set(permissions) - access.effective_permissions)
        if beyond:
            raise PermissionDeniedError(
                f"Cannot grant permissions you do not hold: {', '.join(beyond)}",
                reason=PermissionDeniedError.INSUFFICIENT_PERMISSIONS,
            )


# ── Lookups ─────────────────────────────────────────────────

async def list_team_members(db: AsyncSession, business_id: str) -> list[TeamMember]:
    result = await db.execute(
        select(TeamMember)
        .where(TeamMember.business_id == business_id)
        .order_by(TeamMember.invited_at)
    )
    return list(result.scalars().all())


async def get_team_member(db: AsyncSession, business_id: str, member_id: str) -> TeamMember:
    result = await db.execute(
        select(TeamMember).where(
            TeamMember.id == member_id,
            TeamMember.business_id == business_id,
        )
    )
    member = result.scalar_one_or_none()
    if member is None:
        raise ResourceNotFoundError("Team member")
    return member


# ── Invite ──────────────────────────────────────────────────

async def invite_team_member(
    db: AsyncSession,
    access: AccessResult,
    inviter: User,
    *,
    email: str,
    name: str | None = None,
    role: str = "staff",
    permissions: list[str] | None = None,
) -> TeamMember:
    """Add a user to the business team, creating the account if needed.

    New accounts get a random temporary password and must change it on
    first login.
    """
    email = email.strip().lower()
    role = validate_role(role)
    permissions = validate_grant_permissions(permissions or [])
    if permissions or role in FULL_ACCESS_ROLES or _role_exceeds(access, role):
        _ensure_can_grant(access, role, permissions)

    business = access.business

    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is not None and user.id == business.owner_id:
        raise InvalidRequestError("The business owner cannot be invited as a team member")

    if user is not None:
        existing = await db.execute(
            select(TeamMember.id).where(
                TeamMember.business_id == business.id,
                or_(TeamMember.user_id == user.id, TeamMember.email == email),
            )
        )
    else:
        existing = await db.execute(
            select(TeamMember.id).where(
                TeamMember.business_id == business.id,
                TeamMember.email == email,
            )
        )
    if existing.first() is not None:
        raise InvalidRequestError("User is already a team member of this business")

    now = datetime.utcnow()
    joined_at = now
    if user is None:
        local_part = email.split("@")[0]
        user = User(
            email=email,
            full_name=name or local_part,
            user_type=UserType.EMPLOYER,
            hashed_password=hash_password(generate_temporary_password()),
            must_change_password=True,
        )
        db.add(user)
        await db.flush()
        joined_at = None  # set on first login
        logger.info("Created placeholder account for team invite", extra={"business_id": business.id})

    member = TeamMember(
        business_id=business.id,
        user_id=user.id,
        name=name or user.full_name,
        email=email,
        role=role,
        permissions=permissions,
        active=True,
        invited_by_id=inviter.id,
        invited_at=now,
        joined_at=joined_at,
    )
    db.add(member)
    await db.flush()

    await log_activity(
        db, inviter,
        business_id=business.id,
        action="team_member_invited",
        entity_type="team_member",
        entity_id=member.id,
        summary=f"Invited {email} as {role}",
        details={"role": role, "permissions": permissions},
    )
    return member


# ── Edit ────────────────────────────────────────────────────

async def update_team_member(
    db: AsyncSession,
    access: AccessResult,
    actor: User,
    member_id: str,
    *,
    name: str | None = None,
    role: str | None = None,
    permissions: list[str] | None = None,
) -> TeamMember:
    member = await get_team_member(db, access.business_id, member_id)
    _ensure_can_manage(access, member)

    if role is not None:
        role = validate_role(role)
    if permissions is not None:
        permissions = validate_grant_permissions(permissions)

    new_role = role if role is not None and role != member.role else None
    changes_grant = new_role is not None or (
        permissions is not None and permissions != sorted(member.permissions or [])
    )
    if changes_grant:
        if member.user_id == actor.id:
            raise InvalidRequestError("Cannot change your own role or permissions")
        _ensure_can_grant(access, new_role, permissions)

    changes: dict = {}
    if name is not None and name != member.name:
        changes["name"] = {"from": member.name, "to": name}
        member.name = name
    if role is not None and role != member.role:
        changes["role"] = {"from": member.role, "to": role}
        member.role = role
    if permissions is not None and permissions != sorted(member.permissions or []):
        changes["permissions"] = {"from": list(member.permissions or []), "to": permissions}
        member.permissions = permissions

    if changes:
        await db.flush()
        await log_activity(
            db, actor,
            business_id=access.business_id,
            action="team_member_updated",
            entity_type="team_member",
            entity_id=member.id,
            summary=f"Updated team member {member.email}",
            details=changes,
        )
    return member


async def set_team_member_permissions(
    db: AsyncSession,
    access: AccessResult,
    actor: User,
    member_id: str,
    permissions: list[str],
) -> TeamMember:
    """Replace a member's explicit permissions (role defaults still apply)."""
    member = await get_team_member(db, access.business_id, member_id)
    _ensure_can_manage(access, member)
    if member.user_id == actor.id:
        raise InvalidRequestError("Cannot change your own role or permissions")
    permissions = validate_grant_permissions(permissions)
    _ensure_can_grant(access, None, permissions)

    previous = list(member.permissions or [])
    member.permissions = permissions
    await db.flush()

    await log_activity(
        db, actor,
        business_id=access.business_id,
        action="team_permissions_updated",
        entity_type="team_member",
        entity_id=member.id,
        summary=f"Updated permissions for {member.email}",
        details={"from": previous, "to": permissions},
    )
    return member


# ── Removal ─────────────────────────────────────────────────

async def deactivate_team_member(
    db: AsyncSession,
    access: AccessResult,
    actor: User,
    member_id: str,
) -> TeamMember:
    """Soft-remove: the row stays, `active` becomes False."""
    member = await get_team_member(db, access.business_id, member_id)
    _ensure_can_manage(access, member)
    if member.user_id == actor.id:
        raise InvalidRequestError("Cannot remove yourself from the team")

    member.active = False
    await db.flush()

    await log_activity(
        db, actor,
        business_id=access.business_id,
        action="team_member_removed",
        entity_type="team_member",
        entity_id=member.id,
        summary=f"Removed team member {member.email}",
    )
    return member


async def activate_team_member(
    db: AsyncSession,
    access: AccessResult,
    actor: User,
    member_id: str,
) -> TeamMember:
    member = await get_team_member(db, access.business_id, member_id)
    _ensure_can_manage(access, member)

    member.active = True
    await db.flush()

    await log_activity(
        db, actor,
        business_id=access.business_id,
        action="team_member_reactivated",
        entity_type="team_member",
        entity_id=member.id,
        summary=f"Reactivated team member {member.email}",
    )
    return member


async def mark_memberships_joined(db: AsyncSession, user: User) -> None:
    """Stamp `joined_at` on invites the user is seeing for the first time."""
    result = await db.execute(
        select(TeamMember).where(
            TeamMember.user_id == user.id,
            TeamMember.joined_at.is_(None),
        )
    )
    now = datetime.utcnow()
    for member in result.scalars().all():
        member.joined_at = now
