"""Business access resolution.

Answers two questions for a caller:

  resolve_access(db, user, business_id, required, ...)
      May this user act on this business, and with which permissions?

  accessible_business_ids(db, user)
      Which businesses can this user reach at all? (list scoping)

Resolution order:
  1. Ownership: the business's owner holds the full catalog. This is
     checked before any permission requirement, so an owner is never
     denied for a missing catalog entry or a misconfigured role table.
  2. Membership: the (business, user) TeamMember row, if active, grants
     its explicit permissions plus its role defaults. `owner`/`admin`
     roles hold the full catalog.
  3. Anything else is denied.

Nothing here writes or caches; every call reads current rows, so a
permission edit applies on the very next request.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Union

from sqlalchemy import select, union
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.permissions import (
    ALL_PERMISSIONS,
    FULL_ACCESS_ROLES,
    defaults_for_role,
)
from jobmarket.middleware.exceptions import (
    InvalidRequestError,
    PermissionDeniedError,
    ResourceNotFoundError,
    UnauthenticatedError,
)
from jobmarket.models.business import Business
from jobmarket.models.team_member import TeamMember
from jobmarket.models.user import User

logger = logging.getLogger(__name__)


# ── Grants ──────────────────────────────────────────────────

@dataclass(frozen=True)
class OwnershipGrant:
    kind: str = field(default="ownership", init=False)


@dataclass(frozen=True)
class MembershipGrant:
    role: str
    permissions: frozenset[str]
    active: bool
    kind: str = field(default="membership", init=False)

    @classmethod
    def from_team_member(cls, member: TeamMember) -> "MembershipGrant":
        return cls(
            role=(member.role or "").lower(),
            permissions=frozenset(member.permissions or ()),
            active=member.active is not False,
        )


Grant = Union[OwnershipGrant, MembershipGrant]


def grant_permissions(grant: Grant) -> frozenset[str]:
    """Effective permission set held by a grant, restricted to the catalog."""
    if isinstance(grant, OwnershipGrant):
        return ALL_PERMISSIONS
    if grant.role in FULL_ACCESS_ROLES:
        return ALL_PERMISSIONS
    return (grant.permissions | defaults_for_role(grant.role)) & ALL_PERMISSIONS


@dataclass(frozen=True)
class AccessResult:
    business: Business = field(compare=False)
    is_owner: bool
    grant: Grant
    effective_permissions: frozenset[str]
    team_member: TeamMember | None = field(default=None, compare=False)
    business_id: str = ""

    @property
    def role(self) -> str:
        if isinstance(self.grant, OwnershipGrant):
            return "owner"
        return self.grant.role

    def has(self, permission: str) -> bool:
        return permission in self.effective_permissions


# ── Normalization ───────────────────────────────────────────

def normalize_id(value) -> str | None:
    """Canonical string form of an id, or None when absent.

    Accepts strings, uuid.UUID, or model instances with an `id`. Raises
    InvalidRequestError for values that are present but not a UUID.
    """
    if value is None:
        return None
    if isinstance(value, uuid.UUID):
        return str(value)
    if not isinstance(value, str) and hasattr(value, "id"):
        return normalize_id(value.id)
    text = str(value).strip()
    if not text:
        return None
    try:
        return str(uuid.UUID(text))
    except ValueError:
        raise InvalidRequestError("Invalid business ID") from None


def normalize_permissions(permissions: str | Iterable[str] | None) -> list[str]:
    if not permissions:
        return []
    if isinstance(permissions, str):
        return [permissions]
    return [p for p in permissions if p]


def _user_id(user) -> str | None:
    if user is None:
        return None
    raw = getattr(user, "id", None)
    return str(raw) if raw else None


# ── Resolver ────────────────────────────────────────────────

async def resolve_access(
    db: AsyncSession,
    user: User | None,
    business_id,
    required_permissions: str | Iterable[str] | None = None,
    *,
    require_all: bool = False,
    require_active: bool = True,
) -> AccessResult:
    """Decide whether `user` may act on `business_id`.

    Raises InvalidRequestError, ResourceNotFoundError, UnauthenticatedError
    or PermissionDeniedError; never returns a partial result.
    """
    normalized_business_id = normalize_id(business_id)
    if not normalized_business_id:
        raise InvalidRequestError("Business ID is required")

    business = await db.get(Business, normalized_business_id)
    if business is None:
        raise ResourceNotFoundError("Business")

    user_id = _user_id(user)
    if not user_id:
        raise UnauthenticatedError("User ID missing from request")

    if business.owner_id == user_id:
        logger.debug("Owner access", extra={"business_id": business.id, "user_id": user_id})
        return AccessResult(
            business=business,
            business_id=business.id,
            is_owner=True,
            grant=OwnershipGrant(),
            effective_permissions=ALL_PERMISSIONS,
        )

    result = await db.execute(
        select(TeamMember).where(
            TeamMember.business_id == business.id,
            TeamMember.user_id == user_id,
        )
    )
    member = result.scalar_one_or_none()
    if member is None:
        _log_denial(business.id, user_id, PermissionDeniedError.NOT_A_MEMBER)
        raise PermissionDeniedError(
            "You are not a team member of this business",
            reason=PermissionDeniedError.NOT_A_MEMBER,
        )

    grant = MembershipGrant.from_team_member(member)
    if require_active and not grant.active:
        _log_denial(business.id, user_id, PermissionDeniedError.INACTIVE)
        raise PermissionDeniedError(
            "This team member is inactive",
            reason=PermissionDeniedError.INACTIVE,
        )

    effective = grant_permissions(grant)

    required = normalize_permissions(required_permissions)
    if required:
        if require_all:
            satisfied = all(p in effective for p in required)
        else:
            satisfied = any(p in effective for p in required)
        if not satisfied:
            _log_denial(
                business.id, user_id, PermissionDeniedError.INSUFFICIENT_PERMISSIONS,
                required=required,
            )
            raise PermissionDeniedError(
                "Insufficient permissions for this business",
                reason=PermissionDeniedError.INSUFFICIENT_PERMISSIONS,
            )

    return AccessResult(
        business=business,
        business_id=business.id,
        is_owner=False,
        grant=grant,
        effective_permissions=effective,
        team_member=member,
    )


def _log_denial(business_id: str, user_id: str, reason: str, **extra) -> None:
    logger.info(
        "Business access denied: %s",
        reason,
        extra={"business_id": business_id, "user_id": user_id, "reason": reason, **extra},
    )


# ── Accessible set ──────────────────────────────────────────

async def accessible_business_ids(db: AsyncSession, user: User | None) -> set[str]:
    """Ids of every business the user owns or actively belongs to.

    No permission filtering: callers run resolve_access before mutating.
    Both sources are read by one UNION statement.
    """
    user_id = _user_id(user)
    if not user_id:
        return set()

    owned = select(Business.id.label("business_id")).where(Business.owner_id == user_id)
    member_of = select(TeamMember.business_id.label("business_id")).where(
        TeamMember.user_id == user_id,
        TeamMember.active.is_(True),
    )
    result = await db.execute(union(owned, member_of))
    return {row[0] for row in result if row[0]}
