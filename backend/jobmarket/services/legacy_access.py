"""Import of legacy flag-style access grants.

Older records describe a delegate's access as boolean flags
(`canCreateJobs`, `canHireWorkers`, ...) scoped either to one business or to
every business of a managed owner. They are translated here, once, into
catalog permissions and upserted as TeamMember rows; the access resolver
only ever sees TeamMember data.

Record shape (JSON, camelCase as exported):

    {
      "employeeId": "<user id>" | null,
      "userEmail": "jane@example.com",
      "status": "active" | "pending" | "revoked" | ...,
      "permissions": {"canCreateJobs": true, ...},       # or "effectivePermissions",
                                                          # or flags at top level
      "businessContext": {"businessId": "...", "allBusinesses": false},
      "accessScope": "all_owner_businesses",             # optional
      "managedUser": {"_id": "..."} | "...",             # owner whose businesses
      "originalUser": "..."                              # are in scope
    }
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.permissions import ALL_PERMISSIONS
from jobmarket.models.business import Business
from jobmarket.models.team_member import TeamMember
from jobmarket.models.user import User

logger = logging.getLogger(__name__)


# ── Flag vocabulary → catalog ───────────────────────────────

LEGACY_FLAG_PERMISSIONS: dict[str, tuple[str, ...]] = {
    # Jobs
    "canCreateJobs": ("create_jobs",),
    "canEditJobs": ("edit_jobs",),
    "canDeleteJobs": ("delete_jobs",),
    "canViewJobs": ("view_jobs",),

    # Business
    "canCreateBusiness": ("create_business",),
    "canEditBusiness": ("edit_business",),
    "canDeleteBusiness": ("delete_business",),
    "canViewBusiness": ("view_business_profile",),

    # Workers
    "canHireWorkers": ("hire_workers",),
    "canFireWorkers": ("fire_workers",),
    "canManageWorkers": ("hire_workers", "fire_workers"),
    "canViewWorkers": ("view_applications",),

    # Applications
    "canViewApplications": ("view_applications",),
    "canManageApplications": ("manage_applications",),

    # Shifts map onto schedules
    "canCreateShifts": ("create_schedules",),
    "canEditShifts": ("edit_schedules",),
    "canDeleteShifts": ("delete_schedules",),
    "canViewShifts": ("view_schedules",),

    # Team
    "canViewTeam": ("view_team_members",),
    "canManageTeam": ("manage_team_members", "edit_team_members"),
    "canGrantAccess": ("manage_permissions",),

    # Attendance
    "canCreateAttendance": ("manage_attendance",),
    "canEditAttendance": ("manage_attendance",),
    "canViewAttendance": ("view_attendance",),
    "canManageAttendance": ("manage_attendance",),

    # Employment
    "canViewEmployment": ("view_applications",),
    "canManageEmployment": ("hire_workers", "fire_workers"),

    # Payments
    "canViewPayments": ("view_payments",),
    "canManagePayments": ("manage_payments",),
    "canProcessPayments": ("process_payments",),

    # Budgets
    "canViewBudgets": ("view_budget",),
    "canManageBudgets": ("manage_budget",),

    # Analytics
    "canViewAnalytics": ("view_analytics",),
    "canViewReports": ("view_reports",),
    "canExportData": ("export_data",),
}

ACTIVE_STATUSES = frozenset({"active", "pending"})


@dataclass(frozen=True)
class LegacyGrant:
    """A legacy record in catalog vocabulary, before it is tied to rows."""
    user_id: str | None
    email: str | None
    business_id: str | None
    owner_id: str | None          # set when every business of this owner is in scope
    permissions: frozenset[str]
    active: bool
    unmapped_flags: tuple[str, ...] = ()

    @property
    def all_owner_businesses(self) -> bool:
        return self.business_id is None and self.owner_id is not None


@dataclass
class ImportSummary:
    created: int = 0
    updated: int = 0
    skipped: list[str] = field(default_factory=list)


def _ref_id(value) -> str | None:
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get("_id") or value.get("id")
    return str(value) if value else None


def _flag_source(record: dict) -> dict:
    for key in ("effectivePermissions", "permissions"):
        value = record.get(key)
        if isinstance(value, dict):
            return value
    return record


def map_legacy_record(record: dict) -> LegacyGrant:
    """Translate one legacy record; unknown truthy flags are reported, not granted."""
    flags = _flag_source(record)
    permissions: set[str] = set()
    unmapped: list[str] = []
    for flag, enabled in flags.items():
        if not flag.startswith("can") or not enabled:
            continue
        mapped = LEGACY_FLAG_PERMISSIONS.get(flag)
        if mapped is None:
            unmapped.append(flag)
            continue
        permissions.update(mapped)

    context = record.get("businessContext") or {}
    all_businesses = bool(context.get("allBusinesses")) or (
        record.get("accessScope") == "all_owner_businesses"
    )
    business_id = None if all_businesses else _ref_id(context.get("businessId"))
    owner_id = None
    if all_businesses:
        owner_id = _ref_id(record.get("managedUser")) or _ref_id(record.get("originalUser"))

    email = record.get("userEmail")
    return LegacyGrant(
        user_id=_ref_id(record.get("employeeId")),
        email=email.strip().lower() if email else None,
        business_id=business_id,
        owner_id=owner_id,
        permissions=frozenset(permissions & ALL_PERMISSIONS),
        active=str(record.get("status", "")).lower() in ACTIVE_STATUSES,
        unmapped_flags=tuple(sorted(unmapped)),
    )


# ── Persistence ─────────────────────────────────────────────

async def _find_user(db: AsyncSession, grant: LegacyGrant) -> User | None:
    if grant.user_id:
        user = await db.get(User, grant.user_id)
        if user is not None:
            return user
    if grant.email:
        result = await db.execute(select(User).where(User.email == grant.email))
        return result.scalar_one_or_none()
    return None


async def _target_businesses(db: AsyncSession, grant: LegacyGrant) -> list[Business]:
    if grant.all_owner_businesses:
        result = await db.execute(select(Business).where(Business.owner_id == grant.owner_id))
        return list(result.scalars().all())
    if grant.business_id:
        business = await db.get(Business, grant.business_id)
        return [business] if business is not None else []
    return []


async def import_legacy_grants(
    db: AsyncSession,
    records: list[dict],
    invited_by: User | None = None,
) -> ImportSummary:
    """Upsert TeamMember rows for legacy records.

    New rows get the `delegate` role, so they hold exactly the mapped flags.
    Existing memberships keep their role; imported permissions are merged
    into their explicit list and their active flag follows the record.
    """
    summary = ImportSummary()

    for index, record in enumerate(records):
        grant = map_legacy_record(record)
        label = grant.email or grant.user_id or f"record #{index}"
        if grant.unmapped_flags:
            logger.warning(
                "Legacy record %s has flags with no catalog permission: %s",
                label, ", ".join(grant.unmapped_flags),
            )

        user = await _find_user(db, grant)
        if user is None:
            summary.skipped.append(f"{label}: unknown user")
            continue

        businesses = await _target_businesses(db, grant)
        if not businesses:
            summary.skipped.append(f"{label}: no matching business")
            continue

        for business in businesses:
            if business.owner_id == user.id:
                continue

            result = await db.execute(
                select(TeamMember).where(
                    TeamMember.business_id == business.id,
                    TeamMember.user_id == user.id,
                )
            )
            member = result.scalar_one_or_none()
            if member is None:
                db.add(TeamMember(
                    business_id=business.id,
                    user_id=user.id,
                    name=user.full_name,
                    email=user.email,
                    role="delegate",
                    permissions=sorted(grant.permissions),
                    active=grant.active,
                    invited_by_id=invited_by.id if invited_by else business.owner_id,
                    joined_at=datetime.utcnow(),
                ))
                summary.created += 1
            else:
                member.permissions = sorted(set(member.permissions or []) | grant.permissions)
                member.active = grant.active
                summary.updated += 1

    await db.flush()
    return summary
