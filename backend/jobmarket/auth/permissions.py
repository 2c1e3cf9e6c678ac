"""Permission catalog for business-scoped RBAC.

Design:
  - Every permission a guard, role, explicit grant, or legacy mapping may
    mention is registered in PERMISSION_LABELS. The catalog is closed; there
    is no runtime mutation.
  - Each team role has a set of DEFAULT permissions (defined here, not in DB).
  - `owner` and `admin` alias ALL_PERMISSIONS directly, so a permission added
    to the catalog is granted to them without a second edit.
  - Team members may hold explicit permissions on top of their role defaults;
    the access resolver unions the two (see services/access.py).

Permission naming: `<verb>_<resource>` (e.g. `create_jobs`, `view_attendance`).
"""

from __future__ import annotations

from collections.abc import Iterable


# ── All known permissions ───────────────────────────────────

PERMISSION_LABELS: dict[str, str] = {
    # Business management
    "create_business": "Create Business",
    "edit_business": "Edit Business",
    "delete_business": "Delete Business",
    "view_business_analytics": "View Business Analytics",
    "view_business_profile": "View Business Profile",
    "edit_business_profile": "Edit Business Profile",
    "view_dashboard": "View Dashboard",

    # Jobs
    "create_jobs": "Create Jobs",
    "edit_jobs": "Edit Jobs",
    "delete_jobs": "Delete Jobs",
    "view_jobs": "View Jobs",
    "post_jobs": "Post Jobs",

    # Workers & applications
    "hire_workers": "Hire Workers",
    "fire_workers": "Fire Workers",
    "view_applications": "View Applications",
    "manage_applications": "Manage Applications",
    "approve_applications": "Approve Applications",
    "reject_applications": "Reject Applications",

    # Schedules & attendance
    "create_schedules": "Create Schedules",
    "edit_schedules": "Edit Schedules",
    "delete_schedules": "Delete Schedules",
    "manage_schedules": "Manage Schedules",
    "view_schedules": "View Schedules",
    "view_attendance": "View Attendance",
    "manage_attendance": "Manage Attendance",
    "approve_attendance": "Approve Attendance",

    # Payments & budget
    "view_payments": "View Payments",
    "manage_payments": "Manage Payments",
    "process_payments": "Process Payments",
    "view_financial_reports": "View Financial Reports",
    "view_budget": "View Budget",
    "manage_budget": "Manage Budget",
    "manage_subscriptions": "Manage Subscriptions",

    # Team
    "invite_team_members": "Invite Team Members",
    "edit_team_members": "Edit Team Members",
    "view_team_members": "View Team Members",
    "manage_team_members": "Manage Team Members",
    "remove_team_members": "Remove Team Members",
    "manage_permissions": "Manage Permissions",

    # Messaging
    "view_messages": "View Messages",
    "send_messages": "Send Messages",
    "view_notifications": "View Notifications",
    "send_notifications": "Send Notifications",

    # Analytics & reporting
    "view_analytics": "View Analytics",
    "view_reports": "View Reports",
    "export_data": "Export Data",

    # Administration
    "manage_settings": "Manage Settings",
    "view_audit_logs": "View Audit Logs",
    "manage_integrations": "Manage Integrations",
}

ALL_PERMISSIONS: frozenset[str] = frozenset(PERMISSION_LABELS)


# ── Role → default permissions ──────────────────────────────

# `delegate` carries no defaults: the member holds exactly their explicit
# permissions. Legacy flag grants are imported with it.
ROLES: tuple[str, ...] = ("owner", "admin", "manager", "supervisor", "staff", "delegate")
FULL_ACCESS_ROLES: frozenset[str] = frozenset({"owner", "admin"})

ROLE_DEFAULTS: dict[str, frozenset[str]] = {
    "owner": ALL_PERMISSIONS,
    "admin": ALL_PERMISSIONS,

    "manager": frozenset({
        "edit_business", "view_business_analytics",
        "view_business_profile", "edit_business_profile", "view_dashboard",
        "create_jobs", "edit_jobs", "view_jobs", "post_jobs",
        "hire_workers", "view_applications", "manage_applications",
        "approve_applications", "reject_applications",
        "create_schedules", "edit_schedules", "manage_schedules", "view_schedules",
        "view_attendance", "manage_attendance", "approve_attendance",
        "view_payments", "manage_payments", "process_payments",
        "view_financial_reports", "view_budget", "manage_budget",
        "invite_team_members", "edit_team_members",
        "view_team_members", "manage_team_members",
        "view_messages", "send_messages", "view_notifications", "send_notifications",
        "view_analytics", "view_reports", "export_data",
    }),

    "supervisor": frozenset({
        "view_business_profile", "view_dashboard",
        "view_jobs", "post_jobs",
        "view_applications", "manage_applications",
        "create_schedules", "edit_schedules", "manage_schedules", "view_schedules",
        "view_attendance", "manage_attendance",
        "view_payments", "view_budget",
        "view_team_members",
        "view_messages", "send_messages", "view_notifications",
        "view_analytics", "view_reports",
    }),

    "staff": frozenset({
        "view_business_profile", "view_dashboard",
        "view_jobs",
        "view_applications",
        "view_schedules", "view_attendance",
        "view_team_members",
        "view_messages", "send_messages", "view_notifications",
        "view_analytics",
    }),

    "delegate": frozenset(),
}


# ── Lookups ─────────────────────────────────────────────────

def list_all_permissions() -> frozenset[str]:
    return ALL_PERMISSIONS


def defaults_for_role(role: str | None) -> frozenset[str]:
    """Default permission set for a role; unknown roles get nothing."""
    return ROLE_DEFAULTS.get((role or "").lower(), frozenset())


def permission_label(permission: str) -> str:
    return PERMISSION_LABELS[permission]


def unknown_permissions(permissions: Iterable[str]) -> list[str]:
    """Return the entries that are not in the catalog, in input order."""
    return [p for p in permissions if p not in ALL_PERMISSIONS]
