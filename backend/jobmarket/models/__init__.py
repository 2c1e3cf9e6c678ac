"""Aggregate model imports for Alembic auto-detection."""

from jobmarket.models.user import User, UserType  # noqa: F401
from jobmarket.models.business import Business  # noqa: F401
from jobmarket.models.team_member import TeamMember  # noqa: F401
from jobmarket.models.activity_log import ActivityLog  # noqa: F401

__all__ = ["ActivityLog", "Business", "TeamMember", "User", "UserType"]
