from datetime import datetime

from pydantic import BaseModel, EmailStr


class TeamMemberInvite(BaseModel):
    """Invite a user (existing or not) to a business team."""
    email: EmailStr
    name: str | None = None
    role: str = "staff"           # owner | admin | manager | supervisor | staff | delegate
    permissions: list[str] = []


class TeamMemberUpdate(BaseModel):
    name: str | None = None
    role: str | None = None
    permissions: list[str] | None = None


class TeamPermissionsUpdate(BaseModel):
    permissions: list[str]


class TeamMemberOut(BaseModel):
    id: str
    business_id: str
    user_id: str
    name: str
    email: str
    role: str
    permissions: list[str]
    active: bool
    invited_by_id: str | None
    invited_at: datetime
    joined_at: datetime | None

    model_config = {"from_attributes": True}
