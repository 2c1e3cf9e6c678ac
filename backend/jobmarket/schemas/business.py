from datetime import datetime

from pydantic import BaseModel, Field


class BusinessCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    phone: str | None = None
    email: str | None = None


class BusinessUpdate(BaseModel):
    """Partial update; `owner_id` is intentionally not editable."""
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    phone: str | None = None
    email: str | None = None
    is_active: bool | None = None


class BusinessOut(BaseModel):
    id: str
    owner_id: str
    name: str
    description: str | None
    phone: str | None
    email: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class BusinessAccessOut(BaseModel):
    """The caller's resolved access to one business."""
    business_id: str
    is_owner: bool
    role: str
    active: bool
    permissions: list[str]


class ActivityEntry(BaseModel):
    id: str
    user_id: str | None
    user_name: str | None
    action: str
    entity_type: str
    entity_id: str | None
    summary: str | None
    details: dict | None
    created_at: datetime

    model_config = {"from_attributes": True}


class ActivityListResponse(BaseModel):
    items: list[ActivityEntry]
    total: int
