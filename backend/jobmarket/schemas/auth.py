from pydantic import BaseModel, EmailStr, Field


class UserOut(BaseModel):
    id: str
    email: str
    full_name: str
    user_type: str
    is_active: bool
    must_change_password: bool = False
    selected_business_id: str | None = None

    model_config = {"from_attributes": True}


# ── Registration ─────────────────────────────────────────────

class RegisterRequest(BaseModel):
    """Worker or employer self-registration.

    Employers may pass `business_name` to create their first business
    in the same call.
    """
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str
    user_type: str = "worker"     # worker | employer
    business_name: str | None = None


# ── Login ────────────────────────────────────────────────────

class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: UserOut


class RefreshRequest(BaseModel):
    refresh_token: str


# ── Effective permissions for the current business context ──

class ContextPermissionsOut(BaseModel):
    business_id: str | None
    is_owner: bool = False
    role: str | None = None
    permissions: list[str]
