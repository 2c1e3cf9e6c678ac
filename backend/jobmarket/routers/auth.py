"""Auth routes: register, login, refresh, profile.

Route overview:
  POST /register         — worker or employer self-registration
  POST /login            — email + password login
  POST /refresh          — exchange a refresh token for new tokens
  GET  /me               — current user profile
  GET  /me/permissions   — effective permissions in the current business context
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.deps import get_current_user, require_business_permission
from jobmarket.auth.jwt import create_access_token, create_refresh_token, decode_token
from jobmarket.auth.password import hash_password, verify_password
from jobmarket.database import get_db
from jobmarket.models.user import User, UserType
from jobmarket.schemas.auth import (
    ContextPermissionsOut,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    TokenResponse,
    UserOut,
)
from jobmarket.services.access import AccessResult
from jobmarket.services.businesses import create_business
from jobmarket.services.team import mark_memberships_joined

router = APIRouter()

_SELF_REGISTER_TYPES = {UserType.WORKER.value, UserType.EMPLOYER.value}


# ── Helpers ──────────────────────────────────────────────────

def _build_user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        user_type=user.user_type.value,
        is_active=user.is_active,
        must_change_password=user.must_change_password,
        selected_business_id=user.selected_business_id,
    )


def _build_token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user_id=user.id, user_type=user.user_type.value),
        refresh_token=create_refresh_token(user_id=user.id, user_type=user.user_type.value),
        user=_build_user_out(user),
    )


# ── POST /register ──────────────────────────────────────────

@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: AsyncSession = Depends(get_db)):
    """Self-registration. Employers may create their first business here."""
    if body.user_type not in _SELF_REGISTER_TYPES:
        raise HTTPException(status_code=400, detail="user_type must be worker or employer")

    email = body.email.lower()
    existing = await db.execute(select(User).where(User.email == email))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=email,
        hashed_password=hash_password(body.password),
        full_name=body.full_name,
        user_type=UserType(body.user_type),
    )
    db.add(user)
    await db.flush()

    if user.user_type == UserType.EMPLOYER and body.business_name:
        business = await create_business(db, user, name=body.business_name)
        user.selected_business_id = business.id
        await db.flush()

    return _build_token_response(user)


# ── POST /login ──────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Email + password login. Returns identity-only JWTs."""
    result = await db.execute(select(User).where(User.email == body.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not user.hashed_password:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="Account deactivated")

    await mark_memberships_joined(db, user)
    return _build_token_response(user)


# ── POST /refresh ───────────────────────────────────────────

@router.post("/refresh", response_model=TokenResponse)
async def refresh(body: RefreshRequest, db: AsyncSession = Depends(get_db)):
    payload = decode_token(body.refresh_token)
    if not payload.get("sub") or payload.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid or expired refresh token")

    result = await db.execute(select(User).where(User.id == payload["sub"]))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")

    return _build_token_response(user)


# ── GET /me ─────────────────────────────────────────────────

@router.get("/me", response_model=UserOut)
async def me(user: User = Depends(get_current_user)):
    return _build_user_out(user)


@router.get("/me/permissions", response_model=ContextPermissionsOut)
async def my_permissions(
    access: AccessResult | None = Depends(require_business_permission(require_business_id=False)),
):
    """Permissions in whichever business the request resolves to, if any."""
    if access is None:
        return ContextPermissionsOut(business_id=None, permissions=[])
    return ContextPermissionsOut(
        business_id=access.business_id,
        is_owner=access.is_owner,
        role=access.role,
        permissions=sorted(access.effective_permissions),
    )
