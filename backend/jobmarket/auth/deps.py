"""FastAPI dependencies for authentication and authorization.

Dependencies:
  get_current_user                → decode JWT, load user from DB, return User
  require_user_type(...)          → restrict to worker / employer / admin
  require_business_permission(...) → business-scoped guard backed by
                                    services.access.resolve_access
"""

import json
import logging

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from jobmarket.auth.jwt import decode_token
from jobmarket.auth.permissions import unknown_permissions
from jobmarket.config import settings
from jobmarket.database import get_db
from jobmarket.middleware.exceptions import InvalidRequestError, PermissionDeniedError
from jobmarket.models.business import Business
from jobmarket.models.user import User, UserType
from jobmarket.services.access import AccessResult, resolve_access

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

_BUSINESS_ID_FIELDS = ("business_id", "businessId")


# ── Core user dependency ────────────────────────────────────

async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Decode the JWT and load the user it names."""
    payload = decode_token(token)
    user_id: str | None = payload.get("sub")
    if not user_id or payload.get("type") != "access":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found or inactive",
        )
    return user


# ── User-type restriction ───────────────────────────────────

def require_user_type(*user_types: UserType):
    """Dependency factory: restrict to one or more account types.

    Usage:
        @router.post("/")
        async def create(user: User = Depends(require_user_type(UserType.EMPLOYER))):
            ...
    """
    async def _check(user: User = Depends(get_current_user)) -> User:
        if user.user_type not in user_types:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to perform this action",
            )
        return user

    return _check


# ── Business id extraction ──────────────────────────────────

async def _body_business_id(request: Request) -> str | None:
    content_type = request.headers.get("content-type", "")
    if not content_type.startswith("application/json"):
        return None
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if not isinstance(body, dict):
        return None
    return _first_present(body.get(f) for f in _BUSINESS_ID_FIELDS)


def _first_present(values) -> str | None:
    for value in values:
        if value not in (None, ""):
            return str(value)
    return None


async def extract_business_id(request: Request, user: User, db: AsyncSession) -> str | None:
    """Find the target business for a request.

    Priority: path param → JSON body field → query param → header →
    the user's selected business → (employers) their earliest owned business.
    """
    business_id = _first_present(request.path_params.get(f) for f in _BUSINESS_ID_FIELDS)
    if business_id:
        return business_id

    business_id = await _body_business_id(request)
    if business_id:
        return business_id

    business_id = _first_present(request.query_params.get(f) for f in _BUSINESS_ID_FIELDS)
    if business_id:
        return business_id

    business_id = request.headers.get(settings.business_id_header)
    if business_id:
        return business_id

    if user.selected_business_id:
        return user.selected_business_id

    if user.is_employer:
        result = await db.execute(
            select(Business.id)
            .where(Business.owner_id == user.id)
            .order_by(Business.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    return None


# ── Business-scoped permission guard ────────────────────────

def require_business_permission(
    *permissions: str,
    require_all: bool = False,
    require_active: bool = True,
    require_business_id: bool = True,
):
    """Dependency factory: resolve business access before the handler runs.

    With several permissions the caller needs ANY of them, or ALL of them
    when `require_all=True`. Business owners always pass.

    On success the AccessResult is returned and mirrored onto
    `request.state` (`access`, `business_id`, `permissions`).

    Usage:
        @router.patch("/{business_id}")
        async def update_business(
            access: AccessResult = Depends(require_business_permission("edit_business")),
        ):
            ...
    """
    unknown = unknown_permissions(permissions)
    if unknown:
        raise ValueError(f"Unknown permissions: {', '.join(unknown)}")

    async def _check(
        request: Request,
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> AccessResult | None:
        business_id = await extract_business_id(request, user, db)

        if not business_id:
            if require_business_id:
                raise InvalidRequestError("Business ID required")
            if permissions:
                raise PermissionDeniedError(
                    f"Insufficient permissions. Required: {', '.join(permissions)}",
                    reason=PermissionDeniedError.INSUFFICIENT_PERMISSIONS,
                )
            request.state.access = None
            request.state.business_id = None
            request.state.permissions = frozenset()
            return None

        access = await resolve_access(
            db,
            user,
            business_id,
            list(permissions),
            require_all=require_all,
            require_active=require_active,
        )

        request.state.access = access
        request.state.business_id = access.business_id
        request.state.permissions = access.effective_permissions
        return access

    return _check
