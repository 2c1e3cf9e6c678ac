"""JWT token creation and decoding.

Token claims:
  - sub:        user ID
  - user_type:  worker | employer | admin
  - type:       "access" | "refresh"
  - exp:        expiry timestamp

Tokens carry identity only. Business permissions are resolved per request
(services/access.py), so they are not part of the claims.
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from jobmarket.config import settings

ALGORITHM = settings.jwt_algorithm


def create_access_token(
    user_id: str,
    user_type: str,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": user_id,
        "user_type": user_type,
        "type": "access",
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def create_refresh_token(user_id: str, user_type: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(days=settings.refresh_token_expire_days)
    payload = {
        "sub": user_id,
        "user_type": user_type,
        "type": "refresh",
        "exp": expire,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Decode and validate a JWT. Returns empty dict on failure."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return {}
