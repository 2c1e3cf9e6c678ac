import secrets

from passlib.context import CryptContext

from jobmarket.config import settings

# PBKDF2 has no 72-byte input limit
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def generate_temporary_password() -> str:
    """Placeholder credential for accounts created by a team invite."""
    return secrets.token_urlsafe(settings.temp_password_bytes)
