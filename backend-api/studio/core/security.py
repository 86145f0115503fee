"""
Security utilities
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import uuid
from jose import JWTError, jwt
from passlib.context import CryptContext

from studio.core.config import settings


# pbkdf2_sha256 avoids the bcrypt backend version issues
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def new_session_id() -> str:
    return uuid.uuid4().hex


def create_access_token(
    subject: str,
    session_id: str,
    role: str = "admin",
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, datetime]:
    """Create a session access token, returns (token, expires_at)"""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode = {
        "sub": subject,
        "sid": session_id,
        "role": role,
        # unique per token so a refreshed session never reuses the old string
        "jti": uuid.uuid4().hex,
        "exp": expire,
        "type": "access",
    }
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt, expire


def verify_token(token: str, token_type: str = "access") -> Optional[dict]:
    """Decode a token, None when invalid or expired"""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
        if payload.get("type") != token_type:
            return None
        return payload
    except JWTError:
        return None
