"""Host platform token handling"""

from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt

from qpy_submission.config import settings

HOST_TOKEN_TYPE = "host"


def create_host_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed token for a host platform calling the hook endpoints.

    Args:
        subject: Identifier of the calling platform (site id or name)
        expires_delta: Optional token lifetime

    Returns:
        Encoded JWT
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.HOST_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode = {"sub": subject, "exp": expire, "type": HOST_TOKEN_TYPE}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and verify a JWT token.

    Returns:
        Decoded payload or None if invalid
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None
