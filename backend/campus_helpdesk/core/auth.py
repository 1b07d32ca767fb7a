"""
Bearer token utilities.

WHY: The identity provider issues signed JWTs to the browser. This module
verifies them and hands their claims to the dependency layer; it never
authenticates users itself. create_access_token mints tokens with the same
shape for local development and tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import jwt, JWTError

from campus_helpdesk.core.config import settings
from campus_helpdesk.core.exceptions import (
    TokenExpiredError,
    TokenInvalidError,
)

# Claims copied from the token into the user record
PROFILE_CLAIMS = ("email", "first_name", "last_name", "profile_image_url")


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed access token.

    Token includes:
    - sub: Principal id
    - role: student, faculty or admin
    - optional profile claims (email, first_name, last_name, profile_image_url)
    - exp / iat / nbf

    Args:
        data: Claims to encode
        expires_delta: Optional custom expiration time

    Returns:
        JWT token string

    Example:
        >>> token = create_access_token({"sub": "student1", "role": "student"})
        >>> verify_token(token)["sub"]
        'student1'
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    to_encode.update(
        {
            "exp": expire,
            "iat": now,
            "nbf": now,
        }
    )

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def verify_token(token: str) -> Dict[str, Any]:
    """
    Verify and decode a bearer token.

    Args:
        token: JWT token string

    Returns:
        Decoded claims

    Raises:
        TokenExpiredError: If token has expired
        TokenInvalidError: If token is malformed, its signature is invalid,
            or it carries no subject
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpiredError()
    except JWTError:
        raise TokenInvalidError()

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject.strip():
        raise TokenInvalidError(message="Token has no subject")

    return payload
