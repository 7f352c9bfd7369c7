"""JWT access and refresh tokens."""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from closecircle.domain.identity.models import AuthTokens
from closecircle.settings import settings

logger = logging.getLogger(__name__)


def _encode(subject: str, token_type: str, expires_delta: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,
        "type": token_type,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create an access token for a user id."""
    return _encode(
        subject,
        "access",
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a refresh token for a user id."""
    return _encode(
        subject,
        "refresh",
        expires_delta or timedelta(days=settings.refresh_token_expire_days),
    )


def decode_token(token: str) -> Optional[dict[str, Any]]:
    """Decode and verify a token. Returns None if invalid or expired."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.PyJWTError as e:
        logger.debug("Token rejected: %s", e)
        return None


class JwtTokenIssuer:
    """Token issuer used by AuthService."""

    def issue(self, user_id: str) -> AuthTokens:
        return AuthTokens(
            access_token=create_access_token(user_id),
            refresh_token=create_refresh_token(user_id),
        )

    def decode(self, token: str) -> Optional[dict[str, Any]]:
        return decode_token(token)
