"""JWT issuing and verification (HS256, shared JWT_SECRET).

Access tokens are stateless. Refresh tokens carry a `jti`, and are honoured
only while that jti is live in RefreshTokenStore, which is what makes
rotation, logout and account purge effective.
"""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.mp_common.errors import AppError, InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)

ACCESS_TTL_SECONDS = int(_ACCESS_EXPIRE.total_seconds())
REFRESH_TTL_SECONDS = int(_REFRESH_EXPIRE.total_seconds())

_ERRORS: dict[str, type[AppError]] = {
    "access": InvalidCredentialsError,
    "refresh": InvalidRefreshTokenError,
}


def _encode(user_id: str, token_type: str, lifetime: timedelta, **extra: Any) -> str:
    now = datetime.now(UTC)
    claims = {"sub": user_id, "type": token_type, "iat": now, "exp": now + lifetime, **extra}
    return str(jwt.encode(claims, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str) -> str:
    return _encode(user_id, "access", _ACCESS_EXPIRE)


def create_refresh_token(user_id: str) -> tuple[str, str]:
    """Returns (token, jti). The caller registers the jti in the token store."""
    jti = uuid.uuid4().hex
    return _encode(user_id, "refresh", _REFRESH_EXPIRE, jti=jti), jti


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    """Verify signature, expiry, token type and subject.

    Raises InvalidCredentialsError for access tokens and
    InvalidRefreshTokenError for refresh tokens, whatever the failure.
    """
    error = _ERRORS[expected_type]
    try:
        # Explicit algorithm list; never trust the header's alg.
        claims: dict[str, Any] = jwt.decode(token, settings.JWT_SECRET, algorithms=[_ALGORITHM])
    except JWTError:
        raise error() from None
    if claims.get("type") != expected_type or not claims.get("sub"):
        raise error()
    return claims
