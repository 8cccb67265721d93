"""FastAPI dependencies: get_current_user, get_optional_user.

Usage in any protected router:
    from src.mp_gateway.auth.dependencies import get_current_user

    @router.get("/protected")
    async def protected(user: UserModel = Depends(get_current_user)):
        ...

Public endpoints that personalise their output (listing detail) use
get_optional_user, which yields None for anonymous requests.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import get_db_session
from src.mp_common.errors import AccountDisabledError, InvalidCredentialsError
from src.mp_gateway.auth.jwt_handler import decode_token
from src.mp_gateway.user.db_models import UserModel

# tokenUrl tells Swagger UI where to get a token (used for the "Authorize" button)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

# Reusable 401 exception with WWW-Authenticate header (OAuth2 standard)
_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def _load_user(token: str, db: AsyncSession) -> UserModel:
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if not user.is_active:
        raise AccountDisabledError()

    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Extract and validate the JWT Bearer token, return the UserModel.

    Raises HTTP 401 if the token is missing, invalid, or expired, or if the
    user no longer exists (e.g. purged after the token was issued).
    """
    return await _load_user(token, db)


async def get_optional_user(
    token: str | None = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel | None:
    """Like get_current_user, but anonymous requests yield None.

    A token that is present but invalid is still rejected with 401.
    """
    if token is None:
        return None
    return await _load_user(token, db)
