"""User service: register, login, refresh (rotation), logout, profiles.

All DB operations use the injected AsyncSession. Registration and profile
updates commit through the atomic() unit of work; login/refresh are read-only
on the DB.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.database import atomic
from src.mp_common.errors import (
    AccountDisabledError,
    CurrentPasswordRequiredError,
    EmailExistsError,
    EmptyProfileUpdateError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    PasswordMismatchError,
    UserNotFoundError,
    ValidationError,
)
from src.mp_gateway.auth.jwt_handler import (
    REFRESH_TTL_SECONDS,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.mp_gateway.auth.password import hash_password, verify_password
from src.mp_gateway.auth.token_store import RefreshTokenStore
from src.mp_gateway.user.db_models import UserModel
from src.mp_gateway.user.schemas import ProfilePatch

logger = logging.getLogger(__name__)

_REQUIRED_PROFILE_FIELDS = ("name", "email")


class UserService:
    """Stateless apart from the token store — instantiate once, reuse across requests."""

    def __init__(self, token_store: RefreshTokenStore | None = None) -> None:
        self._tokens = token_store or RefreshTokenStore()

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        db: AsyncSession,
        phone: str | None = None,
        address: str | None = None,
    ) -> UserModel:
        """Register a new user. Email uniqueness is also enforced by a DB constraint."""
        async with atomic(db):
            result = await db.execute(select(UserModel).where(UserModel.email == email))
            if result.scalar_one_or_none() is not None:
                raise EmailExistsError()

            user = UserModel(
                name=name,
                email=email,
                password_hash=hash_password(password),
                phone=phone,
                address=address,
                is_active=True,
            )
            db.add(user)
            await db.flush()
            await db.refresh(user)

        logger.info("Registered user %s", user.id)
        return user

    async def login(
        self,
        email: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate user and return (user, access_token, refresh_token).

        "User not found" and "Wrong password" both raise InvalidCredentialsError
        so emails cannot be enumerated.
        """
        result = await db.execute(select(UserModel).where(UserModel.email == email))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        access_token, refresh_token = await self._issue_pair(str(user.id))
        return user, access_token, refresh_token

    async def refresh(self, refresh_token: str) -> tuple[str, str]:
        """Rotate a refresh token: revoke the presented one, issue a new pair."""
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id = str(payload["sub"])
        jti = payload.get("jti")
        if not jti or not await self._tokens.is_active(user_id, jti):
            raise InvalidRefreshTokenError()

        await self._tokens.revoke(user_id, jti)
        return await self._issue_pair(user_id)

    async def logout(self, refresh_token: str) -> None:
        payload = decode_token(refresh_token, expected_type="refresh")
        jti = payload.get("jti")
        if jti:
            await self._tokens.revoke(str(payload["sub"]), jti)

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: str,
        patch: ProfilePatch,
        current_password: str | None = None,
    ) -> UserModel:
        """Apply a partial profile update to the caller's own row."""
        if patch.is_empty:
            raise EmptyProfileUpdateError()
        changes = patch.changes()
        for column in _REQUIRED_PROFILE_FIELDS:
            if column in changes and changes[column] is None:
                raise ValidationError(f"{column} cannot be cleared", 1006)

        async with atomic(db):
            result = await db.execute(
                select(UserModel)
                .where(UserModel.id == user_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            user = result.scalar_one_or_none()
            if user is None:
                raise UserNotFoundError(user_id)

            new_password = changes.pop("new_password", None)
            if new_password is not None:
                if not current_password:
                    raise CurrentPasswordRequiredError()
                if not verify_password(current_password, user.password_hash):
                    raise PasswordMismatchError()
                user.password_hash = hash_password(new_password)

            email = changes.get("email")
            if email is not None and email != user.email:
                taken = await db.execute(
                    select(UserModel.id).where(UserModel.email == email, UserModel.id != user.id)
                )
                if taken.scalar_one_or_none() is not None:
                    raise EmailExistsError()

            for column, value in changes.items():
                setattr(user, column, value)
            await db.flush()
            await db.refresh(user)

        logger.info(
            "Profile of %s updated: %s (password changed=%s)",
            user_id, sorted(changes), new_password is not None,
        )
        return user

    async def get_public_profile(self, db: AsyncSession, user_id: str) -> UserModel:
        try:
            uid = uuid.UUID(user_id)
        except ValueError:
            raise UserNotFoundError(user_id) from None
        result = await db.execute(select(UserModel).where(UserModel.id == uid))
        user = result.scalar_one_or_none()
        if user is None or not user.is_active:
            raise UserNotFoundError(user_id)
        return user

    async def _issue_pair(self, user_id: str) -> tuple[str, str]:
        refresh_token, jti = create_refresh_token(user_id)
        await self._tokens.save(user_id, jti, REFRESH_TTL_SECONDS)
        return create_access_token(user_id), refresh_token
