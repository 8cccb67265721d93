"""Repository Protocol — dependency inversion for testability."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_account.domain.models import AccountCredentials


class AccountRepositoryProtocol(Protocol):
    async def lock_credentials(
        self, db: AsyncSession, user_id: str
    ) -> AccountCredentials | None:
        """Load the user row FOR UPDATE. None when the user does not exist."""
        ...

    async def share_lock_user(self, db: AsyncSession, user_id: str) -> bool:
        """Lock the user row FOR SHARE. False when the user does not exist."""
        ...

    async def delete_user(self, db: AsyncSession, user_id: str) -> None: ...
