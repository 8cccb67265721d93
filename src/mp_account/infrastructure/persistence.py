# src/mp_account/infrastructure/persistence.py
"""AccountRepository — raw SQL access to the users row for purge and purchase."""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_account.domain.models import AccountCredentials

_LOCK_USER_SQL = text("""
    SELECT id, password_hash, is_active
    FROM users
    WHERE id = CAST(:user_id AS UUID)
    FOR UPDATE
""")

# Taken by purchase; conflicts with the purge FOR UPDATE on the same row
_SHARE_LOCK_USER_SQL = text("""
    SELECT 1 FROM users
    WHERE id = CAST(:user_id AS UUID)
    FOR SHARE
""")

_DELETE_USER_SQL = text("DELETE FROM users WHERE id = CAST(:user_id AS UUID)")


class AccountRepository:
    """Concrete implementation of AccountRepositoryProtocol using raw SQL."""

    async def lock_credentials(
        self, db: AsyncSession, user_id: str
    ) -> AccountCredentials | None:
        result = await db.execute(_LOCK_USER_SQL, {"user_id": user_id})
        row = result.fetchone()
        if row is None:
            return None
        return AccountCredentials(
            user_id=str(row.id),
            password_hash=row.password_hash,
            is_active=row.is_active,
        )

    async def share_lock_user(self, db: AsyncSession, user_id: str) -> bool:
        result = await db.execute(_SHARE_LOCK_USER_SQL, {"user_id": user_id})
        return result.fetchone() is not None

    async def delete_user(self, db: AsyncSession, user_id: str) -> None:
        await db.execute(_DELETE_USER_SQL, {"user_id": user_id})
