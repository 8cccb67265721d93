# src/mp_transaction/domain/repository.py
"""TransactionRepository Protocol — interface contract for persistence layer."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import TransactionRole
from src.mp_transaction.domain.models import Transaction, TransactionContext


class TransactionRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, tx: Transaction) -> Transaction: ...

    async def get_by_id(
        self, db: AsyncSession, transaction_id: str, for_update: bool = False
    ) -> Transaction | None: ...

    async def transition_status(
        self, db: AsyncSession, transaction_id: str, from_status: str, to_status: str
    ) -> Transaction | None:
        """Conditional status change. None when the row is no longer in from_status."""
        ...

    async def delete(self, db: AsyncSession, transaction_id: str) -> None: ...

    async def has_pending_for_listing(self, db: AsyncSession, listing_id: str) -> bool: ...

    async def has_holding_for_listing(
        self, db: AsyncSession, listing_id: str, exclude_id: str | None = None
    ) -> bool:
        """True if a pending or completed transaction (other than exclude_id) exists."""
        ...

    async def delete_by_listing(self, db: AsyncSession, listing_id: str) -> int: ...

    async def delete_by_party(self, db: AsyncSession, user_id: str) -> list[Transaction]:
        """Delete every transaction the user is a party to and return the deleted rows."""
        ...

    async def load_context(
        self, db: AsyncSession, transaction_ids: list[str]
    ) -> dict[str, TransactionContext]: ...

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        role: TransactionRole,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Transaction]:
        """Newest first, keyset on (created_at, id)."""
        ...
