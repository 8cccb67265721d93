# src/mp_listing/domain/repository.py
"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_listing.domain.models import Listing, ListingFilter


class ListingRepositoryProtocol(Protocol):
    async def get_by_id(
        self, db: AsyncSession, listing_id: str, for_update: bool = False
    ) -> Listing | None: ...

    async def insert(self, db: AsyncSession, listing: Listing) -> Listing: ...

    async def update_fields(
        self, db: AsyncSession, listing_id: str, changes: dict[str, Any]
    ) -> Listing | None: ...

    async def claim_available(self, db: AsyncSession, listing_id: str) -> Listing | None:
        """available -> sold, only if currently available. None when the claim lost."""
        ...

    async def set_status(
        self, db: AsyncSession, listing_id: str, status: str
    ) -> Listing | None: ...

    async def delete(self, db: AsyncSession, listing_id: str) -> None: ...

    async def delete_by_owner(self, db: AsyncSession, owner_id: str) -> int: ...

    async def list_listings(
        self,
        db: AsyncSession,
        flt: ListingFilter,
        cursor_value: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Listing]: ...
