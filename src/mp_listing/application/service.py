"""ListingApplicationService — listing lifecycle: create, edit, remove, browse.

Every mutation runs inside one atomic() unit of work. Ownership is checked
against the row loaded FOR UPDATE, so an edit and a concurrent purchase of
the same listing serialize on the listing row.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.cursor import cursor_decode, cursor_encode
from src.mp_common.database import atomic
from src.mp_common.datetime_utils import utc_now
from src.mp_common.enums import ItemCondition
from src.mp_common.errors import (
    ListingHasActiveTransactionError,
    ListingNotFoundError,
    NotListingOwnerError,
    ValidationError,
)
from src.mp_common.id_generator import generate_id
from src.mp_common.money import to_money
from src.mp_listing.application.schemas import (
    CreateListingRequest,
    ListingDetail,
    ListingListResponse,
    ListingResponse,
)
from src.mp_listing.domain.models import (
    Listing,
    ListingFilter,
    ListingPatch,
    validate_name,
    validate_price,
)
from src.mp_listing.domain.repository import ListingRepositoryProtocol
from src.mp_listing.infrastructure.persistence import ListingRepository, sort_value_of
from src.mp_transaction.domain.repository import TransactionRepositoryProtocol
from src.mp_transaction.infrastructure.persistence import TransactionRepository

logger = logging.getLogger(__name__)

_NON_NULLABLE = ("category", "condition")


def _normalize_changes(patch: ListingPatch) -> dict[str, Any]:
    changes = patch.changes()
    if "name" in changes:
        changes["name"] = validate_name(changes["name"])
    if "price" in changes:
        changes["price"] = to_money(validate_price(changes["price"]))
    for column in _NON_NULLABLE:
        if column in changes and changes[column] is None:
            raise ValidationError(f"{column} cannot be cleared", 1006)
    if "condition" in changes:
        changes["condition"] = ItemCondition(changes["condition"]).value
    return changes


class ListingApplicationService:
    def __init__(
        self,
        repo: ListingRepositoryProtocol | None = None,
        transactions: TransactionRepositoryProtocol | None = None,
    ) -> None:
        self._repo: ListingRepositoryProtocol = repo or ListingRepository()
        self._transactions: TransactionRepositoryProtocol = (
            transactions or TransactionRepository()
        )

    async def create_listing(
        self, db: AsyncSession, owner_id: str, req: CreateListingRequest
    ) -> ListingResponse:
        listing = Listing(
            id=generate_id(),
            owner_id=owner_id,
            name=validate_name(req.name),
            price=to_money(validate_price(req.price)),
            description=req.description,
            category=req.category,
            condition=ItemCondition(req.condition).value,
            location=req.location,
            image_ref=req.image_ref,
            created_at=utc_now(),
        )
        async with atomic(db):
            listing = await self._repo.insert(db, listing)
        logger.info("Listing %s created by %s", listing.id, owner_id)
        return ListingResponse.from_domain(listing)

    async def get_listing(
        self, db: AsyncSession, listing_id: str, viewer_id: str | None = None
    ) -> ListingDetail:
        listing = await self._repo.get_by_id(db, listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)
        return ListingDetail.for_viewer(listing, viewer_id)

    async def update_listing(
        self, db: AsyncSession, listing_id: str, actor_id: str, patch: ListingPatch
    ) -> ListingResponse:
        async with atomic(db):
            listing = await self._repo.get_by_id(db, listing_id, for_update=True)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            if not listing.is_owned_by(actor_id):
                raise NotListingOwnerError(listing_id)

            changes: dict[str, Any] = {}
            if not patch.is_empty:
                changes = _normalize_changes(patch)
                updated = await self._repo.update_fields(db, listing_id, changes)
                if updated is None:
                    raise ListingNotFoundError(listing_id)
                listing = updated

        logger.info("Listing %s updated: %s", listing_id, sorted(changes))
        return ListingResponse.from_domain(listing)

    async def delete_listing(self, db: AsyncSession, listing_id: str, actor_id: str) -> None:
        """Delete a listing and its terminal transaction history.

        A pending transaction blocks deletion (ConflictError); it must be
        completed, cancelled or deleted first.
        """
        async with atomic(db):
            listing = await self._repo.get_by_id(db, listing_id, for_update=True)
            if listing is None:
                raise ListingNotFoundError(listing_id)
            if not listing.is_owned_by(actor_id):
                raise NotListingOwnerError(listing_id)
            if await self._transactions.has_pending_for_listing(db, listing_id):
                raise ListingHasActiveTransactionError(listing_id)

            removed = await self._transactions.delete_by_listing(db, listing_id)
            await self._repo.delete(db, listing_id)

        logger.info(
            "Listing %s deleted by %s (%d transactions removed)", listing_id, actor_id, removed
        )

    async def list_listings(
        self,
        db: AsyncSession,
        flt: ListingFilter,
        cursor: str | None,
        limit: int,
    ) -> ListingListResponse:
        cursor_value, cursor_id = cursor_decode(cursor)

        # Fetch limit+1 to detect has_more without COUNT(*)
        listings = await self._repo.list_listings(db, flt, cursor_value, cursor_id, limit + 1)
        has_more = len(listings) > limit
        page = listings[:limit]

        next_cursor = None
        if has_more and page:
            last = page[-1]
            next_cursor = cursor_encode(sort_value_of(last, flt.sort_by), last.id)
        return ListingListResponse(
            items=[ListingResponse.from_domain(item) for item in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def iter_listings(
        self, db: AsyncSession, flt: ListingFilter, page_size: int = 50
    ) -> AsyncIterator[Listing]:
        """Yield every match, one page query at a time.

        Each call starts from the first page, so the sequence can be re-run.
        """
        cursor_value: str | None = None
        cursor_id: str | None = None
        while True:
            batch = await self._repo.list_listings(
                db, flt, cursor_value, cursor_id, page_size + 1
            )
            for listing in batch[:page_size]:
                yield listing
            if len(batch) <= page_size:
                return
            last = batch[page_size - 1]
            value = sort_value_of(last, flt.sort_by)
            cursor_value, cursor_id = str(value), last.id
