"""TransactionApplicationService — purchase, status changes, removal, history.

Lock order: purchase takes the buyer's users row (FOR SHARE) then the listing
row; status change and delete take the transaction row then the listing row.
A purchase never locks an existing transaction, so the paths cannot deadlock.
Account purge takes the users row FOR UPDATE first, so a purchase by the user
being purged either commits before the purge starts or finds the user gone.
"""

import logging
from collections.abc import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_account.domain.repository import AccountRepositoryProtocol
from src.mp_account.infrastructure.persistence import AccountRepository
from src.mp_common.cursor import cursor_decode, cursor_encode
from src.mp_common.database import atomic
from src.mp_common.datetime_utils import iso_or_none, utc_now
from src.mp_common.enums import ListingStatus, TransactionRole, TransactionStatus
from src.mp_common.errors import (
    InvalidQuantityError,
    ListingNotFoundError,
    ListingUnavailableError,
    NotSellerError,
    NotTransactionPartyError,
    SelfPurchaseError,
    TotalPriceTooLargeError,
    TransactionAlreadyTerminalError,
    TransactionNotFoundError,
    UserNotFoundError,
)
from src.mp_common.id_generator import generate_id
from src.mp_common.money import MAX_TOTAL, line_total
from src.mp_listing.domain.repository import ListingRepositoryProtocol
from src.mp_listing.infrastructure.persistence import ListingRepository
from src.mp_transaction.application.schemas import (
    PurchaseRequest,
    TransactionListResponse,
    TransactionResponse,
)
from src.mp_transaction.domain.models import MAX_QUANTITY, Transaction
from src.mp_transaction.domain.repository import TransactionRepositoryProtocol
from src.mp_transaction.domain.state_machine import (
    RELEASE_ON_DELETE,
    ensure_transition,
    listing_status_for,
    parse_target_status,
)
from src.mp_transaction.infrastructure.persistence import TransactionRepository

logger = logging.getLogger(__name__)


class TransactionApplicationService:
    def __init__(
        self,
        repo: TransactionRepositoryProtocol | None = None,
        listings: ListingRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
    ) -> None:
        self._repo: TransactionRepositoryProtocol = repo or TransactionRepository()
        self._listings: ListingRepositoryProtocol = listings or ListingRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()

    async def purchase(
        self, db: AsyncSession, buyer_id: str, req: PurchaseRequest
    ) -> TransactionResponse:
        """Buy a listing. Of any number of concurrent buyers exactly one wins."""
        async with atomic(db):
            if not await self._accounts.share_lock_user(db, buyer_id):
                raise UserNotFoundError(buyer_id)
            listing = await self._listings.get_by_id(db, req.listing_id, for_update=True)
            if listing is None:
                raise ListingNotFoundError(req.listing_id)
            if not listing.is_available:
                raise ListingUnavailableError(req.listing_id)
            if listing.is_owned_by(buyer_id):
                raise SelfPurchaseError()
            if not 1 <= req.quantity <= MAX_QUANTITY:
                raise InvalidQuantityError(req.quantity, MAX_QUANTITY)

            total = line_total(listing.price, req.quantity)
            if total > MAX_TOTAL:
                raise TotalPriceTooLargeError(total)
            if await self._listings.claim_available(db, listing.id) is None:
                raise ListingUnavailableError(listing.id)

            tx = await self._repo.insert(
                db,
                Transaction(
                    id=generate_id(),
                    listing_id=listing.id,
                    buyer_id=buyer_id,
                    seller_id=listing.owner_id,
                    quantity=req.quantity,
                    total_price=total,
                    payment_method=req.payment_method,
                    shipping_address=req.shipping_address,
                    created_at=utc_now(),
                ),
            )

        logger.info(
            "Transaction %s: %s bought listing %s from %s for %s",
            tx.id, buyer_id, listing.id, listing.owner_id, total,
        )
        return TransactionResponse.from_domain(tx)

    async def get_transaction(
        self, db: AsyncSession, transaction_id: str, actor_id: str
    ) -> TransactionResponse:
        tx = await self._repo.get_by_id(db, transaction_id)
        if tx is None:
            raise TransactionNotFoundError(transaction_id)
        if not tx.is_party(actor_id):
            raise NotTransactionPartyError(transaction_id)
        context = await self._repo.load_context(db, [tx.id])
        return TransactionResponse.from_domain(tx, context.get(tx.id))

    async def set_status(
        self, db: AsyncSession, transaction_id: str, actor_id: str, new_status: str
    ) -> TransactionResponse:
        async with atomic(db):
            tx = await self._repo.get_by_id(db, transaction_id, for_update=True)
            if tx is None:
                raise TransactionNotFoundError(transaction_id)
            if tx.seller_id != actor_id:
                raise NotSellerError(transaction_id)
            target = parse_target_status(new_status)
            ensure_transition(tx, target)

            updated = await self._repo.transition_status(
                db, transaction_id, TransactionStatus.PENDING.value, target.value
            )
            if updated is None:
                current = await self._repo.get_by_id(db, transaction_id)
                raise TransactionAlreadyTerminalError(
                    transaction_id, current.status if current else tx.status
                )
            await self._listings.set_status(
                db, tx.listing_id, listing_status_for(target).value
            )

        logger.info(
            "Transaction %s: %s -> %s by seller %s",
            transaction_id, tx.status, target.value, actor_id,
        )
        return TransactionResponse.from_domain(updated)

    async def delete_transaction(
        self, db: AsyncSession, transaction_id: str, actor_id: str
    ) -> None:
        released = False
        async with atomic(db):
            tx = await self._repo.get_by_id(db, transaction_id, for_update=True)
            if tx is None:
                raise TransactionNotFoundError(transaction_id)
            if not tx.is_party(actor_id):
                raise NotTransactionPartyError(transaction_id)

            if TransactionStatus(tx.status) in RELEASE_ON_DELETE:
                listing = await self._listings.get_by_id(db, tx.listing_id, for_update=True)
                still_held = await self._repo.has_holding_for_listing(
                    db, tx.listing_id, exclude_id=tx.id
                )
                if listing is not None and not still_held:
                    await self._listings.set_status(
                        db, tx.listing_id, ListingStatus.AVAILABLE.value
                    )
                    released = True

            await self._repo.delete(db, transaction_id)

        logger.info(
            "Transaction %s (%s) deleted by %s, listing %s released=%s",
            transaction_id, tx.status, actor_id, tx.listing_id, released,
        )

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        role: TransactionRole = TransactionRole.ALL,
        cursor: str | None = None,
        limit: int = 20,
    ) -> TransactionListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)

        # Fetch limit+1 to detect has_more without COUNT(*)
        rows = await self._repo.list_by_user(db, user_id, role, cursor_ts, cursor_id, limit + 1)
        has_more = len(rows) > limit
        page = rows[:limit]

        next_cursor = None
        if has_more and page:
            last = page[-1]
            next_cursor = cursor_encode(iso_or_none(last.created_at), last.id)
        context = await self._repo.load_context(db, [tx.id for tx in page])
        return TransactionListResponse(
            items=[TransactionResponse.from_domain(tx, context.get(tx.id)) for tx in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def iter_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        role: TransactionRole = TransactionRole.ALL,
        page_size: int = 50,
    ) -> AsyncIterator[Transaction]:
        cursor_ts: str | None = None
        cursor_id: str | None = None
        while True:
            batch = await self._repo.list_by_user(
                db, user_id, role, cursor_ts, cursor_id, page_size + 1
            )
            for tx in batch[:page_size]:
                yield tx
            if len(batch) <= page_size:
                return
            last = batch[page_size - 1]
            cursor_ts, cursor_id = iso_or_none(last.created_at), last.id
