# tests/unit/test_purchase_concurrency.py
"""Concurrent purchases against in-memory repositories.

The fakes model what PostgreSQL provides: `for_update=True` takes a per-row
lock held until the session commits or rolls back, and the conditional claim
flips available -> sold in one step. Every await yields to the event loop so
racing coroutines interleave. User row locks are modelled as exclusive, which
holds while no test races two purchases by the same buyer.
"""

import asyncio
import dataclasses
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest

from src.mp_account.application.service import AccountPurgeService
from src.mp_account.domain.models import AccountCredentials
from src.mp_common.errors import ListingUnavailableError, UserNotFoundError
from src.mp_listing.domain.models import Listing
from src.mp_transaction.application.schemas import PurchaseRequest
from src.mp_transaction.application.service import TransactionApplicationService
from src.mp_transaction.domain.models import Transaction


class FakeStore:
    def __init__(self) -> None:
        self.listings: dict[str, Listing] = {}
        self.transactions: dict[str, Transaction] = {}
        self.locks: dict[str, asyncio.Lock] = {}
        self.purged: set[str] = set()

    def lock_for(self, key: str) -> asyncio.Lock:
        return self.locks.setdefault(key, asyncio.Lock())


class FakeSession:
    def __init__(self) -> None:
        self.held: list[asyncio.Lock] = []

    async def _release(self) -> None:
        while self.held:
            self.held.pop().release()
        await asyncio.sleep(0)

    async def commit(self) -> None:
        await self._release()

    async def rollback(self) -> None:
        await self._release()


class FakeListingRepo:
    def __init__(self, store: FakeStore, row_locks: bool = True) -> None:
        self._store = store
        self._row_locks = row_locks

    async def get_by_id(self, db: FakeSession, listing_id: str, for_update: bool = False):
        if for_update and self._row_locks:
            lock = self._store.lock_for(f"listing:{listing_id}")
            await lock.acquire()
            db.held.append(lock)
        await asyncio.sleep(0)
        listing = self._store.listings.get(listing_id)
        return dataclasses.replace(listing) if listing else None

    async def claim_available(self, db: FakeSession, listing_id: str):
        await asyncio.sleep(0)
        listing = self._store.listings.get(listing_id)
        if listing is None or listing.status != "available":
            return None
        listing.status = "sold"
        return dataclasses.replace(listing)

    async def set_status(self, db: FakeSession, listing_id: str, status: str):
        await asyncio.sleep(0)
        self._store.listings[listing_id].status = status
        return dataclasses.replace(self._store.listings[listing_id])

    async def delete_by_owner(self, db: FakeSession, owner_id: str) -> int:
        doomed = [k for k, v in self._store.listings.items() if v.owner_id == owner_id]
        for key in doomed:
            del self._store.listings[key]
        return len(doomed)


class FakeTransactionRepo:
    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def insert(self, db: FakeSession, tx: Transaction) -> Transaction:
        await asyncio.sleep(0)
        holding = [
            t for t in self._store.transactions.values()
            if t.listing_id == tx.listing_id and t.status in ("pending", "completed")
        ]
        # partial unique index on listing_id
        assert not holding, "two transactions hold the same listing"
        self._store.transactions[tx.id] = tx
        return dataclasses.replace(tx)

    async def get_by_id(self, db: FakeSession, transaction_id: str, for_update: bool = False):
        if for_update:
            lock = self._store.lock_for(f"tx:{transaction_id}")
            await lock.acquire()
            db.held.append(lock)
        await asyncio.sleep(0)
        tx = self._store.transactions.get(transaction_id)
        return dataclasses.replace(tx) if tx else None

    async def transition_status(self, db, transaction_id, from_status, to_status):
        await asyncio.sleep(0)
        tx = self._store.transactions.get(transaction_id)
        if tx is None or tx.status != from_status:
            return None
        tx.status = to_status
        return dataclasses.replace(tx)

    async def has_holding_for_listing(self, db, listing_id, exclude_id=None) -> bool:
        return any(
            t.listing_id == listing_id and t.id != exclude_id
            and t.status in ("pending", "completed")
            for t in self._store.transactions.values()
        )

    async def delete(self, db, transaction_id) -> None:
        self._store.transactions.pop(transaction_id, None)

    async def delete_by_party(self, db, user_id) -> list[Transaction]:
        await asyncio.sleep(0)
        gone = [t for t in self._store.transactions.values() if t.is_party(user_id)]
        for tx in gone:
            del self._store.transactions[tx.id]
        return gone


class FakeAccountRepo:
    def __init__(self, store: FakeStore) -> None:
        self._store = store

    async def _lock_user(self, db: FakeSession, user_id: str) -> None:
        lock = self._store.lock_for(f"user:{user_id}")
        await lock.acquire()
        db.held.append(lock)
        await asyncio.sleep(0)

    async def share_lock_user(self, db: FakeSession, user_id: str) -> bool:
        await self._lock_user(db, user_id)
        return user_id not in self._store.purged

    async def lock_credentials(self, db: FakeSession, user_id: str):
        await self._lock_user(db, user_id)
        if user_id in self._store.purged:
            return None
        return AccountCredentials(user_id=user_id, password_hash="hash")

    async def delete_user(self, db: FakeSession, user_id: str) -> None:
        self._store.purged.add(user_id)


@pytest.fixture
def store() -> FakeStore:
    s = FakeStore()
    s.listings["L1"] = Listing(
        id="L1", owner_id="seller", name="Sepeda", price=Decimal("100000.00")
    )
    return s


def _service(store: FakeStore, row_locks: bool = True) -> TransactionApplicationService:
    return TransactionApplicationService(
        repo=FakeTransactionRepo(store),
        listings=FakeListingRepo(store, row_locks),
        accounts=FakeAccountRepo(store),
    )


def _purge_service(store: FakeStore) -> AccountPurgeService:
    tokens = AsyncMock()
    tokens.revoke_all = AsyncMock(return_value=0)
    return AccountPurgeService(
        accounts=FakeAccountRepo(store),
        listings=FakeListingRepo(store),
        transactions=FakeTransactionRepo(store),
        token_store=tokens,
    )


async def _race(svc: TransactionApplicationService, buyers: list[str]) -> list:
    return await asyncio.gather(
        *(svc.purchase(FakeSession(), b, PurchaseRequest(listing_id="L1")) for b in buyers),
        return_exceptions=True,
    )


@pytest.mark.parametrize("row_locks", [True, False])
async def test_exactly_one_concurrent_purchase_wins(store: FakeStore, row_locks: bool) -> None:
    svc = _service(store, row_locks)
    results = await _race(svc, [f"buyer-{i}" for i in range(10)])

    winners = [r for r in results if not isinstance(r, Exception)]
    losers = [r for r in results if isinstance(r, Exception)]
    assert len(winners) == 1
    assert len(losers) == 9
    assert all(isinstance(e, ListingUnavailableError) for e in losers)
    assert store.listings["L1"].status == "sold"
    assert len(store.transactions) == 1
    assert next(iter(store.transactions.values())).buyer_id == winners[0].buyer_id


async def test_cancel_then_repurchase(store: FakeStore) -> None:
    svc = _service(store)
    first = await svc.purchase(FakeSession(), "alice", PurchaseRequest(listing_id="L1"))

    await svc.set_status(FakeSession(), first.id, "seller", "cancelled")
    assert store.listings["L1"].status == "available"

    second = await svc.purchase(FakeSession(), "bob", PurchaseRequest(listing_id="L1"))
    assert second.status == "pending"
    assert store.listings["L1"].status == "sold"

    # Removing the old cancelled record must not free the re-sold item.
    await svc.delete_transaction(FakeSession(), first.id, "alice")
    assert store.listings["L1"].status == "sold"


async def test_concurrent_complete_and_cancel(store: FakeStore) -> None:
    svc = _service(store)
    tx = await svc.purchase(FakeSession(), "alice", PurchaseRequest(listing_id="L1"))

    results = await asyncio.gather(
        svc.set_status(FakeSession(), tx.id, "seller", "completed"),
        svc.set_status(FakeSession(), tx.id, "seller", "cancelled"),
        return_exceptions=True,
    )

    applied = [r for r in results if not isinstance(r, Exception)]
    assert len(applied) == 1
    final = store.transactions[tx.id].status
    assert final == applied[0].status
    expected_listing = "sold" if final == "completed" else "available"
    assert store.listings["L1"].status == expected_listing


async def test_purchase_waits_for_buyer_purge(store: FakeStore) -> None:
    svc = _service(store)
    purger = _purge_service(store)

    with patch("src.mp_account.application.service.verify_password", return_value=True):
        purged, bought = await asyncio.gather(
            purger.purge(FakeSession(), "alice", "Secret123"),
            svc.purchase(FakeSession(), "alice", PurchaseRequest(listing_id="L1")),
            return_exceptions=True,
        )

    assert purged.user_id == "alice"
    assert isinstance(bought, UserNotFoundError)
    assert store.listings["L1"].status == "available"
    assert store.transactions == {}


async def test_purge_after_purchase_releases_listing(store: FakeStore) -> None:
    svc = _service(store)
    purger = _purge_service(store)

    with patch("src.mp_account.application.service.verify_password", return_value=True):
        bought, purged = await asyncio.gather(
            svc.purchase(FakeSession(), "alice", PurchaseRequest(listing_id="L1")),
            purger.purge(FakeSession(), "alice", "Secret123"),
            return_exceptions=True,
        )

    assert bought.status == "pending"
    assert purged.transactions_deleted == 1
    assert purged.listings_released == 1
    assert store.listings["L1"].status == "available"
    assert store.transactions == {}
