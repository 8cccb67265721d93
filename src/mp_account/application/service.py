"""AccountPurgeService — remove a user and everything that references them.

Foreign keys are ON DELETE RESTRICT, so the cascade is spelled out here and
runs as one unit of work: transactions, then listings, then the user row.
Listings are released from the transaction rows the DELETE actually removed,
not from an earlier read.
"""

import logging

from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_account.application.schemas import PurgeResponse
from src.mp_account.domain.models import PurgeSummary
from src.mp_account.domain.repository import AccountRepositoryProtocol
from src.mp_account.infrastructure.persistence import AccountRepository
from src.mp_common.database import atomic
from src.mp_common.enums import ListingStatus, TransactionStatus
from src.mp_common.errors import PasswordMismatchError, UserNotFoundError
from src.mp_gateway.auth.password import verify_password
from src.mp_gateway.auth.token_store import RefreshTokenStore
from src.mp_listing.domain.repository import ListingRepositoryProtocol
from src.mp_listing.infrastructure.persistence import ListingRepository
from src.mp_transaction.domain.repository import TransactionRepositoryProtocol
from src.mp_transaction.infrastructure.persistence import TransactionRepository

logger = logging.getLogger(__name__)


class AccountPurgeService:
    def __init__(
        self,
        accounts: AccountRepositoryProtocol | None = None,
        listings: ListingRepositoryProtocol | None = None,
        transactions: TransactionRepositoryProtocol | None = None,
        token_store: RefreshTokenStore | None = None,
    ) -> None:
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._listings: ListingRepositoryProtocol = listings or ListingRepository()
        self._transactions: TransactionRepositoryProtocol = (
            transactions or TransactionRepository()
        )
        self._tokens = token_store or RefreshTokenStore()

    async def purge(self, db: AsyncSession, user_id: str, password: str) -> PurgeResponse:
        summary = PurgeSummary(user_id=user_id)
        async with atomic(db):
            creds = await self._accounts.lock_credentials(db, user_id)
            if creds is None:
                raise UserNotFoundError(user_id)
            if not verify_password(password, creds.password_hash):
                raise PasswordMismatchError()

            deleted = await self._transactions.delete_by_party(db, user_id)
            summary.transactions_deleted = len(deleted)

            # Pending purchases from other sellers give the item back.
            for tx in deleted:
                if (
                    tx.buyer_id == user_id
                    and tx.seller_id != user_id
                    and tx.status == TransactionStatus.PENDING
                ):
                    await self._listings.set_status(
                        db, tx.listing_id, ListingStatus.AVAILABLE.value
                    )
                    summary.listings_released += 1

            summary.listings_deleted = await self._listings.delete_by_owner(db, user_id)
            await self._accounts.delete_user(db, user_id)

        # Committed: a token store outage is logged, not raised.
        try:
            summary.tokens_revoked = await self._tokens.revoke_all(user_id)
        except RedisError:
            logger.exception("Account %s purged but refresh tokens were not revoked", user_id)
            summary.revocation_failed = True

        logger.info(
            "Account %s purged: %d listings released, %d transactions and %d listings deleted",
            user_id,
            summary.listings_released,
            summary.transactions_deleted,
            summary.listings_deleted,
        )
        return PurgeResponse.from_domain(summary)
