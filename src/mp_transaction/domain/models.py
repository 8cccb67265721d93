"""Transaction domain model — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from src.mp_common.enums import TransactionStatus

# transactions.quantity is a 32-bit INT
MAX_QUANTITY = 2_147_483_647


@dataclass
class Transaction:
    id: str
    listing_id: str
    buyer_id: str
    seller_id: str  # listing owner at purchase time, never re-derived
    quantity: int
    total_price: Decimal  # frozen at creation
    status: str = TransactionStatus.PENDING.value
    payment_method: str = "cash"
    shipping_address: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status != TransactionStatus.PENDING

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.buyer_id, self.seller_id)


@dataclass(frozen=True)
class ListingRef:
    """The listing as it looks now; its price may differ from total_price."""

    id: str
    name: str
    price: Decimal
    status: str
    image_ref: str | None = None


@dataclass(frozen=True)
class PartyRef:
    user_id: str
    name: str
    email: str
    phone: str | None = None


@dataclass(frozen=True)
class TransactionContext:
    """Related rows for display. Any part is None once its row is gone."""

    item: ListingRef | None = None
    buyer: PartyRef | None = None
    seller: PartyRef | None = None
