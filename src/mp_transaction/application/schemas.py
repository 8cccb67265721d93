"""Pydantic schemas for mp_transaction API."""

from pydantic import BaseModel, Field

from src.mp_common.datetime_utils import iso_or_none
from src.mp_common.money import money_to_display
from src.mp_transaction.domain.models import (
    ListingRef,
    PartyRef,
    Transaction,
    TransactionContext,
)

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PurchaseRequest(BaseModel):
    listing_id: str = Field(..., min_length=1, max_length=20)
    # Range is checked by the service so direct callers get the same error
    quantity: int = 1
    payment_method: str = Field("cash", min_length=1, max_length=50)
    shipping_address: str | None = None


class UpdateStatusRequest(BaseModel):
    status: str = Field(..., description="completed | cancelled")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ListingSummary(BaseModel):
    id: str
    name: str
    price: str
    status: str
    image_ref: str | None

    @classmethod
    def from_domain(cls, ref: ListingRef) -> "ListingSummary":
        return cls(
            id=ref.id,
            name=ref.name,
            price=str(ref.price),
            status=ref.status,
            image_ref=ref.image_ref,
        )


class PartySummary(BaseModel):
    user_id: str
    name: str
    email: str
    phone: str | None

    @classmethod
    def from_domain(cls, ref: PartyRef) -> "PartySummary":
        return cls(user_id=ref.user_id, name=ref.name, email=ref.email, phone=ref.phone)


class TransactionResponse(BaseModel):
    id: str
    listing_id: str
    buyer_id: str
    seller_id: str
    quantity: int
    total_price: str
    total_price_display: str
    status: str
    payment_method: str
    shipping_address: str | None
    created_at: str | None
    updated_at: str | None
    item: ListingSummary | None = None
    buyer: PartySummary | None = None
    seller: PartySummary | None = None

    @classmethod
    def from_domain(
        cls, tx: Transaction, context: TransactionContext | None = None
    ) -> "TransactionResponse":
        context = context or TransactionContext()
        return cls(
            id=tx.id,
            listing_id=tx.listing_id,
            buyer_id=tx.buyer_id,
            seller_id=tx.seller_id,
            quantity=tx.quantity,
            total_price=str(tx.total_price),
            total_price_display=money_to_display(tx.total_price),
            status=tx.status,
            payment_method=tx.payment_method,
            shipping_address=tx.shipping_address,
            created_at=iso_or_none(tx.created_at),
            updated_at=iso_or_none(tx.updated_at),
            item=ListingSummary.from_domain(context.item) if context.item else None,
            buyer=PartySummary.from_domain(context.buyer) if context.buyer else None,
            seller=PartySummary.from_domain(context.seller) if context.seller else None,
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionResponse]
    next_cursor: str | None
    has_more: bool
