"""Listing domain model — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.mp_common.enums import ItemCondition, ListingSortField, ListingStatus, SortOrder
from src.mp_common.errors import EmptyListingNameError, NegativePriceError
from src.mp_common.patch import UNSET, supplied_fields


@dataclass
class Listing:
    id: str
    owner_id: str
    name: str
    price: Decimal
    description: str | None = None
    category: str = "other"
    condition: str = ItemCondition.GOOD.value
    location: str | None = None
    image_ref: str | None = None  # opaque media-store reference
    status: str = ListingStatus.AVAILABLE.value
    created_at: datetime | None = None
    updated_at: datetime | None = None
    owner_name: str | None = None  # read-only, joined from users

    @property
    def is_available(self) -> bool:
        return self.status == ListingStatus.AVAILABLE

    def is_owned_by(self, user_id: str | None) -> bool:
        return user_id is not None and self.owner_id == user_id


@dataclass(frozen=True)
class ListingPatch:
    """Partial update. A field left as UNSET is not touched; None clears a nullable field.

    owner_id and status are deliberately absent: ownership is immutable and
    availability is driven only by transactions.
    """

    name: str = UNSET
    description: str | None = UNSET
    category: str = UNSET
    price: Decimal = UNSET
    condition: str = UNSET
    location: str | None = UNSET
    image_ref: str | None = UNSET

    def changes(self) -> dict[str, Any]:
        return supplied_fields(self)

    @property
    def is_empty(self) -> bool:
        return not self.changes()


@dataclass(frozen=True)
class ListingFilter:
    """Browse/search criteria. status=None means every status."""

    search: str | None = None
    category: str | None = None
    status: str | None = ListingStatus.AVAILABLE.value
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    owner_id: str | None = None
    sort_by: ListingSortField = ListingSortField.DATE
    order: SortOrder = SortOrder.DESC


def validate_name(name: str | None) -> str:
    if name is None or not name.strip():
        raise EmptyListingNameError()
    return name.strip()


def validate_price(price: Decimal | None) -> Decimal:
    if price is None or price < 0:
        raise NegativePriceError(price)
    return price
