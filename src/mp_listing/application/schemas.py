"""Pydantic schemas for mp_listing API.

Business validation (empty name, negative price) lives in the domain layer so
that direct service callers get the same ValidationError as HTTP clients;
these schemas only enforce shape and length.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.mp_common.datetime_utils import iso_or_none
from src.mp_common.enums import ItemCondition
from src.mp_common.money import money_to_display
from src.mp_listing.domain.models import Listing, ListingPatch

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateListingRequest(BaseModel):
    name: str = Field(..., max_length=255)
    description: str | None = None
    category: str = Field("other", max_length=100)
    price: Decimal = Field(..., max_digits=14, decimal_places=2)
    condition: ItemCondition = ItemCondition.GOOD
    location: str | None = Field(None, max_length=255)
    image_ref: str | None = Field(None, max_length=512, description="Opaque media-store reference")


class UpdateListingRequest(BaseModel):
    """Every field optional; only fields present in the body are applied."""

    name: str | None = Field(None, max_length=255)
    description: str | None = None
    category: str | None = Field(None, max_length=100)
    price: Decimal | None = Field(None, max_digits=14, decimal_places=2)
    condition: ItemCondition | None = None
    location: str | None = Field(None, max_length=255)
    image_ref: str | None = Field(None, max_length=512)

    def to_patch(self) -> ListingPatch:
        supplied = self.model_dump(exclude_unset=True)
        if isinstance(supplied.get("condition"), ItemCondition):
            supplied["condition"] = supplied["condition"].value
        return ListingPatch(**supplied)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ListingResponse(BaseModel):
    id: str
    owner_id: str
    owner_name: str | None
    name: str
    description: str | None
    category: str
    price: str
    price_display: str
    condition: str
    location: str | None
    image_ref: str | None
    status: str
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, listing: Listing) -> "ListingResponse":
        return cls(
            id=listing.id,
            owner_id=listing.owner_id,
            owner_name=listing.owner_name,
            name=listing.name,
            description=listing.description,
            category=listing.category,
            price=str(listing.price),
            price_display=money_to_display(listing.price),
            condition=listing.condition,
            location=listing.location,
            image_ref=listing.image_ref,
            status=listing.status,
            created_at=iso_or_none(listing.created_at),
            updated_at=iso_or_none(listing.updated_at),
        )


class ListingDetail(ListingResponse):
    """Detail view, personalised for the viewer."""

    is_owner: bool = False
    can_purchase: bool = False

    @classmethod
    def for_viewer(cls, listing: Listing, viewer_id: str | None) -> "ListingDetail":
        base = ListingResponse.from_domain(listing).model_dump()
        is_owner = listing.is_owned_by(viewer_id)
        return cls(
            **base,
            is_owner=is_owner,
            can_purchase=viewer_id is not None and not is_owner and listing.is_available,
        )


class ListingListResponse(BaseModel):
    items: list[ListingResponse]
    next_cursor: str | None
    has_more: bool
