"""Unit tests for listing domain models and validation."""

from dataclasses import FrozenInstanceError
from decimal import Decimal

import pytest

from src.mp_common.errors import EmptyListingNameError, NegativePriceError
from src.mp_listing.domain.models import (
    Listing,
    ListingFilter,
    ListingPatch,
    validate_name,
    validate_price,
)


def _listing(**kwargs) -> Listing:
    defaults = dict(id="L1", owner_id="u1", name="Sepeda", price=Decimal("100000.00"))
    defaults.update(kwargs)
    return Listing(**defaults)


class TestListing:
    def test_defaults(self) -> None:
        listing = _listing()
        assert listing.status == "available"
        assert listing.category == "other"
        assert listing.condition == "good"
        assert listing.is_available

    def test_sold_is_not_available(self) -> None:
        assert not _listing(status="sold").is_available

    def test_ownership(self) -> None:
        listing = _listing()
        assert listing.is_owned_by("u1")
        assert not listing.is_owned_by("u2")
        assert not listing.is_owned_by(None)


class TestListingPatch:
    def test_empty_patch(self) -> None:
        patch = ListingPatch()
        assert patch.is_empty
        assert patch.changes() == {}

    def test_only_supplied_fields(self) -> None:
        patch = ListingPatch(price=Decimal("5"), location=None)
        assert patch.changes() == {"price": Decimal("5"), "location": None}

    def test_frozen(self) -> None:
        with pytest.raises(FrozenInstanceError):
            ListingPatch().name = "x"  # type: ignore[misc]

    def test_status_and_owner_not_patchable(self) -> None:
        with pytest.raises(TypeError):
            ListingPatch(status="sold")  # type: ignore[call-arg]
        with pytest.raises(TypeError):
            ListingPatch(owner_id="u2")  # type: ignore[call-arg]


def test_filter_defaults_to_available_newest_first() -> None:
    flt = ListingFilter()
    assert flt.status == "available"
    assert flt.sort_by == "date"
    assert flt.order == "desc"


class TestValidation:
    def test_name_is_stripped(self) -> None:
        assert validate_name("  Sepeda  ") == "Sepeda"

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_blank_name(self, name) -> None:
        with pytest.raises(EmptyListingNameError):
            validate_name(name)

    def test_zero_price_allowed(self) -> None:
        assert validate_price(Decimal("0")) == Decimal("0")

    def test_negative_price(self) -> None:
        with pytest.raises(NegativePriceError):
            validate_price(Decimal("-0.01"))
