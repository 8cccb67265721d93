"""Tests for mp_common.errors and mp_common.response."""

from decimal import Decimal

import pytest

from src.mp_common.errors import (
    AppError,
    AuthorizationError,
    ConflictError,
    CurrentPasswordRequiredError,
    EmptyListingNameError,
    EmptyProfileUpdateError,
    InvalidQuantityError,
    InvalidStatusTransitionError,
    ListingNotFoundError,
    ListingUnavailableError,
    NegativePriceError,
    NotFoundError,
    NotSellerError,
    PersistenceError,
    SelfPurchaseError,
    TotalPriceTooLargeError,
    TransactionAlreadyTerminalError,
    ValidationError,
)
from src.mp_common.response import ApiResponse, error_response, success_response


class TestAppError:
    def test_base_error(self) -> None:
        err = AppError(code=9002, message="Internal error")
        assert err.code == 9002
        assert err.message == "Internal error"
        assert err.http_status == 500

    def test_is_exception(self) -> None:
        assert isinstance(AppError(code=1, message="x"), Exception)


class TestErrorKinds:
    @pytest.mark.parametrize(
        ("err", "kind", "http_status"),
        [
            (EmptyListingNameError(), ValidationError, 422),
            (NegativePriceError(-1), ValidationError, 422),
            (SelfPurchaseError(), ValidationError, 422),
            (InvalidQuantityError(0, 10), ValidationError, 422),
            (TotalPriceTooLargeError(Decimal("1E+14")), ValidationError, 422),
            (CurrentPasswordRequiredError(), ValidationError, 422),
            (EmptyProfileUpdateError(), ValidationError, 422),
            (InvalidStatusTransitionError("shipped"), ValidationError, 422),
            (ListingNotFoundError("L1"), NotFoundError, 404),
            (NotSellerError("T1"), AuthorizationError, 403),
            (ListingUnavailableError("L1"), ConflictError, 409),
        ],
    )
    def test_kind_and_status(self, err: AppError, kind: type, http_status: int) -> None:
        assert isinstance(err, kind)
        assert err.http_status == http_status

    def test_codes_follow_kind_ranges(self) -> None:
        assert 1000 <= EmptyListingNameError().code < 2000
        assert 2000 <= ListingNotFoundError("x").code < 3000
        assert 3000 <= NotSellerError("x").code < 4000
        assert 4000 <= ListingUnavailableError("x").code < 5000

    def test_quantity_message_names_bounds(self) -> None:
        err = InvalidQuantityError(2_147_483_648, 2_147_483_647)
        assert err.code == 1003
        assert "between 1 and 2147483647" in err.message

    def test_unavailable_message(self) -> None:
        err = ListingUnavailableError("L42")
        assert err.message.startswith("Item unavailable")
        assert "L42" in err.message

    def test_terminal_error_is_conflict_and_validation(self) -> None:
        err = TransactionAlreadyTerminalError("T1", "completed")
        assert isinstance(err, ConflictError)
        assert isinstance(err, ValidationError)
        assert err.http_status == 409
        assert err.code == 4003
        assert "completed" in err.message

    def test_persistence_error_is_opaque(self) -> None:
        err = PersistenceError()
        assert err.code == 9001
        assert err.http_status == 500
        assert err.message == "Internal server error"


class TestApiResponse:
    def test_success_response(self) -> None:
        resp = success_response(data={"id": "1"})
        assert resp.code == 0
        assert resp.message == "success"
        assert resp.data == {"id": "1"}
        assert resp.request_id.startswith("req_")

    def test_error_response(self) -> None:
        resp = error_response(4001, "Item unavailable: listing 1 is already sold")
        assert resp.code == 4001
        assert resp.data is None

    def test_serializes(self) -> None:
        dumped = ApiResponse(data=[1, 2]).model_dump()
        assert set(dumped) == {"code", "message", "data", "timestamp", "request_id"}
