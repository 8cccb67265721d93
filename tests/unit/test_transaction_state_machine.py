"""Unit tests for the transaction status state machine."""

from decimal import Decimal

import pytest

from src.mp_common.enums import ListingStatus, TransactionStatus
from src.mp_common.errors import (
    ConflictError,
    InvalidStatusTransitionError,
    TransactionAlreadyTerminalError,
    ValidationError,
)
from src.mp_transaction.domain.models import Transaction
from src.mp_transaction.domain.state_machine import (
    ensure_transition,
    listing_status_for,
    parse_target_status,
)


def _tx(status: str = "pending") -> Transaction:
    return Transaction(
        id="T1", listing_id="L1", buyer_id="b", seller_id="s",
        quantity=1, total_price=Decimal("10.00"), status=status,
    )


class TestParseTarget:
    @pytest.mark.parametrize("raw", ["completed", "cancelled"])
    def test_terminal_targets(self, raw: str) -> None:
        assert parse_target_status(raw) == raw

    @pytest.mark.parametrize("raw", ["pending", "shipped", ""])
    def test_other_targets_rejected(self, raw: str) -> None:
        with pytest.raises(InvalidStatusTransitionError):
            parse_target_status(raw)


class TestEnsureTransition:
    def test_pending_can_complete_or_cancel(self) -> None:
        ensure_transition(_tx(), TransactionStatus.COMPLETED)
        ensure_transition(_tx(), TransactionStatus.CANCELLED)

    @pytest.mark.parametrize("current", ["completed", "cancelled"])
    @pytest.mark.parametrize("target", [TransactionStatus.COMPLETED, TransactionStatus.CANCELLED])
    def test_terminal_is_final(self, current: str, target: TransactionStatus) -> None:
        with pytest.raises(TransactionAlreadyTerminalError) as exc_info:
            ensure_transition(_tx(current), target)
        assert isinstance(exc_info.value, ConflictError)
        assert isinstance(exc_info.value, ValidationError)


def test_listing_status_follows_transaction() -> None:
    assert listing_status_for(TransactionStatus.COMPLETED) == ListingStatus.SOLD
    assert listing_status_for(TransactionStatus.PENDING) == ListingStatus.SOLD
    assert listing_status_for(TransactionStatus.CANCELLED) == ListingStatus.AVAILABLE


def test_transaction_helpers() -> None:
    tx = _tx()
    assert not tx.is_terminal
    assert tx.is_party("b") and tx.is_party("s") and not tx.is_party("x")
    assert _tx("cancelled").is_terminal
