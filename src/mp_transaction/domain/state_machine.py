"""Transaction status state machine and its effect on listing availability.

    pending --complete--> completed   (terminal)
    pending --cancel----> cancelled   (terminal)

A listing is sold while a pending or completed transaction references it.
"""

from src.mp_common.enums import ListingStatus, TransactionStatus
from src.mp_common.errors import (
    InvalidStatusTransitionError,
    TransactionAlreadyTerminalError,
)
from src.mp_transaction.domain.models import Transaction

_TRANSITIONS: dict[TransactionStatus, frozenset[TransactionStatus]] = {
    TransactionStatus.PENDING: frozenset(
        {TransactionStatus.COMPLETED, TransactionStatus.CANCELLED}
    ),
    TransactionStatus.COMPLETED: frozenset(),
    TransactionStatus.CANCELLED: frozenset(),
}

# Statuses that hold the listing as sold.
HOLDING_STATUSES = frozenset({TransactionStatus.PENDING, TransactionStatus.COMPLETED})

# Deleting a transaction in one of these statuses gives the item back.
RELEASE_ON_DELETE = frozenset({TransactionStatus.PENDING, TransactionStatus.CANCELLED})


def parse_target_status(raw: str) -> TransactionStatus:
    """Only terminal statuses are valid targets of a status change."""
    try:
        target = TransactionStatus(raw)
    except ValueError:
        raise InvalidStatusTransitionError(raw) from None
    if target not in _TRANSITIONS[TransactionStatus.PENDING]:
        raise InvalidStatusTransitionError(raw)
    return target


def ensure_transition(tx: Transaction, target: TransactionStatus) -> None:
    if target not in _TRANSITIONS[TransactionStatus(tx.status)]:
        raise TransactionAlreadyTerminalError(tx.id, tx.status)


def listing_status_for(status: TransactionStatus) -> ListingStatus:
    return ListingStatus.SOLD if status in HOLDING_STATUSES else ListingStatus.AVAILABLE
