"""Account domain model — the slice of a user row the purge needs."""

from dataclasses import dataclass


@dataclass
class AccountCredentials:
    user_id: str
    password_hash: str
    is_active: bool = True


@dataclass
class PurgeSummary:
    user_id: str
    listings_released: int = 0
    transactions_deleted: int = 0
    listings_deleted: int = 0
    tokens_revoked: int = 0
    revocation_failed: bool = False
