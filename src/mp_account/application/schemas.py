"""Pydantic schemas for mp_account API."""

from pydantic import BaseModel, Field

from src.mp_account.domain.models import PurgeSummary


class PurgeRequest(BaseModel):
    password: str = Field(..., min_length=1, max_length=128)


class PurgeResponse(BaseModel):
    user_id: str
    listings_released: int
    transactions_deleted: int
    listings_deleted: int
    tokens_revoked: int
    revocation_failed: bool

    @classmethod
    def from_domain(cls, summary: PurgeSummary) -> "PurgeResponse":
        return cls(
            user_id=summary.user_id,
            listings_released=summary.listings_released,
            transactions_deleted=summary.transactions_deleted,
            listings_deleted=summary.listings_deleted,
            tokens_revoked=summary.tokens_revoked,
            revocation_failed=summary.revocation_failed,
        )
