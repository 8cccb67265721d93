"""004: create transactions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id                  VARCHAR(20)     PRIMARY KEY,
            listing_id          VARCHAR(20)     NOT NULL
                                REFERENCES listings (id) ON DELETE RESTRICT,
            buyer_id            VARCHAR(64)     NOT NULL,
            seller_id           VARCHAR(64)     NOT NULL,
            quantity            INT             NOT NULL DEFAULT 1,
            total_price         NUMERIC(16, 2)  NOT NULL,
            status              VARCHAR(20)     NOT NULL DEFAULT 'pending',
            payment_method      VARCHAR(50)     NOT NULL DEFAULT 'cash',
            shipping_address    TEXT,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transactions_quantity         CHECK (quantity >= 1),
            CONSTRAINT ck_transactions_total_gte_0      CHECK (total_price >= 0),
            CONSTRAINT ck_transactions_status           CHECK (
                status IN ('pending', 'completed', 'cancelled')
            ),
            CONSTRAINT ck_transactions_buyer_not_seller CHECK (buyer_id <> seller_id)
        );
    """)
    # At most one transaction holds a listing at a time.
    op.execute("""
        CREATE UNIQUE INDEX uq_transactions_listing_holding
            ON transactions (listing_id)
            WHERE status IN ('pending', 'completed');
    """)
    op.execute("CREATE INDEX idx_transactions_buyer ON transactions (buyer_id, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_transactions_seller ON transactions (seller_id, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_transactions_listing ON transactions (listing_id);")
    op.execute("""
        CREATE TRIGGER trg_transactions_updated_at
            BEFORE UPDATE ON transactions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
