"""003: create listings table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # owner_id holds users.id as text with no FK; AccountPurgeService cascades.
    op.execute("""
        CREATE TABLE listings (
            id              VARCHAR(20)     PRIMARY KEY,
            owner_id        VARCHAR(64)     NOT NULL,
            name            VARCHAR(255)    NOT NULL,
            description     TEXT,
            category        VARCHAR(100)    NOT NULL DEFAULT 'other',
            price           NUMERIC(14, 2)  NOT NULL,
            condition       VARCHAR(20)     NOT NULL DEFAULT 'good',
            location        VARCHAR(255),
            image_ref       VARCHAR(512),
            status          VARCHAR(20)     NOT NULL DEFAULT 'available',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_listings_name_not_blank CHECK (LENGTH(TRIM(name)) > 0),
            CONSTRAINT ck_listings_price_gte_0    CHECK (price >= 0),
            CONSTRAINT ck_listings_condition      CHECK (
                condition IN ('new', 'like-new', 'good', 'fair')
            ),
            CONSTRAINT ck_listings_status         CHECK (status IN ('available', 'sold'))
        );
    """)
    op.execute("CREATE INDEX idx_listings_status_created ON listings (status, created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_listings_owner ON listings (owner_id, created_at DESC);")
    op.execute("CREATE INDEX idx_listings_category ON listings (category);")
    op.execute("CREATE INDEX idx_listings_price ON listings (price, id);")
    op.execute("""
        CREATE TRIGGER trg_listings_updated_at
            BEFORE UPDATE ON listings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS listings CASCADE;")
