# src/mp_listing/infrastructure/db_models.py
"""SQLAlchemy ORM model for the listings table (DDL reference only — queries use raw SQL).

Alembic migration 003_create_listings.py is the authoritative DDL source.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from src.mp_common.database import Base


class ListingORM(Base):
    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(String(20), primary_key=True)
    # users.id rendered as text; no FK, user cascades are done by AccountPurgeService
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="other")
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    condition: Mapped[str] = mapped_column(String(20), nullable=False, default="good")
    location: Mapped[str | None] = mapped_column(String(255))
    image_ref: Mapped[str | None] = mapped_column(String(512))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="available")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
