# src/mp_listing/infrastructure/persistence.py
"""ListingRepository — raw SQL persistence implementation.

asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL required for None values.

Concurrency: purchase paths load the row with FOR UPDATE and then flip it with
the conditional _CLAIM_SQL (WHERE status = 'available'); a claim that updates
zero rows means another buyer won.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import ListingSortField, SortOrder
from src.mp_listing.domain.models import Listing, ListingFilter

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

# users.id is UUID while owner_id is stored as text
_SELECT_COLUMNS = """
    id, owner_id, name, description, category, price, condition,
    location, image_ref, status, created_at, updated_at,
    (SELECT u.name FROM users u WHERE CAST(u.id AS TEXT) = listings.owner_id) AS owner_name
"""

_GET_LISTING_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM listings WHERE id = :id
""")

_GET_LISTING_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM listings WHERE id = :id
    FOR UPDATE
""")

_INSERT_LISTING_SQL = text(f"""
    INSERT INTO listings (id, owner_id, name, description, category, price,
        condition, location, image_ref, status)
    VALUES (:id, :owner_id, :name, :description, :category, :price,
        :condition, :location, :image_ref, :status)
    RETURNING {_SELECT_COLUMNS}
""")

_CLAIM_SQL = text(f"""
    UPDATE listings
    SET status = 'sold'
    WHERE id = :id AND status = 'available'
    RETURNING {_SELECT_COLUMNS}
""")

_SET_STATUS_SQL = text(f"""
    UPDATE listings
    SET status = :status
    WHERE id = :id
    RETURNING {_SELECT_COLUMNS}
""")

_DELETE_SQL = text("DELETE FROM listings WHERE id = :id")

_DELETE_BY_OWNER_SQL = text("DELETE FROM listings WHERE owner_id = :owner_id")

# Columns a ListingPatch may touch. Anything else never reaches the SQL text.
_PATCHABLE_COLUMNS = frozenset(
    {"name", "description", "category", "price", "condition", "location", "image_ref"}
)

_SORT_COLUMNS = {
    ListingSortField.DATE: "created_at",
    ListingSortField.PRICE: "price",
    ListingSortField.NAME: "name",
}

_LIST_WHERE = """
    (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    AND (CAST(:category AS TEXT) IS NULL OR category = CAST(:category AS TEXT))
    AND (CAST(:owner_id AS TEXT) IS NULL OR owner_id = CAST(:owner_id AS TEXT))
    AND (CAST(:pattern AS TEXT) IS NULL OR name ILIKE CAST(:pattern AS TEXT) ESCAPE '\\')
    AND (CAST(:min_price AS NUMERIC) IS NULL OR price >= CAST(:min_price AS NUMERIC))
    AND (CAST(:max_price AS NUMERIC) IS NULL OR price <= CAST(:max_price AS NUMERIC))
"""


def _build_list_sql(sort_by: ListingSortField, order: SortOrder) -> Any:
    column = _SORT_COLUMNS[sort_by]
    direction = "DESC" if order == SortOrder.DESC else "ASC"
    comparator = "<" if order == SortOrder.DESC else ">"
    return text(f"""
        SELECT {_SELECT_COLUMNS}
        FROM listings
        WHERE {_LIST_WHERE}
          AND (
            CAST(:cursor_id AS TEXT) IS NULL
            OR ({column}, id) {comparator} (:cursor_value, CAST(:cursor_id AS TEXT))
          )
        ORDER BY {column} {direction}, id {direction}
        LIMIT :limit
    """)


_LIST_SQL = {
    (sort_by, order): _build_list_sql(sort_by, order)
    for sort_by in ListingSortField
    for order in SortOrder
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _row_to_listing(row: Any) -> Listing:
    """Convert a DB result row to a Listing domain object."""
    return Listing(
        id=row.id,
        owner_id=row.owner_id,
        name=row.name,
        description=row.description,
        category=row.category,
        price=row.price,
        condition=row.condition,
        location=row.location,
        image_ref=row.image_ref,
        status=row.status,
        created_at=row.created_at,
        updated_at=row.updated_at,
        owner_name=row.owner_name,
    )


def _like_pattern(search: str | None) -> str | None:
    """Case-insensitive substring pattern with LIKE wildcards escaped."""
    if search is None or not search.strip():
        return None
    escaped = (
        search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    )
    return f"%{escaped}%"


def parse_cursor_value(sort_by: ListingSortField, raw: str | None) -> Any:
    """Turn the string sort value stored in a cursor back into the column type."""
    if raw is None:
        return None
    if sort_by == ListingSortField.DATE:
        return datetime.fromisoformat(raw)
    if sort_by == ListingSortField.PRICE:
        return Decimal(raw)
    return raw


def sort_value_of(listing: Listing, sort_by: ListingSortField) -> Any:
    if sort_by == ListingSortField.DATE:
        return listing.created_at.isoformat() if listing.created_at else None
    if sort_by == ListingSortField.PRICE:
        return listing.price
    return listing.name


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class ListingRepository:
    """Concrete implementation of ListingRepositoryProtocol using raw SQL."""

    async def get_by_id(
        self, db: AsyncSession, listing_id: str, for_update: bool = False
    ) -> Listing | None:
        sql = _GET_LISTING_FOR_UPDATE_SQL if for_update else _GET_LISTING_SQL
        result = await db.execute(sql, {"id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def insert(self, db: AsyncSession, listing: Listing) -> Listing:
        result = await db.execute(
            _INSERT_LISTING_SQL,
            {
                "id": listing.id,
                "owner_id": listing.owner_id,
                "name": listing.name,
                "description": listing.description,
                "category": listing.category,
                "price": listing.price,
                "condition": listing.condition,
                "location": listing.location,
                "image_ref": listing.image_ref,
                "status": listing.status,
            },
        )
        return _row_to_listing(result.fetchone())

    async def update_fields(
        self, db: AsyncSession, listing_id: str, changes: dict[str, Any]
    ) -> Listing | None:
        unknown = set(changes) - _PATCHABLE_COLUMNS
        if unknown:
            raise ValueError(f"Not patchable: {sorted(unknown)}")
        if not changes:
            return await self.get_by_id(db, listing_id)

        assignments = ", ".join(f"{column} = :{column}" for column in sorted(changes))
        sql = text(f"""
            UPDATE listings SET {assignments}
            WHERE id = :id
            RETURNING {_SELECT_COLUMNS}
        """)
        result = await db.execute(sql, {**changes, "id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def claim_available(self, db: AsyncSession, listing_id: str) -> Listing | None:
        result = await db.execute(_CLAIM_SQL, {"id": listing_id})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def set_status(
        self, db: AsyncSession, listing_id: str, status: str
    ) -> Listing | None:
        result = await db.execute(_SET_STATUS_SQL, {"id": listing_id, "status": status})
        row = result.fetchone()
        return _row_to_listing(row) if row else None

    async def delete(self, db: AsyncSession, listing_id: str) -> None:
        await db.execute(_DELETE_SQL, {"id": listing_id})

    async def delete_by_owner(self, db: AsyncSession, owner_id: str) -> int:
        result = await db.execute(_DELETE_BY_OWNER_SQL, {"owner_id": owner_id})
        return result.rowcount or 0

    async def list_listings(
        self,
        db: AsyncSession,
        flt: ListingFilter,
        cursor_value: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Listing]:
        try:
            sort_value = parse_cursor_value(flt.sort_by, cursor_value) if cursor_id else None
        except (ValueError, ArithmeticError):
            # Cursor from another sort order; restart from the first page
            sort_value, cursor_id = None, None
        result = await db.execute(
            _LIST_SQL[(flt.sort_by, flt.order)],
            {
                "status": flt.status,
                "category": flt.category,
                "owner_id": flt.owner_id,
                "pattern": _like_pattern(flt.search),
                "min_price": flt.min_price,
                "max_price": flt.max_price,
                "cursor_value": sort_value,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_listing(row) for row in result.fetchall()]
