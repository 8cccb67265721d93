# src/mp_transaction/infrastructure/persistence.py
"""TransactionRepository — raw SQL persistence implementation.

Status changes are conditional (WHERE status = :from_status) so two sellers'
requests racing on the same row cannot both apply; the loser gets None.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.mp_common.enums import TransactionRole
from src.mp_transaction.domain.models import (
    ListingRef,
    PartyRef,
    Transaction,
    TransactionContext,
)

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, listing_id, buyer_id, seller_id, quantity, total_price, status,
    payment_method, shipping_address, created_at, updated_at
"""

_INSERT_SQL = text(f"""
    INSERT INTO transactions (id, listing_id, buyer_id, seller_id, quantity,
        total_price, status, payment_method, shipping_address)
    VALUES (:id, :listing_id, :buyer_id, :seller_id, :quantity,
        :total_price, :status, :payment_method, :shipping_address)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM transactions WHERE id = :id
""")

_GET_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM transactions WHERE id = :id
    FOR UPDATE
""")

_TRANSITION_SQL = text(f"""
    UPDATE transactions
    SET status = :to_status
    WHERE id = :id AND status = :from_status
    RETURNING {_SELECT_COLUMNS}
""")

_DELETE_SQL = text("DELETE FROM transactions WHERE id = :id")

_HAS_PENDING_SQL = text("""
    SELECT 1 FROM transactions
    WHERE listing_id = :listing_id AND status = 'pending'
    LIMIT 1
""")

_HAS_HOLDING_SQL = text("""
    SELECT 1 FROM transactions
    WHERE listing_id = :listing_id
      AND status IN ('pending', 'completed')
      AND (CAST(:exclude_id AS TEXT) IS NULL OR id <> CAST(:exclude_id AS TEXT))
    LIMIT 1
""")

_DELETE_TERMINAL_BY_LISTING_SQL = text("""
    DELETE FROM transactions
    WHERE listing_id = :listing_id AND status IN ('completed', 'cancelled')
""")

_DELETE_BY_PARTY_SQL = text(f"""
    DELETE FROM transactions
    WHERE buyer_id = :user_id OR seller_id = :user_id
    RETURNING {_SELECT_COLUMNS}
""")

# users.id is UUID while party ids are stored as text
_CONTEXT_SQL = text("""
    SELECT t.id,
           l.id AS item_id, l.name AS item_name, l.price AS item_price,
           l.status AS item_status, l.image_ref AS item_image_ref,
           b.id AS buyer_uid, b.name AS buyer_name, b.email AS buyer_email,
           b.phone AS buyer_phone,
           s.id AS seller_uid, s.name AS seller_name, s.email AS seller_email,
           s.phone AS seller_phone
    FROM transactions t
    LEFT JOIN listings l ON l.id = t.listing_id
    LEFT JOIN users b ON CAST(b.id AS TEXT) = t.buyer_id
    LEFT JOIN users s ON CAST(s.id AS TEXT) = t.seller_id
    WHERE t.id = ANY(string_to_array(CAST(:ids_csv AS TEXT), ','))
""")

_LIST_BY_USER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM transactions
    WHERE (
        (CAST(:role AS TEXT) = 'buyer' AND buyer_id = :user_id)
        OR (CAST(:role AS TEXT) = 'seller' AND seller_id = :user_id)
        OR (CAST(:role AS TEXT) = 'all' AND (buyer_id = :user_id OR seller_id = :user_id))
      )
      AND (
        CAST(:cursor_id AS TEXT) IS NULL
        OR (created_at, id) < (CAST(:cursor_ts AS TIMESTAMPTZ), CAST(:cursor_id AS TEXT))
      )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_transaction(row: Any) -> Transaction:
    """Convert a DB result row to a Transaction domain object."""
    return Transaction(
        id=row.id,
        listing_id=row.listing_id,
        buyer_id=row.buyer_id,
        seller_id=row.seller_id,
        quantity=row.quantity,
        total_price=row.total_price,
        status=row.status,
        payment_method=row.payment_method,
        shipping_address=row.shipping_address,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _party(row: Any, prefix: str) -> PartyRef | None:
    user_id = getattr(row, f"{prefix}_uid")
    if user_id is None:
        return None
    return PartyRef(
        user_id=str(user_id),
        name=getattr(row, f"{prefix}_name"),
        email=getattr(row, f"{prefix}_email"),
        phone=getattr(row, f"{prefix}_phone"),
    )


def _row_to_context(row: Any) -> TransactionContext:
    item = None
    if row.item_id is not None:
        item = ListingRef(
            id=row.item_id,
            name=row.item_name,
            price=row.item_price,
            status=row.item_status,
            image_ref=row.item_image_ref,
        )
    return TransactionContext(
        item=item,
        buyer=_party(row, "buyer"),
        seller=_party(row, "seller"),
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class TransactionRepository:
    """Concrete implementation of TransactionRepositoryProtocol using raw SQL."""

    async def insert(self, db: AsyncSession, tx: Transaction) -> Transaction:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": tx.id,
                "listing_id": tx.listing_id,
                "buyer_id": tx.buyer_id,
                "seller_id": tx.seller_id,
                "quantity": tx.quantity,
                "total_price": tx.total_price,
                "status": tx.status,
                "payment_method": tx.payment_method,
                "shipping_address": tx.shipping_address,
            },
        )
        return _row_to_transaction(result.fetchone())

    async def get_by_id(
        self, db: AsyncSession, transaction_id: str, for_update: bool = False
    ) -> Transaction | None:
        sql = _GET_FOR_UPDATE_SQL if for_update else _GET_SQL
        result = await db.execute(sql, {"id": transaction_id})
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def transition_status(
        self, db: AsyncSession, transaction_id: str, from_status: str, to_status: str
    ) -> Transaction | None:
        result = await db.execute(
            _TRANSITION_SQL,
            {"id": transaction_id, "from_status": from_status, "to_status": to_status},
        )
        row = result.fetchone()
        return _row_to_transaction(row) if row else None

    async def delete(self, db: AsyncSession, transaction_id: str) -> None:
        await db.execute(_DELETE_SQL, {"id": transaction_id})

    async def has_pending_for_listing(self, db: AsyncSession, listing_id: str) -> bool:
        result = await db.execute(_HAS_PENDING_SQL, {"listing_id": listing_id})
        return result.fetchone() is not None

    async def has_holding_for_listing(
        self, db: AsyncSession, listing_id: str, exclude_id: str | None = None
    ) -> bool:
        result = await db.execute(
            _HAS_HOLDING_SQL, {"listing_id": listing_id, "exclude_id": exclude_id}
        )
        return result.fetchone() is not None

    async def delete_by_listing(self, db: AsyncSession, listing_id: str) -> int:
        result = await db.execute(_DELETE_TERMINAL_BY_LISTING_SQL, {"listing_id": listing_id})
        return result.rowcount or 0

    async def delete_by_party(self, db: AsyncSession, user_id: str) -> list[Transaction]:
        result = await db.execute(_DELETE_BY_PARTY_SQL, {"user_id": user_id})
        return [_row_to_transaction(row) for row in result.fetchall()]

    async def load_context(
        self, db: AsyncSession, transaction_ids: list[str]
    ) -> dict[str, TransactionContext]:
        if not transaction_ids:
            return {}
        result = await db.execute(_CONTEXT_SQL, {"ids_csv": ",".join(transaction_ids)})
        return {row.id: _row_to_context(row) for row in result.fetchall()}

    async def list_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        role: TransactionRole,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Transaction]:
        try:
            ts = datetime.fromisoformat(cursor_ts) if cursor_ts and cursor_id else None
        except ValueError:
            ts = None
        if ts is None:
            cursor_id = None
        result = await db.execute(
            _LIST_BY_USER_SQL,
            {
                "user_id": user_id,
                "role": TransactionRole(role).value,
                "cursor_ts": ts,
                "cursor_id": cursor_id,
                "limit": limit,
            },
        )
        return [_row_to_transaction(row) for row in result.fetchall()]
