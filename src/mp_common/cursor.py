"""Opaque keyset-pagination cursors.

A cursor is Base64 JSON: {"v": <last sort value as str>, "id": <last row id>}.
Decoding never raises; a malformed cursor restarts from the first page.
"""

import base64
import json


def cursor_encode(sort_value: object, row_id: str) -> str:
    payload = {"v": str(sort_value), "id": row_id}
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode cursor -> (sort_value, row_id), or (None, None) on error."""
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.urlsafe_b64decode(cursor.encode()).decode())
        return str(data["v"]), str(data["id"])
    except Exception:
        return None, None
