"""Explicit partial updates.

A patch is a frozen dataclass whose fields default to UNSET. UNSET means
"leave alone"; None means "clear" where the column is nullable.
"""

from dataclasses import fields
from typing import Any


class _Unset:
    """Marker for a patch field that was not supplied."""

    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def supplied_fields(patch: Any) -> dict[str, Any]:
    """The fields of a patch dataclass that are not UNSET."""
    return {
        f.name: getattr(patch, f.name)
        for f in fields(patch)
        if getattr(patch, f.name) is not UNSET
    }
