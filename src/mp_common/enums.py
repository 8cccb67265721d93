"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class ListingStatus(str, Enum):
    AVAILABLE = "available"
    SOLD = "sold"


class ItemCondition(str, Enum):
    NEW = "new"
    LIKE_NEW = "like-new"
    GOOD = "good"
    FAIR = "fair"


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TransactionRole(str, Enum):
    """Which side of a transaction the requesting user is on."""
    BUYER = "buyer"
    SELLER = "seller"
    ALL = "all"


class ListingSortField(str, Enum):
    DATE = "date"
    PRICE = "price"
    NAME = "name"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
