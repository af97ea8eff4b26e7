"""Enums for model fields."""

from enum import Enum


class UserRole(str, Enum):
    """Roles a user can hold."""

    USER = "user"
    ADMIN = "admin"


class PurchaseStatus(str, Enum):
    """Lifecycle states of a purchase."""

    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    SYNCED = "synced"


class PurchaseSource(str, Enum):
    """Where a purchase entered the system from."""

    ONLINE = "online"
    OFFLINE_SYNC = "offline-sync"
