"""Offline cart sync schemas."""

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field

from rapper_dashboard.schemas.base import CamelModel
from rapper_dashboard.schemas.purchase import PurchaseItem


class QueuedPurchase(CamelModel):
    """One purchase the service worker queued while offline."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="allow")

    id: str | None = None
    user_id: str = Field(..., min_length=1)
    items: list[PurchaseItem] = Field(..., min_length=1)
    total: float | None = Field(default=None, ge=0)
    timestamp: datetime | None = None
    created_at: datetime | None = None


class CartSyncRequest(CamelModel):
    """Batch of queued purchases.

    ``items`` stays loosely typed so that each entry is validated on its own
    and a malformed entry cannot reject the whole batch.
    """

    model_config = ConfigDict(coerce_numbers_to_str=True)

    items: list[Any] | None = None
    user_id: str | None = None


class SyncedPurchase(CamelModel):
    id: int
    user_id: str
    total: float
    item_count: int
    synced_at: datetime | None


class SyncError(CamelModel):
    item: Any
    error: str


class CartSyncResponse(CamelModel):
    success: bool
    message: str
    processed_count: int
    total_received: int
    error_count: int
    purchases: list[SyncedPurchase]
    errors: list[SyncError] | None = None
