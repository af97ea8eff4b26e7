"""Purchase schemas."""

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field

from rapper_dashboard.schemas.base import CamelModel


class PurchaseItem(CamelModel):
    """A song line in a purchase, as sent by the PWA."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    id: str
    song_name: str
    album_name: str
    artist: str
    album_cover: str
    year: int
    price: float = Field(..., ge=0)


class PurchaseCreate(CamelModel):
    """Purchase submission request."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    items: list[PurchaseItem] = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    total: float = Field(..., ge=0)
    timestamp: datetime | None = None
    synced_at: datetime | None = None


class PurchaseSummary(CamelModel):
    """Short description of a newly recorded purchase."""

    id: int
    user_id: str
    total: float
    item_count: int
    status: str
    created_at: datetime | None = None
    source: str | None = None


class PurchaseResponse(CamelModel):
    """Full purchase record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    items: list[dict[str, Any]]
    total: float
    status: str
    timestamp: datetime
    synced_at: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="purchase_metadata")
    item_count: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PurchaseStats(CamelModel):
    """Aggregate spending for one user."""

    total_purchases: int = 0
    total_spent: float = 0.0
    total_items: int = 0
    average_spent: float = 0.0
