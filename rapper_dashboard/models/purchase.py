"""Purchase model."""

import math
from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, Float, Index, Integer, String, event

from rapper_dashboard.database import Base
from rapper_dashboard.exceptions import ValidationError
from rapper_dashboard.models.enums import PurchaseStatus
from rapper_dashboard.models.mixins import TimestampMixin

# Allowed difference between the stated total and the sum of item prices
TOTAL_TOLERANCE = 0.01
# Absorbs binary rounding so a difference of exactly one cent is accepted
_FLOAT_EPSILON = 1e-9


class Purchase(Base, TimestampMixin):
    """A completed or synced purchase of one or more songs."""

    __tablename__ = "purchases"
    __table_args__ = (Index("ix_purchases_user_created", "user_id", "created_at"),)

    id = Column(Integer, primary_key=True, index=True)
    # Raw client-supplied id, not a foreign key: offline queues may reference
    # users this server has never seen.
    user_id = Column(String(255), nullable=False, index=True)
    # [{"id", "songName", "albumName", "artist", "albumCover", "year", "price"}, ...]
    items = Column(JSON, nullable=False)
    total = Column(Float, nullable=False)
    status = Column(String(20), nullable=False, default=PurchaseStatus.COMPLETED.value, index=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    synced_at = Column(DateTime(timezone=True), nullable=True)
    # {"ip", "userAgent", "source", "queueId", "syncBatchId"}
    purchase_metadata = Column("metadata", JSON, nullable=False, default=dict)

    @property
    def item_count(self) -> int:
        return len(self.items or [])

    @property
    def source(self) -> str | None:
        return (self.purchase_metadata or {}).get("source")

    def items_total(self) -> float:
        return sum(float(item.get("price", 0)) for item in self.items or [])

    def validate_total(self) -> None:
        """Raise ValidationError unless total matches the item prices."""
        if not self.items:
            raise ValidationError("Debe haber al menos un item en la compra")
        if self.total is None or not math.isfinite(self.total) or self.total < 0:
            raise ValidationError("El total debe ser mayor a 0")
        # Negated so that a NaN difference fails
        if not abs(self.total - self.items_total()) <= TOTAL_TOLERANCE + _FLOAT_EPSILON:
            raise ValidationError("El total no coincide con la suma de los items")

    def mark_as_synced(self) -> None:
        self.status = PurchaseStatus.SYNCED.value
        self.synced_at = datetime.now(UTC)


@event.listens_for(Purchase, "before_insert")
@event.listens_for(Purchase, "before_update")
def _check_total(mapper, connection, target: Purchase) -> None:
    target.validate_total()
