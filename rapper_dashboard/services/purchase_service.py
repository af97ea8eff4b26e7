"""Purchase ledger: recording, listing and offline sync reconciliation."""

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError as SchemaValidationError
from sqlalchemy import func
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from rapper_dashboard.exceptions import NotFoundError, StorageError, ValidationError
from rapper_dashboard.models.enums import PurchaseSource, PurchaseStatus
from rapper_dashboard.models.purchase import Purchase
from rapper_dashboard.schemas.cart import QueuedPurchase
from rapper_dashboard.schemas.purchase import PurchaseItem

logger = logging.getLogger(__name__)


def is_storage_failure(error: Exception) -> bool:
    """Whether a database error means the store itself is unreachable."""
    if isinstance(error, OperationalError | InterfaceError):
        return True
    return isinstance(error, DBAPIError) and error.connection_invalidated


@dataclass
class SyncFailure:
    """A queued entry that could not be replayed."""

    item: Any
    error: str
    storage: bool = False


@dataclass
class SyncResult:
    """Outcome of replaying a batch of offline-queued purchases."""

    total_received: int
    processed: list[dict[str, Any]] = field(default_factory=list)
    errors: list[SyncFailure] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.processed) > 0

    @property
    def storage_unavailable(self) -> bool:
        """Nothing was written and at least one entry hit a storage failure."""
        return not self.processed and any(error.storage for error in self.errors)


@dataclass
class ParsedEntry:
    """Result of validating one raw queue entry: either ``entry`` or ``error`` is set."""

    raw: Any
    entry: QueuedPurchase | None = None
    error: str | None = None


def parse_queued_entry(raw: Any) -> ParsedEntry:
    """Validate one raw queue entry against the QueuedPurchase schema."""
    if not isinstance(raw, dict):
        return ParsedEntry(raw=raw, error="Datos incompletos")
    try:
        return ParsedEntry(raw=raw, entry=QueuedPurchase.model_validate(raw))
    except SchemaValidationError as e:
        fields = sorted({".".join(str(part) for part in err["loc"]) for err in e.errors()})
        return ParsedEntry(raw=raw, error=f"Datos incompletos: {', '.join(fields)}")


def _dump_items(items: list[PurchaseItem]) -> list[dict[str, Any]]:
    return [item.model_dump(by_alias=True) for item in items]


class PurchaseService:
    """Service for purchase-related operations."""

    def __init__(self, db: Session):
        self.db = db

    def record_purchase(
        self,
        user_id: str,
        items: list[PurchaseItem],
        total: float,
        timestamp: datetime | None = None,
        synced_at: datetime | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> Purchase:
        """Persist a purchase submitted by the PWA.

        A purchase carrying ``synced_at`` was queued offline and is stored as
        ``synced``; anything else is an online ``completed`` purchase.
        """
        if not items:
            raise ValidationError("Items debe ser un array con al menos un elemento")

        source = PurchaseSource.OFFLINE_SYNC if synced_at else PurchaseSource.ONLINE
        purchase = Purchase(
            user_id=user_id,
            items=_dump_items(items),
            total=total,
            timestamp=timestamp or datetime.now(UTC),
            synced_at=synced_at,
            status=(PurchaseStatus.SYNCED if synced_at else PurchaseStatus.COMPLETED).value,
            purchase_metadata={"ip": ip, "userAgent": user_agent, "source": source.value},
        )
        purchase.validate_total()

        self.db.add(purchase)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            if is_storage_failure(e):
                raise StorageError() from e
            raise
        self.db.refresh(purchase)
        logger.info(f"Purchase created: {purchase.id} ({source.value})")
        return purchase

    def reconcile_sync_batch(
        self,
        raw_entries: list[Any],
        expected_user_id: str | None = None,
        ip: str | None = None,
        user_agent: str | None = None,
    ) -> SyncResult:
        """Replay purchases the service worker queued while offline.

        Entries are independent: each one is validated and written in its own
        savepoint, and a failure is recorded in ``errors`` without touching the
        rest of the batch.
        """
        result = SyncResult(total_received=len(raw_entries))
        batch_id = int(datetime.now(UTC).timestamp() * 1000)

        for parsed in (parse_queued_entry(raw) for raw in raw_entries):
            if parsed.entry is None:
                logger.warning(f"[Cart Sync] Incomplete queue entry skipped: {parsed.error}")
                result.errors.append(SyncFailure(item=parsed.raw, error=parsed.error or ""))
                continue

            entry = parsed.entry
            if expected_user_id and entry.user_id != expected_user_id:
                logger.warning(
                    f"[Cart Sync] User mismatch. Expected: {expected_user_id}, "
                    f"received: {entry.user_id}"
                )

            try:
                purchase = self._replay_entry(entry, batch_id, ip, user_agent)
            except ValidationError as e:
                logger.warning(f"[Cart Sync] Rejected queue entry {entry.id}: {e.message}")
                result.errors.append(SyncFailure(item=parsed.raw, error=e.message))
                continue
            except SQLAlchemyError as e:
                logger.error(f"[Cart Sync] Error storing queue entry {entry.id}: {e}")
                result.errors.append(
                    SyncFailure(item=parsed.raw, error=str(e), storage=is_storage_failure(e))
                )
                continue

            result.processed.append(
                {
                    "id": purchase.id,
                    "user_id": purchase.user_id,
                    "total": purchase.total,
                    "item_count": purchase.item_count,
                    "synced_at": purchase.synced_at,
                }
            )
            logger.info(f"[Cart Sync] Purchase synced: {purchase.id} (user: {entry.user_id})")

        if result.processed:
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.error(f"[Cart Sync] Failed to commit sync batch {batch_id}: {e}")
                raise StorageError() from e

        logger.info(
            f"[Cart Sync] {len(result.processed)}/{result.total_received} purchases synced "
            f"for user: {expected_user_id or 'multiple users'}"
        )
        return result

    def _replay_entry(
        self,
        entry: QueuedPurchase,
        batch_id: int,
        ip: str | None,
        user_agent: str | None,
    ) -> Purchase:
        items = _dump_items(entry.items)
        total = entry.total or sum(item.price for item in entry.items)
        now = datetime.now(UTC)
        purchase = Purchase(
            user_id=entry.user_id,
            items=items,
            total=total,
            timestamp=entry.timestamp or entry.created_at or now,
            status=PurchaseStatus.SYNCED.value,
            synced_at=now,
            purchase_metadata={
                "ip": ip,
                "userAgent": user_agent,
                "source": PurchaseSource.OFFLINE_SYNC.value,
                "queueId": entry.id or "unknown",
                "syncBatchId": batch_id,
            },
        )
        purchase.validate_total()

        with self.db.begin_nested():
            self.db.add(purchase)
        return purchase

    def list_purchases(
        self,
        user_id: str | None = None,
        limit: int | None = None,
        skip: int | None = None,
        status: PurchaseStatus | None = None,
    ) -> list[Purchase]:
        """Purchases newest first, optionally narrowed to one user and status."""
        query = self.db.query(Purchase)
        if user_id is not None:
            query = query.filter(Purchase.user_id == user_id)
        if status is not None:
            query = query.filter(Purchase.status == status.value)
        query = query.order_by(Purchase.created_at.desc(), Purchase.id.desc())
        if skip:
            query = query.offset(skip)
        if limit:
            query = query.limit(limit)
        return query.all()

    def get_purchase(self, purchase_id: int) -> Purchase:
        purchase = self.db.query(Purchase).filter(Purchase.id == purchase_id).first()
        if not purchase:
            raise NotFoundError("Compra no encontrada")
        return purchase

    def get_stats(self, user_id: str) -> dict[str, float | int]:
        """Aggregate spending for a user; zero-valued when there are no purchases."""
        count, total_spent, average = (
            self.db.query(
                func.count(Purchase.id),
                func.sum(Purchase.total),
                func.avg(Purchase.total),
            )
            .filter(Purchase.user_id == user_id)
            .one()
        )
        item_lists = self.db.query(Purchase.items).filter(Purchase.user_id == user_id).all()
        total_items = sum(len(items or []) for (items,) in item_lists)
        return {
            "total_purchases": count or 0,
            "total_spent": float(total_spent or 0),
            "total_items": total_items,
            "average_spent": float(average or 0),
        }

    def mark_as_synced(self, purchase: Purchase) -> Purchase:
        purchase.mark_as_synced()
        self.db.commit()
        self.db.refresh(purchase)
        return purchase
