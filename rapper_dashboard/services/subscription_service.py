"""Push subscription registry."""

import logging
from datetime import UTC, datetime

from sqlalchemy import func
from sqlalchemy.orm import Session

from rapper_dashboard.exceptions import NotFoundError
from rapper_dashboard.models.push_subscription import PushSubscription

logger = logging.getLogger(__name__)


class SubscriptionService:
    """Stores push endpoints and tracks whether they are still deliverable."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_endpoint(self, endpoint: str) -> PushSubscription | None:
        return self.db.query(PushSubscription).filter(PushSubscription.endpoint == endpoint).first()

    def subscribe(
        self,
        endpoint: str,
        p256dh_key: str,
        auth_key: str,
        user_id: str | None = None,
        user_agent: str = "",
        origin: str | None = None,
    ) -> tuple[PushSubscription, bool]:
        """Register an endpoint, or refresh and reactivate it if already known.

        Returns the subscription and whether it was newly created.
        """
        origin = origin or "unknown"
        existing = self.get_by_endpoint(endpoint)

        if existing:
            existing.p256dh_key = p256dh_key
            existing.auth_key = auth_key
            existing.user_id = user_id or existing.user_id
            existing.user_agent = user_agent
            existing.origin = origin
            existing.active = True
            existing.touch()
            self.db.commit()
            self.db.refresh(existing)
            logger.info(f"Push subscription updated: {existing.id}")
            return existing, False

        subscription = PushSubscription(
            endpoint=endpoint,
            p256dh_key=p256dh_key,
            auth_key=auth_key,
            user_id=user_id,
            user_agent=user_agent,
            origin=origin,
            active=True,
        )
        self.db.add(subscription)
        self.db.commit()
        self.db.refresh(subscription)
        logger.info(f"New push subscription registered: {subscription.id} ({origin})")
        return subscription, True

    def unsubscribe(self, endpoint: str) -> PushSubscription:
        """Deactivate the subscription for an endpoint."""
        subscription = self.get_by_endpoint(endpoint)
        if not subscription:
            raise NotFoundError("Suscripción no encontrada")
        self.deactivate(subscription)
        return subscription

    def list_active(
        self, user_id: str | None = None, origin: str | None = None
    ) -> list[PushSubscription]:
        query = self.db.query(PushSubscription).filter(PushSubscription.active.is_(True))
        if user_id is not None:
            query = query.filter(PushSubscription.user_id == user_id)
        if origin is not None:
            query = query.filter(PushSubscription.origin == origin)
        return query.order_by(PushSubscription.id).all()

    def mark_used(self, subscription: PushSubscription) -> None:
        subscription.touch()
        self.db.commit()

    def deactivate(self, subscription: PushSubscription) -> None:
        subscription.deactivate()
        self.db.commit()

    def get_stats(self) -> dict[str, int]:
        total = self.db.query(func.count(PushSubscription.id)).scalar() or 0
        active = (
            self.db.query(func.count(PushSubscription.id))
            .filter(PushSubscription.active.is_(True))
            .scalar()
            or 0
        )
        return {"total": total, "active": active, "inactive": total - active}

    def active_counts_by_user(self) -> dict[str, int]:
        """Number of active subscriptions per user, skipping anonymous ones."""
        rows = (
            self.db.query(PushSubscription.user_id, func.count(PushSubscription.id))
            .filter(PushSubscription.active.is_(True), PushSubscription.user_id.is_not(None))
            .group_by(PushSubscription.user_id)
            .all()
        )
        return dict(rows)
