"""Notification dispatcher for web push fan-out."""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from pywebpush import WebPushException, webpush
from sqlalchemy.exc import SQLAlchemyError

from rapper_dashboard.config import VapidConfig
from rapper_dashboard.exceptions import AppError, DeliveryError
from rapper_dashboard.models.push_subscription import PushSubscription
from rapper_dashboard.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

DEFAULT_ICON = "/icon-192x192.png"
DEFAULT_BADGE = "/icon-72x72.png"
DEFAULT_TAG = "default-notification"


def build_payload(
    title: str,
    body: str,
    icon: str | None = None,
    badge: str | None = None,
    data: dict[str, Any] | None = None,
    tag: str | None = None,
) -> dict[str, Any]:
    """Notification payload as the PWA service worker expects it."""
    return {
        "title": title,
        "body": body,
        "icon": icon or DEFAULT_ICON,
        "badge": badge or DEFAULT_BADGE,
        "data": data or {},
        "tag": tag or DEFAULT_TAG,
    }


@dataclass
class PushResult:
    """Delivery outcome for one subscription."""

    subscription_id: int
    success: bool
    error: str | None = None
    deactivated: bool = False


@dataclass
class BroadcastResult:
    """Aggregate outcome of a fan-out."""

    results: list[PushResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def sent(self) -> int:
        return sum(1 for result in self.results if result.success)

    @property
    def failed(self) -> int:
        return self.total - self.sent

    @property
    def deactivated(self) -> int:
        return sum(1 for result in self.results if result.deactivated)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "sent": self.sent,
            "failed": self.failed,
            "results": [asdict(result) for result in self.results],
        }


class NotificationDispatcher:
    """Sends push payloads to sets of subscriptions.

    VAPID credentials are passed in rather than registered process-wide, and
    subscription state changes go through the registry after each delivery
    settles.
    """

    def __init__(self, vapid: VapidConfig, registry: SubscriptionService) -> None:
        self.vapid = vapid
        self.registry = registry

    @property
    def is_configured(self) -> bool:
        return self.vapid.is_configured

    async def broadcast(
        self, subscriptions: list[PushSubscription], payload: dict[str, Any]
    ) -> BroadcastResult:
        """Deliver ``payload`` to every subscription concurrently.

        One failing endpoint never prevents delivery to the others. Endpoints
        the push service reports as gone are deactivated; other failures leave
        the subscription active for the next broadcast.
        """
        if not subscriptions:
            return BroadcastResult()
        if not self.is_configured:
            raise AppError("Claves VAPID no configuradas")

        data = json.dumps(payload)
        # Read ORM state here; worker threads only see plain dicts.
        targets = [(sub, sub.subscription_info()) for sub in subscriptions]
        outcomes = await asyncio.gather(*(self._deliver(info, data) for _, info in targets))

        result = BroadcastResult()
        for (subscription, _), error in zip(targets, outcomes, strict=True):
            result.results.append(self._apply_outcome(subscription, error))

        logger.info(
            f"Push notifications sent: {result.sent}/{result.total} "
            f"({result.deactivated} deactivated)"
        )
        return result

    async def _deliver(self, subscription_info: dict, data: str) -> DeliveryError | None:
        try:
            await asyncio.to_thread(
                webpush,
                subscription_info=subscription_info,
                data=data,
                vapid_private_key=self.vapid.private_key,
                vapid_claims={"sub": self.vapid.subject},
            )
        except WebPushException as e:
            response = getattr(e, "response", None)
            status_code = response.status_code if response is not None else None
            return DeliveryError(str(e), response_status=status_code)
        except Exception as e:  # noqa: BLE001
            return DeliveryError(str(e))
        return None

    def _apply_outcome(
        self, subscription: PushSubscription, error: DeliveryError | None
    ) -> PushResult:
        outcome = PushResult(subscription_id=subscription.id, success=error is None)
        if error is not None:
            outcome.error = error.message
            logger.error(f"Push failed for subscription {subscription.id}: {error.message}")

        try:
            if error is None:
                self.registry.mark_used(subscription)
            elif error.endpoint_gone:
                self.registry.deactivate(subscription)
                outcome.deactivated = True
                logger.info(f"Subscription {subscription.id} deactivated (endpoint gone)")
        except SQLAlchemyError as e:
            self.registry.db.rollback()
            logger.error(f"Failed to update subscription {subscription.id} after delivery: {e}")
        return outcome
