"""Notification API endpoints for push subscriptions and broadcasts."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status

from rapper_dashboard.api.dependencies import (
    get_notification_dispatcher,
    get_subscription_service,
    require_admin,
)
from rapper_dashboard.config import get_settings
from rapper_dashboard.exceptions import AppError, NotFoundError
from rapper_dashboard.schemas.notification import (
    NotificationSend,
    SubscribeRequest,
    SubscriptionStats,
    UnsubscribeRequest,
)
from rapper_dashboard.services.auth import TokenIdentity
from rapper_dashboard.services.notification_service import NotificationDispatcher, build_payload
from rapper_dashboard.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("/vapid-public-key")
def get_vapid_public_key() -> dict:
    """Get the VAPID public key for push notification subscription."""
    public_key = get_settings().vapid_public_key
    if not public_key:
        raise AppError("Clave pública VAPID no configurada")
    return {"success": True, "publicKey": public_key}


@router.post("/subscribe")
def subscribe_push(
    subscribe_data: SubscribeRequest,
    request: Request,
    response: Response,
    registry: Annotated[SubscriptionService, Depends(get_subscription_service)],
) -> dict:
    """Subscribe to push notifications, or refresh an existing endpoint."""
    subscription, created = registry.subscribe(
        endpoint=subscribe_data.subscription.endpoint,
        p256dh_key=subscribe_data.subscription.keys.p256dh,
        auth_key=subscribe_data.subscription.keys.auth,
        user_id=subscribe_data.user_id,
        user_agent=request.headers.get("user-agent", ""),
        origin=subscribe_data.origin or request.headers.get("origin"),
    )

    if created:
        response.status_code = status.HTTP_201_CREATED
        message = "Suscripción registrada exitosamente"
    else:
        message = "Suscripción actualizada"
    return {
        "success": True,
        "message": message,
        "subscriptionId": subscription.id,
    }


@router.post("/unsubscribe")
def unsubscribe_push(
    unsubscribe_data: UnsubscribeRequest,
    registry: Annotated[SubscriptionService, Depends(get_subscription_service)],
) -> dict:
    """Deactivate the subscription for an endpoint."""
    registry.unsubscribe(unsubscribe_data.endpoint)
    return {"success": True, "message": "Suscripción desactivada"}


@router.post("/send")
async def send_notification(
    notification: NotificationSend,
    registry: Annotated[SubscriptionService, Depends(get_subscription_service)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
) -> dict:
    """Broadcast a notification to every active subscriber of this deployment."""
    current_origin = get_settings().current_origin
    subscriptions = registry.list_active(origin=current_origin)

    if not subscriptions:
        return {
            "success": True,
            "message": f"No hay suscripciones activas para el entorno: {current_origin}",
            "total": 0,
            "sent": 0,
            "failed": 0,
        }

    payload = build_payload(
        notification.title,
        notification.body,
        icon=notification.icon,
        badge=notification.badge,
        data=notification.data,
        tag=notification.tag,
    )
    result = await dispatcher.broadcast(subscriptions, payload)

    return {
        "success": True,
        "message": "Notificaciones enviadas",
        "total": result.total,
        "sent": result.sent,
        "failed": result.failed,
    }


@router.post("/users/{user_id}/send")
async def send_user_notification(
    user_id: str,
    notification: NotificationSend,
    admin: Annotated[TokenIdentity, Depends(require_admin)],
    registry: Annotated[SubscriptionService, Depends(get_subscription_service)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
) -> dict:
    """Send a notification to one user's devices in this deployment."""
    subscriptions = registry.list_active(user_id=user_id, origin=get_settings().current_origin)
    if not subscriptions:
        raise NotFoundError("No hay suscripciones activas para este usuario en este entorno")

    payload = build_payload(
        notification.title,
        notification.body,
        icon=notification.icon,
        badge=notification.badge,
        data=notification.data,
        tag=notification.tag,
    )
    result = await dispatcher.broadcast(subscriptions, payload)
    logger.info(f"Admin {admin.username} notified user {user_id}: {result.sent}/{result.total}")

    return {
        "success": True,
        "message": "Notificación enviada al usuario",
        "total": result.total,
        "sent": result.sent,
        "failed": result.failed,
    }


@router.get("/stats")
def get_subscription_stats(
    registry: Annotated[SubscriptionService, Depends(get_subscription_service)],
) -> dict:
    """Count subscriptions by state."""
    stats = SubscriptionStats(**registry.get_stats())
    return {"success": True, "stats": stats.model_dump()}
