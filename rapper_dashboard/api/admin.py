"""Admin-only endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from rapper_dashboard.api.dependencies import (
    get_notification_dispatcher,
    get_subscription_service,
    require_admin,
)
from rapper_dashboard.database import get_db
from rapper_dashboard.exceptions import NotFoundError
from rapper_dashboard.models.user import User
from rapper_dashboard.schemas.notification import AdminNotificationSend
from rapper_dashboard.services.auth import TokenIdentity, get_user_by_id
from rapper_dashboard.services.notification_service import NotificationDispatcher, build_payload
from rapper_dashboard.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


@router.get("/users/subscribed")
def get_subscribed_users(
    db: Annotated[Session, Depends(get_db)],
    registry: Annotated[SubscriptionService, Depends(get_subscription_service)],
) -> dict:
    """List users with at least one active push subscription."""
    counts = registry.active_counts_by_user()
    # Anonymous or foreign ids that are not user primary keys are skipped
    user_ids = [int(user_id) for user_id in counts if user_id.isdigit()]
    users = db.query(User).filter(User.id.in_(user_ids)).order_by(User.id).all() if user_ids else []

    users_data = [
        {
            "id": user.id,
            "username": user.username,
            "name": user.name,
            "email": user.email,
            "role": user.role,
            "subscriptionCount": counts[str(user.id)],
        }
        for user in users
    ]
    return {"success": True, "count": len(users_data), "users": users_data}


@router.post("/send-notification")
async def send_notification_to_user(
    notification: AdminNotificationSend,
    admin: Annotated[TokenIdentity, Depends(require_admin)],
    db: Annotated[Session, Depends(get_db)],
    registry: Annotated[SubscriptionService, Depends(get_subscription_service)],
    dispatcher: Annotated[NotificationDispatcher, Depends(get_notification_dispatcher)],
) -> dict:
    """Send a notification to every active device of one user."""
    user = get_user_by_id(db, int(notification.user_id)) if notification.user_id.isdigit() else None
    if not user:
        raise NotFoundError("Usuario no encontrado")

    subscriptions = registry.list_active(user_id=str(user.id))
    if not subscriptions:
        raise NotFoundError(f"El usuario {user.username} no tiene suscripciones activas")

    payload = build_payload(
        notification.title,
        notification.body,
        icon=notification.icon,
        tag="admin-notification",
    )
    result = await dispatcher.broadcast(subscriptions, payload)
    logger.info(f"Admin {admin.username} notified {user.username}: {result.sent}/{result.total}")

    return {
        "success": True,
        "message": f"Notificación enviada a {user.username}",
        "recipient": {"username": user.username, "name": user.name},
        "total": result.total,
        "sent": result.sent,
        "failed": result.failed,
    }
