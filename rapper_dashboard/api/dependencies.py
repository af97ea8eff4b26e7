"""FastAPI dependencies for authentication, database and services."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from rapper_dashboard.config import get_settings
from rapper_dashboard.database import get_db
from rapper_dashboard.exceptions import AuthError
from rapper_dashboard.models.enums import UserRole
from rapper_dashboard.services.auth import TokenIdentity, decode_access_token, require_role
from rapper_dashboard.services.notification_service import NotificationDispatcher
from rapper_dashboard.services.purchase_service import PurchaseService
from rapper_dashboard.services.subscription_service import SubscriptionService

# Missing credentials are reported as 401 by get_current_identity, not by HTTPBearer
security = HTTPBearer(auto_error=False)


def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> TokenIdentity:
    """Get the identity carried by the bearer token."""
    if credentials is None or not credentials.credentials:
        raise AuthError()
    return decode_access_token(credentials.credentials)


def require_admin(
    identity: Annotated[TokenIdentity, Depends(get_current_identity)],
) -> TokenIdentity:
    """Allow only identities with the admin role."""
    return require_role(identity, UserRole.ADMIN)


def get_purchase_service(
    db: Annotated[Session, Depends(get_db)],
) -> PurchaseService:
    """Get purchase service with dependencies."""
    return PurchaseService(db)


def get_subscription_service(
    db: Annotated[Session, Depends(get_db)],
) -> SubscriptionService:
    """Get subscription registry with dependencies."""
    return SubscriptionService(db)


def get_notification_dispatcher(
    registry: Annotated[SubscriptionService, Depends(get_subscription_service)],
) -> NotificationDispatcher:
    """Get notification dispatcher bound to the configured VAPID keys."""
    return NotificationDispatcher(get_settings().vapid_config, registry)
