"""SQLAlchemy models."""

from rapper_dashboard.models.purchase import Purchase
from rapper_dashboard.models.push_subscription import PushSubscription
from rapper_dashboard.models.user import User

__all__ = [
    "User",
    "Purchase",
    "PushSubscription",
]
