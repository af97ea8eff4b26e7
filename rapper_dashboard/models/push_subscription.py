"""Push subscription model for web push notifications."""

from datetime import UTC, datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String, func

from rapper_dashboard.database import Base
from rapper_dashboard.models.mixins import TimestampMixin


class PushSubscription(Base, TimestampMixin):
    """Stores web push notification subscriptions, keyed by endpoint."""

    __tablename__ = "push_subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    endpoint = Column(String(1000), unique=True, nullable=False, index=True)
    p256dh_key = Column(String(200), nullable=False)
    auth_key = Column(String(100), nullable=False)
    # Anonymous subscriptions are allowed
    user_id = Column(String(255), nullable=True, index=True)
    user_agent = Column(String(500), nullable=False, default="")
    origin = Column(String(255), nullable=False, default="unknown", index=True)
    active = Column(Boolean, nullable=False, default=True, index=True)
    last_used = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    @property
    def keys(self) -> dict[str, str]:
        return {"p256dh": self.p256dh_key, "auth": self.auth_key}

    def subscription_info(self) -> dict:
        """Subscription in the shape pywebpush expects."""
        return {"endpoint": self.endpoint, "keys": self.keys}

    def deactivate(self) -> None:
        self.active = False

    def touch(self) -> None:
        self.last_used = datetime.now(UTC)
