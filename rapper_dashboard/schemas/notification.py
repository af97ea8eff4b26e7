"""Notification-related Pydantic schemas."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from rapper_dashboard.schemas.base import CamelModel


class SubscriptionKeys(BaseModel):
    """Client encryption keys for one push endpoint."""

    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushSubscriptionCreate(BaseModel):
    """Browser PushSubscription as serialized by ``subscription.toJSON()``."""

    model_config = ConfigDict(extra="ignore")

    endpoint: str = Field(..., min_length=1)
    keys: SubscriptionKeys


class SubscribeRequest(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    subscription: PushSubscriptionCreate
    user_id: str | None = None
    origin: str | None = None


class UnsubscribeRequest(BaseModel):
    endpoint: str = Field(..., min_length=1)


class NotificationSend(BaseModel):
    """Notification content for a broadcast."""

    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    icon: str | None = None
    badge: str | None = None
    data: dict[str, Any] | None = None
    tag: str | None = None


class AdminNotificationSend(CamelModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    icon: str | None = None


class SubscriptionStats(BaseModel):
    total: int
    active: int
    inactive: int
