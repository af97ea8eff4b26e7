"""Pydantic schemas for request/response validation."""

from rapper_dashboard.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from rapper_dashboard.schemas.cart import CartSyncRequest, CartSyncResponse, QueuedPurchase
from rapper_dashboard.schemas.notification import (
    NotificationSend,
    PushSubscriptionCreate,
    SubscribeRequest,
    UnsubscribeRequest,
)
from rapper_dashboard.schemas.purchase import (
    PurchaseCreate,
    PurchaseItem,
    PurchaseResponse,
    PurchaseStats,
    PurchaseSummary,
)

__all__ = [
    "AuthResponse",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "CartSyncRequest",
    "CartSyncResponse",
    "QueuedPurchase",
    "NotificationSend",
    "PushSubscriptionCreate",
    "SubscribeRequest",
    "UnsubscribeRequest",
    "PurchaseCreate",
    "PurchaseItem",
    "PurchaseResponse",
    "PurchaseStats",
    "PurchaseSummary",
]
