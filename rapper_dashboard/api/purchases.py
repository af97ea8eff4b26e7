"""Purchase API endpoints.

Purchases are accepted without a token so the service worker can replay
them without a session.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from rapper_dashboard.api.dependencies import get_purchase_service
from rapper_dashboard.models.enums import PurchaseStatus
from rapper_dashboard.schemas.purchase import (
    PurchaseCreate,
    PurchaseResponse,
    PurchaseStats,
    PurchaseSummary,
)
from rapper_dashboard.services.purchase_service import PurchaseService

router = APIRouter(prefix="/api/purchases", tags=["purchases"])


@router.post("", status_code=status.HTTP_201_CREATED)
def create_purchase(
    purchase_data: PurchaseCreate,
    request: Request,
    service: Annotated[PurchaseService, Depends(get_purchase_service)],
) -> dict:
    """Record a new purchase (direct or replayed from the offline queue)."""
    purchase = service.record_purchase(
        user_id=purchase_data.user_id,
        items=purchase_data.items,
        total=purchase_data.total,
        timestamp=purchase_data.timestamp,
        synced_at=purchase_data.synced_at,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    summary = PurchaseSummary(
        id=purchase.id,
        user_id=purchase.user_id,
        total=purchase.total,
        item_count=purchase.item_count,
        status=purchase.status,
        created_at=purchase.created_at,
        source=purchase.source,
    )
    return {
        "success": True,
        "message": "Compra registrada exitosamente",
        "data": {"purchase": summary.model_dump(mode="json", by_alias=True)},
    }


@router.get("")
def list_purchases(
    service: Annotated[PurchaseService, Depends(get_purchase_service)],
    user_id: Annotated[str | None, Query(alias="userId")] = None,
    purchase_status: Annotated[PurchaseStatus | None, Query(alias="status")] = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
    skip: Annotated[int | None, Query(ge=0)] = None,
) -> dict:
    """List purchases, newest first."""
    purchases = service.list_purchases(
        user_id=user_id, limit=limit, skip=skip, status=purchase_status
    )
    return {
        "success": True,
        "data": [
            PurchaseResponse.model_validate(p).model_dump(mode="json", by_alias=True)
            for p in purchases
        ],
    }


@router.get("/stats/{user_id}")
def get_purchase_stats(
    user_id: str,
    service: Annotated[PurchaseService, Depends(get_purchase_service)],
) -> dict:
    """Get spending statistics for a user."""
    stats = PurchaseStats(**service.get_stats(user_id))
    return {"success": True, "stats": stats.model_dump(by_alias=True)}


@router.get("/{purchase_id}")
def get_purchase(
    purchase_id: int,
    service: Annotated[PurchaseService, Depends(get_purchase_service)],
) -> dict:
    """Get a specific purchase."""
    purchase = service.get_purchase(purchase_id)
    return {
        "success": True,
        "data": PurchaseResponse.model_validate(purchase).model_dump(mode="json", by_alias=True),
    }
