"""Offline cart sync endpoint used by the service worker."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request, status
from fastapi.responses import JSONResponse

from rapper_dashboard.api.dependencies import get_purchase_service
from rapper_dashboard.config import get_settings
from rapper_dashboard.exceptions import StorageError, ValidationError
from rapper_dashboard.schemas.cart import (
    CartSyncRequest,
    CartSyncResponse,
    SyncedPurchase,
    SyncError,
)
from rapper_dashboard.services.purchase_service import PurchaseService, SyncResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cart", tags=["cart"])


def build_sync_response(result: SyncResult, include_errors: bool) -> CartSyncResponse:
    processed = len(result.processed)
    return CartSyncResponse(
        success=result.success,
        message=(
            f"{processed} compras sincronizadas exitosamente."
            if result.success
            else "No se pudo procesar ningún elemento de la cola."
        ),
        processed_count=processed,
        total_received=result.total_received,
        error_count=len(result.errors),
        purchases=[SyncedPurchase(**summary) for summary in result.processed],
        errors=(
            [SyncError(item=e.item, error=e.error) for e in result.errors]
            if include_errors and result.errors
            else None
        ),
    )


@router.post("/sync")
def sync_cart(
    sync_data: CartSyncRequest,
    request: Request,
    service: Annotated[PurchaseService, Depends(get_purchase_service)],
    x_user_id: Annotated[str | None, Header()] = None,
):
    """Replay the offline purchase queue.

    200 when at least one entry was stored, 400 when none could be, and 500
    when the store is unavailable so the service worker keeps its queue and
    retries later.
    """
    main_user_id = sync_data.user_id or x_user_id
    logger.info(f"[Cart Sync] Sync started for user: {main_user_id or 'unknown'}")

    if sync_data.items is None:
        raise ValidationError("Formato de datos de carrito no válido.")

    if not sync_data.items:
        return {
            "success": True,
            "message": "Cola de sincronización vacía, no se requiere acción.",
            "processedCount": 0,
            "totalReceived": 0,
            "errorCount": 0,
            "purchases": [],
        }

    logger.info(f"[Cart Sync] Received {len(sync_data.items)} queued entries")
    result = service.reconcile_sync_batch(
        sync_data.items,
        expected_user_id=main_user_id,
        ip=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )

    if result.storage_unavailable:
        raise StorageError("Error interno del servidor al procesar la cola.")

    response = build_sync_response(result, include_errors=get_settings().is_development)
    status_code = status.HTTP_200_OK if result.success else status.HTTP_400_BAD_REQUEST
    if not result.success:
        logger.warning(
            f"[Cart Sync] No purchase processed out of {result.total_received} entries received"
        )
    return JSONResponse(
        status_code=status_code,
        content=response.model_dump(mode="json", by_alias=True, exclude_none=True),
    )
