"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from rapper_dashboard.api import admin, auth, cart, notifications, purchases
from rapper_dashboard.config import get_settings
from rapper_dashboard.database import Database
from rapper_dashboard.exceptions import AppError, StorageError

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database at startup and release it at shutdown."""
    if not settings.database_url:
        logger.error("DATABASE_URL is not set; create a .env file with DATABASE_URL=...")
        raise StorageError("DATABASE_URL no está definida")

    database = Database(settings.database_url)
    database.connect()
    if settings.is_development:
        database.create_all()
    if not settings.vapid_config.is_configured:
        logger.warning("VAPID keys not configured, push notifications disabled")
    app.state.database = database
    try:
        yield
    finally:
        database.close()


app = FastAPI(
    title="Rapper Dashboard API",
    description="Music store PWA backend with offline purchase sync and web push",
    version="0.1.0",
    lifespan=lifespan,
)

if settings.allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"{request.method} {request.url.path}")
    return await call_next(request)


def error_response(status_code: int, message: str, error: Exception | None = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None and settings.is_development:
        content["error"] = str(error)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return error_response(exc.status_code, exc.message, exc.__cause__)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return error_response(exc.status_code, "Ruta no encontrada")
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [".".join(str(part) for part in err["loc"][1:]) for err in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "message": "Datos inválidos o incompletos",
            "fields": [field for field in fields if field],
        },
    )


@app.exception_handler(SQLAlchemyError)
async def handle_database_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.method} {request.url.path}")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Error de base de datos", exc)


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "Error interno del servidor", exc
    )


# Register routers
app.include_router(auth.router)
app.include_router(purchases.router)
app.include_router(cart.router)
app.include_router(notifications.router)
app.include_router(admin.router)


@app.get("/health")
@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "success": True,
        "status": "OK",
        "message": "Rapper Dashboard API funcionando",
        "timestamp": datetime.now(UTC).isoformat(),
        "environment": settings.environment,
        "features": {"pushNotifications": True, "offlineSync": True},
    }
