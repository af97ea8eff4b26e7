"""Application error taxonomy.

Every error carries the HTTP status it maps to; the handlers registered in
``rapper_dashboard.main`` turn them into ``{"success": false, "message": ...}``
responses.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Error interno del servidor"

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed, missing or inconsistent input."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Datos inválidos"


class ConflictError(AppError):
    """Duplicate value for a unique key."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "El recurso ya existe"


class AuthError(AppError):
    """Missing authentication credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Token no proporcionado"


class InvalidTokenError(AuthError):
    """Token signature, format or expiry check failed."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Token inválido o expirado"


class ForbiddenError(AuthError):
    """Authenticated identity lacks the required role."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Acceso denegado. Se requieren permisos de administrador."


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Recurso no encontrado"


class StorageError(AppError):
    """Backing store unavailable."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Base de datos no disponible"


class DeliveryError(AppError):
    """Push endpoint unreachable.

    Never turned into a response on its own: the dispatcher records it per
    subscription and reports only aggregate counts.
    """

    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Error al entregar la notificación"

    def __init__(self, message: str | None = None, *, response_status: int | None = None) -> None:
        super().__init__(message)
        self.response_status = response_status

    @property
    def endpoint_gone(self) -> bool:
        """The push service reported the endpoint as permanently removed."""
        return self.response_status in (404, 410)
