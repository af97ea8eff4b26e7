"""Authentication API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rapper_dashboard.api.dependencies import get_current_identity
from rapper_dashboard.database import get_db
from rapper_dashboard.exceptions import AuthError, NotFoundError
from rapper_dashboard.schemas.auth import (
    AuthResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    VerifyResponse,
)
from rapper_dashboard.services.auth import (
    TokenIdentity,
    authenticate_user,
    create_access_token,
    create_user,
    get_user_by_id,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserRegister,
    db: Annotated[Session, Depends(get_db)],
):
    """Register a new user."""
    user = create_user(db, user_data.username, user_data.name, user_data.email, user_data.password)

    return AuthResponse(
        message="Usuario registrado exitosamente",
        token=create_access_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(
    credentials: UserLogin,
    db: Annotated[Session, Depends(get_db)],
):
    """Login with username and password."""
    user = authenticate_user(db, credentials.username, credentials.password)

    if not user:
        logger.info(f"Failed login attempt for {credentials.username}")
        raise AuthError("Credenciales inválidas")

    return AuthResponse(
        message="Login exitoso",
        token=create_access_token(user),
        user=UserResponse.model_validate(user),
    )


@router.get("/verify", response_model=VerifyResponse)
def verify(
    identity: Annotated[TokenIdentity, Depends(get_current_identity)],
    db: Annotated[Session, Depends(get_db)],
):
    """Return the user behind a still-valid token."""
    user = get_user_by_id(db, identity.user_id)
    if not user:
        raise NotFoundError("Usuario no encontrado")

    return VerifyResponse(user=UserResponse.model_validate(user))
