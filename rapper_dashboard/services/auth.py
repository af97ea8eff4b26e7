"""Authentication service for JWT and password handling."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rapper_dashboard.config import get_settings
from rapper_dashboard.exceptions import ConflictError, ForbiddenError, InvalidTokenError
from rapper_dashboard.models.enums import UserRole
from rapper_dashboard.models.user import User

logger = logging.getLogger(__name__)
settings = get_settings()

USERNAME_TAKEN = "El nombre de usuario ya está en uso"
EMAIL_TAKEN = "El email ya está registrado"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


@dataclass(frozen=True)
class TokenIdentity:
    """Identity claims carried by an access token."""

    user_id: int
    username: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(user: User, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.jwt_expiration_minutes)
    expire = datetime.now(UTC) + expires_delta
    to_encode = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "role": user.role,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> TokenIdentity:
    """Decode and validate a JWT token.

    Raises InvalidTokenError when the signature, format or expiry check fails.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise InvalidTokenError() from e

    try:
        return TokenIdentity(
            user_id=int(payload["sub"]),
            username=payload["username"],
            email=payload["email"],
            role=payload["role"],
        )
    except (KeyError, TypeError, ValueError) as e:
        raise InvalidTokenError() from e


def require_role(identity: TokenIdentity, role: UserRole) -> TokenIdentity:
    """Raise ForbiddenError unless the identity holds the given role."""
    if identity.role != role.value:
        raise ForbiddenError()
    return identity


def authenticate_user(db: Session, username: str, password: str) -> User | None:
    """Authenticate a user by username and password, recording the login."""
    user = get_user_by_username(db, username)
    if not user:
        return None
    if not verify_password(password, user.password_hash):
        return None
    user.last_login = datetime.now(UTC)
    db.commit()
    db.refresh(user)
    return user


def get_user_by_username(db: Session, username: str) -> User | None:
    """Get a user by username."""
    return db.query(User).filter(User.username == username).first()


def get_user_by_id(db: Session, user_id: int) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def _find_conflict(db: Session, username: str, email: str) -> ConflictError | None:
    existing = db.query(User).filter(or_(User.username == username, User.email == email)).first()
    if existing is None:
        return None
    if existing.username == username:
        return ConflictError(USERNAME_TAKEN)
    return ConflictError(EMAIL_TAKEN)


def create_user(
    db: Session,
    username: str,
    name: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """Create a new user.

    Raises ConflictError if the username or email is already taken.
    """
    conflict = _find_conflict(db, username, email)
    if conflict:
        raise conflict

    user = User(
        username=username,
        name=name,
        email=email,
        password_hash=get_password_hash(password),
        role=role.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # A concurrent registration took the username or email after the check
        db.rollback()
        logger.warning(f"Registration race lost for {username}")
        raise _find_conflict(db, username, email) or ConflictError(USERNAME_TAKEN)
    db.refresh(user)
    logger.info(f"User registered: {user.username} ({user.role})")
    return user
