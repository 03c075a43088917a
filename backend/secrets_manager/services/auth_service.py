"""
Authentication service for user management and JWT session tokens.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
import hashlib
import bcrypt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from jose import JWTError, jwt
from loguru import logger

from secrets_manager.core.database import get_db
from secrets_manager.core.config import settings
from secrets_manager.models.user import User, GlobalRole
from secrets_manager.utils.exceptions import (
    AuthenticationError,
    ConflictError,
    PermissionDeniedError,
)

# Bcrypt only looks at the first 72 bytes of its input
BCRYPT_MAX_BYTES = 72

bearer_scheme = HTTPBearer(auto_error=False)


class AuthService:
    """Service for authentication and authorization of accounts."""

    def _password_bytes(self, password: str) -> bytes:
        password_bytes = password.encode('utf-8')
        if len(password_bytes) > BCRYPT_MAX_BYTES:
            # Pre-hash with SHA256 to reduce to fixed 64 bytes
            password_bytes = hashlib.sha256(password_bytes).hexdigest().encode('utf-8')
        return password_bytes

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt."""
        hashed = bcrypt.hashpw(self._password_bytes(password), bcrypt.gensalt())
        return hashed.decode('utf-8')

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        try:
            return bcrypt.checkpw(self._password_bytes(plain_password), hashed_password.encode('utf-8'))
        except ValueError:
            # Malformed hash in the database
            logger.warning("Stored password hash could not be parsed")
            return False

    def create_access_token(self, user_id: int) -> str:
        """Create a JWT access token."""
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode = {
            "sub": str(user_id),
            "exp": expire,
            "type": "access"
        }
        return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

    def decode_access_token(self, token: str) -> int:
        """Return the user id carried by a token, or raise AuthenticationError."""
        try:
            payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        except JWTError:
            raise AuthenticationError()

        subject = payload.get("sub")
        if subject is None or payload.get("type") != "access":
            raise AuthenticationError()
        try:
            return int(subject)
        except ValueError:
            raise AuthenticationError()

    async def get_user_by_username(self, username: str, db: AsyncSession) -> Optional[User]:
        """Get user by username."""
        result = await db.execute(
            select(User).where(User.username == username)
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str, db: AsyncSession) -> Optional[User]:
        """Get user by email."""
        result = await db.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int, db: AsyncSession) -> Optional[User]:
        """Get user by ID."""
        return await db.get(User, user_id)

    async def create_user(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
        full_name: str,
        role: str = GlobalRole.USER.value,
    ) -> User:
        """Create a new user. Raises ConflictError on duplicate username or email."""
        if await self.get_user_by_username(username, db):
            raise ConflictError("Username already exists")

        if await self.get_user_by_email(email, db):
            raise ConflictError("Email already exists")

        user = User(
            username=username,
            email=email,
            hashed_password=self.hash_password(password),
            full_name=full_name,
            is_active=True,
            role=role,
        )

        db.add(user)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            await db.rollback()
            raise ConflictError("Username or email already exists")
        await db.refresh(user)

        logger.info(f"Created new user: {username} (role={role})")
        return user

    async def authenticate_user(
        self,
        username: str,
        password: str,
        db: AsyncSession
    ) -> Optional[User]:
        """Authenticate a user with username and password."""
        user = await self.get_user_by_username(username, db)

        if not user:
            return None

        if not user.is_active:
            return None

        if not self.verify_password(password, user.hashed_password):
            return None

        return user

    async def resolve_user(self, token: str, db: AsyncSession) -> User:
        """Load the active user a token belongs to."""
        user = await self.get_user_by_id(self.decode_access_token(token), db)
        if user is None or not user.is_active:
            raise AuthenticationError()
        return user

    async def ensure_bootstrap_admin(self, db: AsyncSession) -> Optional[User]:
        """Create the configured first-run global admin if it does not exist yet."""
        if not (settings.BOOTSTRAP_ADMIN_USERNAME and settings.BOOTSTRAP_ADMIN_PASSWORD
                and settings.BOOTSTRAP_ADMIN_EMAIL):
            return None

        existing = await self.get_user_by_username(settings.BOOTSTRAP_ADMIN_USERNAME, db)
        if existing:
            return existing

        logger.info(f"Bootstrapping global admin '{settings.BOOTSTRAP_ADMIN_USERNAME}'")
        return await self.create_user(
            username=settings.BOOTSTRAP_ADMIN_USERNAME,
            email=settings.BOOTSTRAP_ADMIN_EMAIL,
            password=settings.BOOTSTRAP_ADMIN_PASSWORD,
            full_name="Administrator",
            role=GlobalRole.ADMIN.value,
            db=db,
        )


# Global instance for dependency injection
auth_service = AuthService()


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Dependency for getting current user."""
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    return await auth_service.resolve_user(credentials.credentials, db)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """Dependency that returns the current user, or None when unauthenticated."""
    if credentials is None:
        return None
    try:
        return await auth_service.resolve_user(credentials.credentials, db)
    except AuthenticationError:
        return None


async def require_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    """Dependency for requiring global admin privileges."""
    if not current_user.is_admin():
        raise PermissionDeniedError("Admin privileges required")
    return current_user
