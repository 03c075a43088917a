"""
Authentication-related API endpoints.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.core.database import get_db
from secrets_manager.core.rate_limit import limiter, AUTH_LIMIT
from secrets_manager.models.user import User
from secrets_manager.services.auth_service import auth_service, get_current_user, get_optional_user
from secrets_manager.schemas.auth import (
    UserLogin,
    UserRegister,
    UserResponse,
    TokenResponse,
    SessionResponse,
)
from secrets_manager.schemas.common import SuccessResponse
from secrets_manager.utils.exceptions import AuthenticationError

router = APIRouter()


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_LIMIT)
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a new regular user and sign them in."""
    user = await auth_service.create_user(
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
        full_name=user_data.full_name,
        db=db
    )
    return TokenResponse(
        access_token=auth_service.create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/login", response_model=TokenResponse)
@limiter.limit(AUTH_LIMIT)
async def login(
    request: Request,
    user_data: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login user and return access token."""
    user = await auth_service.authenticate_user(
        username=user_data.username,
        password=user_data.password,
        db=db
    )
    if not user:
        raise AuthenticationError("Incorrect username or password")

    return TokenResponse(
        access_token=auth_service.create_access_token(user.id),
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=SuccessResponse)
async def logout():
    """Logout user (client-side token removal)."""
    return SuccessResponse()


@router.get("/session", response_model=SessionResponse)
async def get_session(
    current_user: Optional[User] = Depends(get_optional_user)
):
    """Report whether the caller holds a valid token."""
    if current_user is None:
        return SessionResponse(is_authenticated=False)
    return SessionResponse(is_authenticated=True, user=UserResponse.model_validate(current_user))


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """Get current user information."""
    return UserResponse.model_validate(current_user)
