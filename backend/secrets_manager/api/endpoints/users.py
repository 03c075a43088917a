"""
User management API endpoints (global admins only).
"""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy import delete as sa_delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from secrets_manager.core.database import get_db
from secrets_manager.models.activity_log import ActivityAction, ResourceType
from secrets_manager.models.project import UserProjectRole
from secrets_manager.models.user import User
from secrets_manager.schemas.auth import UserCreate, UserResponse
from secrets_manager.schemas.common import SuccessResponse
from secrets_manager.services.activity_service import activity_recorder
from secrets_manager.services.auth_service import auth_service, require_admin
from secrets_manager.services.authorization import Actor
from secrets_manager.utils.exceptions import NotFoundError, ValidationError

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a user with an explicit global role."""
    user = await auth_service.create_user(
        username=user_data.username,
        email=user_data.email,
        password=user_data.password,
        full_name=user_data.full_name,
        role=user_data.role.value,
        db=db
    )
    await activity_recorder.record(
        db,
        Actor.from_user(current_user),
        ActivityAction.CREATED,
        ResourceType.USER,
        user.id,
        f"Created user: {user.username} with role: {user.role}",
    )
    return UserResponse.model_validate(user)


@router.get("", response_model=List[UserResponse])
async def list_users(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List all users."""
    result = await db.execute(select(User).order_by(User.id))
    return [UserResponse.model_validate(user) for user in result.scalars().all()]


@router.delete("/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a user and their project roles. Their activity history is kept."""
    if user_id == current_user.id:
        raise ValidationError("Cannot delete your own account", field="user_id")

    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("user", user_id)
    username = user.username

    await db.execute(sa_delete(UserProjectRole).where(UserProjectRole.user_id == user_id))
    await db.delete(user)
    await db.commit()
    logger.info(f"Deleted user {user_id} ({username})")

    await activity_recorder.record(
        db,
        Actor.from_user(current_user),
        ActivityAction.DELETED,
        ResourceType.USER,
        user_id,
        f"Deleted user: {username}",
    )
    return SuccessResponse()
