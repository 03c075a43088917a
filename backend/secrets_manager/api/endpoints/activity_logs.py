"""
Activity trail endpoints.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.core.database import get_db
from secrets_manager.models.user import User
from secrets_manager.schemas.activity_log import ActivityLogResponse
from secrets_manager.services.activity_service import activity_recorder
from secrets_manager.services.auth_service import get_current_user

router = APIRouter()


@router.get("", response_model=List[ActivityLogResponse], response_model_exclude_none=True)
async def list_activity(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The whole trail for global admins, otherwise the caller's own actions."""
    if current_user.is_admin():
        return await activity_recorder.get_logs(db, limit=limit)
    return await activity_recorder.get_user_logs(db, current_user.id, limit=limit)
