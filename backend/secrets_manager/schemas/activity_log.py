"""
Activity log schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from secrets_manager.schemas.auth import UserSummary


class ResourceSnapshot(BaseModel):
    """Read-time view of the resource a log entry refers to."""
    id: int
    name: str
    project_id: Optional[int] = None
    description: Optional[str] = None


class ActivityLogResponse(BaseModel):
    id: int
    user_id: int
    action: str
    resource_type: str
    resource_id: int
    details: Optional[str] = None
    timestamp: datetime
    user: Optional[UserSummary] = None
    resource: Optional[ResourceSnapshot] = None
