"""
Project and membership schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from secrets_manager.models.project import ProjectRole
from secrets_manager.schemas.auth import UserSummary


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=2000)


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None


class MembershipAssign(BaseModel):
    """Grant (or overwrite) a user's role in a project."""
    user_id: int
    project_id: int
    role: ProjectRole = ProjectRole.VIEWER


class MembershipResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    project_id: int
    role: str


class ProjectMemberResponse(MembershipResponse):
    user: Optional[UserSummary] = None
