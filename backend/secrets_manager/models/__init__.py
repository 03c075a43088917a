"""
Database models for the Secrets Manager application.
"""

from .user import User, GlobalRole
from .project import Project, ProjectRole, UserProjectRole
from .secret import Secret
from .activity_log import ActivityLog, ActivityAction, ResourceType

__all__ = [
    "User",
    "GlobalRole",
    "Project",
    "ProjectRole",
    "UserProjectRole",
    "Secret",
    "ActivityLog",
    "ActivityAction",
    "ResourceType",
]
