"""
Project and project membership models.
"""

import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint

from secrets_manager.core.database import Base
from secrets_manager.models.user import utcnow


class ProjectRole(str, enum.Enum):
    """Role a user holds inside a single project."""
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class Project(Base):
    """A named group of secrets."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}')>"


class UserProjectRole(Base):
    """At most one role per (user, project); re-assigning overwrites the role."""

    __tablename__ = "user_projects"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=ProjectRole.VIEWER.value)

    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_user_projects_user_project"),
    )

    def __repr__(self):
        return f"<UserProjectRole(user_id={self.user_id}, project_id={self.project_id}, role='{self.role}')>"
