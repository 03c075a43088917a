"""
Append-only activity trail.

Rows are never updated or deleted. `user_id` and `resource_id` are plain
integers rather than foreign keys so that history survives the deletion of
the user or resource it refers to.
"""

import enum
from sqlalchemy import Column, Integer, String, Text, DateTime, Index

from secrets_manager.core.database import Base


class ActivityAction(str, enum.Enum):
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    VIEWED = "viewed"
    ASSIGNED = "assigned"


class ResourceType(str, enum.Enum):
    PROJECT = "project"
    SECRET = "secret"
    USER = "user"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, nullable=False, index=True)
    action = Column(String(20), nullable=False)
    resource_type = Column(String(20), nullable=False)
    resource_id = Column(Integer, nullable=False)
    details = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_activity_logs_resource", "resource_type", "resource_id"),
        Index("ix_activity_logs_timestamp", "timestamp"),
    )

    def __repr__(self):
        return (
            f"<ActivityLog(id={self.id}, user_id={self.user_id}, action='{self.action}', "
            f"resource={self.resource_type}:{self.resource_id})>"
        )
