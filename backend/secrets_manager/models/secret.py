"""
Secret metadata model.

The authoritative value of a secret lives in the external credential store at
`ssm_path`; the `value` column mirrors the last value written through this
service.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey

from secrets_manager.core.database import Base
from secrets_manager.models.user import utcnow


class Secret(Base):
    __tablename__ = "secrets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)

    # Assigned once at creation, never recomputed on rename
    ssm_path = Column(String(1024), nullable=False, unique=True)
    is_encrypted = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<Secret(id={self.id}, name='{self.name}', project_id={self.project_id})>"
