"""
Activity recorder.

Appends one row per successful mutation or access and serves the trail back
newest-first, enriched with the acting user and, when it still exists, the
resource the entry refers to.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

from loguru import logger
from sqlalchemy import and_, desc, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.models.activity_log import ActivityAction, ActivityLog, ResourceType
from secrets_manager.models.project import Project
from secrets_manager.models.secret import Secret
from secrets_manager.models.user import User
from secrets_manager.schemas.activity_log import ActivityLogResponse, ResourceSnapshot
from secrets_manager.schemas.auth import UserSummary
from secrets_manager.services.authorization import Actor


def _value(item: Union[str, ActivityAction, ResourceType]) -> str:
    return item.value if hasattr(item, "value") else str(item)


class ActivityRecorder:
    """Append-only writer and enriching reader for the activity trail."""

    async def record(
        self,
        db: AsyncSession,
        actor: Actor,
        action: Union[ActivityAction, str],
        resource_type: Union[ResourceType, str],
        resource_id: int,
        details: Optional[str] = None,
    ) -> ActivityLog:
        """
        Append an activity entry stamped with the server's current UTC time.

        Args:
            db: Database session
            actor: The user who performed the operation
            action: One of ActivityAction
            resource_type: One of ResourceType
            resource_id: Id of the project, secret or user acted on
            details: Free-text description

        Returns:
            The stored ActivityLog row
        """
        action = ActivityAction(_value(action))
        resource_type = ResourceType(_value(resource_type))

        entry = ActivityLog(
            user_id=actor.id,
            action=action.value,
            resource_type=resource_type.value,
            resource_id=resource_id,
            details=details,
            timestamp=datetime.now(timezone.utc),
        )
        db.add(entry)
        await db.commit()
        await db.refresh(entry)

        logger.info(
            f"Activity: user {actor.id} {action.value} {resource_type.value}:{resource_id}"
        )
        return entry

    def _newest_first(self, query, limit: Optional[int]):
        query = query.order_by(desc(ActivityLog.timestamp), desc(ActivityLog.id))
        if limit:
            query = query.limit(limit)
        return query

    async def get_logs(self, db: AsyncSession, limit: Optional[int] = None) -> List[ActivityLogResponse]:
        """All entries, newest first."""
        result = await db.execute(self._newest_first(select(ActivityLog), limit))
        return await self.enrich(db, list(result.scalars().all()))

    async def get_user_logs(
        self,
        db: AsyncSession,
        user_id: int,
        limit: Optional[int] = None,
    ) -> List[ActivityLogResponse]:
        """Entries performed by one user, newest first."""
        query = select(ActivityLog).where(ActivityLog.user_id == user_id)
        result = await db.execute(self._newest_first(query, limit))
        return await self.enrich(db, list(result.scalars().all()))

    async def get_project_logs(
        self,
        db: AsyncSession,
        project_id: int,
        limit: Optional[int] = None,
    ) -> List[ActivityLogResponse]:
        """
        Entries on the project itself plus entries on secrets that currently
        belong to it. History of deleted secrets drops out of this view.
        """
        current_secret_ids = select(Secret.id).where(Secret.project_id == project_id)
        query = select(ActivityLog).where(
            or_(
                and_(
                    ActivityLog.resource_type == ResourceType.PROJECT.value,
                    ActivityLog.resource_id == project_id,
                ),
                and_(
                    ActivityLog.resource_type == ResourceType.SECRET.value,
                    ActivityLog.resource_id.in_(current_secret_ids),
                ),
            )
        )
        result = await db.execute(self._newest_first(query, limit))
        return await self.enrich(db, list(result.scalars().all()))

    async def enrich(self, db: AsyncSession, logs: List[ActivityLog]) -> List[ActivityLogResponse]:
        """Attach user and resource snapshots, loading each referenced table once."""
        if not logs:
            return []

        def ids_for(resource_type: ResourceType) -> set:
            return {log.resource_id for log in logs if log.resource_type == resource_type.value}

        user_ids = {log.user_id for log in logs} | ids_for(ResourceType.USER)
        users = await self._load(db, User, user_ids)
        projects = await self._load(db, Project, ids_for(ResourceType.PROJECT))
        secrets = await self._load(db, Secret, ids_for(ResourceType.SECRET))

        enriched = []
        for log in logs:
            actor = users.get(log.user_id)
            enriched.append(ActivityLogResponse(
                id=log.id,
                user_id=log.user_id,
                action=log.action,
                resource_type=log.resource_type,
                resource_id=log.resource_id,
                details=log.details,
                timestamp=log.timestamp,
                user=UserSummary(id=actor.id, username=actor.username) if actor else None,
                resource=self._snapshot(log, users, projects, secrets),
            ))
        return enriched

    async def _load(self, db: AsyncSession, model, ids: set) -> Dict[int, object]:
        if not ids:
            return {}
        result = await db.execute(select(model).where(model.id.in_(ids)))
        return {row.id: row for row in result.scalars().all()}

    def _snapshot(self, log: ActivityLog, users, projects, secrets) -> Optional[ResourceSnapshot]:
        if log.resource_type == ResourceType.PROJECT.value:
            project = projects.get(log.resource_id)
            if project:
                return ResourceSnapshot(
                    id=project.id, name=project.name, project_id=project.id,
                    description=project.description,
                )
        elif log.resource_type == ResourceType.SECRET.value:
            secret = secrets.get(log.resource_id)
            if secret:
                # Never include the secret value in the audit view
                return ResourceSnapshot(
                    id=secret.id, name=secret.name, project_id=secret.project_id,
                    description=secret.description,
                )
        elif log.resource_type == ResourceType.USER.value:
            user = users.get(log.resource_id)
            if user:
                return ResourceSnapshot(id=user.id, name=user.username)
        return None


activity_recorder = ActivityRecorder()
