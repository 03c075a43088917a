"""
Project and membership management.
"""

from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy import delete as sa_delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.models.activity_log import ActivityAction, ResourceType
from secrets_manager.models.project import Project, ProjectRole, UserProjectRole
from secrets_manager.models.user import User
from secrets_manager.schemas.project import ProjectCreate, ProjectUpdate
from secrets_manager.services.activity_service import ActivityRecorder, activity_recorder
from secrets_manager.services.authorization import Actor
from secrets_manager.services.secret_manager import SecretManager
from secrets_manager.utils.exceptions import NotFoundError


class ProjectService:
    """Service for projects and per-project roles."""

    async def get_project(self, db: AsyncSession, project_id: int) -> Project:
        project = await db.get(Project, project_id)
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    async def list_projects(self, db: AsyncSession, actor: Actor) -> List[Project]:
        """Every project for global admins, otherwise the projects the actor belongs to."""
        query = select(Project).order_by(Project.id)
        if not actor.is_global_admin:
            query = query.join(UserProjectRole, UserProjectRole.project_id == Project.id).where(
                UserProjectRole.user_id == actor.id
            )
        result = await db.execute(query)
        return list(result.scalars().all())

    async def create_project(self, db: AsyncSession, actor: Actor, payload: ProjectCreate) -> Project:
        """Insert the project and make its creator a project admin in one commit."""
        project = Project(name=payload.name, description=payload.description)
        db.add(project)
        await db.flush()

        db.add(UserProjectRole(user_id=actor.id, project_id=project.id, role=ProjectRole.ADMIN.value))
        await db.commit()
        await db.refresh(project)

        logger.info(f"Created project {project.id} '{project.name}' owned by user {actor.id}")
        return project

    async def update_project(self, db: AsyncSession, project: Project, payload: ProjectUpdate) -> Project:
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("name") is not None:
            project.name = changes["name"]
        if "description" in changes:
            project.description = changes["description"]

        await db.commit()
        await db.refresh(project)
        logger.info(f"Updated project {project.id}")
        return project

    async def delete_project(
        self,
        db: AsyncSession,
        actor: Actor,
        project: Project,
        secret_manager: SecretManager,
        recorder: ActivityRecorder = activity_recorder,
    ) -> int:
        """
        Delete every secret through the secret manager, then the memberships
        and the project. Each removed secret is recorded as soon as it is
        gone. Stops at the first failing secret; secrets already removed stay
        removed.

        Returns:
            Number of secrets deleted
        """
        project_id, project_name = project.id, project.name
        secrets = await secret_manager.list_secrets(db, [project_id])
        for secret in secrets:
            secret_id, secret_name = secret.id, secret.name
            await secret_manager.delete(db, secret)
            await recorder.record(
                db, actor, ActivityAction.DELETED, ResourceType.SECRET, secret_id,
                f"Deleted secret: {secret_name} with project: {project_name}",
            )

        await db.execute(sa_delete(UserProjectRole).where(UserProjectRole.project_id == project_id))
        await db.execute(sa_delete(Project).where(Project.id == project_id))
        await db.commit()

        logger.info(f"Deleted project {project_id} with {len(secrets)} secret(s)")
        return len(secrets)

    async def get_membership(self, db: AsyncSession, user_id: int, project_id: int) -> Optional[UserProjectRole]:
        result = await db.execute(
            select(UserProjectRole).where(
                UserProjectRole.user_id == user_id,
                UserProjectRole.project_id == project_id,
            )
        )
        return result.scalar_one_or_none()

    async def assign_role(
        self,
        db: AsyncSession,
        user_id: int,
        project_id: int,
        role: ProjectRole,
    ) -> UserProjectRole:
        """Grant a role, overwriting any role the user already holds in the project."""
        if await db.get(User, user_id) is None:
            raise NotFoundError("user", user_id)
        await self.get_project(db, project_id)

        membership = await self.get_membership(db, user_id, project_id)
        if membership:
            membership.role = ProjectRole(role).value
        else:
            membership = UserProjectRole(user_id=user_id, project_id=project_id, role=ProjectRole(role).value)
            db.add(membership)

        await db.commit()
        await db.refresh(membership)
        logger.info(f"User {user_id} now has role '{membership.role}' in project {project_id}")
        return membership

    async def change_role(
        self,
        db: AsyncSession,
        user_id: int,
        project_id: int,
        role: ProjectRole,
    ) -> UserProjectRole:
        """Change the role of an existing member."""
        membership = await self.get_membership(db, user_id, project_id)
        if membership is None:
            raise NotFoundError("membership", f"user {user_id} in project {project_id}")

        membership.role = ProjectRole(role).value
        await db.commit()
        await db.refresh(membership)
        logger.info(f"Changed role of user {user_id} in project {project_id} to '{membership.role}'")
        return membership

    async def remove_member(self, db: AsyncSession, user_id: int, project_id: int) -> UserProjectRole:
        """Remove a user's role row. The last project admin may be removed too."""
        membership = await self.get_membership(db, user_id, project_id)
        if membership is None:
            raise NotFoundError("membership", f"user {user_id} in project {project_id}")

        await db.delete(membership)
        await db.commit()
        logger.info(f"Removed user {user_id} from project {project_id}")
        return membership

    async def list_members(self, db: AsyncSession, project_id: int) -> List[Tuple[UserProjectRole, Optional[User]]]:
        result = await db.execute(
            select(UserProjectRole, User)
            .outerjoin(User, User.id == UserProjectRole.user_id)
            .where(UserProjectRole.project_id == project_id)
            .order_by(UserProjectRole.id)
        )
        return [(membership, user) for membership, user in result.all()]


project_service = ProjectService()
