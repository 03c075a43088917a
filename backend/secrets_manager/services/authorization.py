"""
Project-scoped authorization.

`authorize` is a pure decision function: global admins are allowed
everything, everyone else needs a membership row in the resource's project
whose role is in the action's required set. `AuthorizationService` adds the
membership lookup and turns a deny into `PermissionDeniedError`.
"""

import enum
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Union

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.models.activity_log import ResourceType
from secrets_manager.models.project import ProjectRole, UserProjectRole
from secrets_manager.models.user import GlobalRole, User
from secrets_manager.utils.exceptions import PermissionDeniedError


class Action(str, enum.Enum):
    """Operations that are checked against a project membership."""
    VIEW_PROJECT = "view_project"
    LIST_SECRETS = "list_secrets"
    VIEW_SECRET = "view_secret"
    VIEW_MEMBERS = "view_members"
    VIEW_ACTIVITY = "view_activity"
    CREATE_SECRET = "create_secret"
    UPDATE_SECRET = "update_secret"
    DELETE_SECRET = "delete_secret"
    MANAGE_MEMBERS = "manage_members"
    UPDATE_PROJECT = "update_project"
    DELETE_PROJECT = "delete_project"


class Decision(str, enum.Enum):
    ALLOW = "allow"
    DENY = "deny"


ANY_MEMBER: FrozenSet[str] = frozenset(role.value for role in ProjectRole)
WRITERS: FrozenSet[str] = frozenset({ProjectRole.ADMIN.value, ProjectRole.EDITOR.value})
PROJECT_ADMINS: FrozenSet[str] = frozenset({ProjectRole.ADMIN.value})

REQUIRED_ROLES = {
    Action.VIEW_PROJECT: ANY_MEMBER,
    Action.LIST_SECRETS: ANY_MEMBER,
    Action.VIEW_SECRET: ANY_MEMBER,
    Action.VIEW_MEMBERS: ANY_MEMBER,
    Action.VIEW_ACTIVITY: ANY_MEMBER,
    Action.CREATE_SECRET: WRITERS,
    Action.UPDATE_SECRET: WRITERS,
    Action.DELETE_SECRET: PROJECT_ADMINS,
    Action.MANAGE_MEMBERS: PROJECT_ADMINS,
    Action.UPDATE_PROJECT: PROJECT_ADMINS,
    Action.DELETE_PROJECT: PROJECT_ADMINS,
}


@dataclass(frozen=True)
class Actor:
    """The caller of an operation: who they are and their account-level role."""
    id: int
    global_role: str

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, global_role=user.role)

    @property
    def is_global_admin(self) -> bool:
        return self.global_role == GlobalRole.ADMIN.value


@dataclass(frozen=True)
class Resource:
    """A project, or something that belongs to exactly one project."""
    project_id: Optional[int]
    resource_type: ResourceType = ResourceType.PROJECT
    resource_id: Optional[int] = None

    @classmethod
    def project(cls, project_id: int) -> "Resource":
        return cls(project_id=project_id, resource_type=ResourceType.PROJECT, resource_id=project_id)

    @classmethod
    def secret(cls, secret_id: Optional[int], project_id: int) -> "Resource":
        return cls(project_id=project_id, resource_type=ResourceType.SECRET, resource_id=secret_id)


def _check_resource(resource: Resource) -> None:
    if resource is None or resource.project_id is None:
        raise ValueError(f"Cannot authorize against a resource without a project_id: {resource!r}")


def authorize(
    actor: Actor,
    action: Union[Action, str],
    resource: Resource,
    project_role: Optional[str],
) -> Decision:
    """
    Decide whether `actor` may perform `action` on `resource`.

    Args:
        actor: The caller
        action: Requested action; unknown actions are denied for non-admins
        resource: Target resource, must carry a project_id
        project_role: The caller's role in resource.project_id, or None if not a member

    Returns:
        Decision.ALLOW or Decision.DENY

    Raises:
        ValueError: if the resource has no project_id
    """
    _check_resource(resource)

    if actor.is_global_admin:
        return Decision.ALLOW

    if project_role is None:
        return Decision.DENY

    try:
        required = REQUIRED_ROLES.get(Action(action))
    except ValueError:
        return Decision.DENY

    if required is None or project_role not in required:
        return Decision.DENY
    return Decision.ALLOW


class AuthorizationService:
    """Membership lookup around the pure `authorize` rule set."""

    async def get_membership(
        self,
        db: AsyncSession,
        user_id: int,
        project_id: int,
    ) -> Optional[UserProjectRole]:
        result = await db.execute(
            select(UserProjectRole).where(
                UserProjectRole.user_id == user_id,
                UserProjectRole.project_id == project_id,
            )
        )
        return result.scalar_one_or_none()

    async def decide(
        self,
        db: AsyncSession,
        actor: Actor,
        action: Union[Action, str],
        resource: Resource,
    ) -> Decision:
        _check_resource(resource)

        project_role = None
        if not actor.is_global_admin:
            membership = await self.get_membership(db, actor.id, resource.project_id)
            project_role = membership.role if membership else None

        return authorize(actor, action, resource, project_role)

    async def require(
        self,
        db: AsyncSession,
        actor: Actor,
        action: Union[Action, str],
        resource: Resource,
    ) -> None:
        """Raise PermissionDeniedError unless the actor may perform the action."""
        decision = await self.decide(db, actor, action, resource)
        if decision is Decision.DENY:
            action_name = action.value if isinstance(action, Action) else action
            logger.warning(
                f"Denied {action_name} for user {actor.id} on "
                f"{resource.resource_type.value}:{resource.resource_id} (project {resource.project_id})"
            )
            raise PermissionDeniedError()

    async def member_project_ids(self, db: AsyncSession, user_id: int) -> List[int]:
        """Projects the user holds any role in."""
        result = await db.execute(
            select(UserProjectRole.project_id).where(UserProjectRole.user_id == user_id)
        )
        return list(result.scalars().all())


authorization_service = AuthorizationService()
