"""
Project membership endpoints: grant, change and revoke per-project roles.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.core.database import get_db
from secrets_manager.models.activity_log import ActivityAction, ResourceType
from secrets_manager.models.user import User
from secrets_manager.schemas.common import SuccessResponse
from secrets_manager.schemas.project import MembershipAssign, MembershipResponse
from secrets_manager.services.auth_service import get_current_user
from secrets_manager.services.authorization import Action, Actor, Resource
from secrets_manager.services.pipeline import ActivityEntry, run_guarded
from secrets_manager.services.project_service import project_service

router = APIRouter()


def _assigned(membership) -> ActivityEntry:
    return ActivityEntry(
        ActivityAction.ASSIGNED, ResourceType.PROJECT, membership.project_id,
        f"Assigned user: {membership.user_id} to project: {membership.project_id} "
        f"with role: {membership.role}",
    )


@router.post("", response_model=MembershipResponse, status_code=status.HTTP_201_CREATED)
async def assign_role(
    payload: MembershipAssign,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Grant a role in a project, replacing any role the user already holds."""
    membership = await run_guarded(
        db, Actor.from_user(current_user), Action.MANAGE_MEMBERS, Resource.project(payload.project_id),
        lambda: project_service.assign_role(db, payload.user_id, payload.project_id, payload.role),
        _assigned,
    )
    return MembershipResponse.model_validate(membership)


@router.put("", response_model=MembershipResponse)
async def change_role(
    payload: MembershipAssign,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Change the role of an existing member."""
    membership = await run_guarded(
        db, Actor.from_user(current_user), Action.MANAGE_MEMBERS, Resource.project(payload.project_id),
        lambda: project_service.change_role(db, payload.user_id, payload.project_id, payload.role),
        _assigned,
    )
    return MembershipResponse.model_validate(membership)


@router.delete("/{user_id}/{project_id}", response_model=SuccessResponse)
async def remove_member(
    user_id: int,
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await run_guarded(
        db, Actor.from_user(current_user), Action.MANAGE_MEMBERS, Resource.project(project_id),
        lambda: project_service.remove_member(db, user_id, project_id),
        lambda _: ActivityEntry(
            ActivityAction.UPDATED, ResourceType.PROJECT, project_id,
            f"Removed user: {user_id} from project: {project_id}",
        ),
    )
    return SuccessResponse()
