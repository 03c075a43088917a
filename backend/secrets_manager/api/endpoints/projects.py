"""
Project endpoints, including the project-scoped views of secrets, members
and activity.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.core.database import get_db
from secrets_manager.models.activity_log import ActivityAction, ResourceType
from secrets_manager.models.user import User
from secrets_manager.schemas.activity_log import ActivityLogResponse
from secrets_manager.schemas.auth import UserSummary
from secrets_manager.schemas.common import SuccessResponse
from secrets_manager.schemas.project import (
    ProjectCreate,
    ProjectMemberResponse,
    ProjectResponse,
    ProjectUpdate,
)
from secrets_manager.schemas.secret import SecretResponse
from secrets_manager.services.activity_service import activity_recorder
from secrets_manager.services.auth_service import get_current_user
from secrets_manager.services.authorization import Action, Actor, Resource
from secrets_manager.services.pipeline import ActivityEntry, no_activity, run_guarded
from secrets_manager.services.project_service import project_service
from secrets_manager.services.secret_manager import SecretManager, get_secret_manager

router = APIRouter()


@router.get("", response_model=List[ProjectResponse])
async def list_projects(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Every project for global admins, otherwise the caller's projects."""
    projects = await project_service.list_projects(db, Actor.from_user(current_user))
    return [ProjectResponse.model_validate(p) for p in projects]


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a project; the creator becomes its admin."""
    actor = Actor.from_user(current_user)
    project = await project_service.create_project(db, actor, payload)
    await activity_recorder.record(
        db, actor, ActivityAction.CREATED, ResourceType.PROJECT, project.id,
        f"Created project: {project.name}",
    )
    return ProjectResponse.model_validate(project)


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    project = await run_guarded(
        db, Actor.from_user(current_user), Action.VIEW_PROJECT, Resource.project(project_id),
        lambda: project_service.get_project(db, project_id),
        no_activity,
    )
    return ProjectResponse.model_validate(project)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: int,
    payload: ProjectUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    async def update():
        project = await project_service.get_project(db, project_id)
        return await project_service.update_project(db, project, payload)

    project = await run_guarded(
        db, Actor.from_user(current_user), Action.UPDATE_PROJECT, Resource.project(project_id),
        update,
        lambda p: ActivityEntry(ActivityAction.UPDATED, ResourceType.PROJECT, p.id, f"Updated project: {p.name}"),
    )
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", response_model=SuccessResponse)
async def delete_project(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
):
    """Delete a project and, through the credential store, all of its secrets."""
    actor = Actor.from_user(current_user)

    async def delete():
        project = await project_service.get_project(db, project_id)
        name = project.name
        removed = await project_service.delete_project(db, actor, project, secret_manager)
        return name, removed

    await run_guarded(
        db, actor, Action.DELETE_PROJECT, Resource.project(project_id),
        delete,
        lambda result: ActivityEntry(
            ActivityAction.DELETED, ResourceType.PROJECT, project_id,
            f"Deleted project: {result[0]} with {result[1]} secret(s)",
        ),
    )
    return SuccessResponse()


@router.get("/{project_id}/secrets", response_model=List[SecretResponse])
async def list_project_secrets(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
):
    """List the secrets of a project; recorded as a view of the project."""
    async def list_secrets():
        await project_service.get_project(db, project_id)
        return await secret_manager.list_secrets(db, [project_id])

    secrets = await run_guarded(
        db, Actor.from_user(current_user), Action.LIST_SECRETS, Resource.project(project_id),
        list_secrets,
        lambda _: ActivityEntry(
            ActivityAction.VIEWED, ResourceType.PROJECT, project_id,
            f"Viewed secrets in project with ID: {project_id}",
        ),
    )
    return [SecretResponse.model_validate(s) for s in secrets]


@router.get("/{project_id}/users", response_model=List[ProjectMemberResponse])
async def list_project_members(
    project_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    members = await run_guarded(
        db, Actor.from_user(current_user), Action.VIEW_MEMBERS, Resource.project(project_id),
        lambda: project_service.list_members(db, project_id),
        no_activity,
    )
    return [
        ProjectMemberResponse(
            id=membership.id,
            user_id=membership.user_id,
            project_id=membership.project_id,
            role=membership.role,
            user=UserSummary.model_validate(user) if user else None,
        )
        for membership, user in members
    ]


@router.get(
    "/{project_id}/activity-logs",
    response_model=List[ActivityLogResponse],
    response_model_exclude_none=True,
)
async def list_project_activity(
    project_id: int,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Activity on the project and on the secrets it currently holds."""
    return await run_guarded(
        db, Actor.from_user(current_user), Action.VIEW_ACTIVITY, Resource.project(project_id),
        lambda: activity_recorder.get_project_logs(db, project_id, limit=limit),
        no_activity,
    )
