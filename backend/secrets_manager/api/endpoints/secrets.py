"""
Secret endpoints. Every mutation goes through the write-through secret
manager, so the credential store is changed before the database is.
"""

from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.core.database import get_db
from secrets_manager.models.activity_log import ActivityAction, ResourceType
from secrets_manager.models.user import User
from secrets_manager.schemas.common import SuccessResponse
from secrets_manager.schemas.secret import (
    SecretCreate,
    SecretResponse,
    SecretUpdate,
    SecretValueResponse,
)
from secrets_manager.services.auth_service import get_current_user
from secrets_manager.services.authorization import Action, Actor, Resource, authorization_service
from secrets_manager.services.pipeline import ActivityEntry, run_guarded
from secrets_manager.services.project_service import project_service
from secrets_manager.services.secret_manager import SecretManager, get_secret_manager

router = APIRouter()


@router.get("", response_model=List[SecretResponse])
async def list_secrets(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
):
    """All secrets for global admins, otherwise those of the caller's projects."""
    actor = Actor.from_user(current_user)
    if actor.is_global_admin:
        secrets = await secret_manager.list_secrets(db)
    else:
        project_ids = await authorization_service.member_project_ids(db, actor.id)
        secrets = await secret_manager.list_secrets(db, project_ids)
    return [SecretResponse.model_validate(s) for s in secrets]


@router.post("", response_model=SecretResponse, status_code=status.HTTP_201_CREATED)
async def create_secret(
    payload: SecretCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
):
    """Store a new secret in the credential store and record it."""
    async def create():
        project = await project_service.get_project(db, payload.project_id)
        secret = await secret_manager.create(db, payload, project)
        return secret, project.name

    secret, _ = await run_guarded(
        db, Actor.from_user(current_user), Action.CREATE_SECRET,
        Resource.secret(None, payload.project_id),
        create,
        lambda result: ActivityEntry(
            ActivityAction.CREATED, ResourceType.SECRET, result[0].id,
            f"Created secret: {result[0].name} in project: {result[1]}",
        ),
    )
    return SecretResponse.model_validate(secret)


@router.get("/{secret_id}", response_model=SecretResponse)
async def get_secret(
    secret_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
):
    secret = await secret_manager.get_secret(db, secret_id)
    await authorization_service.require(
        db, Actor.from_user(current_user), Action.VIEW_SECRET,
        Resource.secret(secret.id, secret.project_id),
    )
    return SecretResponse.model_validate(secret)


@router.get("/{secret_id}/value", response_model=SecretValueResponse)
async def reveal_secret(
    secret_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
):
    """Read the current value from the credential store."""
    secret = await secret_manager.get_secret(db, secret_id)
    secret_name, ssm_path = secret.name, secret.ssm_path

    value = await run_guarded(
        db, Actor.from_user(current_user), Action.VIEW_SECRET,
        Resource.secret(secret.id, secret.project_id),
        lambda: secret_manager.reveal(secret),
        lambda _: ActivityEntry(
            ActivityAction.VIEWED, ResourceType.SECRET, secret_id,
            f"Viewed value of secret: {secret_name}",
        ),
    )
    return SecretValueResponse(id=secret_id, ssm_path=ssm_path, value=value)


@router.put("/{secret_id}", response_model=SecretResponse)
async def update_secret(
    secret_id: int,
    payload: SecretUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
):
    secret = await secret_manager.get_secret(db, secret_id)

    updated = await run_guarded(
        db, Actor.from_user(current_user), Action.UPDATE_SECRET,
        Resource.secret(secret.id, secret.project_id),
        lambda: secret_manager.update(db, secret, payload),
        lambda s: ActivityEntry(ActivityAction.UPDATED, ResourceType.SECRET, s.id, f"Updated secret: {s.name}"),
    )
    return SecretResponse.model_validate(updated)


@router.delete("/{secret_id}", response_model=SuccessResponse)
async def delete_secret(
    secret_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    secret_manager: SecretManager = Depends(get_secret_manager),
):
    """Remove the parameter from the credential store, then the row."""
    secret = await secret_manager.get_secret(db, secret_id)
    secret_name, project_id = secret.name, secret.project_id

    await run_guarded(
        db, Actor.from_user(current_user), Action.DELETE_SECRET,
        Resource.secret(secret_id, project_id),
        lambda: secret_manager.delete(db, secret),
        lambda _: ActivityEntry(
            ActivityAction.DELETED, ResourceType.SECRET, secret_id,
            f"Deleted secret: {secret_name} from project with ID: {project_id}",
        ),
    )
    return SuccessResponse()
