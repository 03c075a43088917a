"""
Write-through secret manager.

Every change to a secret's value goes to the credential store first and is
only committed to the database once the store has accepted it. A failed store
call leaves the database untouched; a failed database write after a
successful store call leaves an unreferenced parameter behind, which is logged
and left for external reconciliation.
"""

from typing import List, Optional

from fastapi import Depends
from loguru import logger
from sqlalchemy import delete as sa_delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from secrets_manager.core.config import settings
from secrets_manager.models.project import Project
from secrets_manager.models.secret import Secret
from secrets_manager.schemas.secret import SecretCreate, SecretUpdate
from secrets_manager.services.credential_store import CredentialStore, get_credential_store
from secrets_manager.utils.exceptions import ConflictError, NotFoundError
from secrets_manager.utils.formatters import slugify_project_name


def build_ssm_path(project_name: str, secret_name: str, namespace: Optional[str] = None) -> str:
    """`/<namespace>/<project-slug>/<secret-name>`"""
    namespace = namespace or settings.SSM_NAMESPACE
    return f"/{namespace}/{slugify_project_name(project_name)}/{secret_name}"


class SecretManager:
    """Keeps secret rows and credential-store parameters in step."""

    def __init__(self, store: CredentialStore, namespace: Optional[str] = None):
        self.store = store
        self.namespace = namespace

    async def get_secret(self, db: AsyncSession, secret_id: int) -> Secret:
        secret = await db.get(Secret, secret_id)
        if secret is None:
            raise NotFoundError("secret", secret_id)
        return secret

    async def list_secrets(
        self,
        db: AsyncSession,
        project_ids: Optional[List[int]] = None,
    ) -> List[Secret]:
        """All secrets, or only those in `project_ids` when given."""
        query = select(Secret).order_by(Secret.project_id, Secret.name)
        if project_ids is not None:
            if not project_ids:
                return []
            query = query.where(Secret.project_id.in_(project_ids))
        result = await db.execute(query)
        return list(result.scalars().all())

    async def create(self, db: AsyncSession, payload: SecretCreate, project: Project) -> Secret:
        """
        Store the value at the derived path, then insert the row.

        Raises:
            ConflictError: another secret already owns the derived path
            CredentialStoreError: the store rejected the write; nothing was inserted
        """
        ssm_path = build_ssm_path(project.name, payload.name, self.namespace)

        existing = await db.execute(select(Secret.id).where(Secret.ssm_path == ssm_path))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(f"A secret already exists at {ssm_path}")

        await self.store.put(ssm_path, payload.value, payload.is_encrypted)

        secret = Secret(
            name=payload.name,
            value=payload.value,
            description=payload.description,
            project_id=project.id,
            ssm_path=ssm_path,
            is_encrypted=payload.is_encrypted,
        )
        db.add(secret)
        try:
            await db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create of the same path
            await db.rollback()
            logger.error(f"Secret row insert for {ssm_path} conflicted after the parameter was written")
            raise ConflictError(f"A secret already exists at {ssm_path}")
        except Exception:
            await db.rollback()
            logger.error(f"Secret row insert failed after storing {ssm_path}; parameter is orphaned")
            raise
        await db.refresh(secret)

        logger.info(f"Created secret {secret.id} at {ssm_path}")
        return secret

    async def update(self, db: AsyncSession, secret: Secret, payload: SecretUpdate) -> Secret:
        """
        Apply an update, writing through to the store only when the value or
        the encryption flag changes. The parameter path is never recomputed.

        Raises:
            CredentialStoreError: the store rejected the write; the row is unchanged
        """
        changes = payload.model_dump(exclude_unset=True)

        new_value = changes.get("value")
        value_changed = new_value is not None and new_value != secret.value
        new_encrypted = changes.get("is_encrypted")
        encryption_changed = new_encrypted is not None and new_encrypted != secret.is_encrypted

        if value_changed or encryption_changed:
            await self.store.put(
                secret.ssm_path,
                new_value if value_changed else secret.value,
                new_encrypted if encryption_changed else secret.is_encrypted,
            )

        if value_changed:
            secret.value = new_value
        if encryption_changed:
            secret.is_encrypted = new_encrypted
        if changes.get("name") is not None:
            secret.name = changes["name"]
        if "description" in changes:
            secret.description = changes["description"]

        try:
            await db.commit()
        except Exception:
            await db.rollback()
            if value_changed or encryption_changed:
                logger.error(
                    f"Secret {secret.id} row update failed after writing {secret.ssm_path}; "
                    "stored value and row have diverged"
                )
            raise
        await db.refresh(secret)

        logger.info(
            f"Updated secret {secret.id} (value_changed={value_changed}, "
            f"encryption_changed={encryption_changed})"
        )
        return secret

    async def delete(self, db: AsyncSession, secret: Secret) -> None:
        """
        Delete the parameter, then the row.

        Raises:
            NotFoundError: the row is already gone; nothing is touched
            CredentialStoreError: the store delete failed (including not-found);
                the row is kept
        """
        secret_id, ssm_path = secret.id, secret.ssm_path

        existing = await db.execute(select(Secret.id).where(Secret.id == secret_id))
        if existing.scalar_one_or_none() is None:
            raise NotFoundError("secret", secret_id)

        await self.store.delete(ssm_path)

        result = await db.execute(sa_delete(Secret).where(Secret.id == secret_id))
        await db.commit()
        if result.rowcount == 0:
            # Removed by a concurrent request between lookup and delete
            raise NotFoundError("secret", secret_id)

        logger.info(f"Deleted secret {secret_id} at {ssm_path}")

    async def reveal(self, secret: Secret) -> str:
        """Read the authoritative value from the credential store."""
        return await self.store.get(secret.ssm_path)


def get_secret_manager(store: CredentialStore = Depends(get_credential_store)) -> SecretManager:
    """Dependency building a SecretManager over the configured credential store."""
    return SecretManager(store)
