"""
Credential store adapters.

The credential store holds the authoritative value of every secret, keyed by
its parameter path. Production uses AWS SSM Parameter Store; the in-memory
store backs local development and tests.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from loguru import logger

from secrets_manager.core.config import settings
from secrets_manager.utils.exceptions import CredentialNotFoundError, CredentialStoreError


class CredentialStore(ABC):
    """Key-path value store for raw secret material."""

    @abstractmethod
    async def put(self, path: str, value: str, encrypted: bool) -> None:
        """
        Create or overwrite the parameter at `path`.

        Raises:
            CredentialStoreError: on any transport or service failure
        """
        pass

    @abstractmethod
    async def get(self, path: str) -> str:
        """
        Return the (decrypted) value stored at `path`.

        Raises:
            CredentialNotFoundError: if nothing is stored at `path`
            CredentialStoreError: on any other failure
        """
        pass

    @abstractmethod
    async def delete(self, path: str) -> None:
        """
        Delete the parameter at `path`.

        Raises:
            CredentialNotFoundError: if nothing is stored at `path`
            CredentialStoreError: on any other failure
        """
        pass


class SSMCredentialStore(CredentialStore):
    """AWS SSM Parameter Store backend."""

    def __init__(self, region_name: str, kms_key_id: Optional[str] = None, client=None):
        self.region_name = region_name
        self.kms_key_id = kms_key_id
        self.client = client

    def _get_client(self):
        """Get or create the SSM client."""
        if self.client is None:
            self.client = boto3.client("ssm", region_name=self.region_name)
        return self.client

    def _translate(self, error: Exception, path: str, operation: str) -> CredentialStoreError:
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            if code == "ParameterNotFound":
                return CredentialNotFoundError(path)
            message = error.response.get("Error", {}).get("Message", str(error))
            return CredentialStoreError(f"{operation} failed ({code}): {message}", path=path)
        return CredentialStoreError(f"{operation} failed: {error}", path=path)

    async def _call(self, operation: str, path: str, **kwargs):
        client = self._get_client()
        try:
            return await asyncio.to_thread(getattr(client, operation), **kwargs)
        except (ClientError, BotoCoreError) as e:
            translated = self._translate(e, path, operation)
            logger.error(f"SSM {operation} on {path} failed: {translated.message}")
            raise translated from e

    async def put(self, path: str, value: str, encrypted: bool) -> None:
        params = {
            "Name": path,
            "Value": value,
            "Type": "SecureString" if encrypted else "String",
            "Overwrite": True,
        }
        if encrypted and self.kms_key_id:
            params["KeyId"] = self.kms_key_id

        logger.info(f"Storing parameter {path} (type={params['Type']})")
        await self._call("put_parameter", path, **params)

    async def get(self, path: str) -> str:
        response = await self._call("get_parameter", path, Name=path, WithDecryption=True)
        return response["Parameter"]["Value"]

    async def delete(self, path: str) -> None:
        logger.info(f"Deleting parameter {path}")
        await self._call("delete_parameter", path, Name=path)


class InMemoryCredentialStore(CredentialStore):
    """Process-local store. Values are lost on restart."""

    def __init__(self):
        self._parameters: Dict[str, Tuple[str, bool]] = {}

    async def put(self, path: str, value: str, encrypted: bool) -> None:
        self._parameters[path] = (value, encrypted)

    async def get(self, path: str) -> str:
        if path not in self._parameters:
            raise CredentialNotFoundError(path)
        return self._parameters[path][0]

    async def delete(self, path: str) -> None:
        if path not in self._parameters:
            raise CredentialNotFoundError(path)
        del self._parameters[path]

    def is_encrypted(self, path: str) -> bool:
        return self._parameters[path][1]

    def __contains__(self, path: str) -> bool:
        return path in self._parameters

    def __len__(self) -> int:
        return len(self._parameters)


_credential_store: Optional[CredentialStore] = None


def build_credential_store() -> CredentialStore:
    """Build the store selected by CREDENTIAL_STORE_BACKEND."""
    if settings.CREDENTIAL_STORE_BACKEND == "memory":
        logger.warning("Using in-memory credential store; secret values will not survive a restart")
        return InMemoryCredentialStore()
    return SSMCredentialStore(region_name=settings.AWS_REGION, kms_key_id=settings.SSM_KMS_KEY_ID)


def get_credential_store() -> CredentialStore:
    """Dependency returning the process-wide credential store."""
    global _credential_store
    if _credential_store is None:
        _credential_store = build_credential_store()
    return _credential_store
