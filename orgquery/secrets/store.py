"""Tenant-scoped secret storage for database connection descriptors.

Secrets are addressed by name. Tenant database descriptors live under
``tenant/{tenant_id}/database``. Secret values are NEVER logged; only names
appear in log lines.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from cryptography.fernet import Fernet, InvalidToken, MultiFernet

from orgquery.exceptions import SecretNotFound, SecretStoreError

logger = logging.getLogger(__name__)

DATABASE_SERVICE = "database"


def tenant_secret_name(tenant_id: str, service: str = DATABASE_SERVICE) -> str:
    """Return the conventional secret name for a tenant service."""
    return f"tenant/{tenant_id}/{service}"


def _serialize(value: Union[str, dict[str, Any]]) -> str:
    if isinstance(value, str):
        return value
    if not isinstance(value, dict):
        raise SecretStoreError("Secret value must be a string or a plain dict")
    return json.dumps(value)


class SecretStore(ABC):
    """Async secret store interface."""

    @abstractmethod
    async def get_secret(self, name: str) -> str:
        """Return the plaintext secret string.

        Raises:
            SecretNotFound: nothing stored under *name*.
            SecretStoreError: the store could not be read.
        """

    @abstractmethod
    async def put_secret(self, name: str, value: Union[str, dict[str, Any]]) -> None:
        """Create or overwrite the secret *name*."""

    @abstractmethod
    async def delete_secret(self, name: str) -> bool:
        """Remove *name*. Returns False if it did not exist."""


class EncryptedSecretStore(SecretStore):
    """In-process store that keeps every value Fernet-encrypted at rest.

    Each token seals the secret name together with the value, so a token
    copied under another tenant's name fails to decrypt.

    Args:
        key: One Fernet key, or several separated by commas for rotation.
            The first key encrypts; every key is tried on decrypt. Empty
            generates an ephemeral key (secrets are lost on restart).
    """

    def __init__(self, key: str = "") -> None:
        self._fernet = self._build_fernet(key)
        self._store: dict[str, str] = {}

    @staticmethod
    def _build_fernet(key: str) -> MultiFernet:
        keys = [k.strip() for k in key.split(",") if k.strip()]
        if not keys:
            logger.warning(
                "[Secrets] No ORGQUERY_SECRET_ENCRYPTION_KEY set, using an ephemeral key; "
                "stored tenant secrets will not survive a restart"
            )
            return MultiFernet([Fernet(Fernet.generate_key())])
        try:
            return MultiFernet([Fernet(k.encode()) for k in keys])
        except ValueError as exc:
            raise SecretStoreError(f"Invalid Fernet key: {exc}") from exc

    def _seal(self, name: str, value: str) -> str:
        envelope = json.dumps({"name": name, "value": value})
        return self._fernet.encrypt(envelope.encode()).decode()

    def _open(self, name: str, token: str) -> str:
        try:
            envelope = json.loads(self._fernet.decrypt(token.encode()))
        except InvalidToken as exc:
            raise SecretStoreError(
                f"Secret '{name}' could not be decrypted with the configured keys", secret_name=name,
            ) from exc
        if envelope.get("name") != name:
            raise SecretStoreError(f"Secret '{name}' is sealed for a different name", secret_name=name)
        return envelope["value"]

    async def get_secret(self, name: str) -> str:
        token = self._store.get(name)
        if token is None:
            raise SecretNotFound(f"Secret '{name}' not found", secret_name=name)
        return self._open(name, token)

    async def put_secret(self, name: str, value: Union[str, dict[str, Any]]) -> None:
        self._store[name] = self._seal(name, _serialize(value))
        logger.debug("[Secrets] Stored secret %s", name)

    async def delete_secret(self, name: str) -> bool:
        if self._store.pop(name, None) is None:
            return False
        logger.debug("[Secrets] Deleted secret %s", name)
        return True

    def rotate(self) -> int:
        """Re-encrypt every stored secret under the primary key. Returns the count."""
        try:
            self._store = {name: self._fernet.rotate(token.encode()).decode() for name, token in self._store.items()}
        except InvalidToken as exc:
            raise SecretStoreError("Rotation failed: a stored secret does not match any configured key") from exc
        logger.info("[Secrets] Rotated %d secret(s) to the primary key", len(self._store))
        return len(self._store)

    def names(self) -> list[str]:
        return sorted(self._store)


class AwsSecretsManagerStore(SecretStore):
    """AWS Secrets Manager backed store.

    boto3 calls are blocking, so each one runs in a worker thread.
    """

    def __init__(self, region: str, client: Optional[Any] = None) -> None:
        self.region = region
        self._client = client  # lazy load boto3 client

    def _get_client(self):
        if self._client is None:
            import boto3
            self._client = boto3.client("secretsmanager", region_name=self.region)
        return self._client

    async def get_secret(self, name: str) -> str:
        from botocore.exceptions import BotoCoreError, ClientError

        client = self._get_client()
        try:
            response = await asyncio.to_thread(client.get_secret_value, SecretId=name)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "")
            if code == "ResourceNotFoundException":
                raise SecretNotFound(f"Secret '{name}' not found", secret_name=name) from exc
            raise SecretStoreError(f"Secrets Manager error ({code}) reading '{name}'", secret_name=name) from exc
        except BotoCoreError as exc:
            raise SecretStoreError(f"Secrets Manager unreachable: {exc}", secret_name=name) from exc

        secret = response.get("SecretString")
        if secret is None:
            raise SecretStoreError(f"Secret '{name}' has no string value", secret_name=name)
        return secret

    async def put_secret(self, name: str, value: Union[str, dict[str, Any]]) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        client = self._get_client()
        payload = _serialize(value)
        try:
            try:
                await asyncio.to_thread(client.put_secret_value, SecretId=name, SecretString=payload)
            except ClientError as exc:
                if exc.response.get("Error", {}).get("Code") != "ResourceNotFoundException":
                    raise
                await asyncio.to_thread(client.create_secret, Name=name, SecretString=payload)
        except (ClientError, BotoCoreError) as exc:
            raise SecretStoreError(f"Failed to store secret '{name}': {exc}", secret_name=name) from exc
        logger.info("[Secrets] Upserted secret %s in %s", name, self.region)

    async def delete_secret(self, name: str) -> bool:
        from botocore.exceptions import BotoCoreError, ClientError

        client = self._get_client()
        try:
            await asyncio.to_thread(
                client.delete_secret, SecretId=name, ForceDeleteWithoutRecovery=True,
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == "ResourceNotFoundException":
                return False
            raise SecretStoreError(f"Failed to delete secret '{name}': {exc}", secret_name=name) from exc
        except BotoCoreError as exc:
            raise SecretStoreError(f"Secrets Manager unreachable: {exc}", secret_name=name) from exc
        return True


def build_secret_store(cfg) -> SecretStore:
    """Construct the secret store selected by ``cfg.secret_backend``."""
    if cfg.secret_backend == "aws":
        return AwsSecretsManagerStore(region=cfg.secrets_region)
    if cfg.secret_backend == "local":
        return EncryptedSecretStore(key=cfg.secret_encryption_key)
    raise SecretStoreError(f"Unknown secret backend '{cfg.secret_backend}'")
