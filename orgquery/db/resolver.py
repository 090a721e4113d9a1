"""ConnectionResolver — per-tenant database configuration with an owned cache.

A tenant's secret ``tenant/{id}/database`` is fetched once, parsed into a
:data:`DatabaseConfig`, and memoized. Negative outcomes (no secret, broken
secret) are cached too so unconfigured tenants do not hammer the secret
store. Entries live until :meth:`ConnectionResolver.invalidate` is called or,
when ``ttl_seconds`` is set, until they expire.
"""

import asyncio
import json
import logging
import time
from typing import Any, Callable, Optional, Union

from pydantic import TypeAdapter, ValidationError

from orgquery.exceptions import (
    ConfigurationError,
    SecretNotFound,
    SecretStoreError,
    UnsupportedProviderError,
)
from orgquery.secrets.store import SecretStore, tenant_secret_name
from orgquery.types import ConfigResolution, DatabaseConfig, Provider, ResolutionStatus

logger = logging.getLogger(__name__)

_CONFIG_ADAPTER: TypeAdapter = TypeAdapter(DatabaseConfig)

# Provider tags and field names written by older dashboard builds.
_LEGACY_PROVIDERS = {
    "neon": Provider.SERVERLESS_SQL.value,
    "aws_rds": Provider.REMOTE_DATA_API.value,
}
_LEGACY_KEYS = {
    "rdsResourceArn": "resourceArn",
    "rdsSecretArn": "secretArn",
    "rdsDatabase": "database",
    "rdsRegion": "region",
}


def _region_from_arn(arn: str) -> Optional[str]:
    # arn:aws:rds:<region>:<account>:cluster:<name>
    parts = arn.split(":")
    if len(parts) >= 4 and parts[0] == "arn" and parts[3]:
        return parts[3]
    return None


def _normalize_blob(blob: dict[str, Any]) -> dict[str, Any]:
    normalized = {_LEGACY_KEYS.get(k, k): v for k, v in blob.items()}
    provider = normalized.get("provider")
    if isinstance(provider, str):
        normalized["provider"] = _LEGACY_PROVIDERS.get(provider, provider)
    if normalized.get("provider") == Provider.REMOTE_DATA_API.value and not normalized.get("region"):
        arn = normalized.get("resourceArn") or normalized.get("resource_arn") or ""
        region = _region_from_arn(str(arn))
        if region:
            normalized["region"] = region
    return normalized


def parse_database_secret(raw: Union[str, dict[str, Any]], tenant_id: str = "") -> DatabaseConfig:
    """Parse a secret blob into a :data:`DatabaseConfig`.

    Raises:
        UnsupportedProviderError: the ``provider`` tag is unknown or absent.
        ConfigurationError: not JSON, not an object, or required fields missing.
    """
    if isinstance(raw, str):
        try:
            blob = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ConfigurationError("Database secret is not valid JSON", tenant_id=tenant_id) from exc
    else:
        blob = raw

    if not isinstance(blob, dict):
        raise ConfigurationError("Database secret must be a JSON object", tenant_id=tenant_id)

    blob = _normalize_blob(blob)
    provider = blob.get("provider")
    if provider not in {p.value for p in Provider}:
        raise UnsupportedProviderError(
            f"Unsupported database provider '{provider}'",
            provider=str(provider),
            tenant_id=tenant_id,
        )

    try:
        return _CONFIG_ADAPTER.validate_python(blob)
    except ValidationError as exc:
        fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
        raise ConfigurationError(
            f"Database secret for provider '{provider}' is incomplete: {', '.join(fields)}",
            tenant_id=tenant_id,
            details={"fields": fields},
        ) from exc


class ConnectionResolver:
    """Resolves and caches tenant database configuration.

    Construct once per process and inject wherever tenant queries run.

    Args:
        secret_store: Where ``tenant/{id}/database`` secrets live.
        ttl_seconds: Cache lifetime per entry. ``0`` keeps entries until
            :meth:`invalidate` or process exit.
        clock: Monotonic time source (injectable for tests).
    """

    def __init__(
        self,
        secret_store: SecretStore,
        ttl_seconds: float = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._secrets = secret_store
        self._ttl = ttl_seconds
        self._clock = clock
        self._cache: dict[str, tuple[ConfigResolution, float]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    async def resolve(self, tenant_id: str) -> ConfigResolution:
        """Return the tenant's resolution, loading it on a cache miss.

        Never raises for configuration problems: they come back as
        ``MISSING`` or ``INVALID`` with the reason in ``error``. A secret store
        outage comes back as ``UNAVAILABLE`` and is not cached.
        """
        cached = self._cached(tenant_id)
        if cached is not None:
            return cached

        # Serialize misses per tenant so one tenant never ends up with two configs.
        lock = self._locks.setdefault(tenant_id, asyncio.Lock())
        async with lock:
            cached = self._cached(tenant_id)
            if cached is not None:
                return cached
            resolution, cacheable = await self._load(tenant_id)
            if cacheable:
                self._cache[tenant_id] = (resolution, self._clock())
                # Later callers hit the cache; waiters still hold this lock object.
                if self._locks.get(tenant_id) is lock:
                    del self._locks[tenant_id]
            return resolution

    async def get_config(self, tenant_id: str) -> Optional[DatabaseConfig]:
        """Shortcut: the tenant's config, or ``None`` when not configured."""
        resolution = await self.resolve(tenant_id)
        return resolution.config if resolution.configured else None

    def invalidate(self, tenant_id: Optional[str] = None) -> None:
        """Drop the cached entry for *tenant_id*, or every entry when omitted."""
        if tenant_id is None:
            self._cache.clear()
            self._locks = {t: lock for t, lock in self._locks.items() if lock.locked()}
            logger.info("[Resolver] Cleared all cached tenant configurations")
            return
        lock = self._locks.get(tenant_id)
        if lock is not None and not lock.locked():
            del self._locks[tenant_id]
        if self._cache.pop(tenant_id, None) is not None:
            logger.info("[Resolver] Invalidated cached configuration for tenant %s", tenant_id)

    def cached_tenants(self) -> list[str]:
        return list(self._cache)

    def _cached(self, tenant_id: str) -> Optional[ConfigResolution]:
        entry = self._cache.get(tenant_id)
        if entry is None:
            return None
        resolution, stored_at = entry
        if self._ttl and self._clock() - stored_at >= self._ttl:
            self._cache.pop(tenant_id, None)
            return None
        return resolution

    async def _load(self, tenant_id: str) -> tuple[ConfigResolution, bool]:
        """Fetch and parse the secret. Returns (resolution, cacheable)."""
        name = tenant_secret_name(tenant_id)
        try:
            raw = await self._secrets.get_secret(name)
        except SecretNotFound:
            logger.info("[Resolver] No database secret for tenant %s", tenant_id)
            return ConfigResolution(tenant_id=tenant_id, status=ResolutionStatus.MISSING), True
        except SecretStoreError as exc:
            # Store outages are transient: report, but do not pin the result.
            logger.error("[Resolver] Secret store error for tenant %s: %s", tenant_id, exc)
            return ConfigResolution(
                tenant_id=tenant_id, status=ResolutionStatus.UNAVAILABLE, error=str(exc),
            ), False

        try:
            db_config = parse_database_secret(raw, tenant_id=tenant_id)
        except ConfigurationError as exc:
            logger.error("[Resolver] Invalid database secret for tenant %s: %s", tenant_id, exc)
            return ConfigResolution(
                tenant_id=tenant_id, status=ResolutionStatus.INVALID, error=str(exc),
            ), True

        logger.info("[Resolver] Resolved %s backend for tenant %s", db_config.provider, tenant_id)
        return ConfigResolution(
            tenant_id=tenant_id, status=ResolutionStatus.CONFIGURED, config=db_config,
        ), True
