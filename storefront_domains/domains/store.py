"""
Settings store for per-tenant custom domain settings.
"""

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from .errors import PersistenceError
from .models import DomainSettings

logger = logging.getLogger("storefront_domains.domains.store")


class _CacheEntry:
    """TTL cache entry for hostname lookups."""

    __slots__ = ("value", "expires_at")

    def __init__(self, value: Optional[DomainSettings], ttl: float):
        self.value = value
        self.expires_at = time.monotonic() + ttl


@contextmanager
def _translate_errors(action: str):
    try:
        yield
    except RedisError as e:
        logger.error(f"Settings store failed to {action}: {e}")
        raise PersistenceError(f"Failed to {action}: {e}") from e


class SettingsStore:
    """
    Store for tenant domain settings and hostname claims.

    Each tenant's settings live in a Redis hash so that upserts write only the
    fields they change. Hostname claims map a hostname to the tenant that
    registered it. Uses in-memory storage when Redis is disabled or
    unreachable at first use.
    """

    POSITIVE_TTL = 60.0   # seconds to cache an active hostname
    NEGATIVE_TTL = 10.0   # seconds to cache a miss

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379",
        key_prefix: str = "storefront:",
        use_redis: bool = True,
    ):
        self.redis_url = redis_url
        self.key_prefix = key_prefix
        self._redis: Optional[redis.Redis] = None
        self._use_redis = use_redis
        # In-memory fallback
        self._memory_store: Dict[str, dict] = {}
        self._claims: Dict[str, str] = {}
        # In-process lookup cache
        self._cache: Dict[str, _CacheEntry] = {}

    async def _get_redis(self) -> Optional[redis.Redis]:
        """Get Redis connection."""
        if not self._use_redis:
            return None

        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis.ping()
                logger.info("Settings store connected to Redis")
            except Exception as e:
                logger.warning(
                    f"Redis unavailable for settings store, using in-memory: {e}"
                )
                self._redis = None
                self._use_redis = False
                return None

        return self._redis

    def _settings_key(self, tenant_id: str) -> str:
        return f"{self.key_prefix}settings:{tenant_id}"

    def _claim_key(self, hostname: str) -> str:
        return f"{self.key_prefix}domain:{hostname}"

    def _invalidate_cache(self, hostname: Optional[str]) -> None:
        if hostname:
            self._cache.pop(hostname, None)

    async def get(self, tenant_id: str) -> Optional[DomainSettings]:
        """Get a tenant's settings, or None if none were ever written."""
        r = await self._get_redis()

        if r:
            with _translate_errors("read settings"):
                raw = await r.hgetall(self._settings_key(tenant_id))
            if not raw:
                return None
            info = {k: json.loads(v) for k, v in raw.items()}
        else:
            info = self._memory_store.get(tenant_id)
            if not info:
                return None

        info["tenant_id"] = tenant_id
        return DomainSettings.from_dict(info)

    async def upsert(self, tenant_id: str, fields: dict) -> DomainSettings:
        """
        Write the given fields of a tenant's settings.

        Fields not named are left as stored. Creates the record on first
        write. Returns the settings as they are after the write.
        """
        current = await self.get(tenant_id) or DomainSettings(tenant_id=tenant_id)
        updated = replace(current, **fields)
        encoded = updated.to_dict()
        changes = {name: encoded[name] for name in fields}
        changes["tenant_id"] = tenant_id

        r = await self._get_redis()
        if r:
            with _translate_errors("save settings"):
                await r.hset(
                    self._settings_key(tenant_id),
                    mapping={k: json.dumps(v) for k, v in changes.items()},
                )
        else:
            self._memory_store.setdefault(tenant_id, {}).update(changes)

        self._invalidate_cache(current.custom_domain)
        self._invalidate_cache(updated.custom_domain)
        logger.debug(f"Upserted settings for {tenant_id}: {sorted(fields)}")
        return updated

    async def owner_of(self, hostname: str) -> Optional[str]:
        """Tenant id that claims a hostname."""
        r = await self._get_redis()
        if r:
            with _translate_errors("read domain claim"):
                return await r.get(self._claim_key(hostname))
        return self._claims.get(hostname)

    async def claim_domain(self, hostname: str, tenant_id: str) -> bool:
        """
        Claim a hostname for a tenant.

        Returns False if another tenant holds the claim.
        """
        r = await self._get_redis()
        if r:
            with _translate_errors("claim domain"):
                if await r.set(self._claim_key(hostname), tenant_id, nx=True):
                    claimed = True
                else:
                    claimed = await r.get(self._claim_key(hostname)) == tenant_id
        else:
            claimed = self._claims.setdefault(hostname, tenant_id) == tenant_id

        if claimed:
            self._invalidate_cache(hostname)
        return claimed

    async def release_domain(self, hostname: str, tenant_id: str) -> bool:
        """Drop a tenant's claim on a hostname."""
        if await self.owner_of(hostname) != tenant_id:
            return False

        r = await self._get_redis()
        if r:
            with _translate_errors("release domain"):
                await r.delete(self._claim_key(hostname))
        else:
            self._claims.pop(hostname, None)

        self._invalidate_cache(hostname)
        logger.info(f"Released domain claim: {hostname} ({tenant_id})")
        return True

    async def lookup(self, hostname: str) -> Optional[DomainSettings]:
        """
        Hot-path lookup: settings of the tenant serving a hostname, or None.

        Uses an in-process TTL cache so request routing does not hit Redis on
        every request. Only returns fully active domains.
        """
        cached = self._cache.get(hostname)
        if cached and time.monotonic() < cached.expires_at:
            return cached.value

        tenant_id = await self.owner_of(hostname)
        settings = await self.get(tenant_id) if tenant_id else None
        if settings and settings.custom_domain == hostname and settings.is_active:
            self._cache[hostname] = _CacheEntry(settings, self.POSITIVE_TTL)
            return settings

        # Cache the miss with shorter TTL
        self._cache[hostname] = _CacheEntry(None, self.NEGATIVE_TTL)
        return None

    async def close(self) -> None:
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            logger.info("Settings store Redis connection closed")
