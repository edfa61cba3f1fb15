"""Redis-backed registry state store.

Booleans are stored as ``"1"``/``"0"``, integers as decimal strings. A
missing key reads as the field's default.
"""

from __future__ import annotations

import secrets

from shared.models import RegistryFeatureState
from shared.observability import get_logger
from shared.redis_client import RedisClient

logger = get_logger(__name__)

HAS_LOCAL_REGISTRY = "has_local_registry"
HAS_REGISTRY_SSL = "has_registry_ssl"
HAS_ROOT_SSL = "has_root_ssl"
ROOT_DOMAIN = "root_domain"
REGISTRY_AUTH_SECRET_VERSION = "registry_auth_secret_version"
USER_EMAIL_ADDRESS = "user_email_address"
CLUSTER_SALT = "cluster_salt"


def _to_bool(value: str | None) -> bool:
    return value == "1"


def _from_bool(value: bool) -> str:
    return "1" if value else "0"


def _to_int(value: str | None) -> int:
    return int(value) if value else 0


class RedisRegistryStateStore:
    """Registry feature state kept in Redis."""

    def __init__(self, redis_client: RedisClient):
        self.redis = redis_client

    async def get_has_local_registry(self) -> bool:
        return _to_bool(await self.redis.state_get(HAS_LOCAL_REGISTRY))

    async def set_has_local_registry(self, value: bool) -> None:
        await self.redis.state_set(HAS_LOCAL_REGISTRY, _from_bool(value))

    async def get_has_registry_ssl(self) -> bool:
        return _to_bool(await self.redis.state_get(HAS_REGISTRY_SSL))

    async def set_has_registry_ssl(self, value: bool) -> None:
        await self.redis.state_set(HAS_REGISTRY_SSL, _from_bool(value))

    async def get_has_root_ssl(self) -> bool:
        return _to_bool(await self.redis.state_get(HAS_ROOT_SSL))

    async def set_has_root_ssl(self, value: bool) -> None:
        await self.redis.state_set(HAS_ROOT_SSL, _from_bool(value))

    async def get_root_domain(self) -> str:
        return await self.redis.state_get(ROOT_DOMAIN) or ""

    async def set_root_domain(self, domain: str) -> None:
        await self.redis.state_set(ROOT_DOMAIN, domain)

    async def get_registry_auth_secret_version(self) -> int:
        return _to_int(await self.redis.state_get(REGISTRY_AUTH_SECRET_VERSION))

    async def set_registry_auth_secret_version(self, version: int) -> None:
        if version < 0:
            raise ValueError(f"Secret version must not be negative, got {version}")
        await self.redis.state_set(REGISTRY_AUTH_SECRET_VERSION, str(version))

    async def get_user_email_address(self) -> str | None:
        return await self.redis.state_get(USER_EMAIL_ADDRESS) or None

    async def set_user_email_address(self, email: str) -> None:
        await self.redis.state_set(USER_EMAIL_ADDRESS, email)

    async def get_cluster_salt(self) -> str:
        """Cluster-wide secret value, generated on first use."""
        salt = await self.redis.state_get(CLUSTER_SALT)
        if salt:
            return salt
        salt = await self.redis.state_set_if_absent(CLUSTER_SALT, secrets.token_urlsafe(32))
        logger.info("Cluster salt initialized")
        return salt

    async def get_feature_state(self) -> RegistryFeatureState:
        values = await self.redis.state_get_many(
            [
                HAS_LOCAL_REGISTRY,
                HAS_REGISTRY_SSL,
                HAS_ROOT_SSL,
                ROOT_DOMAIN,
                REGISTRY_AUTH_SECRET_VERSION,
                USER_EMAIL_ADDRESS,
            ]
        )
        return RegistryFeatureState(
            has_local_registry=_to_bool(values[HAS_LOCAL_REGISTRY]),
            has_registry_ssl=_to_bool(values[HAS_REGISTRY_SSL]),
            has_root_ssl=_to_bool(values[HAS_ROOT_SSL]),
            root_domain=values[ROOT_DOMAIN] or "",
            registry_auth_secret_version=_to_int(values[REGISTRY_AUTH_SECRET_VERSION]),
            user_email_address=values[USER_EMAIL_ADDRESS] or None,
        )
