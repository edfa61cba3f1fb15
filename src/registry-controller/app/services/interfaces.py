"""Collaborator interfaces consumed by the registry services.

Each protocol covers one external capability. The services receive
implementations through their constructors; concrete adapters live in
``app.clients``.
"""

from __future__ import annotations

from typing import Protocol

from shared.models import RegistryFeatureState, ServiceDescriptor


class ClusterControl(Protocol):
    """Low-level cluster API: pinned services and secrets."""

    async def create_pinned_service(self, descriptor: ServiceDescriptor) -> None: ...

    async def is_service_running(self, name: str) -> bool: ...

    async def get_node_running_service(self, name: str) -> str: ...

    async def remove_service(self, name: str) -> None: ...

    async def secret_exists(self, name: str) -> bool: ...

    async def create_secret(self, name: str, payload: str) -> None: ...


class RegistryStateStore(Protocol):
    """Durable registry configuration state."""

    async def get_has_local_registry(self) -> bool: ...

    async def set_has_local_registry(self, value: bool) -> None: ...

    async def get_has_registry_ssl(self) -> bool: ...

    async def set_has_registry_ssl(self, value: bool) -> None: ...

    async def get_has_root_ssl(self) -> bool: ...

    async def get_root_domain(self) -> str: ...

    async def get_registry_auth_secret_version(self) -> int: ...

    async def set_registry_auth_secret_version(self, version: int) -> None: ...

    async def get_user_email_address(self) -> str | None: ...

    async def get_cluster_salt(self) -> str: ...

    async def get_feature_state(self) -> RegistryFeatureState: ...


class TlsProvisioner(Protocol):
    """Issues certificates for a domain."""

    async def issue_certificate(self, domain: str) -> None: ...


class EdgeReconfigurator(Protocol):
    """Regenerates the reverse proxy configuration and reloads it."""

    async def regenerate_config(self, state: RegistryFeatureState) -> None: ...

    async def reload(self) -> None: ...
