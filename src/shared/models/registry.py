"""Registry domain models.

Covers the persisted feature state, the descriptor handed to the cluster
API when the singleton registry service is (re)created, and the credential
payload stored in versioned auth secrets.
"""

from enum import Enum

from pydantic import Field, field_validator

from .base import RegistryBaseModel


class PortProtocol(str, Enum):
    """Transport protocol of a published port."""

    TCP = "tcp"
    UDP = "udp"


class RegistryFeatureState(RegistryBaseModel):
    """Snapshot of the registry feature flags held by the state store.

    ``has_registry_ssl`` is only ever set after a certificate for the
    registry subdomain has been issued.
    """

    has_local_registry: bool = False
    has_registry_ssl: bool = False
    has_root_ssl: bool = False
    root_domain: str = ""
    registry_auth_secret_version: int = Field(default=0, ge=0)
    user_email_address: str | None = None


class PortMapping(RegistryBaseModel):
    """Container port published on the host."""

    container_port: int = Field(ge=1, le=65535)
    host_port: int = Field(ge=1, le=65535)
    protocol: PortProtocol = PortProtocol.TCP


class VolumeMount(RegistryBaseModel):
    """Host path bind-mounted into the container."""

    container_path: str
    host_path: str


class EnvVar(RegistryBaseModel):
    """Container environment variable."""

    key: str
    value: str


class ServiceDescriptor(RegistryBaseModel):
    """Singleton service pinned to one node.

    At most one service with ``name`` exists in the cluster at any time.
    """

    image: str
    name: str = Field(min_length=1, max_length=63)
    node_id: str = Field(min_length=1)
    ports: list[PortMapping] = Field(default_factory=list)
    mounts: list[VolumeMount] = Field(default_factory=list)
    env: list[EnvVar] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        import re

        if not re.match(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$", v):
            raise ValueError("Name must be DNS-compatible (lowercase alphanumeric with hyphens)")
        return v

    def env_dict(self) -> dict[str, str]:
        """Environment as a plain mapping."""
        return {e.key: e.value for e in self.env}


class RegistryAuthPayload(RegistryBaseModel):
    """Credential object serialized into a versioned auth secret."""

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: str
    serveraddress: str = Field(min_length=1)


class RegistryStatus(RegistryBaseModel):
    """Read-only view of the registry state exposed over HTTP."""

    has_local_registry: bool
    has_registry_ssl: bool
    domain_and_port: str | None = None
    auth_secret_version: int = Field(ge=0)
    auth_secret_name: str | None = None
