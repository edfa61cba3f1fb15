"""Configuration management with Pydantic Settings.

Environment variables are loaded from:
1. Environment variables (highest priority)
2. .env file (development)
3. Defaults (lowest priority)
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Deployment environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging level."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Logging format."""

    JSON = "json"
    TEXT = "text"


class RedisSettings(BaseSettings):
    """Redis configuration (backing store for registry state)."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: str | None = Field(default=None, description="Redis password")
    db: int = Field(default=0, description="Redis database number")
    key_prefix: str = Field(default="registry", description="Prefix for all state keys")

    @property
    def url(self) -> str:
        """Build Redis URL."""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


class KubernetesSettings(BaseSettings):
    """Kubernetes API access."""

    model_config = SettingsConfigDict(env_prefix="K8S_")

    namespace: str = Field(default="registry-system", description="Namespace for registry objects")
    in_cluster: bool | None = Field(
        default=None,
        description="Force in-cluster config (None tries in-cluster, then kubeconfig)",
    )
    secret_data_key: str = Field(
        default="auth.json",
        description="Data key holding the serialized registry credentials",
    )
    delete_timeout_seconds: float = Field(
        default=120.0,
        description="How long to wait for a removed service to disappear",
    )
    poll_interval_seconds: float = Field(default=2.0, description="Interval between deletion checks")


class RegistrySettings(BaseSettings):
    """Fixed parameters of the registry service and its credentials."""

    model_config = SettingsConfigDict(env_prefix="REGISTRY_")

    subdomain: str = Field(default="registry", description="Registry subdomain under the root domain")
    port: int = Field(default=996, description="Host port the registry is published on")
    image: str = Field(default="registry:2", description="Registry container image")
    service_name: str = Field(default="registry", description="Singleton service name")

    lets_encrypt_etc_path: str = Field(
        default="/etc/letsencrypt",
        description="Host directory issued certificates are exported to (certbot live/ layout)",
    )
    path_on_host: str = Field(
        default="/var/lib/registry-controller/registry",
        description="Host directory holding registry data",
    )
    auth_path_on_host: str = Field(
        default="/var/lib/registry-controller/registry-auth",
        description="Host path of the htpasswd auth file",
    )

    username: str = Field(default="registry", description="Username written to the auth file")
    auth_secret_prefix: str = Field(
        default="registry-auth-",
        description="Prefix of the versioned auth secret names",
    )
    default_email: str = Field(
        default="noreply@registry.local",
        description="Email used in credentials when the account has none",
    )
    bcrypt_rounds: int = Field(default=5, description="bcrypt cost for the auth file hash")
    max_collision_retries: int = Field(
        default=10,
        description="Maximum versions skipped during auth secret rotation",
    )

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, v: int) -> int:
        """bcrypt accepts costs between 4 and 31."""
        return min(31, max(4, v))

    @field_validator("max_collision_retries")
    @classmethod
    def validate_max_collision_retries(cls, v: int) -> int:
        """Ensure at least one attempt is made."""
        return max(1, v)


class EdgeSettings(BaseSettings):
    """Reverse proxy in front of the cluster."""

    model_config = SettingsConfigDict(env_prefix="EDGE_")

    namespace: str = Field(default="registry-system", description="Namespace of the proxy")
    config_map_name: str = Field(default="edge-nginx-config", description="ConfigMap holding nginx config")
    config_key: str = Field(default="registry.conf", description="ConfigMap data key")
    deployment_name: str = Field(default="edge-nginx", description="Proxy deployment to restart on reload")
    certs_path: str = Field(
        default="/etc/letsencrypt/live",
        description="Certificate directory as seen by the proxy (host REGISTRY_LETS_ENCRYPT_ETC_PATH/live mounted in)",
    )
    client_max_body_size: str = Field(default="0", description="nginx client_max_body_size for registry pushes")


class CertManagerSettings(BaseSettings):
    """cert-manager based certificate issuance."""

    model_config = SettingsConfigDict(env_prefix="CERT_MANAGER_")

    issuer_name: str = Field(default="letsencrypt", description="Issuer to request certificates from")
    issuer_kind: str = Field(default="ClusterIssuer", description="Issuer or ClusterIssuer")
    poll_interval_seconds: float = Field(default=5.0, description="Interval between readiness checks")
    timeout_seconds: float = Field(default=300.0, description="Give up waiting after this long")


class Settings(BaseSettings):
    """Main application settings.

    All settings can be overridden via environment variables.
    For nested settings, use the appropriate prefix (e.g., REDIS_HOST).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="registry-controller", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        alias="ENV",
        description="Deployment environment",
    )

    # Logging configuration
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: LogFormat = Field(default=LogFormat.JSON, description="Logging format")

    # Nested settings
    redis: RedisSettings = Field(default_factory=RedisSettings)
    kubernetes: KubernetesSettings = Field(default_factory=KubernetesSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    edge: EdgeSettings = Field(default_factory=EdgeSettings)
    cert_manager: CertManagerSettings = Field(default_factory=CertManagerSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Uses LRU cache to avoid re-parsing environment variables.
    """
    return Settings()


class RegistryControllerSettings(Settings):
    """Settings specific to the Registry Controller service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    node_name: str = Field(
        default="",
        alias="NODE_NAME",
        description="Node this controller runs on (downward API)",
    )
    reconcile_interval_seconds: int = Field(
        default=60,
        description="Interval between placement reconciliation passes",
    )

    @field_validator("reconcile_interval_seconds")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        """Ensure the interval is at least one second."""
        return max(1, v)
