"""Configuration management module.

This module provides:
- Environment-based configuration with validation
- Service-specific settings classes
- Cached settings access via get_settings()
"""

from .settings import (
    CertManagerSettings,
    EdgeSettings,
    Environment,
    KubernetesSettings,
    LogFormat,
    LogLevel,
    RedisSettings,
    RegistryControllerSettings,
    RegistrySettings,
    Settings,
    get_settings,
)

__all__ = [
    # Main settings
    "Settings",
    "get_settings",
    # Enums
    "Environment",
    "LogLevel",
    "LogFormat",
    # Component settings
    "RedisSettings",
    "KubernetesSettings",
    "RegistrySettings",
    "EdgeSettings",
    "CertManagerSettings",
    # Service-specific settings
    "RegistryControllerSettings",
]
