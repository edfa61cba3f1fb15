"""Shared data models for the Registry Controller.

All models follow these conventions:
- Timestamps: ISO 8601 format with timezone (UTC preferred)
- Field names: lowercase snake_case
"""

# Base
from .base import RegistryBaseModel

# Common types
from .common import ErrorResponse

# Registry domain
from .registry import (
    EnvVar,
    PortMapping,
    PortProtocol,
    RegistryAuthPayload,
    RegistryFeatureState,
    RegistryStatus,
    ServiceDescriptor,
    VolumeMount,
)

__all__ = [
    # Base
    "RegistryBaseModel",
    # Common
    "ErrorResponse",
    # Registry
    "EnvVar",
    "PortMapping",
    "PortProtocol",
    "RegistryAuthPayload",
    "RegistryFeatureState",
    "RegistryStatus",
    "ServiceDescriptor",
    "VolumeMount",
]
