"""Registry controller services."""

from .credential_rotation import CredentialRotationManager
from .errors import (
    ErrorCode,
    IllegalOperationError,
    InvalidAuthInputError,
    RegistryControllerError,
    SecretVersionConflictError,
)
from .interfaces import ClusterControl, EdgeReconfigurator, RegistryStateStore, TlsProvisioner
from .lifecycle import RegistryLifecycleController
from .reconciler import RegistryReconciler

__all__ = [
    "ClusterControl",
    "CredentialRotationManager",
    "EdgeReconfigurator",
    "ErrorCode",
    "IllegalOperationError",
    "InvalidAuthInputError",
    "RegistryControllerError",
    "RegistryLifecycleController",
    "RegistryReconciler",
    "RegistryStateStore",
    "SecretVersionConflictError",
    "TlsProvisioner",
]
