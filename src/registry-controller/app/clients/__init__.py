"""Adapters for the collaborators of the registry services."""

from .cert_manager import CertManagerProvisioner, CertificateIssuanceError
from .edge_proxy import NginxEdgeReconfigurator, render_registry_config
from .kubernetes_cluster import KubernetesClusterControl, ServiceRemovalTimeoutError
from .state_store import RedisRegistryStateStore

__all__ = [
    "CertManagerProvisioner",
    "CertificateIssuanceError",
    "KubernetesClusterControl",
    "NginxEdgeReconfigurator",
    "RedisRegistryStateStore",
    "ServiceRemovalTimeoutError",
    "render_registry_config",
]
