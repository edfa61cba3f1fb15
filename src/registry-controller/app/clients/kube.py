"""Kubernetes client configuration shared by the adapters."""

from __future__ import annotations

from kubernetes import config

from shared.observability import get_logger

logger = get_logger(__name__)

_loaded = False


def load_kubernetes_config(in_cluster: bool | None = None) -> None:
    """Load client configuration once per process.

    Args:
        in_cluster: True forces in-cluster config, False forces kubeconfig,
            None tries in-cluster first and falls back to kubeconfig.
    """
    global _loaded
    if _loaded:
        return

    if in_cluster is True:
        config.load_incluster_config()
    elif in_cluster is False:
        config.load_kube_config()
    else:
        try:
            config.load_incluster_config()
        except config.ConfigException:
            logger.debug("Not running in a cluster, loading kubeconfig")
            config.load_kube_config()
    _loaded = True
