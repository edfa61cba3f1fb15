"""nginx edge proxy reconfiguration.

The proxy reads its registry server blocks from a ConfigMap. Regenerating
rewrites that ConfigMap from the registry state; reloading restarts the
proxy deployment by bumping a pod template annotation, the same mechanism
``kubectl rollout restart`` uses.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from kubernetes import client
from kubernetes.client.rest import ApiException

from shared.config import EdgeSettings, KubernetesSettings, RegistrySettings
from shared.models import RegistryFeatureState
from shared.observability import get_logger

from ..services.naming import registry_domain
from .kube import load_kubernetes_config

logger = get_logger(__name__)

RESTARTED_AT_ANNOTATION = "kubectl.kubernetes.io/restartedAt"


def render_registry_config(
    state: RegistryFeatureState,
    registry: RegistrySettings,
    edge: EdgeSettings,
) -> str:
    """nginx server blocks for the registry domain.

    Empty when the registry feature is off. Without registry SSL only a
    plain HTTP server is emitted.
    """
    if not state.has_local_registry or not state.root_domain:
        return ""

    domain = registry_domain(registry.subdomain, state.root_domain)
    upstream = f"https://{domain}:{registry.port}"
    proxy = f"""
    client_max_body_size {edge.client_max_body_size};

    location / {{
        proxy_pass {upstream};
        proxy_set_header Host $host;
        proxy_set_header X-Real-IP $remote_addr;
        proxy_set_header X-Forwarded-Proto $scheme;
        proxy_read_timeout 900;
    }}"""

    if not state.has_registry_ssl:
        return f"server {{\n    listen 80;\n    server_name {domain};\n{proxy}\n}}\n"

    certs = f"{edge.certs_path.rstrip('/')}/{domain}"
    return (
        f"server {{\n"
        f"    listen 80;\n"
        f"    server_name {domain};\n"
        f"    return 301 https://$host$request_uri;\n"
        f"}}\n"
        f"\n"
        f"server {{\n"
        f"    listen 443 ssl;\n"
        f"    server_name {domain};\n"
        f"    ssl_certificate {certs}/fullchain.pem;\n"
        f"    ssl_certificate_key {certs}/privkey.pem;\n"
        f"{proxy}\n"
        f"}}\n"
    )


class NginxEdgeReconfigurator:
    """Edge reconfigurator for an nginx deployment fed by a ConfigMap."""

    def __init__(
        self,
        edge: EdgeSettings,
        registry: RegistrySettings,
        kubernetes: KubernetesSettings,
    ):
        self.edge = edge
        self.registry = registry
        self.kubernetes = kubernetes
        self.namespace = edge.namespace
        self._core_api: client.CoreV1Api | None = None
        self._apps_api: client.AppsV1Api | None = None

    def _get_core_api(self) -> client.CoreV1Api:
        if self._core_api is None:
            load_kubernetes_config(self.kubernetes.in_cluster)
            self._core_api = client.CoreV1Api()
        return self._core_api

    def _get_apps_api(self) -> client.AppsV1Api:
        if self._apps_api is None:
            load_kubernetes_config(self.kubernetes.in_cluster)
            self._apps_api = client.AppsV1Api()
        return self._apps_api

    async def regenerate_config(self, state: RegistryFeatureState) -> None:
        """Write the rendered registry config into the proxy ConfigMap."""
        core = self._get_core_api()
        name = self.edge.config_map_name
        config_map = client.V1ConfigMap(
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=self.namespace,
                labels={"app.kubernetes.io/managed-by": "registry-controller"},
            ),
            data={self.edge.config_key: render_registry_config(state, self.registry, self.edge)},
        )

        try:
            await asyncio.to_thread(core.read_namespaced_config_map, name=name, namespace=self.namespace)
            await asyncio.to_thread(
                core.replace_namespaced_config_map, name=name, namespace=self.namespace, body=config_map
            )
            logger.info("Updated edge proxy config", config_map=name)
        except ApiException as e:
            if e.status != 404:
                raise
            await asyncio.to_thread(core.create_namespaced_config_map, namespace=self.namespace, body=config_map)
            logger.info("Created edge proxy config", config_map=name)

    async def reload(self) -> None:
        """Restart the proxy pods so they pick up the new config."""
        apps = self._get_apps_api()
        patch = {
            "spec": {
                "template": {
                    "metadata": {
                        "annotations": {
                            RESTARTED_AT_ANNOTATION: datetime.now(timezone.utc).isoformat(),
                        }
                    }
                }
            }
        }
        await asyncio.to_thread(
            apps.patch_namespaced_deployment,
            name=self.edge.deployment_name,
            namespace=self.namespace,
            body=patch,
        )
        logger.info("Edge proxy reload triggered", deployment=self.edge.deployment_name)
