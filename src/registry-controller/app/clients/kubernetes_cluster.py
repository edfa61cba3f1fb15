"""Kubernetes implementation of the cluster control interface.

A pinned service is a single-replica Deployment using the ``Recreate``
strategy with a ``kubernetes.io/hostname`` node selector, ``hostPort``
ports and ``hostPath`` volumes. Auth secrets are Opaque Secrets holding the
serialized credentials under one data key.
"""

from __future__ import annotations

import asyncio
import base64
import time
from typing import Any, Callable

from kubernetes import client
from kubernetes.client.rest import ApiException

from shared.config import KubernetesSettings
from shared.models import ServiceDescriptor
from shared.observability import get_logger, log_external_call_end, log_external_call_start

from .kube import load_kubernetes_config

logger = get_logger(__name__)

NODE_SELECTOR_LABEL = "kubernetes.io/hostname"
MANAGED_BY = "registry-controller"


class ServiceRemovalTimeoutError(Exception):
    """Raised when a removed service is still present after the timeout."""


class KubernetesClusterControl:
    """Pinned services and secrets backed by the Kubernetes API."""

    def __init__(self, settings: KubernetesSettings):
        self.settings = settings
        self.namespace = settings.namespace
        self._core_api: client.CoreV1Api | None = None
        self._apps_api: client.AppsV1Api | None = None

    def _get_core_api(self) -> client.CoreV1Api:
        """Get or create the core API client."""
        if self._core_api is None:
            load_kubernetes_config(self.settings.in_cluster)
            self._core_api = client.CoreV1Api()
        return self._core_api

    def _get_apps_api(self) -> client.AppsV1Api:
        """Get or create the apps API client."""
        if self._apps_api is None:
            load_kubernetes_config(self.settings.in_cluster)
            self._apps_api = client.AppsV1Api()
        return self._apps_api

    async def _call(self, operation: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a blocking API call off the event loop and log it."""
        log_external_call_start(logger, "kubernetes", operation)
        start = time.monotonic()
        try:
            result = await asyncio.to_thread(fn, *args, **kwargs)
        except ApiException as e:
            duration_ms = (time.monotonic() - start) * 1000
            log_external_call_end(logger, "kubernetes", operation, False, duration_ms, error=f"{e.status} {e.reason}")
            raise
        log_external_call_end(logger, "kubernetes", operation, True, (time.monotonic() - start) * 1000)
        return result

    # =========================================================================
    # Services
    # =========================================================================

    def build_deployment(self, descriptor: ServiceDescriptor) -> client.V1Deployment:
        """Deployment manifest for a pinned service."""
        labels = {"app": descriptor.name, "app.kubernetes.io/managed-by": MANAGED_BY}

        volumes = []
        volume_mounts = []
        for i, mount in enumerate(descriptor.mounts):
            volume_name = f"{descriptor.name}-vol-{i}"
            volumes.append(
                client.V1Volume(
                    name=volume_name,
                    host_path=client.V1HostPathVolumeSource(path=mount.host_path),
                )
            )
            volume_mounts.append(client.V1VolumeMount(name=volume_name, mount_path=mount.container_path))

        container = client.V1Container(
            name=descriptor.name,
            image=descriptor.image,
            ports=[
                client.V1ContainerPort(
                    container_port=p.container_port,
                    host_port=p.host_port,
                    protocol=str(p.protocol).upper(),
                )
                for p in descriptor.ports
            ],
            env=[client.V1EnvVar(name=e.key, value=e.value) for e in descriptor.env],
            volume_mounts=volume_mounts,
        )

        return client.V1Deployment(
            api_version="apps/v1",
            kind="Deployment",
            metadata=client.V1ObjectMeta(name=descriptor.name, namespace=self.namespace, labels=labels),
            spec=client.V1DeploymentSpec(
                replicas=1,
                selector=client.V1LabelSelector(match_labels={"app": descriptor.name}),
                strategy=client.V1DeploymentStrategy(type="Recreate"),
                template=client.V1PodTemplateSpec(
                    metadata=client.V1ObjectMeta(labels=labels),
                    spec=client.V1PodSpec(
                        node_selector={NODE_SELECTOR_LABEL: descriptor.node_id},
                        containers=[container],
                        volumes=volumes,
                    ),
                ),
            ),
        )

    async def create_pinned_service(self, descriptor: ServiceDescriptor) -> None:
        apps = self._get_apps_api()
        body = self.build_deployment(descriptor)
        await self._call(
            "create_deployment",
            apps.create_namespaced_deployment,
            namespace=self.namespace,
            body=body,
        )
        logger.info("Created pinned service", service=descriptor.name, node_id=descriptor.node_id)

    async def is_service_running(self, name: str) -> bool:
        apps = self._get_apps_api()
        try:
            await self._call("read_deployment", apps.read_namespaced_deployment, name=name, namespace=self.namespace)
        except ApiException as e:
            if e.status == 404:
                return False
            raise
        return True

    async def get_node_running_service(self, name: str) -> str:
        """Node of the service's running pod.

        Falls back to the node the deployment is pinned to while no pod has
        been scheduled yet.
        """
        core = self._get_core_api()
        pods = await self._call(
            "list_pods",
            core.list_namespaced_pod,
            namespace=self.namespace,
            label_selector=f"app={name}",
        )

        scheduled = [p for p in pods.items if p.spec and p.spec.node_name]
        running = [p for p in scheduled if p.status and p.status.phase == "Running"]
        candidates = running or scheduled
        if candidates:
            return candidates[0].spec.node_name

        apps = self._get_apps_api()
        deployment = await self._call(
            "read_deployment", apps.read_namespaced_deployment, name=name, namespace=self.namespace
        )
        selector = deployment.spec.template.spec.node_selector or {}
        node = selector.get(NODE_SELECTOR_LABEL)
        if not node:
            raise RuntimeError(f"Service '{name}' is neither scheduled nor pinned to a node")
        return node

    async def remove_service(self, name: str) -> None:
        """Delete the service and wait until it and its pods are gone."""
        apps = self._get_apps_api()
        try:
            await self._call(
                "delete_deployment",
                apps.delete_namespaced_deployment,
                name=name,
                namespace=self.namespace,
                body=client.V1DeleteOptions(propagation_policy="Foreground"),
            )
        except ApiException as e:
            if e.status != 404:
                raise
            logger.warning("Service already removed", service=name)
            return

        await self._wait_for_removal(name)
        logger.info("Removed service", service=name)

    async def _wait_for_removal(self, name: str) -> None:
        deadline = time.monotonic() + self.settings.delete_timeout_seconds
        while await self.is_service_running(name):
            if time.monotonic() >= deadline:
                raise ServiceRemovalTimeoutError(
                    f"Service '{name}' still present after {self.settings.delete_timeout_seconds}s"
                )
            await asyncio.sleep(self.settings.poll_interval_seconds)

    # =========================================================================
    # Secrets
    # =========================================================================

    async def secret_exists(self, name: str) -> bool:
        core = self._get_core_api()
        try:
            await self._call("read_secret", core.read_namespaced_secret, name=name, namespace=self.namespace)
        except ApiException as e:
            if e.status == 404:
                return False
            raise
        return True

    async def create_secret(self, name: str, payload: str) -> None:
        """Create an Opaque secret. Fails if the name is already taken."""
        core = self._get_core_api()
        secret = client.V1Secret(
            metadata=client.V1ObjectMeta(
                name=name,
                namespace=self.namespace,
                labels={"app.kubernetes.io/managed-by": MANAGED_BY, "component": "registry-auth"},
            ),
            type="Opaque",
            data={self.settings.secret_data_key: base64.b64encode(payload.encode()).decode()},
        )
        await self._call("create_secret", core.create_namespaced_secret, namespace=self.namespace, body=secret)
        logger.info("Created secret", secret_name=name)

    # =========================================================================
    # Health Check
    # =========================================================================

    async def health_check(self) -> dict[str, Any]:
        """Check the Kubernetes API is reachable with the loaded config."""
        try:
            core = self._get_core_api()
            await self._call("list_secrets", core.list_namespaced_secret, namespace=self.namespace, limit=1)
            return {"status": "healthy"}
        except ApiException as e:
            return {"status": "unhealthy", "error": f"{e.status} {e.reason}"}
        except Exception as e:
            return {"status": "unhealthy", "error": str(e)}
