"""cert-manager certificate issuance.

Requests a ``cert-manager.io/v1`` Certificate for a domain and waits until
cert-manager reports it Ready, or reports that issuance failed. The issued
key pair is then copied from its TLS Secret into the certbot layout
(``<cert_root>/live/<domain>/fullchain.pem`` and ``privkey.pem``), which is
where the registry container and the edge proxy read it from.
"""

from __future__ import annotations

import asyncio
import base64
import time
from pathlib import Path
from typing import Any

from kubernetes import client
from kubernetes.client.rest import ApiException

from shared.config import CertManagerSettings, KubernetesSettings
from shared.observability import get_logger

from ..services.naming import certificate_paths
from .kube import load_kubernetes_config

logger = get_logger(__name__)

GROUP = "cert-manager.io"
VERSION = "v1"
PLURAL = "certificates"

TLS_CERT_KEY = "tls.crt"
TLS_PRIVATE_KEY_KEY = "tls.key"


class CertificateIssuanceError(Exception):
    """Raised when a certificate could not be issued."""

    def __init__(self, domain: str, reason: str):
        super().__init__(f"Certificate for {domain} was not issued: {reason}")
        self.domain = domain
        self.reason = reason


def certificate_name(domain: str) -> str:
    """Kubernetes object name for the certificate of ``domain``."""
    return domain.replace(".", "-").lower() + "-tls"


def _condition(obj: dict[str, Any], condition_type: str) -> dict[str, Any] | None:
    for cond in obj.get("status", {}).get("conditions", []) or []:
        if cond.get("type") == condition_type:
            return cond
    return None


class CertManagerProvisioner:
    """TLS provisioner backed by cert-manager."""

    def __init__(
        self,
        settings: CertManagerSettings,
        kubernetes: KubernetesSettings,
        cert_root: str = "/etc/letsencrypt",
    ):
        self.settings = settings
        self.kubernetes = kubernetes
        self.namespace = kubernetes.namespace
        self.cert_root = cert_root
        self._custom_api: client.CustomObjectsApi | None = None
        self._core_api: client.CoreV1Api | None = None

    def _get_custom_api(self) -> client.CustomObjectsApi:
        if self._custom_api is None:
            load_kubernetes_config(self.kubernetes.in_cluster)
            self._custom_api = client.CustomObjectsApi()
        return self._custom_api

    def _get_core_api(self) -> client.CoreV1Api:
        if self._core_api is None:
            load_kubernetes_config(self.kubernetes.in_cluster)
            self._core_api = client.CoreV1Api()
        return self._core_api

    def build_certificate(self, domain: str) -> dict[str, Any]:
        name = certificate_name(domain)
        return {
            "apiVersion": f"{GROUP}/{VERSION}",
            "kind": "Certificate",
            "metadata": {"name": name, "namespace": self.namespace},
            "spec": {
                "secretName": name,
                "dnsNames": [domain],
                "issuerRef": {
                    "name": self.settings.issuer_name,
                    "kind": self.settings.issuer_kind,
                },
            },
        }

    async def issue_certificate(self, domain: str) -> None:
        """Request a certificate for ``domain``, wait for it and export it.

        Raises:
            CertificateIssuanceError: If cert-manager reports a failure or the
                certificate is not ready within the configured timeout, or
                its Secret lacks the key pair.
        """
        api = self._get_custom_api()
        body = self.build_certificate(domain)
        name = body["metadata"]["name"]

        try:
            await asyncio.to_thread(
                api.create_namespaced_custom_object,
                GROUP, VERSION, self.namespace, PLURAL, body,
            )
            logger.info("Certificate requested", domain=domain, certificate=name)
        except ApiException as e:
            if e.status != 409:
                raise
            await asyncio.to_thread(
                api.patch_namespaced_custom_object,
                GROUP, VERSION, self.namespace, PLURAL, name, {"spec": body["spec"]},
            )
            logger.info("Certificate request updated", domain=domain, certificate=name)

        await self._wait_until_ready(domain, name)
        await self._export_key_pair(domain, name)

    async def _wait_until_ready(self, domain: str, name: str) -> None:
        api = self._get_custom_api()
        deadline = time.monotonic() + self.settings.timeout_seconds

        while True:
            obj = await asyncio.to_thread(
                api.get_namespaced_custom_object,
                GROUP, VERSION, self.namespace, PLURAL, name,
            )

            ready = _condition(obj, "Ready")
            if ready and ready.get("status") == "True":
                logger.info("Certificate issued", domain=domain)
                return

            issuing = _condition(obj, "Issuing")
            if issuing and issuing.get("status") == "False" and issuing.get("reason") == "Failed":
                raise CertificateIssuanceError(domain, issuing.get("message") or "issuance failed")

            if time.monotonic() >= deadline:
                raise CertificateIssuanceError(
                    domain, f"not ready after {self.settings.timeout_seconds}s"
                )

            logger.debug("Waiting for certificate", domain=domain)
            await asyncio.sleep(self.settings.poll_interval_seconds)

    async def _export_key_pair(self, domain: str, secret_name: str) -> None:
        core = self._get_core_api()
        secret = await asyncio.to_thread(
            core.read_namespaced_secret, name=secret_name, namespace=self.namespace
        )

        data = secret.data or {}
        if not data.get(TLS_CERT_KEY) or not data.get(TLS_PRIVATE_KEY_KEY):
            raise CertificateIssuanceError(domain, f"secret {secret_name} has no TLS key pair")

        cert_path, key_path = certificate_paths(self.cert_root, domain)
        await asyncio.to_thread(_write_pem, Path(cert_path), base64.b64decode(data[TLS_CERT_KEY]), 0o644)
        await asyncio.to_thread(_write_pem, Path(key_path), base64.b64decode(data[TLS_PRIVATE_KEY_KEY]), 0o600)
        logger.info("Certificate exported", domain=domain, path=cert_path)


def _write_pem(path: Path, content: bytes, mode: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.tmp")
    tmp.write_bytes(content)
    tmp.chmod(mode)
    tmp.replace(path)
