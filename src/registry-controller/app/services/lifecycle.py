"""Registry lifecycle controller.

Enables the registry feature, enables SSL for it, and keeps the singleton
registry service placed on the designated node.

Reconciliation of ``ensure_registry_running_on_this_node``:

    write auth file
         |
    service running? --no--> create pinned to node ----------> done
         | yes
    running on node? --yes-----------------------------------> done
         | no
    remove service --> create pinned to node ----------------> done

Every step awaits the previous one; a failing step aborts the rest and its
exception reaches the caller unchanged. Nothing is persisted between steps,
so callers converge by calling again.
"""

from __future__ import annotations

from shared.config import RegistrySettings
from shared.models import EnvVar, PortMapping, PortProtocol, ServiceDescriptor, VolumeMount
from shared.observability import get_logger

from .errors import IllegalOperationError
from .htpasswd import write_auth_file
from .interfaces import ClusterControl, EdgeReconfigurator, RegistryStateStore, TlsProvisioner
from .naming import certificate_paths, registry_domain, registry_domain_and_port

logger = get_logger(__name__)

REGISTRY_CONTAINER_PORT = 5000
CERT_FILES_CONTAINER_PATH = "/cert-files"
REGISTRY_DATA_CONTAINER_PATH = "/var/lib/registry"
AUTH_FILE_CONTAINER_PATH = "/etc/auth"
AUTH_REALM = "Registry Realm"


class RegistryLifecycleController:
    """Controls the registry feature and the placement of its service."""

    def __init__(
        self,
        cluster: ClusterControl,
        store: RegistryStateStore,
        tls: TlsProvisioner,
        edge: EdgeReconfigurator,
        settings: RegistrySettings,
    ):
        self.cluster = cluster
        self.store = store
        self.tls = tls
        self.edge = edge
        self.settings = settings

    async def enable_local_registry(self) -> None:
        """Turn the registry feature on. Idempotent."""
        await self.store.set_has_local_registry(True)
        logger.info("Local registry enabled")

    async def enable_registry_ssl(self) -> None:
        """Issue a certificate for the registry domain and serve it over SSL.

        Requires the root domain to have SSL already. Steps run strictly in
        order: issue certificate, persist the flag, regenerate the edge
        configuration, reload the edge. Nothing is retried or rolled back.

        Raises:
            IllegalOperationError: If the root domain has no SSL yet or no
                root domain is configured.
        """
        if not await self.store.get_has_root_ssl():
            raise IllegalOperationError(
                "Root must have SSL before enabling ssl for docker registry."
            )

        domain = registry_domain(self.settings.subdomain, await self._require_root_domain())

        logger.info("Issuing registry certificate", domain=domain)
        await self.tls.issue_certificate(domain)

        await self.store.set_has_registry_ssl(True)

        state = await self.store.get_feature_state()
        await self.edge.regenerate_config(state)
        await self.edge.reload()
        logger.info("Registry SSL enabled", domain=domain)

    async def get_local_registry_domain_and_port(self) -> str:
        """``<subdomain>.<root_domain>:<port>`` for the current store state."""
        return registry_domain_and_port(
            self.settings.subdomain,
            await self._require_root_domain(),
            self.settings.port,
        )

    async def _require_root_domain(self) -> str:
        root_domain = await self.store.get_root_domain()
        if not root_domain:
            raise IllegalOperationError("Root domain must be set before configuring the docker registry.")
        return root_domain

    def build_service_descriptor(self, node_id: str, root_domain: str) -> ServiceDescriptor:
        """Descriptor of the registry service pinned to ``node_id``."""
        domain = registry_domain(self.settings.subdomain, root_domain)
        cert_path, key_path = certificate_paths(CERT_FILES_CONTAINER_PATH, domain)

        return ServiceDescriptor(
            image=self.settings.image,
            name=self.settings.service_name,
            node_id=node_id,
            ports=[
                PortMapping(
                    container_port=REGISTRY_CONTAINER_PORT,
                    host_port=self.settings.port,
                    protocol=PortProtocol.TCP,
                ),
            ],
            mounts=[
                VolumeMount(
                    container_path=CERT_FILES_CONTAINER_PATH,
                    host_path=self.settings.lets_encrypt_etc_path,
                ),
                VolumeMount(
                    container_path=REGISTRY_DATA_CONTAINER_PATH,
                    host_path=self.settings.path_on_host,
                ),
                VolumeMount(
                    container_path=AUTH_FILE_CONTAINER_PATH,
                    host_path=self.settings.auth_path_on_host,
                ),
            ],
            env=[
                EnvVar(key="REGISTRY_HTTP_TLS_CERTIFICATE", value=cert_path),
                EnvVar(key="REGISTRY_HTTP_TLS_KEY", value=key_path),
                EnvVar(key="REGISTRY_AUTH", value="htpasswd"),
                EnvVar(key="REGISTRY_AUTH_HTPASSWD_REALM", value=AUTH_REALM),
                EnvVar(key="REGISTRY_AUTH_HTPASSWD_PATH", value=AUTH_FILE_CONTAINER_PATH),
            ],
        )

    async def ensure_registry_running_on_this_node(self, my_node_id: str) -> None:
        """Make sure exactly one registry service runs, on ``my_node_id``.

        Safe to call repeatedly; a correctly placed service is left alone.

        Raises:
            IllegalOperationError: If no root domain is configured.
        """
        if not my_node_id:
            raise ValueError("Node ID is required")

        name = self.settings.service_name
        root_domain = await self._require_root_domain()

        await write_auth_file(
            self.settings.auth_path_on_host,
            self.settings.username,
            await self.store.get_cluster_salt(),
            rounds=self.settings.bcrypt_rounds,
        )

        if not await self.cluster.is_service_running(name):
            logger.info("No registry service is running. Creating one", node_id=my_node_id)
            await self._create_service_on_node(my_node_id, root_domain)
            return

        running_node = await self.cluster.get_node_running_service(name)
        if running_node == my_node_id:
            logger.debug("Registry is already running on this node", node_id=my_node_id)
            return

        logger.info(
            "Registry is running on a different node. Relocating",
            running_node=running_node,
            node_id=my_node_id,
        )
        await self.cluster.remove_service(name)
        await self._create_service_on_node(my_node_id, root_domain)

    async def _create_service_on_node(self, node_id: str, root_domain: str) -> None:
        descriptor = self.build_service_descriptor(node_id, root_domain)
        await self.cluster.create_pinned_service(descriptor)
        logger.info("Registry service created", service=descriptor.name, node_id=node_id)
