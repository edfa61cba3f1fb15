"""Test fixtures for Registry Controller.

The fakes record every collaborator call into one shared list so tests can
assert on the order of side effects across collaborators.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shared.config import RegistrySettings
from shared.models import RegistryFeatureState, ServiceDescriptor


class CallLog(list):
    """Ordered ``(collaborator, operation, args)`` tuples."""

    def names(self) -> list[str]:
        return [f"{who}.{op}" for who, op, _ in self]


class FakeClusterControl:
    """In-memory cluster with named services and secrets."""

    def __init__(self, calls: CallLog):
        self.calls = calls
        self.services: dict[str, ServiceDescriptor] = {}
        self.running_node: dict[str, str] = {}
        self.secrets: dict[str, str] = {}
        self.fail_on: dict[str, Exception] = {}

    def _record(self, op: str, *args):
        self.calls.append(("cluster", op, args))
        if op in self.fail_on:
            raise self.fail_on[op]

    def place(self, name: str, node_id: str, image: str = "registry:2") -> None:
        self.services[name] = ServiceDescriptor(image=image, name=name, node_id=node_id)
        self.running_node[name] = node_id

    async def create_pinned_service(self, descriptor: ServiceDescriptor) -> None:
        self._record("create_pinned_service", descriptor)
        if descriptor.name in self.services:
            raise RuntimeError(f"service {descriptor.name} already exists")
        self.services[descriptor.name] = descriptor
        self.running_node[descriptor.name] = descriptor.node_id

    async def is_service_running(self, name: str) -> bool:
        self._record("is_service_running", name)
        return name in self.services

    async def get_node_running_service(self, name: str) -> str:
        self._record("get_node_running_service", name)
        return self.running_node[name]

    async def remove_service(self, name: str) -> None:
        self._record("remove_service", name)
        self.services.pop(name, None)
        self.running_node.pop(name, None)

    async def secret_exists(self, name: str) -> bool:
        self._record("secret_exists", name)
        return name in self.secrets

    async def create_secret(self, name: str, payload: str) -> None:
        self._record("create_secret", name, payload)
        if name in self.secrets:
            raise RuntimeError(f"secret {name} already exists")
        self.secrets[name] = payload


class FakeStateStore:
    """In-memory registry state store."""

    def __init__(self, calls: CallLog):
        self.calls = calls
        self.state = RegistryFeatureState()
        self.cluster_salt = "test-salt"

    async def get_has_local_registry(self) -> bool:
        return self.state.has_local_registry

    async def set_has_local_registry(self, value: bool) -> None:
        self.calls.append(("store", "set_has_local_registry", (value,)))
        self.state.has_local_registry = value

    async def get_has_registry_ssl(self) -> bool:
        return self.state.has_registry_ssl

    async def set_has_registry_ssl(self, value: bool) -> None:
        self.calls.append(("store", "set_has_registry_ssl", (value,)))
        self.state.has_registry_ssl = value

    async def get_has_root_ssl(self) -> bool:
        return self.state.has_root_ssl

    async def get_root_domain(self) -> str:
        return self.state.root_domain

    async def get_registry_auth_secret_version(self) -> int:
        return self.state.registry_auth_secret_version

    async def set_registry_auth_secret_version(self, version: int) -> None:
        self.calls.append(("store", "set_registry_auth_secret_version", (version,)))
        self.state.registry_auth_secret_version = version

    async def get_user_email_address(self) -> str | None:
        return self.state.user_email_address

    async def get_cluster_salt(self) -> str:
        return self.cluster_salt

    async def get_feature_state(self) -> RegistryFeatureState:
        return self.state.model_copy()


class FakeTlsProvisioner:
    def __init__(self, calls: CallLog):
        self.calls = calls
        self.error: Exception | None = None

    async def issue_certificate(self, domain: str) -> None:
        self.calls.append(("tls", "issue_certificate", (domain,)))
        if self.error is not None:
            raise self.error


class FakeEdgeReconfigurator:
    def __init__(self, calls: CallLog):
        self.calls = calls
        self.states: list[RegistryFeatureState] = []
        self.error: Exception | None = None

    async def regenerate_config(self, state: RegistryFeatureState) -> None:
        self.calls.append(("edge", "regenerate_config", (state,)))
        if self.error is not None:
            raise self.error
        self.states.append(state)

    async def reload(self) -> None:
        self.calls.append(("edge", "reload", ()))


@pytest.fixture
def calls() -> CallLog:
    return CallLog()


@pytest.fixture
def cluster(calls) -> FakeClusterControl:
    return FakeClusterControl(calls)


@pytest.fixture
def store(calls) -> FakeStateStore:
    return FakeStateStore(calls)


@pytest.fixture
def tls(calls) -> FakeTlsProvisioner:
    return FakeTlsProvisioner(calls)


@pytest.fixture
def edge(calls) -> FakeEdgeReconfigurator:
    return FakeEdgeReconfigurator(calls)


@pytest.fixture
def registry_settings(tmp_path) -> RegistrySettings:
    """Registry settings writing the auth file below ``tmp_path``."""
    return RegistrySettings(
        auth_path_on_host=str(tmp_path / "auth" / "htpasswd"),
        path_on_host="/data/registry",
        lets_encrypt_etc_path="/etc/letsencrypt",
        bcrypt_rounds=4,
    )


@pytest.fixture
def controller(cluster, store, tls, edge, registry_settings):
    from app.services import RegistryLifecycleController

    return RegistryLifecycleController(cluster, store, tls, edge, registry_settings)


@pytest.fixture
def rotation(cluster, store, registry_settings):
    from app.services import CredentialRotationManager

    return CredentialRotationManager(cluster, store, registry_settings)


@pytest_asyncio.fixture
async def test_client(store, controller, rotation) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client backed by the in-memory fakes."""
    from app.main import app

    app.state.store = store
    app.state.controller = controller
    app.state.rotation = rotation
    app.state.redis = None
    app.state.cluster = None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
