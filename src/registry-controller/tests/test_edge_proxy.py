"""Tests for nginx edge proxy reconfiguration."""

from unittest.mock import MagicMock

import pytest
from kubernetes.client.rest import ApiException

from app.clients import NginxEdgeReconfigurator, render_registry_config
from app.clients.edge_proxy import RESTARTED_AT_ANNOTATION
from app.services.naming import certificate_paths
from shared.config import EdgeSettings, KubernetesSettings, RegistrySettings
from shared.models import RegistryFeatureState


@pytest.fixture
def edge_settings():
    return EdgeSettings(namespace="edge", certs_path="/etc/letsencrypt/live")


@pytest.fixture
def reconfigurator(edge_settings):
    edge = NginxEdgeReconfigurator(edge_settings, RegistrySettings(), KubernetesSettings())
    edge._core_api = MagicMock()
    edge._apps_api = MagicMock()
    return edge


class TestRenderRegistryConfig:
    def test_disabled(self, edge_settings):
        state = RegistryFeatureState(has_local_registry=False, root_domain="example.com")

        assert render_registry_config(state, RegistrySettings(), edge_settings) == ""

    def test_plain_http(self, edge_settings):
        state = RegistryFeatureState(has_local_registry=True, root_domain="example.com")

        config = render_registry_config(state, RegistrySettings(), edge_settings)

        assert "server_name registry.example.com;" in config
        assert "proxy_pass https://registry.example.com:996;" in config
        assert "ssl_certificate" not in config

    def test_ssl(self, edge_settings):
        state = RegistryFeatureState(has_local_registry=True, has_registry_ssl=True, root_domain="example.com")

        config = render_registry_config(state, RegistrySettings(), edge_settings)

        assert "return 301 https://$host$request_uri;" in config
        assert "listen 443 ssl;" in config
        assert "ssl_certificate /etc/letsencrypt/live/registry.example.com/fullchain.pem;" in config
        assert "ssl_certificate_key /etc/letsencrypt/live/registry.example.com/privkey.pem;" in config

    def test_ssl_paths_match_exported_certificate(self):
        registry = RegistrySettings()
        state = RegistryFeatureState(has_local_registry=True, has_registry_ssl=True, root_domain="example.com")

        config = render_registry_config(state, registry, EdgeSettings())

        cert_path, key_path = certificate_paths(registry.lets_encrypt_etc_path, "registry.example.com")
        assert f"ssl_certificate {cert_path};" in config
        assert f"ssl_certificate_key {key_path};" in config


class TestRegenerateConfig:
    async def test_replaces_existing(self, reconfigurator, edge_settings):
        state = RegistryFeatureState(has_local_registry=True, root_domain="example.com")

        await reconfigurator.regenerate_config(state)

        body = reconfigurator._core_api.replace_namespaced_config_map.call_args.kwargs["body"]
        assert "registry.example.com" in body.data[edge_settings.config_key]
        reconfigurator._core_api.create_namespaced_config_map.assert_not_called()

    async def test_creates_missing(self, reconfigurator):
        reconfigurator._core_api.read_namespaced_config_map.side_effect = ApiException(status=404)

        await reconfigurator.regenerate_config(RegistryFeatureState())

        reconfigurator._core_api.create_namespaced_config_map.assert_called_once()
        reconfigurator._core_api.replace_namespaced_config_map.assert_not_called()


async def test_reload_bumps_restart_annotation(reconfigurator, edge_settings):
    await reconfigurator.reload()

    kwargs = reconfigurator._apps_api.patch_namespaced_deployment.call_args.kwargs
    assert kwargs["name"] == edge_settings.deployment_name
    assert kwargs["namespace"] == "edge"
    annotations = kwargs["body"]["spec"]["template"]["metadata"]["annotations"]
    assert RESTARTED_AT_ANNOTATION in annotations
