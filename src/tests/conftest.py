"""Pytest configuration and shared fixtures."""

import os
from typing import Any

import pytest

# Set test environment before importing settings
os.environ["ENV"] = "development"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["LOG_FORMAT"] = "text"


@pytest.fixture
def sample_feature_state_data() -> dict[str, Any]:
    """Registry feature state as read back from the store."""
    return {
        "has_local_registry": True,
        "has_registry_ssl": False,
        "has_root_ssl": True,
        "root_domain": "example.com",
        "registry_auth_secret_version": 2,
        "user_email_address": "admin@example.com",
    }


@pytest.fixture
def sample_service_descriptor_data() -> dict[str, Any]:
    """Registry service descriptor pinned to one node."""
    return {
        "image": "registry:2",
        "name": "registry",
        "node_id": "node-a",
        "ports": [{"container_port": 5000, "host_port": 996, "protocol": "tcp"}],
        "mounts": [{"container_path": "/etc/auth", "host_path": "/srv/registry-auth"}],
        "env": [{"key": "REGISTRY_AUTH", "value": "htpasswd"}],
    }
