"""API routers for the Registry Controller."""

from . import health, registry

__all__ = ["health", "registry"]
