"""Registry Controller Shared Package.

This package contains components shared by the controller service:
- models: Pydantic data models
- redis_client: Redis client wrapper
- config: Configuration management
- observability: Structured logging
"""

__version__ = "0.1.0"
