"""Redis client wrapper.

Key layout:
- {prefix}:state:{field}   registry feature flags and counters
"""

from .client import RedisClient

__all__ = [
    "RedisClient",
]
