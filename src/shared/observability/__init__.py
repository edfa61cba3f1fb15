"""Observability module for structured logging."""

from .logging import (
    OperationContext,
    get_logger,
    log_external_call_end,
    log_external_call_start,
    node_id_var,
    operation_id_var,
    setup_logging,
)

__all__ = [
    # Setup
    "setup_logging",
    "get_logger",
    # Context
    "OperationContext",
    "operation_id_var",
    "node_id_var",
    # Logging helpers
    "log_external_call_start",
    "log_external_call_end",
]
