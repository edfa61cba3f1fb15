"""Periodic registry reconciliation.

Drives the lifecycle controller on a schedule and serializes every call
into the controller and the rotation manager through one lock, so at most
one reconciliation or rotation is in flight per process.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from shared.observability import OperationContext, get_logger

from .credential_rotation import CredentialRotationManager
from .interfaces import RegistryStateStore
from .lifecycle import RegistryLifecycleController

logger = get_logger(__name__)

ERROR_BACKOFF_SECONDS = 5


class RegistryReconciler:
    """Runs placement reconciliation passes for one node."""

    def __init__(
        self,
        controller: RegistryLifecycleController,
        rotation: CredentialRotationManager,
        store: RegistryStateStore,
        node_id: str,
        interval_seconds: float = 60,
    ):
        self.controller = controller
        self.rotation = rotation
        self.store = store
        self.node_id = node_id
        self.interval_seconds = interval_seconds
        self._lock = asyncio.Lock()
        self._running = False
        self.last_result: dict[str, Any] | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def run_once(self) -> bool:
        """Run one reconciliation pass.

        Returns:
            True if the registry was reconciled, False if the feature is off.
        """
        async with self._lock:
            async with OperationContext(operation_id=f"reconcile-{uuid4().hex[:12]}", node_id=self.node_id):
                if not await self.store.get_has_local_registry():
                    logger.debug("Local registry disabled, skipping reconciliation")
                    self._record(reconciled=False)
                    return False

                await self.controller.ensure_registry_running_on_this_node(self.node_id)
                self._record(reconciled=True)
                return True

    async def rotate_credentials(self, username: str, password: str, domain: str) -> int:
        """Rotate registry credentials without overlapping a reconciliation pass."""
        async with self._lock:
            async with OperationContext(operation_id=f"rotate-{uuid4().hex[:12]}", node_id=self.node_id):
                return await self.rotation.update_auth_header(username, password, domain)

    async def run_periodic(self) -> None:
        """Reconcile every ``interval_seconds`` until cancelled."""
        self._running = True
        logger.info("Starting periodic registry reconciliation", interval_seconds=self.interval_seconds)

        while self._running:
            try:
                try:
                    await self.run_once()
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    logger.error("Registry reconciliation failed", error=str(e), exc_info=True)
                    self._record(reconciled=False, error=str(e))
                    await asyncio.sleep(ERROR_BACKOFF_SECONDS)
                    continue

                await asyncio.sleep(self.interval_seconds)

            except asyncio.CancelledError:
                logger.info("Periodic registry reconciliation cancelled")
                break

        self._running = False

    def stop(self) -> None:
        self._running = False

    def _record(self, reconciled: bool, error: str | None = None) -> None:
        self.last_result = {
            "reconciled": reconciled,
            "error": error,
            "finished_at": datetime.now(timezone.utc).isoformat(),
        }
