"""Registry Controller FastAPI Application.

The Registry Controller:
- Keeps the singleton registry service running on this node
- Rotates the registry auth secrets
- Exposes health, readiness and a read-only registry status
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shared.config import RegistryControllerSettings
from shared.observability import get_logger, setup_logging
from shared.redis_client import RedisClient

from .api import health, registry
from .clients import (
    CertManagerProvisioner,
    KubernetesClusterControl,
    NginxEdgeReconfigurator,
    RedisRegistryStateStore,
)
from .services import (
    CredentialRotationManager,
    ErrorCode,
    RegistryControllerError,
    RegistryLifecycleController,
    RegistryReconciler,
)

settings = RegistryControllerSettings()
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = get_logger(__name__)

ERROR_STATUS_CODES = {
    ErrorCode.ILLEGAL_OPERATION: 409,
    ErrorCode.SECRET_VERSION_CONFLICT: 409,
    ErrorCode.STATUS_ERROR_GENERIC: 400,
}


def wire_services(app: FastAPI, redis_client: RedisClient) -> RegistryReconciler:
    """Build adapters and services and attach them to ``app.state``."""
    store = RedisRegistryStateStore(redis_client)
    cluster = KubernetesClusterControl(settings.kubernetes)
    tls = CertManagerProvisioner(
        settings.cert_manager,
        settings.kubernetes,
        cert_root=settings.registry.lets_encrypt_etc_path,
    )
    edge = NginxEdgeReconfigurator(settings.edge, settings.registry, settings.kubernetes)

    controller = RegistryLifecycleController(cluster, store, tls, edge, settings.registry)
    rotation = CredentialRotationManager(cluster, store, settings.registry)
    reconciler = RegistryReconciler(
        controller,
        rotation,
        store,
        node_id=settings.node_name,
        interval_seconds=settings.reconcile_interval_seconds,
    )

    app.state.redis = redis_client
    app.state.store = store
    app.state.cluster = cluster
    app.state.controller = controller
    app.state.rotation = rotation
    app.state.reconciler = reconciler
    return reconciler


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown of:
    - Redis connections
    - Background reconciliation task
    """
    logger.info("Starting Registry Controller service", version=settings.app_version)

    redis_client = RedisClient(settings.redis.url, key_prefix=settings.redis.key_prefix)
    await redis_client.connect()

    reconciler = wire_services(app, redis_client)

    reconcile_task = None
    if settings.node_name:
        reconcile_task = asyncio.create_task(reconciler.run_periodic())
    else:
        logger.warning("NODE_NAME is not set, periodic reconciliation disabled")
    app.state.reconcile_task = reconcile_task

    logger.info("Registry Controller service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down Registry Controller service")
    if reconcile_task is not None:
        reconcile_task.cancel()
        try:
            await reconcile_task
        except asyncio.CancelledError:
            pass
    await redis_client.close()
    logger.info("Registry Controller service shutdown complete")


app = FastAPI(
    title="Registry Controller Service",
    description="Keeps the cluster's container registry placed and its credentials rotated",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


@app.exception_handler(RegistryControllerError)
async def registry_error_handler(request: Request, exc: RegistryControllerError) -> JSONResponse:
    status_code = ERROR_STATUS_CODES.get(exc.code, 500)
    return JSONResponse(status_code=status_code, content=exc.to_response().model_dump(mode="json"))


# Include routers
app.include_router(registry.router, prefix="/api/v1", tags=["Registry"])
app.include_router(health.router, tags=["Health"])


@app.get("/")
async def root():
    """Root endpoint with service info."""
    return {
        "service": "registry-controller",
        "version": settings.app_version,
        "docs": "/docs",
    }
