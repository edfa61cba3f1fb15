"""Read-only registry status endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Request

from shared.models import RegistryStatus

router = APIRouter()


@router.get(
    "/registry",
    response_model=RegistryStatus,
    summary="Registry status",
    description="Feature flags, address and current auth secret of the local registry.",
)
async def get_registry_status(request: Request) -> RegistryStatus:
    store = request.app.state.store
    controller = request.app.state.controller
    rotation = request.app.state.rotation

    state = await store.get_feature_state()
    domain_and_port = None
    if state.root_domain:
        domain_and_port = await controller.get_local_registry_domain_and_port()

    return RegistryStatus(
        has_local_registry=state.has_local_registry,
        has_registry_ssl=state.has_registry_ssl,
        domain_and_port=domain_and_port,
        auth_secret_version=state.registry_auth_secret_version,
        auth_secret_name=await rotation.get_current_auth_secret_name(),
    )
