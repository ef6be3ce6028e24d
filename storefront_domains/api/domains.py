"""
REST API for tenant custom domain settings.
"""

import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel

from ..domains.errors import (
    DomainConflict,
    DomainError,
    DomainNotReady,
    InvalidDomainFormat,
    PersistenceError,
    ProviderRejected,
    ProviderTransportError,
)
from ..domains.models import DomainSettings
from ..domains.progress import derive_steps
from ..domains.service import DomainOnboarding

logger = logging.getLogger("storefront_domains.api.domains")

router = APIRouter(prefix="/api/domain", tags=["domains"])

_STATUS_CODES = {
    InvalidDomainFormat: 400,
    DomainConflict: 409,
    DomainNotReady: 409,
    ProviderRejected: 422,
    ProviderTransportError: 503,
    PersistenceError: 500,
}


# ── Dependencies ─────────────────────────────────────────────────────

def get_onboarding(request: Request) -> DomainOnboarding:
    return request.app.state.onboarding


async def get_tenant_id(x_tenant_id: str = Header(default="")) -> str:
    """Tenant id set by the upstream authentication layer."""
    tenant_id = x_tenant_id.strip()
    if not tenant_id:
        raise HTTPException(status_code=400, detail="Missing X-Tenant-ID header")
    return tenant_id


def _http_error(e: DomainError) -> HTTPException:
    status_code = next(
        (code for cls, code in _STATUS_CODES.items() if isinstance(e, cls)), 500
    )
    return HTTPException(status_code=status_code, detail=e.user_message)


def _view(settings: DomainSettings) -> dict:
    return {
        **settings.to_api_response(),
        "steps": [s.to_dict() for s in derive_steps(settings)],
    }


# ── Request models ───────────────────────────────────────────────────

class DomainRegisterRequest(BaseModel):
    domain: str


# ── Routes ───────────────────────────────────────────────────────────

@router.get("")
async def get_domain(
    tenant_id: str = Depends(get_tenant_id),
    onboarding: DomainOnboarding = Depends(get_onboarding),
):
    """Current domain settings and onboarding progress."""
    try:
        settings = await onboarding.get_settings(tenant_id)
    except DomainError as e:
        raise _http_error(e)
    return _view(settings)


@router.put("")
async def register_domain(
    body: DomainRegisterRequest,
    tenant_id: str = Depends(get_tenant_id),
    onboarding: DomainOnboarding = Depends(get_onboarding),
):
    """Register a custom domain."""
    try:
        settings = await onboarding.register_domain(tenant_id, body.domain)
    except DomainError as e:
        raise _http_error(e)

    return {
        **_view(settings),
        "message": "Domain registered successfully. Please configure your DNS records.",
    }


@router.delete("")
async def remove_domain(
    tenant_id: str = Depends(get_tenant_id),
    onboarding: DomainOnboarding = Depends(get_onboarding),
):
    """Remove the tenant's custom domain."""
    try:
        await onboarding.remove_domain(tenant_id)
    except DomainError as e:
        raise _http_error(e)
    return {"deleted": True}


@router.post("/check")
async def check_domain(
    tenant_id: str = Depends(get_tenant_id),
    onboarding: DomainOnboarding = Depends(get_onboarding),
):
    """Run one status reconciliation."""
    try:
        settings = await onboarding.check_domain(tenant_id)
    except DomainError as e:
        raise _http_error(e)
    return _view(settings)


@router.post("/ssl")
async def force_ssl(
    tenant_id: str = Depends(get_tenant_id),
    onboarding: DomainOnboarding = Depends(get_onboarding),
):
    """Ask the provider to issue the certificate now."""
    try:
        settings = await onboarding.force_certificate(tenant_id)
    except DomainError as e:
        raise _http_error(e)

    return {
        **_view(settings),
        "message": "SSL provisioning triggered. It may take a few minutes to complete.",
    }


@router.post("/watch")
async def start_watch(
    tenant_id: str = Depends(get_tenant_id),
    onboarding: DomainOnboarding = Depends(get_onboarding),
):
    """Start server-side polling while the settings view is open."""

    def _log_update(settings):
        if settings is not None:
            logger.debug(f"Watch update for {tenant_id}: {settings.stage.name}")

    handle = onboarding.start_polling(tenant_id, _log_update)
    return {"watch_id": handle.id}


@router.delete("/watch/{watch_id}")
async def stop_watch(
    watch_id: str,
    tenant_id: str = Depends(get_tenant_id),
    onboarding: DomainOnboarding = Depends(get_onboarding),
):
    """Stop a polling session."""
    handle = onboarding.scheduler.get(watch_id)
    if handle is None or handle.tenant_id != tenant_id:
        raise HTTPException(status_code=404, detail="Watch not found")

    onboarding.stop_polling(handle)
    return {"stopped": True, "watch_id": watch_id}


@router.get("/lookup")
async def lookup_host(
    host: str,
    onboarding: DomainOnboarding = Depends(get_onboarding),
):
    """Resolve a request host to the tenant whose storefront it serves."""
    try:
        tenant_id = await onboarding.resolve_tenant(host)
    except DomainError as e:
        raise _http_error(e)

    if tenant_id is None:
        raise HTTPException(status_code=404, detail="Domain not found")
    return {"host": host, "tenant_id": tenant_id}
