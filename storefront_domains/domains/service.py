"""
Application-facing entry points for custom domain onboarding.
"""

import logging
from typing import List, Optional

from ..config import Settings
from .hostname import normalize_hostname, root_domain
from .models import DomainSettings
from .progress import Step, derive_steps
from .provider import ExternalDomainProvider, NetlifyDomainProvider
from .reconciler import StatusReconciler
from .registration import DomainRegistrationService
from .scheduler import PollingHandle, PollingScheduler, UpdateCallback
from .store import SettingsStore

logger = logging.getLogger("storefront_domains.domains.service")


class DomainOnboarding:
    """Wires the store, provider, reconciler and scheduler together."""

    def __init__(
        self,
        store: SettingsStore,
        provider: ExternalDomainProvider,
        registration: DomainRegistrationService,
        reconciler: StatusReconciler,
        scheduler: PollingScheduler,
    ):
        self.store = store
        self.provider = provider
        self.registration = registration
        self.reconciler = reconciler
        self.scheduler = scheduler

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        provider: Optional[ExternalDomainProvider] = None,
    ) -> "DomainOnboarding":
        """Build the onboarding stack from application settings."""
        store = SettingsStore(
            redis_url=settings.redis_url,
            key_prefix=settings.key_prefix,
            use_redis=settings.use_redis,
        )
        if provider is None:
            provider = NetlifyDomainProvider(
                site_id=settings.netlify_site_id,
                access_token=settings.netlify_access_token,
                api_url=settings.netlify_api_url,
                timeout=settings.provider_timeout,
                probe_timeout=settings.probe_timeout,
                fallback_a_record=settings.fallback_a_record,
                fallback_cname_target=settings.fallback_cname_target,
            )
        reconciler = StatusReconciler(
            store, provider, ssl_retry_interval=settings.ssl_retry_interval
        )
        return cls(
            store=store,
            provider=provider,
            registration=DomainRegistrationService(
                store,
                provider,
                fallback_a_record=settings.fallback_a_record,
                fallback_cname_target=settings.fallback_cname_target,
            ),
            reconciler=reconciler,
            scheduler=PollingScheduler(
                reconciler,
                interval=settings.poll_interval,
                max_ticks=settings.max_poll_ticks,
            ),
        )

    async def register_domain(self, tenant_id: str, raw_input: str) -> DomainSettings:
        return await self.registration.register(tenant_id, raw_input)

    async def remove_domain(self, tenant_id: str) -> None:
        """
        Reset a tenant to the no-domain state.

        Stops the tenant's polling sessions and releases the hostname claim.
        The hostname stays registered at the provider.
        """
        stopped = self.scheduler.stop_tenant(tenant_id)
        current = await self.store.get(tenant_id)
        await self.store.upsert(tenant_id, DomainSettings.absent_fields())

        if current and current.custom_domain:
            await self.store.release_domain(current.custom_domain, tenant_id)
            logger.info(
                f"Removed domain {current.custom_domain} from {tenant_id} "
                f"({stopped} polling sessions stopped)"
            )

    async def get_settings(self, tenant_id: str) -> DomainSettings:
        return await self.store.get(tenant_id) or DomainSettings(tenant_id=tenant_id)

    async def get_progress_view(self, tenant_id: str) -> List[Step]:
        return derive_steps(await self.store.get(tenant_id))

    async def check_domain(self, tenant_id: str) -> DomainSettings:
        settings = await self.reconciler.check(tenant_id)
        return settings or DomainSettings(tenant_id=tenant_id)

    async def force_certificate(self, tenant_id: str) -> DomainSettings:
        return await self.reconciler.force_certificate(tenant_id)

    def start_polling(
        self, tenant_id: str, on_update: Optional[UpdateCallback] = None
    ) -> PollingHandle:
        return self.scheduler.start(tenant_id, on_update)

    def stop_polling(self, handle: PollingHandle) -> None:
        self.scheduler.stop(handle)

    async def resolve_tenant(self, host: str) -> Optional[str]:
        """
        Tenant serving a request host, if its domain is fully active.

        Tries the exact hostname first, then the root domain of a subdomain.
        """
        hostname = normalize_hostname(host.split(":", 1)[0])
        if not hostname:
            return None

        for candidate in (hostname, root_domain(hostname)):
            if not candidate:
                continue
            settings = await self.store.lookup(candidate)
            if settings:
                return settings.tenant_id
        return None

    async def close(self) -> None:
        await self.scheduler.shutdown()
        await self.provider.close()
        await self.store.close()
