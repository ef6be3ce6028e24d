"""
Registration of a tenant-supplied hostname with the domain provider.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List

from .errors import DomainConflict, DomainError
from .hostname import parse_hostname
from .models import DnsRecord, DomainSettings, PENDING
from .provider import ExternalDomainProvider
from .store import SettingsStore

logger = logging.getLogger("storefront_domains.domains.registration")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DomainRegistrationService:
    """Validates, registers and persists a tenant's custom domain."""

    def __init__(
        self,
        store: SettingsStore,
        provider: ExternalDomainProvider,
        fallback_a_record: str = "75.2.60.5",
        fallback_cname_target: str = "",
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.provider = provider
        self.fallback_a_record = fallback_a_record
        self.fallback_cname_target = fallback_cname_target
        self.clock = clock

    def fallback_records(self, hostname: str) -> List[DnsRecord]:
        """Advisory records used when the provider returns none."""
        return [
            DnsRecord(type="A", host="@", value=self.fallback_a_record),
            DnsRecord(type="CNAME", host="www", value=self.fallback_cname_target or hostname),
        ]

    async def register(self, tenant_id: str, raw_input: str) -> DomainSettings:
        """
        Register a custom domain for a tenant.

        Nothing is persisted unless the provider accepts the hostname.

        Raises:
            InvalidDomainFormat: input is not a hostname
            DomainConflict: tenant already has a domain, or another tenant
                claims this one
            ProviderRejected / ProviderTransportError: provider failure
            PersistenceError: store unreachable
        """
        hostname = parse_hostname(raw_input)

        current = await self.store.get(tenant_id)
        if current and current.custom_domain:
            raise DomainConflict(
                f"Tenant {tenant_id} already has domain {current.custom_domain}",
                user_message="Remove your current domain before adding a new one.",
            )

        if not await self.store.claim_domain(hostname, tenant_id):
            raise DomainConflict(f"Domain {hostname} is claimed by another tenant")

        try:
            registration = await self.provider.register_domain(hostname)
        except DomainError as e:
            logger.error(f"Provider refused {hostname} for {tenant_id}: {e}")
            await self.store.release_domain(hostname, tenant_id)
            raise

        fields = DomainSettings.absent_fields()
        fields.update(
            custom_domain=hostname,
            provider_domain_id=registration.provider_id,
            dns_records=registration.dns_records or self.fallback_records(hostname),
            dns_status=PENDING,
            ssl_status=PENDING,
            domain_registered_at=self.clock(),
        )
        try:
            settings = await self.store.upsert(tenant_id, fields)
        except DomainError:
            await self.store.release_domain(hostname, tenant_id)
            raise

        logger.info(f"Registered domain: {hostname} -> {tenant_id}")
        return settings
