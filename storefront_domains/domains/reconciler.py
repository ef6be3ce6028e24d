"""
Reconciliation of persisted domain status with the provider's view.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .errors import DomainError, DomainNotReady, PersistenceError
from .models import ACTIVE, DomainSettings, DomainStage, PENDING
from .provider import DomainStatus, ExternalDomainProvider
from .store import SettingsStore

logger = logging.getLogger("storefront_domains.domains.reconciler")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StatusReconciler:
    """
    Advances a tenant's DNS and SSL status, once and in order.

    Status fields only move from pending to active. SSL never becomes active
    before DNS, even when the provider reports both at once or out of order.
    First-transition timestamps are written once and never rewritten.
    """

    def __init__(
        self,
        store: SettingsStore,
        provider: ExternalDomainProvider,
        ssl_retry_interval: int = 1800,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.provider = provider
        self.ssl_retry_interval = timedelta(seconds=ssl_retry_interval)
        self.clock = clock

    async def check(self, tenant_id: str) -> Optional[DomainSettings]:
        """
        Run one reconciliation for a tenant.

        Returns the settings unchanged if no domain is registered. On provider
        failure only ``last_checked_at`` is written and the error is re-raised.
        """
        settings = await self.store.get(tenant_id)
        if settings is None or not settings.custom_domain:
            return settings

        now = self.clock()
        try:
            status = await self.provider.get_domain_status(settings.provider_domain_id)
        except DomainError as e:
            level = logging.WARNING if e.retryable else logging.ERROR
            logger.log(level, f"Status check failed for {settings.custom_domain}: {e}")
            await self._record_failed_check(tenant_id, settings.custom_domain, now)
            raise

        dns_active = settings.dns_status == ACTIVE or status.dns_verified
        ssl_active = settings.ssl_status == ACTIVE or (dns_active and status.ssl_issued)
        requested = False
        if dns_active and not ssl_active and self._certificate_request_due(settings, now):
            requested = await self._request_certificate(settings)

        # No provider call may sit between this read and the write below
        latest = await self.store.get(tenant_id)
        if latest is None or latest.custom_domain != settings.custom_domain:
            logger.info(f"Discarding status of {settings.custom_domain}: domain changed")
            return latest

        fields = self._advance(latest, status, now)
        if requested:
            fields["ssl_last_attempt_at"] = now
        return await self.store.upsert(tenant_id, fields)

    async def _record_failed_check(self, tenant_id: str, hostname: str, now: datetime) -> None:
        """Stamp ``last_checked_at`` unless the domain changed meanwhile."""
        try:
            latest = await self.store.get(tenant_id)
            if latest is None or latest.custom_domain != hostname:
                return
            await self.store.upsert(tenant_id, {"last_checked_at": now})
        except PersistenceError as e:
            logger.error(f"Could not record failed check of {hostname}: {e}")

    @staticmethod
    def _advance(settings: DomainSettings, status: DomainStatus, now: datetime) -> dict:
        """Fields moving the record forward; status never moves back."""
        fields = {"last_checked_at": now}
        dns_active = settings.dns_status == ACTIVE

        if status.dns_verified and not dns_active:
            fields["dns_status"] = ACTIVE
            if settings.dns_verified_at is None:
                fields["dns_verified_at"] = now
            dns_active = True
            logger.info(f"DNS verified for {settings.custom_domain}")

        if status.ssl_issued and settings.ssl_status == PENDING:
            if dns_active:
                fields["ssl_status"] = ACTIVE
                if settings.ssl_provisioned_at is None:
                    fields["ssl_provisioned_at"] = now
                logger.info(f"SSL provisioned for {settings.custom_domain}")
            else:
                logger.debug(
                    f"Ignoring SSL report for {settings.custom_domain}: DNS still pending"
                )

        return fields

    def _certificate_request_due(self, settings: DomainSettings, now: datetime) -> bool:
        last = settings.ssl_last_attempt_at
        return last is None or now - last > self.ssl_retry_interval

    async def _request_certificate(self, settings: DomainSettings) -> bool:
        try:
            await self.provider.request_certificate(settings.provider_domain_id)
        except DomainError as e:
            logger.warning(f"Certificate request failed for {settings.custom_domain}: {e}")
            return False
        return True

    async def force_certificate(self, tenant_id: str) -> DomainSettings:
        """
        Request a certificate now, ignoring the retry interval.

        Raises DomainNotReady unless DNS is verified.
        """
        settings = await self.store.get(tenant_id)
        if settings is None or settings.stage < DomainStage.PENDING_SSL:
            raise DomainNotReady(f"DNS not verified for tenant {tenant_id}")

        now = self.clock()
        await self.provider.request_certificate(settings.provider_domain_id)

        latest = await self.store.get(tenant_id)
        if latest is None or latest.custom_domain != settings.custom_domain:
            logger.info(
                f"Not recording certificate request for {settings.custom_domain}: domain changed"
            )
            return latest or DomainSettings(tenant_id=tenant_id)
        return await self.store.upsert(tenant_id, {"ssl_last_attempt_at": now})
