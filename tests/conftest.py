"""
Pytest configuration for Storefront Domains tests.
"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Set test environment variables
os.environ["STOREFRONT_NETLIFY_SITE_ID"] = "test-site"
os.environ["STOREFRONT_NETLIFY_ACCESS_TOKEN"] = "test-token"
os.environ["STOREFRONT_DEBUG"] = "true"
os.environ["STOREFRONT_USE_REDIS"] = "false"

from storefront_domains.domains.errors import ProviderTransportError  # noqa: E402
from storefront_domains.domains.models import DnsRecord  # noqa: E402
from storefront_domains.domains.provider import (  # noqa: E402
    DomainStatus,
    ExternalDomainProvider,
    ProviderRegistration,
)


class FakeClock:
    """Deterministic clock advancing one minute per reading."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


class FakeProvider(ExternalDomainProvider):
    """
    Scripted provider.

    ``statuses`` is consumed one entry per status call; the last entry repeats.
    Entries may be exceptions, which are raised instead.
    """

    def __init__(self):
        self.statuses = [DomainStatus(dns_verified=False, ssl_issued=False)]
        self.records = [
            DnsRecord(type="A", host="@", value="75.2.60.5"),
            DnsRecord(type="CNAME", host="www", value="test-site.netlify.app"),
        ]
        self.register_error = None
        self.certificate_error = None
        self.registered = []
        self.status_calls = 0
        self.certificate_requests = 0
        self.closed = False

    async def register_domain(self, hostname):
        if self.register_error is not None:
            raise self.register_error
        self.registered.append(hostname)
        return ProviderRegistration(provider_id=f"test-site:{hostname}", dns_records=list(self.records))

    async def get_domain_status(self, provider_id):
        index = min(self.status_calls, len(self.statuses) - 1)
        self.status_calls += 1
        status = self.statuses[index]
        if isinstance(status, Exception):
            raise status
        return status

    async def request_certificate(self, provider_id):
        self.certificate_requests += 1
        if self.certificate_error is not None:
            raise self.certificate_error

    async def close(self):
        self.closed = True


@pytest.fixture
def test_settings():
    """Provide test settings."""
    from storefront_domains.config import Settings
    return Settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    """In-memory settings store (no Redis)."""
    from storefront_domains.domains.store import SettingsStore
    return SettingsStore(use_redis=False)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def transport_error():
    return ProviderTransportError("connection reset")


@pytest.fixture
def onboarding(store, provider, clock):
    """Onboarding stack over the in-memory store and fake provider."""
    from storefront_domains.domains.reconciler import StatusReconciler
    from storefront_domains.domains.registration import DomainRegistrationService
    from storefront_domains.domains.scheduler import PollingScheduler
    from storefront_domains.domains.service import DomainOnboarding

    reconciler = StatusReconciler(store, provider, clock=clock)
    return DomainOnboarding(
        store=store,
        provider=provider,
        registration=DomainRegistrationService(store, provider, clock=clock),
        reconciler=reconciler,
        scheduler=PollingScheduler(reconciler, interval=0.01),
    )
