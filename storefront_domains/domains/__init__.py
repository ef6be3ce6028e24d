"""Custom domain onboarding for Storefront Domains."""

from .models import DnsRecord, DomainSettings, DomainStage
from .store import SettingsStore
from .provider import DomainStatus, ExternalDomainProvider, NetlifyDomainProvider
from .registration import DomainRegistrationService
from .reconciler import StatusReconciler
from .progress import derive_steps
from .scheduler import PollingHandle, PollingScheduler
from .service import DomainOnboarding

__all__ = [
    "DnsRecord",
    "DomainSettings",
    "DomainStage",
    "SettingsStore",
    "DomainStatus",
    "ExternalDomainProvider",
    "NetlifyDomainProvider",
    "DomainRegistrationService",
    "StatusReconciler",
    "derive_steps",
    "PollingHandle",
    "PollingScheduler",
    "DomainOnboarding",
]
