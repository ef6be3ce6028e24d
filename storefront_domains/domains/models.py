"""
Custom domain data model for Storefront Domains.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import List, Optional

PENDING = "pending"
ACTIVE = "active"


class DomainStage(IntEnum):
    """Ordered onboarding stage derived from the two verification statuses."""

    ABSENT = 0
    PENDING_DNS = 1
    PENDING_SSL = 2
    ACTIVE = 3


def _dt(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _parse_dt(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class DnsRecord:
    """Advisory DNS record the tenant adds at their registrar."""

    type: str
    host: str
    value: str

    def to_dict(self) -> dict:
        return {"type": self.type, "host": self.host, "value": self.value}

    @classmethod
    def from_dict(cls, data: dict) -> "DnsRecord":
        return cls(type=data["type"], host=data["host"], value=data["value"])


@dataclass
class DomainSettings:
    """Custom domain settings of one tenant."""

    tenant_id: str
    custom_domain: Optional[str] = None
    dns_status: str = PENDING
    ssl_status: str = PENDING
    dns_records: List[DnsRecord] = field(default_factory=list)
    provider_domain_id: Optional[str] = None
    domain_registered_at: Optional[datetime] = None
    dns_verified_at: Optional[datetime] = None
    ssl_provisioned_at: Optional[datetime] = None
    last_checked_at: Optional[datetime] = None
    ssl_last_attempt_at: Optional[datetime] = None

    @property
    def stage(self) -> DomainStage:
        """Current onboarding stage."""
        if not self.custom_domain:
            return DomainStage.ABSENT
        if self.dns_status != ACTIVE:
            return DomainStage.PENDING_DNS
        if self.ssl_status != ACTIVE:
            return DomainStage.PENDING_SSL
        return DomainStage.ACTIVE

    @property
    def is_active(self) -> bool:
        return self.stage is DomainStage.ACTIVE

    @staticmethod
    def absent_fields() -> dict:
        """Field values of a tenant without a custom domain."""
        return {
            "custom_domain": None,
            "dns_status": PENDING,
            "ssl_status": PENDING,
            "dns_records": [],
            "provider_domain_id": None,
            "domain_registered_at": None,
            "dns_verified_at": None,
            "ssl_provisioned_at": None,
            "last_checked_at": None,
            "ssl_last_attempt_at": None,
        }

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "tenant_id": self.tenant_id,
            "custom_domain": self.custom_domain,
            "dns_status": self.dns_status,
            "ssl_status": self.ssl_status,
            "dns_records": [r.to_dict() for r in self.dns_records],
            "provider_domain_id": self.provider_domain_id,
            "domain_registered_at": _dt(self.domain_registered_at),
            "dns_verified_at": _dt(self.dns_verified_at),
            "ssl_provisioned_at": _dt(self.ssl_provisioned_at),
            "last_checked_at": _dt(self.last_checked_at),
            "ssl_last_attempt_at": _dt(self.ssl_last_attempt_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DomainSettings":
        """Create from dictionary."""
        return cls(
            tenant_id=data["tenant_id"],
            custom_domain=data.get("custom_domain"),
            dns_status=data.get("dns_status") or PENDING,
            ssl_status=data.get("ssl_status") or PENDING,
            dns_records=[DnsRecord.from_dict(r) for r in data.get("dns_records") or []],
            provider_domain_id=data.get("provider_domain_id"),
            domain_registered_at=_parse_dt(data.get("domain_registered_at")),
            dns_verified_at=_parse_dt(data.get("dns_verified_at")),
            ssl_provisioned_at=_parse_dt(data.get("ssl_provisioned_at")),
            last_checked_at=_parse_dt(data.get("last_checked_at")),
            ssl_last_attempt_at=_parse_dt(data.get("ssl_last_attempt_at")),
        )

    def to_api_response(self) -> dict:
        """Convert to API response, hiding the provider reference."""
        return {
            "custom_domain": self.custom_domain,
            "dns_status": self.dns_status,
            "ssl_status": self.ssl_status,
            "stage": self.stage.name.lower(),
            "dns_records": [r.to_dict() for r in self.dns_records],
            "domain_registered_at": _dt(self.domain_registered_at),
            "dns_verified_at": _dt(self.dns_verified_at),
            "ssl_provisioned_at": _dt(self.ssl_provisioned_at),
            "last_checked_at": _dt(self.last_checked_at),
        }
