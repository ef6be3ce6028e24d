"""
Tests for the domain settings model.
"""

from datetime import datetime, timezone

from storefront_domains.domains.models import (
    ACTIVE,
    PENDING,
    DnsRecord,
    DomainSettings,
    DomainStage,
)


class TestDomainSettingsModel:
    def test_creation_defaults(self):
        settings = DomainSettings(tenant_id="t1")
        assert settings.custom_domain is None
        assert settings.dns_status == PENDING
        assert settings.ssl_status == PENDING
        assert settings.dns_records == []
        assert settings.provider_domain_id is None
        assert settings.dns_verified_at is None
        assert settings.stage is DomainStage.ABSENT

    def test_stage_ordering(self):
        base = dict(tenant_id="t1", custom_domain="myshop.com", provider_domain_id="p")
        assert DomainSettings(**base).stage is DomainStage.PENDING_DNS
        assert DomainSettings(**base, dns_status=ACTIVE).stage is DomainStage.PENDING_SSL
        full = DomainSettings(**base, dns_status=ACTIVE, ssl_status=ACTIVE)
        assert full.stage is DomainStage.ACTIVE
        assert full.is_active
        assert DomainStage.ABSENT < DomainStage.PENDING_DNS < DomainStage.PENDING_SSL < DomainStage.ACTIVE

    def test_serialization_with_dates(self):
        now = datetime.now(timezone.utc)
        settings = DomainSettings(
            tenant_id="t1",
            custom_domain="myshop.com",
            dns_status=ACTIVE,
            dns_records=[DnsRecord(type="A", host="@", value="75.2.60.5")],
            provider_domain_id="site:myshop.com",
            domain_registered_at=now,
            dns_verified_at=now,
            last_checked_at=now,
        )
        restored = DomainSettings.from_dict(settings.to_dict())

        assert restored == settings
        assert restored.dns_records[0].type == "A"
        assert restored.ssl_provisioned_at is None

    def test_api_response_hides_provider_id(self):
        settings = DomainSettings(
            tenant_id="t1", custom_domain="myshop.com", provider_domain_id="secret"
        )
        resp = settings.to_api_response()
        assert "provider_domain_id" not in resp
        assert resp["stage"] == "pending_dns"
        assert resp["custom_domain"] == "myshop.com"

    def test_absent_fields_reset_everything(self):
        fields = DomainSettings.absent_fields()
        settings = DomainSettings(tenant_id="t1", **fields)
        assert settings.stage is DomainStage.ABSENT
        assert set(fields) == set(settings.to_dict()) - {"tenant_id"}
