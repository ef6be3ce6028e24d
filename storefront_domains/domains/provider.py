"""
External domain provider: registers hostnames with the hosting platform and
reports DNS/TLS verification status.
"""

import abc
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from .errors import DomainError, ProviderRejected, ProviderTransportError
from .models import DnsRecord
from .verification import DnsRecordChecker

logger = logging.getLogger("storefront_domains.domains.provider")


@dataclass
class ProviderRegistration:
    """Result of registering a hostname with the provider."""

    provider_id: str
    dns_records: List[DnsRecord] = field(default_factory=list)


@dataclass(frozen=True)
class DomainStatus:
    """Verification status reported by the provider."""

    dns_verified: bool
    ssl_issued: bool


class ExternalDomainProvider(abc.ABC):
    """
    Remote API hosting tenant storefronts.

    Implementations raise ProviderRejected for permanent refusals and
    ProviderTransportError for network failures and timeouts.
    """

    @abc.abstractmethod
    async def register_domain(self, hostname: str) -> ProviderRegistration:
        """Attach a hostname to the hosted storefront."""

    @abc.abstractmethod
    async def get_domain_status(self, provider_id: str) -> DomainStatus:
        """Report whether DNS points at the platform and a certificate is live."""

    @abc.abstractmethod
    async def request_certificate(self, provider_id: str) -> None:
        """Ask the provider to (re)try certificate issuance."""

    async def close(self) -> None:
        """Release network resources."""


class NetlifyDomainProvider(ExternalDomainProvider):
    """
    Netlify-backed provider.

    A hostname is registered by adding it and its ``www`` variant to the site's
    domain aliases. Verification is observed from outside: a Netlify response
    over HTTPS means DNS and TLS are live, over plain HTTP means only DNS is.
    When neither probe answers, public DNS is compared with the advisory
    records.
    """

    NETLIFY_HEADER = "x-nf-request-id"

    def __init__(
        self,
        site_id: str,
        access_token: str,
        api_url: str = "https://api.netlify.com/api/v1",
        timeout: float = 15.0,
        probe_timeout: float = 10.0,
        fallback_a_record: str = "75.2.60.5",
        fallback_cname_target: str = "",
        record_checker: Optional[DnsRecordChecker] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.site_id = site_id
        self.fallback_a_record = fallback_a_record
        self.fallback_cname_target = fallback_cname_target
        self.record_checker = record_checker or DnsRecordChecker(timeout=probe_timeout)
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            headers={"Authorization": f"Bearer {access_token}"},
            timeout=timeout,
            transport=transport,
        )
        self._probe_client = httpx.AsyncClient(
            timeout=probe_timeout,
            follow_redirects=True,
            transport=transport,
        )

    # ── Helpers ─────────────────────────────────────────────────────

    def _provider_id(self, hostname: str) -> str:
        return f"{self.site_id}:{hostname}"

    @staticmethod
    def _hostname_of(provider_id: str) -> str:
        return provider_id.rsplit(":", 1)[-1]

    async def _request(self, method: str, path: str, **kwargs) -> dict:
        """Call the Netlify API, translating failures into provider errors."""
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise ProviderTransportError(f"Netlify {method} {path} timed out") from e
        except httpx.HTTPError as e:
            raise ProviderTransportError(f"Netlify {method} {path} failed: {e}") from e

        if not response.is_success:
            detail = response.reason_phrase
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("message"):
                detail = body["message"]
            raise ProviderRejected(
                f"Netlify {method} {path} returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )

        if not response.content:
            return {}
        return response.json()

    async def _get_site(self) -> dict:
        return await self._request("GET", f"/sites/{self.site_id}")

    def _dns_records(self, site: dict) -> List[DnsRecord]:
        target = self.fallback_cname_target or f"{site.get('name') or self.site_id}.netlify.app"
        return [
            DnsRecord(type="A", host="@", value=self.fallback_a_record),
            DnsRecord(type="CNAME", host="www", value=target),
        ]

    async def _probe(self, url: str) -> bool:
        """HEAD a URL and report whether Netlify answered."""
        try:
            response = await self._probe_client.head(url)
        except httpx.HTTPError as e:
            logger.debug(f"Probe failed for {url}: {e}")
            return False

        server = response.headers.get("server", "").lower()
        return "netlify" in server or self.NETLIFY_HEADER in response.headers

    # ── Provider API ────────────────────────────────────────────────

    async def register_domain(self, hostname: str) -> ProviderRegistration:
        site = await self._get_site()
        aliases = list(site.get("domain_aliases") or [])

        added = [d for d in (hostname, f"www.{hostname}") if d not in aliases]
        if added:
            logger.info(f"Adding Netlify aliases {added} to site {self.site_id}")
            await self._request(
                "PATCH",
                f"/sites/{self.site_id}",
                json={"domain_aliases": aliases + added},
            )
        else:
            logger.info(f"{hostname} already in Netlify aliases")

        # Expected to fail until DNS points at Netlify
        try:
            await self.request_certificate(self._provider_id(hostname))
        except DomainError as e:
            logger.warning(f"Initial certificate request failed for {hostname}: {e}")

        return ProviderRegistration(
            provider_id=self._provider_id(hostname),
            dns_records=self._dns_records(site),
        )

    async def get_domain_status(self, provider_id: str) -> DomainStatus:
        hostname = self._hostname_of(provider_id)
        site = await self._get_site()
        aliases = site.get("domain_aliases") or []

        if hostname not in aliases and f"www.{hostname}" not in aliases:
            logger.warning(f"{hostname} is not among the Netlify site aliases")
            return DomainStatus(dns_verified=False, ssl_issued=False)

        if await self._probe(f"https://{hostname}"):
            return DomainStatus(dns_verified=True, ssl_issued=True)

        if await self._probe(f"http://{hostname}"):
            return DomainStatus(dns_verified=True, ssl_issued=False)

        ok, message = await self.record_checker.check_records(
            hostname, self._dns_records(site)
        )
        logger.debug(f"DNS record check for {hostname}: {message}")
        return DomainStatus(dns_verified=ok, ssl_issued=False)

    async def request_certificate(self, provider_id: str) -> None:
        await self._request("POST", f"/sites/{self.site_id}/ssl")
        logger.info(f"Certificate provisioning requested for {self._hostname_of(provider_id)}")

    async def close(self) -> None:
        await self._client.aclose()
        await self._probe_client.aclose()
