"""
DNS record checks for custom domains.
"""

import logging
from typing import Iterable, Set, Tuple

import dns.asyncresolver
import dns.exception
import dns.resolver

from .models import DnsRecord

logger = logging.getLogger("storefront_domains.domains.verification")


class DnsRecordChecker:
    """Checks whether a domain's public DNS matches its advisory records."""

    def __init__(self, timeout: float = 10.0):
        self.timeout = timeout

    def _get_resolver(self) -> dns.asyncresolver.Resolver:
        resolver = dns.asyncresolver.Resolver()
        resolver.timeout = self.timeout
        resolver.lifetime = self.timeout
        return resolver

    @staticmethod
    def _record_name(hostname: str, host: str) -> str:
        if host in ("@", ""):
            return hostname
        return f"{host}.{hostname}"

    async def _resolve(
        self, resolver: dns.asyncresolver.Resolver, name: str, rdtype: str
    ) -> Set[str]:
        """Resolve a record set, returning normalized values."""
        values = set()
        try:
            answers = await resolver.resolve(name, rdtype)
        except (dns.resolver.NoAnswer, dns.resolver.NXDOMAIN):
            return values
        except dns.exception.DNSException as e:
            logger.debug(f"{rdtype} lookup failed for {name}: {e}")
            return values

        for rdata in answers:
            if rdtype == "CNAME":
                values.add(str(rdata.target).rstrip(".").lower())
            else:
                values.add(str(rdata))
        return values

    async def check_records(
        self, hostname: str, records: Iterable[DnsRecord]
    ) -> Tuple[bool, str]:
        """
        Check whether any advisory record is live in public DNS.

        A root ``A`` record or a ``www`` CNAME pointing at the expected target
        is enough for the storefront to be reachable.
        Returns (success, message).
        """
        hostname = hostname.lower().rstrip(".")
        resolver = self._get_resolver()
        misses = []

        for record in records:
            name = self._record_name(hostname, record.host)
            expected = record.value.rstrip(".").lower()
            found = await self._resolve(resolver, name, record.type)
            if expected in found:
                return True, f"{record.type} verified: {name} -> {expected}"
            if found:
                misses.append(
                    f"{record.type} {name} points to {', '.join(sorted(found))}, "
                    f"expected {expected}"
                )
            else:
                misses.append(f"No {record.type} record found for {name}")

        return False, "; ".join(misses) or f"No records to check for {hostname}"
