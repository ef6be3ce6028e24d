"""
Hostname normalization and validation for tenant-supplied domains.
"""

import re
from typing import Optional

from .errors import InvalidDomainFormat

# Valid hostname: at least two labels, alphabetic TLD
_DOMAIN_RE = re.compile(
    r"^(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+"
    r"[a-z]{2,63}$"
)

_PREFIX_RE = re.compile(r"^(?:https?://|www\.)+")

MAX_HOSTNAME_LENGTH = 253


def normalize_hostname(raw: Optional[str]) -> str:
    """
    Reduce user input to a bare hostname.

    Lowercases and strips surrounding whitespace, a leading scheme, a leading
    ``www.`` and trailing slashes. The steps repeat until nothing changes, so
    the result is already normalized.
    """
    value = raw or ""
    previous = None
    while value != previous:
        previous = value
        value = value.strip().lower()
        value = _PREFIX_RE.sub("", value)
        value = value.rstrip("/")
    return value


def is_valid_hostname(hostname: str) -> bool:
    """Check a normalized hostname against the domain grammar."""
    if not hostname or len(hostname) > MAX_HOSTNAME_LENGTH:
        return False
    return _DOMAIN_RE.fullmatch(hostname) is not None


def parse_hostname(raw: Optional[str]) -> str:
    """
    Normalize and validate tenant input.

    Raises InvalidDomainFormat if the normalized value is not a hostname.
    """
    hostname = normalize_hostname(raw)
    if not is_valid_hostname(hostname):
        raise InvalidDomainFormat(f"Invalid domain format: {raw!r}")
    return hostname


def root_domain(hostname: str) -> Optional[str]:
    """Return the last two labels of a hostname with three or more labels."""
    parts = hostname.split(".")
    if len(parts) < 3:
        return None
    return ".".join(parts[-2:])
