from __future__ import annotations

import re
from urllib.parse import urlparse

from .models import Target


_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


class InvalidTarget(ValueError):
    """The input could not be turned into an absolute URL with a host."""


def normalize_url(raw: str) -> str:
    value = raw.strip()
    if not _SCHEME_RE.match(value):
        value = "https://" + value
    return value


def strip_www(host: str) -> str:
    return host[4:] if host.startswith("www.") else host


def host_of(url: str) -> str:
    """Hostname of ``url``; raises ValueError when there is none."""
    parsed = urlparse(url)
    # Accessing .port validates it (urlparse raises ValueError on garbage).
    _ = parsed.port
    host = parsed.hostname or ""
    if not parsed.scheme or not host or any(c.isspace() for c in host):
        raise ValueError(f"no host in {url!r}")
    return host


def resolve_target(raw: str) -> Target:
    normalized = normalize_url(raw)
    try:
        host = host_of(normalized)
    except ValueError as e:
        raise InvalidTarget(f"Not a valid website address: {raw!r}") from e

    return Target(
        raw_input=raw,
        normalized_url=normalized,
        host=host,
        apex_domain=strip_www(host),
    )
