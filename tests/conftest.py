"""
Shared fixtures. Nothing here touches the network: lookups are replaced and
Evidence values are built directly.
"""

from __future__ import annotations

from typing import Any

import pytest

from safelink_agent.config import Settings
from safelink_agent.models import Evidence, GeoInfo, HttpInfo, TLSInfo
from safelink_agent.target import resolve_target


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(ipinfo_token=None, report_dir=tmp_path / "reports")


def _tls() -> TLSInfo:
    return TLSInfo(
        subject="CN=example.com",
        issuer="CN=R11,O=Let's Encrypt,C=US",
        valid_from="2026-01-01T00:00:00+00:00",
        valid_to="2026-04-01T00:00:00+00:00",
        fingerprint="AB:CD",
    )


@pytest.fixture
def make_evidence():
    """Build Evidence for ``url``; a healthy https site unless overridden."""

    def _make(url: str = "https://example.com", **overrides: Any) -> Evidence:
        target = resolve_target(url)
        fields: dict[str, Any] = {
            "target": target,
            "ip_addresses": ["93.184.216.34"],
            "geo": GeoInfo(city="Los Angeles", region="California", country="US", isp="Edgecast", source="ipwho.is"),
            "http": HttpInfo(status_code=200, elapsed_seconds=0.12, final_url=target.normalized_url + "/"),
            "tls": _tls(),
            "whois": {"domain_name": "EXAMPLE.COM", "registrar": "RESERVED-Internet Assigned Numbers Authority"},
            "errors": [],
        }
        fields.update(overrides)
        return Evidence(**fields)

    return _make
