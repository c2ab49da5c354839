from __future__ import annotations

import httpx

from safelink_agent.geolocation import DEFAULT_PROVIDERS, IPINFO, IPWHOIS, resolve_geolocation
from safelink_agent.outcomes import Failure, Success

IPINFO_BODY = {"ip": "1.2.3.4", "city": "Sydney", "region": "New South Wales", "country": "AU", "org": "AS13335 Cloudflare"}
IPWHOIS_BODY = {
    "ip": "1.2.3.4",
    "success": True,
    "city": "Brisbane",
    "region": "Queensland",
    "country": "Australia",
    "connection": {"isp": "APNIC Research"},
}


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_provider_order_is_credentialed_first():
    assert DEFAULT_PROVIDERS == (IPINFO, IPWHOIS)
    assert IPINFO.needs_credential and not IPWHOIS.needs_credential


def test_primary_used_when_credential_configured():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        assert request.url.params["token"] == "secret"
        return httpx.Response(200, json=IPINFO_BODY)

    outcome = resolve_geolocation("1.2.3.4", credential="secret", client=_client(handler))

    assert isinstance(outcome, Success)
    assert outcome.value.source == "ipinfo"
    assert outcome.value.isp == "AS13335 Cloudflare"
    assert seen == ["ipinfo.io"]


def test_missing_credential_goes_straight_to_fallback():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        return httpx.Response(200, json=IPWHOIS_BODY)

    outcome = resolve_geolocation("1.2.3.4", credential=None, client=_client(handler))

    assert isinstance(outcome, Success)
    assert outcome.value.source == "ipwho.is"
    assert outcome.value.city == "Brisbane"
    assert outcome.value.isp == "APNIC Research"
    assert seen == ["ipwho.is"]


def test_primary_error_falls_back_once():
    seen: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.url.host)
        if request.url.host == "ipinfo.io":
            return httpx.Response(403, text="bad token")
        return httpx.Response(200, json=IPWHOIS_BODY)

    outcome = resolve_geolocation("1.2.3.4", credential="expired", client=_client(handler))

    assert isinstance(outcome, Success)
    assert outcome.value.source == "ipwho.is"
    assert seen == ["ipinfo.io", "ipwho.is"]


def test_both_providers_failing_is_one_failure_with_both_reasons():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "ipwho.is":
            return httpx.Response(200, json={"success": False, "message": "Reserved range"})
        raise httpx.ConnectTimeout("too slow", request=request)

    outcome = resolve_geolocation("10.0.0.1", credential="secret", client=_client(handler))

    assert isinstance(outcome, Failure)
    assert outcome.reason == "ipinfo: timeout; ipwho.is: ipwho.is error: Reserved range"


def test_ipinfo_error_payload_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "ipinfo.io":
            return httpx.Response(200, json={"error": {"title": "Wrong ip", "message": "Please provide a valid IP address"}})
        return httpx.Response(500, text="oops")

    outcome = resolve_geolocation("nope", credential="secret", client=_client(handler))

    assert isinstance(outcome, Failure)
    assert "IPinfo error: Wrong ip Please provide a valid IP address" in outcome.reason
    assert "ipwho.is: ipwho.is HTTP 500" in outcome.reason
