"""
IP geolocation with an ordered provider chain.

ipinfo.io needs a token and gives the better ISP data; ipwho.is needs nothing.
Providers are tried in order and the first success wins. There is no retry
loop: each provider gets exactly one request.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import quote

import httpx

from .log import get_logger
from .models import GeoInfo
from .outcomes import Failure, LookupOutcome, Success, failure_reason, guarded

logger = get_logger(__name__)


class GeoProviderError(RuntimeError):
    pass


@dataclass(frozen=True)
class GeoProvider:
    name: str
    fetch: Callable[[httpx.Client, str, str | None], GeoInfo]
    needs_credential: bool = False


def _json_or_none(res: httpx.Response) -> Any:
    try:
        return res.json()
    except ValueError:
        return None


def _fetch_ipinfo(client: httpx.Client, ip: str, token: str | None) -> GeoInfo:
    res = client.get(
        f"https://ipinfo.io/{quote(ip, safe='')}",
        params={"token": token},
        headers={"accept": "application/json"},
    )
    if res.status_code < 200 or res.status_code >= 300:
        raise GeoProviderError(f"IPinfo HTTP {res.status_code}: {res.text[:200]}")

    data = _json_or_none(res)
    if not isinstance(data, dict):
        raise GeoProviderError("IPinfo returned a non-JSON body")
    if data.get("error"):
        err = data["error"] if isinstance(data["error"], dict) else {"message": str(data["error"])}
        raise GeoProviderError(f"IPinfo error: {err.get('title') or ''} {err.get('message') or ''}".strip())

    return GeoInfo(
        city=data.get("city"),
        region=data.get("region"),
        country=data.get("country"),
        isp=data.get("org"),
        source="ipinfo",
    )


def _fetch_ipwhois(client: httpx.Client, ip: str, token: str | None) -> GeoInfo:
    res = client.get(f"https://ipwho.is/{quote(ip, safe='')}", headers={"accept": "application/json"})
    data = _json_or_none(res)
    if not isinstance(data, dict):
        raise GeoProviderError(f"ipwho.is HTTP {res.status_code}: non-JSON body")
    if data.get("success") is False:
        raise GeoProviderError(f"ipwho.is error: {data.get('message') or 'unknown'}")

    connection = data.get("connection") or {}
    return GeoInfo(
        city=data.get("city"),
        region=data.get("region"),
        country=data.get("country"),
        isp=connection.get("isp") if isinstance(connection, dict) else None,
        source="ipwho.is",
    )


IPINFO = GeoProvider(name="ipinfo", fetch=_fetch_ipinfo, needs_credential=True)
IPWHOIS = GeoProvider(name="ipwho.is", fetch=_fetch_ipwhois)

DEFAULT_PROVIDERS: tuple[GeoProvider, ...] = (IPINFO, IPWHOIS)


@guarded("geo")
def resolve_geolocation(
    ip: str,
    *,
    credential: str | None = None,
    timeout: float = 10.0,
    providers: tuple[GeoProvider, ...] = DEFAULT_PROVIDERS,
    client: httpx.Client | None = None,
) -> LookupOutcome[GeoInfo]:
    """Geolocate one address, walking ``providers`` until one succeeds."""
    attempts: list[str] = []
    own_client = client is None
    http = client or httpx.Client(timeout=timeout, follow_redirects=True)
    try:
        for provider in providers:
            if provider.needs_credential and not credential:
                attempts.append(f"{provider.name}: missing credential")
                continue
            try:
                info = provider.fetch(http, ip, credential)
            except Exception as e:
                attempts.append(f"{provider.name}: {failure_reason(e)}")
                logger.debug("geo_provider_failed", provider=provider.name, ip=ip, reason=attempts[-1])
                continue
            return Success(info)
    finally:
        if own_client:
            http.close()

    return Failure("; ".join(attempts) or "no geolocation providers configured")
