"""
Network evidence adapters: DNS, HTTP, TLS and WHOIS.

Each adapter is a thin wrapper over a library call with its own timeout
policy. They all return a LookupOutcome; failures never escape.
"""
from __future__ import annotations

import ipaddress
import socket
import ssl
import time
from datetime import date, datetime, timezone
from typing import Any, Callable

import dns.exception
import dns.resolver
import httpx
import whois
from cryptography import x509
from cryptography.hazmat.primitives import hashes

from .config import DEFAULT_USER_AGENT
from .models import HttpInfo, TLSInfo
from .outcomes import Failure, LookupOutcome, Success, failure_reason, guarded


# Servers that commonly reject HEAD while serving GET.
_REISSUE_AS_GET = {403, 405}


# ---------------------------------------------------------------------------
# DNS
# ---------------------------------------------------------------------------

def _query_addresses(
    host: str,
    resolver: dns.resolver.Resolver | None,
    deadline: float | None = None,
) -> tuple[list[str], str | None]:
    """A then AAAA. Returns (addresses, reason); reason is set only when nothing resolved.

    A failing query type does not discard answers from the other one. When
    both come back empty the first query's error wins.
    """
    try:
        return [str(ipaddress.ip_address(host))], None
    except ValueError:
        pass

    res = resolver or dns.resolver.Resolver()
    addresses: list[str] = []
    reasons: list[str] = []
    for rdtype in ("A", "AAAA"):
        lifetime = None
        if deadline is not None:
            lifetime = deadline - time.perf_counter()
            if lifetime <= 0:
                reasons.append("timeout")
                break
        try:
            answer = res.resolve(host, rdtype, lifetime=lifetime)
        except dns.resolver.NoAnswer:
            continue
        except dns.exception.Timeout:
            reasons.append("timeout")
            continue
        except dns.exception.DNSException as e:
            reasons.append(failure_reason(e))
            continue
        for rdata in answer:
            addr = rdata.to_text()
            if addr not in addresses:
                addresses.append(addr)

    if addresses:
        return addresses, None
    return [], reasons[0] if reasons else "no addresses resolved"


@guarded("dns")
def resolve_addresses(host: str, *, resolver: dns.resolver.Resolver | None = None) -> LookupOutcome[list[str]]:
    addresses, reason = _query_addresses(host, resolver)
    if not addresses:
        return Failure(reason)
    return Success(addresses)


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------

def _exchange(client: httpx.Client, method: str, url: str, headers: dict[str, str]) -> httpx.Response:
    # Streamed so a GET re-issue never downloads the body.
    with client.stream(method, url, headers=headers) as res:
        return res


def _deadline_hook(deadline: float) -> Callable[[httpx.Request], None]:
    """Request hook that caps every hop, redirects included, to what is left of ``deadline``."""

    def hook(request: httpx.Request) -> None:
        remaining = deadline - time.perf_counter()
        if remaining <= 0:
            raise httpx.TimeoutException("deadline exceeded", request=request)
        request.extensions["timeout"] = httpx.Timeout(remaining).as_dict()

    return hook


@guarded("http")
def probe_http(
    url: str,
    *,
    timeout: float = 10.0,
    user_agent: str = DEFAULT_USER_AGENT,
    transport: httpx.BaseTransport | None = None,
) -> LookupOutcome[HttpInfo]:
    headers = {
        "user-agent": user_agent,
        "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    }
    start = time.perf_counter()
    deadline = start + timeout

    with httpx.Client(
        timeout=timeout,
        follow_redirects=True,
        transport=transport,
        event_hooks={"request": [_deadline_hook(deadline)]},
    ) as client:
        method = "HEAD"
        res = _exchange(client, method, url, headers)
        if res.status_code in _REISSUE_AS_GET:
            method = "GET"
            res = _exchange(client, method, url, headers)

    elapsed = time.perf_counter() - start
    # A last hop can still finish late; the budget covers the whole lookup.
    if elapsed > timeout:
        return Failure("timeout")
    return Success(HttpInfo(
        status_code=res.status_code,
        elapsed_seconds=round(elapsed, 4),
        final_url=str(res.url),
        headers={k.lower(): v for k, v in res.headers.items()},
        method=method,
    ))


# ---------------------------------------------------------------------------
# TLS
# ---------------------------------------------------------------------------

def _iso_utc(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


def certificate_info(der: bytes) -> TLSInfo:
    cert = x509.load_der_x509_certificate(der)
    return TLSInfo(
        subject=cert.subject.rfc4514_string(),
        issuer=cert.issuer.rfc4514_string(),
        valid_from=_iso_utc(cert.not_valid_before_utc),
        valid_to=_iso_utc(cert.not_valid_after_utc),
        fingerprint=cert.fingerprint(hashes.SHA256()).hex(":").upper(),
    )


def _inspecting_context() -> ssl.SSLContext:
    # Expired and self-signed certificates are evidence, not connection errors.
    ctx = ssl.create_default_context()
    ctx.check_hostname = False
    ctx.verify_mode = ssl.CERT_NONE
    return ctx


def _connect(addresses: list[str], port: int, deadline: float) -> socket.socket:
    last_error: OSError | None = None
    for addr in addresses:
        remaining = deadline - time.perf_counter()
        if remaining <= 0:
            raise TimeoutError("timed out")
        try:
            return socket.create_connection((addr, port), timeout=remaining)
        except OSError as e:
            last_error = e
    raise last_error


@guarded("tls")
def inspect_tls(
    host: str,
    port: int = 443,
    *,
    timeout: float = 10.0,
    resolver: dns.resolver.Resolver | None = None,
) -> LookupOutcome[TLSInfo]:
    deadline = time.perf_counter() + timeout
    ctx = _inspecting_context()
    # Resolved here, not inside create_connection, so name lookup shares the budget.
    addresses, reason = _query_addresses(host, resolver, deadline)
    if not addresses:
        return Failure(reason)
    with _connect(addresses, port, deadline) as sock:
        remaining = deadline - time.perf_counter()
        if remaining <= 0:
            return Failure("timeout")
        sock.settimeout(remaining)
        with ctx.wrap_socket(sock, server_hostname=host) as ssock:
            # Leaf only; the rest of the chain is not kept.
            der = ssock.getpeercert(binary_form=True)

    if not der:
        return Failure("no certificate presented")
    return Success(certificate_info(der))


# ---------------------------------------------------------------------------
# WHOIS
# ---------------------------------------------------------------------------

def _plain(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (list, tuple, set)):
        return [_plain(v) for v in value if v is not None]
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


def whois_mapping(record: Any) -> dict[str, Any]:
    """Flatten a WHOIS record into field -> value-or-list, dropping empty fields."""
    out: dict[str, Any] = {}
    for key, value in dict(record or {}).items():
        if value is None:
            continue
        plain = _plain(value)
        if plain == [] or plain == "":
            continue
        out[str(key)] = plain
    return out


@guarded("whois")
def lookup_whois(domain: str) -> LookupOutcome[dict[str, Any]]:
    data = whois_mapping(whois.whois(domain))
    if not data:
        return Failure("no registration data")
    return Success(data)
