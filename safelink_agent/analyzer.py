from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Any, Callable

from .config import Settings
from .geolocation import resolve_geolocation
from .log import get_logger
from .models import Evidence, ScanResult
from .outcomes import Failure, LookupOutcome, Success, failure_reason
from .probes import inspect_tls, lookup_whois, probe_http, resolve_addresses
from .scoring import score_evidence
from .target import resolve_target

logger = get_logger(__name__)

# Order in which lookups are attempted, and therefore the order of Evidence.errors.
LOOKUP_ORDER = ("dns", "geo", "http", "tls", "whois")

_ERROR_PREFIX = {
    "dns": "DNS ERROR",
    "geo": "GEO ERROR",
    "http": "HTTP ERROR",
    "tls": "SSL ERROR",
    "whois": "WHOIS ERROR",
}


def collect_evidence(raw: str, settings: Settings | None = None) -> Evidence:
    """Gather every piece of network evidence for ``raw``.

    Only InvalidTarget propagates. Every sub-lookup failure becomes one entry
    in ``errors`` and leaves its field empty.
    """
    t0 = time.perf_counter()
    settings = settings or Settings.from_env()
    target = resolve_target(raw)

    timings: dict[str, int] = {}
    outcomes: dict[str, LookupOutcome[Any]] = {}

    def timed(name: str, fn: Callable[[], LookupOutcome[Any]]) -> LookupOutcome[Any]:
        start = time.perf_counter()
        try:
            return fn()
        finally:
            timings[name] = int((time.perf_counter() - start) * 1000)

    outcomes["dns"] = timed("dns", lambda: resolve_addresses(target.host))
    ips: list[str] = outcomes["dns"].value if isinstance(outcomes["dns"], Success) else []

    tasks: dict[str, Callable[[], LookupOutcome[Any]]] = {
        "http": lambda: probe_http(
            target.normalized_url, timeout=settings.http_timeout_s, user_agent=settings.user_agent,
        ),
        "tls": lambda: inspect_tls(target.host, timeout=settings.tls_timeout_s),
        "whois": lambda: lookup_whois(target.apex_domain),
    }
    # Only the first address is geolocated; no addresses means no geo lookup at all.
    if ips:
        first_ip = ips[0]
        tasks["geo"] = lambda: resolve_geolocation(
            first_ip, credential=settings.ipinfo_token, timeout=settings.geo_timeout_s,
        )

    # Parallel fan-out; each lookup owns its own timeout so the join needs none.
    with ThreadPoolExecutor(max_workers=len(tasks)) as pool:
        futures = {pool.submit(timed, name, fn): name for name, fn in tasks.items()}
        for fut in as_completed(futures):
            name = futures[fut]
            try:
                outcomes[name] = fut.result()
            except Exception as e:
                outcomes[name] = Failure(failure_reason(e))

    errors = [
        f"{_ERROR_PREFIX[name]}: {outcomes[name].reason}"
        for name in LOOKUP_ORDER
        if isinstance(outcomes.get(name), Failure)
    ]

    def value(name: str) -> Any:
        outcome = outcomes.get(name)
        return outcome.value if isinstance(outcome, Success) else None

    timings["total"] = int((time.perf_counter() - t0) * 1000)

    evidence = Evidence(
        target=target,
        ip_addresses=ips,
        geo=value("geo"),
        http=value("http"),
        tls=value("tls"),
        whois=value("whois"),
        errors=errors,
        timings_ms=timings,
        collected_at=datetime.now(timezone.utc).isoformat(),
    )
    logger.info(
        "evidence_collected",
        host=target.host,
        addresses=len(ips),
        errors=len(errors),
        total_ms=timings["total"],
    )
    return evidence


def analyze(raw: str, settings: Settings | None = None) -> ScanResult:
    evidence = collect_evidence(raw, settings)
    verdict = score_evidence(evidence)
    logger.info("verdict_scored", host=evidence.target.host, score=verdict.score, label=verdict.label)
    return ScanResult(evidence=evidence, verdict=verdict)
