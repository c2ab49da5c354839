"""Plain-text rendering of Evidence and Verdict, plus the on-disk report sink."""
from __future__ import annotations

import json
import re
from collections.abc import Mapping
from datetime import datetime
from pathlib import Path

from .log import get_logger
from .models import Evidence, Verdict, thaw

logger = get_logger(__name__)

_RULE = "-" * 70
_BANNER = "=" * 70


def _unknown(value: str | None) -> str:
    return value if value else "(unknown)"


def format_report(evidence: Evidence) -> str:
    t = evidence.target
    lines: list[str] = [
        _BANNER,
        f"TARGET URL : {t.normalized_url}",
        f"DOMAIN     : {t.host}",
        _BANNER,
        "",
        f"IP ADDRESS : {', '.join(evidence.ip_addresses) if evidence.ip_addresses else '(none)'}",
        _RULE,
    ]

    if evidence.geo:
        g = evidence.geo
        lines += [
            f"GEO LOCATION ({g.source})",
            f"  City    : {_unknown(g.city)}",
            f"  Region  : {_unknown(g.region)}",
            f"  Country : {_unknown(g.country)}",
            f"  ISP     : {_unknown(g.isp)}",
        ]
    else:
        lines.append("GEO LOCATION : (not available)")
    lines.append(_RULE)

    if evidence.http:
        h = evidence.http
        lines += [
            f"STATUS CODE   : {h.status_code}",
            f"RESPONSE TIME : {h.elapsed_seconds:.4f} seconds",
            f"FINAL URL     : {h.final_url}",
            "HEADERS:",
        ]
        lines += [f"  {k}: {v}" for k, v in h.headers.items()]
    else:
        lines.append("HTTP : (not available)")
    lines.append(_RULE)

    if evidence.tls:
        c = evidence.tls
        lines += [
            "SSL CERTIFICATE (selected fields):",
            f"  subject     : {c.subject}",
            f"  issuer      : {c.issuer}",
            f"  valid_from  : {c.valid_from}",
            f"  valid_to    : {c.valid_to}",
            f"  fingerprint : {c.fingerprint}",
        ]
    else:
        lines.append("SSL CERTIFICATE : (not available)")
    lines.append(_RULE)

    if evidence.whois:
        lines.append(f"WHOIS DATA (query: {t.apex_domain}):")
        for k, v in evidence.whois.items():
            if isinstance(v, (list, tuple)):
                v = ", ".join(str(x) for x in v)
            elif isinstance(v, Mapping):
                v = json.dumps(thaw(v), sort_keys=True)
            lines.append(f"  {k}: {v}")
    else:
        lines.append("WHOIS : (not available)")

    if evidence.errors:
        lines += ["", "ERRORS:"]
        lines += [f"  - {e}" for e in evidence.errors]

    lines += ["", "Scan complete"]
    return "\n".join(lines)


def stars_text(stars: int) -> str:
    return "★" * stars + "☆" * (5 - stars)


def format_verdict(verdict: Verdict) -> str:
    lines = [
        _RULE,
        f"VERDICT: {verdict.label}  {stars_text(verdict.stars)}  (risk score {verdict.score})",
        "Reasons:",
    ]
    lines += [f"  - {r}" for r in verdict.reasons]
    lines.append(_RULE)
    return "\n".join(lines)


def safe_filename(s: str) -> str:
    return re.sub(r"[^a-zA-Z0-9._-]+", "_", s)


def save_report(evidence: Evidence, out_dir: Path | str, now: datetime | None = None) -> Path:
    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    path = out / f"rawdata-{safe_filename(evidence.target.apex_domain)}-{stamp}.txt"
    path.write_text(format_report(evidence), encoding="utf-8")
    logger.info("report_saved", path=str(path))
    return path
