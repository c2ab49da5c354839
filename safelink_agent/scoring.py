"""
Verdict scoring: an auditable rule table over Evidence.

Higher score means riskier. Rules run in table order and each one contributes
exactly one reason, whether it added points or confirmed a good signal.
"""
from __future__ import annotations

from typing import Callable, NamedTuple

from .models import Evidence, RiskLabel, Verdict
from .target import host_of, strip_www


MAX_REASONS = 8


class RuleResult(NamedTuple):
    points: int
    reason: str


class Rule(NamedTuple):
    key: str
    check: Callable[[Evidence], RuleResult]


def _https(e: Evidence) -> RuleResult:
    if e.target.scheme != "https":
        return RuleResult(3, "Not using HTTPS")
    return RuleResult(0, "Uses HTTPS")


def _http_status(e: Evidence) -> RuleResult:
    if e.http is None:
        return RuleResult(2, "HTTP request failed")
    if e.http.status_code >= 400:
        return RuleResult(2, f"HTTP error status: {e.http.status_code}")
    return RuleResult(0, f"HTTP status OK: {e.http.status_code}")


def _redirect(e: Evidence) -> RuleResult:
    if e.http is None:
        return RuleResult(0, "No final URL to compare")
    try:
        final_host = host_of(e.http.final_url)
    except ValueError:
        return RuleResult(1, "Could not parse final redirect URL")
    if strip_www(final_host) != e.target.apex_domain:
        return RuleResult(2, f"Redirected to different host: {final_host}")
    return RuleResult(0, f"Final URL stays on {final_host}")


def _tls(e: Evidence) -> RuleResult:
    if e.tls is None:
        return RuleResult(3, "No TLS certificate info")
    return RuleResult(0, "TLS certificate present")


def _whois(e: Evidence) -> RuleResult:
    if e.whois is None:
        return RuleResult(1, "WHOIS lookup missing or failed")
    return RuleResult(0, "WHOIS data found")


def _errors(e: Evidence) -> RuleResult:
    # Flat penalty no matter how many lookups failed.
    if e.errors:
        return RuleResult(1, f"Errors encountered: {len(e.errors)}")
    return RuleResult(0, "No lookup errors")


RULES: tuple[Rule, ...] = (
    Rule("https", _https),
    Rule("httpStatus", _http_status),
    Rule("redirect", _redirect),
    Rule("tls", _tls),
    Rule("whois", _whois),
    Rule("errors", _errors),
)

# (highest score in band, stars, label), checked in order.
THRESHOLDS: tuple[tuple[int, int, RiskLabel], ...] = (
    (1, 5, "SAFE"),
    (3, 4, "SAFE"),
    (5, 3, "CAUTION"),
    (7, 2, "RISKY"),
)


def stars_for(score: int) -> tuple[int, RiskLabel]:
    for upper, stars, label in THRESHOLDS:
        if score <= upper:
            return stars, label
    return 1, "RISKY"


def score_evidence(evidence: Evidence, rules: tuple[Rule, ...] = RULES) -> Verdict:
    score = 0
    reasons: list[str] = []
    for rule in rules:
        result = rule.check(evidence)
        score += result.points
        reasons.append(result.reason)

    stars, label = stars_for(score)
    return Verdict(score=score, stars=stars, label=label, reasons=reasons[:MAX_REASONS])
