from __future__ import annotations

from datetime import datetime, timezone

from safelink_agent.models import Verdict
from safelink_agent.report import format_report, format_verdict, safe_filename, save_report, stars_text
from safelink_agent.share import make_share_token, parse_share_token


def test_report_sections_for_full_evidence(make_evidence):
    text = format_report(make_evidence())

    assert "TARGET URL : https://example.com" in text
    assert "IP ADDRESS : 93.184.216.34" in text
    assert "GEO LOCATION (ipwho.is)" in text
    assert "STATUS CODE   : 200" in text
    assert "RESPONSE TIME : 0.1200 seconds" in text
    assert "  issuer      : CN=R11,O=Let's Encrypt,C=US" in text
    assert "WHOIS DATA (query: example.com):" in text
    assert "ERRORS:" not in text
    assert text.endswith("Scan complete")


def test_report_for_sparse_evidence(make_evidence):
    evidence = make_evidence(
        "http://www.example.com",
        ip_addresses=[],
        geo=None,
        http=None,
        tls=None,
        whois=None,
        errors=["DNS ERROR: no addresses resolved", "HTTP ERROR: timeout"],
    )
    text = format_report(evidence)

    assert "IP ADDRESS : (none)" in text
    assert "GEO LOCATION : (not available)" in text
    assert "HTTP : (not available)" in text
    assert "SSL CERTIFICATE : (not available)" in text
    assert "WHOIS : (not available)" in text
    assert "  - DNS ERROR: no addresses resolved" in text
    assert "  - HTTP ERROR: timeout" in text


def test_whois_lists_are_joined(make_evidence):
    text = format_report(make_evidence(whois={"name_servers": ["a.iana-servers.net", "b.iana-servers.net"]}))

    assert "  name_servers: a.iana-servers.net, b.iana-servers.net" in text


def test_save_report_writes_named_file(make_evidence, tmp_path):
    evidence = make_evidence("https://www.example.com/a?b=c")

    path = save_report(evidence, tmp_path / "out", now=datetime(2026, 10, 18, 9, 5, 7))

    assert path.name == "rawdata-example.com-20261018-090507.txt"
    assert path.read_text(encoding="utf-8") == format_report(evidence)


def test_safe_filename():
    assert safe_filename("xn--bcher-kva.example/../etc") == "xn--bcher-kva.example_.._etc"


def test_verdict_block():
    verdict = Verdict(score=4, stars=3, label="CAUTION", reasons=["Uses HTTPS", "No TLS certificate info"])
    text = format_verdict(verdict)

    assert "VERDICT: CAUTION  ★★★☆☆  (risk score 4)" in text
    assert "  - No TLS certificate info" in text
    assert stars_text(5) == "★★★★★"
    assert stars_text(1) == "★☆☆☆☆"


def test_share_token_round_trip():
    now = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
    token = make_share_token("https://example.com", "SAFE", 5, now=now)

    assert token == "SAFE-LINK|https://example.com|SAFE|5|2026-10-18T12:00:00+00:00"
    shared = parse_share_token("  " + token + "\n")
    assert shared.url == "https://example.com"
    assert shared.label == "SAFE"
    assert shared.stars == 5
    assert shared.shared_at == "2026-10-18T12:00:00+00:00"


def test_share_token_with_only_a_url():
    shared = parse_share_token("SAFE-LINK|http://example.com")

    assert shared.url == "http://example.com"
    assert shared.label is None and shared.stars is None


def test_bad_share_tokens():
    assert parse_share_token("hello") is None
    assert parse_share_token("SAFE-LINK") is None
    assert parse_share_token("SAFE-LINK|") is None
    assert parse_share_token("SAFE-LINK|javascript:alert(1)|SAFE|5") is None
    assert parse_share_token("SAFE-LINK|example.com|SAFE|5") is None
