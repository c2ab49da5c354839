"""Command line entry point: scan a URL or a pasted share code."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .analyzer import analyze
from .config import Settings
from .models import ScanResult
from .report import format_verdict, save_report
from .share import make_share_token, parse_share_token
from .target import InvalidTarget

EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="safelink", description="Check a link before you open it.")
    sub = parser.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan a website URL.")
    scan.add_argument("url", help="Website URL; https:// is assumed when no scheme is given.")

    share = sub.add_parser("share", help="Scan the URL inside a share code from a friend.")
    share.add_argument("token", help="SAFE-LINK|... share code.")

    for p in (scan, share):
        p.add_argument("--save", action="store_true", help="Write the raw evidence report to the configured report directory.")
        p.add_argument("--save-dir", type=Path, help="Write the raw evidence report into this directory.")
        p.add_argument("--json", action="store_true", help="Print evidence and verdict as JSON.")
    return parser


def render(result: ScanResult, *, as_json: bool, saved: Path | None) -> str:
    token = make_share_token(result.evidence.target.normalized_url, result.verdict.label, result.verdict.stars)
    if as_json:
        payload = {
            "evidence": result.evidence.model_dump(mode="json"),
            "verdict": result.verdict.model_dump(mode="json"),
            "share_token": token,
            "report_path": str(saved) if saved else None,
        }
        return json.dumps(payload, ensure_ascii=False, indent=2)

    parts: list[str] = []
    if saved:
        parts.append(f"Saved raw data to: {saved}")
    parts.append(format_verdict(result.verdict))
    parts.append("SHARE THIS (copy/paste to friend):")
    parts.append(token)
    return "\n".join(parts)


def run(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    args = build_parser().parse_args(argv)

    url = getattr(args, "url", None)
    if args.command == "share":
        shared = parse_share_token(args.token)
        if shared is None:
            print("Invalid share code.", file=sys.stderr)
            return EXIT_BAD_INPUT
        url = shared.url

    settings = settings or Settings.from_env()
    try:
        result = analyze(url, settings)
    except InvalidTarget as e:
        print(str(e), file=sys.stderr)
        return EXIT_BAD_INPUT

    saved = None
    if args.save or args.save_dir:
        saved = save_report(result.evidence, args.save_dir or settings.report_dir)
    print(render(result, as_json=args.json, saved=saved))
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
