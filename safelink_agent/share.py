"""Copy/paste share tokens: ``SAFE-LINK|<url>|<label>|<stars>|<timestamp>``."""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone

PREFIX = "SAFE-LINK"

_HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True)
class SharedLink:
    url: str
    label: str | None = None
    stars: int | None = None
    shared_at: str | None = None


def make_share_token(url: str, label: str, stars: int, now: datetime | None = None) -> str:
    ts = (now or datetime.now(timezone.utc)).isoformat()
    return f"{PREFIX}|{url}|{label}|{stars}|{ts}"


def parse_share_token(token: str) -> SharedLink | None:
    trimmed = token.strip()
    if not trimmed.startswith(PREFIX + "|"):
        return None

    parts = trimmed.split("|")
    url = parts[1].strip() if len(parts) > 1 else ""
    if not _HTTP_URL_RE.match(url):
        return None

    label = (parts[2].strip() or None) if len(parts) > 2 else None
    stars: int | None = None
    if len(parts) > 3:
        try:
            stars = int(parts[3])
        except ValueError:
            stars = None
    shared_at = (parts[4].strip() or None) if len(parts) > 4 else None
    return SharedLink(url=url, label=label, stars=stars, shared_at=shared_at)
