from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field


# Load environment variables from the repo root .env (so IPINFO_TOKEN works in local dev)
_HERE = Path(__file__).resolve()
_PROJECT_ROOT = _HERE.parents[1]

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36 SafeLinkAgent/1.0"
)


def load_env() -> None:
    load_dotenv(_PROJECT_ROOT / ".env", override=False)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return max(0.1, float(raw))
    except ValueError:
        return default


class Settings(BaseModel):
    # Absent token is not an error; it forces the no-credential geo provider.
    ipinfo_token: str | None = None
    http_timeout_s: float = Field(10.0, gt=0)
    tls_timeout_s: float = Field(10.0, gt=0)
    geo_timeout_s: float = Field(10.0, gt=0)
    user_agent: str = DEFAULT_USER_AGENT
    report_dir: Path = Path("output")
    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:3000"])

    @classmethod
    def from_env(cls) -> "Settings":
        load_env()
        token = os.getenv("IPINFO_TOKEN", "").strip() or None
        origins_raw = os.getenv("SAFELINK_CORS_ORIGINS", "").strip()
        origins = [o.strip() for o in origins_raw.split(",") if o.strip()] if origins_raw else ["http://localhost:3000"]
        return cls(
            ipinfo_token=token,
            http_timeout_s=_float_env("SAFELINK_HTTP_TIMEOUT_S", 10.0),
            tls_timeout_s=_float_env("SAFELINK_TLS_TIMEOUT_S", 10.0),
            geo_timeout_s=_float_env("SAFELINK_GEO_TIMEOUT_S", 10.0),
            user_agent=os.getenv("SAFELINK_USER_AGENT", "").strip() or DEFAULT_USER_AGENT,
            report_dir=Path(os.getenv("SAFELINK_REPORT_DIR", "").strip() or "output"),
            cors_origins=origins,
        )
