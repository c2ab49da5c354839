from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Literal
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

RiskLabel = Literal["SAFE", "CAUTION", "RISKY"]


def freeze(value: Any) -> Any:
    """Read-only copy: mappings become mappingproxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


class _Frozen(BaseModel):
    # frozen only blocks attribute assignment; container fields are frozen separately.
    model_config = ConfigDict(frozen=True)


class Target(_Frozen):
    raw_input: str
    normalized_url: str
    host: str
    # Registration lookups use the host without a leading "www."
    apex_domain: str

    @property
    def scheme(self) -> str:
        return urlparse(self.normalized_url).scheme.lower()


class GeoInfo(_Frozen):
    city: str | None = None
    region: str | None = None
    country: str | None = None
    isp: str | None = None
    source: str


class HttpInfo(_Frozen):
    status_code: int
    elapsed_seconds: float
    final_url: str
    headers: Mapping[str, str] = Field(default_factory=dict, validate_default=True)
    method: Literal["HEAD", "GET"] = "HEAD"

    @field_validator("headers")
    @classmethod
    def _freeze_headers(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return freeze(v)

    @field_serializer("headers")
    def _dump_headers(self, v: Mapping[str, str]) -> dict[str, str]:
        return thaw(v)


class TLSInfo(_Frozen):
    subject: str
    issuer: str
    valid_from: str
    valid_to: str
    fingerprint: str


class Evidence(_Frozen):
    target: Target
    ip_addresses: tuple[str, ...] = ()
    geo: GeoInfo | None = None
    http: HttpInfo | None = None
    tls: TLSInfo | None = None
    whois: Mapping[str, Any] | None = None
    # One entry per failed sub-lookup, in the order the lookups were attempted.
    errors: tuple[str, ...] = ()

    # metadata
    timings_ms: Mapping[str, int] = Field(default_factory=dict, validate_default=True)
    collected_at: str | None = None

    @field_validator("whois", "timings_ms")
    @classmethod
    def _freeze_mappings(cls, v: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
        return None if v is None else freeze(v)

    @field_serializer("whois", "timings_ms")
    def _dump_mappings(self, v: Mapping[str, Any] | None) -> dict[str, Any] | None:
        return None if v is None else thaw(v)


class Verdict(_Frozen):
    score: int = Field(..., ge=0)
    stars: int = Field(..., ge=1, le=5)
    label: RiskLabel
    reasons: tuple[str, ...] = Field(default=(), max_length=8)


class ScanResult(_Frozen):
    evidence: Evidence
    verdict: Verdict


class ScanRequest(BaseModel):
    url: str = Field(..., min_length=1)


class ScanResponse(BaseModel):
    evidence: Evidence
    verdict: Verdict
    share_token: str


class ShareParseRequest(BaseModel):
    token: str = Field(..., min_length=1)


class ShareParseResponse(BaseModel):
    url: str
    label: str | None = None
    stars: int | None = None
