from __future__ import annotations

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .analyzer import analyze
from .config import Settings
from .log import get_logger
from .models import ScanRequest, ScanResponse, ShareParseRequest, ShareParseResponse
from .share import make_share_token, parse_share_token
from .target import InvalidTarget

logger = get_logger(__name__)

# Loads the repo root .env (so IPINFO_TOKEN works in local dev)
settings = Settings.from_env()

app = FastAPI(title="SAFE-LINK Agent", version="0.1.0")

# For local dev, this defaults to allowing http://localhost:3000.
# In production, set SAFELINK_CORS_ORIGINS to your deployed frontend origins.
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/healthz")
def healthz():
    return {"ok": True}


@app.post("/scan", response_model=ScanResponse)
def scan_endpoint(req: ScanRequest):
    try:
        result = analyze(req.url, settings)
    except InvalidTarget as e:
        raise HTTPException(status_code=422, detail=str(e))

    token = make_share_token(result.evidence.target.normalized_url, result.verdict.label, result.verdict.stars)
    return ScanResponse(evidence=result.evidence, verdict=result.verdict, share_token=token)


@app.post("/share/parse", response_model=ShareParseResponse)
def share_parse_endpoint(req: ShareParseRequest):
    shared = parse_share_token(req.token)
    if shared is None:
        raise HTTPException(status_code=422, detail="Invalid share code.")
    return ShareParseResponse(url=shared.url, label=shared.label, stars=shared.stars)
