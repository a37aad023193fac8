"""Playoff Tracker API Server."""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Literal, Optional

import requests
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from pipeline import settings
from pipeline.fetch_data import FetchError
from pipeline.models import BracketError
from server.data_access import (
    get_bracket,
    get_fair_score,
    get_health,
    get_playoff_rankings,
    get_sor_rows,
)

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Playoff Tracker API", version="1.0.0")

ALLOWED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]
_extra_origin = os.getenv("CORS_ORIGIN", "")
if _extra_origin:
    ALLOWED_ORIGINS.append(_extra_origin)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_origin_regex=r"https://.*\.vercel\.app",
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"name": "Playoff Tracker API", "docs": "/docs", "health": "/api/health"}


_cache: dict[str, tuple[float, Any]] = {}


def _cached(key: str, loader):
    now = time.time()
    cached = _cache.get(key)
    if cached and now - cached[0] < settings.CACHE_TTL:
        return cached[1]
    value = loader()
    _cache[key] = (now, value)
    return value


def _rankings_payload() -> dict[str, Any]:
    try:
        return _cached("playoff_rankings", get_playoff_rankings)
    except (FetchError, requests.exceptions.RequestException, ValueError) as exc:
        logger.error("Error fetching playoff rankings: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to fetch rankings") from exc


def _sor_rows() -> list[dict[str, Any]]:
    return _cached("sor_rows", get_sor_rows)


@app.get("/api/playoff-rankings")
def api_playoff_rankings():
    return _rankings_payload()


@app.get("/api/bracket")
def api_bracket(mode: Literal["direct", "fair"] = Query("direct")):
    try:
        payload = _cached("playoff_rankings", get_playoff_rankings)
    except (FetchError, requests.exceptions.RequestException, ValueError) as exc:
        # bracket falls back to the snapshot field when the feed is down
        logger.warning("Rankings unavailable for bracket, using fallback: %s", exc)
        payload = {}
    try:
        return _cached(f"bracket:{mode}", lambda: get_bracket(mode, payload, _sor_rows()))
    except BracketError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


class FairScoreRequest(BaseModel):
    id: str
    name: str
    record: str = "0-0"
    conference: Optional[str] = None
    shortName: Optional[str] = None
    rank: Optional[int] = None
    sor: Optional[int] = None


@app.post("/api/fair-score")
def api_fair_score(req: FairScoreRequest):
    try:
        return get_fair_score(req.model_dump(exclude_none=True))
    except BracketError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.post("/api/cache/clear")
def api_cache_clear():
    cleared = len(_cache)
    _cache.clear()
    return {"cleared": cleared}


@app.get("/api/health")
def api_health():
    return get_health()
