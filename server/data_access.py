"""Read models for the playoff tracker API: live feeds plus the SOR table."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

from pipeline import settings
from pipeline.bracketology import build_bracket, compute_fair_score
from pipeline.conferences import is_power_conference, resolve_conference
from pipeline.config import RankingConfig, load_ranking_config
from pipeline.espn_api import EspnApiClient
from pipeline.fetch_data import fetch_playoff_payload, inputs_from_payload, load_sor_rows
from pipeline.models import Team
from server.db import fetch_one, is_configured

logger = logging.getLogger(__name__)

_client: EspnApiClient | None = None
_config: RankingConfig | None = None


def _espn() -> EspnApiClient:
    global _client
    if _client is None:
        _client = EspnApiClient()
    return _client


def ranking_config() -> RankingConfig:
    global _config
    if _config is None:
        _config = load_ranking_config(settings.RANKING_CONFIG_PATH or None)
    return _config


def _safe_scalar(query: str, default: Any) -> Any:
    try:
        row = fetch_one(query)
        if not row:
            return default
        return next(iter(row.values()), default)
    except Exception as exc:
        logger.warning("Scalar query failed: %s", exc)
        return default


def get_sor_rows() -> list[dict[str, Any]]:
    return load_sor_rows()


def get_playoff_rankings() -> dict[str, Any]:
    """Raw rankings with merged record maps. Raises when ESPN is down."""
    return fetch_playoff_payload(_espn(), today=date.today())


def get_bracket(mode: str, rankings_payload: dict[str, Any], sor_rows: list[dict[str, Any]]) -> dict[str, Any]:
    inputs = inputs_from_payload(rankings_payload, sor_rows)
    return build_bracket(inputs, mode, ranking_config()).to_dict()


def get_fair_score(team_data: dict[str, Any]) -> dict[str, Any]:
    """Score one posted team as the fair ranking would. Raises InvalidTeamError."""
    config = ranking_config()
    team = Team.from_dict(team_data)
    team = team.with_updates(conference=resolve_conference(team, config))
    return {
        "id": team.id,
        "name": team.name,
        "conference": team.conference,
        "record": team.record,
        "sor": team.sor,
        "isPowerConference": is_power_conference(team.conference, config),
        "fairRankScore": round(compute_fair_score(team, config), 2),
    }


def get_health() -> dict[str, Any]:
    return {
        "status": "ok",
        "espnBaseUrl": settings.ESPN_BASE_URL,
        "db": {
            "configured": is_configured(),
            "sorRows": _safe_scalar(f"SELECT COUNT(*) FROM {settings.SOR_TABLE}", 0) if is_configured() else 0,
        },
    }
