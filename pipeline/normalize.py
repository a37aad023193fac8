"""Merge multi-source team data into canonical Team records, then dedupe."""

from __future__ import annotations

import logging
from typing import Any, Callable

from pipeline.conferences import resolve_conference
from pipeline.config import (
    DEFAULT_CONFIG,
    ESPN_LOGO_URL,
    UNKNOWN_CONFERENCE,
    RankingConfig,
    get_team_color,
    lookup_metadata,
)
from pipeline.models import RawInputs, Team, normalize_team_id
from pipeline.records import DEGENERATE_RECORD, first_present, is_meaningful_record

logger = logging.getLogger(__name__)


# ── Source priority ──────────────────────────────────────────────────────────

def record_source_order(team_id: str, team_name: str, config: RankingConfig = DEFAULT_CONFIG) -> tuple[str, ...]:
    """Priority of record sources for one team, honoring the exception table."""
    name = (team_name or "").lower()
    for exc in config.record_source_exceptions:
        if team_id in exc.get("team_ids", ()) or any(a in name for a in exc.get("aliases", ())):
            return tuple(exc["order"])
    return tuple(config.record_source_order)


# ── SOR matching ─────────────────────────────────────────────────────────────

def _sor_name_match(row: dict[str, Any], api_name: str, api_short: str, config: RankingConfig) -> bool:
    db_name = str(row.get("team_name") or "").lower()
    if not db_name or not api_name:
        return False
    db_short = db_name.split(" ")[0]
    if db_name == api_name or (api_short and api_short in db_name) or db_short in api_name:
        return True
    for store_sub, api_sub, exclusions in config.sor_name_aliases:
        if store_sub in db_name and api_sub in api_name and not any(x in api_name for x in exclusions):
            return True
    return False


def match_sor_row(
    team_id: str,
    team_name: str,
    short_name: str,
    sor_rows: list[dict[str, Any]],
    config: RankingConfig = DEFAULT_CONFIG,
) -> dict[str, Any] | None:
    """Find the SOR store row for a team by fuzzy name, then by id alias."""
    api_name = (team_name or "").lower()
    api_short = (short_name or "").lower()
    for row in sor_rows:
        if _sor_name_match(row, api_name, api_short, config):
            return row
    for substring in config.sor_id_aliases.get(team_id, ()):
        for row in sor_rows:
            if substring in str(row.get("team_name") or "").lower():
                return row
    return None


def _valid_sor(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def _valid_conference(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != "" and value != UNKNOWN_CONFERENCE


# ── Normalizer ───────────────────────────────────────────────────────────────

def normalize_team(entry: dict[str, Any], inputs: RawInputs, config: RankingConfig = DEFAULT_CONFIG) -> Team:
    """Build one canonical Team from a rankings entry plus every side feed."""
    team = entry.get("team") or {}
    team_id = normalize_team_id(team.get("id"))
    name = str(team.get("name") or "")
    short_name = str(team.get("shortName") or (name.split(" ")[0] if name else ""))

    record_getters: dict[str, Callable[[], Any]] = {
        "by_id": lambda: inputs.records_by_id.get(team_id),
        "by_name": lambda: inputs.records_by_name.get(name),
        "rankings": lambda: entry.get("recordHint"),
    }
    order = record_source_order(team_id, name, config)
    record = first_present(
        ((src, record_getters[src]) for src in order if src in record_getters),
        is_meaningful_record,
        default=DEGENERATE_RECORD,
    )

    sor_row = match_sor_row(team_id, name, short_name, inputs.sor_rows, config)
    sor = first_present(
        [("sor_store", lambda: int(sor_row["sor_rank"]))],
        _valid_sor,
    )
    conference = first_present(
        [
            ("sor_store", lambda: sor_row["conference"]),
            ("rankings_team", lambda: team.get("conferenceHint")),
            ("rankings_entry", lambda: entry.get("conference")),
        ],
        _valid_conference,
        default=UNKNOWN_CONFERENCE,
    )

    meta = lookup_metadata(team_id, name, short_name) or {}
    api_color = str(team.get("color") or "")
    color = meta.get("color") or (f"#{api_color.lstrip('#')}" if api_color else get_team_color(name))

    rank = entry.get("rank")
    return Team(
        id=team_id,
        name=name,
        short_name=meta.get("shortName") or short_name,
        conference=conference,
        record=record,
        rank=int(rank) if rank is not None else None,
        sor=sor,
        logo=meta.get("logo") or str(team.get("logo") or "") or ESPN_LOGO_URL.format(team_id=team_id),
        color=color,
    )


# ── Deduplicator ─────────────────────────────────────────────────────────────

def _merge(existing: Team, incoming: Team) -> Team:
    return existing.with_updates(
        sor=existing.sor if existing.sor is not None else incoming.sor,
        record=incoming.record
        if existing.record == DEGENERATE_RECORD and incoming.record != DEGENERATE_RECORD
        else existing.record,
        rank=existing.rank if existing.rank is not None else incoming.rank,
        conference=incoming.conference if existing.conference == UNKNOWN_CONFERENCE else existing.conference,
    )


def dedupe_teams(teams: list[Team]) -> list[Team]:
    """Collapse entries sharing a team id, keeping first-occurrence order."""
    unique: dict[str, Team] = {}
    for team in teams:
        key = normalize_team_id(team.id) or team.name
        if key not in unique:
            unique[key] = team if team.id == key else team.with_updates(id=key)
            continue
        unique[key] = _merge(unique[key], team)
    return list(unique.values())


# ── Pipeline entry ───────────────────────────────────────────────────────────

def build_teams(inputs: RawInputs, config: RankingConfig = DEFAULT_CONFIG) -> list[Team]:
    """Normalize every rankings entry, dedupe, then resolve conferences."""
    normalized: list[Team] = []
    for entry in inputs.rankings:
        try:
            team = normalize_team(entry, inputs, config)
        except (TypeError, ValueError, AttributeError) as exc:
            logger.warning("Skipping malformed rankings entry %r: %s", entry, exc)
            continue
        if not team.id:
            logger.warning("Skipping rankings entry without a team id: %r", entry)
            continue
        normalized.append(team)

    teams = dedupe_teams(normalized)
    resolved = [t.with_updates(conference=resolve_conference(t, config)) for t in teams]
    missing_sor = sum(1 for t in resolved if t.sor is None)
    logger.info("Normalized %d rankings entries into %d teams (%d without SOR)",
                len(inputs.rankings), len(resolved), missing_sor)
    return resolved
