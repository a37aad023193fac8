"""
Playoff Tracker Data Pipeline: Fetch rankings, records and SOR for one refresh.

Pulls the poll from the ESPN rankings endpoint, team records from a window of
FBS scoreboards plus standings, and strength-of-record rows from the SOR
table (or a CSV). Scoreboards are fetched in parallel; any single failed
source contributes nothing rather than aborting the refresh.

Usage:
    python -m pipeline.fetch_data                  # print a summary of today's feeds
    python -m pipeline.fetch_data --lookback 3     # only scan the last 3 days
"""

from __future__ import annotations

import argparse
import json
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, timedelta
from typing import Any

import pandas as pd
import requests

from pipeline import settings
from pipeline.espn_api import EspnApiClient
from pipeline.models import RawInputs, normalize_team_id
from server.db import fetch_all

logger = logging.getLogger(__name__)


class FetchError(Exception):
    """The rankings feed, which every refresh depends on, was unavailable."""


def _overall_stat(stats: Any) -> str | None:
    if not isinstance(stats, list):
        return None
    for s in stats:
        if isinstance(s, dict) and (s.get("name") in ("overall", "record") or s.get("type") == "overall"):
            if s.get("displayValue"):
                return str(s["displayValue"])
    return None


def record_from_rank_entry(rank: dict[str, Any]) -> str | None:
    """The record a rankings entry carries about its own team, if any."""
    team = rank.get("team") or {}
    summary = (rank.get("record") or {}).get("summary")
    if summary:
        return str(summary)
    from_stats = _overall_stat(rank.get("stats"))
    if from_stats:
        return from_stats
    team_summary = (team.get("record") or {}).get("summary")
    if team_summary:
        return str(team_summary)
    for holder in (rank, team):
        if holder.get("wins") is not None and holder.get("losses") is not None:
            return f"{holder['wins']}-{holder['losses']}"
    return None


# ── Rankings ─────────────────────────────────────────────────────────────────

def pick_poll(rankings_data: dict[str, Any]) -> dict[str, Any] | None:
    """CFP poll if published, else AP, else whatever comes first."""
    polls = rankings_data.get("rankings") or []
    if not polls:
        return None

    def _name(p):
        return str(p.get("name") or "").lower()

    for poll in polls:
        if "cfp" in _name(poll) or "playoff" in _name(poll):
            return poll
    for poll in polls:
        if "ap" in _name(poll).split() or _name(poll).startswith("ap"):
            return poll
    return polls[0]


def extract_ranking_records(rankings_data: dict[str, Any]) -> dict[str, str]:
    records: dict[str, str] = {}
    for poll in rankings_data.get("rankings") or []:
        for rank in poll.get("ranks") or []:
            team = rank.get("team") or {}
            name = team.get("displayName") or team.get("name")
            record = record_from_rank_entry(rank)
            if name and record:
                records[name] = record
    return records


def extract_rankings_feed(rankings_data: dict[str, Any]) -> tuple[list[dict[str, Any]], str]:
    """Flatten the chosen poll into rankings-feed entries for the normalizer."""
    poll = pick_poll(rankings_data)
    if not poll:
        return [], ""

    entries: list[dict[str, Any]] = []
    for index, rank in enumerate(poll.get("ranks") or []):
        team = rank.get("team")
        if not team:
            continue
        name = team.get("displayName") or team.get("name") or f"Team {index + 1}"
        conference = team.get("conference")
        entries.append({
            "team": {
                "id": team.get("id"),
                "name": name,
                "shortName": team.get("shortDisplayName") or team.get("abbreviation") or name.split(" ")[0],
                "conferenceHint": conference.get("name") if isinstance(conference, dict) else conference,
                "logo": team.get("logo") or ((team.get("logos") or [{}])[0].get("href")),
                "color": team.get("color"),
            },
            "rank": rank.get("current") or index + 1,
            "recordHint": record_from_rank_entry(rank),
            "conference": rank.get("conference"),
        })
    return entries, str(poll.get("name") or "")


# ── Scoreboards ──────────────────────────────────────────────────────────────

def scoreboard_dates(today: date, lookback_days: int) -> list[str]:
    """Main display range first, then today backwards; earlier entries win."""
    dates = [settings.MAIN_SCOREBOARD_RANGE] if settings.MAIN_SCOREBOARD_RANGE else []
    dates += [(today - timedelta(days=offset)).strftime("%Y%m%d") for offset in range(lookback_days + 1)]
    return dates


def fetch_scoreboards(client: EspnApiClient, dates: list[str], max_workers: int = settings.FETCH_MAX_WORKERS) -> list[dict[str, Any]]:
    """Fetch every scoreboard concurrently, returned in ``dates`` order.

    A failed date yields ``{}`` so it simply contributes no records.
    """
    results: list[dict[str, Any]] = [{} for _ in dates]
    failures = 0
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(dates) or 1))) as executor:
        futures = {executor.submit(client.get_scoreboard, d): i for i, d in enumerate(dates)}
        for future in as_completed(futures):
            i = futures[future]
            try:
                results[i] = future.result() or {}
            except (requests.exceptions.RequestException, ValueError) as e:
                failures += 1
                logger.warning("Scoreboard fetch failed for %s: %s", dates[i], e)
    logger.info("  Scoreboards: %d/%d fetched", len(dates) - failures, len(dates))
    return results


def extract_scoreboard_records(scoreboards: list[dict[str, Any]]) -> dict[str, dict[str, str]]:
    """``{team_id: {"name", "record"}}`` from competitors; first board wins."""
    by_id: dict[str, dict[str, str]] = {}
    for board in scoreboards:
        for event in board.get("events") or []:
            competition = (event.get("competitions") or [None])[0]
            if not competition:
                continue
            for competitor in competition.get("competitors") or []:
                team = competitor.get("team") or {}
                team_id = normalize_team_id(team.get("id"))
                records = competitor.get("records") or []
                record = (records[0].get("summary") if records else None) or _overall_stat(competitor.get("stats"))
                if not team_id or not record or team_id in by_id:
                    continue
                by_id[team_id] = {"name": team.get("displayName") or f"Team {team_id}",
                                  "record": str(record)}
    return by_id


# ── Standings ────────────────────────────────────────────────────────────────

def _standings_entries(node: dict[str, Any]) -> list[dict[str, Any]]:
    entries = list((node.get("standings") or {}).get("entries") or [])
    entries += node.get("entries") or []
    for child in node.get("children") or []:
        entries += _standings_entries(child)
    return entries


def extract_standings_records(standings_data: dict[str, Any]) -> dict[str, str]:
    records: dict[str, str] = {}
    for entry in _standings_entries(standings_data):
        team = entry.get("team") or {}
        name = team.get("displayName") or team.get("name")
        record = (
            _overall_stat(entry.get("stats"))
            or (entry.get("record") or {}).get("summary")
            or entry.get("overallRecord")
        )
        if name and record and name not in records:
            records[name] = str(record)
    return records


# ── Merge ────────────────────────────────────────────────────────────────────

def fetch_playoff_payload(
    client: EspnApiClient,
    today: date | None = None,
    lookback_days: int | None = None,
) -> dict[str, Any]:
    """Rankings plus merged record maps, as served by ``/api/playoff-rankings``.

    Name-keyed records: rankings first, overwritten by scoreboards, with
    standings only filling names nobody else covered.
    """
    today = today or date.today()
    lookback_days = settings.SCOREBOARD_LOOKBACK_DAYS if lookback_days is None else lookback_days

    logger.info("  Fetching rankings...")
    rankings_data = client.get_rankings()
    if not rankings_data:
        raise FetchError("ESPN rankings feed returned nothing")

    records = extract_ranking_records(rankings_data)
    logger.info("  %d records from rankings", len(records))

    boards = fetch_scoreboards(client, scoreboard_dates(today, lookback_days))
    records_by_id = extract_scoreboard_records(boards)
    for entry in records_by_id.values():
        records[entry["name"]] = entry["record"]
    logger.info("  %d records after scoreboards (%d by id)", len(records), len(records_by_id))

    try:
        standings = extract_standings_records(client.get_standings())
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Standings fetch failed: %s", e)
        standings = {}
    for name, record in standings.items():
        records.setdefault(name, record)
    logger.info("  %d records after standings", len(records))

    return {"rankings": rankings_data, "records": records, "recordsById": records_by_id}


def inputs_from_payload(payload: dict[str, Any], sor_rows: list[dict[str, Any]] | None = None) -> RawInputs:
    rankings, poll_name = extract_rankings_feed(payload.get("rankings") or {})
    by_id = {
        normalize_team_id(k): v["record"]
        for k, v in (payload.get("recordsById") or {}).items()
        if isinstance(v, dict) and v.get("record")
    }
    return RawInputs(
        rankings=rankings,
        records_by_id=by_id,
        records_by_name=dict(payload.get("records") or {}),
        sor_rows=list(sor_rows or []),
        poll_name=poll_name,
    )


def collect_inputs(
    client: EspnApiClient,
    today: date | None = None,
    lookback_days: int | None = None,
    sor_rows: list[dict[str, Any]] | None = None,
) -> RawInputs:
    """Everything one refresh needs. A missing rankings feed yields empty
    rankings so the caller can fall back instead of failing."""
    try:
        payload = fetch_playoff_payload(client, today, lookback_days)
    except (FetchError, requests.exceptions.RequestException, ValueError) as e:
        logger.warning("Rankings unavailable, continuing without live data: %s", e)
        payload = {}
    inputs = inputs_from_payload(payload, sor_rows)
    logger.info("  Poll: %s | %d ranked teams | %d SOR rows",
                inputs.poll_name or "-", len(inputs.rankings), len(inputs.sor_rows))
    return inputs


# ── Strength of Record ───────────────────────────────────────────────────────

SOR_COLUMNS = {"team_name": "team_name", "team": "team_name", "school": "team_name",
               "sor_rank": "sor_rank", "sor": "sor_rank", "rank": "sor_rank",
               "conference": "conference", "conf": "conference"}


def load_sor_csv(path: str) -> list[dict[str, Any]]:
    df = pd.read_csv(path)
    df = df.rename(columns={c: SOR_COLUMNS[c.strip().lower()] for c in df.columns if c.strip().lower() in SOR_COLUMNS})
    if "team_name" not in df.columns or "sor_rank" not in df.columns:
        raise ValueError(f"{path} needs team_name and sor_rank columns, found {list(df.columns)}")
    if "conference" not in df.columns:
        df["conference"] = None
    df = df.dropna(subset=["team_name"])
    df["sor_rank"] = pd.to_numeric(df["sor_rank"], errors="coerce").astype("Int64")
    df = df.astype(object).where(df.notna(), None)
    rows = df[["team_name", "sor_rank", "conference"]].to_dict(orient="records")
    return [{**r, "sor_rank": int(r["sor_rank"]) if r["sor_rank"] is not None else None} for r in rows]


def load_sor_rows(csv_path: str | None = None) -> list[dict[str, Any]]:
    """SOR rows from a CSV when given, else the SOR table. Failures degrade to
    an empty feed: teams simply have no SOR."""
    if csv_path:
        try:
            rows = load_sor_csv(csv_path)
        except (OSError, ValueError) as e:
            logger.warning("Could not read SOR CSV %s: %s", csv_path, e)
            return []
        logger.info("  Loaded %d SOR rows from %s", len(rows), csv_path)
        return rows
    try:
        rows = fetch_all(f"SELECT team_name, conference, sor_rank, rank_id FROM {settings.SOR_TABLE}")
    except Exception as exc:
        logger.warning("SOR query failed for %s: %s", settings.SOR_TABLE, exc)
        return []
    logger.info("  Loaded %d SOR rows from %s", len(rows), settings.SOR_TABLE)
    return rows


# ── CLI ──────────────────────────────────────────────────────────────────────

def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    parser = argparse.ArgumentParser(description="Fetch playoff ranking feeds")
    parser.add_argument("--lookback", type=int, default=None, help="Days of scoreboards to scan")
    parser.add_argument("--sor-csv", default=None, help="Strength-of-record CSV (default: SOR table)")
    args = parser.parse_args()

    client = EspnApiClient()
    inputs = collect_inputs(client, lookback_days=args.lookback, sor_rows=load_sor_rows(args.sor_csv))
    summary = {
        "poll": inputs.poll_name,
        "rankedTeams": len(inputs.rankings),
        "recordsById": len(inputs.records_by_id),
        "recordsByName": len(inputs.records_by_name),
        "sorRows": len(inputs.sor_rows),
        "requests": client.request_count,
    }
    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
