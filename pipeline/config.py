"""Configuration for the playoff tracker ranking engine.

Conference overrides, power conferences, head-to-head results, record source
exceptions, fair score weights, team metadata and the fallback snapshot.
Every table here is plain data; ``load_ranking_config`` can replace any of
them from a JSON file without touching resolver code.
"""

from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# CONFERENCES
# POWER_CONFERENCES order is the order auto-bids are selected in.
# CONFERENCE_ALIASES lets "Big Twelve" / "Big 10" style labels match.
# =============================================================================

POWER_CONFERENCES = ("SEC", "Big Ten", "Big 12", "ACC")

CONFERENCE_ALIASES = {
    "Big 12": ("big twelve",),
    "Big Ten": ("big 10",),
    "SEC": ("southeastern",),
    "ACC": ("atlantic coast",),
}

# ESPN team id -> conference. Corrects teams the API still files under their
# pre-realignment conference.
TEAM_CONFERENCE_OVERRIDES = {
    "61": "SEC",          # Georgia
    "194": "Big Ten",     # Ohio State
    "84": "Big Ten",      # Indiana
    "245": "SEC",         # Texas A&M
    "2641": "Big 12",     # Texas Tech
    "252": "Big 12",      # BYU
    "254": "Big 12",      # Utah
    "201": "SEC",         # Oklahoma
    "251": "SEC",         # Texas
    "333": "SEC",         # Alabama
    "145": "SEC",         # Ole Miss
    "238": "SEC",         # Vanderbilt
    "130": "Big Ten",     # Michigan
    "87": "FBS Indep.",   # Notre Dame
    "2390": "ACC",        # Miami
    "258": "ACC",         # Virginia
    "2567": "ACC",        # SMU
    "221": "ACC",         # Pittsburgh
    "59": "ACC",          # Georgia Tech
    "2483": "Big Ten",    # Oregon
    "9": "Big Ten",       # Arizona State
    "12": "Big Ten",      # Arizona
    "30": "Big Ten",      # USC
}

# Ordered (substring, conference); first case-insensitive hit wins, so the
# more specific names sit above the names they contain. Schools sharing a
# mascot with a power team come first. No "aggies" hint: Texas A&M resolves by
# name and id.
CONFERENCE_NAME_HINTS = (
    ("utah state", "Mountain West"),
    ("new mexico state", "Conference USA"),
    ("washington state", "Pac-12"),
    ("oregon state", "Pac-12"),
    ("unlv", "Mountain West"),
    ("georgia tech", "ACC"),
    ("yellow jackets", "ACC"),
    ("georgia southern", "Sun Belt"),
    ("georgia state", "Sun Belt"),
    ("georgia", "SEC"),
    ("texas tech", "Big 12"),
    ("red raiders", "Big 12"),
    ("texas a&m", "SEC"),
    ("ohio state", "Big Ten"),
    ("buckeyes", "Big Ten"),
    ("indiana", "Big Ten"),
    ("hoosiers", "Big Ten"),
    ("south alabama", "Sun Belt"),
    ("alabama", "SEC"),
    ("crimson tide", "SEC"),
    ("ole miss", "SEC"),
    ("rebels", "SEC"),
    ("vanderbilt", "SEC"),
    ("commodores", "SEC"),
    ("miami (oh)", "MAC"),
    ("redhawks", "MAC"),
    ("miami", "ACC"),
    ("hurricanes", "ACC"),
    ("west virginia", "Big 12"),
    ("virginia", "ACC"),
    ("cavaliers", "ACC"),
    ("smu", "ACC"),
    ("mustangs", "ACC"),
    ("oregon", "Big Ten"),
    ("ducks", "Big Ten"),
    ("byu", "Big 12"),
    ("cougars", "Big 12"),
    ("utah", "Big 12"),
    ("utes", "Big 12"),
)

UNKNOWN_CONFERENCE = "Unknown"


# =============================================================================
# HEAD-TO-HEAD RESULTS
# (winner aliases, loser aliases); matched against lowercase name/short name.
# =============================================================================

HEAD_TO_HEAD_RESULTS = (
    (("texas tech", "red raiders", "ttu"), ("byu", "brigham young", "cougars")),
)


# =============================================================================
# RECORD SOURCES
# Default priority: live scoreboard by id, then name-keyed feeds, then the
# rankings entry itself. Exceptions reorder that for one team.
# =============================================================================

RECORD_SOURCE_ORDER = ("by_id", "by_name", "rankings")

# Texas A&M's rankings entry is updated ahead of the scoreboard feeds.
RECORD_SOURCE_EXCEPTIONS = (
    {
        "team": "Texas A&M",
        "team_ids": ("245",),
        "aliases": ("texas a&m",),
        "order": ("rankings", "by_id", "by_name"),
    },
)


# =============================================================================
# SOR MATCHING
# The SOR store keys rows by its own team names; these pairs bridge names the
# plain substring match misses. (store substring, api substring, api exclusions)
# =============================================================================

SOR_NAME_ALIASES = (
    ("byu", "brigham", ()),
    ("texas a&m", "texas a&m", ()),
    ("ole miss", "mississippi", ("state",)),
    ("texas tech", "texas tech", ()),
    ("texas tech", "red raiders", ()),
    ("red raiders", "texas tech", ()),
    ("red raiders", "red raiders", ()),
)

# ESPN id -> store substrings, tried when no name rule matched
SOR_ID_ALIASES = {
    "2641": ("texas tech", "red raiders"),
}


# =============================================================================
# FAIR SCORE WEIGHTS
# =============================================================================

@dataclass(frozen=True)
class FairScoreWeights:
    record_weight: float = 0.70
    sor_weight: float = 0.30
    sor_cutoff: int = 100
    # (minimum wins, bonus), highest threshold first
    win_bonus: tuple[tuple[int, float], ...] = ((11, 15.0), (10, 10.0), (9, 5.0))
    # (minimum losses, penalty), highest threshold first
    loss_penalty: tuple[tuple[int, float], ...] = ((3, 20.0), (2, 5.0), (1, 1.0))
    power_multiplier: float = 1.0
    non_power_multiplier: float = 0.85


BRACKET_SIZE = 12
NEXT_OUT_COUNT = 2
MISSING_RANK = 999
# Fair scores within this distance are treated as tied
SCORE_EPSILON = 1e-6


@dataclass(frozen=True)
class RankingConfig:
    """Every static table the ranking engine reads, bundled for injection."""

    power_conferences: tuple[str, ...] = POWER_CONFERENCES
    conference_aliases: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(CONFERENCE_ALIASES))
    conference_overrides: dict[str, str] = field(default_factory=lambda: dict(TEAM_CONFERENCE_OVERRIDES))
    conference_name_hints: tuple[tuple[str, str], ...] = CONFERENCE_NAME_HINTS
    head_to_head: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = HEAD_TO_HEAD_RESULTS
    record_source_order: tuple[str, ...] = RECORD_SOURCE_ORDER
    record_source_exceptions: tuple[dict[str, Any], ...] = RECORD_SOURCE_EXCEPTIONS
    sor_name_aliases: tuple[tuple[str, str, tuple[str, ...]], ...] = SOR_NAME_ALIASES
    sor_id_aliases: dict[str, tuple[str, ...]] = field(default_factory=lambda: dict(SOR_ID_ALIASES))
    fair_score: FairScoreWeights = FairScoreWeights()
    bracket_size: int = BRACKET_SIZE
    next_out_count: int = NEXT_OUT_COUNT
    score_epsilon: float = SCORE_EPSILON


DEFAULT_CONFIG = RankingConfig()


def _tupleize(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_tupleize(v) for v in value)
    if isinstance(value, dict):
        return {k: _tupleize(v) for k, v in value.items()}
    return value


def load_ranking_config(path: str | Path | None) -> RankingConfig:
    """Load table overrides from JSON. Keys match ``RankingConfig`` fields;
    anything not present keeps its default."""
    if not path:
        return DEFAULT_CONFIG
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    known = {f.name for f in fields(RankingConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        logger.warning("Ignoring unknown ranking config keys in %s: %s", path, unknown)

    overrides: dict[str, Any] = {}
    for key in known & set(raw):
        value = _tupleize(raw[key])
        if key == "fair_score":
            value = replace(FairScoreWeights(), **value)
        elif key == "record_source_exceptions":
            value = tuple(dict(v) for v in value)
        overrides[key] = value
    logger.info("Loaded ranking config overrides from %s: %s", path, sorted(overrides))
    return replace(DEFAULT_CONFIG, **overrides)


# =============================================================================
# TEAM METADATA (logo, color, short name keyed by ESPN display name)
# The rankings feed's logos and colors are unreliable for a few teams.
# =============================================================================

ESPN_LOGO_URL = "https://a.espncdn.com/i/teamlogos/ncaa/500/{team_id}.png"

TEAM_METADATA = {
    "Indiana Hoosiers": {"logo": ESPN_LOGO_URL.format(team_id=84), "color": "#990000", "shortName": "Indiana"},
    "Texas A&M Aggies": {"logo": ESPN_LOGO_URL.format(team_id=245), "color": "#500000", "shortName": "Texas A&M"},
    "Ohio State Buckeyes": {"logo": ESPN_LOGO_URL.format(team_id=194), "color": "#0062B8", "shortName": "Ohio State"},
    "Georgia Bulldogs": {"logo": ESPN_LOGO_URL.format(team_id=61), "color": "#A020F0", "shortName": "Georgia"},
    "Oregon Ducks": {"logo": ESPN_LOGO_URL.format(team_id=2483), "color": "#154733", "shortName": "Oregon"},
    "Ole Miss Rebels": {"logo": ESPN_LOGO_URL.format(team_id=145), "color": "#00205B", "shortName": "Ole Miss"},
    "BYU Cougars": {"logo": ESPN_LOGO_URL.format(team_id=252), "color": "#002E5D", "shortName": "BYU"},
    "Oklahoma Sooners": {"logo": ESPN_LOGO_URL.format(team_id=201), "color": "#841617", "shortName": "Oklahoma"},
    "Alabama Crimson Tide": {"logo": ESPN_LOGO_URL.format(team_id=333), "color": "#9E1B32", "shortName": "Alabama"},
    "Texas Tech Red Raiders": {"logo": ESPN_LOGO_URL.format(team_id=2641), "color": "#CC0000", "shortName": "Texas Tech"},
    "Texas Longhorns": {"logo": ESPN_LOGO_URL.format(team_id=251), "color": "#BF5700", "shortName": "Texas"},
    "Vanderbilt Commodores": {"logo": ESPN_LOGO_URL.format(team_id=238), "color": "#866D4B", "shortName": "Vanderbilt"},
    "Notre Dame Fighting Irish": {"logo": ESPN_LOGO_URL.format(team_id=87), "color": "#0C2340", "shortName": "Notre Dame"},
    "Michigan Wolverines": {"logo": ESPN_LOGO_URL.format(team_id=130), "color": "#FFCB05", "shortName": "Michigan"},
    "Utah Utes": {"logo": ESPN_LOGO_URL.format(team_id=254), "color": "#CC0000", "shortName": "Utah"},
    "Miami Hurricanes": {"logo": ESPN_LOGO_URL.format(team_id=2390), "color": "#F47321", "shortName": "Miami"},
    "USC Trojans": {"logo": ESPN_LOGO_URL.format(team_id=30), "color": "#990000", "shortName": "USC"},
    "Tennessee Volunteers": {"logo": ESPN_LOGO_URL.format(team_id=2633), "color": "#FF8200", "shortName": "Tennessee"},
    "Tulane Green Wave": {"logo": ESPN_LOGO_URL.format(team_id=2655), "color": "#006747", "shortName": "Tulane"},
    "Penn State Nittany Lions": {"logo": ESPN_LOGO_URL.format(team_id=213), "color": "#041E42", "shortName": "Penn State"},
}

# Names the rankings feed sometimes uses instead of the display name
METADATA_ALIASES = {
    "245": "Texas A&M Aggies",
    "tamu": "Texas A&M Aggies",
    "texas a&m": "Texas A&M Aggies",
}


def get_team_color(team_name: str) -> str:
    """Get hex color for a team. Falls back to hash-based color for unknowns."""
    meta = TEAM_METADATA.get(team_name)
    if meta:
        return meta["color"]
    h = hashlib.md5(team_name.encode()).hexdigest()
    r = int(h[0:2], 16) % 180 + 40
    g = int(h[2:4], 16) % 180 + 40
    b = int(h[4:6], 16) % 180 + 40
    return f"#{r:02x}{g:02x}{b:02x}"


def lookup_metadata(team_id: str, *names: str) -> dict[str, str] | None:
    """Find a metadata override by any display-name variant, then by alias."""
    for name in names:
        if name and name in TEAM_METADATA:
            return TEAM_METADATA[name]
    if team_id in METADATA_ALIASES:
        return TEAM_METADATA[METADATA_ALIASES[team_id]]
    for name in names:
        lowered = (name or "").lower()
        for alias, display in METADATA_ALIASES.items():
            if not alias.isdigit() and alias in lowered:
                return TEAM_METADATA[display]
    return None


# =============================================================================
# FALLBACK SNAPSHOT
# Served when the rankings feed yields nothing.
# =============================================================================

FALLBACK_TEAMS = [
    {"id": "194", "rank": 1, "name": "Ohio State Buckeyes", "shortName": "Ohio State", "record": "11-1", "sor": 16, "conference": "Big Ten"},
    {"id": "84", "rank": 2, "name": "Indiana Hoosiers", "shortName": "Indiana", "record": "11-1", "sor": 2, "conference": "Big Ten"},
    {"id": "245", "rank": 3, "name": "Texas A&M Aggies", "shortName": "Texas A&M", "record": "10-2", "sor": 10, "conference": "SEC"},
    {"id": "61", "rank": 4, "name": "Georgia Bulldogs", "shortName": "Georgia", "record": "10-2", "sor": 6, "conference": "SEC"},
    {"id": "2641", "rank": 5, "name": "Texas Tech Red Raiders", "shortName": "Texas Tech", "record": "10-2", "sor": 17, "conference": "Big 12"},
    {"id": "2483", "rank": 6, "name": "Oregon Ducks", "shortName": "Oregon", "record": "11-1", "sor": 12, "conference": "Big Ten"},
    {"id": "145", "rank": 7, "name": "Ole Miss Rebels", "shortName": "Ole Miss", "record": "10-2", "sor": 23, "conference": "SEC"},
    {"id": "201", "rank": 8, "name": "Oklahoma Sooners", "shortName": "Oklahoma", "record": "10-2", "sor": 15, "conference": "SEC"},
    {"id": "87", "rank": 9, "name": "Notre Dame Fighting Irish", "shortName": "Notre Dame", "record": "10-2", "sor": 41, "conference": "FBS Indep."},
    {"id": "333", "rank": 10, "name": "Alabama Crimson Tide", "shortName": "Alabama", "record": "10-2", "sor": 5, "conference": "SEC"},
    {"id": "2390", "rank": 11, "name": "Miami Hurricanes", "shortName": "Miami", "record": "10-2", "sor": 15, "conference": "ACC"},
    {"id": "2655", "rank": 12, "name": "Tulane Green Wave", "shortName": "Tulane", "record": "11-1", "sor": 56, "conference": "American"},
    {"id": "252", "rank": 13, "name": "BYU Cougars", "shortName": "BYU", "record": "9-3", "sor": 35, "conference": "Big 12"},
    {"id": "251", "rank": 14, "name": "Texas Longhorns", "shortName": "Texas", "record": "10-2", "sor": 10, "conference": "SEC"},
    {"id": "213", "rank": 15, "name": "Penn State Nittany Lions", "shortName": "Penn State", "record": "11-1", "sor": 52, "conference": "Big Ten"},
    {"id": "30", "rank": 16, "name": "USC Trojans", "shortName": "USC", "record": "9-3", "sor": 12, "conference": "Big Ten"},
    {"id": "228", "rank": 17, "name": "Clemson Tigers", "shortName": "Clemson", "record": "9-3", "sor": 46, "conference": "ACC"},
]
