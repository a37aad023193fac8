"""Conference resolution and power-conference matching."""

from __future__ import annotations

import re

from pipeline.config import DEFAULT_CONFIG, UNKNOWN_CONFERENCE, RankingConfig
from pipeline.models import Team, normalize_team_id


def _squash(value: str) -> str:
    return re.sub(r"[\s\-]+", "", (value or "").lower())


def conference_matches(conference: str | None, power_name: str, config: RankingConfig = DEFAULT_CONFIG) -> bool:
    """Case-insensitive substring match that ignores spacing ("Big12" == "Big 12")."""
    if not conference:
        return False
    conf = conference.lower()
    squashed = _squash(conference)
    for variant in (power_name, *config.conference_aliases.get(power_name, ())):
        if variant.lower() in conf or _squash(variant) in squashed:
            return True
    return False


def is_power_conference(conference: str | None, config: RankingConfig = DEFAULT_CONFIG) -> bool:
    return any(conference_matches(conference, p, config) for p in config.power_conferences)


def resolve_conference(team: Team, config: RankingConfig = DEFAULT_CONFIG) -> str:
    """Authoritative conference for ``team``: id override, then name hint, then
    whatever the team already carried."""
    override = config.conference_overrides.get(normalize_team_id(team.id))
    if override:
        return override

    names = [n.lower() for n in (team.name, team.short_name) if n]
    for substring, conference in config.conference_name_hints:
        if any(substring.lower() in n for n in names):
            return conference

    return team.conference or UNKNOWN_CONFERENCE
