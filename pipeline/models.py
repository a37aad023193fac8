"""Team and bracket records passed through the ranking pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from pipeline.config import UNKNOWN_CONFERENCE
from pipeline.records import parse_record


class BracketError(Exception):
    """Base class for ranking engine failures caused by bad input."""


class InvalidTeamError(BracketError):
    pass


class DuplicateTeamError(BracketError):
    """Two entries with the same team id reached the seed assembler."""


class InvalidModeError(BracketError):
    pass


def normalize_team_id(value: Any) -> str:
    """``"team-194"``, ``194`` and ``" 194 "`` all key to ``"194"``."""
    s = str(value if value is not None else "").strip()
    if s.startswith("team-"):
        s = s[len("team-"):]
    return s


def _optional_int(data: dict[str, Any], key: str, minimum: int = 1) -> int | None:
    """Ranks, SOR and seeds are 1-based; anything else is a bad entry."""
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidTeamError(f"{key} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidTeamError(f"{key} must be an integer, got {value!r}") from exc
    if number < minimum:
        raise InvalidTeamError(f"{key} must be at least {minimum}, got {number}")
    return number


def _optional_float(data: dict[str, Any], *keys: str) -> float | None:
    for key in keys:
        value = data.get(key)
        if value is None:
            continue
        if isinstance(value, bool):
            raise InvalidTeamError(f"{key} must be a number, got {value!r}")
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise InvalidTeamError(f"{key} must be a number, got {value!r}") from exc
    return None


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    short_name: str = ""
    conference: str = UNKNOWN_CONFERENCE
    record: str = "0-0"
    rank: int | None = None
    sor: int | None = None
    logo: str = ""
    color: str = ""
    seed: int | None = None
    fair_rank_score: float | None = None
    is_auto_bid: bool = False

    @property
    def wins(self) -> int:
        return parse_record(self.record)[0]

    @property
    def losses(self) -> int:
        return parse_record(self.record)[1]

    def with_updates(self, **changes: Any) -> "Team":
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Team":
        if not isinstance(data, dict):
            raise InvalidTeamError(f"Team entry must be a mapping, got {type(data).__name__}")
        team_id = normalize_team_id(data.get("id"))
        name = str(data.get("name") or "").strip()
        if not team_id:
            raise InvalidTeamError(f"Team entry is missing an id: {data!r}")
        if not name:
            raise InvalidTeamError(f"Team {team_id} is missing a name")
        return cls(
            id=team_id,
            name=name,
            short_name=str(data.get("shortName") or data.get("short_name") or name.split(" ")[0]),
            conference=str(data.get("conference") or UNKNOWN_CONFERENCE),
            record=str(data.get("record") or "0-0"),
            rank=_optional_int(data, "rank"),
            sor=_optional_int(data, "sor"),
            logo=str(data.get("logo") or ""),
            color=str(data.get("color") or ""),
            seed=_optional_int(data, "seed"),
            fair_rank_score=_optional_float(data, "fairRankScore", "fair_rank_score"),
            is_auto_bid=bool(data.get("isAutoBid", data.get("is_auto_bid", False))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "shortName": self.short_name,
            "conference": self.conference,
            "record": self.record,
            "wins": self.wins,
            "losses": self.losses,
            "rank": self.rank,
            "sor": self.sor,
            "logo": self.logo,
            "color": self.color,
            "seed": self.seed,
            "fairRankScore": round(self.fair_rank_score, 2) if self.fair_rank_score is not None else None,
            "isAutoBid": self.is_auto_bid,
        }


@dataclass
class RawInputs:
    """Everything one refresh cycle fetched, handed to the normalizer as a unit.

    ``rankings`` entries: ``{"team": {"id", "name", "shortName",
    "conferenceHint", "logo", "color"}, "rank", "recordHint"}``.
    ``sor_rows`` entries: ``{"team_name", "sor_rank", "conference"}``.
    """

    rankings: list[dict[str, Any]] = field(default_factory=list)
    records_by_id: dict[str, str] = field(default_factory=dict)
    records_by_name: dict[str, str] = field(default_factory=dict)
    sor_rows: list[dict[str, Any]] = field(default_factory=list)
    poll_name: str = ""


@dataclass
class Bracket:
    mode: str
    seeds: list[Team]
    next_out: list[Team]
    auto_bids: list[str] = field(default_factory=list)
    matchups: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "seeds": [t.to_dict() for t in self.seeds],
            "nextOut": [t.to_dict() for t in self.next_out],
            "autoBids": list(self.auto_bids),
            "matchups": self.matchups,
            "field": {
                "total": len(self.seeds),
                "autoBids": len(self.auto_bids),
                "atLarge": len(self.seeds) - len(self.auto_bids),
            },
        }
