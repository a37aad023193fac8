"""
Playoff Tracker Bracketology Engine.

Projects the 12-team College Football Playoff field two ways:

1. "direct": the committee's own poll order, top 12 seeded as ranked
2. "fair":   one auto-bid per power conference (seeds 1-4), then the best
             at-large resumes by fair score (seeds 5-12)

Both strategies are pure functions of already-fetched data; every refresh
recomputes the bracket from scratch.

Usage:
    python -m pipeline.bracketology                    # direct rankings
    python -m pipeline.bracketology --mode fair         # fair rankings
    python -m pipeline.bracketology --mode fair --sor-csv data/sor.csv
    python -m pipeline.bracketology --offline           # fallback snapshot, no network
"""

from __future__ import annotations

import argparse
import logging
from datetime import date
from functools import cmp_to_key
from typing import Any

import numpy as np

from pipeline import export
from pipeline.conferences import conference_matches, is_power_conference
from pipeline.config import (
    DEFAULT_CONFIG,
    FALLBACK_TEAMS,
    MISSING_RANK,
    RankingConfig,
    load_ranking_config,
)
from pipeline.espn_api import EspnApiClient
from pipeline.fetch_data import collect_inputs, load_sor_rows
from pipeline.models import (
    Bracket,
    DuplicateTeamError,
    InvalidModeError,
    InvalidTeamError,
    RawInputs,
    Team,
)
from pipeline.normalize import build_teams

logger = logging.getLogger(__name__)

MODES = ("direct", "fair")

# Higher seed listed first; order matches the bracket's top-to-bottom layout
FIRST_ROUND = [(5, 12), (8, 9), (6, 11), (7, 10)]
QUARTERFINAL_BYES = [4, 1, 3, 2]


def _rank(team: Team) -> int:
    return team.rank if team.rank is not None else MISSING_RANK


# ── Head-to-Head ─────────────────────────────────────────────────────────────

def _matches_any(team: Team, aliases: tuple[str, ...]) -> bool:
    name = team.name.lower()
    short = team.short_name.lower()
    return any(a in name or a in short for a in aliases)


def head_to_head_winner(a: Team, b: Team, config: RankingConfig = DEFAULT_CONFIG) -> Team | None:
    """Winner of a configured head-to-head result between ``a`` and ``b``, if any."""
    for winners, losers in config.head_to_head:
        if _matches_any(a, winners) and _matches_any(b, losers):
            return a
        if _matches_any(b, winners) and _matches_any(a, losers):
            return b
    return None


# ── Auto-Bids ────────────────────────────────────────────────────────────────

def compare_conference_leaders(a: Team, b: Team, config: RankingConfig = DEFAULT_CONFIG) -> int:
    """Negative when ``a`` leads the conference over ``b``."""
    a_wins, a_losses = a.wins, a.losses
    b_wins, b_losses = b.wins, b.losses

    if a_losses != b_losses:
        return a_losses - b_losses

    # An 11-0 team ranked above a 12-0 team played a shorter season, not a worse one
    if a_losses == 0 and b_losses == 0 and _rank(a) != _rank(b):
        return _rank(a) - _rank(b)

    if a_losses > 0 and b_losses > 0 and a_wins != b_wins:
        return b_wins - a_wins

    h2h = head_to_head_winner(a, b, config)
    if h2h is a:
        return -1
    if h2h is b:
        return 1

    if _rank(a) != _rank(b):
        return _rank(a) - _rank(b)

    if a.sor is not None and b.sor is not None:
        return a.sor - b.sor
    if a.sor is not None:
        return -1
    if b.sor is not None:
        return 1
    return 0


def select_auto_bids(teams: list[Team], config: RankingConfig = DEFAULT_CONFIG) -> list[Team]:
    """Leader of each power conference, in configured conference order.

    Conferences with no teams in the pool produce no entry.
    """
    leaders: list[Team] = []
    taken: set[str] = set()
    for conf in config.power_conferences:
        members = [t for t in teams if conference_matches(t.conference, conf, config) and t.id not in taken]
        if not members:
            logger.debug("No teams found for %s; skipping auto-bid", conf)
            continue
        ordered = sorted(members, key=cmp_to_key(lambda x, y: compare_conference_leaders(x, y, config)))
        leader = ordered[0].with_updates(is_auto_bid=True)
        taken.add(leader.id)
        leaders.append(leader)
    return leaders


# ── Fair Score ───────────────────────────────────────────────────────────────
#
# Record dominates (70%), strength of record breaks up teams with the same
# record (30%). Win totals earn tiered bonuses so an 11-1 team clears a 10-2
# team, and each extra loss costs more than the last. Non-power teams keep
# 85% of their score.

def compute_fair_score(team: Team, config: RankingConfig = DEFAULT_CONFIG) -> float:
    weights = config.fair_score
    wins, losses = team.wins, team.losses
    total = wins + losses
    if total == 0:
        return 0.0

    record_score = (wins / total) * 100 * weights.record_weight
    win_bonus = next((bonus for threshold, bonus in weights.win_bonus if wins >= threshold), 0.0)
    loss_penalty = next((pen for threshold, pen in weights.loss_penalty if losses >= threshold), 0.0)

    sor_score = 0.0
    if team.sor is not None and team.sor <= weights.sor_cutoff:
        sor_score = ((100 - team.sor) / 100) * 100 * weights.sor_weight

    multiplier = weights.power_multiplier if is_power_conference(team.conference, config) else weights.non_power_multiplier
    return max(0.0, (record_score + win_bonus - loss_penalty + sor_score) * multiplier)


def _compare_at_large(a: Team, b: Team, config: RankingConfig) -> int:
    a_score = a.fair_rank_score or 0.0
    b_score = b.fair_rank_score or 0.0
    if not np.isclose(a_score, b_score, rtol=0.0, atol=config.score_epsilon):
        return -1 if a_score > b_score else 1

    h2h = head_to_head_winner(a, b, config)
    if h2h is a:
        return -1
    if h2h is b:
        return 1
    return _rank(a) - _rank(b)


# ── Seed Assembly ────────────────────────────────────────────────────────────

def rank_direct(teams: list[Team], config: RankingConfig = DEFAULT_CONFIG) -> tuple[list[Team], list[Team]]:
    """Seed straight from the poll. Next out comes from the same ranked pool."""
    ordered = sorted(teams, key=_rank)
    size = config.bracket_size
    seeds = [t.with_updates(seed=i) for i, t in enumerate(ordered[:size], 1)]
    next_out = ordered[size:size + config.next_out_count]
    return seeds, next_out


def rank_fair(
    teams: list[Team], config: RankingConfig = DEFAULT_CONFIG,
) -> tuple[list[Team], list[Team], list[str]]:
    """Auto-bids take the top seeds, at-large fills the rest by fair score.

    Next out comes from the at-large order only; an auto-bid team can never
    appear there.
    """
    leaders = select_auto_bids(teams, config)
    leader_ids = {t.id for t in leaders}

    auto_bids = [t.with_updates(fair_rank_score=compute_fair_score(t, config)) for t in leaders]
    auto_bids.sort(key=lambda t: t.fair_rank_score, reverse=True)

    candidates = [
        t.with_updates(fair_rank_score=compute_fair_score(t, config), is_auto_bid=False)
        for t in teams
        if t.id not in leader_ids
    ]
    candidates.sort(key=cmp_to_key(lambda x, y: _compare_at_large(x, y, config)))

    n_at_large = max(0, config.bracket_size - len(auto_bids))
    at_large = candidates[:n_at_large]
    next_out = candidates[n_at_large:n_at_large + config.next_out_count]

    seeds = [t.with_updates(seed=i) for i, t in enumerate(auto_bids + at_large, 1)]
    return seeds, next_out, [t.id for t in auto_bids]


def _slot(team: Team | None, seed: int) -> dict[str, Any]:
    if team is None:
        return {"seed": seed, "id": None, "name": None, "shortName": None}
    return {"seed": seed, "id": team.id, "name": team.name, "shortName": team.short_name}


def build_matchups(seeds: list[Team]) -> dict[str, list[dict[str, Any]]]:
    """12-team layout: 5-12 play a first round, 1-4 wait in the quarterfinals."""
    by_seed = {t.seed: t for t in seeds}

    first_round = []
    for high, low in FIRST_ROUND:
        first_round.append({
            "id": f"r1-{high}v{low}",
            "round": 1,
            "team1": _slot(by_seed.get(high), high),
            "team2": _slot(by_seed.get(low), low),
        })

    quarterfinals = []
    for bye_seed, feeder in zip(QUARTERFINAL_BYES, first_round):
        quarterfinals.append({
            "id": f"qf-{bye_seed}",
            "round": 2,
            "team1": _slot(by_seed.get(bye_seed), bye_seed),
            "team2From": feeder["id"],
        })

    semifinals = [
        {"id": "sf-1", "round": 3, "team1From": quarterfinals[0]["id"], "team2From": quarterfinals[1]["id"]},
        {"id": "sf-2", "round": 3, "team1From": quarterfinals[2]["id"], "team2From": quarterfinals[3]["id"]},
    ]
    final = [{"id": "final", "round": 4, "team1From": "sf-1", "team2From": "sf-2"}]
    return {
        "firstRound": first_round,
        "quarterfinals": quarterfinals,
        "semifinals": semifinals,
        "championship": final,
    }


def _coerce_teams(teams: list[Any]) -> list[Team]:
    if not isinstance(teams, (list, tuple)):
        raise InvalidTeamError(f"Expected a list of teams, got {type(teams).__name__}")
    coerced: list[Team] = []
    seen: set[str] = set()
    for entry in teams:
        if isinstance(entry, Team):
            team = entry
        elif isinstance(entry, dict):
            team = Team.from_dict(entry)
        else:
            raise InvalidTeamError(f"Unsupported team entry type: {type(entry).__name__}")
        if team.id in seen:
            raise DuplicateTeamError(f"Team id {team.id} ({team.name}) appears more than once")
        seen.add(team.id)
        coerced.append(team)
    return coerced


def compute_bracket(teams: list[Any], mode: str = "direct", config: RankingConfig = DEFAULT_CONFIG) -> Bracket:
    """Seed a deduplicated team list with the chosen strategy.

    Raises ``InvalidModeError``, ``InvalidTeamError`` or ``DuplicateTeamError``
    (all ``BracketError``) on bad input.
    """
    if mode not in MODES:
        raise InvalidModeError(f"Unknown ranking mode {mode!r}; expected one of {MODES}")
    pool = _coerce_teams(teams)

    if mode == "fair":
        seeds, next_out, auto_bids = rank_fair(pool, config)
    else:
        seeds, next_out = rank_direct(pool, config)
        auto_bids = []

    return Bracket(
        mode=mode,
        seeds=seeds,
        next_out=next_out,
        auto_bids=auto_bids,
        matchups=build_matchups(seeds),
    )


def fallback_teams() -> list[Team]:
    return [Team.from_dict(t) for t in FALLBACK_TEAMS]


def build_bracket(inputs: RawInputs, mode: str = "direct", config: RankingConfig = DEFAULT_CONFIG) -> Bracket:
    """Raw feeds → normalized teams → bracket, falling back to the snapshot
    when the rankings feed produced no teams."""
    teams = build_teams(inputs, config)
    if not teams:
        logger.warning("Rankings feed produced no teams; using fallback snapshot")
        teams = fallback_teams()
    return compute_bracket(teams, mode, config)


# ── Main Pipeline ────────────────────────────────────────────────────────────

def _log_bracket(bracket: Bracket) -> None:
    for team in bracket.seeds:
        tag = "(A)" if team.is_auto_bid else "   "
        score = f"  Score: {team.fair_rank_score:.1f}" if team.fair_rank_score is not None else ""
        logger.info("    #%d seed: %s  %s  (%s, rank %s, SOR %s)%s %s",
                    team.seed, team.short_name, team.record, team.conference,
                    team.rank if team.rank is not None else "-",
                    team.sor if team.sor is not None else "-", score, tag)
    if bracket.next_out:
        logger.info("  Next out: %s", ", ".join(f"{t.short_name} ({t.record})" for t in bracket.next_out))


def run_bracketology(
    mode: str = "direct",
    sor_csv: str | None = None,
    config_path: str | None = None,
    lookback: int | None = None,
    offline: bool = False,
) -> dict[str, Any]:
    """
    Run the full pipeline: fetch feeds, normalize, seed, export.

    Args:
        mode: "direct" or "fair"
        sor_csv: CSV with team_name/sor_rank/conference columns (default: SOR table)
        config_path: JSON file overriding ranking tables
        lookback: days of scoreboards to scan for records
        offline: skip the network and seed the fallback snapshot

    Returns:
        Bracket dict as served to the frontend
    """
    config = load_ranking_config(config_path)

    logger.info("=" * 60)
    logger.info("Playoff Tracker Bracketology Engine")
    logger.info("Mode: %s | Offline: %s", mode, offline)
    logger.info("=" * 60)

    if offline:
        bracket = compute_bracket(fallback_teams(), mode, config)
    else:
        sor_rows = load_sor_rows(sor_csv)
        client = EspnApiClient()
        inputs = collect_inputs(client, today=date.today(), lookback_days=lookback, sor_rows=sor_rows)
        logger.info("  Requests made: %d", client.request_count)
        bracket = build_bracket(inputs, mode, config)

    logger.info("\n🏈 %s bracket:", mode.title())
    _log_bracket(bracket)

    payload = bracket.to_dict()
    export.write_bracket(payload)
    logger.info("\n✅ Bracketology complete!")
    return payload


# ── CLI ──────────────────────────────────────────────────────────────────────

def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    parser = argparse.ArgumentParser(description="Playoff Tracker Bracketology")
    parser.add_argument("--mode", choices=MODES, default="direct", help="Seeding strategy")
    parser.add_argument("--sor-csv", default=None, help="Strength-of-record CSV (default: SOR table)")
    parser.add_argument("--config", default=None, help="JSON file overriding ranking tables")
    parser.add_argument("--lookback", type=int, default=None, help="Days of scoreboards to scan")
    parser.add_argument("--offline", action="store_true", help="Use the fallback snapshot, no network")
    args = parser.parse_args()

    try:
        run_bracketology(
            mode=args.mode,
            sor_csv=args.sor_csv,
            config_path=args.config,
            lookback=args.lookback,
            offline=args.offline,
        )
    except Exception:
        logger.exception("Bracketology run failed")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
