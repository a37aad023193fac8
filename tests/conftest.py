from __future__ import annotations

import pytest

from pipeline.models import Team


def make_team(team_id, name, record="10-2", rank=None, sor=None, conference="SEC", **extra) -> Team:
    return Team(
        id=str(team_id),
        name=name,
        short_name=extra.pop("short_name", name.split(" ")[0]),
        conference=conference,
        record=record,
        rank=rank,
        sor=sor,
        **extra,
    )


@pytest.fixture
def team_factory():
    return make_team


def rank_entry(team_id, name, rank, record_hint=None, conference=None, short_name=None):
    return {
        "team": {
            "id": str(team_id),
            "name": name,
            "shortName": short_name or name.split(" ")[0],
            "conferenceHint": conference,
            "logo": "",
            "color": "",
        },
        "rank": rank,
        "recordHint": record_hint,
    }
