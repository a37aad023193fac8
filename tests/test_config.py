import json

import pytest

from pipeline.config import (
    DEFAULT_CONFIG,
    FALLBACK_TEAMS,
    get_team_color,
    load_ranking_config,
    lookup_metadata,
)


def test_no_path_returns_defaults():
    assert load_ranking_config(None) is DEFAULT_CONFIG
    assert load_ranking_config("") is DEFAULT_CONFIG


def test_overrides_replace_only_named_tables(tmp_path):
    path = tmp_path / "ranking.json"
    path.write_text(json.dumps({
        "bracket_size": 4,
        "power_conferences": ["SEC", "Big Ten"],
        "fair_score": {"non_power_multiplier": 0.5},
        "head_to_head": [[["utah"], ["byu"]]],
        "not_a_table": True,
    }))
    config = load_ranking_config(path)
    assert config.bracket_size == 4
    assert config.power_conferences == ("SEC", "Big Ten")
    assert config.fair_score.non_power_multiplier == 0.5
    assert config.fair_score.record_weight == pytest.approx(0.70)
    assert config.head_to_head == ((("utah",), ("byu",)),)
    assert config.next_out_count == DEFAULT_CONFIG.next_out_count
    assert not hasattr(config, "not_a_table")


def test_overridden_head_to_head_drives_engine(tmp_path):
    from pipeline.bracketology import head_to_head_winner
    from tests.conftest import make_team

    path = tmp_path / "ranking.json"
    path.write_text(json.dumps({"head_to_head": [[["utah"], ["byu"]]]}))
    config = load_ranking_config(path)
    utah = make_team("254", "Utah Utes")
    byu = make_team("252", "BYU Cougars")
    assert head_to_head_winner(byu, utah, config) is utah
    assert head_to_head_winner(byu, make_team("2641", "Texas Tech Red Raiders"), config) is None


def test_metadata_lookup_by_alias():
    assert lookup_metadata("245", "Texas A&M")["shortName"] == "Texas A&M"
    assert lookup_metadata("999", "TAMU")["color"] == "#500000"
    assert lookup_metadata("999", "Nobody Special") is None


def test_team_color_is_stable_hex():
    assert get_team_color("BYU Cougars") == "#002E5D"
    color = get_team_color("Nobody Special")
    assert color == get_team_color("Nobody Special")
    assert color.startswith("#") and len(color) == 7


def test_fallback_snapshot_is_valid():
    ids = [t["id"] for t in FALLBACK_TEAMS]
    assert len(ids) == len(set(ids))
    assert len(FALLBACK_TEAMS) >= 14


def test_other_aggies_do_not_inherit_texas_am_metadata():
    assert lookup_metadata("328", "Utah State Aggies", "Utah State") is None
    assert lookup_metadata("166", "New Mexico State Aggies", "New Mexico St") is None
