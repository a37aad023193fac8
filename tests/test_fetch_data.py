from datetime import date

import pandas as pd
import pytest
import requests

from pipeline import fetch_data, settings
from pipeline.fetch_data import (
    FetchError,
    collect_inputs,
    extract_rankings_feed,
    extract_scoreboard_records,
    extract_standings_records,
    fetch_playoff_payload,
    load_sor_rows,
    pick_poll,
    scoreboard_dates,
)


def _rank(team_id, name, current, summary=None):
    entry = {"current": current, "team": {"id": team_id, "displayName": name, "shortDisplayName": name.split(" ")[0]}}
    if summary:
        entry["recordSummary"] = summary
        entry["record"] = {"summary": summary}
    return entry


RANKINGS = {
    "rankings": [
        {"name": "AP Top 25", "ranks": [_rank("252", "BYU Cougars", 20, "9-3")]},
        {
            "name": "College Football Playoff Rankings",
            "ranks": [
                _rank("194", "Ohio State Buckeyes", 1, "11-1"),
                _rank("252", "BYU Cougars", 11, "9-3"),
                {"current": 12, "team": None},
            ],
        },
    ]
}


def _board(*competitors):
    return {"events": [{"competitions": [{"competitors": list(competitors)}]}]}


def _competitor(team_id, name, summary):
    return {"team": {"id": team_id, "displayName": name}, "records": [{"summary": summary}]}


class FakeClient:
    def __init__(self, rankings=RANKINGS, boards=None, standings=None, fail_dates=(), standings_error=False):
        self.rankings = rankings
        self.boards = boards or {}
        self.standings = standings or {}
        self.fail_dates = set(fail_dates)
        self.standings_error = standings_error
        self.requested = []

    def get_rankings(self):
        return self.rankings

    def get_scoreboard(self, dates, limit=300):
        self.requested.append(dates)
        if dates in self.fail_dates:
            raise requests.exceptions.ConnectionError("boom")
        return self.boards.get(dates, {})

    def get_standings(self):
        if self.standings_error:
            raise requests.exceptions.Timeout("slow")
        return self.standings


@pytest.fixture
def no_main_range(monkeypatch):
    monkeypatch.setattr(settings, "MAIN_SCOREBOARD_RANGE", "")


def test_pick_poll_prefers_playoff_then_ap():
    assert pick_poll(RANKINGS)["name"].startswith("College Football Playoff")
    ap_only = {"rankings": [{"name": "Coaches Poll"}, {"name": "AP Top 25"}]}
    assert pick_poll(ap_only)["name"] == "AP Top 25"
    assert pick_poll({"rankings": [{"name": "Coaches Poll"}]})["name"] == "Coaches Poll"
    assert pick_poll({}) is None


def test_extract_rankings_feed_skips_missing_teams():
    entries, poll = extract_rankings_feed(RANKINGS)
    assert poll == "College Football Playoff Rankings"
    assert [e["team"]["id"] for e in entries] == ["194", "252"]
    assert entries[1]["rank"] == 11
    assert entries[1]["recordHint"] == "9-3"
    assert entries[1]["team"]["shortName"] == "BYU"


def test_scoreboard_dates_order(monkeypatch):
    monkeypatch.setattr(settings, "MAIN_SCOREBOARD_RANGE", "20251128-20251130")
    assert scoreboard_dates(date(2025, 12, 2), 2) == ["20251128-20251130", "20251202", "20251201", "20251130"]


def test_first_scoreboard_wins():
    boards = [
        _board(_competitor("252", "BYU Cougars", "10-2")),
        _board(_competitor("252", "BYU Cougars", "9-2"), _competitor("254", "Utah Utes", "8-4")),
    ]
    by_id = extract_scoreboard_records(boards)
    assert by_id["252"] == {"name": "BYU Cougars", "record": "10-2"}
    assert by_id["254"]["record"] == "8-4"


def test_standings_walks_nested_groups():
    standings = {
        "children": [
            {"standings": {"entries": [
                {"team": {"displayName": "Utah Utes"}, "stats": [{"name": "overall", "displayValue": "8-4"}]},
            ]}},
            {"children": [{"standings": {"entries": [
                {"team": {"displayName": "Boise State Broncos"}, "stats": [{"type": "overall", "displayValue": "9-3"}]},
            ]}}]},
        ]
    }
    assert extract_standings_records(standings) == {"Utah Utes": "8-4", "Boise State Broncos": "9-3"}


def test_payload_merges_sources_in_priority_order(no_main_range):
    client = FakeClient(
        boards={
            "20251202": _board(_competitor("252", "BYU Cougars", "10-3")),
            "20251201": _board(_competitor("252", "BYU Cougars", "9-3")),
        },
        standings={"standings": {"entries": [
            {"team": {"displayName": "BYU Cougars"}, "stats": [{"name": "overall", "displayValue": "1-1"}]},
            {"team": {"displayName": "Utah Utes"}, "stats": [{"name": "overall", "displayValue": "8-4"}]},
        ]}},
    )
    payload = fetch_playoff_payload(client, today=date(2025, 12, 2), lookback_days=1)
    assert payload["recordsById"]["252"]["record"] == "10-3"
    assert payload["records"]["BYU Cougars"] == "10-3"
    assert payload["records"]["Ohio State Buckeyes"] == "11-1"
    assert payload["records"]["Utah Utes"] == "8-4"
    assert sorted(client.requested) == ["20251201", "20251202"]


def test_failed_sources_contribute_nothing(no_main_range):
    client = FakeClient(
        boards={"20251201": _board(_competitor("254", "Utah Utes", "8-4"))},
        fail_dates={"20251202"},
        standings_error=True,
    )
    payload = fetch_playoff_payload(client, today=date(2025, 12, 2), lookback_days=1)
    assert set(payload["recordsById"]) == {"254"}


def test_missing_rankings_raises():
    with pytest.raises(FetchError):
        fetch_playoff_payload(FakeClient(rankings={}), today=date(2025, 12, 2), lookback_days=0)


def test_collect_inputs_degrades_without_rankings(no_main_range):
    sor = [{"team_name": "BYU", "sor_rank": 35, "conference": "Big 12"}]
    inputs = collect_inputs(FakeClient(rankings={}), today=date(2025, 12, 2), lookback_days=0, sor_rows=sor)
    assert inputs.rankings == []
    assert inputs.sor_rows == sor


def test_collect_inputs_builds_raw_inputs(no_main_range):
    client = FakeClient(boards={"20251202": _board(_competitor("team-252", "BYU Cougars", "10-2"))})
    inputs = collect_inputs(client, today=date(2025, 12, 2), lookback_days=0)
    assert inputs.poll_name == "College Football Playoff Rankings"
    assert inputs.records_by_id == {"252": "10-2"}
    assert len(inputs.rankings) == 2


def test_load_sor_rows_from_csv(tmp_path):
    path = tmp_path / "sor.csv"
    pd.DataFrame({
        "Team": ["BYU", "Texas Tech", "Tulane"],
        "SOR": [35, 17, None],
        "Conference": ["Big 12", "Big 12", None],
    }).to_csv(path, index=False)
    rows = load_sor_rows(str(path))
    assert rows[0] == {"team_name": "BYU", "sor_rank": 35, "conference": "Big 12"}
    assert rows[2]["sor_rank"] is None
    assert rows[2]["conference"] is None


def test_load_sor_rows_bad_csv_is_empty(tmp_path):
    path = tmp_path / "sor.csv"
    path.write_text("school_name,value\nBYU,3\n")
    assert load_sor_rows(str(path)) == []
    assert load_sor_rows(str(tmp_path / "missing.csv")) == []


def test_load_sor_rows_store_failure_is_empty(monkeypatch):
    def broken(query, params=()):
        raise RuntimeError("SOR store is not configured")

    monkeypatch.setattr(fetch_data, "fetch_all", broken)
    assert load_sor_rows() == []


def test_load_sor_rows_from_store(monkeypatch):
    queries = []

    def fake_fetch_all(query, params=()):
        queries.append(query)
        return [{"team_name": "BYU", "conference": "Big 12", "sor_rank": 35, "rank_id": 1}]

    monkeypatch.setattr(fetch_data, "fetch_all", fake_fetch_all)
    assert load_sor_rows()[0]["sor_rank"] == 35
    assert settings.SOR_TABLE in queries[0]
