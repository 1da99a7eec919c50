"""Tests for the Sleeper league adapter."""

from __future__ import annotations

import pytest
import requests

from config import SLEEPER_API_BASE
from conftest import MockResponse, MockSession, RoutingSession
from sleeper_adapter import (
    build_lineup_state,
    build_player_directory,
    fetch_league_context,
    get_user,
    owned_player_ids,
)

ROSTER_POSITIONS = ["QB", "RB", "RB", "FLEX", "DST", "BN", "BN", "IR", "TAXI"]

PLAYERS_INDEX = {
    "1": {"first_name": "Patrick", "last_name": "Mahomes", "position": "QB", "team": "KC", "fantasy_positions": ["QB"]},
    "2": {"first_name": "Deebo", "last_name": "Samuel", "position": "WR", "team": "WAS",
          "fantasy_positions": ["WR", "RB"], "injury_status": "Questionable"},
    "SF": {"full_name": "San Francisco 49ers", "position": "DEF", "team": "SF", "fantasy_positions": ["DEF"]},
}


def test_lineup_state_keeps_empty_slots_in_place() -> None:
    roster = {
        "starters": ["1", "0", "2", "2", ""],
        "players": ["1", "2", "3", "4", "5", "6"],
        "reserve": ["5"],
        "taxi": ["6", "1"],
    }
    state = build_lineup_state(roster, ROSTER_POSITIONS)

    assert state.slot_labels == ("QB", "RB", "RB", "FLEX", "DEF")
    assert state.starters == ("1", None, "2", None, None)
    assert state.reserve == ("5",)
    assert state.taxi == ("6",)
    assert state.bench == ("3", "4")


def test_short_starters_are_padded() -> None:
    state = build_lineup_state({"starters": ["1"], "players": ["1"]}, ["QB", "RB"])
    assert state.starters == ("1", None)


def test_player_directory_maps_index_entries() -> None:
    directory = build_player_directory(PLAYERS_INDEX, only_ids=["2", "SF", "missing"])

    assert set(directory) == {"2", "SF"}
    deebo = directory["2"]
    assert deebo.name == "Deebo Samuel"
    assert deebo.eligible_positions == ("WR", "RB")
    assert deebo.injury_status == "Questionable"
    assert directory["SF"].name == "San Francisco 49ers"


def test_owned_ids_cover_every_roster_group() -> None:
    rosters = [
        {"players": ["1", "2"], "starters": ["1", "0"]},
        {"players": None, "reserve": ["9"], "taxi": ["8"]},
    ]
    assert owned_player_ids(rosters) == {"1", "2", "8", "9"}


def test_get_user_returns_none_on_404_and_raises_otherwise() -> None:
    assert get_user("nobody", session=MockSession([MockResponse({}, status_code=404)])) is None

    with pytest.raises(requests.HTTPError):
        get_user("boom", session=MockSession([MockResponse({}, status_code=500)]))


def test_fetch_league_context_finds_our_roster_by_username() -> None:
    league = {"name": "Test League", "roster_positions": ["QB", "BN"], "scoring_settings": {"rec": 0.5}, "settings": {"auto_subs": 1}}
    rosters = [{"owner_id": "u2", "players": []}, {"owner_id": "u1", "players": ["1"]}]
    session = RoutingSession(
        {
            f"{SLEEPER_API_BASE}/league/L1": league,
            f"{SLEEPER_API_BASE}/league/L1/rosters": rosters,
            f"{SLEEPER_API_BASE}/user/me": {"user_id": "u1"},
            f"{SLEEPER_API_BASE}/players/nfl": PLAYERS_INDEX,
        }
    )

    ctx = fetch_league_context({"league_id": "L1", "username": "me"}, session=session)

    assert ctx.roster["owner_id"] == "u1"
    assert ctx.roster_positions == ["QB", "BN"]
    assert ctx.scoring_settings == {"rec": 0.5}
    assert ctx.settings == {"auto_subs": 1}
    assert ctx.players_index == PLAYERS_INDEX


def test_fetch_league_context_errors() -> None:
    with pytest.raises(RuntimeError):
        fetch_league_context(
            {"league_id": "L1"},
            session=RoutingSession(
                {
                    f"{SLEEPER_API_BASE}/league/L1": {},
                    f"{SLEEPER_API_BASE}/league/L1/rosters": [],
                }
            ),
        )

    with pytest.raises(RuntimeError):
        fetch_league_context(
            {"league_id": "L1", "owner_id": "ghost"},
            session=RoutingSession(
                {
                    f"{SLEEPER_API_BASE}/league/L1": {},
                    f"{SLEEPER_API_BASE}/league/L1/rosters": [{"owner_id": "u1"}],
                }
            ),
        )
