"""Tests for the game lock gate."""

from __future__ import annotations

from game_locking import (
    filter_unlocked_players,
    get_locked_teams,
    has_game_started,
    is_player_locked,
    is_team_on_bye,
)
from models import GameInfo

NOW = 1_000_000.0


def test_empty_schedule_fails_open_for_every_team() -> None:
    for team in ("KC", "FA", None):
        assert is_player_locked(team, {}, NOW) is False
        assert is_player_locked(team, None, NOW) is False
    assert is_team_on_bye("KC", {}) is False


def test_team_missing_from_schedule_is_locked() -> None:
    schedule = {"KC": GameInfo(start=NOW + 60)}
    assert is_team_on_bye("FA", schedule)
    assert is_player_locked("FA", schedule, NOW)
    assert not is_player_locked("KC", schedule, NOW)


def test_kickoff_time_and_state_both_lock() -> None:
    schedule = {
        "KC": GameInfo(start=NOW - 1, state="pre"),
        "BUF": GameInfo(start=NOW + 600, state="in"),
        "DAL": GameInfo(start=NOW + 600, state="pre"),
    }
    assert has_game_started("KC", schedule, NOW)
    assert has_game_started("buf", schedule, NOW)
    assert not has_game_started("DAL", schedule, NOW)
    assert sorted(get_locked_teams(schedule, NOW)) == ["BUF", "KC"]


def test_played_ids_lock_regardless_of_schedule(make_player) -> None:
    assert is_player_locked("DAL", {}, NOW, played_ids={"p1"}, player_id="p1")

    schedule = {"DAL": GameInfo(start=NOW + 600), "KC": GameInfo(start=NOW - 600)}
    players = [
        make_player("p1", "RB", 5.0, team="DAL"),
        make_player("p2", "WR", 5.0, team="DAL"),
        make_player("p3", "QB", 5.0, team="KC"),
    ]
    unlocked = filter_unlocked_players(players, schedule, NOW, played_ids=["p1"])
    assert [p.player_id for p in unlocked] == ["p2"]
