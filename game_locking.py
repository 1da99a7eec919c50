# game_locking.py
#
# Decides whether a player's real-world game has started, finished or is a
# bye, from a schedule snapshot and an explicit "now" (epoch seconds).

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, TypeVar

from models import GameInfo, Player  # type: ignore[import]

T = TypeVar("T", bound=Player)


def has_game_started(
    team: Optional[str], schedule: Mapping[str, GameInfo], now: float
) -> bool:
    if not team:
        return False
    game = schedule.get(team.upper())
    if game is None:
        return False
    return game.state != "pre" or now >= game.start


def is_team_on_bye(team: Optional[str], schedule: Mapping[str, GameInfo]) -> bool:
    """
    A team missing from a non-empty schedule is on bye. An empty schedule
    means the upstream feed failed, so nobody is treated as on bye.
    """
    if not schedule:
        return False
    if not team:
        return True
    return team.upper() not in schedule


def is_player_locked(
    team: Optional[str],
    schedule: Optional[Mapping[str, GameInfo]],
    now: float,
    played_ids: Iterable[str] = (),
    player_id: Optional[str] = None,
) -> bool:
    if player_id is not None and player_id in set(played_ids):
        return True
    if not schedule:
        return False
    return has_game_started(team, schedule, now) or is_team_on_bye(team, schedule)


def filter_unlocked_players(
    players: Iterable[T],
    schedule: Optional[Mapping[str, GameInfo]],
    now: float,
    played_ids: Iterable[str] = (),
) -> List[T]:
    played = set(played_ids)
    return [
        p for p in players
        if not is_player_locked(p.team, schedule, now, played, p.player_id)
    ]


def get_locked_teams(schedule: Mapping[str, GameInfo], now: float) -> List[str]:
    return [team for team in schedule if has_game_started(team, schedule, now)]
