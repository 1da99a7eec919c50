# schedule.py
#
# This week's NFL kickoffs and game states from the ESPN scoreboard, as
# {team: GameInfo}. Failures fall back to the last good schedule, or to an
# empty one, which the lock gate treats as "nothing locked".

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

import pandas as pd  # type: ignore[import]
import requests  # type: ignore[import]

from config import ESPN_SCOREBOARD_URL, HTTP_TIMEOUT  # type: ignore[import]
from models import GameInfo, GameSchedule  # type: ignore[import]
from projection_cache import ProjectionCache  # type: ignore[import]

ESPN_TEAM_MAP: Dict[str, str] = {
    "ARI": "ARI", "ATL": "ATL", "BAL": "BAL", "BUF": "BUF", "CAR": "CAR",
    "CHI": "CHI", "CIN": "CIN", "CLE": "CLE", "DAL": "DAL", "DEN": "DEN",
    "DET": "DET", "GB": "GB", "HOU": "HOU", "IND": "IND", "JAX": "JAX",
    "KC": "KC", "LV": "LV", "LAC": "LAC", "LAR": "LAR", "MIA": "MIA",
    "MIN": "MIN", "NE": "NE", "NO": "NO", "NYG": "NYG", "NYJ": "NYJ",
    "PHI": "PHI", "PIT": "PIT", "SF": "SF", "SEA": "SEA", "TB": "TB",
    "TEN": "TEN", "WAS": "WAS", "WSH": "WAS",
}

GAME_STATES = {"pre", "in", "post"}


def _kickoff_epoch(raw: str) -> float:
    ts = pd.Timestamp(raw)
    if ts.tzinfo is None:
        ts = ts.tz_localize("UTC")
    return float(ts.timestamp())


def parse_scoreboard(data: Mapping[str, Any], season: int, week: int) -> GameSchedule:
    """
    Turn a scoreboard payload into a schedule. A requested week later than
    the one the scoreboard is showing gives an empty schedule.
    """
    espn_week = (data.get("week") or {}).get("number")
    espn_season = (data.get("season") or {}).get("year")
    if espn_week and espn_season:
        if season > espn_season or (season == espn_season and week > espn_week):
            print(
                f"[Schedule] Week {week} is ahead of the scoreboard "
                f"(week {espn_week}); returning an empty schedule"
            )
            return {}

    schedule: GameSchedule = {}
    for event in data.get("events") or []:
        competitions = event.get("competitions") or []
        if not competitions:
            continue
        comp = competitions[0]
        state = ((comp.get("status") or {}).get("type") or {}).get("state", "pre")
        if state not in GAME_STATES:
            state = "pre"
        start = _kickoff_epoch(comp["date"])
        for competitor in comp.get("competitors") or []:
            abbrev = (competitor.get("team") or {}).get("abbreviation")
            team = ESPN_TEAM_MAP.get(abbrev or "")
            if team:
                schedule[team] = GameInfo(start=start, state=state)
    return schedule


def fetch_week_schedule(
    season: int,
    week: int,
    session: Optional[Any] = None,
    cache: Optional[ProjectionCache] = None,
) -> GameSchedule:
    if cache is not None:
        fresh = cache.get(season, week)
        if fresh is not None:
            return fresh

    http = session or requests
    try:
        resp = http.get(ESPN_SCOREBOARD_URL, timeout=HTTP_TIMEOUT)
        resp.raise_for_status()
        schedule = parse_scoreboard(resp.json(), season, week)
    except (requests.RequestException, ValueError, KeyError, TypeError) as exc:
        print(f"[Schedule] ERROR fetching ESPN scoreboard: {exc}")
        stale = cache.peek(season, week) if cache is not None else None
        return stale if stale is not None else {}

    print(f"[Schedule] {len(schedule)} teams scheduled for {season} W{week}")
    if cache is not None:
        cache.put(season, week, schedule)
    return schedule
