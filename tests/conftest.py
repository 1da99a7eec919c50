"""Pytest configuration and shared roster fixtures."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import requests


def pytest_configure() -> None:
    """Ensure the repo root is importable without installing the package."""
    root = Path(__file__).resolve().parents[1]
    root_path = str(root)
    if root_path not in sys.path:
        sys.path.insert(0, root_path)


class MockResponse:
    """Minimal mock of requests.Response."""

    def __init__(self, payload: Any, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code
        self.text = json.dumps(payload)
        self.headers: Dict[str, str] = {}

    def json(self) -> Any:
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)


class MockSession:
    """Queue-based mock for requests.Session."""

    def __init__(self, get_responses: Optional[List[MockResponse]] = None) -> None:
        self.get_calls: List[Dict[str, Any]] = []
        self._get_responses = get_responses or []

    def get(self, url: str, **kwargs: Any) -> MockResponse:
        self.get_calls.append({"url": url, "kwargs": kwargs})
        if not self._get_responses:
            raise AssertionError("Unexpected GET call.")
        return self._get_responses.pop(0)


class RoutingSession:
    """Mock session answering by exact URL, for multi-endpoint flows."""

    def __init__(self, routes: Dict[str, Any]) -> None:
        self.routes = routes
        self.get_calls: List[str] = []

    def get(self, url: str, **kwargs: Any) -> MockResponse:
        self.get_calls.append(url)
        if url not in self.routes:
            raise AssertionError(f"Unexpected GET {url}")
        return MockResponse(self.routes[url])


NOW = 1_700_000_000.0
TEAMS = ("KC", "BUF", "DAL", "MIA", "PHI", "SF", "DET", "NYJ", "LAR", "SEA", "CHI", "GB")
SLOTS = ("QB", "RB", "RB", "WR", "WR", "TE", "FLEX", "K", "DEF")


@pytest.fixture
def make_player():
    from models import Player

    def _make(pid: str, pos: str, points: float, **kwargs: Any) -> Player:
        kwargs.setdefault("name", pid.upper())
        return Player(player_id=pid, position=pos, points=points, **kwargs)

    return _make


@pytest.fixture
def schedule():
    """Every test team kicks off an hour after NOW."""
    from models import GameInfo

    return {team: GameInfo(start=NOW + 3600, state="pre") for team in TEAMS}


@pytest.fixture
def roster(make_player):
    """
    Nine-slot league with an empty second RB slot, a questionable WR2 and a
    bench WR who should be starting.
    """
    from models import LineupState

    players = {
        p.player_id: p
        for p in (
            make_player("qb1", "QB", 20.0, team="KC"),
            make_player("rb1", "RB", 15.0, team="BUF"),
            make_player("rb2", "RB", 9.0, team="DAL"),
            make_player("wr1", "WR", 14.0, team="MIA"),
            make_player("wr2", "WR", 8.0, team="PHI", injury_status="Q"),
            make_player("te1", "TE", 7.0, team="SF"),
            make_player("k1", "K", 8.0, team="DET"),
            make_player("def1", "DEF", 6.0, team="NYJ"),
            make_player("wr3", "WR", 12.0, team="LAR"),
            make_player("rb3", "RB", 4.0, team="SEA"),
        )
    }
    state = LineupState(
        slot_labels=SLOTS,
        starters=("qb1", "rb1", None, "wr1", "wr2", "te1", "rb2", "k1", "def1"),
        bench=("wr3", "rb3"),
    )
    return state, players


@pytest.fixture
def free_agents(make_player):
    return [
        make_player("fa_wr", "WR", 13.0, team="CHI", is_free_agent=True),
        make_player("fa_rb", "RB", 10.0, team="GB", is_free_agent=True),
    ]
