# sleeper_adapter.py
#
# Adapters to pull live league data from the Sleeper API and map it into
# advisor models (player directory, LineupState, ownership).

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set
from urllib.parse import quote

import requests  # type: ignore[import]

from config import HTTP_TIMEOUT, SLEEPER_API_BASE  # type: ignore[import]
from models import LineupState, Player  # type: ignore[import]
from slot_rules import normalize_pos, starting_slot_labels  # type: ignore[import]


# ---------- tiny helper so dicts & objects both work ----------

def _cfg_get(cfg: Optional[Any], key: str, default=None):
    """
    Read a config field whether cfg is a dict or a simple object.
    """
    if cfg is None:
        return default
    if isinstance(cfg, dict):
        return cfg.get(key, default)
    return getattr(cfg, key, default)


# ---------- raw endpoints ----------

def _get_json(path: str, session: Optional[Any] = None) -> Any:
    http = session or requests
    resp = http.get(f"{SLEEPER_API_BASE}{path}", timeout=HTTP_TIMEOUT)
    resp.raise_for_status()
    return resp.json()


def get_user(username: str, session: Optional[Any] = None) -> Optional[Dict[str, Any]]:
    """Sleeper user record, or None when the username doesn't exist."""
    try:
        return _get_json(f"/user/{quote(username)}", session)
    except requests.HTTPError as exc:
        if exc.response is not None and exc.response.status_code == 404:
            print(f"[Sleeper] No Sleeper user named '{username}'")
            return None
        raise


def get_user_leagues(user_id: str, season: Any, session: Optional[Any] = None) -> List[Dict[str, Any]]:
    return _get_json(f"/user/{user_id}/leagues/nfl/{season}", session) or []


def get_league(league_id: str, session: Optional[Any] = None) -> Dict[str, Any]:
    return _get_json(f"/league/{league_id}", session) or {}


def get_league_rosters(league_id: str, session: Optional[Any] = None) -> List[Dict[str, Any]]:
    return _get_json(f"/league/{league_id}/rosters", session) or []


def get_league_users(league_id: str, session: Optional[Any] = None) -> List[Dict[str, Any]]:
    return _get_json(f"/league/{league_id}/users", session) or []


def get_players_index(session: Optional[Any] = None) -> Dict[str, Dict[str, Any]]:
    """Every NFL player Sleeper knows about, keyed by player_id (large)."""
    print("[Sleeper] Fetching players index...")
    data = _get_json("/players/nfl", session) or {}
    print(f"[Sleeper] Players index has {len(data)} entries")
    return data


# ---------- mapping into advisor models ----------

def _clean_id(pid: Any) -> Optional[str]:
    if pid is None:
        return None
    s = str(pid).strip()
    return None if s in ("", "0") else s


def player_from_index(pid: str, info: Mapping[str, Any]) -> Player:
    fantasy = [normalize_pos(x) for x in (info.get("fantasy_positions") or []) if x]
    name = " ".join(x for x in (info.get("first_name"), info.get("last_name")) if x)
    return Player(
        player_id=pid,
        name=name or info.get("full_name") or str(pid),
        position=normalize_pos(info.get("position") or (fantasy[0] if fantasy else "")),
        team=(info.get("team") or None),
        eligible_positions=tuple(fantasy),
        injury_status=info.get("injury_status") or None,
    )


def build_player_directory(
    players_index: Mapping[str, Mapping[str, Any]],
    only_ids: Optional[Iterable[str]] = None,
) -> Dict[str, Player]:
    """player_id -> Player (0 points; projections are attached later)."""
    ids = list(only_ids) if only_ids is not None else list(players_index)
    out: Dict[str, Player] = {}
    for pid in ids:
        info = players_index.get(pid)
        if info:
            out[pid] = player_from_index(pid, info)
    return out


def build_lineup_state(roster: Mapping[str, Any], roster_positions: Iterable[str]) -> LineupState:
    """
    LineupState for one Sleeper roster. Empty starter entries ("0" or blank)
    stay as None so starters keep lining up with the starting slot labels.
    """
    labels = starting_slot_labels(roster_positions)
    raw_starters = list(roster.get("starters") or [])
    starters = [_clean_id(pid) for pid in raw_starters[: len(labels)]]
    starters += [None] * (len(labels) - len(starters))

    seen: Set[str] = set()
    deduped: List[Optional[str]] = []
    for pid in starters:
        if pid is not None and pid in seen:
            deduped.append(None)
            continue
        if pid is not None:
            seen.add(pid)
        deduped.append(pid)

    def _group(key: str) -> List[str]:
        out: List[str] = []
        for pid in roster.get(key) or []:
            cid = _clean_id(pid)
            if cid is not None and cid not in seen:
                seen.add(cid)
                out.append(cid)
        return out

    reserve = _group("reserve")
    taxi = _group("taxi")
    bench = _group("players")

    return LineupState(
        slot_labels=labels,
        starters=tuple(deduped),
        bench=tuple(bench),
        reserve=tuple(reserve),
        taxi=tuple(taxi),
    )


def owned_player_ids(rosters: Iterable[Mapping[str, Any]]) -> Set[str]:
    owned: Set[str] = set()
    for r in rosters:
        for key in ("players", "reserve", "taxi", "starters"):
            for pid in r.get(key) or []:
                cid = _clean_id(pid)
                if cid is not None:
                    owned.add(cid)
    return owned


# ---------- league helper ----------

@dataclass(frozen=True)
class LeagueContext:
    league: Dict[str, Any]
    rosters: List[Dict[str, Any]]
    roster: Dict[str, Any]
    players_index: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def roster_positions(self) -> List[str]:
        return list(self.league.get("roster_positions") or [])

    @property
    def scoring_settings(self) -> Dict[str, float]:
        return dict(self.league.get("scoring_settings") or {})

    @property
    def settings(self) -> Dict[str, Any]:
        return dict(self.league.get("settings") or {})


def _resolve_owner_id(league_cfg: Any, session: Optional[Any]) -> str:
    owner_id = _cfg_get(league_cfg, "owner_id")
    if owner_id:
        return str(owner_id)
    username = _cfg_get(league_cfg, "username")
    if not username:
        raise RuntimeError("League config needs either owner_id or username.")
    user = get_user(username, session)
    if user is None:
        raise RuntimeError(f"Could not find Sleeper user '{username}'.")
    return str(user["user_id"])


def _find_my_roster(rosters: Iterable[Dict[str, Any]], owner_id: str) -> Dict[str, Any]:
    for r in rosters:
        if str(r.get("owner_id")) == owner_id:
            return r
    raise RuntimeError(f"Could not find a roster owned by '{owner_id}' in this league.")


def fetch_league_context(
    league_cfg: Any,
    session: Optional[Any] = None,
    players_index: Optional[Dict[str, Dict[str, Any]]] = None,
) -> LeagueContext:
    """League detail, every roster, our roster and the players index."""
    league_id = _cfg_get(league_cfg, "league_id")
    print(f"[Sleeper] Loading league {league_id}")
    league = get_league(league_id, session)
    rosters = get_league_rosters(league_id, session)
    owner_id = _resolve_owner_id(league_cfg, session)
    roster = _find_my_roster(rosters, owner_id)
    if players_index is None:
        players_index = get_players_index(session)
    return LeagueContext(league=league, rosters=rosters, roster=roster, players_index=players_index)
