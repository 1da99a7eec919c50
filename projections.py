# projections.py
#
# Weekly projections: CSV ingestion (pandas), the Sleeper projections feed,
# and the lookup/attach helpers the lineup pipeline uses.

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, IO, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd  # type: ignore[import]
import requests  # type: ignore[import]

from config import HTTP_TIMEOUT, SLEEPER_PROJECTIONS_BASE  # type: ignore[import]
from models import Player, Projection  # type: ignore[import]
from projection_cache import ProjectionCache  # type: ignore[import]
from scoring import score_by_league  # type: ignore[import]
from slot_rules import normalize_pos  # type: ignore[import]

STAT_COLS = (
    "pass_att", "pass_comp", "pass_yd", "pass_td", "pass_int",
    "rush_att", "rush_yd", "rush_td",
    "rec", "rec_yd", "rec_td", "fum_lost", "two_pt",
    "xpm", "xpa", "fgm_0_19", "fgm_20_29", "fgm_30_39", "fgm_40_49", "fgm_50p",
    "sacks", "defs_int", "defs_fum_rec", "defs_td", "safety", "blk_kick",
    "ret_td", "pts_allowed",
)
NUM_COLS = {"proj", *STAT_COLS}

HEADER_ALIASES: Dict[str, str] = {
    "projection": "proj",
    "projections": "proj",
    "opponent": "opp",
    "position": "pos",
    "player_id": "sleeper_id",
    "id": "sleeper_id",
    "player_name": "name",
    "full_name": "name",
}

# Sleeper stat key -> our stat key. Two-point stats are summed into two_pt.
SLEEPER_STAT_MAP: Dict[str, str] = {
    "pass_att": "pass_att",
    "pass_cmp": "pass_comp",
    "pass_yd": "pass_yd",
    "pass_td": "pass_td",
    "pass_int": "pass_int",
    "rush_att": "rush_att",
    "rush_yd": "rush_yd",
    "rush_td": "rush_td",
    "rec": "rec",
    "rec_yd": "rec_yd",
    "rec_td": "rec_td",
    "fum_lost": "fum_lost",
    "fum": "fum_lost",
    "pass_2pt": "two_pt",
    "rush_2pt": "two_pt",
    "rec_2pt": "two_pt",
    "xpm": "xpm",
    "xpa": "xpa",
    "fgm_0_19": "fgm_0_19",
    "fgm_20_29": "fgm_20_29",
    "fgm_30_39": "fgm_30_39",
    "fgm_40_49": "fgm_40_49",
    "fgm_50p": "fgm_50p",
    "sack": "sacks",
    "def_int": "defs_int",
    "fum_rec": "defs_fum_rec",
    "def_td": "defs_td",
    "safe": "safety",
    "blk_kick": "blk_kick",
    "def_st_td": "ret_td",
    "pts_allow": "pts_allowed",
}

FALLBACK_MODES = ("fallback_to_csv", "zero", "exclude")


@dataclass(frozen=True)
class ProjectionResult:
    projections: Tuple[Projection, ...]
    source: str                     # "csv" or "sleeper"
    from_primary: int
    from_fallback: int = 0
    excluded: int = 0
    cached_at: Optional[float] = None

    @property
    def total(self) -> int:
        return len(self.projections)


# ---------------------------------------------------------------------------
# CSV ingestion
# ---------------------------------------------------------------------------


def coerce_number(value: Any) -> float:
    """'1,234' -> 1234.0; blanks, NA, n/a and junk -> 0.0."""
    if value is None:
        return 0.0
    s = str(value).strip().replace(",", "")
    if s == "" or s.lower() in ("na", "n/a", "nan"):
        return 0.0
    try:
        n = float(s)
    except ValueError:
        return 0.0
    return n if n == n and n not in (float("inf"), float("-inf")) else 0.0


def _normalise_header(col: Any) -> str:
    k = str(col).strip().lower()
    return HEADER_ALIASES.get(k, k)


def _clean(value: Any) -> str:
    return str(value if value is not None else "").strip()


def projections_from_frame(df: pd.DataFrame) -> List[Projection]:
    df = df.rename(columns=_normalise_header)
    for col in df.columns:
        if col in NUM_COLS:
            df[col] = df[col].map(coerce_number)

    rows: List[Projection] = []
    for rec in df.to_dict(orient="records"):
        pid = _clean(rec.get("sleeper_id")) or None
        name = _clean(rec.get("name"))
        if not name and pid:
            name = f"Player {pid}"
        team = _clean(rec.get("team")).upper() or None
        stats = {k: float(rec[k]) for k in STAT_COLS if k in rec}
        rows.append(
            Projection(
                points=float(rec.get("proj", 0.0) or 0.0),
                name=name or "Unknown Player",
                position=normalize_pos(_clean(rec.get("pos"))),
                team=team,
                player_id=pid,
                opponent=_clean(rec.get("opp")) or None,
                stats=stats,
            )
        )
    return rows


def read_projections_csv(source: Union[str, Path, IO[str]]) -> List[Projection]:
    """
    Load projection rows from a CSV path or open file. A missing file is
    reported and yields no rows.
    """
    if isinstance(source, (str, Path)) and not Path(source).exists():
        print(f"[Projections] WARNING: projections CSV not found: {source}")
        return []

    df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    rows = projections_from_frame(df)
    label = source if isinstance(source, (str, Path)) else "<stream>"
    print(f"[Projections] Loaded {len(rows)} rows from {label}")
    return rows


def fallback_key(name: str, team: Optional[str], pos: str) -> str:
    return f"{(name or '').lower()}|{team or ''}|{normalize_pos(pos)}"


def build_projection_index(rows: Iterable[Projection]) -> Dict[str, Projection]:
    """Index by player id and by the name|team|pos fallback key."""
    idx: Dict[str, Projection] = {}
    for r in rows:
        if r.player_id:
            idx[r.player_id] = r
        idx[fallback_key(r.name, r.team, r.position)] = r
    return idx


def lookup_projection(
    index: Mapping[str, Projection], player: Player
) -> Optional[Projection]:
    hit = index.get(player.player_id)
    if hit is not None:
        return hit
    return index.get(fallback_key(player.name, player.team, player.position))


def attach_projections(
    players: Iterable[Player],
    index: Mapping[str, Projection],
    weights: Optional[Mapping[str, float]] = None,
) -> List[Player]:
    """New Player values carrying league-scored points and the opponent."""
    out: List[Player] = []
    for p in players:
        row = lookup_projection(index, p)
        if row is None:
            out.append(dataclasses.replace(p, points=0.0))
            continue
        pts = score_by_league(p.position, row.stats, weights, row.points)
        out.append(dataclasses.replace(p, points=pts, opponent=row.opponent))
    return out


# ---------------------------------------------------------------------------
# Sleeper projections
# ---------------------------------------------------------------------------


def _player_name(info: Mapping[str, Any], pid: str) -> str:
    joined = " ".join(x for x in (info.get("first_name"), info.get("last_name")) if x)
    return joined or info.get("full_name") or f"Player {pid}"


def sleeper_row_to_projection(
    row: Mapping[str, Any], players_index: Mapping[str, Mapping[str, Any]]
) -> Optional[Projection]:
    pid = row.get("player_id")
    if pid is None:
        return None
    pid = str(pid)
    info = players_index.get(pid)
    if not info:
        return None
    fantasy = info.get("fantasy_positions") or []
    pos = normalize_pos(info.get("position") or (fantasy[0] if fantasy else ""))
    if not pos:
        return None

    raw = row.get("stats") or {}
    stats: Dict[str, float] = {}
    for key, ours in SLEEPER_STAT_MAP.items():
        val = raw.get(key)
        if val is None:
            continue
        try:
            num = float(val)
        except (TypeError, ValueError):
            continue
        if ours == "two_pt":
            stats[ours] = stats.get(ours, 0.0) + num
        else:
            stats[ours] = num

    pts = raw.get("pts_ppr")
    if pts is None:
        pts = raw.get("pts_half_ppr")
    if pts is None:
        pts = raw.get("pts_std")

    return Projection(
        points=coerce_number(pts),
        name=_player_name(info, pid),
        position=pos,
        team=(info.get("team") or "").upper() or None,
        player_id=pid,
        opponent=row.get("opponent") or None,
        stats=stats,
    )


def fetch_sleeper_projections(
    season: Any,
    week: Any,
    session: Optional[Any] = None,
    cache: Optional[ProjectionCache] = None,
) -> List[Dict[str, Any]]:
    """Raw Sleeper projection rows, read through `cache` when one is given."""
    http = session or requests

    def _fetch() -> List[Dict[str, Any]]:
        url = f"{SLEEPER_PROJECTIONS_BASE}/{season}/{week}"
        print(f"[Projections] Fetching Sleeper projections for {season} W{week}")
        resp = http.get(url, params={"season_type": "regular"}, timeout=HTTP_TIMEOUT)
        resp.raise_for_status()
        data = resp.json() or []
        print(f"[Projections] Got {len(data)} Sleeper projection records")
        return data

    if cache is None:
        return _fetch()
    return cache.get_or_fetch(season, week, _fetch)


def get_projections(
    season: Any,
    week: Any,
    *,
    source: str = "sleeper",
    fallback_mode: str = "fallback_to_csv",
    players_index: Optional[Mapping[str, Mapping[str, Any]]] = None,
    csv_path: Optional[Union[str, Path]] = None,
    session: Optional[Any] = None,
    cache: Optional[ProjectionCache] = None,
) -> ProjectionResult:
    """
    Resolve this week's projections.

    source="csv" reads `csv_path` only. source="sleeper" converts the Sleeper
    feed and then, per `fallback_mode`, backfills from the CSV
    ("fallback_to_csv"), keeps zero-point rows ("zero") or drops them
    ("exclude").
    """
    if fallback_mode not in FALLBACK_MODES:
        raise ValueError(f"Unknown projection fallback mode: {fallback_mode}")

    def _csv_rows() -> List[Projection]:
        return read_projections_csv(csv_path) if csv_path else []

    if source == "csv":
        rows = _csv_rows()
        return ProjectionResult(tuple(rows), "csv", from_primary=len(rows))
    if source != "sleeper":
        raise ValueError(f"Unknown projection source: {source}")

    if not players_index:
        print("[Projections] WARNING: no players index available, using CSV projections")
        rows = _csv_rows()
        return ProjectionResult(tuple(rows), "csv", from_primary=len(rows))

    raw = fetch_sleeper_projections(season, week, session=session, cache=cache)
    converted = [
        p for p in (sleeper_row_to_projection(r, players_index) for r in raw)
        if p is not None
    ]
    cached_at = cache.timestamp(season, week) if cache is not None else None
    print(f"[Projections] Converted {len(converted)} Sleeper projections")

    if fallback_mode == "fallback_to_csv":
        sleeper_ids = {p.player_id for p in converted if p.player_id}
        extra = [r for r in _csv_rows() if r.player_id and r.player_id not in sleeper_ids]
        print(
            f"[Projections] Merged: {len(converted)} Sleeper + "
            f"{len(extra)} CSV fallback = {len(converted) + len(extra)} total"
        )
        return ProjectionResult(
            tuple(converted + extra), "sleeper",
            from_primary=len(converted), from_fallback=len(extra), cached_at=cached_at,
        )

    if fallback_mode == "zero":
        return ProjectionResult(
            tuple(converted), "sleeper", from_primary=len(converted), cached_at=cached_at
        )

    non_zero = [p for p in converted if p.points > 0]
    return ProjectionResult(
        tuple(non_zero), "sleeper",
        from_primary=len(non_zero),
        excluded=len(converted) - len(non_zero),
        cached_at=cached_at,
    )
