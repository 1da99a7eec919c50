# app.py
#
# FastAPI wrapper around the lineup advisor engine.
# Exposes:
#   GET /health
#   GET /leagues
#   GET /leagues/{league_key}/state
#   GET /leagues/{league_key}/plan
#   GET /leagues/{league_key}/waivers
#   GET /leagues/{league_key}/auto_subs
#   GET /leagues/{league_key}/health
#   GET /actions/top
#
# Start with:
#   uvicorn app:app --reload

from enum import Enum
from typing import List, Optional, Dict, Any

import requests  # type: ignore[import]
from fastapi import FastAPI, HTTPException  # type: ignore[import]
from fastapi.middleware.cors import CORSMiddleware  # type: ignore[import]
from pydantic import BaseModel  # type: ignore[import]

from config import (  # type: ignore[import]
    CURRENT_WEEK,
    LEAGUES,
    PROJECTION_CACHE_TTL_SECONDS,
    SCHEDULE_CACHE_TTL_SECONDS,
)
from auto_subs import auto_sub_instructions  # type: ignore[import]
from lineup_report import report_to_dict, run_lineup_for_league  # type: ignore[import]
from projection_cache import ProjectionCache  # type: ignore[import]


# ---------------------------------------------------------------------------
# Pydantic view models
# ---------------------------------------------------------------------------

class PlayerRole(str, Enum):
    starter = "starter"
    bench = "bench"


class PlayerView(BaseModel):
    player_id: str
    name: str
    position: str                 # QB / RB / WR / TE / K / DEF / DL / LB / DB
    nfl_team: Optional[str] = None
    slot: Optional[str] = None    # QB, FLEX, SUPER_FLEX, etc.
    role: PlayerRole
    projection: float
    status: str                   # ACTIVE / Q / O / IR / ...
    locked: bool = False


class LineupView(BaseModel):
    league_key: str
    week: int
    current_total: float
    optimal_total: float
    delta: float
    starters: List[PlayerView]
    optimal: List[PlayerView]
    bench: List[PlayerView]
    empty_slots: List[str]


class ActionType(str, Enum):
    bench_to_start = "bench_to_start"
    ir_to_start = "ir_to_start"
    fill_empty = "fill_empty"
    fa_for_starter = "fa_for_starter"


class SuggestedAction(BaseModel):
    id: str                       # e.g. "home_league:fa_for_starter:4866"
    league_key: str
    week: int
    type: ActionType

    add_name: str
    add_position: str
    add_projection: float

    drop_name: Optional[str] = None
    drop_position: Optional[str] = None
    drop_projection: float = 0.0

    gain: float
    can_do_now: bool
    reason: Optional[str] = None  # human-readable explanation


class LeaguePlan(BaseModel):
    league_key: str
    week: int
    total_projection_optimized: float
    actions: List[SuggestedAction]


class WaiverOption(BaseModel):
    drop_name: str
    slot: str
    gain: float


class WaiverPick(BaseModel):
    add_player_id: str
    add_name: str
    add_position: str
    add_projection: float
    best_gain: float
    reachable_gain: Optional[float] = None
    blocked: bool = False
    options: List[WaiverOption]
    steps: List[str] = []


class WaiverPlan(BaseModel):
    league_key: str
    week: int
    picks: List[WaiverPick]


class AutoSubOption(BaseModel):
    name: str
    position: str
    projection: float
    floor: float
    reason: str
    instructions: str


class AutoSubView(BaseModel):
    starter_name: str
    slot: str
    options: List[AutoSubOption]


class AutoSubPlan(BaseModel):
    league_key: str
    week: int
    enabled: bool
    allowed_per_week: int
    require_later_start: bool
    recommendations: List[AutoSubView]


class PositionHealth(BaseModel):
    position: str
    demand: int
    starters_proj: float
    depth_proj_weighted: float
    replacement_baseline: float
    surplus: float
    shortage: float


class RosterHealthView(BaseModel):
    league_key: str
    week: int
    positions: List[PositionHealth]
    strongest: List[str]
    weakest: List[str]
    trade_ideas: List[str]
    add_drop_ideas: List[str]


# ---------------------------------------------------------------------------
# Helper functions to map engine state -> API models
# ---------------------------------------------------------------------------

def _mk_player_view(
    p: Optional[dict], role: PlayerRole, slot: Optional[str] = None, locked: bool = False
) -> Optional[PlayerView]:
    """
    Convert a serialised Player into a PlayerView; None for an empty slot.
    """
    if p is None:
        return None

    return PlayerView(
        player_id=str(p.get("player_id", "")),
        name=p.get("name", "UNKNOWN"),
        position=p.get("position") or "UNK",
        nfl_team=p.get("team"),
        slot=slot,
        role=role,
        projection=float(p.get("points", 0.0)),
        status=p.get("injury_status") or "ACTIVE",
        locked=locked,
    )


def _slot_views(slots: List[dict], locked_ids: set) -> List[PlayerView]:
    views: List[PlayerView] = []
    for s in slots:
        p = s.get("player")
        view = _mk_player_view(
            p,
            role=PlayerRole.starter,
            slot=s.get("label"),
            locked=bool(p) and p.get("player_id") in locked_ids,
        )
        if view is not None:
            views.append(view)
    return views


def _map_players_for_state(state: dict, league_key: str) -> LineupView:
    """
    Map report_to_dict() output into LineupView for the UI.
    """
    locked = set(state.get("locked_ids", []))
    current = state.get("current", [])

    bench = [
        _mk_player_view(p, role=PlayerRole.bench, locked=p.get("player_id") in locked)
        for p in state.get("bench", [])
    ]

    return LineupView(
        league_key=league_key,
        week=CURRENT_WEEK,
        current_total=float(state.get("current_total", 0.0)),
        optimal_total=float(state.get("optimal_total", 0.0)),
        delta=float(state.get("delta", 0.0)),
        starters=_slot_views(current, locked),
        optimal=_slot_views(state.get("optimal", []), locked),
        bench=[b for b in bench if b is not None],
        empty_slots=[s.get("label") for s in current if s.get("player") is None],
    )


_SOURCE_TO_ACTION = {
    "BENCH": ActionType.bench_to_start,
    "IR": ActionType.ir_to_start,
    "FA": ActionType.fa_for_starter,
}


def _actions_from_state(state: dict, league_key: str) -> LeaguePlan:
    """
    Flatten lineup changes, empty-slot fills and waiver pickups into a
    unified list of SuggestedAction.
    """
    actions: List[SuggestedAction] = []
    week = CURRENT_WEEK
    diff = state.get("diff", {})

    # 1) Lineup changes from the optimizer (bench / IR -> starter)
    for rec in diff.get("enriched", []):
        incoming = rec.get("incoming") or {}
        displaced = rec.get("displaced")
        gain = float(rec.get("net_delta", 0.0))
        kind = ActionType.fill_empty if rec.get("is_filling_empty") else _SOURCE_TO_ACTION.get(
            rec.get("source"), ActionType.bench_to_start
        )
        if displaced:
            reason = f"Start {incoming.get('name')} over {displaced.get('name')} (+{gain:.1f} pts)"
        else:
            reason = f"Start {incoming.get('name')} in the open {rec.get('slot')} slot (+{gain:.1f} pts)"

        actions.append(
            SuggestedAction(
                id=f"{league_key}:{kind.value}:{incoming.get('player_id')}",
                league_key=league_key,
                week=week,
                type=kind,
                add_name=incoming.get("name", "UNKNOWN"),
                add_position=incoming.get("position") or "UNK",
                add_projection=float(incoming.get("points", 0.0)),
                drop_name=displaced.get("name") if displaced else None,
                drop_position=displaced.get("position") if displaced else None,
                drop_projection=float(displaced.get("points", 0.0)) if displaced else 0.0,
                gain=gain,
                can_do_now=True,
                reason=reason,
            )
        )

    seen = {a.id for a in actions}

    # 2) Empty starting slots the optimizer couldn't fill (free agents, locked players)
    for fix in state.get("empty_slot_fixes", []):
        best = fix.get("best")
        if not best:
            continue
        p = best.get("player") or {}
        kind = ActionType.fa_for_starter if best.get("source") == "FA" else ActionType.fill_empty
        action_id = f"{league_key}:{kind.value}:{p.get('player_id')}"
        if action_id in seen or f"{league_key}:fill_empty:{p.get('player_id')}" in seen:
            continue
        seen.add(action_id)
        actions.append(
            SuggestedAction(
                id=action_id,
                league_key=league_key,
                week=week,
                type=kind,
                add_name=p.get("name", "UNKNOWN"),
                add_position=p.get("position") or "UNK",
                add_projection=float(best.get("points", 0.0)),
                gain=float(fix.get("potential_delta", 0.0)),
                can_do_now=not best.get("blocked", False),
                reason=best.get("block_reason") or f"Fill empty {fix.get('slot')} slot",
            )
        )

    # 3) Free agents who would start
    for g in state.get("waivers", []):
        alts = g.get("alternatives") or []
        top = alts[0] if alts else {}
        outgoing = top.get("outgoing") or {}
        plan = g.get("action_plan") or {}
        gain = float(g.get("best_delta", 0.0))
        action_id = f"{league_key}:fa_for_starter:{g.get('player_id')}"
        if action_id in seen:
            continue
        seen.add(action_id)
        actions.append(
            SuggestedAction(
                id=action_id,
                league_key=league_key,
                week=week,
                type=ActionType.fa_for_starter,
                add_name=g.get("name", "UNKNOWN"),
                add_position=g.get("position") or "UNK",
                add_projection=float(g.get("points", 0.0)),
                drop_name=outgoing.get("name"),
                drop_position=outgoing.get("position"),
                drop_projection=float(outgoing.get("points", 0.0)),
                gain=gain,
                can_do_now=not any(st.get("blocked") for st in plan.get("steps", [])),
                reason=f"Add {g.get('name')} to start over "
                       f"{outgoing.get('name', 'UNKNOWN')} (+{gain:.1f} pts)",
            )
        )

    # Sort by biggest gain first
    actions.sort(key=lambda a: a.gain, reverse=True)

    return LeaguePlan(
        league_key=league_key,
        week=week,
        total_projection_optimized=float(state.get("optimal_total", 0.0)),
        actions=actions,
    )


def _step_line(step: dict) -> str:
    kind = step.get("kind")
    if kind == "add":
        line = f"Add {step.get('player')} → {step.get('slot')}"
    elif kind == "move":
        line = f"Move {step.get('player')} {step.get('from_slot')} → {step.get('to_slot')}"
    else:
        line = f"Bench {step.get('player')}"
    if step.get("blocked"):
        line += f" (blocked: {step.get('block_reason')})"
    return line


def _waiver_plan_from_state(state: dict, league_key: str) -> WaiverPlan:
    picks: List[WaiverPick] = []
    for g in state.get("waivers", []):
        plan = g.get("action_plan")
        steps = plan.get("steps", []) if plan else []
        picks.append(
            WaiverPick(
                add_player_id=str(g.get("player_id")),
                add_name=g.get("name", "UNKNOWN"),
                add_position=g.get("position") or "UNK",
                add_projection=float(g.get("points", 0.0)),
                best_gain=float(g.get("best_delta", 0.0)),
                reachable_gain=float(plan["reachable_delta"]) if plan else None,
                blocked=any(st.get("blocked") for st in steps),
                options=[
                    WaiverOption(
                        drop_name=(a.get("outgoing") or {}).get("name", "UNKNOWN"),
                        slot=a.get("slot", ""),
                        gain=float(a.get("delta", 0.0)),
                    )
                    for a in g.get("alternatives", [])
                ],
                steps=[_step_line(st) for st in steps],
            )
        )
    return WaiverPlan(league_key=league_key, week=CURRENT_WEEK, picks=picks)


def _auto_sub_plan_from_state(state: dict, league_key: str) -> AutoSubPlan:
    cfg = state.get("auto_sub_config") or {}
    later = bool(cfg.get("require_later_start", False))
    recs: List[AutoSubView] = []
    for rec in state.get("auto_subs", []):
        starter = rec.get("starter") or {}
        slot = rec.get("slot", "")
        options = []
        for sug in rec.get("suggestions", []):
            p = sug.get("player") or {}
            options.append(
                AutoSubOption(
                    name=p.get("name", "UNKNOWN"),
                    position=p.get("position") or "UNK",
                    projection=float(sug.get("points", 0.0)),
                    floor=float(sug.get("floor", 0.0)),
                    reason=sug.get("reason", ""),
                    instructions=auto_sub_instructions(
                        starter.get("name", "UNKNOWN"), slot, p.get("name", "UNKNOWN"), later
                    ),
                )
            )
        recs.append(AutoSubView(starter_name=starter.get("name", "UNKNOWN"), slot=slot, options=options))

    return AutoSubPlan(
        league_key=league_key,
        week=CURRENT_WEEK,
        enabled=bool(cfg.get("enabled", False)),
        allowed_per_week=int(cfg.get("allowed_per_week", 0)),
        require_later_start=later,
        recommendations=recs,
    )


def _health_from_state(state: dict, league_key: str) -> RosterHealthView:
    health = state.get("roster_health") or {}
    positions = [
        PositionHealth(
            position=s["position"],
            demand=int(s["demand"]),
            starters_proj=float(s["starters_proj"]),
            depth_proj_weighted=float(s["depth_proj_weighted"]),
            replacement_baseline=float(s["replacement_baseline"]),
            surplus=float(s["surplus"]),
            shortage=float(s["shortage"]),
        )
        for s in health.get("by_position", [])
    ]
    return RosterHealthView(
        league_key=league_key,
        week=CURRENT_WEEK,
        positions=positions,
        strongest=list(health.get("strongest", [])),
        weakest=list(health.get("weakest", [])),
        trade_ideas=[t.get("rationale", "") for t in health.get("trade_ideas", [])],
        add_drop_ideas=[
            f"Add {i.get('add_name')} / drop {i.get('drop_name')} at {i.get('position')} "
            f"(+{float(i.get('gain', 0.0)):.1f} pts)"
            for i in health.get("add_drop_ideas", [])
        ],
    )


# ---------------------------------------------------------------------------
# FastAPI app + routes
# ---------------------------------------------------------------------------

app = FastAPI(title="Lineup Advisor API")

# Optional: allow local dev frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # you can restrict this later
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Shared across requests; owned by the app.
projection_cache = ProjectionCache(ttl_seconds=PROJECTION_CACHE_TTL_SECONDS)
schedule_cache = ProjectionCache(ttl_seconds=SCHEDULE_CACHE_TTL_SECONDS)


def _state_for_league(league_key: str) -> Dict[str, Any]:
    """
    Run the pipeline for one league. Unknown keys -> 404, upstream HTTP
    failures -> 502.
    """
    if league_key not in LEAGUES:
        raise HTTPException(status_code=404, detail=f"Unknown league key: {league_key}")
    try:
        report = run_lineup_for_league(
            league_key, cache=projection_cache, schedule_cache=schedule_cache
        )
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except requests.RequestException as exc:
        raise HTTPException(status_code=502, detail=f"Upstream error: {exc}")
    return report_to_dict(report)


@app.get("/health")
def health():
    return {"status": "ok", "week": CURRENT_WEEK}


@app.get("/leagues")
def list_leagues():
    """
    List of all configured leagues. Drives the 'all my leagues' view.
    """
    results = []
    for key, cfg in LEAGUES.items():
        results.append(
            {
                "key": key,
                "platform": cfg.get("platform", "sleeper"),
                "league_id": cfg.get("league_id"),
                "season_year": cfg.get("season_year"),
                "consider_waivers": bool(cfg.get("consider_waivers", True)),
            }
        )
    return results


@app.get("/leagues/{league_key}/state", response_model=LineupView)
def get_league_state(league_key: str):
    """
    Current and optimal starters plus bench for one league.
    """
    state = _state_for_league(league_key)
    return _map_players_for_state(state, league_key)


@app.get("/leagues/{league_key}/plan", response_model=LeaguePlan)
def get_league_plan(league_key: str):
    """
    Canonical list of suggested actions for this league.
    """
    state = _state_for_league(league_key)
    return _actions_from_state(state, league_key)


@app.get("/leagues/{league_key}/waivers", response_model=WaiverPlan)
def get_waiver_plan(league_key: str):
    state = _state_for_league(league_key)
    return _waiver_plan_from_state(state, league_key)


@app.get("/leagues/{league_key}/auto_subs", response_model=AutoSubPlan)
def get_auto_subs(league_key: str):
    state = _state_for_league(league_key)
    return _auto_sub_plan_from_state(state, league_key)


@app.get("/leagues/{league_key}/health", response_model=RosterHealthView)
def get_roster_health(league_key: str):
    state = _state_for_league(league_key)
    return _health_from_state(state, league_key)


@app.get("/actions/top", response_model=List[SuggestedAction])
def get_top_actions(limit: int = 20):
    """
    Cross-league 'top actions this week' view.
    """
    all_actions: List[SuggestedAction] = []

    for league_key in LEAGUES.keys():
        state = _state_for_league(league_key)
        plan = _actions_from_state(state, league_key)
        all_actions.extend(plan.actions)

    all_actions.sort(key=lambda a: a.gain, reverse=True)
    return all_actions[:limit]
