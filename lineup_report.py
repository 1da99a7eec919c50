# lineup_report.py
#
# The recommendation cycle for one roster snapshot.
# - Optimizes starters (greedy by default, exact on request)
# - Diffs current vs optimal into moves / enriched recommendations
# - Fills empty starting slots from the bench or waivers
# - Waiver upgrades with action plans
# - Auto-subs for questionable starters
# - Positional roster health
#
# Used both by the CLI entrypoint AND the FastAPI app (via run_lineup_for_league).

from __future__ import annotations

import dataclasses
import json
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from auto_subs import detect_auto_sub_config, find_auto_sub_recommendations  # type: ignore[import]
from availability import OUT_STATUSES, summarize_starters  # type: ignore[import]
from config import (  # type: ignore[import]
    CURRENT_WEEK,
    DEFAULT_LEAGUE_KEY,
    FA_PER_POSITION_CAP,
    LEAGUES,
    MAX_WAIVER_ALTERNATIVES,
    MAX_WAIVER_PER_POSITION,
    MAX_WAIVER_PLAYERS,
    MIN_WAIVER_GAIN,
    PROJECTION_FALLBACK_MODE,
    PROJECTION_SOURCE,
    PROJECTIONS_CSV,
    SEASON_YEAR,
    WAIVER_EXCLUDED_NAMES,
)
from empty_slots import find_empty_slot_fixes  # type: ignore[import]
from game_locking import has_game_started, is_team_on_bye  # type: ignore[import]
from lineup_diff import build_lineup_diff, placeholder_player  # type: ignore[import]
from models import (  # type: ignore[import]
    AutoSubConfig,
    AutoSubRecommendation,
    AvailabilitySummary,
    EmptySlotFix,
    GameInfo,
    GroupedWaiverSuggestion,
    LineupDiff,
    LineupState,
    Player,
    RosterHealthReport,
    RosterSlot,
    ScoredFreeAgent,
)
from optimizer import OptimizerMode, optimize_lineup  # type: ignore[import]
from projection_cache import ProjectionCache  # type: ignore[import]
from projections import (  # type: ignore[import]
    attach_projections,
    build_projection_index,
    get_projections,
)
from roster_health import compute_roster_health  # type: ignore[import]
from schedule import fetch_week_schedule  # type: ignore[import]
from sleeper_adapter import (  # type: ignore[import]
    _cfg_get,
    build_lineup_state,
    build_player_directory,
    fetch_league_context,
    owned_player_ids,
)
from waivers import (  # type: ignore[import]
    attach_action_plans,
    build_free_agent_pool,
    group_waiver_suggestions,
    pick_waiver_upgrades,
)


@dataclass(frozen=True)
class LineupReport:
    slot_labels: Tuple[str, ...]
    current: Tuple[RosterSlot, ...]
    optimal: Tuple[RosterSlot, ...]
    bench: Tuple[Player, ...]
    locked_ids: Tuple[str, ...]
    diff: LineupDiff
    empty_slot_fixes: Tuple[EmptySlotFix, ...]
    waivers: Tuple[GroupedWaiverSuggestion, ...]
    auto_subs: Tuple[AutoSubRecommendation, ...]
    roster_health: RosterHealthReport
    availability: AvailabilitySummary
    optimizer_mode: OptimizerMode = OptimizerMode.GREEDY
    auto_sub_config: AutoSubConfig = AutoSubConfig()
    league_key: str = ""
    league_name: str = ""

    @property
    def current_total(self) -> float:
        return self.diff.current_total

    @property
    def optimal_total(self) -> float:
        return self.diff.optimal_total

    @property
    def delta(self) -> float:
        return self.diff.delta


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def is_startable(p: Player) -> bool:
    """Not on bye and not ruled out."""
    if (p.opponent or "").upper() == "BYE":
        return False
    return (p.injury_status or "").upper() not in OUT_STATUSES


def _with_kickoff(p: Player, schedule: Mapping[str, GameInfo]) -> Player:
    if p.game_start is not None or not p.team:
        return p
    game = schedule.get(p.team.upper())
    if game is None:
        return p
    return dataclasses.replace(p, game_start=game.start)


def _resolve_players(
    snapshot: LineupState,
    players: Mapping[str, Player],
    schedule: Mapping[str, GameInfo],
) -> Dict[str, Player]:
    """
    Every rostered id -> Player; unknown ids become 0-point placeholders.
    Players who can't play this week (ruled out or on bye) count 0 points
    everywhere, so both lineup totals see the same numbers.
    """
    out: Dict[str, Player] = {}
    for pid in snapshot.all_player_ids():
        p = _with_kickoff(players.get(pid) or placeholder_player(pid), schedule)
        if p.points and (not is_startable(p) or is_team_on_bye(p.team, schedule)):
            p = dataclasses.replace(p, points=0.0)
        out[pid] = p
    return out


def _scored(fa: Player) -> ScoredFreeAgent:
    return ScoredFreeAgent(player=fa, is_bye_or_out=not is_startable(fa))


# ---------------------------------------------------------------------------
# Public API: build_lineup_report(...)
# ---------------------------------------------------------------------------


def build_lineup_report(
    snapshot: LineupState,
    players: Mapping[str, Player],
    schedule: Mapping[str, GameInfo],
    now: float,
    *,
    free_agents: Sequence[Player] = (),
    played_ids: Iterable[str] = (),
    ir_ids: Optional[Iterable[str]] = None,
    consider_waivers: bool = True,
    pickup_cap_remaining: int = 0,
    require_later_start: bool = False,
    min_gain: float = MIN_WAIVER_GAIN,
    optimizer_mode: OptimizerMode = OptimizerMode.GREEDY,
    max_waiver_per_position: int = MAX_WAIVER_PER_POSITION,
    max_waiver_players: int = MAX_WAIVER_PLAYERS,
    max_waiver_alternatives: int = MAX_WAIVER_ALTERNATIVES,
) -> LineupReport:
    """
    Run one full recommendation cycle. Pure: same snapshot, projections,
    schedule and `now` give the same report.

    `players` maps player ids to Players with this week's points already
    attached; `free_agents` is the scored waiver pool. `ir_ids` defaults to
    the snapshot's reserve list.
    """
    mode = OptimizerMode(optimizer_mode)
    played = frozenset(played_ids)
    ir = set(ir_ids) if ir_ids is not None else set(snapshot.reserve)
    roster = _resolve_players(snapshot, players, schedule)
    fas = [_with_kickoff(fa, schedule) for fa in free_agents]

    # Started or finished games lock a player in place. Byes don't: a bye
    # starter can still be benched, they just can't be started.
    locked = {
        pid for pid, p in roster.items()
        if pid in played or has_game_started(p.team, schedule, now)
    }
    on_bye = {pid for pid, p in roster.items() if is_team_on_bye(p.team, schedule)}
    starter_ids = set(snapshot.starter_ids())

    # Optimizer pool: starters + bench + reserve that can play this week.
    # Locked starters stay (they get pinned); other locked players are out.
    pool: List[Player] = []
    for pid in snapshot.starter_ids() + snapshot.bench + snapshot.reserve:
        p = roster[pid]
        if pid in locked:
            if pid in starter_ids:
                pool.append(p)
            continue
        if is_startable(p) and pid not in on_bye:
            pool.append(p)

    labels = snapshot.slot_labels
    optimal = optimize_lineup(
        labels, pool, current_starters=snapshot.starters, locked_ids=locked, mode=mode
    )
    current = tuple(
        RosterSlot(label, roster[pid] if pid is not None else None)
        for label, pid in zip(labels, snapshot.starters)
    )
    bench = tuple(roster[pid] for pid in snapshot.bench)

    diff = build_lineup_diff(snapshot, optimal, roster, ir)

    empty_fixes = find_empty_slot_fixes(
        snapshot,
        [p for p in bench if is_startable(p)],
        fas,
        schedule,
        now,
        played_ids=played,
        pickup_cap_remaining=pickup_cap_remaining,
        consider_waivers=consider_waivers,
        include_locked=True,
    )

    suggestions = pick_waiver_upgrades(
        [_scored(fa) for fa in fas],
        current,
        set(labels),
        min_gain=min_gain,
        max_per_position=max_waiver_per_position,
    )
    grouped = group_waiver_suggestions(
        suggestions, max_players=max_waiver_players, max_alternatives=max_waiver_alternatives
    )
    grouped = attach_action_plans(
        grouped,
        {fa.player_id: fa for fa in fas},
        labels,
        pool,
        optimal,
        current_starters=snapshot.starters,
        locked_ids=locked,
        mode=mode,
    )

    sub_bench = [
        p for p in bench
        if p.player_id not in locked and p.player_id not in on_bye and is_startable(p)
    ]
    auto_subs = find_auto_sub_recommendations(current, sub_bench, require_later_start)

    health = compute_roster_health(optimal, bench, fas)

    return LineupReport(
        slot_labels=labels,
        current=current,
        optimal=optimal,
        bench=bench,
        locked_ids=tuple(sorted(locked)),
        diff=diff,
        empty_slot_fixes=tuple(empty_fixes),
        waivers=tuple(grouped),
        auto_subs=tuple(auto_subs),
        roster_health=health,
        availability=summarize_starters(current),
        optimizer_mode=mode,
    )


def _jsonable(obj: Any) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _jsonable(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [_jsonable(x) for x in obj]
    if isinstance(obj, Mapping):
        return {str(k): _jsonable(v) for k, v in obj.items()}
    return obj


def report_to_dict(report: LineupReport) -> Dict[str, Any]:
    """
    Plain JSON-ready data. Key order and list order are fixed, so identical
    reports serialise byte-for-byte identically.
    """
    state = _jsonable(report)
    state["current_total"] = float(report.current_total)
    state["optimal_total"] = float(report.optimal_total)
    state["delta"] = float(report.delta)
    return state


# ---------------------------------------------------------------------------
# Public API: run_lineup_for_league(league_key)
# ---------------------------------------------------------------------------


def run_lineup_for_league(
    league_key: str,
    league_cfg_override: Optional[dict] = None,
    *,
    session: Optional[Any] = None,
    cache: Optional[ProjectionCache] = None,
    schedule_cache: Optional[ProjectionCache] = None,
    now: Optional[float] = None,
    optimizer_mode: OptimizerMode = OptimizerMode.GREEDY,
) -> LineupReport:
    """
    Fetch everything for one configured league and build its report.

    Raises KeyError for league keys that aren't in config.LEAGUES (unless an
    override config is given). Upstream HTTP errors propagate as
    requests.HTTPError.
    """
    if league_cfg_override is None and league_key not in LEAGUES:
        raise KeyError(f"Unknown league key: {league_key}")

    league_cfg = league_cfg_override or LEAGUES[league_key]
    season = _cfg_get(league_cfg, "season_year", SEASON_YEAR)
    week = _cfg_get(league_cfg, "week", CURRENT_WEEK)

    ctx = fetch_league_context(league_cfg, session=session)
    snapshot = build_lineup_state(ctx.roster, ctx.roster_positions)
    directory = build_player_directory(ctx.players_index)
    weights = ctx.scoring_settings

    result = get_projections(
        season,
        week,
        source=_cfg_get(league_cfg, "projection_source", PROJECTION_SOURCE),
        fallback_mode=_cfg_get(league_cfg, "projection_fallback", PROJECTION_FALLBACK_MODE),
        players_index=ctx.players_index,
        csv_path=_cfg_get(league_cfg, "projections_csv", PROJECTIONS_CSV),
        session=session,
        cache=cache,
    )
    index = build_projection_index(result.projections)

    rostered = [
        directory.get(pid) or placeholder_player(pid) for pid in snapshot.all_player_ids()
    ]
    players = {p.player_id: p for p in attach_projections(rostered, index, weights)}

    schedule = fetch_week_schedule(season, week, session=session, cache=schedule_cache)
    now = time.time() if now is None else now

    free_agents = build_free_agent_pool(
        directory,
        index,
        owned_player_ids(ctx.rosters),
        weights,
        schedule,
        now,
        excluded_names=WAIVER_EXCLUDED_NAMES,
        per_position_cap=FA_PER_POSITION_CAP,
    )

    auto_cfg = detect_auto_sub_config(ctx.settings)
    report = build_lineup_report(
        snapshot,
        players,
        schedule,
        now,
        free_agents=free_agents,
        consider_waivers=bool(_cfg_get(league_cfg, "consider_waivers", True)),
        pickup_cap_remaining=int(_cfg_get(league_cfg, "pickup_cap_remaining", 0)),
        require_later_start=bool(
            _cfg_get(league_cfg, "require_later_start", False)
            or auto_cfg.require_later_start
        ),
        optimizer_mode=optimizer_mode,
    )
    return dataclasses.replace(
        report,
        auto_sub_config=auto_cfg,
        league_key=league_key,
        league_name=str(ctx.league.get("name") or ""),
    )


# ---------------------------------------------------------------------------
# CLI entrypoint (still handy while developing)
# ---------------------------------------------------------------------------


def _fmt_player(p: Optional[Player]) -> str:
    if p is None:
        return "[EMPTY]"
    status = p.injury_status or "ACTIVE"
    return f"{p.name:<22} {p.position:3}  PROJ {p.points:5.1f}  [{status}]"


def print_lineup_report(report: LineupReport) -> None:
    """Pretty-print a LineupReport."""
    title = report.league_name or report.league_key
    print(f"\n========= OPTIMAL STARTERS (THIS WEEK) [{title}] =========")
    current_ids = {s.player_id for s in report.current}
    for s in report.optimal:
        flag = ""
        if s.player is not None:
            flag = "  (START)" if s.player_id in current_ids else "  (BENCH→START)"
        locked = "  LOCKED" if s.player_id in report.locked_ids else ""
        print(f"{s.label:10} -> {_fmt_player(s.player)}{flag}{locked}")

    print(f"\nTOTAL EXPECTED POINTS (optimal): {report.optimal_total:.1f}")
    print(f"TOTAL CURRENT LINEUP POINTS:     {report.current_total:.1f}")
    print(f"DELTA:                           {report.delta:+.1f}\n")

    avail = report.availability
    if avail.not_playing or avail.questionable:
        print("============ AVAILABILITY ============")
        for f in avail.not_playing:
            print(f"{f.slot:10} {f.tag:5} {f.name or ''}")
        for f in avail.questionable:
            print(f"{f.slot:10} {f.tag:5} {f.name or ''}")
        print()

    print("========== RECOMMENDED LINEUP CHANGES ==========")
    if not report.diff.enriched:
        print("Your lineup is already optimal.")
    for rec in report.diff.enriched:
        if rec.is_filling_empty:
            tail = "fills empty slot"
        elif rec.displaced is not None:
            tail = f"benches {rec.displaced.name}"
        else:
            tail = ""
        print(
            f"{rec.title:<28} [{rec.slot}] ({rec.source.value}) "
            f"{rec.net_delta:+.1f} pts  {tail}"
        )
    for c in report.diff.cascade_moves:
        print(f"  shift {c.name} {c.from_slot} → {c.to_slot}")

    print("\n========== EMPTY STARTING SLOTS ==========")
    if not report.empty_slot_fixes:
        print("No empty starting slots.")
    for fix in report.empty_slot_fixes:
        if fix.best is None:
            print(f"{fix.slot:10} -> no eligible player")
            continue
        note = f"  BLOCKED: {fix.best.block_reason}" if fix.best.blocked else ""
        print(
            f"{fix.slot:10} -> {fix.best.player.name:<22} ({fix.best.source.value}) "
            f"+{fix.potential_delta:.1f} pts{note}"
        )

    print("\n========== WAIVER UPGRADES ==========")
    if not report.waivers:
        print("No free agents clearly improve your starting lineup right now.")
    for g in report.waivers:
        print(f"ADD {g.name:<22} ({g.position}) PROJ {g.points:5.1f}  best +{g.best_delta:.1f} pts")
        for alt in g.alternatives:
            print(f"    over {alt.outgoing.name:<20} [{alt.slot}] +{alt.delta:.1f}")
        if g.action_plan is not None and g.action_plan.blocked:
            print("    (plan blocked by a locked player)")

    print("\n========== AUTO-SUBS FOR QUESTIONABLE STARTERS ==========")
    if not report.auto_subs:
        print("No questionable starters with a usable bench sub.")
    for rec in report.auto_subs:
        print(f"{rec.starter.name} ({rec.slot}):")
        for sug in rec.suggestions:
            print(f"    {sug.player.name:<22} {sug.reason}")

    health = report.roster_health
    print("\n========== ROSTER HEALTH ==========")
    print(f"Strongest: {', '.join(health.strongest) or '-'}")
    print(f"Weakest:   {', '.join(health.weakest) or '-'}")
    for idea in health.trade_ideas:
        print(f"TRADE {idea.give} for {idea.for_need}: {idea.rationale}")
    for idea in health.add_drop_ideas:
        print(f"ADD {idea.add_name} / DROP {idea.drop_name} ({idea.position}) +{idea.gain:.1f}")

    print("\n============================================================\n")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(
        description="Optimize the lineup for one of your Sleeper leagues."
    )
    parser.add_argument(
        "--league",
        "-l",
        default=DEFAULT_LEAGUE_KEY,
        help=f"League key from config.LEAGUES (default: {DEFAULT_LEAGUE_KEY})",
    )
    parser.add_argument(
        "--mode",
        choices=[m.value for m in OptimizerMode],
        default=OptimizerMode.GREEDY.value,
        help="Lineup optimizer: greedy (default) or exact.",
    )
    parser.add_argument(
        "--json-out",
        help="If set, write the report as JSON to this file instead of pretty-printing.",
    )

    args = parser.parse_args()
    report = run_lineup_for_league(args.league, optimizer_mode=OptimizerMode(args.mode))

    if args.json_out:
        with open(args.json_out, "w") as f:
            json.dump(report_to_dict(report), f, indent=2)
        print(f"Wrote lineup report to {args.json_out}")
    else:
        print_lineup_report(report)
