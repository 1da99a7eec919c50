# waivers.py
#
# Waiver-wire engine.
# - builds the free-agent pool from projections + the player directory
# - compares free agents to the weakest current starter per slot ("floors")
# - groups suggestions per free agent and attaches an ActionPlan showing the
#   full lineup change behind each pickup

from __future__ import annotations

import dataclasses
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from game_locking import is_player_locked  # type: ignore[import]
from models import (  # type: ignore[import]
    ActionPlan,
    ActionStep,
    Floor,
    GameInfo,
    GroupedWaiverSuggestion,
    Player,
    Projection,
    RosterSlot,
    ScoredFreeAgent,
    StepKind,
    WaiverAlternative,
    WaiverSuggestion,
)
from optimizer import OptimizerMode, optimize_lineup, sum_points  # type: ignore[import]
from scoring import score_by_league  # type: ignore[import]
from slot_rules import (  # type: ignore[import]
    SLOT_PRIORITY,
    interchangeable,
    is_flex_slot,
    normalize_pos,
    normalize_slot,
    player_can_fill_slot,
)

OUT_STATUSES = {"O", "IR", "NA", "OUT"}
FA_POSITIONS = ("QB", "RB", "WR", "TE", "DEF", "DL", "LB", "DB")


# ---------------------------------------------------------------------------
# Free-agent pool
# ---------------------------------------------------------------------------


def build_free_agent_pool(
    directory: Mapping[str, Player],
    projections: Mapping[str, Projection],
    owned_ids: Iterable[str],
    weights: Optional[Mapping[str, float]],
    schedule: Optional[Mapping[str, GameInfo]],
    now: float,
    *,
    played_ids: Iterable[str] = (),
    excluded_names: Iterable[str] = (),
    per_position_cap: int = 10,
) -> List[Player]:
    """
    Unowned, startable players with a positive league-scored projection.

    Only id-keyed projection rows are used (name|team|pos fallback keys are
    skipped). Each position is capped at `per_position_cap`, best first, ties
    broken by player id.
    """
    owned = set(owned_ids)
    played = set(played_ids)
    excluded = set(excluded_names)
    buckets: Dict[str, List[Player]] = {pos: [] for pos in FA_POSITIONS}

    for key, proj in projections.items():
        if "|" in key or key in owned:
            continue
        p = directory.get(key)
        if p is None:
            continue
        pos = normalize_pos(p.position)
        if pos not in buckets:
            continue
        if proj.is_bye:
            continue
        if (p.injury_status or "").upper() in OUT_STATUSES:
            continue
        if p.name in excluded:
            continue
        if is_player_locked(p.team, schedule, now, played, p.player_id):
            continue
        pts = score_by_league(pos, proj.stats, weights, proj.points)
        if not pts > 0:
            continue
        buckets[pos].append(
            dataclasses.replace(
                p, position=pos, points=pts, opponent=proj.opponent, is_free_agent=True
            )
        )

    shortlist: List[Player] = []
    for pos in FA_POSITIONS:
        ranked = sorted(buckets[pos], key=lambda x: (-x.points, x.player_id))
        shortlist.extend(ranked[:per_position_cap])
    return shortlist


def score_free_agents(
    free_agents: Iterable[Player],
    projections: Mapping[str, Projection],
    weights: Optional[Mapping[str, float]],
) -> List[ScoredFreeAgent]:
    """League-score each free agent; no projection row means 0 points."""
    out: List[ScoredFreeAgent] = []
    for fa in free_agents:
        row = projections.get(fa.player_id)
        pts = score_by_league(fa.position, row.stats, weights, row.points) if row else 0.0
        bye_or_out = bool(row and row.is_bye) or (
            (fa.injury_status or "").upper() in {"O", "IR", "NA"}
        )
        out.append(
            ScoredFreeAgent(
                player=dataclasses.replace(fa, points=pts, is_free_agent=True),
                is_bye_or_out=bye_or_out,
            )
        )
    return out


# ---------------------------------------------------------------------------
# Floors and upgrade scan
# ---------------------------------------------------------------------------


def build_starter_floors(
    starters: Sequence[RosterSlot], active_slots: Iterable[str]
) -> Dict[str, Optional[Floor]]:
    """
    Weakest starter per slot label that exists in the league. Fixed slots
    look at their own occupants; flex slots look at every starter eligible
    for that flex. First in lineup order wins ties.
    """
    active = [normalize_slot(s) for s in active_slots]
    floors: Dict[str, Optional[Floor]] = {}
    for slot in active:
        if slot in floors:
            continue
        if is_flex_slot(slot):
            pool = [
                s.player for s in starters
                if s.player is not None
                and player_can_fill_slot(s.player.position, s.player.eligible_positions, slot)
            ]
        else:
            pool = [
                s.player for s in starters
                if s.player is not None and normalize_slot(s.label) == slot
            ]
        worst: Optional[Player] = None
        for p in pool:
            if worst is None or p.points < worst.points:
                worst = p
        floors[slot] = Floor(worst.player_id, worst.points) if worst else None
    return floors


def pick_waiver_upgrades(
    scored_fas: Iterable[ScoredFreeAgent],
    starters: Sequence[RosterSlot],
    active_slots: Iterable[str],
    min_gain: float = 1.5,
    max_per_position: int = 3,
    max_total: Optional[int] = None,
) -> List[WaiverSuggestion]:
    active = {normalize_slot(s) for s in active_slots}
    floors = build_starter_floors(starters, active)
    by_id = {s.player.player_id: s.player for s in starters if s.player is not None}
    scan_order = [s for s in SLOT_PRIORITY if s in active and s != "K"]

    best: Dict[tuple, WaiverSuggestion] = {}
    for fa in scored_fas:
        if fa.is_bye_or_out:
            continue
        p = fa.player
        if normalize_pos(p.position) == "K":
            continue
        for slot in scan_order:
            if not player_can_fill_slot(p.position, p.eligible_positions, slot):
                continue
            floor = floors.get(slot)
            if floor is None:
                continue
            outgoing = by_id.get(floor.player_id)
            if outgoing is None:
                continue
            # blocks cross-position swaps such as "replace your K with an RB"
            if outgoing.position and not interchangeable(p.position, outgoing.position):
                continue
            delta = p.points - floor.points
            if delta < min_gain:
                continue
            key = (slot, p.player_id)
            if key not in best or best[key].delta < delta:
                best[key] = WaiverSuggestion(slot, p, outgoing, delta)

    by_position: Dict[str, List[WaiverSuggestion]] = {}
    for s in best.values():
        by_position.setdefault(normalize_pos(s.incoming.position), []).append(s)

    result: List[WaiverSuggestion] = []
    for group in by_position.values():
        group.sort(key=lambda s: s.delta, reverse=True)
        result.extend(group[:max_per_position])

    result.sort(key=lambda s: s.delta, reverse=True)
    if max_total is not None:
        result = result[:max_total]
    return result


def group_waiver_suggestions(
    suggestions: Iterable[WaiverSuggestion],
    max_players: int = 8,
    max_alternatives: int = 3,
) -> List[GroupedWaiverSuggestion]:
    """One entry per free agent: best delta plus distinct-outgoing alternatives."""
    by_player: Dict[str, List[WaiverSuggestion]] = {}
    for s in suggestions:
        by_player.setdefault(s.incoming.player_id, []).append(s)

    grouped: List[GroupedWaiverSuggestion] = []
    for pid, items in by_player.items():
        items = sorted(items, key=lambda s: s.delta, reverse=True)
        top = items[0]
        outs: Dict[str, WaiverAlternative] = {}
        for s in items:
            out_id = s.outgoing.player_id
            if out_id not in outs or outs[out_id].delta < s.delta:
                outs[out_id] = WaiverAlternative(s.outgoing, s.slot, s.delta)
        alternatives = sorted(outs.values(), key=lambda a: a.delta, reverse=True)
        grouped.append(
            GroupedWaiverSuggestion(
                player_id=pid,
                name=top.incoming.name,
                position=top.incoming.position,
                points=top.incoming.points,
                best_delta=top.delta,
                alternatives=tuple(alternatives[:max_alternatives]),
            )
        )

    grouped.sort(key=lambda g: g.best_delta, reverse=True)
    return grouped[:max_players]


# ---------------------------------------------------------------------------
# Action plans
# ---------------------------------------------------------------------------


def _block_reason(locked: bool, name: str, verb: str) -> Optional[str]:
    return f"{name} already played. Cannot be {verb}." if locked else None


def compute_lineup_diff(
    current_slots: Sequence[RosterSlot],
    new_slots: Sequence[RosterSlot],
    locked_ids: Iterable[str] = (),
) -> ActionPlan:
    """
    Break a lineup change into steps: adds, then slot moves, then benchings.

    Any blocked step makes the whole plan unreachable (reachable_delta 0);
    executing only part of it could leave an incoherent lineup.
    """
    locked: Set[str] = set(locked_ids)
    cur = {s.player.player_id: s for s in current_slots if s.player is not None}
    new = {s.player.player_id: s for s in new_slots if s.player is not None}

    adds: List[ActionStep] = []
    moves: List[ActionStep] = []
    benches: List[ActionStep] = []

    for pid, s in new.items():
        p = s.player
        is_locked = pid in locked
        prev = cur.get(pid)
        if prev is None:
            adds.append(ActionStep(
                kind=StepKind.add, player_id=pid, player=p.name, position=p.position,
                slot=s.label, blocked=is_locked,
                block_reason=_block_reason(is_locked, p.name, "started"),
            ))
        elif prev.label != s.label:
            moves.append(ActionStep(
                kind=StepKind.move, player_id=pid, player=p.name, position=p.position,
                from_slot=prev.label, to_slot=s.label, blocked=is_locked,
                block_reason=_block_reason(is_locked, p.name, "moved"),
            ))

    for pid, s in cur.items():
        if pid in new:
            continue
        p = s.player
        is_locked = pid in locked
        benches.append(ActionStep(
            kind=StepKind.bench, player_id=pid, player=p.name, position=p.position,
            blocked=is_locked,
            block_reason=_block_reason(is_locked, p.name, "benched"),
        ))

    steps = tuple(adds + moves + benches)
    potential = sum_points(new_slots) - sum_points(current_slots)
    reachable = 0.0 if any(st.blocked for st in steps) else potential
    return ActionPlan(steps=steps, potential_delta=potential, reachable_delta=reachable)


def attach_action_plans(
    grouped: Sequence[GroupedWaiverSuggestion],
    free_agents: Mapping[str, Player],
    slot_labels: Sequence[str],
    pool: Sequence[Player],
    baseline: Sequence[RosterSlot],
    *,
    current_starters: Optional[Sequence[Optional[str]]] = None,
    locked_ids: Iterable[str] = (),
    mode: OptimizerMode = OptimizerMode.GREEDY,
) -> List[GroupedWaiverSuggestion]:
    """
    For each suggestion, re-optimize with the free agent added and diff that
    lineup against `baseline`.
    """
    locked = set(locked_ids)
    out: List[GroupedWaiverSuggestion] = []
    for g in grouped:
        fa = free_agents.get(g.player_id)
        if fa is None:
            out.append(g)
            continue
        with_fa = optimize_lineup(
            slot_labels,
            list(pool) + [fa],
            current_starters=current_starters,
            locked_ids=locked,
            mode=mode,
        )
        plan = compute_lineup_diff(baseline, with_fa, locked)
        out.append(dataclasses.replace(g, action_plan=plan))
    return out
