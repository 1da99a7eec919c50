# lineup_diff.py
#
# Current-vs-optimal lineup diff.
# - ins / outs: set differences, informational only
# - moves: slot-level actions (no self-swaps, no intra-starter reshuffles)
# - enriched: narrative recommendations with each benched starter used once
# - cascade_moves: starters that just change slot

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set

from models import (  # type: ignore[import]
    ActionPlan,
    CascadeMove,
    EnrichedRecommendation,
    LineupDiff,
    LineupState,
    Move,
    MoveSource,
    Player,
    RosterSlot,
    StepKind,
)


def placeholder_player(player_id: str) -> Player:
    """Stand-in for an id we have no directory entry for; worth 0 points."""
    return Player(player_id=player_id, name=f"player_id {player_id}", position="")


def _lookup(players: Mapping[str, Player], pid: str) -> Player:
    return players.get(pid) or placeholder_player(pid)


def _source_for(player: Player, ir_ids: Set[str]) -> MoveSource:
    if player.player_id in ir_ids:
        return MoveSource.IR
    if player.is_free_agent:
        return MoveSource.FA
    return MoveSource.BENCH


def current_total(state: LineupState, players: Mapping[str, Player]) -> float:
    return sum(_lookup(players, pid).points for pid in state.starter_ids())


def _cascade_moves(
    state: LineupState,
    optimal: Sequence[RosterSlot],
    players: Mapping[str, Player],
) -> List[CascadeMove]:
    """
    Starters present in both lineups at different indices. A starter sliding
    into a slot that is empty today is a fill, not a cascade.
    """
    opt_index: Dict[str, int] = {}
    for i, s in enumerate(optimal):
        if s.player is not None and s.player.player_id not in opt_index:
            opt_index[s.player.player_id] = i

    labels = state.slot_labels
    out: List[CascadeMove] = []
    for idx, pid in enumerate(state.starters):
        if pid is None or pid not in opt_index:
            continue
        opt_idx = opt_index[pid]
        if opt_idx == idx:
            continue
        if opt_idx < len(state.starters) and state.starters[opt_idx] is None:
            continue
        out.append(
            CascadeMove(
                player_id=pid,
                name=_lookup(players, pid).name,
                from_slot=labels[idx] if idx < len(labels) else "unknown",
                to_slot=labels[opt_idx] if opt_idx < len(labels) else "unknown",
            )
        )
    return out


def build_lineup_diff(
    state: LineupState,
    optimal: Sequence[RosterSlot],
    players: Mapping[str, Player],
    ir_ids: Optional[Iterable[str]] = None,
) -> LineupDiff:
    """
    Diff the current lineup in `state` against `optimal`.

    `players` resolves ids that appear only in the current lineup (benched
    starters); unknown ids become 0-point placeholders. `optimal` must be
    index-aligned with `state.slot_labels`.
    """
    ir = set(ir_ids or ())
    current: Sequence[Optional[str]] = state.starters
    cur_ids = [pid for pid in current if pid is not None]
    cur_set = set(cur_ids)

    opt_players = [s.player for s in optimal if s.player is not None]
    opt_set = {p.player_id for p in opt_players}

    ins = tuple(p for p in opt_players if p.player_id not in cur_set)
    outs = tuple(_lookup(players, pid) for pid in cur_ids if pid not in opt_set)

    # Slot-level moves
    moves: List[Move] = []
    used_in: Set[str] = set()
    for i, s in enumerate(optimal):
        incoming = s.player
        if incoming is None:
            continue
        cur_pid = current[i] if i < len(current) else None
        if cur_pid == incoming.player_id or incoming.player_id in used_in:
            continue
        # both already starting: a reshuffle, reported through cascade_moves
        if incoming.player_id in cur_set and cur_pid is not None and cur_pid in cur_set:
            continue

        outgoing = _lookup(players, cur_pid) if cur_pid is not None else None
        gain = incoming.points - (outgoing.points if outgoing is not None else 0.0)
        moves.append(
            Move(
                slot=s.label,
                slot_index=i,
                incoming=incoming,
                outgoing=outgoing,
                gain=gain,
                source=_source_for(incoming, ir),
                is_filling_empty=cur_pid is None,
            )
        )
        used_in.add(incoming.player_id)

    cascades = tuple(_cascade_moves(state, optimal, players))

    # Enriched pairing: weakest benched starter is sacrificed first, once.
    benched = [_lookup(players, pid) for pid in cur_ids if pid not in opt_set]
    consumed: Set[str] = set()
    opt_index = {}
    for i, s in enumerate(optimal):
        if s.player is not None and s.player.player_id not in opt_index:
            opt_index[s.player.player_id] = i

    new_players = sorted(
        (p for p in opt_players if p.player_id not in cur_set),
        key=lambda p: p.points,
        reverse=True,
    )

    enriched: List[EnrichedRecommendation] = []
    for incoming in new_players:
        slot_idx = opt_index[incoming.player_id]
        slot = optimal[slot_idx].label
        slot_is_empty = slot_idx >= len(current) or current[slot_idx] is None

        displaced: Optional[Player] = None
        if not slot_is_empty:
            available = [p for p in benched if p.player_id not in consumed]
            if available:
                displaced = min(available, key=lambda p: p.points)
                consumed.add(displaced.player_id)

        net = incoming.points - (displaced.points if displaced is not None else 0.0)
        enriched.append(
            EnrichedRecommendation(
                title=f"Start {incoming.name}",
                slot=slot,
                slot_index=slot_idx,
                net_delta=net,
                incoming=incoming,
                displaced=displaced,
                is_filling_empty=slot_is_empty,
                cascade_moves=cascades,
                source=_source_for(incoming, ir),
            )
        )

    return LineupDiff(
        ins=ins,
        outs=outs,
        moves=tuple(moves),
        enriched=tuple(enriched),
        cascade_moves=cascades,
        current_total=current_total(state, players),
        optimal_total=sum(p.points for p in opt_players),
    )


def explain_action_plan(
    plan: ActionPlan, points: Optional[Mapping[str, float]] = None
) -> List[str]:
    """Human-readable lines for an ActionPlan, in step order."""
    points = points or {}
    lines: List[str] = []
    for step in plan.steps:
        pts = points.get(step.player_id)
        if step.kind is StepKind.add:
            suffix = f" (+{abs(pts):.1f} pts)" if pts is not None else ""
            lines.append(f"Add {step.player} → {step.slot}{suffix}")
        elif step.kind is StepKind.move:
            lines.append(f"Move {step.player} {step.from_slot} → {step.to_slot}")
        else:
            suffix = f" (-{abs(pts):.1f} pts)" if pts is not None else ""
            lines.append(f"Bench {step.player}{suffix}")
        if step.blocked and step.block_reason:
            lines.append(f"  blocked: {step.block_reason}")

    delta = plan.potential_delta
    if abs(delta) > 0.01:
        sign = "+" if delta > 0 else ""
        lines.append(f"Net: {sign}{delta:.1f} pts")
    return lines
