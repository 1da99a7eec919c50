# optimizer.py
#
# Starting-lineup optimizer.
# - GREEDY: two passes (fixed slots, then flex slots) over candidates sorted by
#   projection. This is what the diff engine and the UI are calibrated against.
# - EXACT: 0/1 assignment solved with PuLP, same eligibility rules. Opt-in only,
#   since it can change which moves the diff reports.

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple, Union

import pulp  # type: ignore[import]

from models import Player, RosterSlot  # type: ignore[import]
from slot_rules import (  # type: ignore[import]
    NON_STARTING_SLOTS,
    is_flex_slot,
    normalize_slot,
    player_can_fill_slot,
)

SlotSpec = Union[Mapping[str, int], Sequence[str]]


class OptimizerMode(str, Enum):
    GREEDY = "greedy"
    EXACT = "exact"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def build_slot_counts(roster_positions: Iterable[str]) -> Dict[str, int]:
    """label -> count for the starting slots, in first-seen order."""
    counts: Dict[str, int] = {}
    for slot in roster_positions:
        s = normalize_slot(slot)
        if s in NON_STARTING_SLOTS:
            continue
        counts[s] = counts.get(s, 0) + 1
    return counts


def expand_slots(slots: SlotSpec) -> List[str]:
    """
    Ordered slot list. A mapping is expanded label by label (count times); a
    sequence is taken as-is so callers can keep the league's exact order.
    """
    if isinstance(slots, Mapping):
        out: List[str] = []
        for label, n in slots.items():
            out.extend([normalize_slot(label)] * int(n))
        return out
    return [normalize_slot(s) for s in slots]


def sum_points(lineup: Iterable[RosterSlot]) -> float:
    return sum(s.player.points for s in lineup if s.player is not None)


def _fits(player: Player, slot: str) -> bool:
    return player_can_fill_slot(player.position, player.eligible_positions, slot)


def _pin_locked(
    slot_list: List[str],
    candidates: Sequence[Player],
    current_starters: Optional[Sequence[Optional[str]]],
    locked_ids: Set[str],
) -> Dict[int, Player]:
    """Locked current starters keep their slot index."""
    pinned: Dict[int, Player] = {}
    if not current_starters or not locked_ids:
        return pinned
    by_id = {p.player_id: p for p in candidates}
    for i, pid in enumerate(current_starters[: len(slot_list)]):
        if not pid or pid == "0" or pid not in locked_ids:
            continue
        player = by_id.get(pid)
        if player is not None:
            pinned[i] = player
    return pinned


# ---------------------------------------------------------------------------
# Greedy
# ---------------------------------------------------------------------------


def _greedy(
    slot_list: List[str],
    ranked: List[Player],
    pinned: Dict[int, Player],
) -> List[Optional[Player]]:
    filled: List[Optional[Player]] = [pinned.get(i) for i in range(len(slot_list))]
    used = {p.player_id for p in pinned.values()}

    def take(slot: str) -> Optional[Player]:
        for p in ranked:
            if p.player_id not in used and _fits(p, slot):
                used.add(p.player_id)
                return p
        return None

    # Pass 1: fixed slots
    for i, slot in enumerate(slot_list):
        if filled[i] is None and not is_flex_slot(slot):
            filled[i] = take(slot)

    # Pass 2: flex slots
    for i, slot in enumerate(slot_list):
        if filled[i] is None and is_flex_slot(slot):
            filled[i] = take(slot)

    return filled


# ---------------------------------------------------------------------------
# Exact (PuLP)
# ---------------------------------------------------------------------------


def _exact(
    slot_list: List[str],
    ranked: List[Player],
    pinned: Dict[int, Player],
) -> List[Optional[Player]]:
    filled: List[Optional[Player]] = [pinned.get(i) for i in range(len(slot_list))]
    used = {p.player_id for p in pinned.values()}
    open_idx = [i for i in range(len(slot_list)) if filled[i] is None]
    pool = [p for p in ranked if p.player_id not in used]

    pairs: List[Tuple[int, int]] = [
        (pi, si)
        for pi, p in enumerate(pool)
        for si in open_idx
        if _fits(p, slot_list[si])
    ]
    if not pairs:
        return filled

    prob = pulp.LpProblem("lineup_assignment", pulp.LpMaximize)
    x = {
        (pi, si): pulp.LpVariable(f"x_{pi}_{si}", cat="Binary")
        for (pi, si) in pairs
    }
    # Tiny rank bonus keeps ties deterministic: earlier-ranked players and
    # earlier slots win when points are equal.
    n = len(pool) * len(slot_list) + 1
    prob += pulp.lpSum(
        (pool[pi].points + (n - pi * len(slot_list) - si) * 1e-6) * var
        for (pi, si), var in x.items()
    )
    for pi in range(len(pool)):
        terms = [var for (p_i, _), var in x.items() if p_i == pi]
        if terms:
            prob += pulp.lpSum(terms) <= 1
    for si in open_idx:
        terms = [var for (_, s_i), var in x.items() if s_i == si]
        if terms:
            prob += pulp.lpSum(terms) <= 1

    prob.solve(pulp.PULP_CBC_CMD(msg=0))
    if pulp.LpStatus[prob.status] != "Optimal":
        # Fall back to the greedy result rather than returning a partial solve.
        return _greedy(slot_list, ranked, pinned)

    for (pi, si), var in x.items():
        if (var.value() or 0) > 0.5:
            filled[si] = pool[pi]
    return filled


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def optimize_lineup(
    slots: SlotSpec,
    players: Sequence[Player],
    *,
    current_starters: Optional[Sequence[Optional[str]]] = None,
    locked_ids: Optional[Iterable[str]] = None,
    mode: OptimizerMode = OptimizerMode.GREEDY,
) -> Tuple[RosterSlot, ...]:
    """
    Assign players to starting slots, one RosterSlot per slot instance.

    Candidates are ranked by points descending; equal points keep input
    order. A slot nobody can fill stays empty. When `current_starters` and
    `locked_ids` are given, locked starters stay at their current index and
    other locked players are never placed.
    """
    mode = OptimizerMode(mode)
    slot_list = expand_slots(slots)
    locked = set(locked_ids or ())

    pinned = _pin_locked(slot_list, players, current_starters, locked)
    pinned_ids = {p.player_id for p in pinned.values()}

    seen: Set[str] = set()
    candidates: List[Player] = []
    for p in players:
        if p.player_id in seen:
            continue
        seen.add(p.player_id)
        if p.player_id in locked and p.player_id not in pinned_ids:
            continue
        candidates.append(p)
    ranked = sorted(candidates, key=lambda p: p.points, reverse=True)

    if mode is OptimizerMode.GREEDY:
        filled = _greedy(slot_list, ranked, pinned)
    else:
        filled = _exact(slot_list, ranked, pinned)

    return tuple(RosterSlot(label, p) for label, p in zip(slot_list, filled))
