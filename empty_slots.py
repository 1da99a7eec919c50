# empty_slots.py
#
# Suggestions for starting slots that currently have nobody in them.
# Bench players come first on equal points; free agents are only considered
# when waivers are on and the pickup budget allows it.

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Sequence

from game_locking import is_player_locked, is_team_on_bye  # type: ignore[import]
from models import (  # type: ignore[import]
    EmptySlotFix,
    FillOption,
    GameInfo,
    LineupState,
    MoveSource,
    Player,
)
from slot_rules import player_can_fill_slot  # type: ignore[import]

MAX_ALTERNATIVES = 3


def _lock_reason(
    p: Player,
    schedule: Optional[Mapping[str, GameInfo]],
    played_ids: frozenset,
    verb: str,
) -> str:
    if p.player_id not in played_ids and schedule and is_team_on_bye(p.team, schedule):
        return f"{p.name} is on bye this week. Cannot be {verb}."
    return f"{p.name} already played. Cannot be {verb}."


def _options(
    source: MoveSource,
    candidates: Iterable[Player],
    slot: str,
    schedule: Optional[Mapping[str, GameInfo]],
    now: float,
    played_ids: frozenset,
    include_locked: bool,
) -> List[FillOption]:
    verb = "started" if source is MoveSource.BENCH else "added"
    out: List[FillOption] = []
    for p in candidates:
        if not player_can_fill_slot(p.position, p.eligible_positions, slot):
            continue
        if p.points <= 0:
            continue
        locked = is_player_locked(p.team, schedule, now, played_ids, p.player_id)
        if locked and not include_locked:
            continue
        out.append(
            FillOption(
                source=source,
                player=p,
                points=p.points,
                blocked=locked,
                block_reason=_lock_reason(p, schedule, played_ids, verb) if locked else None,
            )
        )
    return out


def best_fill_for_empty_slot(
    slot: str,
    slot_index: int,
    bench: Sequence[Player],
    fa_pool: Sequence[Player],
    schedule: Optional[Mapping[str, GameInfo]],
    now: float,
    *,
    played_ids: Iterable[str] = (),
    pickup_cap_remaining: int = 0,
    consider_waivers: bool = False,
    include_locked: bool = False,
) -> EmptySlotFix:
    """
    Best bench/FA candidate for one empty slot plus up to 3 alternatives.

    With include_locked=False locked players are dropped outright. With True
    they stay in the ranking flagged as blocked, so the caller can say why the
    top name can't be used; reachable_delta is then 0.
    """
    played = frozenset(played_ids)
    choices = _options(
        MoveSource.BENCH, bench, slot, schedule, now, played, include_locked
    )
    if consider_waivers and pickup_cap_remaining > 0:
        choices += _options(
            MoveSource.FA, fa_pool, slot, schedule, now, played, include_locked
        )

    ranked = sorted(choices, key=lambda c: c.points, reverse=True)
    best = ranked[0] if ranked else None
    potential = best.points if best is not None else 0.0
    reachable = potential if best is not None and not best.blocked else 0.0

    return EmptySlotFix(
        slot=slot,
        slot_index=slot_index,
        best=best,
        alternatives=tuple(ranked[1 : 1 + MAX_ALTERNATIVES]),
        potential_delta=potential,
        reachable_delta=reachable,
    )


def find_empty_slot_fixes(
    state: LineupState,
    bench: Sequence[Player],
    fa_pool: Sequence[Player],
    schedule: Optional[Mapping[str, GameInfo]],
    now: float,
    **kwargs,
) -> List[EmptySlotFix]:
    return [
        best_fill_for_empty_slot(
            state.slot_labels[i], i, bench, fa_pool, schedule, now, **kwargs
        )
        for i, pid in enumerate(state.starters)
        if pid is None
    ]


def has_empty_starters(state: LineupState) -> bool:
    return any(pid is None for pid in state.starters)
