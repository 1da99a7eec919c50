# roster_health.py
#
# Positional strength vs the waiver wire: where the roster has surplus,
# where it is short, and trade / add-drop ideas that follow from that.

from __future__ import annotations

from typing import Dict, List, Sequence

from models import (  # type: ignore[import]
    AddDropIdea,
    Player,
    PosStrength,
    RosterHealthReport,
    RosterSlot,
    TierEntry,
    TradeIdea,
)
from slot_rules import normalize_pos  # type: ignore[import]

DEPTH_DECAY = (0.5, 0.3, 0.2)
REPLACEMENT_TOP_K = 5
MAX_TRADE_IDEAS = 3
MIN_ADD_DROP_GAIN = 0.5


def tier_label(diff: float) -> str:
    if diff >= 6:
        return "Elite"
    if diff >= 3:
        return "Starter"
    if diff >= 1:
        return "Flex-worthy"
    if diff >= 0:
        return "Depth"
    return "Replaceable"


def _group(players: Sequence[Player]) -> Dict[str, List[Player]]:
    out: Dict[str, List[Player]] = {}
    for p in players:
        out.setdefault(normalize_pos(p.position), []).append(p)
    return out


def _by_points(players: Sequence[Player]) -> List[Player]:
    return sorted(players, key=lambda p: p.points, reverse=True)


def compute_roster_health(
    optimal: Sequence[RosterSlot],
    bench: Sequence[Player],
    free_agents: Sequence[Player],
) -> RosterHealthReport:
    """
    `bench` is every rostered non-starter; anyone also in `optimal` is
    ignored. `free_agents` feeds the replacement baseline (top 5 per
    position, 0 when the position has none).
    """
    started = [s.player for s in optimal if s.player is not None]
    started_ids = {p.player_id for p in started}
    starters_by_pos = _group(started)
    bench_by_pos = _group([p for p in bench if p.player_id not in started_ids])
    fa_by_pos = {pos: _by_points(ps) for pos, ps in _group(free_agents).items()}

    positions: List[str] = list(starters_by_pos)
    positions += [pos for pos in bench_by_pos if pos not in starters_by_pos]

    by_position: List[PosStrength] = []
    for pos in positions:
        starters = starters_by_pos.get(pos, [])
        depth = _by_points(bench_by_pos.get(pos, []))
        demand = len(starters)
        starters_proj = sum(p.points for p in starters)
        depth_weighted = sum(p.points * w for p, w in zip(depth, DEPTH_DECAY))

        top_fa = fa_by_pos.get(pos, [])[:REPLACEMENT_TOP_K]
        baseline = sum(p.points for p in top_fa) / len(top_fa) if top_fa else 0.0

        need = demand * baseline
        tiers = tuple(
            TierEntry(tier_label(p.points - baseline), p.name, p.points)
            for p in _by_points(starters + depth)
        )
        by_position.append(
            PosStrength(
                position=pos,
                demand=demand,
                starters_proj=starters_proj,
                depth_proj_weighted=depth_weighted,
                replacement_baseline=baseline,
                surplus=starters_proj - need,
                shortage=max(0.0, need - starters_proj),
                tiers=tiers,
            )
        )

    strongest = tuple(
        s.position
        for s in sorted(
            by_position, key=lambda s: s.surplus + s.depth_proj_weighted, reverse=True
        )[:2]
    )
    weakest = tuple(
        s.position for s in sorted(by_position, key=lambda s: s.shortage, reverse=True)[:2]
    )
    strength = {s.position: s for s in by_position}

    trade_ideas: List[TradeIdea] = []
    for give in strongest:
        for need in weakest:
            trade_ideas.append(
                TradeIdea(
                    give=give,
                    for_need=need,
                    rationale=(
                        f"Surplus at {give} (+{strength[give].surplus:.1f} pts over "
                        f"replacement) vs shortage at {need} "
                        f"({strength[need].shortage:.1f} pts)."
                    ),
                )
            )

    add_drop: List[AddDropIdea] = []
    for pos, depth in bench_by_pos.items():
        fas = fa_by_pos.get(pos)
        if not fas:
            continue
        top = fas[0]
        worst = min(depth, key=lambda p: p.points)
        gain = top.points - worst.points
        if gain > MIN_ADD_DROP_GAIN:
            add_drop.append(AddDropIdea(pos, top.player_id, top.name, gain, worst.name))

    return RosterHealthReport(
        by_position=tuple(by_position),
        strongest=strongest,
        weakest=weakest,
        trade_ideas=tuple(trade_ideas[:MAX_TRADE_IDEAS]),
        add_drop_ideas=tuple(add_drop),
    )
