# slot_rules.py
#
# Slot eligibility shared by the optimizer, the diff engine, the empty-slot
# filler, the waiver engine and the auto-sub advisor. One table, so every
# component agrees on which positions may sit in which slot.

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

# Position aliases seen across Sleeper, ESPN and projection CSVs.
POSITION_ALIASES: Dict[str, str] = {
    "DST": "DEF",
    "D/ST": "DEF",
    "D": "DEF",
}

# slot label -> positions that may occupy it
SLOT_ELIGIBILITY: Dict[str, Tuple[str, ...]] = {
    "QB": ("QB",),
    "RB": ("RB",),
    "WR": ("WR",),
    "TE": ("TE",),
    "K": ("K",),
    "DEF": ("DEF",),
    "DL": ("DL",),
    "LB": ("LB",),
    "DB": ("DB",),
    "REC_FLEX": ("WR", "TE"),
    "WRRB_FLEX": ("RB", "WR"),
    "RB_WR": ("RB", "WR"),
    "FLEX": ("RB", "WR", "TE"),
    "WRT": ("RB", "WR", "TE"),
    "RB_WR_TE": ("RB", "WR", "TE"),
    "SUPER_FLEX": ("QB", "RB", "WR", "TE"),
    "WRTQ": ("QB", "RB", "WR", "TE"),
    "IDP_FLEX": ("DL", "LB", "DB"),
}

# Most specific first: exact-position slots, then flex variants from the
# narrowest to the widest.
SLOT_PRIORITY: Tuple[str, ...] = (
    "QB", "RB", "WR", "TE", "K", "DEF", "DL", "LB", "DB",
    "REC_FLEX", "WRRB_FLEX", "RB_WR",
    "FLEX", "WRT", "RB_WR_TE",
    "SUPER_FLEX", "WRTQ",
    "IDP_FLEX",
)

# Roster positions that are not part of the starting lineup.
NON_STARTING_SLOTS = {"BN", "IR", "TAXI"}


def normalize_pos(pos: Optional[str]) -> str:
    if not pos:
        return ""
    up = str(pos).strip().upper()
    return POSITION_ALIASES.get(up, up)


def normalize_slot(slot: Optional[str]) -> str:
    return normalize_pos(slot)


def slot_positions(slot: str) -> Tuple[str, ...]:
    """Positions allowed in `slot`; empty for labels we don't recognise."""
    return SLOT_ELIGIBILITY.get(normalize_slot(slot), ())


def is_flex_slot(slot: str) -> bool:
    return len(slot_positions(slot)) > 1


def get_eligible_slots(pos: str) -> List[str]:
    """All slot labels `pos` may legally fill, in priority order."""
    p = normalize_pos(pos)
    return [s for s in SLOT_PRIORITY if p in SLOT_ELIGIBILITY[s]]


def can_fill_slot(pos: str, slot: str) -> bool:
    return normalize_pos(pos) in slot_positions(slot)


def player_can_fill_slot(
    position: str, eligible_positions: Iterable[str], slot: str
) -> bool:
    """
    Slot check that also honours multi-position tags (e.g. a WR/RB hybrid may
    fill an RB slot).
    """
    allowed = slot_positions(slot)
    if not allowed:
        return False
    if normalize_pos(position) in allowed:
        return True
    return any(normalize_pos(p) in allowed for p in eligible_positions)


def interchangeable(pos_a: str, pos_b: str) -> bool:
    """True when two positions compete for at least one slot type."""
    slots_a = set(get_eligible_slots(pos_a))
    return any(s in slots_a for s in get_eligible_slots(pos_b))


def find_best_slot(pos: str, available_slots: Sequence[str]) -> Optional[str]:
    """
    Most restrictive open slot for `pos`: an exact-position slot beats any
    flex, and a narrow flex beats SUPER_FLEX.
    """
    open_slots = {normalize_slot(s) for s in available_slots}
    for slot in get_eligible_slots(pos):
        if slot in open_slots:
            return slot
    return None


def starting_slot_labels(roster_positions: Iterable[str]) -> Tuple[str, ...]:
    """Drop bench/IR/taxi entries, keeping the league's slot order."""
    return tuple(
        normalize_slot(s) for s in roster_positions
        if normalize_slot(s) not in NON_STARTING_SLOTS
    )
