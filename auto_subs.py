# auto_subs.py
#
# Contingency substitutions for questionable starters, plus detection of the
# league's auto-sub settings.

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Sequence

from models import (  # type: ignore[import]
    AutoSubConfig,
    AutoSubRecommendation,
    AutoSubSuggestion,
    Player,
    RosterSlot,
)
from slot_rules import player_can_fill_slot  # type: ignore[import]

MAX_SUGGESTIONS = 2
FLOOR_FACTOR = 0.7

LATER_START_KEYS = (
    "player_autosubs_require_later_start",
    "autosubs_require_later_start",
    "auto_subs_require_later_start",
)


def detect_auto_sub_config(settings: Optional[Mapping[str, Any]]) -> AutoSubConfig:
    """
    Read auto-sub settings from a league's `settings` block. Key names differ
    between leagues, so any key containing "sub" with a positive number counts.
    """
    settings = settings or {}
    allowed = 0
    for key, value in settings.items():
        if "sub" not in str(key).lower():
            continue
        if isinstance(value, bool):
            continue
        try:
            num = float(value)
        except (TypeError, ValueError):
            continue
        if num > 0:
            allowed = int(num)
            break
    later = any(bool(settings.get(k)) for k in LATER_START_KEYS)
    return AutoSubConfig(
        enabled=allowed > 0, allowed_per_week=allowed, require_later_start=later
    )


def is_questionable(player: Optional[Player]) -> bool:
    if player is None:
        return False
    status = (player.injury_status or "").upper()
    return status == "Q" or "QUE" in status


def suggest_auto_subs(
    starter: Player,
    slot: str,
    bench: Sequence[Player],
    require_later_start: bool = False,
) -> List[AutoSubSuggestion]:
    starter_kick = starter.game_start if starter.game_start is not None else 0.0

    out: List[AutoSubSuggestion] = []
    for p in bench:
        if not player_can_fill_slot(p.position, p.eligible_positions, slot):
            continue
        if require_later_start:
            kick = p.game_start if p.game_start is not None else float("inf")
            if kick < starter_kick:
                continue

        diff = p.points - starter.points
        reason = f"Proj {p.points:.1f} ({diff:+.1f} vs starter)"
        if require_later_start and p.game_start and starter.game_start:
            hours = (p.game_start - starter.game_start) / 3600.0
            if hours > 0:
                reason += f"; plays {hours:.1f}h later"

        out.append(
            AutoSubSuggestion(
                player=p, points=p.points, floor=p.points * FLOOR_FACTOR, reason=reason
            )
        )

    out.sort(key=lambda s: (s.points, s.floor), reverse=True)
    return out[:MAX_SUGGESTIONS]


def find_auto_sub_recommendations(
    starters: Sequence[RosterSlot],
    bench: Sequence[Player],
    require_later_start: bool = False,
) -> List[AutoSubRecommendation]:
    """One recommendation per questionable starter that has a usable sub."""
    recs: List[AutoSubRecommendation] = []
    for i, s in enumerate(starters):
        if not is_questionable(s.player):
            continue
        suggestions = suggest_auto_subs(s.player, s.label, bench, require_later_start)
        if suggestions:
            recs.append(
                AutoSubRecommendation(
                    starter=s.player,
                    slot=s.label,
                    slot_index=i,
                    suggestions=tuple(suggestions),
                )
            )
    return recs


def auto_sub_instructions(
    starter_name: str, slot: str, sub_name: str, require_later_start: bool = False
) -> str:
    """Copy-paste steps for setting the auto-sub in the Sleeper app."""
    later = " and sub cannot be earlier" if require_later_start else ""
    return (
        f'Sleeper > Lineup > tap "{sub_name}" > "Set AutoSub" > '
        f"choose {starter_name} ({slot}). Needs both games unstarted{later}."
    )
