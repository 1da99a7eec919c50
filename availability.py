# availability.py
#
# Flags starters who won't play (empty slot, bye, out) or might not (Q/D).

from __future__ import annotations

from typing import List, Optional, Sequence

from models import AvailabilitySummary, Player, RosterSlot, StarterFlag  # type: ignore[import]

OUT_STATUSES = {"O", "IR", "NA", "SUS", "SSPD", "OUT"}
QUES_STATUSES = {"Q", "D", "QUESTIONABLE", "DOUBTFUL"}

NOT_PLAYING_TAGS = {"EMPTY", "BYE", "OUT"}


def classify_starter(player: Optional[Player]) -> Optional[str]:
    """EMPTY / BYE / OUT / QUES, or None when the starter looks fine."""
    if player is None or not player.player_id:
        return "EMPTY"
    if (player.opponent or "").upper() == "BYE":
        return "BYE"
    status = (player.injury_status or "").upper()
    if status in OUT_STATUSES:
        return "OUT"
    if status in QUES_STATUSES:
        return "QUES"
    return None


def summarize_starters(starters: Sequence[RosterSlot]) -> AvailabilitySummary:
    not_playing: List[StarterFlag] = []
    questionable: List[StarterFlag] = []
    for i, s in enumerate(starters):
        tag = classify_starter(s.player)
        if tag is None:
            continue
        flag = StarterFlag(
            slot=s.label,
            slot_index=i,
            tag=tag,
            player_id=s.player_id,
            name=s.player.name if s.player is not None else None,
        )
        if tag in NOT_PLAYING_TAGS:
            not_playing.append(flag)
        else:
            questionable.append(flag)
    return AvailabilitySummary(tuple(not_playing), tuple(questionable))
