# models.py

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple


class MoveSource(str, Enum):
    FA = "FA"
    BENCH = "BENCH"
    IR = "IR"


class StepKind(str, Enum):
    add = "add"
    move = "move"
    bench = "bench"


@dataclass(frozen=True)
class Player:
    player_id: str
    name: str
    position: str                              # QB, RB, WR, TE, K, DEF, DL, LB, DB
    team: Optional[str] = None
    eligible_positions: Tuple[str, ...] = ()   # multi-position tags
    injury_status: Optional[str] = None        # Q, D, O, IR, NA, SUS, ...
    points: float = 0.0                        # this week's projected points
    opponent: Optional[str] = None             # "BYE" flags a bye week
    game_start: Optional[float] = None         # kickoff, epoch seconds
    is_free_agent: bool = False


@dataclass(frozen=True)
class Projection:
    points: float
    name: str = ""
    position: str = ""
    team: Optional[str] = None
    player_id: Optional[str] = None
    opponent: Optional[str] = None
    stats: Mapping[str, float] = field(default_factory=dict)

    @property
    def is_bye(self) -> bool:
        return (self.opponent or "").upper() == "BYE"


@dataclass(frozen=True)
class GameInfo:
    start: float           # kickoff, epoch seconds
    state: str = "pre"     # pre, in, post


GameSchedule = Dict[str, GameInfo]


@dataclass(frozen=True)
class RosterSlot:
    label: str
    player: Optional[Player] = None

    @property
    def player_id(self) -> Optional[str]:
        return self.player.player_id if self.player is not None else None


@dataclass(frozen=True)
class LineupState:
    """
    Roster snapshot. `starters` is index-aligned with `slot_labels` and keeps
    None for every empty slot.
    """
    slot_labels: Tuple[str, ...]
    starters: Tuple[Optional[str], ...]
    bench: Tuple[str, ...] = ()
    reserve: Tuple[str, ...] = ()
    taxi: Tuple[str, ...] = ()

    def __post_init__(self):
        if len(self.slot_labels) != len(self.starters):
            raise ValueError(
                f"starters ({len(self.starters)}) must align with "
                f"slot_labels ({len(self.slot_labels)})"
            )
        seen = set()
        for pid in self.all_player_ids():
            if pid in seen:
                raise ValueError(f"player {pid} appears in more than one roster group")
            seen.add(pid)

    def starter_ids(self) -> Tuple[str, ...]:
        return tuple(pid for pid in self.starters if pid is not None)

    def all_player_ids(self) -> Tuple[str, ...]:
        return self.starter_ids() + self.bench + self.reserve + self.taxi


@dataclass(frozen=True)
class Move:
    slot: str
    slot_index: int
    incoming: Player
    outgoing: Optional[Player]
    gain: float
    source: MoveSource
    is_filling_empty: bool = False


@dataclass(frozen=True)
class CascadeMove:
    player_id: str
    name: str
    from_slot: str
    to_slot: str


@dataclass(frozen=True)
class EnrichedRecommendation:
    title: str
    slot: str
    slot_index: int
    net_delta: float
    incoming: Player
    displaced: Optional[Player]        # None when the slot was truly empty
    is_filling_empty: bool
    cascade_moves: Tuple[CascadeMove, ...]
    source: MoveSource


@dataclass(frozen=True)
class LineupDiff:
    ins: Tuple[Player, ...]
    outs: Tuple[Player, ...]
    moves: Tuple[Move, ...]
    enriched: Tuple[EnrichedRecommendation, ...]
    cascade_moves: Tuple[CascadeMove, ...]
    current_total: float
    optimal_total: float

    @property
    def delta(self) -> float:
        return self.optimal_total - self.current_total


@dataclass(frozen=True)
class FillOption:
    source: MoveSource
    player: Player
    points: float
    blocked: bool = False
    block_reason: Optional[str] = None


@dataclass(frozen=True)
class EmptySlotFix:
    slot: str
    slot_index: int
    best: Optional[FillOption]
    alternatives: Tuple[FillOption, ...]
    potential_delta: float
    reachable_delta: float


@dataclass(frozen=True)
class Floor:
    player_id: str
    points: float


@dataclass(frozen=True)
class ScoredFreeAgent:
    player: Player          # points already league-scored
    is_bye_or_out: bool = False

    @property
    def player_id(self) -> str:
        return self.player.player_id

    @property
    def points(self) -> float:
        return self.player.points


@dataclass(frozen=True)
class WaiverSuggestion:
    slot: str
    incoming: Player
    outgoing: Player
    delta: float


@dataclass(frozen=True)
class WaiverAlternative:
    outgoing: Player
    slot: str
    delta: float


@dataclass(frozen=True)
class ActionStep:
    kind: StepKind
    player_id: str
    player: str
    position: str
    slot: Optional[str] = None         # add: target slot
    from_slot: Optional[str] = None    # move
    to_slot: Optional[str] = None      # move
    blocked: bool = False
    block_reason: Optional[str] = None


@dataclass(frozen=True)
class ActionPlan:
    steps: Tuple[ActionStep, ...]
    potential_delta: float
    reachable_delta: float              # 0 when any step is blocked

    @property
    def blocked(self) -> bool:
        return any(step.blocked for step in self.steps)


@dataclass(frozen=True)
class GroupedWaiverSuggestion:
    player_id: str
    name: str
    position: str
    points: float
    best_delta: float
    alternatives: Tuple[WaiverAlternative, ...]
    action_plan: Optional[ActionPlan] = None


@dataclass(frozen=True)
class AutoSubConfig:
    enabled: bool = False
    allowed_per_week: int = 0
    require_later_start: bool = False


@dataclass(frozen=True)
class AutoSubSuggestion:
    player: Player
    points: float
    floor: float
    reason: str


@dataclass(frozen=True)
class AutoSubRecommendation:
    starter: Player
    slot: str
    slot_index: int
    suggestions: Tuple[AutoSubSuggestion, ...]


@dataclass(frozen=True)
class StarterFlag:
    slot: str
    slot_index: int
    tag: str                        # EMPTY, BYE, OUT, QUES
    player_id: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class AvailabilitySummary:
    not_playing: Tuple[StarterFlag, ...]
    questionable: Tuple[StarterFlag, ...]

    @property
    def not_playing_count(self) -> int:
        return len(self.not_playing)

    @property
    def questionable_count(self) -> int:
        return len(self.questionable)


@dataclass(frozen=True)
class TierEntry:
    label: str      # Elite, Starter, Flex-worthy, Depth, Replaceable
    name: str
    points: float


@dataclass(frozen=True)
class PosStrength:
    position: str
    demand: int
    starters_proj: float
    depth_proj_weighted: float
    replacement_baseline: float
    surplus: float
    shortage: float
    tiers: Tuple[TierEntry, ...]


@dataclass(frozen=True)
class TradeIdea:
    give: str
    for_need: str
    rationale: str


@dataclass(frozen=True)
class AddDropIdea:
    position: str
    add_player_id: str
    add_name: str
    gain: float
    drop_name: str


@dataclass(frozen=True)
class RosterHealthReport:
    by_position: Tuple[PosStrength, ...]
    strongest: Tuple[str, ...]
    weakest: Tuple[str, ...]
    trade_ideas: Tuple[TradeIdea, ...]
    add_drop_ideas: Tuple[AddDropIdea, ...]
