"""
Darts Scorer - Game Engine Base Classes

This module defines the foundational data structures and enums used throughout
the game engine. Value objects are immutable (frozen dataclasses); engines
replace them instead of mutating them, which keeps undo snapshots cheap and
safe to share.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


CRICKET_NUMBERS: tuple[int, ...] = (15, 16, 17, 18, 19, 20, 25)
BULL = 25
MAX_THROWS_PER_TURN = 3
DEFAULT_STARTING_SCORE = 501


class GameType(Enum):
    """Game types selectable at setup."""
    X301 = "301"
    X501 = "501"
    X701 = "701"
    CUSTOM = "Custom"
    CRICKET = "Cricket"

    @property
    def kind(self) -> "GameKind":
        """Which engine family plays this game type."""
        if self is GameType.CRICKET:
            return GameKind.CRICKET
        return GameKind.X01


class GameKind(Enum):
    """Engine family. Also the key of the persisted snapshot."""
    X01 = "x01"
    CRICKET = "cricket"


class MatchMode(Enum):
    """How the leg target of a match is interpreted."""
    FIRST_TO = "firstTo"
    BEST_OF = "bestOf"


STARTING_SCORES: dict[GameType, int] = {
    GameType.X301: 301,
    GameType.X501: 501,
    GameType.X701: 701,
}


@dataclass(frozen=True)
class Throw:
    """
    A single dart as reported by an input collaborator.

    Attributes:
        score: Segment value (not multiplied), or the turn total when manual
        multiplier: 1, 2 or 3
        segment: Board segment hit (0 for a miss, 25 for the bull)
        is_double: Double ring hit
        is_triple: Treble ring hit
        is_outer_bull: Single bull (25)
        is_inner_bull: Bullseye (50)
        is_manual: Synthetic throw standing in for a whole turn total
    """
    score: int
    multiplier: int = 1
    segment: int = 0
    is_double: bool = False
    is_triple: bool = False
    is_outer_bull: bool = False
    is_inner_bull: bool = False
    is_manual: bool = False

    @property
    def points(self) -> int:
        """Points this dart is worth on an X01 board."""
        return self.score * self.multiplier

    @classmethod
    def hit(cls, segment: int, multiplier: int = 1) -> "Throw":
        """Build a throw the way the numpad does, deriving the ring flags."""
        return cls(
            score=segment,
            multiplier=multiplier,
            segment=segment,
            is_double=multiplier == 2,
            is_triple=multiplier == 3,
            is_outer_bull=segment == BULL and multiplier == 1,
            is_inner_bull=segment == BULL and multiplier == 2,
        )

    @classmethod
    def miss(cls) -> "Throw":
        return cls.hit(0)

    @classmethod
    def manual(cls, amount: int) -> "Throw":
        """Synthetic throw carrying a pre-computed turn total."""
        return cls(score=amount, multiplier=1, segment=amount, is_manual=True)

    @classmethod
    def from_dict(cls, data: dict) -> "Throw":
        """Create a Throw from its snapshot dictionary."""
        return cls(
            score=int(data["score"]),
            multiplier=int(data.get("multiplier", 1)),
            segment=int(data.get("segment", 0)),
            is_double=bool(data.get("is_double", False)),
            is_triple=bool(data.get("is_triple", False)),
            is_outer_bull=bool(data.get("is_outer_bull", False)),
            is_inner_bull=bool(data.get("is_inner_bull", False)),
            is_manual=bool(data.get("is_manual", False)),
        )


@dataclass(frozen=True)
class MatchConfig:
    """
    Match length configuration (X01 legs).

    Attributes:
        mode: First-to or best-of
        target: Leg count the mode refers to
    """
    mode: MatchMode = MatchMode.FIRST_TO
    target: int = 1

    @property
    def legs_to_win(self) -> int:
        """Legs a player needs to take the match."""
        if self.mode is MatchMode.BEST_OF:
            return self.target // 2 + 1
        return self.target

    def is_won_with(self, legs_won: int) -> bool:
        return legs_won >= self.legs_to_win

    @classmethod
    def from_dict(cls, data: dict | None) -> "MatchConfig":
        if not data:
            return cls()
        return cls(mode=MatchMode(data.get("mode", "firstTo")), target=int(data.get("target", 1)))


@dataclass(frozen=True)
class Player:
    """
    A player's standing in the current game.

    Attributes:
        id: Unique player id (generated per game)
        name: Display name supplied at game start
        score: Remaining points (X01) or points scored (Cricket)
        legs_won: Legs taken in the current match
        sets_won: Sets taken (carried, not scored by the engines)
        cricket_data: Marks per cricket number, None for X01 players
    """
    id: str
    name: str
    score: int
    legs_won: int = 0
    sets_won: int = 0
    cricket_data: dict[int, int] | None = None

    def marks(self, number: int) -> int:
        """Marks on a cricket number (0 when not tracked)."""
        if self.cricket_data is None:
            return 0
        return self.cricket_data.get(number, 0)

    def has_closed(self, number: int) -> bool:
        return self.marks(number) >= 3

    @classmethod
    def from_dict(cls, data: dict) -> "Player":
        """Create a Player from its snapshot dictionary (JSON keys are strings)."""
        marks = data.get("cricket_data")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            score=int(data["score"]),
            legs_won=int(data.get("legs_won", 0)),
            sets_won=int(data.get("sets_won", 0)),
            cricket_data=(
                {int(k): int(v) for k, v in marks.items()} if marks is not None else None
            ),
        )


@dataclass(frozen=True)
class Turn:
    """
    One player's visit to the board.

    Attributes:
        id: Unique turn id
        player_id: Player throwing this turn
        throws: Darts thrown so far (at most 3, exactly 1 when manual)
        score_before: Player score when the turn opened
        score_after: Player score after the darts thrown so far
        is_bust: Turn was busted; no further darts are accepted
    """
    id: str
    player_id: str
    throws: tuple[Throw, ...] = field(default_factory=tuple)
    score_before: int = 0
    score_after: int = 0
    is_bust: bool = False

    @property
    def is_full(self) -> bool:
        return len(self.throws) >= MAX_THROWS_PER_TURN

    @property
    def total(self) -> int:
        """Sum of the darts' X01 points."""
        return sum(t.points for t in self.throws)

    @classmethod
    def from_dict(cls, data: dict) -> "Turn":
        return cls(
            id=str(data["id"]),
            player_id=str(data["player_id"]),
            throws=tuple(Throw.from_dict(t) for t in data.get("throws", ())),
            score_before=int(data.get("score_before", 0)),
            score_after=int(data.get("score_after", 0)),
            is_bust=bool(data.get("is_bust", False)),
        )


class EventKind(Enum):
    """Mutations an engine reports to its listeners."""
    INIT_GAME = "init-game"
    THROW = "throw"
    NEXT_PLAYER = "next-player"
    UNDO = "undo"
    MANUAL_TURN = "manual-turn"
    NEXT_LEG = "next-leg"
    RESET = "reset"


@dataclass(frozen=True)
class EngineEvent:
    """
    Notification emitted after a committed engine mutation.

    Attributes:
        kind: Which operation committed
        data: Operation arguments, JSON-compatible
    """
    kind: EventKind
    data: dict[str, Any] = field(default_factory=dict)


def to_plain(value: Any) -> Any:
    """Convert engine values to JSON-compatible structures."""
    if isinstance(value, Enum):
        return value.value
    if hasattr(value, "__dataclass_fields__"):
        return {k: to_plain(v) for k, v in asdict(value).items()}
    if isinstance(value, dict):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value
