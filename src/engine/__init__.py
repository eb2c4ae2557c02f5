"""
Darts Scorer Game Engine.

Pure Python rules engines with zero UI/database dependencies.
Handles throw scoring, busts, turn rotation, leg/match wins and undo.
"""

from typing import Any, Protocol

from src.engine.base import (
    CRICKET_NUMBERS,
    EngineEvent,
    EventKind,
    GameKind,
    GameType,
    MatchConfig,
    MatchMode,
    Player,
    Throw,
    Turn,
)
from src.engine.cricket import CricketEngine
from src.engine.ledger import MatchEngine
from src.engine.x01 import X01Engine


class ScoringEngine(Protocol):
    """Operations an input surface may call on either engine."""

    def add_throw(self, t: Throw) -> None: ...

    def undo_throw(self) -> None: ...

    def next_player(self) -> None: ...

    def manual_turn(self, amount: int) -> None: ...

    def reset_game(self) -> None: ...

    def snapshot(self) -> dict[str, Any]: ...


_ENGINES: dict[GameKind, type[MatchEngine]] = {
    GameKind.X01: X01Engine,
    GameKind.CRICKET: CricketEngine,
}


def engine_class(kind: GameKind | GameType) -> type[MatchEngine]:
    """Engine class for a game kind, or for the kind a game type belongs to."""
    if isinstance(kind, GameType):
        kind = kind.kind
    return _ENGINES[kind]


__all__ = [
    # Data Classes
    "EngineEvent",
    "MatchConfig",
    "Player",
    "Throw",
    "Turn",
    # Enums
    "EventKind",
    "GameKind",
    "GameType",
    "MatchMode",
    # Engines
    "CricketEngine",
    "MatchEngine",
    "ScoringEngine",
    "X01Engine",
    "engine_class",
    # Constants
    "CRICKET_NUMBERS",
]
