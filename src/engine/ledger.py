"""
Darts Scorer - Turn Ledger

Shared open-turn / history bookkeeping for both rules engines. The ledger
owns the current turn, the list of closed turns and the two-level undo
policy; subclasses supply the variant-specific way a single dart is undone.

Rule violations never raise. An illegal call leaves the state untouched and
emits nothing, so callers read legality off the public state.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Callable, ClassVar

from src.engine.base import (
    EngineEvent,
    EventKind,
    GameKind,
    GameType,
    MatchConfig,
    Player,
    Turn,
    to_plain,
)

logger = logging.getLogger(__name__)

Listener = Callable[[EngineEvent], None]


def new_id() -> str:
    return str(uuid.uuid4())


class MatchEngine(ABC):
    """
    Base state container for a darts match.

    Holds the state shared by both variants and implements turn rotation and
    undo. All mutation goes through the public operations; listeners are told
    about every committed mutation.
    """

    KIND: ClassVar[GameKind]
    DEFAULT_GAME_TYPE: ClassVar[GameType]

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._clear()

    def _clear(self) -> None:
        self.game_id: str = ""
        self.game_type: GameType = self.DEFAULT_GAME_TYPE
        self.players: list[Player] = []
        self.current_turn: Turn | None = None
        self.history: list[Turn] = []
        self.current_player_index: int = 0
        self.winner_id: str | None = None
        self.leg_winner_id: str | None = None
        self.match_config: MatchConfig = MatchConfig()

    # -- Listeners -------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, kind: EventKind, **data: Any) -> None:
        event = EngineEvent(kind=kind, data=data)
        for listener in list(self._listeners):
            listener(event)

    # -- Read-only views -------------------------------------------------

    @property
    def is_active(self) -> bool:
        """True while a game is in progress or finished but not reset."""
        return self.game_id != ""

    @property
    def is_finished(self) -> bool:
        return self.winner_id is not None

    @property
    def current_player(self) -> Player | None:
        if not self.players:
            return None
        return self.players[self.current_player_index]

    def player(self, player_id: str) -> Player | None:
        for p in self.players:
            if p.id == player_id:
                return p
        return None

    def _player_index(self, player_id: str) -> int:
        for i, p in enumerate(self.players):
            if p.id == player_id:
                return i
        raise KeyError(player_id)

    def _update_player(self, index: int, **changes: Any) -> Player:
        updated = replace(self.players[index], **changes)
        self.players[index] = updated
        return updated

    # -- Ledger ----------------------------------------------------------

    def _start_turn(self, player_id: str, score_before: int) -> Turn:
        self.current_turn = Turn(
            id=new_id(),
            player_id=player_id,
            throws=(),
            score_before=score_before,
            score_after=score_before,
            is_bust=False,
        )
        return self.current_turn

    def _close_turn(self) -> None:
        """Push the open turn to history and hand the board to the next player."""
        finished = self.current_turn
        if finished is None:
            return
        self._on_turn_closing(finished)
        self.history.append(finished)
        self.current_player_index = (self.current_player_index + 1) % len(self.players)
        upcoming = self.players[self.current_player_index]
        self._start_turn(upcoming.id, upcoming.score)

    def _on_turn_closing(self, turn: Turn) -> None:
        """Hook run just before a turn is appended to history."""

    def _rewind_turn(self) -> None:
        previous = self.history.pop()
        index = self._player_index(previous.player_id)
        self.current_turn = previous
        self.current_player_index = index
        self._on_turn_rewound(previous, index)

    def _on_turn_rewound(self, turn: Turn, index: int) -> None:
        """Hook run after a closed turn became the current turn again."""

    def _can_rewind(self) -> bool:
        """Whether the last closed turn may be reopened."""
        return True

    @abstractmethod
    def _undo_last_throw(self, turn: Turn) -> None:
        """Take the last dart of `turn` back off the players."""

    # -- Operations shared by both variants ------------------------------

    def undo_throw(self) -> None:
        """
        Reverse one atomic step.

        Removes the most recent dart of the open turn, or when the open turn
        is empty, reopens the last closed turn. Either path leaves the game
        in a non-terminal state.
        """
        turn = self.current_turn
        if turn is not None and turn.throws:
            self._undo_last_throw(turn)
        elif self.history and self._can_rewind():
            self._rewind_turn()
        else:
            logger.debug("Undo ignored: nothing to undo")
            return

        self.winner_id = None
        self.leg_winner_id = None
        self._emit(EventKind.UNDO)

    def next_player(self) -> None:
        """Close the open turn and advance the rotation."""
        if self.winner_id or self.leg_winner_id or self.current_turn is None:
            logger.debug("Next player ignored: no open turn or game decided")
            return
        self._close_turn()
        self._emit(EventKind.NEXT_PLAYER)

    def manual_turn(self, amount: int) -> None:
        logger.debug("Manual turn ignored by %s engine", self.KIND.value)

    def reset_game(self) -> None:
        """Tear the game down to the no-game baseline."""
        self._clear()
        logger.info("%s game reset", self.KIND.value)
        self._emit(EventKind.RESET)

    # -- Snapshots -------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Full engine state as a JSON-compatible dictionary."""
        return {
            "kind": self.KIND.value,
            "game_id": self.game_id,
            "game_type": self.game_type.value,
            "players": to_plain(self.players),
            "current_turn": to_plain(self.current_turn),
            "history": to_plain(self.history),
            "current_player_index": self.current_player_index,
            "winner_id": self.winner_id,
            "leg_winner_id": self.leg_winner_id,
            "match_config": to_plain(self.match_config),
        }

    def _restore(self, data: dict[str, Any]) -> None:
        self.game_id = data.get("game_id", "")
        self.game_type = GameType(data.get("game_type", self.DEFAULT_GAME_TYPE.value))
        self.players = [Player.from_dict(p) for p in data.get("players", [])]
        turn = data.get("current_turn")
        self.current_turn = Turn.from_dict(turn) if turn else None
        self.history = [Turn.from_dict(t) for t in data.get("history", [])]
        self.current_player_index = int(data.get("current_player_index", 0))
        self.winner_id = data.get("winner_id")
        self.leg_winner_id = data.get("leg_winner_id")
        self.match_config = MatchConfig.from_dict(data.get("match_config"))

    @classmethod
    def from_snapshot(cls, data: dict[str, Any] | None) -> "MatchEngine":
        """Rebuild an engine from a persisted snapshot (empty engine for None)."""
        engine = cls()
        if data:
            engine._restore(data)
        return engine
