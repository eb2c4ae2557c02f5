"""
Darts Scorer - Cricket Engine

Mark-based scoring on 15-20 and the bull.

Game Rules:
- Single / double / treble = 1 / 2 / 3 marks; 3 marks close a number
- Marks beyond the third score segment x excess points
- A closed number keeps scoring while any opponent has it open
- A number closed by everyone is dead: further hits score nothing
- Win: all seven numbers closed and no opponent ahead on points
- Other segments are recorded but do nothing
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, ClassVar, Sequence

from src.engine.base import (
    CRICKET_NUMBERS,
    EventKind,
    GameKind,
    GameType,
    MatchConfig,
    Player,
    Throw,
    Turn,
    to_plain,
)
from src.engine.ledger import MatchEngine, new_id

logger = logging.getLogger(__name__)

Roster = tuple[Player, ...]


@dataclass(frozen=True)
class MarkResult:
    """
    Effect of one dart on the thrower's cricket board.

    Attributes:
        marks: Marks on the number after the dart (capped at 3)
        points: Points scored by the dart
    """
    marks: int
    points: int


def empty_marks() -> dict[int, int]:
    return {number: 0 for number in CRICKET_NUMBERS}


def is_cricket_number(segment: int) -> bool:
    return segment in CRICKET_NUMBERS


def is_dead_for(roster: Sequence[Player], player_id: str, number: int) -> bool:
    """True when every opponent of `player_id` has closed `number`."""
    return all(p.id == player_id or p.has_closed(number) for p in roster)


def score_marks(current_marks: int, multiplier: int, segment: int, dead: bool) -> MarkResult:
    """
    Marks and points for a dart on a cricket number.

    Args:
        current_marks: Thrower's marks on the number before the dart
        multiplier: 1, 2 or 3
        segment: The cricket number hit
        dead: Every opponent has closed the number already

    Returns:
        MarkResult with the new mark count and the points earned
    """
    if current_marks >= 3:
        return MarkResult(marks=3, points=0 if dead else segment * multiplier)

    total = current_marks + multiplier
    excess = max(0, total - 3)
    points = 0 if dead else segment * excess
    return MarkResult(marks=min(3, total), points=points)


def apply_throw(roster: Roster, index: int, t: Throw) -> tuple[Roster, int]:
    """Roster after `t` was thrown by the player at `index`, plus points scored."""
    if not is_cricket_number(t.segment):
        return roster, 0

    player = roster[index]
    result = score_marks(
        player.marks(t.segment),
        t.multiplier,
        t.segment,
        is_dead_for(roster, player.id, t.segment),
    )
    marks = dict(player.cricket_data or empty_marks())
    marks[t.segment] = result.marks
    updated = replace(player, score=player.score + result.points, cricket_data=marks)
    return roster[:index] + (updated,) + roster[index + 1:], result.points


def has_won(roster: Sequence[Player], index: int) -> bool:
    player = roster[index]
    if not all(player.has_closed(n) for n in CRICKET_NUMBERS):
        return False
    return all(p.score <= player.score for p in roster)


class CricketEngine(MatchEngine):
    """
    Stateful Cricket game.

    States: no game, in progress, won. Undo restores whole-roster snapshots
    because marks cannot be reversed arithmetically once a number closes.
    Undo reaches back across one turn boundary only.
    """

    KIND: ClassVar[GameKind] = GameKind.CRICKET
    DEFAULT_GAME_TYPE: ClassVar[GameType] = GameType.CRICKET

    def _clear(self) -> None:
        super()._clear()
        # One roster per dart of the open turn, taken before the dart landed.
        self.turn_snapshots: list[Roster] = []
        # Roster at the start of the last closed turn; None once it was reopened.
        self.last_turn_roster: Roster | None = None

    def init_game(
        self,
        player_names: Sequence[str],
        match_config: MatchConfig | None = None,
    ) -> None:
        """Start a new game, replacing whatever was there before."""
        if not player_names:
            logger.warning("Cricket game not started: no players given")
            return

        self._clear()
        self.game_id = new_id()
        self.match_config = match_config or MatchConfig()
        self.players = [
            Player(id=new_id(), name=name, score=0, cricket_data=empty_marks())
            for name in player_names
        ]
        self._start_turn(self.players[0].id, 0)

        logger.info("Cricket game %s started: %d players", self.game_id, len(self.players))
        self._emit(
            EventKind.INIT_GAME,
            type=GameType.CRICKET.value,
            playerNames=list(player_names),
            customScore=None,
            matchConfig=to_plain(self.match_config),
        )

    def add_throw(self, t: Throw) -> None:
        """Apply one dart to the open turn."""
        if self.winner_id or self.leg_winner_id:
            logger.debug("Throw ignored: game already won")
            return
        turn = self.current_turn
        if turn is None or turn.is_full:
            logger.debug("Throw ignored: no open turn or turn full")
            return

        index = self.current_player_index
        before = tuple(self.players)
        after, points = apply_throw(before, index, t)

        self.turn_snapshots.append(before)
        self.players = list(after)
        self.current_turn = replace(
            turn,
            throws=turn.throws + (t,),
            score_after=turn.score_after + points,
        )

        if has_won(after, index):
            self.winner_id = after[index].id
            logger.info("Cricket game won by %s with %d points", after[index].name, after[index].score)

        self._emit(EventKind.THROW, throw=to_plain(t))

    def _undo_last_throw(self, turn: Turn) -> None:
        if self.turn_snapshots:
            roster = self.turn_snapshots.pop()
        else:
            # Only reachable for state persisted without snapshots.
            roster = tuple(self.players)
            logger.warning("No snapshot for undone dart; marks left as they are")
        self.players = list(roster)
        self.current_turn = replace(
            turn,
            throws=turn.throws[:-1],
            score_after=roster[self.current_player_index].score,
        )

    def _on_turn_closing(self, turn: Turn) -> None:
        self.last_turn_roster = self.turn_snapshots[0] if self.turn_snapshots else tuple(self.players)

    def _start_turn(self, player_id: str, score_before: int) -> Turn:
        self.turn_snapshots = []
        return super()._start_turn(player_id, score_before)

    def _can_rewind(self) -> bool:
        # Only the most recently closed turn keeps its starting roster.
        return self.last_turn_roster is not None

    def _on_turn_rewound(self, turn: Turn, index: int) -> None:
        # Rebuild the per-dart snapshots by replaying the turn from its start.
        roster = self.last_turn_roster
        self.last_turn_roster = None
        self.turn_snapshots = []
        for t in turn.throws:
            self.turn_snapshots.append(roster)
            roster, _ = apply_throw(roster, index, t)

    def snapshot(self) -> dict[str, Any]:
        data = super().snapshot()
        data["turn_snapshots"] = [to_plain(r) for r in self.turn_snapshots]
        data["last_turn_roster"] = to_plain(self.last_turn_roster)
        return data

    def _restore(self, data: dict[str, Any]) -> None:
        super()._restore(data)
        self.turn_snapshots = [
            tuple(Player.from_dict(p) for p in roster)
            for roster in data.get("turn_snapshots", [])
        ]
        last = data.get("last_turn_roster")
        self.last_turn_roster = tuple(Player.from_dict(p) for p in last) if last else None
