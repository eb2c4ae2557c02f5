"""
Darts Scorer - X01 Engine

Countdown scoring for 301 / 501 / 701 / custom starting scores, played in
legs towards a first-to or best-of match target.

Rules:
- Each dart subtracts score x multiplier from the remaining total
- Going below zero busts the turn: the score reverts, no more darts count
- Leaving exactly 1 busts as well (except in custom games); there is no
  double-out check, any dart landing on exactly 0 wins the leg
- Winning enough legs wins the match
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, ClassVar, Sequence

from src.engine.base import (
    DEFAULT_STARTING_SCORE,
    STARTING_SCORES,
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


def resolve_starting_score(game_type: GameType, custom_score: int | None = None) -> int:
    """Starting score for a game type; custom games fall back to 501."""
    if game_type is GameType.CUSTOM and custom_score:
        return custom_score
    return STARTING_SCORES.get(game_type, DEFAULT_STARTING_SCORE)


def is_bust(remaining: int, game_type: GameType) -> bool:
    """Whether leaving `remaining` points busts the turn."""
    if remaining < 0:
        return True
    return remaining == 1 and game_type is not GameType.CUSTOM


class X01Engine(MatchEngine):
    """
    Stateful X01 match.

    States: no game, in leg, leg won (waiting for next_leg), match won.
    """

    KIND: ClassVar[GameKind] = GameKind.X01
    DEFAULT_GAME_TYPE: ClassVar[GameType] = GameType.X501

    def _clear(self) -> None:
        super()._clear()
        self.starting_score: int = DEFAULT_STARTING_SCORE
        self.custom_score: int | None = None

    def init_game(
        self,
        game_type: GameType | str,
        player_names: Sequence[str],
        custom_score: int | None = None,
        match_config: MatchConfig | None = None,
    ) -> None:
        """Start a new match, replacing whatever was there before."""
        if not player_names:
            logger.warning("X01 game not started: no players given")
            return

        try:
            game_type = GameType(game_type)
        except ValueError:
            logger.debug("Unknown game type %r, playing %s", game_type, self.DEFAULT_GAME_TYPE.value)
            game_type = self.DEFAULT_GAME_TYPE
        if game_type.kind is not GameKind.X01:
            logger.warning("X01 game not started: %s is not an X01 game", game_type.value)
            return
        starting = resolve_starting_score(game_type, custom_score)

        self._clear()
        self.game_id = new_id()
        self.game_type = game_type
        self.starting_score = starting
        self.custom_score = custom_score
        self.match_config = match_config or MatchConfig()
        self.players = [
            Player(id=new_id(), name=name, score=starting) for name in player_names
        ]
        self._start_turn(self.players[0].id, starting)

        logger.info(
            "X01 game %s started: %s from %d, %d players",
            self.game_id, game_type.value, starting, len(self.players),
        )
        self._emit(
            EventKind.INIT_GAME,
            type=game_type.value,
            playerNames=list(player_names),
            customScore=custom_score,
            matchConfig=to_plain(self.match_config),
        )

    def add_throw(self, t: Throw) -> None:
        """Apply one dart to the open turn."""
        if self.winner_id or self.leg_winner_id:
            logger.debug("Throw ignored: leg or match already decided")
            return
        turn = self.current_turn
        if turn is None or turn.is_full or turn.is_bust:
            logger.debug("Throw ignored: no open turn, turn full or bust")
            return

        remaining = turn.score_after - t.points
        bust = is_bust(remaining, self.game_type)

        self.current_turn = replace(
            turn,
            throws=turn.throws + (t,),
            score_after=turn.score_before if bust else remaining,
            is_bust=bust,
        )
        index = self.current_player_index
        self._update_player(index, score=self.current_turn.score_after)

        if bust:
            logger.debug("Bust: %d would leave %d", t.points, remaining)
        elif remaining == 0:
            self._award_leg(index)

        self._emit(EventKind.THROW, throw=to_plain(t))

    def manual_turn(self, amount: int) -> None:
        """Score a whole turn from a single total."""
        if self.winner_id or self.leg_winner_id:
            logger.debug("Manual turn ignored: leg or match already decided")
            return
        turn = self.current_turn
        if turn is None:
            logger.debug("Manual turn ignored: no open turn")
            return

        remaining = turn.score_before - amount
        bust = remaining < 0

        self.current_turn = replace(
            turn,
            throws=(Throw.manual(amount),),
            score_after=turn.score_before if bust else remaining,
            is_bust=bust,
        )
        index = self.current_player_index
        self._update_player(index, score=self.current_turn.score_after)

        if not bust and remaining == 0:
            self._award_leg(index)

        if not self.winner_id and not self.leg_winner_id:
            self._close_turn()

        self._emit(EventKind.MANUAL_TURN, amount=amount)

    def _award_leg(self, index: int) -> None:
        """Credit a finished leg and decide whether it also took the match."""
        player = self._update_player(index, legs_won=self.players[index].legs_won + 1)

        if self.match_config.is_won_with(player.legs_won):
            self.winner_id = player.id
            self.leg_winner_id = None
            logger.info("Match won by %s (%d legs)", player.name, player.legs_won)
        else:
            self.leg_winner_id = player.id
            logger.info("Leg won by %s (%d legs)", player.name, player.legs_won)

    def _undo_last_throw(self, turn: Turn) -> None:
        index = self._player_index(turn.player_id)
        if turn.player_id in (self.winner_id, self.leg_winner_id):
            self._update_player(index, legs_won=max(0, self.players[index].legs_won - 1))

        throws = turn.throws[:-1]
        score = turn.score_before - sum(t.points for t in throws)
        self.current_turn = replace(turn, throws=throws, score_after=score, is_bust=False)
        self._update_player(index, score=score)

    def _on_turn_rewound(self, turn: Turn, index: int) -> None:
        self._update_player(index, score=turn.score_before)

    def _on_turn_closing(self, turn: Turn) -> None:
        index = self._player_index(turn.player_id)
        if self.players[index].score != turn.score_after:
            self._update_player(index, score=turn.score_after)

    def next_leg(self) -> None:
        """Start the next leg once the previous one has a winner."""
        if not self.leg_winner_id:
            logger.debug("Next leg ignored: leg still in progress")
            return

        starter = (self.current_player_index + 1) % len(self.players)
        self.players = [replace(p, score=self.starting_score) for p in self.players]
        self.current_player_index = starter
        self.history = []
        self.leg_winner_id = None
        self._start_turn(self.players[starter].id, self.starting_score)

        logger.info("Leg started, %s to throw first", self.players[starter].name)
        self._emit(EventKind.NEXT_LEG)

    def snapshot(self) -> dict[str, Any]:
        data = super().snapshot()
        data["starting_score"] = self.starting_score
        data["custom_score"] = self.custom_score
        return data

    def _restore(self, data: dict[str, Any]) -> None:
        super()._restore(data)
        self.starting_score = int(data.get("starting_score") or DEFAULT_STARTING_SCORE)
        self.custom_score = data.get("custom_score")
