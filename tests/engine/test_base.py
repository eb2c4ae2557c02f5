"""
Darts Scorer - Base Classes Tests

Tests for dataclasses, enums and snapshot helpers.
"""

import pytest

from src.engine.base import (
    CRICKET_NUMBERS,
    GameKind,
    GameType,
    MatchConfig,
    MatchMode,
    Player,
    Throw,
    Turn,
    to_plain,
)
from src.engine.ledger import MatchEngine


class TestGameType:
    """Tests for GameType enum."""

    def test_values(self):
        assert GameType.X501.value == "501"
        assert GameType.CUSTOM.value == "Custom"

    @pytest.mark.parametrize("game_type", ["301", "501", "701", "Custom"])
    def test_x01_kinds(self, game_type):
        assert GameType(game_type).kind is GameKind.X01

    def test_cricket_kind(self):
        assert GameType.CRICKET.kind is GameKind.CRICKET


class TestThrow:
    """Tests for Throw construction."""

    def test_treble(self):
        t = Throw.hit(20, 3)
        assert t.score == 20
        assert t.points == 60
        assert t.is_triple and not t.is_double

    def test_double(self):
        t = Throw.hit(16, 2)
        assert t.is_double
        assert t.points == 32

    def test_outer_bull(self):
        t = Throw.hit(25)
        assert t.is_outer_bull and not t.is_inner_bull

    def test_bullseye(self):
        t = Throw.hit(25, 2)
        assert t.is_inner_bull
        assert t.points == 50

    def test_miss(self):
        assert Throw.miss().points == 0

    def test_manual(self):
        t = Throw.manual(100)
        assert t.is_manual
        assert t.points == 100

    def test_immutable(self):
        t = Throw.hit(20)
        with pytest.raises(AttributeError):
            t.score = 19


class TestMatchConfig:
    """Tests for legs-to-win arithmetic."""

    def test_default_is_single_leg(self):
        assert MatchConfig().legs_to_win == 1

    @pytest.mark.parametrize("target", [1, 3, 5])
    def test_first_to(self, target):
        assert MatchConfig(MatchMode.FIRST_TO, target).legs_to_win == target

    @pytest.mark.parametrize("target,needed", [(1, 1), (3, 2), (5, 3), (4, 3), (7, 4)])
    def test_best_of(self, target, needed):
        assert MatchConfig(MatchMode.BEST_OF, target).legs_to_win == needed

    def test_is_won_with(self):
        config = MatchConfig(MatchMode.BEST_OF, 5)
        assert not config.is_won_with(2)
        assert config.is_won_with(3)

    def test_from_dict(self):
        config = MatchConfig.from_dict({"mode": "bestOf", "target": 3})
        assert config == MatchConfig(MatchMode.BEST_OF, 3)

    def test_from_empty_dict(self):
        assert MatchConfig.from_dict(None) == MatchConfig()


class TestPlayer:
    """Tests for cricket mark helpers."""

    def test_marks_without_cricket_data(self):
        assert Player(id="p", name="A", score=501).marks(20) == 0

    def test_has_closed(self):
        player = Player(id="p", name="A", score=0, cricket_data={20: 3, 19: 2})
        assert player.has_closed(20)
        assert not player.has_closed(19)

    def test_from_dict_accepts_string_keys(self):
        player = Player.from_dict(
            {"id": "p", "name": "A", "score": 0, "cricket_data": {"20": 3}}
        )
        assert player.cricket_data == {20: 3}


class TestSnapshots:
    """Tests for plain conversion and rebuilding."""

    def test_turn_round_trip(self):
        turn = Turn(
            id="t1",
            player_id="p1",
            throws=(Throw.hit(20, 3), Throw.manual(40)),
            score_before=501,
            score_after=401,
        )
        assert Turn.from_dict(to_plain(turn)) == turn

    def test_enum_values_are_plain(self):
        assert to_plain(MatchConfig(MatchMode.BEST_OF, 3)) == {"mode": "bestOf", "target": 3}

    def test_cricket_keys_become_strings(self):
        marks = {n: 0 for n in CRICKET_NUMBERS}
        plain = to_plain(Player(id="p", name="A", score=0, cricket_data=marks))
        assert set(plain["cricket_data"]) == {str(n) for n in CRICKET_NUMBERS}


class TestMatchEngine:
    """Tests for the shared turn ledger base."""

    def test_variant_must_undo_darts(self):
        class NoUndo(MatchEngine):
            DEFAULT_GAME_TYPE = GameType.X501

        with pytest.raises(TypeError):
            NoUndo()

    def test_variant_with_undo_instantiates(self):
        class Minimal(MatchEngine):
            DEFAULT_GAME_TYPE = GameType.X501

            def _undo_last_throw(self, turn):
                pass

        engine = Minimal()
        assert not engine.is_active
        assert engine.history == []
