"""
Darts Scorer - Input Validation Utilities

Validation for values arriving from outside the process (relay payloads,
persisted records, settings). The engines themselves never validate: an
odd segment is simply a non-scoring dart. These helpers either return the
normalized value or raise a descriptive ValueError.
"""

from typing import Any, Sequence

from src.engine.base import BULL, GameType, MatchConfig, MatchMode

VALID_MULTIPLIERS = frozenset({1, 2, 3})
MAX_NAME_LENGTH = 30


def _require_int(value: Any, label: str) -> int:
    # bool is an int subclass; a stray True must not score a single 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an integer, got {type(value).__name__}.")
    return value


def validate_player_names(names: Sequence[str]) -> list[str]:
    """
    Validate player names for a new game.

    Args:
        names: Display names in throwing order

    Returns:
        Names with surrounding whitespace stripped

    Raises:
        ValueError: If no names are given or a name is empty / too long
    """
    if isinstance(names, str) or not names:
        raise ValueError("At least 1 player name required.")

    cleaned = []
    for i, name in enumerate(names):
        if not isinstance(name, str):
            raise ValueError(f"Player name at index {i} must be a string, got {type(name).__name__}.")
        name = name.strip()
        if not name:
            raise ValueError(f"Player name at index {i} is empty.")
        if len(name) > MAX_NAME_LENGTH:
            raise ValueError(f"Player name at index {i} exceeds {MAX_NAME_LENGTH} characters.")
        cleaned.append(name)
    return cleaned


def validate_multiplier(multiplier: Any) -> int:
    """Validate a dart multiplier (1, 2 or 3)."""
    multiplier = _require_int(multiplier, "Multiplier")
    if multiplier not in VALID_MULTIPLIERS:
        raise ValueError(f"Multiplier must be 1, 2 or 3, got {multiplier}.")
    return multiplier


def validate_segment(segment: Any) -> int:
    """Validate a board segment (0-20 or 25)."""
    segment = _require_int(segment, "Segment")
    if not (0 <= segment <= 20 or segment == BULL):
        raise ValueError(f"Segment must be 0-20 or {BULL}, got {segment}.")
    return segment


def validate_manual_amount(amount: Any) -> int:
    """Validate a manually entered turn total."""
    amount = _require_int(amount, "Manual amount")
    if amount < 0:
        raise ValueError(f"Manual amount cannot be negative, got {amount}.")
    return amount


def validate_custom_score(score: Any) -> int | None:
    """Validate the starting score of a custom X01 game (None = default)."""
    if score is None:
        return None
    score = _require_int(score, "Custom score")
    if score <= 1:
        raise ValueError(f"Custom score must be greater than 1, got {score}.")
    return score


def validate_game_type(value: Any) -> GameType:
    try:
        return GameType(value)
    except ValueError:
        valid = ", ".join(t.value for t in GameType)
        raise ValueError(f"Game type must be one of {valid}, got {value!r}.") from None


def validate_match_config(data: dict[str, Any] | None) -> MatchConfig:
    """
    Validate a match configuration dictionary.

    Args:
        data: {"mode": "firstTo" | "bestOf", "target": int} or None

    Returns:
        MatchConfig (default first-to-1 for None)

    Raises:
        ValueError: If the mode is unknown or the target not positive
    """
    if data is None:
        return MatchConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Match config must be a mapping, got {type(data).__name__}.")

    try:
        mode = MatchMode(data.get("mode", MatchMode.FIRST_TO.value))
    except ValueError:
        raise ValueError(f"Match mode must be firstTo or bestOf, got {data.get('mode')!r}.") from None

    target = _require_int(data.get("target", 1), "Match target")
    if target <= 0:
        raise ValueError(f"Match target must be positive, got {target}.")
    return MatchConfig(mode=mode, target=target)
