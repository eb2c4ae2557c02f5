"""
Darts Scorer - Realtime Event Definitions

Relay event kinds and payloads exchanged between peers of an online game,
plus classification of invitation table changes.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from src.engine.base import EventKind, Throw
from src.engine.validators import validate_multiplier, validate_segment

SENDER_KEY = "senderId"


class RelayEvent(Enum):
    """Mutations relayed to the other peer, by wire name."""

    INIT_GAME = "init-game"
    THROW = "throw"
    NEXT_PLAYER = "next-player"
    UNDO = "undo"
    MANUAL_TURN = "manual-turn"

    @classmethod
    def from_kind(cls, kind: EventKind) -> "RelayEvent | None":
        """Relay event for an engine event kind; None for local-only kinds."""
        try:
            return cls(kind.value)
        except ValueError:
            return None


class InvitationEvent(Enum):
    """Changes to game invitations a player cares about."""

    RECEIVED = auto()
    ACCEPTED = auto()
    DECLINED = auto()


@dataclass
class EventPayload:
    """Wrapper for one relayed operation."""

    event: RelayEvent
    session_id: str
    sender_id: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_broadcast(self) -> dict[str, Any]:
        """Message body as sent on the channel: arguments plus sender id."""
        return {**self.data, SENDER_KEY: self.sender_id}

    @classmethod
    def from_broadcast(
        cls, event_name: str, session_id: str, message: dict[str, Any]
    ) -> "EventPayload":
        """Parse a received broadcast; accepts the bare body or its envelope."""
        body = message.get("payload", message)
        if not isinstance(body, dict):
            raise ValueError(f"Broadcast body must be a mapping, got {type(body).__name__}.")
        data = {k: v for k, v in body.items() if k != SENDER_KEY}
        sender = body.get(SENDER_KEY)
        return cls(
            event=RelayEvent(event_name),
            session_id=session_id,
            sender_id=str(sender) if sender is not None else None,
            data=data,
        )


_WIRE_FLAGS = {
    "isDouble": "is_double",
    "isTriple": "is_triple",
    "isOuterBull": "is_outer_bull",
    "isInnerBull": "is_inner_bull",
    "isManual": "is_manual",
}


def throw_to_wire(t: Throw) -> dict[str, Any]:
    """Encode a dart the way web peers expect it (camelCase flags)."""
    wire: dict[str, Any] = {
        "score": t.score,
        "multiplier": t.multiplier,
        "segment": t.segment,
    }
    for wire_key, attr in _WIRE_FLAGS.items():
        wire[wire_key] = getattr(t, attr)
    return wire


def throw_from_wire(data: dict[str, Any]) -> Throw:
    """Decode and validate a relayed dart.

    Raises:
        ValueError: If the dart is malformed
    """
    if not isinstance(data, dict):
        raise ValueError(f"Throw must be a mapping, got {type(data).__name__}.")

    is_manual = bool(data.get("isManual", data.get("is_manual", False)))
    multiplier = validate_multiplier(data.get("multiplier", 1))
    segment = data.get("segment", 0)
    if not is_manual:
        segment = validate_segment(segment)
    score = data.get("score", segment)
    if isinstance(score, bool) or not isinstance(score, int):
        raise ValueError(f"Throw score must be an integer, got {type(score).__name__}.")

    flags = {
        attr: bool(data.get(wire_key, data.get(attr, False)))
        for wire_key, attr in _WIRE_FLAGS.items()
    }
    return Throw(score=score, multiplier=multiplier, segment=segment, **flags)


def classify_invitation_change(
    change_type: str,
    record: dict[str, Any],
    old_record: dict[str, Any],
    player_id: str,
) -> InvitationEvent | None:
    """Determine what a game_invitations change means to `player_id`."""
    if change_type == "INSERT":
        if record.get("target_id") == player_id and record.get("status") == "pending":
            return InvitationEvent.RECEIVED
        return None

    if change_type == "UPDATE" and record.get("host_id") == player_id:
        status = record.get("status")
        if status == old_record.get("status"):
            return None
        if status == "accepted":
            return InvitationEvent.ACCEPTED
        if status == "declined":
            return InvitationEvent.DECLINED
    return None
