"""
Darts Scorer Real-time Sync.

Broadcast channels and the peer relay for online games.
"""

from src.realtime.events import EventPayload, InvitationEvent, RelayEvent
from src.realtime.subscriptions import ChannelManager
from src.realtime.sync_manager import (
    RealtimeManager,
    join_session,
    leave_session,
)

__all__ = [
    "ChannelManager",
    "EventPayload",
    "InvitationEvent",
    "RealtimeManager",
    "RelayEvent",
    "join_session",
    "leave_session",
]
