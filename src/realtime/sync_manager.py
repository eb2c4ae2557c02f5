"""
Darts Scorer - Realtime Sync Manager

High-level relay between peers of an online game. Owns the local sender
identity, drops our own broadcasts when they come back (loop guard) and
sends outbound events fire-and-forget.

There is no ordering, deduplication or conflict resolution: both peers stay
consistent only by applying the same operations in the same order. A lost
event makes the two copies diverge without detection.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable

from supabase import Client

from src.realtime.events import EventPayload, RelayEvent
from src.realtime.subscriptions import ChannelManager, InvitationCallback

logger = logging.getLogger(__name__)


class RealtimeManager:
    """Relays game operations between the local player and one remote peer.

    Wraps ChannelManager with the sender-id loop guard and swallows
    transport failures so a flaky connection never breaks local play.
    """

    def __init__(self, client: Client, sender_id: str) -> None:
        self._client = client
        self._sender_id = sender_id
        self._channel_mgr = ChannelManager(client)

    @property
    def sender_id(self) -> str:
        return self._sender_id

    def join(
        self,
        session_id: str,
        on_event: Callable[[EventPayload], None],
    ) -> None:
        """Start receiving a session's relay events.

        Events sent by this process are dropped before `on_event` sees
        them; they were applied locally when they were generated.

        Args:
            session_id: Id of the shared game session.
            on_event: Callback receiving each remote EventPayload.
        """
        def guarded(payload: EventPayload) -> None:
            if payload.sender_id == self._sender_id:
                logger.debug("Dropped own %s event", payload.event.value)
                return
            on_event(payload)

        self._channel_mgr.subscribe(session_id, guarded)
        logger.info("Joined session %s as %s", session_id, self._sender_id)

    def publish(
        self,
        session_id: str,
        event: RelayEvent,
        data: dict[str, Any] | None = None,
    ) -> bool:
        """Send one relay event; failures are logged, never raised.

        Returns:
            True if the event was handed to the channel.
        """
        payload = EventPayload(
            event=event,
            session_id=session_id,
            sender_id=self._sender_id,
            data=data or {},
        )
        try:
            self._channel_mgr.send(payload)
        except Exception:
            logger.exception("Failed to relay %s to session %s", event.value, session_id)
            return False
        return True

    def leave(self, session_id: str) -> None:
        """Stop relaying for a session."""
        self._channel_mgr.unsubscribe(session_id)

    def watch_invitations(self, on_invitation: InvitationCallback) -> None:
        """Receive invitations sent to us and answers to ours.

        The sender id doubles as the player id on game_invitations rows.
        """
        self._channel_mgr.watch_invitations(self._sender_id, on_invitation)

    def unwatch_invitations(self) -> None:
        self._channel_mgr.unwatch_invitations(self._sender_id)

    @property
    def active_sessions(self) -> list[str]:
        return self._channel_mgr.active_subscriptions

    def shutdown(self) -> None:
        """Clean up all channels and the background loop."""
        self._channel_mgr.shutdown()


# -- Module-level convenience functions ----------------------------------

_manager_instance: RealtimeManager | None = None
_manager_lock = threading.Lock()


def _get_manager(client: Client, sender_id: str) -> RealtimeManager:
    """Get or create the singleton RealtimeManager."""
    global _manager_instance
    with _manager_lock:
        if _manager_instance is None or _manager_instance.sender_id != sender_id:
            if _manager_instance is not None:
                _manager_instance.shutdown()
            _manager_instance = RealtimeManager(client, sender_id)
        return _manager_instance


def join_session(
    client: Client,
    sender_id: str,
    session_id: str,
    on_event: Callable[[EventPayload], None],
) -> RealtimeManager:
    """Join an online game session.

    Args:
        client: Supabase client instance.
        sender_id: Local identity stamped on outbound events.
        session_id: Id of the shared game session.
        on_event: Callback for events sent by the peer.

    Returns:
        The RealtimeManager instance (for publishing).
    """
    manager = _get_manager(client, sender_id)
    manager.join(session_id, on_event)
    return manager


def leave_session(client: Client, sender_id: str, session_id: str) -> None:
    """Leave an online game session."""
    manager = _get_manager(client, sender_id)
    manager.leave(session_id)
