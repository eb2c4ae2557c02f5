"""
Darts Scorer - Channel Subscription Management

Manages Supabase Realtime broadcast channels for online games.
Uses a background thread with an asyncio event loop since the sync
Realtime client in supabase 2.x is not implemented.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Callable

from supabase import Client

from src.realtime.events import (
    EventPayload,
    InvitationEvent,
    RelayEvent,
    classify_invitation_change,
)

logger = logging.getLogger(__name__)

SEND_TIMEOUT = 10

INVITATIONS_TABLE = "game_invitations"

# Invitation feeds per player: (channel suffix, change type, filter column)
_INVITATION_FEEDS = (
    ("received", "INSERT", "target_id"),
    ("sent", "UPDATE", "host_id"),
)

InvitationCallback = Callable[[InvitationEvent, dict[str, Any]], None]


def channel_name(session_id: str) -> str:
    return f"session:{session_id}"


class ChannelManager:
    """Manages one broadcast channel per online game session.

    Bridges async Realtime API with sync code by running an asyncio
    event loop in a daemon thread. Callbacks are invoked from that
    background thread; callers should handle thread safety.
    """

    def __init__(self, client: Client) -> None:
        self._client = client
        self._channels: dict[str, Any] = {}
        self._invitation_channels: dict[str, list[Any]] = {}
        self._loop: asyncio.AbstractEventLoop | None = None
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    def _ensure_loop(self) -> asyncio.AbstractEventLoop:
        """Start the background event loop if not running."""
        with self._lock:
            if self._loop is None or not self._loop.is_running():
                self._loop = asyncio.new_event_loop()
                self._thread = threading.Thread(
                    target=self._run_loop, daemon=True, name="realtime-loop"
                )
                self._thread.start()
            return self._loop

    def _run_loop(self) -> None:
        """Run the asyncio event loop in the background thread."""
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def subscribe(
        self,
        session_id: str,
        on_event: Callable[[EventPayload], None],
    ) -> None:
        """Listen to every relay event of a game session.

        Args:
            session_id: Id of the shared game session.
            on_event: Callback receiving an EventPayload per broadcast.
        """
        if session_id in self._channels:
            logger.warning("Already subscribed to session %s", session_id)
            return

        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(
            self._subscribe_async(session_id, on_event), loop
        )
        future.result(timeout=SEND_TIMEOUT)

    async def _subscribe_async(
        self,
        session_id: str,
        on_event: Callable[[EventPayload], None],
    ) -> None:
        """Set up the broadcast channel and its per-event handlers."""
        channel = self._client.realtime.channel(channel_name(session_id))

        for relay_event in RelayEvent:
            channel.on_broadcast(
                relay_event.value,
                lambda message, e=relay_event: self._handle_broadcast(
                    message, e, session_id, on_event
                ),
            )

        await channel.subscribe(
            lambda state, err=None: self._on_subscribe_state(state, err, session_id)
        )
        self._channels[session_id] = channel
        logger.info("Subscribed to session %s", session_id)

    def _handle_broadcast(
        self,
        message: dict[str, Any],
        relay_event: RelayEvent,
        session_id: str,
        on_event: Callable[[EventPayload], None],
    ) -> None:
        """Turn a raw broadcast into an EventPayload and dispatch it."""
        try:
            payload = EventPayload.from_broadcast(relay_event.value, session_id, message)
            on_event(payload)
        except Exception:
            logger.exception("Error handling %s broadcast", relay_event.value)

    def _on_subscribe_state(
        self, state: Any, error: Exception | None, session_id: str
    ) -> None:
        """Log subscription state changes."""
        if error:
            logger.error("Subscription error for session %s: %s", session_id, error)
        else:
            logger.debug("Channel %s state: %s", session_id, state)

    def send(self, payload: EventPayload) -> None:
        """Broadcast one relay event to the session's channel.

        Raises:
            KeyError: If the session is not subscribed.
        """
        channel = self._channels[payload.session_id]
        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(
            channel.send_broadcast(payload.event.value, payload.to_broadcast()), loop
        )
        future.result(timeout=SEND_TIMEOUT)

    def unsubscribe(self, session_id: str) -> None:
        """Leave a session's channel."""
        channel = self._channels.pop(session_id, None)
        if channel is None:
            return

        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(
            self._unsubscribe_async(channel), loop
        )
        try:
            future.result(timeout=SEND_TIMEOUT)
        except Exception:
            logger.exception("Error unsubscribing from session %s", session_id)

        logger.info("Unsubscribed from session %s", session_id)

    async def _unsubscribe_async(self, channel: Any) -> None:
        try:
            await channel.unsubscribe()
            await self._client.realtime.remove_channel(channel)
        except Exception:
            logger.exception("Error removing channel")

    # -- Invitations -----------------------------------------------------

    def watch_invitations(self, player_id: str, on_invitation: InvitationCallback) -> None:
        """Listen to game_invitations changes that concern a player.

        Invitations addressed to the player arrive as RECEIVED; answers to
        invitations the player sent arrive as ACCEPTED or DECLINED.

        Args:
            player_id: Local player identity.
            on_invitation: Callback receiving the event and the invitation row.
        """
        if player_id in self._invitation_channels:
            logger.warning("Already watching invitations for %s", player_id)
            return

        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(
            self._watch_invitations_async(player_id, on_invitation), loop
        )
        future.result(timeout=SEND_TIMEOUT)

    async def _watch_invitations_async(
        self, player_id: str, on_invitation: InvitationCallback
    ) -> None:
        channels = []

        for suffix, change_type, column in _INVITATION_FEEDS:
            name = f"invitations:{player_id}:{suffix}"
            channel = self._client.realtime.channel(name)
            channel.on_postgres_changes(
                event=change_type,
                callback=lambda payload: self._handle_invitation_change(
                    payload, player_id, on_invitation
                ),
                table=INVITATIONS_TABLE,
                schema="public",
                filter=f"{column}=eq.{player_id}",
            )
            await channel.subscribe(
                lambda state, err=None, n=name: self._on_subscribe_state(state, err, n)
            )
            channels.append(channel)

        self._invitation_channels[player_id] = channels
        logger.info("Watching invitations for %s", player_id)

    def _handle_invitation_change(
        self,
        payload: dict[str, Any],
        player_id: str,
        on_invitation: InvitationCallback,
    ) -> None:
        """Process a postgres_changes payload into an InvitationEvent."""
        try:
            data = payload.get("data", payload)
            change_type = data.get("type", data.get("eventType", ""))
            record = data.get("record") or {}
            old_record = data.get("old_record") or {}

            event = classify_invitation_change(change_type, record, old_record, player_id)
            if event is None:
                return
            on_invitation(event, record)
        except Exception:
            logger.exception("Error handling invitation change for %s", player_id)

    def unwatch_invitations(self, player_id: str) -> None:
        channels = self._invitation_channels.pop(player_id, None)
        if not channels:
            return

        loop = self._ensure_loop()
        future = asyncio.run_coroutine_threadsafe(
            self._unsubscribe_many(channels), loop
        )
        try:
            future.result(timeout=SEND_TIMEOUT)
        except Exception:
            logger.exception("Error unwatching invitations for %s", player_id)

    async def _unsubscribe_many(self, channels: list[Any]) -> None:
        for channel in channels:
            await self._unsubscribe_async(channel)

    def unsubscribe_all(self) -> None:
        """Leave every session."""
        for session_id in list(self._channels.keys()):
            self.unsubscribe(session_id)
        for player_id in list(self._invitation_channels.keys()):
            self.unwatch_invitations(player_id)

    @property
    def active_subscriptions(self) -> list[str]:
        """Return list of session ids with active channels."""
        return list(self._channels.keys())

    def shutdown(self) -> None:
        """Stop the background event loop and clean up."""
        self.unsubscribe_all()
        if self._loop and self._loop.is_running():
            self._loop.call_soon_threadsafe(self._loop.stop)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)
        self._loop = None
        self._thread = None
