"""Tests for src/realtime/subscriptions.py — broadcast channel management (mocked)."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.realtime.events import EventPayload, InvitationEvent, RelayEvent
from src.realtime.subscriptions import ChannelManager, channel_name


@pytest.fixture
def mock_client():
    """Create a mock Supabase client with async realtime support."""
    client = MagicMock()
    client.channels = []

    # Each call to client.realtime.channel() returns a fresh mock channel
    def make_channel(name):
        channel = AsyncMock()
        channel.name = name
        channel.on_broadcast = MagicMock(return_value=channel)
        channel.on_postgres_changes = MagicMock(return_value=channel)
        channel.subscribe = AsyncMock(return_value=channel)
        channel.send_broadcast = AsyncMock()
        channel.unsubscribe = AsyncMock()
        client.channels.append(channel)
        return channel

    client.realtime.channel = MagicMock(side_effect=make_channel)
    client.realtime.remove_channel = AsyncMock()
    return client


@pytest.fixture
def mgr(mock_client):
    manager = ChannelManager(mock_client)
    yield manager
    manager.shutdown()


class TestChannelManager:
    def test_channel_naming(self):
        assert channel_name("abc-def") == "session:abc-def"

    def test_subscribe_creates_one_channel(self, mgr, mock_client):
        mgr.subscribe("s-1", lambda p: None)

        mock_client.realtime.channel.assert_called_once_with("session:s-1")
        assert mgr.active_subscriptions == ["s-1"]

    def test_subscribe_registers_every_relay_event(self, mgr, mock_client):
        mgr.subscribe("s-1", lambda p: None)

        channel = mock_client.channels[0]
        registered = {call.args[0] for call in channel.on_broadcast.call_args_list}
        assert registered == {e.value for e in RelayEvent}
        channel.subscribe.assert_awaited_once()

    def test_subscribe_idempotent(self, mgr, mock_client):
        mgr.subscribe("s-1", lambda p: None)
        mgr.subscribe("s-1", lambda p: None)

        assert mock_client.realtime.channel.call_count == 1

    def test_broadcast_reaches_callback(self, mgr, mock_client):
        received = []
        mgr.subscribe("s-1", received.append)

        channel = mock_client.channels[0]
        handlers = {call.args[0]: call.args[1] for call in channel.on_broadcast.call_args_list}
        handlers["manual-turn"]({"payload": {"amount": 60, "senderId": "peer"}})

        assert len(received) == 1
        assert received[0].event == RelayEvent.MANUAL_TURN
        assert received[0].session_id == "s-1"
        assert received[0].data == {"amount": 60}

    def test_send(self, mgr, mock_client):
        mgr.subscribe("s-1", lambda p: None)
        mgr.send(EventPayload(
            event=RelayEvent.UNDO, session_id="s-1", sender_id="me",
        ))

        mock_client.channels[0].send_broadcast.assert_awaited_once_with(
            "undo", {"senderId": "me"}
        )

    def test_send_without_subscription(self, mgr):
        with pytest.raises(KeyError):
            mgr.send(EventPayload(event=RelayEvent.UNDO, session_id="nope"))

    def test_unsubscribe_removes_channel(self, mgr, mock_client):
        mgr.subscribe("s-1", lambda p: None)
        mgr.unsubscribe("s-1")

        assert "s-1" not in mgr.active_subscriptions
        mock_client.channels[0].unsubscribe.assert_awaited_once()
        mock_client.realtime.remove_channel.assert_awaited_once()

    def test_unsubscribe_nonexistent_is_noop(self, mgr):
        mgr.unsubscribe("no-such-session")  # should not raise

    def test_unsubscribe_all(self, mgr):
        mgr.subscribe("s-1", lambda p: None)
        mgr.subscribe("s-2", lambda p: None)
        mgr.unsubscribe_all()

        assert mgr.active_subscriptions == []


class TestHandleBroadcast:
    def test_callback_error_does_not_propagate(self, mgr):
        """Errors in the callback should be logged, not raised."""
        def explode(payload):
            raise RuntimeError("boom")

        mgr._handle_broadcast({"senderId": "peer"}, RelayEvent.UNDO, "s-1", explode)

    def test_malformed_message_dropped(self, mgr):
        received = []
        mgr._handle_broadcast({"payload": "junk"}, RelayEvent.THROW, "s-1", received.append)

        assert received == []


def invitation_change(change_type, record, old_record=None):
    return {"data": {"type": change_type, "record": record, "old_record": old_record or {}}}


class TestInvitations:
    def test_watch_opens_received_and_sent_feeds(self, mgr, mock_client):
        mgr.watch_invitations("me", lambda event, row: None)

        names = [call.args[0] for call in mock_client.realtime.channel.call_args_list]
        assert names == ["invitations:me:received", "invitations:me:sent"]

        received, sent = (c.on_postgres_changes.call_args.kwargs for c in mock_client.channels)
        assert received["event"] == "INSERT"
        assert received["filter"] == "target_id=eq.me"
        assert sent["event"] == "UPDATE"
        assert sent["filter"] == "host_id=eq.me"
        assert received["table"] == sent["table"] == "game_invitations"
        for channel in mock_client.channels:
            channel.subscribe.assert_awaited_once()

    def test_watch_idempotent(self, mgr, mock_client):
        mgr.watch_invitations("me", lambda event, row: None)
        mgr.watch_invitations("me", lambda event, row: None)

        assert mock_client.realtime.channel.call_count == 2

    def test_incoming_invitation_reaches_callback(self, mgr, mock_client):
        received = []
        mgr.watch_invitations("me", lambda event, row: received.append((event, row)))

        callback = mock_client.channels[0].on_postgres_changes.call_args.kwargs["callback"]
        row = {"id": "inv-1", "host_id": "host", "target_id": "me", "status": "pending"}
        callback(invitation_change("INSERT", row))

        assert received == [(InvitationEvent.RECEIVED, row)]

    def test_answer_to_sent_invitation(self, mgr, mock_client):
        received = []
        mgr.watch_invitations("me", lambda event, row: received.append(event))

        callback = mock_client.channels[1].on_postgres_changes.call_args.kwargs["callback"]
        callback(invitation_change(
            "UPDATE",
            {"id": "inv-1", "host_id": "me", "target_id": "guest", "status": "accepted"},
            {"id": "inv-1", "status": "pending"},
        ))

        assert received == [InvitationEvent.ACCEPTED]

    def test_unrelated_change_ignored(self, mgr):
        received = []
        mgr._handle_invitation_change(
            invitation_change("INSERT", {"host_id": "a", "target_id": "b", "status": "pending"}),
            "me",
            lambda event, row: received.append(event),
        )

        assert received == []

    def test_callback_error_does_not_propagate(self, mgr):
        def explode(event, row):
            raise RuntimeError("boom")

        mgr._handle_invitation_change(
            invitation_change("INSERT", {"target_id": "me", "status": "pending"}), "me", explode,
        )

    def test_unwatch_removes_channels(self, mgr, mock_client):
        mgr.watch_invitations("me", lambda event, row: None)
        mgr.unwatch_invitations("me")
        mgr.unwatch_invitations("me")

        assert mock_client.realtime.remove_channel.await_count == 2
        for channel in mock_client.channels:
            channel.unsubscribe.assert_awaited_once()
