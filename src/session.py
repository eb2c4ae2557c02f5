"""
Darts Scorer - Game Session

Owns one engine for the lifetime of a game and routes every call through
it. After each committed mutation the session persists the engine snapshot
and, when online, relays the operation to the peer. Operations received
from the peer are replayed locally with relaying switched off.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Protocol, Sequence

from src.config.settings import Settings, get_settings
from src.database.client import get_supabase_client
from src.database.local_store import LocalSnapshotStore
from src.database.match_state import MatchStateManager
from src.engine import MatchEngine, engine_class
from src.engine.base import (
    EngineEvent,
    EventKind,
    GameKind,
    GameType,
    MatchConfig,
    Throw,
)
from src.engine.validators import (
    validate_custom_score,
    validate_game_type,
    validate_manual_amount,
    validate_match_config,
    validate_player_names,
)
from src.realtime.events import EventPayload, RelayEvent, throw_from_wire, throw_to_wire
from src.realtime.sync_manager import RealtimeManager

logger = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    """Durable home of one snapshot per engine variant."""

    def load(self, kind: GameKind) -> dict[str, Any] | None: ...

    def save(self, kind: GameKind, state: dict[str, Any]) -> Any: ...

    def clear(self, kind: GameKind) -> None: ...


def open_store(settings: Settings | None = None) -> SnapshotStore:
    """Snapshot store for the configured persistence backend."""
    settings = settings or get_settings()
    if settings.persistence_backend == "supabase":
        return MatchStateManager(get_supabase_client(), settings.player_id)
    return LocalSnapshotStore(settings.storage_dir)


def open_relay(settings: Settings | None = None) -> RealtimeManager:
    """Relay identified by the local player id.

    Raises:
        RuntimeError: If Supabase is not configured.
    """
    settings = settings or get_settings()
    return RealtimeManager(get_supabase_client(), settings.player_id)


class GameSession:
    """Single controller for one engine, its persistence and its relay."""

    def __init__(
        self,
        engine: MatchEngine,
        *,
        store: SnapshotStore | None = None,
        relay: RealtimeManager | None = None,
        session_id: str | None = None,
    ) -> None:
        self.engine = engine
        self._store = store
        self._relay: RealtimeManager | None = None
        self._session_id: str | None = None
        self._lock = threading.RLock()
        self._replaying = False
        # Relay sends queued under the lock, published once it is released.
        self._outbox: list[tuple[RealtimeManager, str, RelayEvent, dict[str, Any]]] = []
        engine.add_listener(self._on_engine_event)
        if relay is not None and session_id is not None:
            self.go_online(relay, session_id)

    @classmethod
    def resume(
        cls,
        kind: GameKind,
        store: SnapshotStore | None = None,
        **kwargs: Any,
    ) -> "GameSession":
        """Session for `kind`, restored from the store's snapshot if any."""
        state = store.load(kind) if store is not None else None
        engine = engine_class(kind).from_snapshot(state)
        if state:
            logger.info("Resumed %s game %s", kind.value, engine.game_id or "(none)")
        return cls(engine, store=store, **kwargs)

    @property
    def kind(self) -> GameKind:
        return self.engine.KIND

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def is_online(self) -> bool:
        return self._relay is not None and self._session_id is not None

    # -- Online ----------------------------------------------------------

    def go_online(self, relay: RealtimeManager, session_id: str) -> None:
        """Start relaying with the peer of `session_id`."""
        relay.join(session_id, self.apply_remote)
        self._relay = relay
        self._session_id = session_id

    def go_offline(self) -> None:
        if self._relay is not None and self._session_id is not None:
            self._relay.leave(self._session_id)
        self._relay = None
        self._session_id = None

    # -- Operations ------------------------------------------------------

    @contextmanager
    def _committing(self) -> Iterator[None]:
        """Run an operation under the lock, then publish what it queued.

        Publishing waits on the realtime loop thread, which may itself be
        waiting for this lock to replay a peer event.
        """
        with self._lock:
            try:
                yield
            finally:
                pending, self._outbox = self._outbox, []
        for relay, session_id, event, data in pending:
            relay.publish(session_id, event, data)

    def init_game(
        self,
        game_type: GameType | str,
        player_names: Sequence[str],
        custom_score: int | None = None,
        match_config: MatchConfig | None = None,
    ) -> None:
        """Start a game of `game_type` on this session's engine.

        Raises:
            ValueError: If the game type is unknown or belongs to the other engine.
        """
        game_type = validate_game_type(game_type)
        if game_type.kind is not self.kind:
            raise ValueError(
                f"{game_type.value} cannot be played on a {self.kind.value} session."
            )
        with self._committing():
            if self.kind is GameKind.X01:
                self.engine.init_game(game_type, player_names, custom_score, match_config)
            else:
                self.engine.init_game(player_names, match_config)

    def add_throw(self, t: Throw) -> None:
        with self._committing():
            self.engine.add_throw(t)

    def manual_turn(self, amount: int) -> None:
        with self._committing():
            self.engine.manual_turn(amount)

    def undo_throw(self) -> None:
        with self._committing():
            self.engine.undo_throw()

    def next_player(self) -> None:
        with self._committing():
            self.engine.next_player()

    def next_leg(self) -> None:
        """Start the next X01 leg; no-op on Cricket."""
        if self.kind is not GameKind.X01:
            logger.debug("Next leg ignored on %s session", self.kind.value)
            return
        with self._committing():
            self.engine.next_leg()

    def reset_game(self) -> None:
        with self._committing():
            self.engine.reset_game()

    # -- Inbound relay ---------------------------------------------------

    def apply_remote(self, payload: EventPayload) -> None:
        """Replay an operation sent by the peer.

        Malformed payloads are logged and dropped; rule no-ops behave
        exactly as they do for local calls.
        """
        with self._lock:
            self._replaying = True
            try:
                self._dispatch(payload)
            except (ValueError, KeyError, TypeError):
                logger.warning(
                    "Dropped malformed %s event from %s",
                    payload.event.value, payload.sender_id, exc_info=True,
                )
            finally:
                self._replaying = False

    def _dispatch(self, payload: EventPayload) -> None:
        data = payload.data
        event = payload.event

        if event is RelayEvent.INIT_GAME:
            config = data.get("matchConfig")
            self.init_game(
                validate_game_type(data["type"]),
                validate_player_names(data["playerNames"]),
                validate_custom_score(data.get("customScore")),
                validate_match_config(config) if config is not None else None,
            )
        elif event is RelayEvent.THROW:
            self.engine.add_throw(throw_from_wire(data["throw"]))
        elif event is RelayEvent.NEXT_PLAYER:
            self.engine.next_player()
        elif event is RelayEvent.UNDO:
            self.engine.undo_throw()
        elif event is RelayEvent.MANUAL_TURN:
            self.engine.manual_turn(validate_manual_amount(data["amount"]))

    # -- Engine listener -------------------------------------------------

    def _on_engine_event(self, event: EngineEvent) -> None:
        self._persist()
        if not self._replaying:
            self._relay_event(event)

    def _persist(self) -> None:
        if self._store is None:
            return
        try:
            self._store.save(self.kind, self.engine.snapshot())
        except Exception:
            logger.exception("Failed to persist %s snapshot", self.kind.value)

    def _relay_event(self, event: EngineEvent) -> None:
        if not self.is_online:
            return
        relay_event = RelayEvent.from_kind(event.kind)
        if relay_event is None:
            return

        data = dict(event.data)
        if event.kind is EventKind.THROW:
            data["throw"] = throw_to_wire(Throw.from_dict(data["throw"]))
        self._outbox.append((self._relay, self._session_id, relay_event, data))
