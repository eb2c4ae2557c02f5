"""
Darts Scorer - Local Snapshot Store

Keeps one JSON file per engine variant so a game survives restarts
without a network connection.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from src.database.models import MatchSnapshot
from src.engine.base import GameKind

logger = logging.getLogger(__name__)


def storage_filename(kind: GameKind) -> str:
    return f"darts-{kind.value}-storage.json"


class LocalSnapshotStore:
    """Snapshot persistence in a local directory."""

    def __init__(self, directory: Path | str) -> None:
        self.directory = Path(directory)

    def path_for(self, kind: GameKind) -> Path:
        return self.directory / storage_filename(kind)

    def load(self, kind: GameKind) -> dict[str, Any] | None:
        """Return the stored snapshot for a variant, or None.

        Unreadable or invalid files are logged and treated as absent.
        """
        path = self.path_for(kind)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = json.load(f)
            return MatchSnapshot.model_validate(raw).model_dump(mode="json")
        except (OSError, json.JSONDecodeError, ValidationError):
            logger.exception("Ignoring unreadable snapshot %s", path)
            return None

    def save(self, kind: GameKind, state: dict[str, Any]) -> None:
        """Overwrite the variant's snapshot (write-then-rename)."""
        snapshot = MatchSnapshot.model_validate(state)
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(kind)
        tmp = path.with_suffix(".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(snapshot.model_dump(mode="json"), f, indent=2)
        os.replace(tmp, path)

    def clear(self, kind: GameKind) -> None:
        path = self.path_for(kind)
        if path.exists():
            path.unlink()
