"""
Darts Scorer - Match State Manager

Snapshot persistence in the Supabase `match_state` table, one row per
owner and engine variant.
"""

from typing import Any

from supabase import Client

from src.database.client import db_retry
from src.database.models import MatchSnapshot, MatchStateRow
from src.engine.base import GameKind


class MatchStateManager:
    """Manages persisted engine snapshots in Supabase."""

    def __init__(self, client: Client, owner_id: str) -> None:
        self.client = client
        self.owner_id = owner_id
        self.table = client.table("match_state")

    def get(self, kind: GameKind) -> MatchStateRow | None:
        """Get the stored row for a variant."""
        query = (
            self.table
            .select("*")
            .eq("owner_id", self.owner_id)
            .eq("variant", kind.value)
        )
        data = db_retry(query.execute)
        if data.data:
            return MatchStateRow.model_validate(data.data[0])
        return None

    def load(self, kind: GameKind) -> dict[str, Any] | None:
        row = self.get(kind)
        if row is None:
            return None
        return row.state.model_dump(mode="json")

    def save(self, kind: GameKind, state: dict[str, Any]) -> MatchStateRow:
        """Insert or overwrite the variant's snapshot."""
        snapshot = MatchSnapshot.model_validate(state)
        query = self.table.upsert(
            {
                "owner_id": self.owner_id,
                "variant": kind.value,
                "state": snapshot.model_dump(mode="json"),
            },
            on_conflict="owner_id,variant",
        )
        data = db_retry(query.execute)
        return MatchStateRow.model_validate(data.data[0])

    def clear(self, kind: GameKind) -> None:
        """Delete the variant's snapshot."""
        query = (
            self.table
            .delete()
            .eq("owner_id", self.owner_id)
            .eq("variant", kind.value)
        )
        db_retry(query.execute)
