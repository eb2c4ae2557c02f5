"""
Darts Scorer - Invitation Manager

CRUD operations for the `game_invitations` table. An accepted invitation's
id doubles as the session id of the shared relay channel.
"""

from supabase import Client

from src.database.client import db_retry
from src.database.models import Invitation
from src.engine.base import GameType, MatchConfig, to_plain


class InvitationManager:
    """Manages online game invitations in Supabase."""

    def __init__(self, client: Client) -> None:
        self.client = client
        self.table = client.table("game_invitations")

    def send(
        self,
        host_id: str,
        target_id: str,
        game_type: GameType,
        config: MatchConfig | None = None,
    ) -> Invitation:
        """Invite another player to a game."""
        query = self.table.insert({
            "host_id": host_id,
            "target_id": target_id,
            "game_type": game_type.value,
            "config": to_plain(config or MatchConfig()),
            "status": "pending",
        })
        data = db_retry(query.execute)
        return Invitation.model_validate(data.data[0])

    def get(self, invitation_id: str) -> Invitation | None:
        query = (
            self.table
            .select("*")
            .eq("id", invitation_id)
        )
        data = db_retry(query.execute)
        if data.data:
            return Invitation.model_validate(data.data[0])
        return None

    def list_pending(self, target_id: str) -> list[Invitation]:
        """Invitations waiting for `target_id` to answer, oldest first."""
        query = (
            self.table
            .select("*")
            .eq("target_id", target_id)
            .eq("status", "pending")
            .order("created_at")
        )
        data = db_retry(query.execute)
        return [Invitation.model_validate(row) for row in data.data]

    def _set_status(self, invitation_id: str, status: str) -> Invitation:
        query = (
            self.table
            .update({"status": status})
            .eq("id", invitation_id)
        )
        data = db_retry(query.execute)
        return Invitation.model_validate(data.data[0])

    def accept(self, invitation_id: str) -> Invitation:
        """Accept an invitation; both peers then join its session."""
        return self._set_status(invitation_id, "accepted")

    def decline(self, invitation_id: str) -> Invitation:
        return self._set_status(invitation_id, "declined")
