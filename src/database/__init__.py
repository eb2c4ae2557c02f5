"""
Darts Scorer Database Layer.

Snapshot persistence (local files or Supabase) and online invitations.
"""

from src.database.client import get_supabase_client
from src.database.invitation import InvitationManager
from src.database.local_store import LocalSnapshotStore
from src.database.match_state import MatchStateManager
from src.database.models import Invitation, MatchSnapshot, MatchStateRow

__all__ = [
    "get_supabase_client",
    "Invitation",
    "InvitationManager",
    "LocalSnapshotStore",
    "MatchSnapshot",
    "MatchStateManager",
    "MatchStateRow",
]
