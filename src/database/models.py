"""
Darts Scorer - Database Models

Pydantic models for persisted engine snapshots and the Supabase tables.
"""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class ThrowRecord(BaseModel):
    """One dart inside a persisted turn."""

    score: int
    multiplier: int = Field(default=1, ge=1, le=3)
    segment: int = 0
    is_double: bool = False
    is_triple: bool = False
    is_outer_bull: bool = False
    is_inner_bull: bool = False
    is_manual: bool = False


class PlayerRecord(BaseModel):
    id: str
    name: str
    score: int
    legs_won: int = Field(default=0, ge=0)
    sets_won: int = Field(default=0, ge=0)
    cricket_data: dict[int, int] | None = None


class TurnRecord(BaseModel):
    id: str
    player_id: str
    throws: list[ThrowRecord] = Field(default_factory=list, max_length=3)
    score_before: int = 0
    score_after: int = 0
    is_bust: bool = False


class MatchConfigRecord(BaseModel):
    mode: Literal["firstTo", "bestOf"] = "firstTo"
    target: int = Field(default=1, gt=0)


class MatchSnapshot(BaseModel):
    """Full state of one engine, as produced by `MatchEngine.snapshot()`."""

    kind: Literal["x01", "cricket"]
    game_id: str = ""
    game_type: str
    players: list[PlayerRecord] = Field(default_factory=list)
    current_turn: TurnRecord | None = None
    history: list[TurnRecord] = Field(default_factory=list)
    current_player_index: int = Field(default=0, ge=0)
    winner_id: str | None = None
    leg_winner_id: str | None = None
    match_config: MatchConfigRecord = Field(default_factory=MatchConfigRecord)
    # X01 fields
    starting_score: int | None = None
    custom_score: int | None = None
    # Cricket fields
    turn_snapshots: list[list[PlayerRecord]] = Field(default_factory=list, max_length=3)
    last_turn_roster: list[PlayerRecord] | None = None


class MatchStateRow(BaseModel):
    """Mirrors the `match_state` table: one snapshot per owner and variant."""

    owner_id: str
    variant: Literal["x01", "cricket"]
    state: MatchSnapshot
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class Invitation(BaseModel):
    """Mirrors the `game_invitations` table."""

    id: UUID
    host_id: str
    target_id: str
    game_type: str
    config: dict = Field(default_factory=dict)
    status: Literal["pending", "accepted", "declined", "active", "finished"] = "pending"
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
