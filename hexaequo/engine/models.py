"""Wire models shared by the engine and game plugins.

Everything here crosses the plugin boundary as plain JSON, so payloads and
game_data stay ``dict`` and identifiers stay strings.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import NewType

from pydantic import BaseModel, Field

PlayerId = NewType("PlayerId", str)
MatchId = NewType("MatchId", str)
GameId = NewType("GameId", str)


# --- Seating & configuration ---

class Player(BaseModel):
    player_id: PlayerId
    display_name: str
    seat_index: int = Field(ge=0)  # seat 0 moves first


class GameConfig(BaseModel):
    options: dict = Field(default_factory=dict)  # game-specific, see GamePlugin.config_schema


# --- Turn structure ---

class ExpectedAction(BaseModel):
    """Who may act next, and with what."""

    player_id: PlayerId | None = None
    action_type: str
    constraints: dict = Field(default_factory=dict)


class Phase(BaseModel):
    name: str
    expected_actions: list[ExpectedAction] = Field(default_factory=list)
    metadata: dict = Field(default_factory=dict)

    @property
    def acting_player(self) -> PlayerId | None:
        if not self.expected_actions:
            return None
        return self.expected_actions[0].player_id


class Action(BaseModel):
    action_type: str
    player_id: PlayerId
    payload: dict = Field(default_factory=dict)
    timestamp: datetime | None = None


class Event(BaseModel):
    event_type: str
    player_id: PlayerId | None = None
    payload: dict = Field(default_factory=dict)


class PersistedEvent(Event):
    """An event as recorded in a match log, numbered from 0."""

    match_id: MatchId
    sequence_number: int = Field(ge=0)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# --- Match state ---

class GameStatus(str, Enum):
    ACTIVE = "active"
    FINISHED = "finished"


class GameState(BaseModel):
    match_id: MatchId
    game_id: GameId
    players: list[Player]
    current_phase: Phase
    status: GameStatus = GameStatus.ACTIVE
    action_number: int = 0
    config: GameConfig = Field(default_factory=GameConfig)
    game_data: dict = Field(default_factory=dict)
    scores: dict[str, float] = Field(default_factory=dict)  # PlayerId -> score


class GameResult(BaseModel):
    winners: list[PlayerId]  # empty for a draw
    final_scores: dict[str, float]
    reason: str = "normal"
    details: dict = Field(default_factory=dict)

    @property
    def is_draw(self) -> bool:
        return not self.winners


class TransitionResult(BaseModel):
    """What a plugin returns from apply_action."""

    game_data: dict
    events: list[Event]
    next_phase: Phase
    scores: dict[str, float] = Field(default_factory=dict)
    game_over: GameResult | None = None


class PlayerView(BaseModel):
    """Everything a front end needs to render one seat's screen."""

    match_id: MatchId
    game_id: GameId
    players: list[Player]
    current_phase: Phase
    status: GameStatus
    action_number: int
    scores: dict[str, float]
    game_data: dict
    valid_actions: list[dict] = Field(default_factory=list)
    viewer_id: PlayerId | None = None
    result: GameResult | None = None
