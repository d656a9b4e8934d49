"""The contract between a game and the match driver.

A plugin is stateless: every call receives the JSON-compatible ``game_data``
produced by an earlier call and returns new data instead of mutating it.
LocalSession and the simulator rely on that to dry-run, clone and replay
matches.
"""

from __future__ import annotations

from typing import ClassVar, Protocol, runtime_checkable

from hexaequo.engine.models import (
    Action,
    Event,
    GameConfig,
    Phase,
    Player,
    PlayerId,
    TransitionResult,
)


@runtime_checkable
class GamePlugin(Protocol):
    """Interface a game exposes to the engine."""

    game_id: ClassVar[str]
    display_name: ClassVar[str]
    min_players: ClassVar[int]
    max_players: ClassVar[int]
    description: ClassVar[str]
    config_schema: ClassVar[dict]  # JSON schema of GameConfig.options

    def create_initial_state(
        self,
        players: list[Player],
        config: GameConfig,
    ) -> tuple[dict, Phase, list[Event]]:
        """Seat the players and return (game_data, first phase, opening events)."""
        ...

    def validate_config(self, options: dict) -> list[str]:
        """Problems with GameConfig.options; empty when usable."""
        ...

    def get_valid_actions(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId,
    ) -> list[dict]:
        """Every action ``player_id`` may submit now, as ``{"action_type": ..., **payload}``."""
        ...

    def validate_action(
        self,
        game_data: dict,
        phase: Phase,
        action: Action,
    ) -> str | None:
        """Reason the action would be refused, or None. Must not modify game_data."""
        ...

    def apply_action(
        self,
        game_data: dict,
        phase: Phase,
        action: Action,
        players: list[Player],
    ) -> TransitionResult:
        """Apply a validated action. Raises InvalidActionError if it is illegal."""
        ...

    def get_player_view(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId | None,
        players: list[Player],
    ) -> dict:
        """game_data as ``player_id`` may see it (None for spectators)."""
        ...

    def get_spectator_summary(
        self,
        game_data: dict,
        phase: Phase,
        players: list[Player],
    ) -> dict:
        ...
