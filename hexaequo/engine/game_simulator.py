"""Synchronous game simulator: applies plugin transitions to a mutable state.

Used by the local session driver and by tests that play complete games
without any front end attached.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from hexaequo.engine.models import (
    Action,
    Event,
    GameResult,
    Phase,
    Player,
    TransitionResult,
)
from hexaequo.engine.protocol import GamePlugin


@dataclass
class SimulationState:
    """Mutable game state for synchronous simulation."""

    game_data: dict
    phase: Phase
    players: list[Player]
    scores: dict[str, float] = field(default_factory=dict)
    game_over: GameResult | None = None


def apply_action(
    plugin: GamePlugin,
    state: SimulationState,
    action: Action,
) -> list[Event]:
    """Apply an already validated action.

    Mutates *state* in place and returns the events the plugin emitted.
    """
    result = plugin.apply_action(
        state.game_data, state.phase, action, state.players
    )
    _apply_result(state, result)
    return list(result.events)


def clone_state(state: SimulationState) -> SimulationState:
    """Deep-copy a simulation state.

    ``players`` is shared (immutable during a game).
    """
    return SimulationState(
        game_data=copy.deepcopy(state.game_data),
        phase=state.phase.model_copy(deep=True),
        players=state.players,  # shared, never mutated
        scores=dict(state.scores),
        game_over=state.game_over,
    )


def _apply_result(state: SimulationState, result: TransitionResult) -> None:
    state.game_data = result.game_data
    state.phase = result.next_phase
    state.scores = result.scores or state.scores
    state.game_over = result.game_over
