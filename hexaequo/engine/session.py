"""Synchronous match driver for a single local (hot-seat) game.

A session owns the authoritative GameState of one match and is the only
thing that advances it. Front ends submit actions and read views; every
accepted action is appended to an in-memory, sequenced event log.
"""

from __future__ import annotations

import logging
from uuid import uuid4

from hexaequo.engine.errors import (
    GameNotActiveError,
    InvalidActionError,
    NotYourTurnError,
)
from hexaequo.engine.game_simulator import SimulationState, apply_action
from hexaequo.engine.models import (
    Action,
    Event,
    GameConfig,
    GameId,
    GameResult,
    GameState,
    GameStatus,
    MatchId,
    PersistedEvent,
    Player,
    PlayerId,
    PlayerView,
)
from hexaequo.engine.protocol import GamePlugin

logger = logging.getLogger(__name__)


class LocalSession:
    """Runs one match of a plugin entirely in-process."""

    def __init__(
        self,
        plugin: GamePlugin,
        players: list[Player],
        config: GameConfig | None = None,
        match_id: MatchId | None = None,
    ) -> None:
        config = config or GameConfig()
        errors = plugin.validate_config(config.options)
        if errors:
            raise ValueError(f"Invalid config for {plugin.game_id}: {'; '.join(errors)}")

        self.plugin = plugin
        self.match_id = match_id or MatchId(str(uuid4()))
        self.events: list[PersistedEvent] = []
        self.result: GameResult | None = None

        game_data, phase, events = plugin.create_initial_state(players, config)
        self.state = GameState(
            match_id=self.match_id,
            game_id=GameId(plugin.game_id),
            players=players,
            current_phase=phase,
            config=config,
            game_data=game_data,
        )
        self._persist(events)
        logger.info(f"Match {self.match_id} started ({plugin.game_id})")

    # ------------------------------------------------------------------ #
    #  Action handling
    # ------------------------------------------------------------------ #

    def handle_action(self, action: Action) -> list[Event]:
        """
        Main entry point. Called when a player submits an action.

        Process:
        1. Validate envelope (game active, correct player)
        2. Plugin validates the action
        3. Apply the transition
        4. Record events and the result
        """
        self._validate_envelope(action)

        error = self.plugin.validate_action(
            self.state.game_data, self.state.current_phase, action
        )
        if error:
            raise InvalidActionError(error, action)

        sim = SimulationState(
            game_data=self.state.game_data,
            phase=self.state.current_phase,
            players=self.state.players,
            scores=self.state.scores,
        )
        events = apply_action(self.plugin, sim, action)

        self.state.game_data = sim.game_data
        self.state.current_phase = sim.phase
        self.state.scores = sim.scores
        self.state.action_number += 1
        self._persist(events)

        if sim.game_over is not None:
            self.state.status = GameStatus.FINISHED
            self.result = sim.game_over
            logger.info(
                f"Match {self.match_id} finished: winners={sim.game_over.winners} "
                f"reason={sim.game_over.reason}"
            )
        return events

    def _validate_envelope(self, action: Action) -> None:
        """Check game is active and it's the right player's turn."""
        if self.state.status != GameStatus.ACTIVE:
            raise GameNotActiveError(f"Game is {self.state.status.value}")

        expected = self.state.current_phase.acting_player
        if expected and action.player_id != expected:
            raise NotYourTurnError(f"Expected {expected}, got {action.player_id}")

    # ------------------------------------------------------------------ #
    #  Views
    # ------------------------------------------------------------------ #

    def get_player_view(self, player_id: PlayerId | None = None) -> PlayerView:
        phase = self.state.current_phase
        valid_actions: list[dict] = []
        if player_id is not None and self.state.status == GameStatus.ACTIVE:
            valid_actions = self.plugin.get_valid_actions(
                self.state.game_data, phase, player_id
            )
        return PlayerView(
            match_id=self.match_id,
            game_id=self.state.game_id,
            players=self.state.players,
            current_phase=phase,
            status=self.state.status,
            action_number=self.state.action_number,
            scores=self.state.scores,
            game_data=self.plugin.get_player_view(
                self.state.game_data, phase, player_id, self.state.players
            ),
            valid_actions=valid_actions,
            viewer_id=player_id,
            result=self.result,
        )

    def _persist(self, events: list[Event]) -> None:
        for event in events:
            self.events.append(
                PersistedEvent(
                    match_id=self.match_id,
                    sequence_number=len(self.events),
                    event_type=event.event_type,
                    player_id=event.player_id,
                    payload=event.payload,
                )
            )
