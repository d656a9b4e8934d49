"""Tests for the synchronous game simulator."""

from __future__ import annotations

from hexaequo.engine.game_simulator import (
    SimulationState,
    apply_action,
    clone_state,
)
from hexaequo.engine.models import Action, GameConfig, Player, PlayerId
from hexaequo.game.plugin import HexaequoPlugin


def _make_players() -> list[Player]:
    return [
        Player(player_id="p1", display_name="Alice", seat_index=0),
        Player(player_id="p2", display_name="Bob", seat_index=1),
    ]


def _initial(plugin: HexaequoPlugin) -> SimulationState:
    players = _make_players()
    game_data, phase, _ = plugin.create_initial_state(players, GameConfig())
    return SimulationState(game_data=game_data, phase=phase, players=players)


def _place_tile(q: int, r: int) -> Action:
    return Action(action_type="place_tile", player_id=PlayerId("p1"), payload={"q": q, "r": r})


class TestApplyAction:
    def test_applies_action(self) -> None:
        plugin = HexaequoPlugin()
        state = _initial(plugin)

        events = apply_action(plugin, state, _place_tile(1, 1))

        assert [e.event_type for e in events] == ["tile_placed"]
        assert state.phase.acting_player == "p2"
        assert state.scores == {"p1": 0.0, "p2": 0.0}
        assert state.game_over is None

    def test_players_untouched(self) -> None:
        plugin = HexaequoPlugin()
        state = _initial(plugin)
        players = state.players

        apply_action(plugin, state, _place_tile(1, 1))

        assert state.players is players


class TestCloneState:
    def test_clone_is_independent(self) -> None:
        plugin = HexaequoPlugin()
        state = _initial(plugin)
        clone = clone_state(state)

        apply_action(plugin, clone, _place_tile(1, 1))

        assert state.game_data["state"]["current_player"] == "black"
        assert clone.game_data["state"]["current_player"] == "white"
        assert clone.players is state.players
