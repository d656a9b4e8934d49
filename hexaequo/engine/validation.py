"""Sanity checks run on a plugin before it is registered."""

from __future__ import annotations

import copy
import json

from hexaequo.engine.models import Action, GameConfig, Phase, Player, PlayerId
from hexaequo.engine.protocol import GamePlugin

_METADATA = ("game_id", "display_name", "min_players", "max_players")


def validate_plugin(plugin: GamePlugin) -> list[str]:
    """Run sanity checks on a plugin. Returns list of errors (empty = OK)."""
    errors = [f"Missing attribute: {attr}" for attr in _METADATA if not hasattr(plugin, attr)]
    if errors:
        return errors  # Can't proceed without metadata

    if not isinstance(plugin, GamePlugin):
        return ["Plugin does not implement the GamePlugin protocol"]

    if not 1 <= plugin.min_players <= plugin.max_players:
        errors.append(
            f"Invalid player range {plugin.min_players}..{plugin.max_players}"
        )
        return errors

    rejected = plugin.validate_config({})
    if rejected:
        errors.append(f"Default config rejected: {'; '.join(rejected)}")

    try:
        errors.extend(_check_opening(plugin))
    except Exception as e:
        errors.append(f"create_initial_state failed: {e}")

    return errors


def _check_opening(plugin: GamePlugin) -> list[str]:
    """Play-test the first phase with the minimum number of players."""
    players = [
        Player(player_id=PlayerId(f"test-{i}"), display_name=f"Test {i}", seat_index=i)
        for i in range(plugin.min_players)
    ]
    config = GameConfig()
    game_data, phase, _events = plugin.create_initial_state(players, config)

    if not isinstance(game_data, dict):
        return ["create_initial_state must return dict as game_data"]
    if not isinstance(phase, Phase):
        return ["create_initial_state must return Phase as second element"]
    if phase.acting_player is None:
        return ["First phase has no expected_actions"]

    errors: list[str] = []
    try:
        json.dumps(game_data)
    except TypeError as e:
        errors.append(f"game_data is not JSON serializable: {e}")

    # Every listed action must pass the plugin's own validation, without side effects
    before = copy.deepcopy(game_data)
    for p in players:
        for choice in plugin.get_valid_actions(game_data, phase, p.player_id):
            action = Action(
                action_type=choice["action_type"],
                player_id=p.player_id,
                payload={k: v for k, v in choice.items() if k != "action_type"},
            )
            refused = plugin.validate_action(game_data, phase, action)
            if refused:
                errors.append(f"Listed action {choice} is refused: {refused}")
        plugin.get_player_view(game_data, phase, p.player_id, players)
    if game_data != before:
        errors.append("validate_action or a view modified game_data")

    game_data2, _phase2, _events2 = plugin.create_initial_state(players, config)
    if game_data != game_data2:
        errors.append("create_initial_state is not deterministic")

    return errors
