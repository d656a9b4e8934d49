from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from hexaequo.engine.models import GameConfig, Player
from hexaequo.engine.session import LocalSession
from hexaequo.engine.validation import validate_plugin

if TYPE_CHECKING:
    from hexaequo.engine.protocol import GamePlugin

logger = logging.getLogger(__name__)


class PluginRegistry:
    """Games available for local matches, keyed by game_id."""

    def __init__(self) -> None:
        self._plugins: dict[str, GamePlugin] = {}

    def register(self, plugin: GamePlugin, validate: bool = True) -> None:
        game_id = plugin.game_id
        if game_id in self._plugins:
            raise ValueError(f"Game '{game_id}' already registered")
        if validate:
            errors = validate_plugin(plugin)
            if errors:
                raise ValueError(f"Plugin '{game_id}' failed validation: {'; '.join(errors)}")
        self._plugins[game_id] = plugin
        logger.info(f"Registered game plugin: {game_id}")

    def get(self, game_id: str) -> GamePlugin:
        if game_id not in self._plugins:
            raise KeyError(f"Unknown game: {game_id}")
        return self._plugins[game_id]

    def __contains__(self, game_id: object) -> bool:
        return game_id in self._plugins

    def list_games(self) -> list[dict]:
        return [
            {
                "game_id": p.game_id,
                "display_name": p.display_name,
                "min_players": p.min_players,
                "max_players": p.max_players,
                "description": p.description,
                "config_schema": p.config_schema,
            }
            for p in self._plugins.values()
        ]

    def start_match(
        self,
        game_id: str,
        players: list[Player],
        config: GameConfig | None = None,
    ) -> LocalSession:
        """Open a local session for a registered game."""
        plugin = self.get(game_id)
        if not plugin.min_players <= len(players) <= plugin.max_players:
            raise ValueError(
                f"{game_id} needs {plugin.min_players}-{plugin.max_players} players, "
                f"got {len(players)}"
            )
        return LocalSession(plugin, players, config)


def default_registry() -> PluginRegistry:
    """Registry holding every bundled game."""
    from hexaequo.game.plugin import HexaequoPlugin

    registry = PluginRegistry()
    registry.register(HexaequoPlugin())
    return registry
