from __future__ import annotations

from hexaequo.engine.models import Action


class GameEngineError(Exception):
    """Base class for engine errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidActionError(GameEngineError):
    """Action is not legal in the current position."""

    def __init__(self, message: str, action: Action | None = None):
        self.action = action
        super().__init__(message)


class GameNotActiveError(GameEngineError):
    """Action submitted to a finished match."""


class NotYourTurnError(GameEngineError):
    """Player tried to act when it's not their turn."""


class PluginError(GameEngineError):
    """Game plugin raised an unexpected error."""

    def __init__(self, message: str, original: Exception | None = None):
        self.original = original
        super().__init__(message)


class StateRestoreError(PluginError):
    """Externally supplied game state is malformed and was not loaded."""
