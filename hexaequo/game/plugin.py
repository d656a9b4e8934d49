"""HexaequoPlugin: the GamePlugin implementation for Hexaequo."""

from __future__ import annotations

from typing import ClassVar

from pydantic import ValidationError

from hexaequo.engine.errors import InvalidActionError, PluginError, StateRestoreError
from hexaequo.engine.models import (
    Action,
    Event,
    ExpectedAction,
    GameConfig,
    GameResult,
    Phase,
    Player,
    PlayerId,
    TransitionResult,
)
from hexaequo.game import rules
from hexaequo.game.state import EngineState
from hexaequo.game.types import ActionType, Color, Hex, OutcomeStatus, RuleSet

PHASE_PLAY = "play"
PHASE_CONTINUE_JUMP = "continue_jump"
PHASE_GAME_OVER = "game_over"

END_CHAIN = "end_chain"

_CONFIG_KEYS = {"tiles", "discs", "rings", "repetition_limit"}


class HexaequoPlugin:
    """Grow the board, place discs and rings, capture by jumping."""

    game_id: ClassVar[str] = "hexaequo"
    display_name: ClassVar[str] = "Hexaequo"
    min_players: ClassVar[int] = 2
    max_players: ClassVar[int] = 2
    description: ClassVar[str] = (
        "Two-player abstract strategy game on an expanding hexagonal board. "
        "Capture all enemy discs or rings, or clear the enemy off the board."
    )
    config_schema: ClassVar[dict] = {
        "type": "object",
        "properties": {
            "tiles": {"type": "integer", "minimum": 2},
            "discs": {"type": "integer", "minimum": 1},
            "rings": {"type": "integer", "minimum": 1},
            "repetition_limit": {"type": "integer", "minimum": 2},
        },
    }

    # ── Lifecycle ──

    def create_initial_state(
        self,
        players: list[Player],
        config: GameConfig,
    ) -> tuple[dict, Phase, list[Event]]:
        seated = sorted(players, key=lambda p: p.seat_index)
        seats = {Color.BLACK.value: seated[0].player_id, Color.WHITE.value: seated[1].player_id}

        state = EngineState(self._ruleset(config.options))
        game_data = _dump(state, seats)

        events = [
            Event(event_type="game_started", payload={
                "players": [p.player_id for p in seated],
                "seats": seats,
                "rules": state.ruleset.model_dump(),
            }),
        ]
        return game_data, _next_phase(state, seats), events

    def validate_config(self, options: dict) -> list[str]:
        errors: list[str] = []
        for key, value in options.items():
            if key not in _CONFIG_KEYS:
                errors.append(f"Unknown option: {key}")
            elif isinstance(value, bool) or not isinstance(value, int):
                errors.append(f"{key} must be an integer")
        if errors:
            return errors

        try:
            RuleSet(**options)
        except ValidationError as e:
            errors.extend(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
        return errors

    # ── Core game loop ──

    def get_valid_actions(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId,
    ) -> list[dict]:
        if phase.name not in (PHASE_PLAY, PHASE_CONTINUE_JUMP):
            return []

        expected_pid = phase.acting_player
        if player_id != expected_pid:
            return []

        return enumerate_actions(self._load(game_data))

    def validate_action(
        self,
        game_data: dict,
        phase: Phase,
        action: Action,
    ) -> str | None:
        if phase.name == PHASE_GAME_OVER:
            return "The game is over"

        expected_pid = phase.acting_player
        if action.player_id != expected_pid:
            return "Not your turn"

        # Dry run on a private copy; game_data is left untouched
        return _dispatch(self._load(game_data), action)

    def apply_action(
        self,
        game_data: dict,
        phase: Phase,
        action: Action,
        players: list[Player],
    ) -> TransitionResult:
        if phase.name == PHASE_GAME_OVER:
            raise InvalidActionError("The game is over", action)

        state = self._load(game_data)
        seats = game_data["seats"]
        mover = state.current_player

        error = _dispatch(state, action)
        if error:
            raise InvalidActionError(error, action)

        events = _action_events(state, action, mover)
        new_data = _dump(state, seats)
        scores = _scores(state, seats)

        game_over = None
        if state.is_over:
            game_over = _game_result(state, seats, scores)
            events.append(Event(event_type="game_ended", payload={
                "status": state.outcome.status.value,
                "reason": state.outcome.reason.value,
                "winners": game_over.winners,
                "message": state.outcome.message,
            }))

        return TransitionResult(
            game_data=new_data,
            events=events,
            next_phase=_next_phase(state, seats),
            scores=scores,
            game_over=game_over,
        )

    # ── View filtering ──

    def get_player_view(
        self,
        game_data: dict,
        phase: Phase,
        player_id: PlayerId | None,
        players: list[Player],
    ) -> dict:
        # No hidden info
        snapshot = game_data["state"]
        return {
            "cells": snapshot["cells"],
            "players": snapshot["players"],
            "current_player": snapshot["current_player"],
            "outcome": snapshot["outcome"],
            "chain_hex": snapshot.get("chain_hex"),
            "seats": game_data["seats"],
        }

    def get_spectator_summary(
        self,
        game_data: dict,
        phase: Phase,
        players: list[Player],
    ) -> dict:
        state = self._load(game_data)
        seats = game_data["seats"]
        return {
            "scores": _scores(state, seats),
            "tiles_on_board": len(state.board),
            "pieces_on_board": {
                seats[color.value]: len(state.board.pieces(color)) for color in Color
            },
        }

    # ── Private helpers ──

    def _ruleset(self, options: dict) -> RuleSet:
        defaults = RuleSet.from_settings()
        return defaults.model_copy(
            update={k: v for k, v in options.items() if k in _CONFIG_KEYS},
        )

    def _load(self, game_data: dict) -> EngineState:
        try:
            return EngineState.from_snapshot(game_data["state"])
        except (KeyError, StateRestoreError) as e:
            raise PluginError(f"Corrupt Hexaequo game data: {e}", e) from e


def action_from_choice(choice: dict, player_id: PlayerId) -> Action:
    """Turn an entry of get_valid_actions() into an Action."""
    payload = {k: v for k, v in choice.items() if k != "action_type"}
    return Action(action_type=choice["action_type"], player_id=player_id, payload=payload)


def enumerate_actions(state: EngineState) -> list[dict]:
    """Every legal action for the player to move."""
    if state.is_over:
        return []

    color = state.current_player
    if state.continuation_pending:
        src = state.chain_hex
        actions = [_move_choice(src, dst) for dst in state.legal_destinations]
        actions.append({"action_type": END_CHAIN})
        return actions

    actions: list[dict] = []
    resources = state.players[color]
    for action in (ActionType.PLACE_TILE, ActionType.PLACE_DISC, ActionType.PLACE_RING):
        for hex in rules.legal_destinations(state.board, action, color, resources):
            actions.append({"action_type": action.value, "q": hex.q, "r": hex.r})

    for src, _piece in state.board.pieces(color):
        for dst in state.board.piece_moves(src):
            actions.append(_move_choice(src, dst))
    return actions


def _move_choice(src: Hex, dst: Hex) -> dict:
    return {
        "action_type": ActionType.MOVE_PIECE.value,
        "from_q": src.q,
        "from_r": src.r,
        "to_q": dst.q,
        "to_r": dst.r,
    }


def _payload_hex(payload: dict, q_key: str, r_key: str) -> Hex | str:
    q = payload.get(q_key)
    r = payload.get(r_key)
    if q is None or r is None:
        return f"Missing {q_key} or {r_key} in payload"
    if any(isinstance(v, bool) or not isinstance(v, int) for v in (q, r)):
        return f"{q_key} and {r_key} must be integers"
    return Hex(q, r)


def _dispatch(state: EngineState, action: Action) -> str | None:
    """Drive the state machine through one complete action."""
    if action.action_type == END_CHAIN:
        return state.end_chain()

    try:
        action_type = ActionType(action.action_type)
    except ValueError:
        return f"Unknown action type: {action.action_type}"

    if action_type == ActionType.MOVE_PIECE:
        src = _payload_hex(action.payload, "from_q", "from_r")
        dst = _payload_hex(action.payload, "to_q", "to_r")
        for parsed in (src, dst):
            if isinstance(parsed, str):
                return parsed
        if state.continuation_pending and src != state.chain_hex:
            return "Only the jumping disc may move; send end_chain to stop jumping"
        return (
            state.choose_action(action_type)
            or state.choose_source(src)
            or state.choose_destination(dst)
        )

    if state.continuation_pending:
        return "Finish the jump chain or send end_chain first"

    hex = _payload_hex(action.payload, "q", "r")
    if isinstance(hex, str):
        return hex
    return state.choose_action(action_type) or state.choose_destination(hex)


def _dump(state: EngineState, seats: dict) -> dict:
    return {
        "seats": dict(seats),
        "state": state.snapshot().model_dump(mode="json"),
    }


def _next_phase(state: EngineState, seats: dict) -> Phase:
    if state.is_over:
        return Phase(name=PHASE_GAME_OVER)

    color = state.current_player
    player_id = seats[color.value]
    if state.continuation_pending:
        return Phase(
            name=PHASE_CONTINUE_JUMP,
            expected_actions=[
                ExpectedAction(
                    player_id=player_id,
                    action_type=ActionType.MOVE_PIECE.value,
                    constraints={"from": state.chain_hex.key},
                ),
            ],
            metadata={"color": color.value, "chain_hex": state.chain_hex.key},
        )

    return Phase(
        name=PHASE_PLAY,
        expected_actions=[
            ExpectedAction(player_id=player_id, action_type=PHASE_PLAY),
        ],
        metadata={"color": color.value},
    )


def _action_events(state: EngineState, action: Action, mover: Color) -> list[Event]:
    pid = action.player_id
    payload = dict(action.payload)
    events: list[Event] = []

    if action.action_type == END_CHAIN:
        events.append(Event(event_type="jump_chain_ended", player_id=pid, payload={}))
    elif action.action_type == ActionType.PLACE_TILE.value:
        events.append(Event(event_type="tile_placed", player_id=pid, payload={
            **payload, "color": mover.value,
        }))
    elif action.action_type in (ActionType.PLACE_DISC.value, ActionType.PLACE_RING.value):
        piece_type = "disc" if action.action_type == ActionType.PLACE_DISC.value else "ring"
        events.append(Event(event_type="piece_placed", player_id=pid, payload={
            **payload, "color": mover.value, "piece_type": piece_type,
        }))
    else:
        events.append(Event(event_type="piece_moved", player_id=pid, payload=payload))
        for hex, piece in state.last_captures:
            events.append(Event(event_type="piece_captured", player_id=pid, payload={
                "q": hex.q,
                "r": hex.r,
                "piece_type": piece.type.value,
                "color": piece.color.value,
            }))
        if state.continuation_pending:
            events.append(Event(event_type="jump_chain_started", player_id=pid, payload={
                "from": state.chain_hex.key,
                "destinations": [h.key for h in state.legal_destinations],
            }))
    return events


def _scores(state: EngineState, seats: dict) -> dict[str, float]:
    """Pieces currently held as captures."""
    return {
        seats[color.value]: float(
            state.players[color].discs.captured + state.players[color].rings.captured
        )
        for color in Color
    }


def _game_result(state: EngineState, seats: dict, scores: dict[str, float]) -> GameResult:
    outcome = state.outcome
    winners = []
    if outcome.status == OutcomeStatus.WIN:
        winners = [seats[outcome.winner.value]]
    return GameResult(
        winners=winners,
        final_scores=scores,
        reason=outcome.reason.value,
        details={"status": outcome.status.value, "message": outcome.message},
    )
