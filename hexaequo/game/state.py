"""EngineState, the Hexaequo turn state machine.

A turn goes idle → action chosen → (source chosen, for moves) → resolved and
back to idle for the next player. A disc that captured and can keep jumping
leaves the turn open: the same piece stays selected with only its jumps as
destinations until it stops, either because no jump is left or because the
player picks anything else.

Commands never raise on illegal input. They return the rejection message
(also stored in ``message``) and leave the game untouched; ``None`` means the
command was accepted.
"""

from __future__ import annotations

import logging
from collections import Counter

from hexaequo.game import rules
from hexaequo.game.board import Board
from hexaequo.game.snapshot import GameSnapshot, build_snapshot, decode_snapshot
from hexaequo.game.types import (
    PLACEMENT_PIECES,
    ActionType,
    Cell,
    Color,
    Hex,
    Outcome,
    Piece,
    PieceType,
    PlayerResources,
    RuleSet,
    TurnPhase,
)

logger = logging.getLogger(__name__)

_PROMPTS = {
    ActionType.PLACE_TILE: "Select a position to place a tile.",
    ActionType.PLACE_DISC: "Select a tile to place a disc.",
    ActionType.PLACE_RING: "Select a tile to place a ring.",
    ActionType.MOVE_PIECE: "Select a piece to move.",
}


class EngineState:
    """Sole owner and writer of one game's board and player material."""

    def __init__(self, ruleset: RuleSet | None = None) -> None:
        self.ruleset = ruleset or RuleSet.from_settings()
        self.board = Board()
        self.players: dict[Color, PlayerResources] = {}
        self.current_player = Color.BLACK
        self.selected_action: ActionType | None = None
        self.selected_source: Hex | None = None
        self.legal_destinations: list[Hex] = []
        self.continuation_pending = False
        self.chain_hex: Hex | None = None
        self.history: list[str] = []
        self.position_counts: Counter[str] = Counter()
        self.outcome = Outcome()
        self.message = ""
        self.last_captures: list[tuple[Hex, Piece]] = []
        self.new_game()

    # ── Lifecycle ──

    def new_game(self) -> None:
        self.board = Board.initial()
        self.players = {color: self.ruleset.starting_resources() for color in Color}
        self.current_player = Color.BLACK
        self._clear_selection()
        self.continuation_pending = False
        self.chain_hex = None
        self.history = []
        self.position_counts = Counter()
        self.outcome = Outcome()
        self.last_captures = []
        self.message = "Game started. Black player's turn."
        self._record_position(self.current_player)
        logger.debug("New game started")

    @classmethod
    def from_snapshot(
        cls,
        data: GameSnapshot | dict | str | bytes,
        ruleset: RuleSet | None = None,
    ) -> EngineState:
        state = cls(ruleset)
        state.restore(data)
        return state

    def snapshot(self, include_history: bool = True) -> GameSnapshot:
        return build_snapshot(self, include_history=include_history)

    def restore(self, data: GameSnapshot | dict | str | bytes) -> None:
        """Replace the whole game with an external snapshot.

        Raises StateRestoreError and leaves the current game untouched if the
        snapshot is malformed.
        """
        position = decode_snapshot(data)

        self.board = position.board
        self.players = position.players
        self.current_player = position.current_player
        if position.rules is not None:
            self.ruleset = position.rules
        self.outcome = position.outcome
        self.last_captures = []
        self._clear_selection()
        self.continuation_pending = False
        self.chain_hex = None
        self.history = []
        self.position_counts = Counter(position.position_counts)
        if not self.position_counts:
            self._record_position(self.current_player)

        if self.outcome.is_over:
            self.message = self.outcome.message or "Game over."
        elif position.chain_hex is not None:
            self._start_chain(position.chain_hex)
        else:
            self.message = f"Game restored. {self.current_player.label} player's turn."
            count = self.position_counts[self.board.signature(self.current_player)]
            drawn = rules.check_draw(
                self.board, self.players, self.current_player,
                count, self.ruleset.repetition_limit,
            )
            if drawn is not None:
                self._finish(drawn)

        logger.info(
            f"Restored game with {len(self.board)} cells, {self.current_player.value} to move"
        )

    # ── Queries ──

    @property
    def phase(self) -> TurnPhase:
        if self.outcome.is_over:
            return TurnPhase.GAME_OVER
        if self.selected_source is not None:
            return TurnPhase.SOURCE_CHOSEN
        if self.selected_action is not None:
            return TurnPhase.ACTION_CHOSEN
        return TurnPhase.IDLE

    @property
    def is_over(self) -> bool:
        return self.outcome.is_over

    @property
    def opponent(self) -> Color:
        return self.current_player.opponent

    def get_cell(self, hex: Hex) -> Cell | None:
        return self.board.get_cell(hex)

    def all_cells(self) -> list[tuple[Hex, Cell]]:
        return self.board.all_cells()

    def valid_tile_placements(self, color: Color | None = None) -> list[Hex]:
        return self.board.valid_tile_placements(color or self.current_player)

    def valid_piece_placements(self, color: Color | None = None) -> list[Hex]:
        return self.board.valid_piece_placements(color or self.current_player)

    def valid_disc_moves(self, hex: Hex) -> list[Hex]:
        return self.board.valid_disc_moves(hex)

    def valid_ring_moves(self, hex: Hex) -> list[Hex]:
        return self.board.valid_ring_moves(hex)

    def resources(self, color: Color) -> PlayerResources:
        """Copy of a player's material; mutating it does not affect the game."""
        return self.players[color].model_copy(deep=True)

    def has_valid_moves(self, color: Color | None = None) -> bool:
        color = color or self.current_player
        return rules.has_valid_moves(self.board, color, self.players[color])

    # ── Commands ──

    def choose_action(self, action: ActionType | str) -> str | None:
        if self.outcome.is_over:
            return self._reject("The game is over.")
        try:
            action = ActionType(action)
        except ValueError:
            return self._reject(f"Unknown action: {action}")

        if self.continuation_pending:
            if action == ActionType.MOVE_PIECE:
                self.selected_action = action
                self.selected_source = None
                self.legal_destinations = []
                self.message = (
                    "Select the same piece to jump again, or any other piece to end your turn."
                )
                return None
            # Any other action forfeits the remaining jumps
            self._complete_turn(f"{self.current_player.label} stopped jumping.")
            return None

        resources = self.players[self.current_player]
        error = rules.validate_action_choice(action, resources)
        if error:
            return self._reject(error)

        if action == ActionType.MOVE_PIECE:
            destinations: list[Hex] = []
        else:
            destinations = rules.legal_destinations(
                self.board, action, self.current_player, resources,
            )
            if not destinations:
                self._clear_selection()
                return self._reject(f"No valid positions for {action.value}.")

        self.selected_action = action
        self.selected_source = None
        self.legal_destinations = destinations
        self.message = _PROMPTS[action]
        return None

    def choose_source(self, hex: Hex) -> str | None:
        if self.outcome.is_over:
            return self._reject("The game is over.")
        if self.selected_action != ActionType.MOVE_PIECE:
            return self._reject("Choose to move a piece first.")

        if self.continuation_pending and hex != self.chain_hex:
            self._complete_turn(f"{self.current_player.label} stopped jumping.")
            return None

        error = rules.validate_piece_source(self.board, hex, self.current_player)
        if error:
            return self._reject(error)

        destinations = rules.piece_destinations(
            self.board, hex, jumps_only=self.continuation_pending,
        )
        if not destinations:
            return self._reject("This piece has no valid moves.")

        self.selected_source = hex
        self.legal_destinations = destinations
        self.message = "Select a destination for the piece."
        return None

    def choose_destination(self, hex: Hex) -> str | None:
        if self.outcome.is_over:
            return self._reject("The game is over.")
        if self.selected_action is None:
            return self._reject("Select an action first.")
        if self.selected_action == ActionType.MOVE_PIECE and self.selected_source is None:
            return self._reject("Select one of your pieces to move.")
        if hex not in self.legal_destinations:
            return self._reject("Invalid move. Try again.")

        mover = self.current_player
        action = self.selected_action

        if action == ActionType.PLACE_TILE:
            error = rules.validate_tile_placement(self.board, hex, self.players[mover])
            if error:
                return self._reject(error)
            self._place_tile(hex)
            self._complete_turn(f"{mover.label} placed a tile.")
            return None

        if action in PLACEMENT_PIECES:
            piece_type = PLACEMENT_PIECES[action]
            error = rules.validate_piece_placement(
                self.board, hex, mover, piece_type, self.players[mover],
            )
            if error:
                return self._reject(error)
            summary = self._place_piece(hex, piece_type)
            self._complete_turn(summary)
            return None

        src = self.selected_source
        error = rules.validate_piece_movement(self.board, src, hex)
        if error:
            return self._reject(error)
        self._resolve_move(src, hex)
        return None

    def select_hex(self, hex: Hex) -> str | None:
        """Single click entry point dispatching on the current machine state."""
        if self.outcome.is_over:
            return self._reject("The game is over.")
        if self.selected_action is None:
            return self._reject("Select an action first.")

        if self.selected_action == ActionType.MOVE_PIECE:
            if self.selected_source is None:
                return self.choose_source(hex)
            if hex not in self.legal_destinations:
                cell = self.board.get_cell(hex)
                own_piece = (
                    cell is not None
                    and cell.piece is not None
                    and cell.piece.color == self.current_player
                )
                if self.continuation_pending or own_piece:
                    return self.choose_source(hex)

        return self.choose_destination(hex)

    def end_chain(self) -> str | None:
        """Voluntarily stop a multi-jump, forfeiting the remaining jumps."""
        if not self.continuation_pending:
            return self._reject("There is no jump chain to end.")
        self._complete_turn(f"{self.current_player.label} stopped jumping.")
        return None

    def cancel_selection(self) -> str | None:
        if self.outcome.is_over:
            return self._reject("The game is over.")
        if self.continuation_pending:
            return self.end_chain()
        self._clear_selection()
        self.message = f"{self.current_player.label} player's turn."
        return None

    # ── Resolution ──

    def _place_tile(self, hex: Hex) -> None:
        self.board.place_tile(hex, self.current_player)
        self.players[self.current_player].tiles.placed += 1

    def _place_piece(self, hex: Hex, piece_type: PieceType) -> str:
        mover = self.current_player
        resources = self.players[mover]

        self.board.place_piece(hex, Piece(type=piece_type, color=mover))
        resources.pool(piece_type).placed += 1

        if piece_type == PieceType.RING:
            # The exchanged disc goes back to its owner's supply
            resources.discs.captured -= 1
            self.players[mover.opponent].discs.total += 1
            return f"{mover.label} placed a ring and returned a captured disc."
        return f"{mover.label} placed a disc."

    def _resolve_move(self, src: Hex, dst: Hex) -> None:
        mover = self.current_player
        piece = self.board.get_cell(src).piece
        captured: list[tuple[Hex, Piece]] = []

        if piece.type == PieceType.DISC:
            for jumped in rules.capture_path(self.board, src, dst):
                cell = self.board.get_cell(jumped)
                if cell is not None and cell.piece is not None and cell.piece.color != mover:
                    captured.append((jumped, self.board.remove_piece(jumped)))
            self.board.move_piece(src, dst)
        else:
            displaced = self.board.move_piece(src, dst)
            if displaced is not None:
                captured.append((dst, displaced))

        for _hex, victim in captured:
            self._capture(victim)
        self.last_captures = captured

        if not captured:
            if piece.type == PieceType.DISC and src.distance(dst) > 1:
                self._complete_turn(f"{mover.label} jumped over pieces.")
            else:
                self._complete_turn(f"{mover.label} moved a {piece.type.value}.")
            return

        summary = f"{mover.label} captured {_describe(captured)}."
        won = rules.check_win(self.board, self.players, mover)
        if piece.type == PieceType.DISC and won is None:
            if rules.piece_destinations(self.board, dst, jumps_only=True):
                self._start_chain(dst)
                self.message = (
                    f"{summary} Additional jumps available. Select the same piece to jump "
                    "again, or any other piece/action to end your turn."
                )
                logger.debug(f"{mover.value} may continue jumping from {dst}")
                return

        self._complete_turn(summary)

    def _capture(self, victim: Piece) -> None:
        mover_pool = self.players[self.current_player].pool(victim.type)
        victim_pool = self.players[victim.color].pool(victim.type)
        mover_pool.captured += 1
        victim_pool.total -= 1
        victim_pool.placed -= 1

    def _start_chain(self, hex: Hex) -> None:
        self.continuation_pending = True
        self.chain_hex = hex
        self.selected_action = ActionType.MOVE_PIECE
        self.selected_source = hex
        self.legal_destinations = rules.piece_destinations(self.board, hex, jumps_only=True)
        self.message = "Additional jumps available."

    def _complete_turn(self, summary: str) -> None:
        mover = self.current_player
        self.continuation_pending = False
        self.chain_hex = None
        self._clear_selection()

        count = self._record_position(mover.opponent)

        won = rules.check_win(self.board, self.players, mover)
        if won is not None:
            self._finish(won)
            return

        self.current_player = mover.opponent
        drawn = rules.check_draw(
            self.board, self.players, self.current_player,
            count, self.ruleset.repetition_limit,
        )
        if drawn is not None:
            self._finish(drawn)
            return

        self.message = f"{summary} {self.current_player.label} player's turn."
        logger.debug(f"{mover.value} completed a turn: {summary}")

    def _finish(self, outcome: Outcome) -> None:
        self.outcome = outcome
        self._clear_selection()
        self.message = outcome.message
        logger.info(f"Game ended: {outcome.status.value} ({outcome.reason.value})")

    def _record_position(self, to_move: Color) -> int:
        signature = self.board.signature(to_move)
        self.history.append(signature)
        self.position_counts[signature] += 1
        return self.position_counts[signature]

    def _clear_selection(self) -> None:
        self.selected_action = None
        self.selected_source = None
        self.legal_destinations = []

    def _reject(self, message: str) -> str:
        self.message = message
        logger.debug(f"Rejected: {message}")
        return message


def _describe(captured: list[tuple[Hex, Piece]]) -> str:
    names = [f"a {p.color.value} {p.type.value}" for _hex, p in captured]
    if len(names) == 1:
        return names[0]
    return ", ".join(names[:-1]) + f" and {names[-1]}"
