"""Stateless legality and end-of-game predicates for Hexaequo.

This is the single place where the rules are decided. EngineState calls
these functions for every command; alternative front ends and tests can call
them directly without going through the turn state machine.

Validators return an error message, or None when the check passes.
"""

from __future__ import annotations

from collections.abc import Mapping

from hexaequo.game.board import Board
from hexaequo.game.types import (
    ActionType,
    Color,
    EndReason,
    Hex,
    Outcome,
    PieceType,
    PlayerResources,
    direction_between,
)


# ── Placement ──

def is_valid_tile_placement(board: Board, hex: Hex) -> bool:
    return board.is_valid_tile_placement(hex)


def validate_tile_placement(
    board: Board,
    hex: Hex,
    resources: PlayerResources,
) -> str | None:
    if resources.tiles.available <= 0:
        return "No more tiles available to place."
    if board.has_cell(hex):
        return "A tile already exists there."
    if not board.is_valid_tile_placement(hex):
        return "A tile must touch at least two existing tiles."
    return None


def validate_piece_placement(
    board: Board,
    hex: Hex,
    color: Color,
    piece_type: PieceType,
    resources: PlayerResources,
) -> str | None:
    cell = board.get_cell(hex)
    if cell is None:
        return "Must place on an existing tile."
    if cell.color != color:
        return "Must place on a tile of your color."
    if cell.piece is not None:
        return "Tile already has a piece on it."

    if piece_type == PieceType.DISC:
        if resources.discs.available <= 0:
            return "No more discs available to place."
    else:
        if resources.rings.available <= 0:
            return "No more rings available to place."
        if resources.discs.captured <= 0:
            return "You need captured discs to place a ring."
    return None


def validate_action_choice(action: ActionType, resources: PlayerResources) -> str | None:
    """Supply checks made when an action is chosen, before any coordinate."""
    if action == ActionType.PLACE_TILE and resources.tiles.available <= 0:
        return "No more tiles available to place."
    if action == ActionType.PLACE_DISC and resources.discs.available <= 0:
        return "No more discs available to place."
    if action == ActionType.PLACE_RING:
        if resources.rings.available <= 0:
            return "No more rings available to place."
        if resources.discs.captured <= 0:
            return "You need captured discs to place a ring."
    return None


def legal_destinations(
    board: Board,
    action: ActionType,
    color: Color,
    resources: PlayerResources,
) -> list[Hex]:
    """Destinations for a placement action; empty when the supply is exhausted.

    Moves depend on the selected piece, see piece_destinations().
    """
    if action == ActionType.MOVE_PIECE:
        return []
    if validate_action_choice(action, resources) is not None:
        return []
    if action == ActionType.PLACE_TILE:
        return board.valid_tile_placements(color)
    return board.valid_piece_placements(color)


# ── Movement ──

def piece_destinations(board: Board, hex: Hex, jumps_only: bool = False) -> list[Hex]:
    moves = board.piece_moves(hex)
    if jumps_only:
        moves = [m for m in moves if hex.distance(m) > 1]
    return moves


def validate_piece_source(board: Board, hex: Hex, color: Color) -> str | None:
    cell = board.get_cell(hex)
    if cell is None or cell.piece is None or cell.piece.color != color:
        return "Select one of your pieces to move."
    return None


def validate_piece_movement(board: Board, src: Hex, dst: Hex) -> str | None:
    src_cell = board.get_cell(src)
    dst_cell = board.get_cell(dst)

    if src_cell is None or src_cell.piece is None:
        return "No piece to move."
    if dst_cell is None:
        return "Must move to an existing tile."

    piece = src_cell.piece
    if piece.type == PieceType.DISC:
        if dst in board.valid_disc_moves(src):
            return None
        return "Invalid disc move."

    if src.distance(dst) != 2:
        return "Rings must move exactly two tiles away."
    if dst_cell.piece is not None and dst_cell.piece.color == piece.color:
        return "Rings cannot land on a friendly piece."
    if dst not in board.valid_ring_moves(src):
        return "Invalid ring move."
    return None


def capture_path(board: Board, src: Hex, dst: Hex) -> list[Hex]:
    """Coordinates whose pieces are jumped when a disc moves from src to dst.

    A destination on a straight line from ``src`` captures along that line.
    Only a bent chain falls back to the landings the jump search recorded.
    """
    if src.distance(dst) <= 1:
        return []
    landings = board.jump_paths(src).get(dst)
    if landings is None or direction_between(src, dst) is not None:
        return board.jumped_hexes(src, dst)

    jumped: list[Hex] = []
    previous = src
    for landing in landings:
        jumped.extend(board.jumped_hexes(previous, landing))
        previous = landing
    return jumped


def has_valid_moves(board: Board, color: Color, resources: PlayerResources) -> bool:
    """True if ``color`` can place something or move any of its pieces."""
    for action in (ActionType.PLACE_TILE, ActionType.PLACE_DISC, ActionType.PLACE_RING):
        if legal_destinations(board, action, color, resources):
            return True

    for hex, _piece in board.pieces(color):
        if board.piece_moves(hex):
            return True
    return False


# ── End of game ──

def check_win(
    board: Board,
    players: Mapping[Color, PlayerResources],
    mover: Color,
) -> Outcome | None:
    """Win for ``mover`` against its opponent; discs, rings, then pieces."""
    opponent = mover.opponent
    victim = players[opponent]

    if victim.discs.total <= 0:
        return Outcome.win(
            mover, EndReason.DISCS,
            f"Game over! {mover.label} wins by capturing all {opponent.value} discs.",
        )
    if victim.rings.total <= 0:
        return Outcome.win(
            mover, EndReason.RINGS,
            f"Game over! {mover.label} wins by capturing all {opponent.value} rings.",
        )
    if not board.pieces(opponent):
        return Outcome.win(
            mover, EndReason.PIECES,
            f"Game over! {mover.label} wins by removing all {opponent.value} pieces "
            "from the board.",
        )
    return None


def check_draw(
    board: Board,
    players: Mapping[Color, PlayerResources],
    to_move: Color,
    position_count: int = 0,
    repetition_limit: int = 3,
) -> Outcome | None:
    """Ex Aequo by repetition, then by the player to move having no legal action."""
    if position_count >= repetition_limit:
        return Outcome.draw(
            EndReason.REPETITION,
            "Game ended in a draw due to threefold repetition (Ex Aequo).",
        )
    if not has_valid_moves(board, to_move, players[to_move]):
        return Outcome.draw(
            EndReason.NO_MOVES,
            f"Game ended in a draw because {to_move.value} has no valid moves (Ex Aequo).",
        )
    return None


def evaluate(
    board: Board,
    players: Mapping[Color, PlayerResources],
    to_move: Color,
    position_count: int = 0,
    repetition_limit: int = 3,
) -> Outcome:
    """Full verdict over a position, independent of whose move produced it."""
    for mover in (to_move.opponent, to_move):
        won = check_win(board, players, mover)
        if won is not None:
            return won

    drawn = check_draw(board, players, to_move, position_count, repetition_limit)
    if drawn is not None:
        return drawn
    return Outcome()
