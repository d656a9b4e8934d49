"""Persisted/exported state boundary.

A snapshot is what a save slot or an export file holds: the ordered cell
list keyed by ``"q,r"``, both players' material, whose turn it is and the
outcome. Repetition counters and a pending jump chain are optional extras;
when absent, a restored game starts a fresh repetition history.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, ValidationError

from hexaequo.engine.errors import StateRestoreError
from hexaequo.game.board import Board
from hexaequo.game.types import (
    Cell,
    Color,
    Hex,
    Outcome,
    PieceType,
    PlayerResources,
    RuleSet,
    key_to_hex,
)

if TYPE_CHECKING:
    from hexaequo.game.state import EngineState

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"


class GameSnapshot(BaseModel):
    version: str = SNAPSHOT_VERSION
    cells: list[tuple[str, Cell]]
    players: dict[Color, PlayerResources]
    current_player: Color
    outcome: Outcome = Field(default_factory=Outcome)
    rules: RuleSet | None = None
    position_counts: dict[str, int] | None = None
    chain_hex: str | None = None

    def to_json(self) -> str:
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> GameSnapshot:
        try:
            return cls.model_validate_json(data)
        except ValidationError as e:
            raise StateRestoreError(f"Malformed snapshot: {e}", e) from e


@dataclass
class RestoredPosition:
    """A fully validated position, ready to be swapped into an EngineState."""

    board: Board
    players: dict[Color, PlayerResources]
    current_player: Color
    outcome: Outcome
    rules: RuleSet | None = None
    position_counts: dict[str, int] = field(default_factory=dict)
    chain_hex: Hex | None = None


def build_snapshot(state: EngineState, include_history: bool = True) -> GameSnapshot:
    return GameSnapshot(
        cells=[(hex.key, cell.model_copy()) for hex, cell in state.board.all_cells()],
        players={c: r.model_copy(deep=True) for c, r in state.players.items()},
        current_player=state.current_player,
        outcome=state.outcome.model_copy(),
        rules=state.ruleset.model_copy(),
        position_counts=dict(state.position_counts) if include_history else None,
        chain_hex=state.chain_hex.key if state.chain_hex is not None else None,
    )


def decode_snapshot(data: GameSnapshot | dict | str | bytes) -> RestoredPosition:
    """Validate externally supplied state. Raises StateRestoreError on any defect."""
    if isinstance(data, (str, bytes)):
        snapshot = GameSnapshot.from_json(data)
    elif isinstance(data, GameSnapshot):
        snapshot = data
    else:
        try:
            snapshot = GameSnapshot.model_validate(data)
        except ValidationError as e:
            raise StateRestoreError(f"Malformed snapshot: {e}", e) from e

    errors = _check_snapshot(snapshot)
    if errors:
        logger.warning(f"Rejected snapshot: {'; '.join(errors)}")
        raise StateRestoreError("; ".join(errors))

    pairs = [(key_to_hex(key), cell.model_copy()) for key, cell in snapshot.cells]
    board = Board.from_cells(pairs)

    return RestoredPosition(
        board=board,
        players={c: r.model_copy(deep=True) for c, r in snapshot.players.items()},
        current_player=snapshot.current_player,
        outcome=snapshot.outcome.model_copy(),
        rules=snapshot.rules,
        position_counts=dict(snapshot.position_counts or {}),
        chain_hex=key_to_hex(snapshot.chain_hex) if snapshot.chain_hex else None,
    )


def _check_snapshot(snapshot: GameSnapshot) -> list[str]:
    errors: list[str] = []

    if not snapshot.cells:
        errors.append("Snapshot has no cells")

    seen: dict[Hex, Cell] = {}
    for key, cell in snapshot.cells:
        try:
            hex = key_to_hex(key)
        except ValueError:
            errors.append(f"Invalid coordinate key: {key!r}")
            continue
        if hex in seen:
            errors.append(f"Duplicate cell at {key}")
        seen[hex] = cell

    for color in Color:
        resources = snapshot.players.get(color)
        if resources is None:
            errors.append(f"Missing resources for {color.value}")
            continue
        pools = {
            "tiles": (resources.tiles.total, resources.tiles.placed, 0),
            "discs": (resources.discs.total, resources.discs.placed, resources.discs.captured),
            "rings": (resources.rings.total, resources.rings.placed, resources.rings.captured),
        }
        for name, (total, placed, captured) in pools.items():
            if min(total, placed, captured) < 0:
                errors.append(f"Negative {name} count for {color.value}")
            elif placed > total:
                errors.append(f"{color.value} has {placed} {name} placed of {total}")

    if snapshot.position_counts and any(n < 0 for n in snapshot.position_counts.values()):
        errors.append("Negative repetition count")

    if snapshot.chain_hex is not None:
        try:
            chain = key_to_hex(snapshot.chain_hex)
        except ValueError:
            errors.append(f"Invalid chain coordinate: {snapshot.chain_hex!r}")
        else:
            cell = seen.get(chain)
            if (
                cell is None
                or cell.piece is None
                or cell.piece.type != PieceType.DISC
                or cell.piece.color != snapshot.current_player
            ):
                errors.append("Jump chain does not start from a disc of the player to move")

    return errors
