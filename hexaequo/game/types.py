"""Domain models for Hexaequo: axial coordinates, colours, pieces and cells."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Color(str, Enum):
    BLACK = "black"
    WHITE = "white"

    @property
    def opponent(self) -> Color:
        return Color.WHITE if self is Color.BLACK else Color.BLACK

    @property
    def label(self) -> str:
        return self.value.capitalize()


class PieceType(str, Enum):
    DISC = "disc"
    RING = "ring"


@dataclass(frozen=True, order=True)
class Hex:
    """Axial hex coordinate. The third cube coordinate is ``s = -q - r``."""

    q: int
    r: int

    @property
    def s(self) -> int:
        return -self.q - self.r

    def add(self, other: Hex) -> Hex:
        return Hex(self.q + other.q, self.r + other.r)

    def subtract(self, other: Hex) -> Hex:
        return Hex(self.q - other.q, self.r - other.r)

    def scale(self, k: int) -> Hex:
        return Hex(self.q * k, self.r * k)

    __add__ = add
    __sub__ = subtract

    def __mul__(self, k: int) -> Hex:
        return self.scale(k)

    __rmul__ = __mul__

    def length(self) -> int:
        return (abs(self.q) + abs(self.r) + abs(self.s)) // 2

    def distance(self, other: Hex) -> int:
        return self.subtract(other).length()

    @property
    def key(self) -> str:
        return hex_to_key(self)

    def __str__(self) -> str:
        return f"Hex({self.q}, {self.r})"


# Axial directions in enumeration order: E, NE, NW, W, SW, SE
HEX_DIRECTIONS: list[Hex] = [
    Hex(1, 0),
    Hex(1, -1),
    Hex(0, -1),
    Hex(-1, 0),
    Hex(-1, 1),
    Hex(0, 1),
]


def hex_neighbors(hex: Hex) -> list[Hex]:
    """Return the 6 axial-coordinate neighbors of ``hex``."""
    return [hex + d for d in HEX_DIRECTIONS]


def direction_between(start: Hex, end: Hex) -> Hex | None:
    """Unit direction from ``start`` to ``end`` if they lie on one straight line."""
    delta = end - start
    steps = delta.length()
    if steps == 0:
        return None
    for d in HEX_DIRECTIONS:
        if d * steps == delta:
            return d
    return None


def hex_round(q: float, r: float) -> Hex:
    """Round fractional axial coordinates to the nearest hex."""
    s = -q - r
    qi, ri, si = round(q), round(r), round(s)

    q_diff = abs(qi - q)
    r_diff = abs(ri - r)
    s_diff = abs(si - s)

    if q_diff > r_diff and q_diff > s_diff:
        qi = -ri - si
    elif r_diff > s_diff:
        ri = -qi - si

    return Hex(int(qi), int(ri))


def hex_to_key(hex: Hex) -> str:
    return f"{hex.q},{hex.r}"


def key_to_hex(key: str) -> Hex:
    q, r = key.split(",")
    return Hex(int(q), int(r))


# --- Board content ---

class Piece(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: PieceType
    color: Color


class Cell(BaseModel):
    color: Color
    piece: Piece | None = None


# --- Player material ---

class TilePool(BaseModel):
    total: int
    placed: int = 0

    @property
    def available(self) -> int:
        return self.total - self.placed


class PiecePool(BaseModel):
    total: int
    placed: int = 0
    captured: int = 0  # opponent pieces of this type held by the owner

    @property
    def available(self) -> int:
        return self.total - self.placed


class PlayerResources(BaseModel):
    tiles: TilePool
    discs: PiecePool
    rings: PiecePool

    def pool(self, piece_type: PieceType) -> PiecePool:
        return self.discs if piece_type == PieceType.DISC else self.rings


class RuleSet(BaseModel):
    """Material and repetition limits for one game."""

    tiles: int = Field(default=9, ge=2)
    discs: int = Field(default=6, ge=1)
    rings: int = Field(default=3, ge=1)
    repetition_limit: int = Field(default=3, ge=2)

    @classmethod
    def from_settings(cls) -> RuleSet:
        from hexaequo.config import settings

        return cls(
            tiles=settings.tiles_per_player,
            discs=settings.discs_per_player,
            rings=settings.rings_per_player,
            repetition_limit=settings.repetition_limit,
        )

    def starting_resources(self) -> PlayerResources:
        # Setup puts two tiles and one disc per colour on the board
        return PlayerResources(
            tiles=TilePool(total=self.tiles, placed=2),
            discs=PiecePool(total=self.discs, placed=1),
            rings=PiecePool(total=self.rings),
        )


# --- Turn state ---

class ActionType(str, Enum):
    PLACE_TILE = "place_tile"
    PLACE_DISC = "place_disc"
    PLACE_RING = "place_ring"
    MOVE_PIECE = "move_piece"


PLACEMENT_PIECES: dict[ActionType, PieceType] = {
    ActionType.PLACE_DISC: PieceType.DISC,
    ActionType.PLACE_RING: PieceType.RING,
}


class TurnPhase(str, Enum):
    IDLE = "idle"
    ACTION_CHOSEN = "action_chosen"
    SOURCE_CHOSEN = "source_chosen"
    GAME_OVER = "game_over"


class OutcomeStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    WIN = "win"
    DRAW = "draw"


class EndReason(str, Enum):
    DISCS = "discs"
    RINGS = "rings"
    PIECES = "pieces"
    REPETITION = "repetition"
    NO_MOVES = "no_moves"


class Outcome(BaseModel):
    status: OutcomeStatus = OutcomeStatus.IN_PROGRESS
    winner: Color | None = None
    reason: EndReason | None = None
    message: str = ""

    @property
    def is_over(self) -> bool:
        return self.status != OutcomeStatus.IN_PROGRESS

    @classmethod
    def win(cls, winner: Color, reason: EndReason, message: str = "") -> Outcome:
        return cls(status=OutcomeStatus.WIN, winner=winner, reason=reason, message=message)

    @classmethod
    def draw(cls, reason: EndReason, message: str = "") -> Outcome:
        return cls(status=OutcomeStatus.DRAW, reason=reason, message=message)
