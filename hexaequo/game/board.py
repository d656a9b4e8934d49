"""Board state management for Hexaequo.

The board is a sparse mapping from axial coordinate to cell. A coordinate
without an entry has no tile. Besides storage it answers the geometric
questions of the game: where tiles may grow, where pieces may be placed and
where a disc or ring on the board may move.
"""

from __future__ import annotations

from hexaequo.game.types import (
    HEX_DIRECTIONS,
    Cell,
    Color,
    Hex,
    Piece,
    PieceType,
    direction_between,
    hex_neighbors,
)

# Tiles a new tile must touch
MIN_TILE_NEIGHBORS = 2


class Board:
    """Sparse hex board plus bookkeeping of occupied bounds."""

    def __init__(self) -> None:
        self._cells: dict[Hex, Cell] = {}
        self.min_q = 0
        self.max_q = 0
        self.min_r = 0
        self.max_r = 0

    @classmethod
    def initial(cls) -> Board:
        board = cls()
        board.setup_initial()
        return board

    @classmethod
    def from_cells(cls, cells: list[tuple[Hex, Cell]]) -> Board:
        """Rebuild a board from an ordered cell list, bounds derived from the cells."""
        board = cls()
        for hex, cell in cells:
            board._cells[hex] = cell
        board.recompute_bounds()
        return board

    def setup_initial(self) -> None:
        """Lay out the starting cluster: two tiles and one disc per colour."""
        self.clear()
        self.place_tile(Hex(0, 0), Color.BLACK)
        self.place_tile(Hex(1, 0), Color.WHITE)
        self.place_tile(Hex(0, 1), Color.WHITE)
        self.place_tile(Hex(1, -1), Color.BLACK)

        self.place_piece(Hex(1, -1), Piece(type=PieceType.DISC, color=Color.BLACK))
        self.place_piece(Hex(0, 1), Piece(type=PieceType.DISC, color=Color.WHITE))

    # ── Storage ──

    def get_cell(self, hex: Hex) -> Cell | None:
        return self._cells.get(hex)

    def has_cell(self, hex: Hex) -> bool:
        return hex in self._cells

    def set_cell(self, hex: Hex, cell: Cell) -> None:
        self._cells[hex] = cell
        self.min_q = min(self.min_q, hex.q)
        self.max_q = max(self.max_q, hex.q)
        self.min_r = min(self.min_r, hex.r)
        self.max_r = max(self.max_r, hex.r)

    def remove_cell(self, hex: Hex) -> bool:
        return self._cells.pop(hex, None) is not None

    def clear(self) -> None:
        self._cells.clear()
        self.min_q = self.max_q = self.min_r = self.max_r = 0

    def all_cells(self) -> list[tuple[Hex, Cell]]:
        """All (hex, cell) pairs in insertion order."""
        return list(self._cells.items())

    def pieces(self, color: Color | None = None) -> list[tuple[Hex, Piece]]:
        """Positions holding a piece, optionally restricted to one colour."""
        return [
            (hex, cell.piece)
            for hex, cell in self._cells.items()
            if cell.piece is not None and (color is None or cell.piece.color == color)
        ]

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, hex: object) -> bool:
        return hex in self._cells

    def recompute_bounds(self) -> None:
        if not self._cells:
            self.min_q = self.max_q = self.min_r = self.max_r = 0
            return
        self.min_q = min(h.q for h in self._cells)
        self.max_q = max(h.q for h in self._cells)
        self.min_r = min(h.r for h in self._cells)
        self.max_r = max(h.r for h in self._cells)

    def center(self) -> tuple[float, float]:
        """Axial centre of the occupied bounds, used for camera centring."""
        return (self.min_q + self.max_q) / 2, (self.min_r + self.max_r) / 2

    def copy(self) -> Board:
        other = Board()
        for hex, cell in self._cells.items():
            other._cells[hex] = cell.model_copy()
        other.min_q, other.max_q = self.min_q, self.max_q
        other.min_r, other.max_r = self.min_r, self.max_r
        return other

    # ── Mutation (driven by EngineState) ──

    def place_tile(self, hex: Hex, color: Color) -> None:
        self.set_cell(hex, Cell(color=color))

    def place_piece(self, hex: Hex, piece: Piece) -> None:
        self._cells[hex].piece = piece

    def remove_piece(self, hex: Hex) -> Piece | None:
        cell = self._cells.get(hex)
        if cell is None:
            return None
        piece, cell.piece = cell.piece, None
        return piece

    def move_piece(self, src: Hex, dst: Hex) -> Piece | None:
        """Move the piece on ``src`` to ``dst``. Returns whatever ``dst`` held."""
        piece = self.remove_piece(src)
        displaced = self.remove_piece(dst)
        self._cells[dst].piece = piece
        return displaced

    # ── Adjacency & placement ──

    def neighbors(self, hex: Hex) -> list[Hex]:
        return hex_neighbors(hex)

    def occupied_neighbor_count(self, hex: Hex) -> int:
        return sum(1 for n in hex_neighbors(hex) if n in self._cells)

    def is_valid_tile_placement(self, hex: Hex) -> bool:
        if hex in self._cells:
            return False
        return self.occupied_neighbor_count(hex) >= MIN_TILE_NEIGHBORS

    def valid_tile_placements(self, color: Color | None = None) -> list[Hex]:
        """Empty coordinates where a tile of any colour may be added."""
        seen: set[Hex] = set()
        valid: list[Hex] = []
        for hex in self._cells:
            for n in hex_neighbors(hex):
                if n in seen or n in self._cells:
                    continue
                seen.add(n)
                if self.is_valid_tile_placement(n):
                    valid.append(n)
        return valid

    def is_valid_piece_placement(self, hex: Hex, color: Color) -> bool:
        cell = self._cells.get(hex)
        return cell is not None and cell.color == color and cell.piece is None

    def valid_piece_placements(self, color: Color) -> list[Hex]:
        return [
            hex for hex, cell in self._cells.items()
            if cell.color == color and cell.piece is None
        ]

    # ── Movement ──

    def _is_empty_tile(self, hex: Hex) -> bool:
        cell = self._cells.get(hex)
        return cell is not None and cell.piece is None

    def _piece_at(self, hex: Hex, piece_type: PieceType) -> Piece | None:
        cell = self._cells.get(hex)
        if cell is None or cell.piece is None or cell.piece.type != piece_type:
            return None
        return cell.piece

    def jump_paths(self, hex: Hex) -> dict[Hex, list[Hex]]:
        """Map every jump landing reachable from ``hex`` to the landings leading to it.

        Depth-first over an explicit stack. The origin is treated as vacated
        (the moving disc cannot be jumped) and as visited (it is never a
        landing). Each landing is reached at most once, through the first
        chain that discovers it.
        """
        if self._piece_at(hex, PieceType.DISC) is None:
            return {}

        parents: dict[Hex, Hex] = {}
        visited: set[Hex] = {hex}
        order: list[Hex] = []
        stack: list[tuple[Hex, int]] = [(hex, 0)]

        while stack:
            pos, next_dir = stack.pop()
            if next_dir >= len(HEX_DIRECTIONS):
                continue
            stack.append((pos, next_dir + 1))

            d = HEX_DIRECTIONS[next_dir]
            over = pos + d
            landing = over + d
            over_cell = self._cells.get(over)
            if over == hex or over_cell is None or over_cell.piece is None:
                continue
            if landing in visited or not self._is_empty_tile(landing):
                continue

            visited.add(landing)
            parents[landing] = pos
            order.append(landing)
            stack.append((landing, 0))

        paths: dict[Hex, list[Hex]] = {}
        for landing in order:
            path = [landing]
            while parents[path[-1]] != hex:
                path.append(parents[path[-1]])
            paths[landing] = path[::-1]
        return paths

    def valid_disc_moves(self, hex: Hex) -> list[Hex]:
        """Steps to adjacent empty tiles followed by every chained jump landing."""
        if self._piece_at(hex, PieceType.DISC) is None:
            return []

        moves = [n for n in hex_neighbors(hex) if self._is_empty_tile(n)]
        moves.extend(self.jump_paths(hex))
        return moves

    def jumped_hexes(self, start: Hex, end: Hex) -> list[Hex]:
        """Coordinates strictly between ``start`` and ``end`` on a straight line."""
        direction = direction_between(start, end)
        if direction is None:
            raise ValueError(f"{start} and {end} are not on a straight line")

        jumped: list[Hex] = []
        current = start + direction
        while current != end:
            jumped.append(current)
            current = current + direction
        return jumped

    def valid_ring_moves(self, hex: Hex) -> list[Hex]:
        """Landings exactly two steps away in a straight line; rings leap, no path check."""
        ring = self._piece_at(hex, PieceType.RING)
        if ring is None:
            return []

        moves: list[Hex] = []
        for d in HEX_DIRECTIONS:
            landing = hex + d * 2
            cell = self._cells.get(landing)
            if cell is None:
                continue
            if cell.piece is None or cell.piece.color != ring.color:
                moves.append(landing)
        return moves

    def piece_moves(self, hex: Hex) -> list[Hex]:
        cell = self._cells.get(hex)
        if cell is None or cell.piece is None:
            return []
        if cell.piece.type == PieceType.DISC:
            return self.valid_disc_moves(hex)
        return self.valid_ring_moves(hex)

    # ── Position signature ──

    def signature(self, to_move: Color) -> str:
        """Canonical serialization of the full board plus the colour to move."""
        parts = []
        for hex in sorted(self._cells):
            cell = self._cells[hex]
            piece = ""
            if cell.piece is not None:
                piece = f"{cell.piece.color.value[0]}{cell.piece.type.value[0]}"
            parts.append(f"{hex.q},{hex.r}:{cell.color.value[0]}{piece}")
        return f"{to_move.value}|{';'.join(parts)}"
