"""
Puzzle State - Tiles, directions and the puzzle grid.

Design principles:
- Immutable: tiles and grids are frozen, updates build new values
- Serializable: every field is plain data (see persistence.snapshot)
- Rotation arithmetic works on the canonical direction order
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum


class Direction(Enum):
    """Edges of a cell, in canonical clockwise order."""
    UP = "up"
    RIGHT = "right"
    DOWN = "down"
    LEFT = "left"

    @property
    def index(self) -> int:
        return _DIRECTION_ORDER.index(self)

    @property
    def opposite(self) -> Direction:
        return _DIRECTION_ORDER[(self.index + 2) % 4]

    @property
    def delta(self) -> tuple[int, int]:
        """(row, col) offset of the neighbour on this edge."""
        return _DELTAS[self]

    @property
    def is_horizontal(self) -> bool:
        return self in (Direction.LEFT, Direction.RIGHT)

    def rotated(self, degrees: int) -> Direction:
        """Rotate clockwise by a multiple of 90 degrees."""
        return _DIRECTION_ORDER[(self.index + degrees // 90) % 4]


_DIRECTION_ORDER: tuple[Direction, ...] = (
    Direction.UP,
    Direction.RIGHT,
    Direction.DOWN,
    Direction.LEFT,
)

_DELTAS: dict[Direction, tuple[int, int]] = {
    Direction.UP: (-1, 0),
    Direction.RIGHT: (0, 1),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
}

ROTATIONS: tuple[int, ...] = (0, 90, 180, 270)


class TileType(Enum):
    """Pipe segment shapes."""
    STRAIGHT = "straight"
    CURVE = "curve"
    END = "end"

    @property
    def base_connections(self) -> tuple[Direction, ...]:
        """Connections at rotation 0."""
        return _BASE_CONNECTIONS[self]


_BASE_CONNECTIONS: dict[TileType, tuple[Direction, ...]] = {
    TileType.STRAIGHT: (Direction.RIGHT, Direction.LEFT),
    TileType.CURVE: (Direction.UP, Direction.RIGHT),
    TileType.END: (Direction.RIGHT,),
}


class SpecialType(Enum):
    """Path endpoint markers."""
    NONE = "none"
    START = "start"
    END = "end"


@dataclass(frozen=True)
class TileState:
    """
    One cell of the puzzle grid.

    correct_rotation is fixed at generation. Locked tiles keep
    rotation == correct_rotation for the lifetime of the puzzle.
    """
    type: TileType
    rotation: int
    correct_rotation: int
    locked: bool = False
    special: SpecialType = SpecialType.NONE

    @property
    def required_degree(self) -> int:
        """Endpoints connect once, every other tile twice."""
        return 1 if self.special is not SpecialType.NONE else 2

    def rotated(self) -> TileState:
        """Return the tile turned a quarter clockwise."""
        return replace(self, rotation=(self.rotation + 90) % 360)

    def with_rotation(self, rotation: int) -> TileState:
        return replace(self, rotation=rotation % 360)


Grid = tuple[tuple[TileState, ...], ...]


@dataclass(frozen=True)
class PuzzleState:
    """
    An N x N rotation puzzle.

    With every tile at its correct rotation the grid forms a single
    path through all cells, from the START tile to the END tile.
    """
    size: int
    locked_percent: int
    grid: Grid

    def tile(self, row: int, col: int) -> TileState:
        return self.grid[row][col]

    def in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size

    def with_grid(self, grid: Grid) -> PuzzleState:
        """Return a puzzle sharing size and lock setting with a new grid."""
        return replace(self, grid=grid)

    def tiles(self):
        """Iterate (row, col, tile) in row-major order."""
        for r, row in enumerate(self.grid):
            for c, tile in enumerate(row):
                yield r, c, tile

    @property
    def locked_count(self) -> int:
        return sum(1 for _, _, tile in self.tiles() if tile.locked)
