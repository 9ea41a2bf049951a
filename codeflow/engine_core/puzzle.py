"""
Puzzle Engine - Generation, rotation and solution checking.

All functions are pure: they take values and return new values.

Generation lays a boustrophedon ("snake") path over the grid:
row 0 left to right, row 1 right to left, and so on. The path visits
every cell exactly once by construction, so no search is needed and
every generated puzzle is solvable.
"""

from __future__ import annotations
import logging
import random

from ..config import is_development
from ..errors import PuzzleInvariantError
from .state import (
    Direction,
    Grid,
    PuzzleState,
    ROTATIONS,
    SpecialType,
    TileState,
    TileType,
)

logger = logging.getLogger(__name__)

MIN_SIZE = 3


def snake_path(size: int) -> list[tuple[int, int]]:
    """Cells of the boustrophedon path in visiting order."""
    cells = []
    for r in range(size):
        cols = range(size) if r % 2 == 0 else range(size - 1, -1, -1)
        cells.extend((r, c) for c in cols)
    return cells


def _direction_towards(src: tuple[int, int], dst: tuple[int, int]) -> Direction:
    offset = (dst[0] - src[0], dst[1] - src[1])
    for d in Direction:
        if d.delta == offset:
            return d
    raise ValueError(f"Cells {src} and {dst} are not adjacent")


def classify(connections: list[Direction]) -> TileType:
    """Pick the tile shape for a path cell's connections."""
    if len(connections) == 1:
        return TileType.END
    horizontal = sum(1 for d in connections if d.is_horizontal)
    if horizontal == 1:
        return TileType.CURVE
    return TileType.STRAIGHT


def rotation_for(
    tile_type: TileType,
    target: list[Direction],
    strict: bool | None = None,
) -> int:
    """
    Find the rotation that turns a tile type's base connections into target.

    Comparison is order-independent. A miss means the generator is broken:
    strict mode raises, otherwise the miss is logged and 0 is used.
    """
    wanted = frozenset(target)
    for angle in ROTATIONS:
        rotated = frozenset(d.rotated(angle) for d in tile_type.base_connections)
        if rotated == wanted:
            return angle

    if strict is None:
        strict = is_development()
    if strict:
        raise PuzzleInvariantError(tile_type, target)
    logger.error(
        "No rotation of %s matches %s; falling back to 0",
        tile_type.value, [d.value for d in target],
    )
    return 0


def generate(
    size: int,
    locked_percent: int,
    rng: random.Random | None = None,
) -> PuzzleState:
    """
    Generate a solvable puzzle.

    Args:
        size: Grid side length (>= 3)
        locked_percent: Chance (0-100) that any tile starts locked
        rng: Random source; pass a seeded Random for reproducible puzzles

    Returns:
        PuzzleState whose unlocked tiles all start mis-rotated
    """
    if size < MIN_SIZE:
        raise ValueError(f"Puzzle size must be at least {MIN_SIZE}, got {size}")
    if not 0 <= locked_percent <= 100:
        raise ValueError(f"locked_percent must be within 0-100, got {locked_percent}")

    rng = rng or random.Random()
    cells = snake_path(size)
    rows: list[list[TileState | None]] = [[None] * size for _ in range(size)]
    last = len(cells) - 1

    for i, (r, c) in enumerate(cells):
        connections = []
        if i > 0:
            connections.append(_direction_towards((r, c), cells[i - 1]))
        if i < last:
            connections.append(_direction_towards((r, c), cells[i + 1]))

        tile_type = classify(connections)
        correct = rotation_for(tile_type, connections)

        locked = rng.random() * 100 < locked_percent
        if locked:
            rotation = correct
        else:
            # Every unlocked tile starts 90, 180 or 270 degrees off
            rotation = (correct + rng.randint(1, 3) * 90) % 360

        if i == 0:
            special = SpecialType.START
        elif i == last:
            special = SpecialType.END
        else:
            special = SpecialType.NONE

        rows[r][c] = TileState(
            type=tile_type,
            rotation=rotation,
            correct_rotation=correct,
            locked=locked,
            special=special,
        )

    grid: Grid = tuple(tuple(row) for row in rows)
    return PuzzleState(size=size, locked_percent=locked_percent, grid=grid)


def current_connections(tile: TileState) -> list[Direction]:
    """Directions the tile touches at its current rotation."""
    return [d.rotated(tile.rotation) for d in tile.type.base_connections]


def rotate(grid: Grid, row: int, col: int) -> Grid:
    """
    Turn one tile a quarter clockwise.

    A locked tile is a rejected tap: the input grid itself is returned,
    so callers can test `new is grid` to see whether anything changed.
    Only the touched row is rebuilt; other rows are shared.
    """
    if not (0 <= row < len(grid) and 0 <= col < len(grid[row])):
        raise IndexError(f"Tile ({row}, {col}) is outside the grid")

    tile = grid[row][col]
    if tile.locked:
        return grid

    old_row = grid[row]
    new_row = old_row[:col] + (tile.rotated(),) + old_row[col + 1:]
    return grid[:row] + (new_row,) + grid[row + 1:]


def rotate_puzzle(puzzle: PuzzleState, row: int, col: int) -> PuzzleState:
    """rotate() lifted to a whole puzzle; returns the same object when rejected."""
    new_grid = rotate(puzzle.grid, row, col)
    if new_grid is puzzle.grid:
        return puzzle
    return puzzle.with_grid(new_grid)


def is_solved(puzzle: PuzzleState) -> bool:
    """
    Check every cell locally.

    A cell passes when its connection count matches its role and every
    connection points at an in-bounds neighbour that connects back.
    """
    size = puzzle.size
    for r, c, tile in puzzle.tiles():
        connections = current_connections(tile)
        if len(connections) != tile.required_degree:
            return False

        for d in connections:
            dr, dc = d.delta
            nr, nc = r + dr, c + dc
            if not (0 <= nr < size and 0 <= nc < size):
                return False
            if d.opposite not in current_connections(puzzle.grid[nr][nc]):
                return False

    return True


def solved_copy(puzzle: PuzzleState) -> PuzzleState:
    """Return the puzzle with every tile at its correct rotation."""
    grid = tuple(
        tuple(tile.with_rotation(tile.correct_rotation) for tile in row)
        for row in puzzle.grid
    )
    return puzzle.with_grid(grid)
