"""
Engine Core - Pure pipe-rotation puzzle logic.

The engine:
1. Generates a solvable puzzle from a snake path
2. Reports a tile's current connections
3. Rotates unlocked tiles (copy-on-write)
4. Verifies a solution with purely local checks
"""

from .state import Direction, TileType, SpecialType, TileState, PuzzleState, Grid
from .puzzle import (
    generate,
    rotate,
    rotate_puzzle,
    current_connections,
    is_solved,
    solved_copy,
)

__all__ = [
    "Direction",
    "TileType",
    "SpecialType",
    "TileState",
    "PuzzleState",
    "Grid",
    "generate",
    "rotate",
    "rotate_puzzle",
    "current_connections",
    "is_solved",
    "solved_copy",
]
