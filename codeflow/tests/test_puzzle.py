"""
Tests for the puzzle engine.

Tests:
- Generated puzzles are solvable for every size and lock setting
- Locked tiles never move
- Solution checking is local and exact
- Input validation
"""

import random

import pytest

from ..engine_core.puzzle import (
    classify,
    current_connections,
    generate,
    is_solved,
    rotate,
    rotate_puzzle,
    rotation_for,
    snake_path,
    solved_copy,
)
from ..engine_core.state import Direction, SpecialType, TileType
from ..errors import PuzzleInvariantError


class TestGenerate:
    """Tests for puzzle generation."""

    @pytest.mark.parametrize("size", range(3, 11))
    @pytest.mark.parametrize("locked_percent", [0, 15, 50, 100])
    def test_solution_is_a_valid_path(self, size, locked_percent):
        """Setting every tile to its correct rotation solves the puzzle."""
        puzzle = generate(size, locked_percent, rng=random.Random(size * 101 + locked_percent))

        assert puzzle.size == size
        assert len(puzzle.grid) == size
        assert all(len(row) == size for row in puzzle.grid)
        assert is_solved(solved_copy(puzzle))

    def test_one_start_and_one_end(self, rng):
        puzzle = generate(5, 0, rng=rng)
        specials = [tile.special for _, _, tile in puzzle.tiles()]

        assert specials.count(SpecialType.START) == 1
        assert specials.count(SpecialType.END) == 1
        assert puzzle.tile(0, 0).special is SpecialType.START

    def test_endpoints_are_end_tiles(self, rng):
        puzzle = generate(4, 0, rng=rng)
        for _, _, tile in puzzle.tiles():
            if tile.special is not SpecialType.NONE:
                assert tile.type is TileType.END

    def test_unlocked_tiles_start_misrotated(self, rng):
        puzzle = generate(6, 0, rng=rng)
        for _, _, tile in puzzle.tiles():
            assert not tile.locked
            assert tile.rotation != tile.correct_rotation

    def test_fully_locked_puzzle_is_solved(self, rng):
        puzzle = generate(4, 100, rng=rng)

        assert puzzle.locked_count == 16
        assert is_solved(puzzle)

    def test_locked_tiles_are_correct(self, rng):
        puzzle = generate(8, 50, rng=rng)
        for _, _, tile in puzzle.tiles():
            if tile.locked:
                assert tile.rotation == tile.correct_rotation

    def test_rotations_are_quarter_turns(self, rng):
        puzzle = generate(7, 30, rng=rng)
        for _, _, tile in puzzle.tiles():
            assert tile.rotation in (0, 90, 180, 270)
            assert tile.correct_rotation in (0, 90, 180, 270)

    def test_same_seed_same_puzzle(self):
        a = generate(6, 40, rng=random.Random(7))
        b = generate(6, 40, rng=random.Random(7))
        assert a == b

    @pytest.mark.parametrize("size", [0, 1, 2, -4])
    def test_rejects_small_size(self, size):
        with pytest.raises(ValueError):
            generate(size, 0)

    @pytest.mark.parametrize("locked_percent", [-1, 101])
    def test_rejects_bad_lock_percent(self, locked_percent):
        with pytest.raises(ValueError):
            generate(4, locked_percent)


class TestPathConstruction:
    """Tests for the snake path helpers."""

    def test_snake_visits_every_cell_once(self):
        cells = snake_path(5)
        assert len(cells) == 25
        assert len(set(cells)) == 25

    def test_snake_steps_are_adjacent(self):
        cells = snake_path(4)
        for (r1, c1), (r2, c2) in zip(cells, cells[1:]):
            assert abs(r1 - r2) + abs(c1 - c2) == 1

    def test_classify(self):
        assert classify([Direction.LEFT]) is TileType.END
        assert classify([Direction.LEFT, Direction.RIGHT]) is TileType.STRAIGHT
        assert classify([Direction.UP, Direction.DOWN]) is TileType.STRAIGHT
        assert classify([Direction.LEFT, Direction.DOWN]) is TileType.CURVE

    def test_rotation_for_ignores_order(self):
        assert rotation_for(TileType.CURVE, [Direction.RIGHT, Direction.DOWN]) == 90
        assert rotation_for(TileType.CURVE, [Direction.DOWN, Direction.RIGHT]) == 90
        assert rotation_for(TileType.STRAIGHT, [Direction.UP, Direction.DOWN]) == 90
        assert rotation_for(TileType.END, [Direction.LEFT]) == 180

    def test_rotation_for_impossible_target_strict(self):
        with pytest.raises(PuzzleInvariantError):
            rotation_for(TileType.STRAIGHT, [Direction.UP, Direction.RIGHT], strict=True)

    def test_rotation_for_impossible_target_lenient(self):
        assert rotation_for(TileType.STRAIGHT, [Direction.UP, Direction.RIGHT], strict=False) == 0


class TestRotate:
    """Tests for tile rotation."""

    def test_rotate_turns_clockwise(self, small_puzzle):
        tile = small_puzzle.tile(1, 1)
        grid = rotate(small_puzzle.grid, 1, 1)

        assert grid[1][1].rotation == (tile.rotation + 90) % 360
        assert grid[1][1].correct_rotation == tile.correct_rotation

    def test_four_rotations_restore_tile(self, small_puzzle):
        grid = small_puzzle.grid
        for _ in range(4):
            grid = rotate(grid, 2, 0)
        assert grid[2][0] == small_puzzle.grid[2][0]

    def test_rotate_does_not_touch_input(self, small_puzzle):
        before = small_puzzle.tile(0, 1)
        rotate(small_puzzle.grid, 0, 1)
        assert small_puzzle.tile(0, 1) == before

    def test_rotate_shares_untouched_rows(self, small_puzzle):
        grid = rotate(small_puzzle.grid, 1, 2)
        assert grid[0] is small_puzzle.grid[0]
        assert grid[2] is small_puzzle.grid[2]
        assert grid[1] is not small_puzzle.grid[1]

    def test_locked_tile_returns_same_grid(self, rng):
        puzzle = generate(4, 100, rng=rng)
        assert rotate(puzzle.grid, 2, 3) is puzzle.grid
        assert rotate_puzzle(puzzle, 2, 3) is puzzle

    @pytest.mark.parametrize("row,col", [(-1, 0), (0, -1), (3, 0), (0, 3)])
    def test_out_of_bounds(self, small_puzzle, row, col):
        with pytest.raises(IndexError):
            rotate(small_puzzle.grid, row, col)

    def test_current_connections_follow_rotation(self, small_puzzle):
        tile = small_puzzle.tile(0, 1).with_rotation(0)
        base = current_connections(tile)
        turned = current_connections(tile.rotated())
        assert turned == [d.rotated(90) for d in base]


class TestIsSolved:
    """Tests for solution checking."""

    def test_solved_copy_is_solved(self, small_puzzle):
        assert not is_solved(small_puzzle)
        assert is_solved(solved_copy(small_puzzle))

    def test_one_tile_off_by_quarter_turn(self, small_puzzle):
        solved = solved_copy(small_puzzle)
        puzzle = rotate_puzzle(solved, 1, 1)
        assert not is_solved(puzzle)

        for _ in range(3):
            puzzle = rotate_puzzle(puzzle, 1, 1)
        assert is_solved(puzzle)

    def test_straight_turned_half_is_still_connected(self, small_puzzle):
        solved = solved_copy(small_puzzle)
        # (1, 1) is the middle of row 1, a straight pipe on the snake path
        assert solved.tile(1, 1).type is TileType.STRAIGHT
        puzzle = rotate_puzzle(rotate_puzzle(solved, 1, 1), 1, 1)
        assert is_solved(puzzle)

    def test_solving_by_taps(self, rng):
        puzzle = generate(5, 30, rng=rng)
        for r, c, tile in list(puzzle.tiles()):
            while puzzle.tile(r, c).rotation != tile.correct_rotation:
                puzzle = rotate_puzzle(puzzle, r, c)
        assert is_solved(puzzle)
