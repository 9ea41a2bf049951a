"""Shared test helpers."""


def solve_by_rotating(puzzle, rotate_fn):
    """Tap every unlocked tile until it reaches its correct rotation."""
    for r, c, tile in list(puzzle.tiles()):
        for _ in range((tile.correct_rotation - tile.rotation) % 360 // 90):
            rotate_fn(r, c)
