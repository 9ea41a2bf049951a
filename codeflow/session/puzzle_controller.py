"""
Puzzle Controller - Drives one puzzle screen.

The controller:
1. Loads a ticket's working puzzle
2. Rotates tiles through the pure engine
3. Counts elapsed seconds while the puzzle is open and unsolved
4. Reports solved only for the ticket it currently holds

It remembers the last loaded ticket id so a late "solved" signal from
a previously loaded puzzle is never applied to the wrong ticket.
"""

from __future__ import annotations
import logging

from ..engine_core.puzzle import is_solved, rotate_puzzle
from ..engine_core.state import PuzzleState
from ..tickets.ticket import Ticket
from .timer import ElapsedCounter, Scheduler

logger = logging.getLogger(__name__)


class PuzzleController:
    """
    Per-puzzle state and clock.

    Usage:
        controller = PuzzleController(scheduler)
        controller.load(ticket)
        controller.rotate(0, 1)
        if controller.accepts_solved(ticket.id):
            await session.complete_ticket(ticket.id, controller.elapsed)
    """

    def __init__(self, scheduler: Scheduler):
        self.puzzle: PuzzleState | None = None
        self.ticket_id: str | None = None
        self.solved = False
        self._definition: PuzzleState | None = None
        self._clock = ElapsedCounter(scheduler)
        self._recorded = 0
        self._foreground = True

    @property
    def elapsed(self) -> int:
        return self._clock.seconds

    @property
    def is_loaded(self) -> bool:
        return self.puzzle is not None

    @property
    def is_timer_running(self) -> bool:
        return self._clock.is_running

    def load(self, ticket: Ticket) -> None:
        """Open a ticket's working copy and start its clock."""
        self._clock.reset()
        self.ticket_id = ticket.id
        self._recorded = 0
        self.puzzle = ticket.current_puzzle_state
        self._definition = ticket.puzzle_definition
        self.solved = is_solved(self.puzzle)
        logger.debug("Loaded puzzle for %s (solved=%s)", ticket.id, self.solved)
        self._sync_clock()

    def reset(self) -> None:
        """Discard progress and start over from the ticket's original puzzle."""
        if self._definition is None:
            return
        self.puzzle = self._definition
        self.solved = is_solved(self.puzzle)
        self._sync_clock()

    def rotate(self, row: int, col: int) -> bool:
        """
        Rotate a tile.

        Returns True if the grid changed. Taps on locked tiles, on a
        solved puzzle, or with nothing loaded change nothing.
        """
        if self.puzzle is None or self.solved:
            return False

        updated = rotate_puzzle(self.puzzle, row, col)
        if updated is self.puzzle:
            return False

        self.puzzle = updated
        if is_solved(updated):
            self.solved = True
            logger.info("Puzzle for %s solved in %ds", self.ticket_id, self.elapsed)
            self._sync_clock()
        return True

    def accepts_solved(self, ticket_id: str) -> bool:
        """Whether a solved signal for ticket_id refers to the loaded puzzle."""
        return self.solved and ticket_id == self.ticket_id

    def pause(self) -> None:
        """App went to the background."""
        self._foreground = False
        self._sync_clock()

    def resume(self) -> None:
        """App came back to the foreground."""
        self._foreground = True
        self._sync_clock()

    def checkpoint(self) -> tuple[PuzzleState | None, int]:
        """
        Hand back (puzzle, seconds since the last checkpoint) and keep going.

        The ticket accumulates these seconds, so each one is reported once.
        """
        seconds = self.elapsed - self._recorded
        self._recorded = self.elapsed
        return self.puzzle, seconds

    def close(self) -> tuple[PuzzleState | None, int]:
        """Stop the clock and hand back (puzzle, seconds not yet checkpointed)."""
        self._clock.stop()
        result = self.checkpoint()
        self.puzzle = None
        self._definition = None
        self.solved = False
        return result

    def _sync_clock(self) -> None:
        if self.puzzle is not None and self._foreground and not self.solved:
            self._clock.start()
        else:
            self._clock.stop()
