"""
Tickets - A puzzle wrapped with project-management metadata.

A ticket keeps two puzzles:
- puzzle_definition: the puzzle as generated, never changed
- current_puzzle_state: the player's working copy

Tickets are immutable; the session machine replaces them on every change.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from enum import Enum

from ..engine_core.state import PuzzleState
from .catalogue import TicketType


class TicketStatus(Enum):
    """Where a ticket is in its lifecycle."""
    BACKLOG = "backlog"
    SPRINT = "sprint"
    IN_PROGRESS = "in-progress"
    PAUSED = "paused"
    COMPLETED = "completed"


@dataclass(frozen=True)
class Ticket:
    id: str
    title: str
    type: TicketType
    description: str
    puzzle_definition: PuzzleState
    current_puzzle_state: PuzzleState
    status: TicketStatus = TicketStatus.BACKLOG
    story_points: int = 0
    time_spent: int = 0  # seconds, cumulative across pause/resume
    creation_sprint: int = 1

    @property
    def is_completed(self) -> bool:
        return self.status is TicketStatus.COMPLETED

    def with_status(self, status: TicketStatus) -> Ticket:
        return replace(self, status=status)

    def with_progress(
        self,
        status: TicketStatus,
        elapsed: int,
        puzzle: PuzzleState | None = None,
    ) -> Ticket:
        """Record work on the puzzle: new status, accumulated time, optional working copy."""
        return replace(
            self,
            status=status,
            time_spent=self.time_spent + max(0, int(elapsed)),
            current_puzzle_state=puzzle if puzzle is not None else self.current_puzzle_state,
        )

    def reset_puzzle(self) -> Ticket:
        """Throw away the working copy and start again from the definition."""
        return replace(self, current_puzzle_state=self.puzzle_definition)
