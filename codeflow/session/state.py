"""
Session State - The single shared value describing a game in progress.

Design principles:
- Immutable: every command produces a new SessionState
- One owner: a ticket lives in the backlog or the sprint, never both
- Plain data: snapshots are a field-for-field copy (see persistence.snapshot)
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum

from ..tickets.ticket import Ticket


class GamePhase(Enum):
    """High-level game phases."""
    MAIN_MENU = "MAIN_MENU"
    SPRINT_PLANNING = "SPRINT_PLANNING"
    SPRINT_ACTIVE = "SPRINT_ACTIVE"
    PUZZLE_SOLVING = "PUZZLE_SOLVING"
    SPRINT_REVIEW = "SPRINT_REVIEW"
    GAME_OVER = "GAME_OVER"


# Phases in which the sprint clock may run
TIMED_PHASES = frozenset({GamePhase.SPRINT_ACTIVE, GamePhase.PUZZLE_SOLVING})


@dataclass(frozen=True)
class SessionState:
    """
    Complete session state at a point in time.

    All changes go through the SessionMachine.
    """
    game_phase: GamePhase = GamePhase.MAIN_MENU
    sprint_number: int = 0

    # Ticket collections
    backlog: tuple[Ticket, ...] = field(default_factory=tuple)
    current_sprint_tickets: tuple[Ticket, ...] = field(default_factory=tuple)
    active_ticket_id: str | None = None

    # Sprint clock
    sprint_total_time: int = 0
    sprint_time_remaining: int = 0
    is_sprint_timer_running: bool = False

    # Scoring
    completed_tickets_this_sprint: int = 0
    total_tickets_completed: int = 0

    @property
    def active_ticket(self) -> Ticket | None:
        """The ticket being solved, looked up in the sprint first, then the backlog."""
        if self.active_ticket_id is None:
            return None
        return self.find_ticket(self.active_ticket_id)

    def find_ticket(self, ticket_id: str) -> Ticket | None:
        return self.find_sprint_ticket(ticket_id) or self.find_backlog_ticket(ticket_id)

    def find_sprint_ticket(self, ticket_id: str) -> Ticket | None:
        for t in self.current_sprint_tickets:
            if t.id == ticket_id:
                return t
        return None

    def find_backlog_ticket(self, ticket_id: str) -> Ticket | None:
        for t in self.backlog:
            if t.id == ticket_id:
                return t
        return None

    def with_sprint_ticket(self, ticket: Ticket) -> SessionState:
        """Return new state with one sprint ticket replaced (matched by id)."""
        tickets = tuple(
            ticket if t.id == ticket.id else t
            for t in self.current_sprint_tickets
        )
        return self._copy_with(current_sprint_tickets=tickets)

    @property
    def is_game_over(self) -> bool:
        return self.game_phase is GamePhase.GAME_OVER

    @property
    def sprint_story_points(self) -> int:
        return sum(t.story_points for t in self.current_sprint_tickets)

    def _copy_with(self, **kwargs) -> SessionState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
