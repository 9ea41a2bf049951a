"""
Ticket Factory - Creates tickets with freshly generated puzzles.

This module handles:
- Random ticket type and title selection
- Puzzle size scaling with sprint number
- Lock percentage by ticket type
- Story point calculation
- Initial backlog and per-sprint backlog growth
"""

from __future__ import annotations
from copy import deepcopy
import logging
import math
import random
import uuid

from ..config import GameConfig
from ..engine_core.puzzle import generate
from .catalogue import TICKET_NAMES, TicketType, get_details
from .ticket import Ticket, TicketStatus

logger = logging.getLogger(__name__)


def story_points(size: int, locked_percent: int, config: GameConfig | None = None) -> int:
    """
    Difficulty score for a puzzle.

    Rounds half up so the score never drops as size or locks grow.
    """
    config = config or GameConfig()
    raw = size * config.size_weight + locked_percent * config.lock_weight
    return int(math.floor(raw + 0.5))


class TicketFactory:
    """
    Generates tickets.

    Usage:
        factory = TicketFactory(config, rng=random.Random(42))
        backlog = factory.generate_initial_backlog()
        backlog = factory.grow_backlog(backlog, sprint_number=2)
    """

    def __init__(self, config: GameConfig | None = None, rng: random.Random | None = None):
        self.config = config or GameConfig()
        self.rng = rng or random.Random()

    def generate_ticket(self, sprint_number: int) -> Ticket:
        """Create one backlog ticket scaled to the given sprint."""
        ticket_id = f"TICKET-{uuid.uuid4().hex[:12].upper()}"

        ticket_type = self.rng.choice(list(TicketType))
        details = get_details(ticket_type)
        name = self.rng.choice(TICKET_NAMES)
        title = f"{details.title_prefix} {name} (#{ticket_id[-4:]})"

        size = self.rng.randint(
            self.config.min_puzzle_size,
            self.config.max_puzzle_size(sprint_number),
        )
        lock_range = self.config.lock_ranges[ticket_type.value]
        locked_percent = self.rng.randint(lock_range.min, lock_range.max)

        puzzle = generate(size, locked_percent, rng=self.rng)

        return Ticket(
            id=ticket_id,
            title=title,
            type=ticket_type,
            description=details.description,
            puzzle_definition=puzzle,
            current_puzzle_state=deepcopy(puzzle),
            status=TicketStatus.BACKLOG,
            story_points=story_points(size, locked_percent, self.config),
            time_spent=0,
            creation_sprint=sprint_number,
        )

    def generate_tickets(self, count: int, sprint_number: int) -> list[Ticket]:
        return [self.generate_ticket(sprint_number) for _ in range(count)]

    def generate_initial_backlog(
        self,
        count: int | None = None,
        sprint_number: int = 1,
    ) -> tuple[Ticket, ...]:
        """Backlog for a new game (configured size unless count is given)."""
        if count is None:
            count = self.config.initial_backlog_size
        return tuple(self.generate_tickets(count, sprint_number))

    def grow_backlog(
        self,
        backlog: tuple[Ticket, ...],
        sprint_number: int,
    ) -> tuple[Ticket, ...]:
        """Append the new tickets that arrive for a sprint."""
        count = self.config.new_ticket_count(sprint_number)
        logger.debug("Adding %d tickets for sprint %d", count, sprint_number)
        return tuple(backlog) + tuple(self.generate_tickets(count, sprint_number))
