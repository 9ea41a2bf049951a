"""
API Service - Business logic layer between the HTTP adapter and the game.

The service:
1. Translates requests into session commands
2. Keeps the open puzzle's controller in step with the session
3. Formats responses

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from .. import __version__
from ..errors import NoActivePuzzleError, PuzzleNotSolvedError
from ..persistence.snapshot import PuzzleModel, TicketModel
from ..session import CommandResult, GamePhase, GameSession, PuzzleController, SessionState
from ..tickets.ticket import Ticket
from .schemas import (
    CommandResponse,
    GameStateResponse,
    HealthResponse,
    PuzzleResponse,
    TicketSummary,
)

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService(session=GameSession(...))
        await service.startup()

        response = await service.start_game()
        response = await service.work_on(ticket_id)
        puzzle = service.rotate(0, 1)
    """
    session: GameSession = field(default_factory=GameSession)
    puzzle: PuzzleController | None = None

    def __post_init__(self):
        if self.puzzle is None:
            self.puzzle = PuzzleController(self.session.scheduler)
        self.session.subscribe(self._on_state)
        self.session.set_progress_source(self._puzzle_progress)

    async def startup(self):
        """Restore the saved game and reopen its puzzle if one was open."""
        await self.session.restore()
        ticket = self.session.active_ticket
        if self.session.phase is GamePhase.PUZZLE_SOLVING and ticket is not None:
            self.puzzle.load(ticket)

    async def shutdown(self):
        await self.session.flush()
        await self.session.save()

    def _puzzle_progress(self):
        if not self.puzzle.is_loaded:
            return None
        puzzle, elapsed = self.puzzle.checkpoint()
        return self.puzzle.ticket_id, puzzle, elapsed

    def _on_state(self, state: SessionState):
        # Leaving PUZZLE_SOLVING by any route closes the puzzle; its work was recorded first
        if state.game_phase is not GamePhase.PUZZLE_SOLVING and self.puzzle.is_loaded:
            logger.debug("Closing puzzle %s on %s", self.puzzle.ticket_id, state.game_phase.value)
            self.puzzle.close()

    # =========================================================================
    # Game
    # =========================================================================

    def health(self) -> HealthResponse:
        return HealthResponse(version=__version__, game_phase=self.session.phase)

    def game_state(self) -> GameStateResponse:
        return self._state_to_response(self.session.state)

    async def start_game(self) -> CommandResponse:
        return self._result_to_response(await self.session.start_game())

    async def reset_game(self) -> CommandResponse:
        return self._result_to_response(await self.session.reset_game())

    # =========================================================================
    # Sprint
    # =========================================================================

    async def add_ticket(self, ticket_id: str) -> CommandResponse:
        return self._result_to_response(await self.session.add_ticket_to_sprint(ticket_id))

    async def remove_ticket(self, ticket_id: str) -> CommandResponse:
        return self._result_to_response(await self.session.remove_ticket_from_sprint(ticket_id))

    async def start_sprint(self) -> CommandResponse:
        return self._result_to_response(await self.session.start_sprint())

    async def end_sprint(self) -> CommandResponse:
        """End the sprint now, keeping progress on an open puzzle."""
        return self._result_to_response(await self.session.end_sprint_early())

    async def plan_sprint(self) -> CommandResponse:
        return self._result_to_response(await self.session.plan_sprint())

    # =========================================================================
    # Puzzle
    # =========================================================================

    async def work_on(self, ticket_id: str) -> CommandResponse:
        """Pick a sprint ticket and open its puzzle."""
        result = await self.session.select_ticket(ticket_id)
        if result.accepted:
            self.puzzle.load(self.session.active_ticket)
        return self._result_to_response(result)

    def puzzle_view(self, changed: bool = True) -> PuzzleResponse:
        if not self.puzzle.is_loaded:
            raise NoActivePuzzleError()
        return PuzzleResponse(
            ticket_id=self.puzzle.ticket_id,
            puzzle=PuzzleModel.from_puzzle(self.puzzle.puzzle),
            solved=self.puzzle.solved,
            elapsed=self.puzzle.elapsed,
            changed=changed,
        )

    def rotate(self, row: int, col: int) -> PuzzleResponse:
        """Tap a tile. Raises IndexError for a tile outside the grid."""
        if not self.puzzle.is_loaded:
            raise NoActivePuzzleError()
        changed = self.puzzle.rotate(row, col)
        return self.puzzle_view(changed=changed)

    def reset_puzzle(self) -> PuzzleResponse:
        if not self.puzzle.is_loaded:
            raise NoActivePuzzleError()
        self.puzzle.reset()
        return self.puzzle_view()

    async def save_puzzle(self) -> CommandResponse:
        """Leave the puzzle unfinished, keeping the working copy."""
        if not self.puzzle.is_loaded:
            raise NoActivePuzzleError()
        ticket_id = self.puzzle.ticket_id
        puzzle, elapsed = self.puzzle.close()
        result = await self.session.save_and_exit_puzzle(ticket_id, puzzle, elapsed)
        return self._result_to_response(result)

    async def complete_puzzle(self) -> CommandResponse:
        """Hand in a solved puzzle."""
        if not self.puzzle.is_loaded:
            raise NoActivePuzzleError()
        ticket_id = self.puzzle.ticket_id
        if not self.puzzle.accepts_solved(ticket_id):
            raise PuzzleNotSolvedError(ticket_id)
        puzzle, elapsed = self.puzzle.close()
        result = await self.session.complete_ticket(ticket_id, elapsed, puzzle)
        return self._result_to_response(result)

    # =========================================================================
    # Host lifecycle
    # =========================================================================

    async def enter_background(self) -> GameStateResponse:
        self.puzzle.pause()
        await self.session.enter_background()
        return self.game_state()

    async def enter_foreground(self) -> GameStateResponse:
        self.puzzle.resume()
        await self.session.enter_foreground()
        return self.game_state()

    # =========================================================================
    # Conversion helpers
    # =========================================================================

    def _result_to_response(self, result: CommandResult) -> CommandResponse:
        return CommandResponse(
            accepted=result.accepted,
            reason=result.reason.value if result.reason else None,
            message=result.message,
            changes=result.changes,
            game=self._state_to_response(result.new_state),
        )

    def _state_to_response(self, state: SessionState) -> GameStateResponse:
        active = state.active_ticket
        return GameStateResponse(
            game_phase=state.game_phase,
            sprint_number=state.sprint_number,
            backlog=[_ticket_summary(t) for t in state.backlog],
            current_sprint_tickets=[_ticket_summary(t) for t in state.current_sprint_tickets],
            active_ticket_id=state.active_ticket_id,
            active_ticket=TicketModel.from_ticket(active) if active else None,
            sprint_total_time=state.sprint_total_time,
            sprint_time_remaining=state.sprint_time_remaining,
            is_sprint_timer_running=state.is_sprint_timer_running,
            completed_tickets_this_sprint=state.completed_tickets_this_sprint,
            total_tickets_completed=state.total_tickets_completed,
            sprint_story_points=state.sprint_story_points,
            max_backlog=self.session.config.max_backlog,
        )


def _ticket_summary(ticket: Ticket) -> TicketSummary:
    return TicketSummary(
        id=ticket.id,
        title=ticket.title,
        type=ticket.type.value,
        description=ticket.description,
        status=ticket.status.value,
        story_points=ticket.story_points,
        time_spent=ticket.time_spent,
        creation_sprint=ticket.creation_sprint,
        size=ticket.puzzle_definition.size,
        locked_percent=ticket.puzzle_definition.locked_percent,
    )
