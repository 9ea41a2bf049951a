"""
Session Machine - Applies commands to session state.

The machine is the single point of session state mutation.
All changes go through apply().

Design principles:
- Reducer: (state, command) -> CommandResult with a new state
- Phase-guarded: commands outside their phases are rejected no-ops
- Rejections are results, never exceptions
- Timers live elsewhere; the machine only reacts to TICK
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..config import GameConfig
from ..tickets.factory import TicketFactory
from ..tickets.ticket import TicketStatus
from .command import Command, CommandResult, CommandType, RejectReason
from .state import GamePhase, SessionState, TIMED_PHASES

logger = logging.getLogger(__name__)

ALL_PHASES = frozenset(GamePhase)

# Phases in which each command is accepted
VALID_PHASES: dict[CommandType, frozenset[GamePhase]] = {
    CommandType.START_GAME: ALL_PHASES,
    CommandType.RESET_GAME: ALL_PHASES,
    CommandType.ADD_TICKET_TO_SPRINT: frozenset({GamePhase.SPRINT_PLANNING}),
    CommandType.REMOVE_TICKET_FROM_SPRINT: frozenset({GamePhase.SPRINT_PLANNING}),
    CommandType.START_SPRINT: frozenset({GamePhase.SPRINT_PLANNING}),
    CommandType.PLAN_SPRINT: frozenset({GamePhase.SPRINT_REVIEW, GamePhase.SPRINT_PLANNING}),
    CommandType.SELECT_TICKET: frozenset({GamePhase.SPRINT_ACTIVE}),
    CommandType.SAVE_AND_EXIT_PUZZLE: frozenset({GamePhase.PUZZLE_SOLVING}),
    CommandType.RECORD_PROGRESS: frozenset({GamePhase.PUZZLE_SOLVING}),
    CommandType.COMPLETE_TICKET: frozenset({GamePhase.PUZZLE_SOLVING}),
    CommandType.END_SPRINT_EARLY: TIMED_PHASES,
    CommandType.TICK: TIMED_PHASES,
    CommandType.PAUSE_TIMER: frozenset({GamePhase.PUZZLE_SOLVING}),
    CommandType.RESUME_TIMER: frozenset({GamePhase.PUZZLE_SOLVING}),
}


@dataclass
class SessionMachine:
    """
    Applies commands to SessionState.

    Stateless apart from its collaborators - all game data is in SessionState.
    The factory supplies new tickets on start and at every sprint boundary.
    """
    config: GameConfig = field(default_factory=GameConfig)
    factory: TicketFactory | None = None

    def __post_init__(self):
        if self.factory is None:
            self.factory = TicketFactory(self.config)

    def apply(self, state: SessionState, command: Command) -> CommandResult:
        """
        Apply a command to the session state.

        Returns a CommandResult with the new state, or a rejection.
        """
        valid = VALID_PHASES[command.command_type]
        if state.game_phase not in valid:
            logger.debug(
                "Ignoring %s during %s",
                command.command_type.value, state.game_phase.value,
            )
            return CommandResult.rejected(
                state,
                RejectReason.WRONG_PHASE,
                f"{command.command_type.value} is not allowed during {state.game_phase.value}",
            )

        handler = self._get_handler(command.command_type)
        result = handler(state, command)

        if result.accepted and result.new_state.game_phase is not state.game_phase:
            logger.info(
                "Phase %s -> %s (%s)",
                state.game_phase.value,
                result.new_state.game_phase.value,
                command.command_type.value,
            )
        elif not result.accepted:
            logger.debug("Rejected %s: %s", command.command_type.value, result.message)
        return result

    def initial_state(self) -> SessionState:
        """State before any game has been started."""
        return SessionState()

    def _get_handler(self, command_type: CommandType):
        """Get the handler function for a command type."""
        handlers = {
            CommandType.START_GAME: self._handle_start_game,
            CommandType.RESET_GAME: self._handle_reset_game,
            CommandType.ADD_TICKET_TO_SPRINT: self._handle_add_ticket,
            CommandType.REMOVE_TICKET_FROM_SPRINT: self._handle_remove_ticket,
            CommandType.START_SPRINT: self._handle_start_sprint,
            CommandType.PLAN_SPRINT: self._handle_plan_sprint,
            CommandType.SELECT_TICKET: self._handle_select_ticket,
            CommandType.SAVE_AND_EXIT_PUZZLE: self._handle_save_and_exit,
            CommandType.RECORD_PROGRESS: self._handle_record_progress,
            CommandType.COMPLETE_TICKET: self._handle_complete_ticket,
            CommandType.END_SPRINT_EARLY: self._handle_end_sprint_early,
            CommandType.TICK: self._handle_tick,
            CommandType.PAUSE_TIMER: self._handle_pause_timer,
            CommandType.RESUME_TIMER: self._handle_resume_timer,
        }
        return handlers[command_type]

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def _fresh_state(self, phase: GamePhase) -> SessionState:
        duration = self.config.initial_sprint_duration
        return SessionState(
            game_phase=phase,
            sprint_number=1,
            backlog=self.factory.generate_initial_backlog(sprint_number=1),
            current_sprint_tickets=(),
            active_ticket_id=None,
            sprint_total_time=duration,
            sprint_time_remaining=duration,
            is_sprint_timer_running=False,
            completed_tickets_this_sprint=0,
            total_tickets_completed=0,
        )

    def _handle_start_game(self, state: SessionState, command: Command) -> CommandResult:
        new_state = self._fresh_state(GamePhase.SPRINT_PLANNING)
        return CommandResult.accepted_with_state(
            new_state,
            changes=[f"New game with {len(new_state.backlog)} tickets in the backlog"],
        )

    def _handle_reset_game(self, state: SessionState, command: Command) -> CommandResult:
        return CommandResult.accepted_with_state(
            self._fresh_state(GamePhase.MAIN_MENU),
            changes=["Game reset"],
        )

    # =========================================================================
    # Planning
    # =========================================================================

    def _handle_add_ticket(self, state: SessionState, command: Command) -> CommandResult:
        ticket_id = command.payload.ticket_id
        ticket = state.find_backlog_ticket(ticket_id)
        if not ticket:
            return CommandResult.rejected(
                state, RejectReason.TICKET_NOT_FOUND, f"Ticket {ticket_id} not in backlog"
            )

        new_state = state._copy_with(
            backlog=tuple(t for t in state.backlog if t.id != ticket_id),
            current_sprint_tickets=state.current_sprint_tickets
            + (ticket.with_status(TicketStatus.SPRINT),),
        )
        return CommandResult.accepted_with_state(
            new_state, changes=[f"{ticket.title} added to sprint"]
        )

    def _handle_remove_ticket(self, state: SessionState, command: Command) -> CommandResult:
        ticket_id = command.payload.ticket_id
        ticket = state.find_sprint_ticket(ticket_id)
        if not ticket:
            return CommandResult.rejected(
                state, RejectReason.TICKET_NOT_FOUND, f"Ticket {ticket_id} not in sprint"
            )

        new_state = state._copy_with(
            current_sprint_tickets=tuple(
                t for t in state.current_sprint_tickets if t.id != ticket_id
            ),
            backlog=state.backlog + (ticket.with_status(TicketStatus.BACKLOG),),
        )
        return CommandResult.accepted_with_state(
            new_state, changes=[f"{ticket.title} returned to backlog"]
        )

    def _handle_start_sprint(self, state: SessionState, command: Command) -> CommandResult:
        if not state.current_sprint_tickets:
            return CommandResult.rejected(
                state, RejectReason.EMPTY_SPRINT,
                "Add some tickets to the sprint before starting.",
            )

        new_state = state._copy_with(
            game_phase=GamePhase.SPRINT_ACTIVE,
            current_sprint_tickets=tuple(
                t.with_status(TicketStatus.SPRINT) for t in state.current_sprint_tickets
            ),
            is_sprint_timer_running=state.sprint_time_remaining > 0,
        )
        return CommandResult.accepted_with_state(
            new_state,
            changes=[
                f"Sprint {state.sprint_number} started with "
                f"{len(state.current_sprint_tickets)} tickets"
            ],
        )

    def _handle_plan_sprint(self, state: SessionState, command: Command) -> CommandResult:
        """
        Close the current sprint and prepare the next one.

        Unfinished sprint tickets go back to the backlog, new work arrives,
        and an overflowing backlog ends the game.
        """
        carried_over = tuple(
            t.with_status(TicketStatus.BACKLOG)
            for t in state.current_sprint_tickets
            if not t.is_completed
        )
        next_sprint = state.sprint_number + 1
        backlog = self.factory.grow_backlog(state.backlog + carried_over, next_sprint)

        if len(backlog) > self.config.max_backlog:
            new_state = state._copy_with(
                game_phase=GamePhase.GAME_OVER,
                backlog=backlog,
                current_sprint_tickets=(),
                active_ticket_id=None,
                is_sprint_timer_running=False,
            )
            return CommandResult.accepted_with_state(
                new_state,
                changes=[f"Backlog reached {len(backlog)} tickets - game over"],
            )

        duration = self.config.sprint_duration(next_sprint)
        new_state = state._copy_with(
            game_phase=GamePhase.SPRINT_PLANNING,
            sprint_number=next_sprint,
            backlog=backlog,
            current_sprint_tickets=(),
            active_ticket_id=None,
            sprint_total_time=duration,
            sprint_time_remaining=duration,
            is_sprint_timer_running=False,
            completed_tickets_this_sprint=0,
        )
        return CommandResult.accepted_with_state(
            new_state,
            changes=[
                f"Planning sprint {next_sprint} ({duration}s) "
                f"with {len(backlog)} tickets in the backlog"
            ],
        )

    # =========================================================================
    # Working on tickets
    # =========================================================================

    def _handle_select_ticket(self, state: SessionState, command: Command) -> CommandResult:
        ticket_id = command.payload.ticket_id
        ticket = state.find_sprint_ticket(ticket_id)
        if not ticket:
            return CommandResult.rejected(
                state, RejectReason.TICKET_NOT_FOUND, f"Ticket {ticket_id} not in sprint"
            )
        if ticket.is_completed:
            return CommandResult.rejected(
                state, RejectReason.TICKET_COMPLETED, f"Ticket {ticket_id} is already completed"
            )

        new_state = state.with_sprint_ticket(
            ticket.with_status(TicketStatus.IN_PROGRESS)
        )._copy_with(
            game_phase=GamePhase.PUZZLE_SOLVING,
            active_ticket_id=ticket_id,
            is_sprint_timer_running=state.sprint_time_remaining > 0,
        )
        return CommandResult.accepted_with_state(
            new_state, changes=[f"Working on {ticket.title}"]
        )

    def _handle_save_and_exit(self, state: SessionState, command: Command) -> CommandResult:
        payload = command.payload
        ticket = state.find_sprint_ticket(payload.ticket_id)
        if not ticket:
            return CommandResult.rejected(
                state, RejectReason.TICKET_NOT_FOUND, f"Ticket {payload.ticket_id} not in sprint"
            )

        updated = ticket.with_progress(TicketStatus.PAUSED, payload.elapsed, payload.puzzle)
        new_state = state.with_sprint_ticket(updated)._copy_with(
            game_phase=GamePhase.SPRINT_ACTIVE,
            active_ticket_id=None,
            is_sprint_timer_running=False,
        )
        return CommandResult.accepted_with_state(
            new_state,
            changes=[f"{ticket.title} paused after {updated.time_spent}s"],
        )

    def _handle_record_progress(self, state: SessionState, command: Command) -> CommandResult:
        """Store the open puzzle's working copy and time; the puzzle stays open."""
        payload = command.payload
        ticket = state.find_sprint_ticket(payload.ticket_id)
        if not ticket or payload.ticket_id != state.active_ticket_id:
            return CommandResult.rejected(
                state, RejectReason.TICKET_NOT_FOUND, f"Ticket {payload.ticket_id} is not open"
            )

        updated = ticket.with_progress(ticket.status, payload.elapsed, payload.puzzle)
        return CommandResult.accepted_with_state(state.with_sprint_ticket(updated))

    def _handle_complete_ticket(self, state: SessionState, command: Command) -> CommandResult:
        payload = command.payload
        ticket = state.find_sprint_ticket(payload.ticket_id)
        if not ticket:
            return CommandResult.rejected(
                state, RejectReason.TICKET_NOT_FOUND, f"Ticket {payload.ticket_id} not in sprint"
            )
        if ticket.is_completed:
            return CommandResult.rejected(
                state, RejectReason.TICKET_COMPLETED, f"Ticket {payload.ticket_id} is already completed"
            )

        updated = ticket.with_progress(TicketStatus.COMPLETED, payload.elapsed, payload.puzzle)
        new_state = state.with_sprint_ticket(updated)._copy_with(
            game_phase=GamePhase.SPRINT_ACTIVE,
            active_ticket_id=None,
            is_sprint_timer_running=False,
            completed_tickets_this_sprint=state.completed_tickets_this_sprint + 1,
            total_tickets_completed=state.total_tickets_completed + 1,
        )
        return CommandResult.accepted_with_state(
            new_state,
            changes=[f"{ticket.title} completed ({ticket.story_points} points)"],
        )

    def _handle_end_sprint_early(self, state: SessionState, command: Command) -> CommandResult:
        return CommandResult.accepted_with_state(
            self._end_sprint(state),
            changes=[f"Sprint {state.sprint_number} ended early"],
        )

    def _end_sprint(self, state: SessionState) -> SessionState:
        # An open puzzle is left the same way save-and-exit leaves it
        active = state.active_ticket
        if active is not None and active.status is TicketStatus.IN_PROGRESS:
            state = state.with_sprint_ticket(active.with_status(TicketStatus.PAUSED))
        return state._copy_with(
            game_phase=GamePhase.SPRINT_REVIEW,
            active_ticket_id=None,
            is_sprint_timer_running=False,
        )

    # =========================================================================
    # Clock
    # =========================================================================

    def _handle_tick(self, state: SessionState, command: Command) -> CommandResult:
        if not state.is_sprint_timer_running:
            return CommandResult.rejected(
                state, RejectReason.TIMER_NOT_RUNNING, "Sprint timer is paused"
            )

        remaining = state.sprint_time_remaining - command.payload.seconds
        if remaining <= 0:
            new_state = self._end_sprint(state)._copy_with(sprint_time_remaining=0)
            return CommandResult.accepted_with_state(
                new_state, changes=[f"Sprint {state.sprint_number} is over - time's up"]
            )

        return CommandResult.accepted_with_state(
            state._copy_with(sprint_time_remaining=remaining)
        )

    def _handle_pause_timer(self, state: SessionState, command: Command) -> CommandResult:
        return CommandResult.accepted_with_state(
            state._copy_with(is_sprint_timer_running=False)
        )

    def _handle_resume_timer(self, state: SessionState, command: Command) -> CommandResult:
        if state.sprint_time_remaining <= 0:
            return CommandResult.rejected(
                state, RejectReason.NO_TIME_REMAINING, "No sprint time left"
            )
        return CommandResult.accepted_with_state(
            state._copy_with(is_sprint_timer_running=True)
        )
