"""
Command System - Commands, payloads, and results.

Commands represent:
1. Player intents (plan the sprint, pick a ticket, finish a puzzle)
2. Clock events (one-second ticks, pause/resume on backgrounding)
3. Game lifecycle (start, reset)

All session state changes flow through commands.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..engine_core.state import PuzzleState


class CommandType(Enum):
    """Types of commands in the system."""
    # Lifecycle
    START_GAME = "start_game"
    RESET_GAME = "reset_game"

    # Planning
    ADD_TICKET_TO_SPRINT = "add_ticket_to_sprint"
    REMOVE_TICKET_FROM_SPRINT = "remove_ticket_from_sprint"
    START_SPRINT = "start_sprint"
    PLAN_SPRINT = "plan_sprint"

    # Working
    SELECT_TICKET = "select_ticket"
    SAVE_AND_EXIT_PUZZLE = "save_and_exit_puzzle"
    RECORD_PROGRESS = "record_progress"
    COMPLETE_TICKET = "complete_ticket"
    END_SPRINT_EARLY = "end_sprint_early"

    # Clock
    TICK = "tick"
    PAUSE_TIMER = "pause_timer"
    RESUME_TIMER = "resume_timer"


class RejectReason(Enum):
    """Why a command left the state untouched."""
    WRONG_PHASE = "WRONG_PHASE"
    TICKET_NOT_FOUND = "TICKET_NOT_FOUND"
    TICKET_COMPLETED = "TICKET_COMPLETED"
    EMPTY_SPRINT = "EMPTY_SPRINT"
    TIMER_NOT_RUNNING = "TIMER_NOT_RUNNING"
    NO_TIME_REMAINING = "NO_TIME_REMAINING"


@dataclass
class CommandPayload:
    """
    Payload for a command.

    Different command types use different fields.
    Validation happens in the machine.
    """
    ticket_id: str | None = None
    puzzle: PuzzleState | None = None
    elapsed: int = 0
    seconds: int = 1


@dataclass
class Command:
    """A single request to change the session."""
    command_type: CommandType
    payload: CommandPayload = field(default_factory=CommandPayload)

    @classmethod
    def start_game(cls) -> Command:
        return cls(CommandType.START_GAME)

    @classmethod
    def reset_game(cls) -> Command:
        return cls(CommandType.RESET_GAME)

    @classmethod
    def add_ticket_to_sprint(cls, ticket_id: str) -> Command:
        return cls(CommandType.ADD_TICKET_TO_SPRINT, CommandPayload(ticket_id=ticket_id))

    @classmethod
    def remove_ticket_from_sprint(cls, ticket_id: str) -> Command:
        return cls(CommandType.REMOVE_TICKET_FROM_SPRINT, CommandPayload(ticket_id=ticket_id))

    @classmethod
    def start_sprint(cls) -> Command:
        return cls(CommandType.START_SPRINT)

    @classmethod
    def plan_sprint(cls) -> Command:
        return cls(CommandType.PLAN_SPRINT)

    @classmethod
    def select_ticket(cls, ticket_id: str) -> Command:
        return cls(CommandType.SELECT_TICKET, CommandPayload(ticket_id=ticket_id))

    @classmethod
    def save_and_exit_puzzle(cls, ticket_id: str, puzzle: PuzzleState, elapsed: int) -> Command:
        """Factory for leaving a puzzle unfinished."""
        return cls(
            CommandType.SAVE_AND_EXIT_PUZZLE,
            CommandPayload(ticket_id=ticket_id, puzzle=puzzle, elapsed=elapsed),
        )

    @classmethod
    def record_progress(cls, ticket_id: str, puzzle: PuzzleState, elapsed: int) -> Command:
        """Factory for storing work on the open puzzle without leaving it."""
        return cls(
            CommandType.RECORD_PROGRESS,
            CommandPayload(ticket_id=ticket_id, puzzle=puzzle, elapsed=elapsed),
        )

    @classmethod
    def complete_ticket(
        cls, ticket_id: str, elapsed: int, puzzle: PuzzleState | None = None
    ) -> Command:
        return cls(
            CommandType.COMPLETE_TICKET,
            CommandPayload(ticket_id=ticket_id, puzzle=puzzle, elapsed=elapsed),
        )

    @classmethod
    def end_sprint_early(cls) -> Command:
        return cls(CommandType.END_SPRINT_EARLY)

    @classmethod
    def tick(cls, seconds: int = 1) -> Command:
        return cls(CommandType.TICK, CommandPayload(seconds=seconds))

    @classmethod
    def pause_timer(cls) -> Command:
        return cls(CommandType.PAUSE_TIMER)

    @classmethod
    def resume_timer(cls) -> Command:
        return cls(CommandType.RESUME_TIMER)


@dataclass
class CommandResult:
    """
    Result of applying a command.

    A rejected command is a normal outcome: new_state is the
    unchanged input state and reason says why.
    """
    accepted: bool
    new_state: Any  # SessionState
    reason: RejectReason | None = None
    message: str | None = None

    # Human-readable changes, for logs and UI toasts
    changes: list[str] = field(default_factory=list)

    @classmethod
    def rejected(cls, state: Any, reason: RejectReason, message: str) -> CommandResult:
        """Create a rejection that leaves the state untouched."""
        return cls(accepted=False, new_state=state, reason=reason, message=message)

    @classmethod
    def accepted_with_state(cls, state: Any, changes: list[str] | None = None) -> CommandResult:
        """Create an accepted result with the new state."""
        return cls(accepted=True, new_state=state, changes=changes or [])
