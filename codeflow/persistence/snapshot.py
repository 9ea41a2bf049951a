"""
Snapshot Schema - Pydantic models for persisted sessions.

The snapshot is plain data: numbers, strings and nested ticket/puzzle
records. No behaviour is serialized. The storage key carries the schema
version (config.STATE_STORAGE_KEY).

The same ticket and puzzle models are reused by the HTTP adapter.
"""

from __future__ import annotations
import json
import time
from typing import Optional

from pydantic import BaseModel, Field, ValidationError

from ..engine_core.state import PuzzleState, SpecialType, TileState, TileType
from ..errors import SnapshotError
from ..session.state import GamePhase, SessionState, TIMED_PHASES
from ..tickets.catalogue import TicketType
from ..tickets.ticket import Ticket, TicketStatus


# =============================================================================
# Puzzle Models
# =============================================================================

class TileModel(BaseModel):
    """One grid cell."""
    type: TileType
    rotation: int = Field(ge=0, lt=360, multiple_of=90)
    correct_rotation: int = Field(ge=0, lt=360, multiple_of=90)
    locked: bool = False
    special: SpecialType = SpecialType.NONE

    @classmethod
    def from_tile(cls, tile: TileState) -> TileModel:
        return cls(
            type=tile.type,
            rotation=tile.rotation,
            correct_rotation=tile.correct_rotation,
            locked=tile.locked,
            special=tile.special,
        )

    def to_tile(self) -> TileState:
        return TileState(
            type=self.type,
            rotation=self.rotation,
            correct_rotation=self.correct_rotation,
            locked=self.locked,
            special=self.special,
        )


class PuzzleModel(BaseModel):
    """An N x N puzzle grid, rows top to bottom."""
    size: int = Field(ge=1)
    locked_percent: int = Field(ge=0, le=100)
    grid: list[list[TileModel]]

    @classmethod
    def from_puzzle(cls, puzzle: PuzzleState) -> PuzzleModel:
        return cls(
            size=puzzle.size,
            locked_percent=puzzle.locked_percent,
            grid=[[TileModel.from_tile(t) for t in row] for row in puzzle.grid],
        )

    def to_puzzle(self) -> PuzzleState:
        if len(self.grid) != self.size or any(len(row) != self.size for row in self.grid):
            raise ValueError(f"Grid is not {self.size}x{self.size}")
        return PuzzleState(
            size=self.size,
            locked_percent=self.locked_percent,
            grid=tuple(tuple(t.to_tile() for t in row) for row in self.grid),
        )


# =============================================================================
# Ticket Model
# =============================================================================

class TicketModel(BaseModel):
    """A ticket and both copies of its puzzle."""
    id: str
    title: str
    type: TicketType
    description: str
    puzzle_definition: PuzzleModel
    current_puzzle_state: PuzzleModel
    status: TicketStatus = TicketStatus.BACKLOG
    story_points: int = 0
    time_spent: int = Field(0, ge=0, description="Seconds, cumulative")
    creation_sprint: int = 1

    @classmethod
    def from_ticket(cls, ticket: Ticket) -> TicketModel:
        return cls(
            id=ticket.id,
            title=ticket.title,
            type=ticket.type,
            description=ticket.description,
            puzzle_definition=PuzzleModel.from_puzzle(ticket.puzzle_definition),
            current_puzzle_state=PuzzleModel.from_puzzle(ticket.current_puzzle_state),
            status=ticket.status,
            story_points=ticket.story_points,
            time_spent=ticket.time_spent,
            creation_sprint=ticket.creation_sprint,
        )

    def to_ticket(self) -> Ticket:
        return Ticket(
            id=self.id,
            title=self.title,
            type=self.type,
            description=self.description,
            puzzle_definition=self.puzzle_definition.to_puzzle(),
            current_puzzle_state=self.current_puzzle_state.to_puzzle(),
            status=self.status,
            story_points=self.story_points,
            time_spent=self.time_spent,
            creation_sprint=self.creation_sprint,
        )


# =============================================================================
# Session Snapshot
# =============================================================================

class SessionSnapshot(BaseModel):
    """Everything needed to resume a session."""
    game_phase: GamePhase
    sprint_number: int = Field(ge=0)
    backlog: list[TicketModel] = Field(default_factory=list)
    current_sprint_tickets: list[TicketModel] = Field(default_factory=list)
    active_ticket_id: Optional[str] = None
    sprint_total_time: int = Field(ge=0)
    sprint_time_remaining: int = Field(ge=0)
    is_sprint_timer_running: bool = False
    total_tickets_completed: int = Field(0, ge=0)
    completed_tickets_this_sprint: int = Field(0, ge=0)
    saved_at: float = Field(description="Unix timestamp of the save")

    @classmethod
    def from_state(cls, state: SessionState, saved_at: float | None = None) -> SessionSnapshot:
        return cls(
            game_phase=state.game_phase,
            sprint_number=state.sprint_number,
            backlog=[TicketModel.from_ticket(t) for t in state.backlog],
            current_sprint_tickets=[
                TicketModel.from_ticket(t) for t in state.current_sprint_tickets
            ],
            active_ticket_id=state.active_ticket_id,
            sprint_total_time=state.sprint_total_time,
            sprint_time_remaining=state.sprint_time_remaining,
            is_sprint_timer_running=state.is_sprint_timer_running,
            total_tickets_completed=state.total_tickets_completed,
            completed_tickets_this_sprint=state.completed_tickets_this_sprint,
            saved_at=saved_at if saved_at is not None else time.time(),
        )

    def to_state(self) -> SessionState:
        """
        Rebuild session state.

        The sprint clock only comes back running if it was running, time
        remained, and the phase is one where the clock may run.
        """
        running = (
            self.is_sprint_timer_running
            and self.sprint_time_remaining > 0
            and self.game_phase in TIMED_PHASES
        )
        return SessionState(
            game_phase=self.game_phase,
            sprint_number=self.sprint_number,
            backlog=tuple(t.to_ticket() for t in self.backlog),
            current_sprint_tickets=tuple(t.to_ticket() for t in self.current_sprint_tickets),
            active_ticket_id=self.active_ticket_id,
            sprint_total_time=self.sprint_total_time,
            sprint_time_remaining=self.sprint_time_remaining,
            is_sprint_timer_running=running,
            completed_tickets_this_sprint=self.completed_tickets_this_sprint,
            total_tickets_completed=self.total_tickets_completed,
        )


def encode_state(state: SessionState, saved_at: float | None = None) -> str:
    """Serialize session state to a JSON snapshot."""
    return SessionSnapshot.from_state(state, saved_at).model_dump_json()


def decode_state(key: str, payload: str) -> SessionState:
    """
    Parse a JSON snapshot back into session state.

    Raises SnapshotError for anything unreadable.
    """
    try:
        return SessionSnapshot.model_validate_json(payload).to_state()
    except (ValidationError, ValueError, json.JSONDecodeError) as e:
        raise SnapshotError(key, str(e)) from e
