"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a presentation layer and the
game. Ticket and puzzle payloads reuse the snapshot models so the wire
format and the save format never drift apart.

Error Codes:
- NO_ACTIVE_PUZZLE: No puzzle is open
- PUZZLE_NOT_SOLVED: Completion requested for an unsolved puzzle
- VALIDATION_ERROR: Request failed validation (e.g. tile out of bounds)
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from ..persistence.snapshot import PuzzleModel, TicketModel
from ..session.state import GamePhase


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    NO_ACTIVE_PUZZLE = "NO_ACTIVE_PUZZLE"
    PUZZLE_NOT_SOLVED = "PUZZLE_NOT_SOLVED"
    VALIDATION_ERROR = "VALIDATION_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class TicketSummary(BaseModel):
    """Ticket fields for board/list views (no puzzle grid)."""
    id: str
    title: str
    type: str
    description: str
    status: str
    story_points: int
    time_spent: int
    creation_sprint: int
    size: int = Field(description="Puzzle grid side length")
    locked_percent: int


class GameStateResponse(BaseModel):
    """The whole session as seen by the presentation layer."""
    game_phase: GamePhase
    sprint_number: int
    backlog: list[TicketSummary] = Field(default_factory=list)
    current_sprint_tickets: list[TicketSummary] = Field(default_factory=list)
    active_ticket_id: Optional[str] = None
    active_ticket: Optional[TicketModel] = None
    sprint_total_time: int
    sprint_time_remaining: int
    is_sprint_timer_running: bool
    completed_tickets_this_sprint: int
    total_tickets_completed: int
    sprint_story_points: int = 0
    max_backlog: int


# =============================================================================
# Request Models
# =============================================================================

class RotateRequest(BaseModel):
    """Tap on a tile."""
    row: int = Field(ge=0)
    col: int = Field(ge=0)


# =============================================================================
# Response Models
# =============================================================================

class CommandResponse(BaseModel):
    """
    Outcome of a game command.

    A rejected command is not an error: accepted is false, reason says
    why, and game shows the unchanged state.
    """
    accepted: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    changes: list[str] = Field(default_factory=list)
    game: GameStateResponse


class PuzzleResponse(BaseModel):
    """The open puzzle."""
    ticket_id: str
    puzzle: PuzzleModel
    solved: bool
    elapsed: int = Field(description="Seconds spent in this visit")
    changed: bool = Field(True, description="False when a tap was rejected")


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    game_phase: GamePhase


class ErrorResponse(BaseModel):
    """Standard error body."""
    error: str
    error_code: ErrorCode
