"""
API Module - Presentation layer interface.

Exposes the game via REST API so any front end can drive it:
1. Starts or restores a game
2. Plans sprints from the backlog
3. Opens puzzles and relays tile taps
4. Reports host background/foreground transitions

A single game per process. Progress survives restarts through the
snapshot store.
"""

from .schemas import (
    # Requests
    RotateRequest,
    # Responses
    CommandResponse,
    GameStateResponse,
    PuzzleResponse,
    HealthResponse,
    ErrorResponse,
    ErrorCode,
    # Shared
    TicketSummary,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "RotateRequest",
    # Responses
    "CommandResponse",
    "GameStateResponse",
    "PuzzleResponse",
    "HealthResponse",
    "ErrorResponse",
    "ErrorCode",
    # Shared
    "TicketSummary",
    # Service
    "APIService",
    "create_app",
]
