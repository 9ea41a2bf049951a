"""
Session Module - Runs a game from the main menu to game over.

A session:
- Starts from the main menu or a restored snapshot
- Plans sprints from a growing backlog
- Times each sprint and each puzzle
- Ends when the backlog overflows

All state changes go through the SessionMachine; GameSession owns the
live state, the timers and the snapshot store.
"""

from .state import GamePhase, SessionState
from .command import Command, CommandType, CommandPayload, CommandResult, RejectReason
from .machine import SessionMachine
from .timer import Scheduler, ManualScheduler, AsyncioScheduler, PeriodicTimer, ElapsedCounter
from .puzzle_controller import PuzzleController
from .controller import GameSession

__all__ = [
    "GamePhase",
    "SessionState",
    "Command",
    "CommandType",
    "CommandPayload",
    "CommandResult",
    "RejectReason",
    "SessionMachine",
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
    "PeriodicTimer",
    "ElapsedCounter",
    "PuzzleController",
    "GameSession",
]
