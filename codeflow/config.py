"""
Configuration - Environment settings and game tuning constants.

Environment variables are read once at import time:
    CODEFLOW_ENV           "development" (strict invariants) or "production"
    CODEFLOW_DATA_DIR      Directory for the file-backed state store
    CODEFLOW_LOG_LEVEL     Root log level
    ALLOWED_ORIGINS        Comma-separated CORS origins for the HTTP adapter

Game tuning lives in GameConfig. The defaults are the values the game
ships with; GameConfig.from_env() applies a few environment overrides.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
import os

# Environment configuration
CODEFLOW_ENV = os.getenv("CODEFLOW_ENV", "development")
CODEFLOW_DATA_DIR = os.getenv("CODEFLOW_DATA_DIR", None)
CODEFLOW_LOG_LEVEL = os.getenv("CODEFLOW_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

# Snapshot key; bump the suffix when the snapshot schema changes
STATE_STORAGE_KEY = "codeflow_game_state_v1"


def is_development() -> bool:
    """Invariant violations raise in development and fall back in production."""
    return CODEFLOW_ENV == "development"


def default_data_dir() -> Path:
    if CODEFLOW_DATA_DIR:
        return Path(CODEFLOW_DATA_DIR)
    return Path.home() / ".codeflow" / "state"


@dataclass(frozen=True)
class LockRange:
    """Inclusive range of locked-tile percentages for a ticket type."""
    min: int
    max: int


@dataclass(frozen=True)
class GameConfig:
    """
    Tuning constants for tickets, sprints and the backlog.

    Frozen so a single instance can be shared by the factory,
    the machine and the session without defensive copies.
    """
    # Sprint timing (seconds)
    initial_sprint_duration: int = 5 * 60
    sprint_time_reduction: int = 5
    min_sprint_duration: int = 60
    review_delay_seconds: float | None = 3.0

    # Backlog
    initial_backlog_size: int = 8
    new_tickets_base: int = 2
    new_tickets_increment: float = 0.5
    max_backlog: int = 30

    # Puzzle generation
    min_puzzle_size: int = 3
    initial_max_puzzle_size: int = 6
    max_puzzle_size_cap: int = 10
    lock_ranges: dict[str, LockRange] = field(default_factory=lambda: {
        "New Feature": LockRange(0, 15),
        "Bug Fix": LockRange(25, 55),
        "Legacy Rewrite": LockRange(45, 75),
    })

    # Story points
    size_weight: float = 1.0
    lock_weight: float = 0.05

    def sprint_duration(self, sprint_number: int) -> int:
        """Sprint length shrinks a little each sprint, floored at the minimum."""
        reduced = self.initial_sprint_duration - self.sprint_time_reduction * (sprint_number - 1)
        return max(self.min_sprint_duration, reduced)

    def max_puzzle_size(self, sprint_number: int) -> int:
        return min(
            self.initial_max_puzzle_size + sprint_number // 3,
            self.max_puzzle_size_cap,
        )

    def new_ticket_count(self, sprint_number: int) -> int:
        return int(self.new_tickets_base + (sprint_number - 1) * self.new_tickets_increment)

    @classmethod
    def from_env(cls) -> GameConfig:
        """Build a config with overrides from the environment."""
        overrides: dict = {}
        if os.getenv("CODEFLOW_MAX_BACKLOG"):
            overrides["max_backlog"] = int(os.environ["CODEFLOW_MAX_BACKLOG"])
        if os.getenv("CODEFLOW_SPRINT_SECONDS"):
            overrides["initial_sprint_duration"] = int(os.environ["CODEFLOW_SPRINT_SECONDS"])
        review_delay = os.getenv("CODEFLOW_REVIEW_DELAY")
        if review_delay is not None:
            # An empty value disables the automatic review advance
            overrides["review_delay_seconds"] = float(review_delay) if review_delay else None
        return cls(**overrides)
