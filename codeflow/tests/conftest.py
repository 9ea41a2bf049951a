"""
Pytest fixtures for Code Flow tests.
"""

import random

import pytest

from ..config import GameConfig
from ..engine_core.puzzle import generate
from ..engine_core.state import PuzzleState
from ..persistence.store import InMemoryStore
from ..session import GameSession, ManualScheduler, SessionMachine
from ..tickets.factory import TicketFactory


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source so generated content is reproducible."""
    return random.Random(1234)


@pytest.fixture
def config() -> GameConfig:
    """Default tuning with the review auto-advance disabled."""
    return GameConfig(review_delay_seconds=None)


@pytest.fixture
def factory(config, rng) -> TicketFactory:
    return TicketFactory(config, rng=rng)


@pytest.fixture
def machine(config, factory) -> SessionMachine:
    return SessionMachine(config=config, factory=factory)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def session(machine, store, scheduler) -> GameSession:
    """A session on a virtual clock with an in-memory store."""
    return GameSession(machine=machine, store=store, scheduler=scheduler)


@pytest.fixture
def small_puzzle(rng) -> PuzzleState:
    """A 3x3 puzzle with nothing locked."""
    return generate(3, 0, rng=rng)

