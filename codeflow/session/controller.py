"""
Game Session - Owns the live session state, its timers and persistence.

LIFECYCLE:
1. Host starts → restore() loads the saved snapshot (once, before commands)
2. Player issues commands → SessionMachine produces a new state
3. After every accepted command:
   - the sprint timer is started/stopped to match the state
   - a snapshot is written (best effort)
4. Sprint timer ticks arrive as TICK commands on the same event loop
5. SPRINT_REVIEW advances to planning after a short delay
6. Host goes to background → enter_background() records puzzle work, pauses and saves

PERSISTENCE RULES:
- The store is only touched here
- Store failures and corrupt snapshots are logged, never raised
- A missing or unreadable snapshot means a fresh MAIN_MENU session
"""

from __future__ import annotations
import asyncio
import logging
from typing import Callable

from ..config import GameConfig, STATE_STORAGE_KEY
from ..engine_core.state import PuzzleState
from ..errors import SnapshotError
from ..persistence.store import InMemoryStore, KeyValueStore
from ..tickets.ticket import Ticket
from .command import Command, CommandResult
from .machine import SessionMachine
from .state import GamePhase, SessionState
from .timer import Handle, ManualScheduler, PeriodicTimer, Scheduler

logger = logging.getLogger(__name__)

# Returns (ticket_id, working puzzle, unrecorded seconds) for the open puzzle
ProgressSource = Callable[[], tuple[str, PuzzleState, int] | None]


class GameSession:
    """
    The single owner of a SessionState.

    Usage:
        session = GameSession(machine, store, AsyncioScheduler())
        await session.restore()
        await session.start_game()
        await session.add_ticket_to_sprint(session.state.backlog[0].id)
        await session.start_sprint()
    """

    def __init__(
        self,
        machine: SessionMachine | None = None,
        store: KeyValueStore | None = None,
        scheduler: Scheduler | None = None,
        storage_key: str = STATE_STORAGE_KEY,
        review_delay: float | None = None,
    ):
        self.machine = machine or SessionMachine()
        self.store = store if store is not None else InMemoryStore()
        self.scheduler = scheduler or ManualScheduler()
        self.storage_key = storage_key
        self.review_delay = (
            review_delay if review_delay is not None
            else self.machine.config.review_delay_seconds
        )

        self._state = self.machine.initial_state()
        self._sprint_timer = PeriodicTimer(self.scheduler, self._on_sprint_tick, name="sprint timer")
        self._review_handle: Handle | None = None
        self._save_lock = asyncio.Lock()
        self._pending_saves: set[asyncio.Task] = set()
        self._listeners: list[Callable[[SessionState], None]] = []
        self._progress_source: ProgressSource | None = None

    @property
    def config(self) -> GameConfig:
        return self.machine.config

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def phase(self) -> GamePhase:
        return self._state.game_phase

    @property
    def active_ticket(self) -> Ticket | None:
        return self._state.active_ticket

    @property
    def is_sprint_timer_scheduled(self) -> bool:
        return self._sprint_timer.is_running

    def subscribe(self, listener: Callable[[SessionState], None]) -> None:
        """Call listener with every new state (UI re-render hook)."""
        self._listeners.append(listener)

    def set_progress_source(self, source: ProgressSource | None) -> None:
        """
        Register where unsaved puzzle work lives.

        The source is read before backgrounding and before the sprint
        ends, so that work reaches the ticket and the snapshot.
        """
        self._progress_source = source

    # =========================================================================
    # Commands
    # =========================================================================

    async def start_game(self) -> CommandResult:
        await self._remove_snapshot()
        return await self.dispatch(Command.start_game())

    async def reset_game(self) -> CommandResult:
        await self._remove_snapshot()
        return await self.dispatch(Command.reset_game(), persist=False)

    async def add_ticket_to_sprint(self, ticket_id: str) -> CommandResult:
        return await self.dispatch(Command.add_ticket_to_sprint(ticket_id))

    async def remove_ticket_from_sprint(self, ticket_id: str) -> CommandResult:
        return await self.dispatch(Command.remove_ticket_from_sprint(ticket_id))

    async def start_sprint(self) -> CommandResult:
        return await self.dispatch(Command.start_sprint())

    async def select_ticket(self, ticket_id: str) -> CommandResult:
        return await self.dispatch(Command.select_ticket(ticket_id))

    async def save_and_exit_puzzle(
        self, ticket_id: str, puzzle: PuzzleState, elapsed: int
    ) -> CommandResult:
        return await self.dispatch(Command.save_and_exit_puzzle(ticket_id, puzzle, elapsed))

    async def complete_ticket(
        self, ticket_id: str, elapsed: int, puzzle: PuzzleState | None = None
    ) -> CommandResult:
        return await self.dispatch(Command.complete_ticket(ticket_id, elapsed, puzzle))

    async def end_sprint_early(self) -> CommandResult:
        self._record_progress()
        return await self.dispatch(Command.end_sprint_early())

    async def plan_sprint(self) -> CommandResult:
        return await self.dispatch(Command.plan_sprint())

    async def pause_sprint_timer(self) -> CommandResult:
        return await self.dispatch(Command.pause_timer())

    async def resume_sprint_timer(self) -> CommandResult:
        return await self.dispatch(Command.resume_timer())

    async def dispatch(self, command: Command, persist: bool = True) -> CommandResult:
        """Apply a command and, if accepted, save the new state."""
        result = self._apply(command)
        if result.accepted and persist:
            await self.save()
        return result

    def _apply(self, command: Command) -> CommandResult:
        """
        Run a command through the machine and adopt the result.

        Synchronous: the state swap, timer sync and review scheduling all
        happen before control returns to the event loop.
        """
        previous = self._state
        result = self.machine.apply(previous, command)
        if not result.accepted:
            return result

        self._state = result.new_state
        self._sync_sprint_timer()
        if self._state.game_phase is not previous.game_phase:
            self._on_phase_change(previous.game_phase, self._state.game_phase)
        for listener in self._listeners:
            listener(self._state)
        return result

    # =========================================================================
    # Timers
    # =========================================================================

    def _sync_sprint_timer(self) -> None:
        if self._state.is_sprint_timer_running:
            self._sprint_timer.start()
        else:
            self._sprint_timer.stop()

    def _on_sprint_tick(self) -> None:
        """Scheduler callback: one second of sprint time has passed."""
        phase_before = self._state.game_phase
        command = Command.tick()
        if self._state.sprint_time_remaining <= command.payload.seconds:
            # Last second: expiry ends the sprint like end_sprint_early
            self._record_progress()
        result = self._apply(command)
        if result.accepted and self._state.game_phase is not phase_before:
            self._save_soon()

    def _on_phase_change(self, old: GamePhase, new: GamePhase) -> None:
        if self._review_handle is not None:
            self._review_handle.cancel()
            self._review_handle = None
        if new is GamePhase.SPRINT_REVIEW and self.review_delay is not None:
            self._review_handle = self.scheduler.call_later(
                self.review_delay, self._on_review_elapsed
            )

    def _on_review_elapsed(self) -> None:
        """Scheduler callback: the review screen has been shown long enough."""
        self._review_handle = None
        result = self._apply(Command.plan_sprint())
        if result.accepted:
            self._save_soon()

    # =========================================================================
    # Host lifecycle
    # =========================================================================

    async def enter_background(self) -> None:
        """Record open puzzle work, pause the sprint clock, then save."""
        if self._state.game_phase is GamePhase.PUZZLE_SOLVING:
            self._record_progress()
            self._apply(Command.pause_timer())
        await self.save()

    async def enter_foreground(self) -> None:
        """Resume the sprint clock if a puzzle is still open."""
        if self._state.game_phase is GamePhase.PUZZLE_SOLVING:
            await self.dispatch(Command.resume_timer())

    def _record_progress(self) -> None:
        if self._progress_source is None or self._state.game_phase is not GamePhase.PUZZLE_SOLVING:
            return
        progress = self._progress_source()
        if progress is None:
            return
        ticket_id, puzzle, elapsed = progress
        self._apply(Command.record_progress(ticket_id, puzzle, elapsed))

    # =========================================================================
    # Persistence
    # =========================================================================

    async def save(self) -> bool:
        """
        Write a snapshot of the current state.

        The snapshot is taken inside the lock, so the last write to
        finish always holds the newest state. Returns False on failure.
        """
        from ..persistence.snapshot import encode_state

        async with self._save_lock:
            payload = encode_state(self._state)
            try:
                await self.store.set(self.storage_key, payload)
            except Exception:
                logger.exception("Failed to save game state")
                return False
        return True

    async def restore(self) -> bool:
        """
        Load the saved snapshot, if any.

        Returns True when a snapshot was applied. Any failure leaves a
        fresh MAIN_MENU session.
        """
        from ..persistence.snapshot import decode_state
        try:
            payload = await self.store.get(self.storage_key)
        except Exception:
            logger.exception("Failed to read saved game state")
            payload = None

        if payload is None:
            logger.info("No saved game state found, starting fresh")
            self._adopt(self.machine.initial_state())
            return False

        try:
            state = decode_state(self.storage_key, payload)
        except SnapshotError as e:
            logger.error("Discarding saved game state: %s", e)
            self._adopt(self.machine.initial_state())
            return False

        logger.info(
            "Restored game: phase=%s sprint=%d",
            state.game_phase.value, state.sprint_number,
        )
        self._adopt(state)
        return True

    async def flush(self) -> None:
        """Wait for saves scheduled from timer callbacks."""
        while self._pending_saves:
            await asyncio.gather(*list(self._pending_saves))

    def _adopt(self, state: SessionState) -> None:
        previous_phase = self._state.game_phase
        self._state = state
        self._sync_sprint_timer()
        self._on_phase_change(previous_phase, state.game_phase)
        for listener in self._listeners:
            listener(self._state)

    def _save_soon(self) -> None:
        """Fire-and-forget save from a synchronous callback."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop; snapshot deferred to next save")
            return
        task = loop.create_task(self.save())
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _remove_snapshot(self) -> None:
        try:
            await self.store.remove(self.storage_key)
        except Exception:
            logger.exception("Failed to clear saved game state")
