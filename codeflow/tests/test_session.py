"""
Tests for GameSession.

Tests:
- Snapshots written after accepted commands
- Restore, including corrupt and unreadable snapshots
- Sprint timer driven by the scheduler
- Review auto-advance
- Background/foreground handling
"""

import pytest

from ..config import STATE_STORAGE_KEY
from ..engine_core.puzzle import rotate_puzzle
from ..persistence import InMemoryStore
from ..persistence.snapshot import decode_state
from ..session import GamePhase, GameSession, ManualScheduler
from ..tickets import TicketStatus


class BrokenStore:
    """Store whose every operation fails."""

    async def get(self, key):
        raise OSError("disk on fire")

    async def set(self, key, value):
        raise OSError("disk on fire")

    async def remove(self, key):
        raise OSError("disk on fire")


async def start_sprint(session, n_tickets=2):
    await session.start_game()
    for ticket in session.state.backlog[:n_tickets]:
        await session.add_ticket_to_sprint(ticket.id)
    await session.start_sprint()


async def saved_state(store):
    return decode_state(STATE_STORAGE_KEY, await store.get(STATE_STORAGE_KEY))


class TestSaving:
    """Snapshots follow accepted commands."""

    @pytest.mark.asyncio
    async def test_start_game_saves(self, session, store):
        await session.start_game()

        assert STATE_STORAGE_KEY in store
        assert (await saved_state(store)) == session.state

    @pytest.mark.asyncio
    async def test_rejected_command_does_not_save(self, session, store):
        await session.start_game()
        writes = store.writes

        result = await session.start_sprint()

        assert not result.accepted
        assert store.writes == writes

    @pytest.mark.asyncio
    async def test_reset_removes_snapshot(self, session, store):
        await session.start_game()
        await session.reset_game()

        assert STATE_STORAGE_KEY not in store
        assert session.phase is GamePhase.MAIN_MENU

    @pytest.mark.asyncio
    async def test_save_failure_is_not_raised(self, machine, scheduler):
        session = GameSession(machine=machine, store=BrokenStore(), scheduler=scheduler)

        result = await session.start_game()

        assert result.accepted
        assert session.phase is GamePhase.SPRINT_PLANNING
        assert not await session.save()

    @pytest.mark.asyncio
    async def test_listeners_see_every_state(self, session):
        seen = []
        session.subscribe(lambda state: seen.append(state.game_phase))

        await start_sprint(session, n_tickets=1)

        assert seen[0] is GamePhase.SPRINT_PLANNING
        assert seen[-1] is GamePhase.SPRINT_ACTIVE


class TestRestore:
    """Loading a saved game."""

    @pytest.mark.asyncio
    async def test_restore_saved_game(self, session, store, machine, scheduler):
        await start_sprint(session)

        fresh = GameSession(machine=machine, store=store, scheduler=scheduler)
        assert await fresh.restore()
        assert fresh.state == session.state

    @pytest.mark.asyncio
    async def test_restore_without_snapshot(self, session):
        assert not await session.restore()
        assert session.phase is GamePhase.MAIN_MENU

    @pytest.mark.asyncio
    async def test_restore_corrupt_snapshot(self, machine, scheduler):
        store = InMemoryStore({STATE_STORAGE_KEY: "{broken"})
        session = GameSession(machine=machine, store=store, scheduler=scheduler)

        assert not await session.restore()
        assert session.phase is GamePhase.MAIN_MENU

    @pytest.mark.asyncio
    async def test_restore_unreadable_store(self, machine, scheduler):
        session = GameSession(machine=machine, store=BrokenStore(), scheduler=scheduler)

        assert not await session.restore()
        assert session.phase is GamePhase.MAIN_MENU

    @pytest.mark.asyncio
    async def test_restored_puzzle_restarts_sprint_timer(self, session, store, machine):
        await start_sprint(session)
        await session.select_ticket(session.state.current_sprint_tickets[0].id)

        scheduler = ManualScheduler()
        fresh = GameSession(machine=machine, store=store, scheduler=scheduler)
        await fresh.restore()
        scheduler.advance(5)

        assert fresh.is_sprint_timer_scheduled
        assert fresh.state.sprint_time_remaining == 295

    @pytest.mark.asyncio
    async def test_restore_into_review_schedules_advance(self, session, store, machine, scheduler):
        await start_sprint(session)
        await session.end_sprint_early()

        fresh = GameSession(machine=machine, store=store, scheduler=scheduler, review_delay=3)
        await fresh.restore()
        scheduler.advance(3)
        await fresh.flush()

        assert fresh.phase is GamePhase.SPRINT_PLANNING
        assert fresh.state.sprint_number == 2


class TestSprintTimer:
    """The sprint clock runs on the scheduler."""

    @pytest.mark.asyncio
    async def test_timer_counts_down(self, session, scheduler):
        await start_sprint(session)
        assert session.is_sprint_timer_scheduled

        scheduler.advance(10)

        assert session.state.sprint_time_remaining == 290

    @pytest.mark.asyncio
    async def test_expiry_moves_to_review_and_saves(self, session, scheduler, store):
        await start_sprint(session)

        scheduler.advance(300)
        await session.flush()

        assert session.phase is GamePhase.SPRINT_REVIEW
        assert not session.is_sprint_timer_scheduled
        assert scheduler.pending == 0
        assert (await saved_state(store)).game_phase is GamePhase.SPRINT_REVIEW

    @pytest.mark.asyncio
    async def test_review_auto_advances(self, machine, store, scheduler):
        session = GameSession(machine=machine, store=store, scheduler=scheduler, review_delay=3)
        await start_sprint(session)
        scheduler.advance(300)
        assert session.phase is GamePhase.SPRINT_REVIEW

        scheduler.advance(3)
        await session.flush()

        assert session.phase is GamePhase.SPRINT_PLANNING
        assert session.state.sprint_number == 2
        assert (await saved_state(store)).sprint_number == 2

    @pytest.mark.asyncio
    async def test_manual_plan_cancels_auto_advance(self, machine, store, scheduler):
        session = GameSession(machine=machine, store=store, scheduler=scheduler, review_delay=3)
        await start_sprint(session)
        await session.end_sprint_early()

        await session.plan_sprint()
        scheduler.advance(10)

        assert session.state.sprint_number == 2
        assert session.phase is GamePhase.SPRINT_PLANNING

    @pytest.mark.asyncio
    async def test_timer_stops_when_puzzle_saved(self, session, scheduler):
        await start_sprint(session)
        ticket = session.state.current_sprint_tickets[0]
        await session.select_ticket(ticket.id)
        scheduler.advance(4)

        await session.save_and_exit_puzzle(ticket.id, ticket.current_puzzle_state, 4)
        scheduler.advance(4)

        assert not session.is_sprint_timer_scheduled
        assert session.state.sprint_time_remaining == 296


class TestHostLifecycle:
    """Backgrounding the host app."""

    @pytest.mark.asyncio
    async def test_background_pauses_and_saves(self, session, scheduler, store):
        await start_sprint(session)
        await session.select_ticket(session.state.current_sprint_tickets[0].id)

        await session.enter_background()
        scheduler.advance(30)

        assert not session.is_sprint_timer_scheduled
        assert session.state.sprint_time_remaining == 300
        assert not (await saved_state(store)).is_sprint_timer_running

    @pytest.mark.asyncio
    async def test_foreground_resumes(self, session, scheduler):
        await start_sprint(session)
        await session.select_ticket(session.state.current_sprint_tickets[0].id)
        await session.enter_background()

        await session.enter_foreground()
        scheduler.advance(2)

        assert session.state.sprint_time_remaining == 298

    @pytest.mark.asyncio
    async def test_background_outside_puzzle_only_saves(self, session, store):
        await session.start_game()
        writes = store.writes

        await session.enter_background()

        assert session.phase is GamePhase.SPRINT_PLANNING
        assert store.writes == writes + 1

    @pytest.mark.asyncio
    async def test_background_records_open_puzzle_work(self, session, store):
        await start_sprint(session)
        ticket = session.state.current_sprint_tickets[0]
        await session.select_ticket(ticket.id)
        worked = rotate_puzzle(ticket.current_puzzle_state, 1, 1)
        session.set_progress_source(lambda: (ticket.id, worked, 7))

        await session.enter_background()
        saved = (await saved_state(store)).find_sprint_ticket(ticket.id)

        assert session.phase is GamePhase.PUZZLE_SOLVING
        assert saved.current_puzzle_state == worked
        assert saved.time_spent == 7

    @pytest.mark.asyncio
    async def test_expiry_records_open_puzzle_work(self, session, scheduler, store):
        await start_sprint(session)
        ticket = session.state.current_sprint_tickets[0]
        await session.select_ticket(ticket.id)
        asked = []

        def progress():
            asked.append(session.phase)
            return ticket.id, ticket.current_puzzle_state, 5

        session.set_progress_source(progress)
        scheduler.advance(300)
        await session.flush()
        saved = (await saved_state(store)).find_sprint_ticket(ticket.id)

        assert asked == [GamePhase.PUZZLE_SOLVING]
        assert saved.time_spent == 5
        assert saved.status is TicketStatus.PAUSED
