"""Tests for polling tasks and scheduled jobs."""

from datetime import datetime, timedelta

import pytest
from unittest.mock import AsyncMock, MagicMock

from apscheduler.schedulers.asyncio import AsyncIOScheduler


def idle_scheduler() -> AsyncIOScheduler:
    """Scheduler that is never started, so jobs stay pending."""
    return AsyncIOScheduler(timezone="Asia/Kolkata")


async def noop(*args):
    return None


class TestPollingTask:
    """Test suite for PollingTask."""

    def test_start_registers_job(self):
        from finflux.scheduler.setup import PollingTask

        scheduler = idle_scheduler()
        task = PollingTask("inventory:s1", noop, 30, args=["ctx"], scheduler=scheduler)

        task.start()

        assert task.active
        job = scheduler.get_job("inventory:s1")
        assert job.args == ("ctx",)
        assert job.trigger.interval.total_seconds() == 30

    def test_cancel_removes_job(self):
        from finflux.scheduler.setup import PollingTask

        scheduler = idle_scheduler()
        task = PollingTask("inventory:s1", noop, scheduler=scheduler)
        task.start()

        assert task.cancel() is True
        assert not task.active

    def test_cancel_twice_is_safe(self):
        from finflux.scheduler.setup import PollingTask

        task = PollingTask("attendance:s1", noop, scheduler=idle_scheduler())
        task.start()
        task.cancel()

        assert task.cancel() is False

    def test_default_interval_from_settings(self):
        from finflux.config import get_settings
        from finflux.scheduler.setup import PollingTask

        task = PollingTask("inventory:s2", noop, scheduler=idle_scheduler())

        assert task.interval_seconds == get_settings().poll_interval_seconds


def make_context():
    context = MagicMock()
    context.session.session_id = "s1"
    context.expire_if_idle = AsyncMock(return_value=False)
    context.products.list = AsyncMock(return_value=["tank"])
    context.monitor.refresh = AsyncMock(return_value=MagicMock(to_send=[]))
    context.attendance.list = AsyncMock(return_value=[])
    return context


class TestInventoryPollJob:
    """Test suite for the inventory polling job."""

    @pytest.mark.asyncio
    async def test_refreshes_and_evaluates(self):
        from finflux.scheduler.jobs import inventory_poll_job

        context = make_context()

        await inventory_poll_job(context)

        context.products.list.assert_awaited_once()
        context.monitor.refresh.assert_awaited_once_with(["tank"])

    @pytest.mark.asyncio
    async def test_fetch_failure_skips_alerts(self):
        from finflux.scheduler.jobs import inventory_poll_job
        from finflux.utils.errors import BackendUnavailableError

        context = make_context()
        context.products.list = AsyncMock(side_effect=BackendUnavailableError("Request timed out"))

        await inventory_poll_job(context)

        context.monitor.refresh.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_session_skips_fetch_and_alerts(self):
        from finflux.scheduler.jobs import inventory_poll_job

        context = make_context()
        context.expire_if_idle = AsyncMock(return_value=True)

        await inventory_poll_job(context)

        context.products.list.assert_not_awaited()
        context.monitor.refresh.assert_not_awaited()


class TestAttendancePollJob:
    """Test suite for the attendance polling job."""

    @pytest.mark.asyncio
    async def test_refreshes_records(self):
        from finflux.scheduler.jobs import attendance_poll_job

        context = make_context()

        await attendance_poll_job(context)

        context.attendance.list.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self):
        from finflux.scheduler.jobs import attendance_poll_job

        context = make_context()
        context.attendance.list = AsyncMock(side_effect=RuntimeError("boom"))

        await attendance_poll_job(context)

    @pytest.mark.asyncio
    async def test_expired_session_skips_fetch(self):
        from finflux.scheduler.jobs import attendance_poll_job

        context = make_context()
        context.expire_if_idle = AsyncMock(return_value=True)

        await attendance_poll_job(context)

        context.attendance.list.assert_not_awaited()


class TestExpireIfIdle:
    """Test suite for DashboardContext.expire_if_idle."""

    def _context(self, idle_minutes):
        from finflux.core.roles import UserRole
        from finflux.core.session import DashboardContext, Session

        session = Session(
            session_id="s1",
            user_id="1",
            username="ravi",
            name="Ravi",
            role=UserRole.OWNER,
            organization_id="ORG-1",
            last_activity=datetime.now() - timedelta(minutes=idle_minutes),
        )
        client = MagicMock(org_id="ORG-1")
        client.close = AsyncMock()
        return DashboardContext(session, client=client, notifier=MagicMock())

    @pytest.mark.asyncio
    async def test_active_session_is_kept(self):
        context = self._context(5)
        context.on_expired = AsyncMock()

        assert await context.expire_if_idle() is False
        context.on_expired.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_session_calls_owner(self):
        context = self._context(120)
        context.on_expired = AsyncMock()

        assert await context.expire_if_idle() is True
        context.on_expired.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_expired_without_owner_closes_itself(self):
        context = self._context(120)

        assert await context.expire_if_idle() is True
        context.client.close.assert_awaited_once()
