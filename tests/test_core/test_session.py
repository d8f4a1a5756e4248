"""Tests for login, session lifetime and per-session context."""

from datetime import datetime, timedelta

import httpx
import pytest
from unittest.mock import MagicMock, patch

ORG = "/api/organizations/ORG-1"


@pytest.fixture
def auth_backend(fake_backend, login_payload):
    fake_backend.add("POST", "/api/auth/login", login_payload)
    fake_backend.add(
        "GET",
        f"{ORG}/employees",
        {"content": [{"id": "9", "empId": "EMP-7", "profileImageUrl": "https://img.test/r.png"}]},
    )
    return fake_backend


@pytest.fixture
def manager(auth_backend, mock_notifier):
    from finflux.core.session import SessionManager

    return SessionManager(
        transport=auth_backend.transport,
        notifier=mock_notifier,
        enable_polling=False,
    )


class TestLogin:
    """Test suite for SessionManager.login."""

    @pytest.mark.asyncio
    async def test_login_builds_session(self, manager, auth_backend):
        from finflux.core.roles import UserRole

        session = await manager.login("  ravi ", "secret ")

        assert session.username == "ravi"
        assert session.name == "Ravi Kumar"
        assert session.role == UserRole.MANAGER
        assert session.organization_id == "ORG-1"
        assert session.profile_image_url == "https://img.test/r.png"
        assert manager.active_count == 1

        sent = auth_backend.calls("POST", "/api/auth/login")[0]
        assert b'"password":"secret"' in sent.content.replace(b" ", b"")

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_blank_credentials_never_hit_backend(self, manager, auth_backend):
        from finflux.utils.errors import ValidationError

        with pytest.raises(ValidationError):
            await manager.login("   ", "secret")

        assert auth_backend.requests == []

    @pytest.mark.asyncio
    async def test_invalid_credentials(self, manager, auth_backend):
        from finflux.utils.errors import AuthError

        auth_backend.add("POST", "/api/auth/login", httpx.Response(401, json={"message": "Bad credentials"}))

        with pytest.raises(AuthError) as exc:
            await manager.login("ravi", "wrong")

        assert exc.value.message == "Invalid credentials"
        assert manager.active_count == 0

    @pytest.mark.asyncio
    async def test_profile_image_failure_does_not_block_login(self, manager, auth_backend):
        auth_backend.add("GET", f"{ORG}/employees", httpx.Response(500))

        session = await manager.login("ravi", "secret")

        assert session.profile_image_url is None
        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_unknown_role_is_employee(self, manager, auth_backend, login_payload):
        from finflux.core.roles import UserRole

        auth_backend.add("POST", "/api/auth/login", {**login_payload, "role": "auditor"})

        session = await manager.login("ravi", "secret")

        assert session.role == UserRole.EMPLOYEE
        assert [item["href"] for item in session.to_dict()["navigation"]][:2] == [
            "/dashboard",
            "/attendance",
        ]
        await manager.shutdown()


class TestSessionLifetime:
    """Test suite for expiry and logout."""

    @pytest.mark.asyncio
    async def test_get_touches_session(self, manager):
        session = await manager.login("ravi", "secret")
        session.last_activity = datetime.now() - timedelta(minutes=5)

        assert await manager.get(session.session_id) is session
        assert datetime.now() - session.last_activity < timedelta(minutes=1)

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_idle_session_expires(self, manager):
        session = await manager.login("ravi", "secret")
        session.last_activity = datetime.now() - timedelta(minutes=31)

        assert await manager.get(session.session_id) is None
        assert manager.context(session.session_id) is None
        assert manager.active_count == 0

    @pytest.mark.asyncio
    async def test_abandoned_session_is_torn_down_by_poll(
        self, auth_backend, mock_notifier, product_factory
    ):
        """An idle session that is never requested again stops polling on the next tick."""
        from finflux.core.session import SessionManager
        from finflux.scheduler.jobs import inventory_poll_job

        auth_backend.add("GET", f"{ORG}/products", [product_factory(level=500)])
        manager = SessionManager(transport=auth_backend.transport, notifier=mock_notifier)
        session = await manager.login("ravi", "secret")
        context = manager.context(session.session_id)
        tasks = list(context.tasks)
        assert [task.active for task in tasks] == [True]

        session.last_activity = datetime.now() - timedelta(hours=5)
        await inventory_poll_job(context)

        assert [task.active for task in tasks] == [False]
        assert manager.active_count == 0
        assert manager.context(session.session_id) is None
        mock_notifier.send.assert_not_awaited()
        assert auth_backend.calls("GET", f"{ORG}/products") == []

    @pytest.mark.asyncio
    async def test_attendance_poll_stops_on_expiry(self, manager):
        from finflux.scheduler.jobs import attendance_poll_job

        session = await manager.login("ravi", "secret")
        context = manager.context(session.session_id)
        session.last_activity = datetime.now() - timedelta(minutes=31)

        await attendance_poll_job(context)

        assert manager.active_count == 0

    @pytest.mark.asyncio
    async def test_reap_expired_closes_only_idle_sessions(self, manager):
        idle = await manager.login("ravi", "secret")
        active = await manager.login("ravi", "secret")
        idle.last_activity = datetime.now() - timedelta(minutes=31)

        assert await manager.reap_expired() == 1

        assert manager.context(idle.session_id) is None
        assert manager.context(active.session_id) is not None
        assert await manager.reap_expired() == 0

        await manager.shutdown()

    @pytest.mark.asyncio
    async def test_unknown_session(self, manager):
        assert await manager.get("nope") is None
        assert await manager.get(None) is None

    @pytest.mark.asyncio
    async def test_logout_tears_down_context(self, manager, mock_notifier, product_factory, auth_backend):
        auth_backend.add("GET", f"{ORG}/products", [product_factory(level=500)])
        session = await manager.login("ravi", "secret")
        context = manager.context(session.session_id)
        await context.monitor.refresh(await context.products.list())
        assert context.monitor.tracker.alerted

        assert await manager.logout(session.session_id) is True

        assert context.monitor.tracker.alerted == frozenset()
        assert await context.store.get("products") == []
        assert await manager.logout(session.session_id) is False


class TestPolling:
    """Test suite for role-based polling registration."""

    def _context(self, role, emp_id="EMP-7"):
        from finflux.core.roles import UserRole
        from finflux.core.session import DashboardContext, Session

        session = Session(
            session_id="s1",
            user_id="1",
            username="ravi",
            name="Ravi",
            role=UserRole(role),
            organization_id="ORG-1",
            emp_id=emp_id,
        )
        return DashboardContext(session, client=MagicMock(org_id="ORG-1"), notifier=MagicMock())

    def test_staff_polls_inventory(self):
        context = self._context("owner")

        with patch("finflux.core.session.PollingTask") as task_cls:
            context.start_polling()

        assert task_cls.call_args.args[0] == "inventory:s1"
        task_cls.return_value.start.assert_called_once()

    def test_employee_polls_attendance(self):
        context = self._context("employee")

        with patch("finflux.core.session.PollingTask") as task_cls:
            context.start_polling()

        assert task_cls.call_args.args[0] == "attendance:s1"

    def test_employee_without_emp_id_has_no_polling(self):
        context = self._context("employee", emp_id=None)

        with patch("finflux.core.session.PollingTask") as task_cls:
            assert context.start_polling() == []

        task_cls.assert_not_called()

    def test_stop_polling_cancels_tasks(self):
        context = self._context("manager")

        with patch("finflux.core.session.PollingTask") as task_cls:
            context.start_polling()
            context.stop_polling()

        task_cls.return_value.cancel.assert_called_once()
        assert context.tasks == []
