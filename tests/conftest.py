"""
Pytest fixtures for the intake lifecycle test suite.

Provides:
- A file-backed SQLite database per test (tables created, immutability
  listeners registered)
- A DeterministicClock pinned to a Wednesday
- Factories for users, clients, platform records and tasks
- Captured structured logs
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from io import StringIO
from typing import Generator
from uuid import UUID

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from intake_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from intake_kernel.db.immutability import (
    register_immutability_listeners,
    unregister_immutability_listeners,
)
from intake_kernel.domain.actors import ActingUser
from intake_kernel.domain.clock import DeterministicClock
from intake_kernel.domain.policy import DEFAULT_POLICY
from intake_kernel.domain.statuses import (
    IntakeStatus,
    PlatformStatus,
    PlatformType,
    TaskStatus,
    TaskType,
    UserRole,
)
from intake_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from intake_kernel.models import (
    Client,
    EventLogEntry,
    PlatformVerification,
    Task,
    User,
)
from intake_kernel.services.event_log_writer import EventLogWriter
from intake_kernel.services.platform_gate import PlatformGateWorkflow
from intake_kernel.services.task_manager import TaskManager
from intake_kernel.services.transition_engine import TransitionEngine
from intake_services.lifecycle import ClientLifecycleService

# Wednesday, so three business days later is the following Monday
TEST_NOW = datetime(2024, 1, 3, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture intake_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, lifecycle):
            lifecycle.transition_status(...)
            logs = captured_logs()
            assert any(r["message"] == "transition_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("intake_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db_engine(tmp_path):
    """Fresh SQLite database file per test."""
    engine = init_engine_from_url(f"sqlite:///{tmp_path / 'intake.db'}")
    create_tables()
    register_immutability_listeners()
    yield engine
    unregister_immutability_listeners()
    reset_engine()


@pytest.fixture
def session_factory(db_engine):
    return get_session_factory()


@pytest.fixture
def session(session_factory) -> Generator[Session, None, None]:
    """A session for kernel-level tests.  Tests commit or roll back explicitly."""
    sess = session_factory()
    yield sess
    sess.close()


# =============================================================================
# Time and policy
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(TEST_NOW)


@pytest.fixture
def policy():
    return DEFAULT_POLICY


# =============================================================================
# Data factories
# =============================================================================


@pytest.fixture
def create_user(session_factory):
    def _create(role: UserRole, name: str | None = None, is_active: bool = True) -> UUID:
        with session_scope(session_factory) as s:
            user = User(
                name=name or f"{role.value.title()} User",
                role=role.value,
                is_active=is_active,
            )
            s.add(user)
            s.flush()
            return user.id

    return _create


@pytest.fixture
def agent_id(create_user) -> UUID:
    return create_user(UserRole.AGENT, "Alex Agent")


@pytest.fixture
def other_agent_id(create_user) -> UUID:
    return create_user(UserRole.AGENT, "Other Agent")


@pytest.fixture
def backoffice_id(create_user) -> UUID:
    return create_user(UserRole.BACKOFFICE, "Bo Office")


@pytest.fixture
def admin_id(create_user) -> UUID:
    return create_user(UserRole.ADMIN, "Ada Admin")


@pytest.fixture
def agent(agent_id) -> ActingUser:
    return ActingUser(id=agent_id, role=UserRole.AGENT)


@pytest.fixture
def other_agent(other_agent_id) -> ActingUser:
    return ActingUser(id=other_agent_id, role=UserRole.AGENT)


@pytest.fixture
def backoffice(backoffice_id) -> ActingUser:
    return ActingUser(id=backoffice_id, role=UserRole.BACKOFFICE)


@pytest.fixture
def admin(admin_id) -> ActingUser:
    return ActingUser(id=admin_id, role=UserRole.ADMIN)


@pytest.fixture
def create_client(session_factory, clock):
    def _create(
        status: IntakeStatus = IntakeStatus.PENDING,
        agent_id: UUID | None = None,
        first_name: str = "Jamie",
        last_name: str = "Rivera",
    ) -> UUID:
        with session_scope(session_factory) as s:
            client = Client(
                first_name=first_name,
                last_name=last_name,
                intake_status=status.value,
                status_changed_at=clock.now() - timedelta(days=1),
                agent_id=agent_id,
                created_at=clock.now() - timedelta(days=7),
            )
            s.add(client)
            s.flush()
            return client.id

    return _create


@pytest.fixture
def create_platform_record(session_factory, policy):
    def _create(
        client_id: UUID,
        status: PlatformStatus = PlatformStatus.PENDING_REVIEW,
        platform_type: PlatformType | None = None,
        retry_after: datetime | None = None,
        retry_count: int = 0,
    ) -> UUID:
        with session_scope(session_factory) as s:
            record = PlatformVerification(
                client_id=client_id,
                platform_type=(platform_type or policy.gated_platform).value,
                status=status.value,
                retry_after=retry_after,
                retry_count=retry_count,
            )
            s.add(record)
            s.flush()
            return record.id

    return _create


@pytest.fixture
def create_task(session_factory, clock):
    def _create(
        client_id: UUID,
        assigned_to_id: UUID,
        task_type: TaskType = TaskType.PROVIDE_INFO,
        status: TaskStatus = TaskStatus.PENDING,
        due_at: datetime | None = None,
    ) -> UUID:
        with session_scope(session_factory) as s:
            task = Task(
                client_id=client_id,
                task_type=task_type.value,
                status=status.value,
                title=f"{task_type.value} task",
                priority=2,
                due_at=due_at,
                assigned_to_id=assigned_to_id,
                created_by_id=assigned_to_id,
                created_at=clock.now(),
            )
            s.add(task)
            s.flush()
            return task.id

    return _create


# =============================================================================
# Read helpers
# =============================================================================


@pytest.fixture
def read_client(session_factory):
    def _read(client_id: UUID) -> Client:
        with session_scope(session_factory) as s:
            return s.get(Client, client_id)

    return _read


@pytest.fixture
def read_gate_record(session_factory, policy):
    def _read(client_id: UUID) -> PlatformVerification | None:
        with session_scope(session_factory) as s:
            return s.scalar(
                select(PlatformVerification).where(
                    PlatformVerification.client_id == client_id,
                    PlatformVerification.platform_type == policy.gated_platform.value,
                )
            )

    return _read


@pytest.fixture
def read_events(session_factory):
    def _read(client_id: UUID) -> list[EventLogEntry]:
        with session_scope(session_factory) as s:
            return list(
                s.scalars(
                    select(EventLogEntry)
                    .where(EventLogEntry.client_id == client_id)
                    .order_by(EventLogEntry.created_at)
                )
            )

    return _read


@pytest.fixture
def read_tasks(session_factory):
    def _read(client_id: UUID) -> list[Task]:
        with session_scope(session_factory) as s:
            return list(
                s.scalars(
                    select(Task)
                    .where(Task.client_id == client_id)
                    .order_by(Task.created_at, Task.step_number)
                )
            )

    return _read


@pytest.fixture
def count_rows(session_factory):
    def _count(model) -> int:
        with session_scope(session_factory) as s:
            return s.scalar(select(func.count()).select_from(model))

    return _count


# =============================================================================
# Kernel and service assemblies
# =============================================================================


class RecordingCommission:
    """CommissionBootstrapper fake that records calls and can be made to fail."""

    def __init__(self, fail: bool = False):
        self.calls: list[UUID] = []
        self.fail = fail

    def bootstrap(self, client_id: UUID) -> None:
        self.calls.append(client_id)
        if self.fail:
            raise RuntimeError("commission service unavailable")


class RecordingSink:
    """NotificationSink fake that records sends and can be made to fail."""

    def __init__(self, fail: bool = False):
        self.sent: list[dict] = []
        self.fail = fail

    def send(self, user_id, notification_type, title, message, link, client_id=None):
        if self.fail:
            raise RuntimeError("notification backend down")
        self.sent.append(
            {
                "user_id": user_id,
                "type": notification_type,
                "title": title,
                "message": message,
                "link": link,
                "client_id": client_id,
            }
        )


class StaticDirectory:
    """UserDirectory fake mapping roles to fixed user ids."""

    def __init__(self, users_by_role: dict[UserRole, list[UUID]] | None = None):
        self.users_by_role = users_by_role or {}

    def active_user_ids(self, roles):
        return [uid for role in roles for uid in self.users_by_role.get(role, [])]


@pytest.fixture
def commission() -> RecordingCommission:
    return RecordingCommission()


@pytest.fixture
def kernel(session, clock, policy):
    """TransitionEngine and PlatformGateWorkflow sharing one session."""

    class _Kernel:
        pass

    k = _Kernel()
    k.session = session
    k.audit_log = EventLogWriter(session, clock)
    k.tasks = TaskManager(session, clock)
    k.engine = TransitionEngine(session, k.audit_log, k.tasks, clock, policy)
    k.gate = PlatformGateWorkflow(session, k.engine, k.audit_log, clock, policy)
    return k


@pytest.fixture
def lifecycle(session_factory, clock, policy, commission) -> ClientLifecycleService:
    """Service with the real notification store and a recording commission."""
    return ClientLifecycleService(
        session_factory=session_factory,
        clock=clock,
        policy=policy,
        commission=commission,
    )


@pytest.fixture
def failing_commission() -> RecordingCommission:
    return RecordingCommission(fail=True)


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def failing_sink() -> RecordingSink:
    return RecordingSink(fail=True)


@pytest.fixture
def static_directory():
    def _make(users_by_role: dict[UserRole, list[UUID]] | None = None) -> StaticDirectory:
        return StaticDirectory(users_by_role)

    return _make
