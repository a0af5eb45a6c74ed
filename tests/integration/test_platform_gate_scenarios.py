"""
End-to-end lifecycle scenarios through the function-style action surface.

One client walks the platform gate retry cycle; a second reaches final
approval.  Everything runs against a real SQLite database with the real
notification store and a recording commission collaborator.
"""

from datetime import timedelta

import pytest

from intake_kernel.domain.statuses import (
    EventType,
    IntakeStatus,
    NotificationType,
    PlatformStatus,
    TaskType,
)
from intake_kernel.services.notifications import NotificationStore
from intake_services import actions
from intake_services.lifecycle import LifecycleStatus

S = IntakeStatus
P = PlatformStatus


@pytest.fixture(autouse=True)
def installed_service(lifecycle):
    actions.set_lifecycle_service(lifecycle)
    yield lifecycle
    actions.set_lifecycle_service(None)


@pytest.fixture
def inbox(session_factory, clock) -> NotificationStore:
    return NotificationStore(session_factory, clock)


class TestPlatformGateRetryCycle:
    def test_full_cycle(
        self, create_client, create_platform_record, agent_id, agent, backoffice,
        read_client, read_gate_record, read_events, inbox, clock,
    ):
        client_id = create_client(S.PREQUAL_REVIEW, agent_id)
        create_platform_record(client_id, P.PENDING_REVIEW)

        # Reviewer sends the gated platform back
        result = actions.reject_platform_gate_with_retry(client_id, backoffice, "blurry photo")

        assert result.is_success
        record = read_gate_record(client_id)
        assert record.status == P.RETRY_PENDING
        assert record.retry_count == 1
        assert read_client(client_id).intake_status == S.PREQUAL_REVIEW
        (retry,) = inbox.for_user(agent_id)
        assert retry.notification_type == NotificationType.PLATFORM_RETRY.value
        assert "blurry photo" in retry.message
        assert "24 hours" in retry.message

        # Too early
        clock.advance(1)
        early = actions.resubmit_platform_gate(client_id, agent, "approved", ["s1.png"])

        assert early.status == LifecycleStatus.COOLDOWN_NOT_EXPIRED
        assert read_gate_record(client_id).status == P.RETRY_PENDING
        assert read_gate_record(client_id).retry_count == 1

        # After the cooldown
        clock.advance_hours(24)
        resubmitted = actions.resubmit_platform_gate(client_id, agent, "approved", ["s1.png"])

        assert resubmitted.is_success
        record = read_gate_record(client_id)
        assert record.status == P.PENDING_REVIEW
        assert record.retry_count == 2
        assert record.evidence == ["s1.png"]

        # Reviewer approves; intermediate status sends no notification
        events_before = len(read_events(client_id))
        approved = actions.approve_platform_gate(client_id, backoffice)

        assert approved.is_success
        assert read_gate_record(client_id).status == P.VERIFIED
        assert read_client(client_id).intake_status == S.PREQUAL_APPROVED
        new_events = read_events(client_id)[events_before:]
        assert [e.event_type for e in new_events] == [EventType.STATUS_CHANGE]
        assert inbox.unread_count(agent_id) == 1

        status = actions.check_platform_gate_status(client_id, agent)
        assert status.gate_status.verified
        assert status.retry_count == 2

    def test_second_rejection_increments_again(
        self, create_client, create_platform_record, agent_id, agent, backoffice,
        read_gate_record, clock,
    ):
        client_id = create_client(S.PREQUAL_REVIEW, agent_id)
        create_platform_record(client_id, P.PENDING_REVIEW)

        actions.reject_platform_gate_with_retry(client_id, backoffice, "blurry photo")
        clock.advance_hours(25)
        actions.resubmit_platform_gate(client_id, agent, "approved", ["s1.png"])
        again = actions.reject_platform_gate_with_retry(client_id, backoffice, "wrong address")

        assert again.retry_count == 3
        assert again.retry_after == clock.now() + timedelta(hours=24)
        assert read_gate_record(client_id).review_notes == "wrong address"

    def test_permanent_rejection(
        self, create_client, create_platform_record, agent_id, backoffice, read_client, inbox
    ):
        client_id = create_client(S.PREQUAL_REVIEW, agent_id)
        create_platform_record(client_id, P.PENDING_REVIEW)

        result = actions.reject_platform_gate_permanently(client_id, backoffice, "fraud")

        assert result.is_success
        assert read_client(client_id).intake_status == S.REJECTED
        (notice,) = inbox.for_user(agent_id)
        assert notice.notification_type == NotificationType.REJECTION.value
        assert "fraud" in notice.message


class TestFinalApproval:
    def test_ready_client_approved(
        self, create_client, agent_id, admin, read_client, read_tasks, inbox, commission
    ):
        client_id = create_client(S.READY_FOR_APPROVAL, agent_id)

        result = actions.transition_client_status(client_id, S.APPROVED, admin)

        assert result.is_success
        assert read_client(client_id).intake_status == S.APPROVED
        assert commission.calls == [client_id]
        (notice,) = inbox.for_user(agent_id)
        assert notice.notification_type == NotificationType.APPROVAL.value
        types = sorted(t.task_type for t in read_tasks(client_id))
        assert types == [TaskType.PHONE_RETURN.value, TaskType.PHONE_SIGNOUT.value]

    def test_overdue_sweep_through_actions(self, create_client, create_task, agent_id, admin, clock):
        client_id = create_client(S.IN_EXECUTION, agent_id)
        create_task(client_id, agent_id, due_at=clock.now() - timedelta(hours=2))

        result = actions.mark_overdue_tasks(admin)

        assert len(result.affected_ids) == 1
