"""
Event log immutability tests.

Entries are append-only: the ORM listeners reject UPDATE and DELETE at
flush time and the transaction rolls back.
"""

import pytest

from intake_kernel.domain.ports import AuditEntry
from intake_kernel.domain.statuses import EventType, IntakeStatus
from intake_kernel.exceptions import ImmutabilityViolationError
from intake_kernel.models.event_log import EventLogEntry


@pytest.fixture
def entry_id(kernel, create_client, agent_id, backoffice_id):
    client_id = create_client(IntakeStatus.PENDING, agent_id)
    entry = kernel.audit_log.append(
        AuditEntry(
            event_type=EventType.STATUS_CHANGE,
            client_id=client_id,
            user_id=backoffice_id,
            old_value="PENDING",
            new_value="PREQUAL_REVIEW",
            description="Status changed from PENDING to PREQUAL_REVIEW",
        )
    )
    kernel.session.commit()
    return entry.id


class TestEventLogImmutability:
    def test_update_rejected(self, kernel, entry_id, read_events):
        entry = kernel.session.get(EventLogEntry, entry_id)
        entry.description = "rewritten history"

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            kernel.session.flush()
        kernel.session.rollback()

        assert exc_info.value.entity_type == "EventLogEntry"
        (stored,) = read_events(kernel.session.get(EventLogEntry, entry_id).client_id)
        assert stored.description == "Status changed from PENDING to PREQUAL_REVIEW"

    def test_delete_rejected(self, kernel, entry_id, count_rows):
        kernel.session.delete(kernel.session.get(EventLogEntry, entry_id))

        with pytest.raises(ImmutabilityViolationError):
            kernel.session.flush()
        kernel.session.rollback()

        assert count_rows(EventLogEntry) == 1

    def test_violation_logged(self, kernel, entry_id, captured_logs):
        kernel.session.get(EventLogEntry, entry_id).new_value = "APPROVED"

        with pytest.raises(ImmutabilityViolationError):
            kernel.session.flush()
        kernel.session.rollback()

        blocked = [r for r in captured_logs() if r["message"] == "immutability_violation_blocked"]
        assert blocked[0]["operation"] == "UPDATE"


class TestClientTimeline:
    def test_entries_oldest_first_and_scoped(
        self, kernel, create_client, agent_id, backoffice_id, clock
    ):
        client_id = create_client(IntakeStatus.PENDING, agent_id)
        other_id = create_client(IntakeStatus.PENDING, agent_id)

        kernel.engine.apply(client_id, IntakeStatus.PREQUAL_REVIEW, backoffice_id)
        clock.advance(60)
        kernel.engine.apply(client_id, IntakeStatus.NEEDS_MORE_INFO, backoffice_id, "need ID")
        kernel.engine.apply(other_id, IntakeStatus.PREQUAL_REVIEW, backoffice_id)

        timeline = kernel.audit_log.entries_for_client(client_id)

        assert [e.new_value for e in timeline] == ["PREQUAL_REVIEW", "NEEDS_MORE_INFO"]
        assert timeline[1].description.endswith("need ID")
