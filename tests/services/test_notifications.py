"""Tests for the notification inbox and best-effort dispatcher."""

from uuid import uuid4

import pytest

from intake_kernel.domain.notices import Notice
from intake_kernel.domain.statuses import NotificationType, UserRole
from intake_kernel.services.notifications import NotificationDispatcher, NotificationStore

N = NotificationType


@pytest.fixture
def store(session_factory, clock) -> NotificationStore:
    return NotificationStore(session_factory, clock)


def _send(store, user_id, title="hello", notification_type=N.APPROVAL):
    store.send(user_id, notification_type, title, f"{title} body", "/agent/clients/1")


class TestInbox:
    def test_newest_first(self, store, agent_id, clock):
        _send(store, agent_id, "first")
        clock.advance(60)
        _send(store, agent_id, "second")

        titles = [n.title for n in store.for_user(agent_id)]

        assert titles == ["second", "first"]

    def test_limit_and_unread_filter(self, store, agent_id, clock):
        for i in range(5):
            _send(store, agent_id, f"n{i}")
            clock.advance(1)
        newest = store.for_user(agent_id, limit=1)[0]
        store.mark_as_read(newest.id, agent_id)

        assert len(store.for_user(agent_id, limit=3)) == 3
        unread = store.for_user(agent_id, unread_only=True)
        assert [n.title for n in unread] == ["n3", "n2", "n1", "n0"]
        assert store.unread_count(agent_id) == 4

    def test_scoped_to_user(self, store, agent_id, other_agent_id):
        _send(store, agent_id)
        assert store.for_user(other_agent_id) == []
        assert store.unread_count(other_agent_id) == 0

    def test_mark_as_read_sets_timestamp(self, store, agent_id, clock):
        _send(store, agent_id)
        (notification,) = store.for_user(agent_id)

        assert store.mark_as_read(notification.id, agent_id) is True

        (reloaded,) = store.for_user(agent_id)
        assert reloaded.is_read is True
        assert reloaded.read_at == clock.now()

    def test_mark_as_read_other_users_notification(self, store, agent_id, other_agent_id):
        _send(store, agent_id)
        (notification,) = store.for_user(agent_id)

        assert store.mark_as_read(notification.id, other_agent_id) is False
        assert store.unread_count(agent_id) == 1

    def test_mark_as_read_unknown(self, store, agent_id):
        assert store.mark_as_read(uuid4(), agent_id) is False

    def test_mark_all_as_read(self, store, agent_id, other_agent_id):
        _send(store, agent_id, "a")
        _send(store, agent_id, "b")
        _send(store, other_agent_id, "c")

        assert store.mark_all_as_read(agent_id) == 2
        assert store.unread_count(agent_id) == 0
        assert store.unread_count(other_agent_id) == 1
        assert store.mark_all_as_read(agent_id) == 0


class TestDirectory:
    def test_active_users_by_role(self, store, create_user, backoffice_id, admin_id, agent_id):
        inactive = create_user(UserRole.BACKOFFICE, "Former Staff", is_active=False)

        ids = store.active_user_ids(frozenset({UserRole.BACKOFFICE, UserRole.ADMIN}))

        assert set(ids) == {backoffice_id, admin_id}
        assert inactive not in ids
        assert agent_id not in ids


class TestDispatcher:
    def test_notify_records_send(self, recording_sink, static_directory, agent_id):
        dispatcher = NotificationDispatcher(recording_sink, static_directory())

        assert dispatcher.notify(agent_id, N.APPROVAL, "t", "m", "/x") is True

        (sent,) = recording_sink.sent
        assert sent["user_id"] == agent_id
        assert sent["type"] == N.APPROVAL

    def test_failure_is_swallowed_and_logged(
        self, failing_sink, static_directory, agent_id, captured_logs
    ):
        dispatcher = NotificationDispatcher(failing_sink, static_directory())

        assert dispatcher.notify(agent_id, N.REJECTION, "t", "m") is False

        failures = [r for r in captured_logs() if r["message"] == "notification_delivery_failed"]
        assert len(failures) == 1
        assert failures[0]["level"] == "WARNING"
        assert failures[0]["exc_type"] == "RuntimeError"

    def test_notify_role_fans_out(self, recording_sink, static_directory):
        reviewers = [uuid4(), uuid4()]
        admins = [uuid4()]
        directory = static_directory(
            {UserRole.BACKOFFICE: reviewers, UserRole.ADMIN: admins}
        )
        dispatcher = NotificationDispatcher(recording_sink, directory)

        delivered = dispatcher.notify_role(
            frozenset({UserRole.BACKOFFICE, UserRole.ADMIN}), N.PLATFORM_RESUBMITTED, "t", "m"
        )

        assert delivered == 3
        assert {s["user_id"] for s in recording_sink.sent} == set(reviewers + admins)

    def test_notify_role_directory_failure(self, recording_sink):
        class BrokenDirectory:
            def active_user_ids(self, roles):
                raise RuntimeError("directory offline")

        dispatcher = NotificationDispatcher(recording_sink, BrokenDirectory())

        assert dispatcher.notify_role(frozenset({UserRole.ADMIN}), N.APPROVAL, "t", "m") == 0
        assert recording_sink.sent == []

    def test_deliver_role_notice_through_store(
        self, store, backoffice_id, admin_id, agent_id
    ):
        dispatcher = NotificationDispatcher(store, store)
        notice = Notice(
            notification_type=N.PLATFORM_RESUBMITTED,
            title="BetMGM resubmitted",
            message="Jamie Rivera resubmitted BetMGM",
            link="/backoffice/client-management?client=1",
            recipient_roles=frozenset({UserRole.BACKOFFICE, UserRole.ADMIN}),
        )

        assert dispatcher.deliver(notice) is True

        assert store.unread_count(backoffice_id) == 1
        assert store.unread_count(admin_id) == 1
        assert store.unread_count(agent_id) == 0

    def test_deliver_role_notice_with_no_recipients(self, recording_sink, static_directory):
        dispatcher = NotificationDispatcher(recording_sink, static_directory())
        notice = Notice(
            notification_type=N.PLATFORM_RESUBMITTED,
            title="t",
            message="m",
            link=None,
            recipient_roles=frozenset({UserRole.ADMIN}),
        )
        assert dispatcher.deliver(notice) is False
