"""Tests for TaskManager completion and the overdue sweep."""

from datetime import timedelta
from uuid import uuid4

import pytest

from intake_kernel.domain.statuses import IntakeStatus, TaskStatus, TaskType
from intake_kernel.domain.tasks import TaskFilter
from intake_kernel.exceptions import TaskNotFoundError, TaskStateError
from intake_kernel.models.task import Task


@pytest.fixture
def client_id(create_client, agent_id):
    return create_client(IntakeStatus.IN_EXECUTION, agent_id)


class TestComplete:
    def test_completes_open_task(self, kernel, create_task, client_id, agent_id, clock):
        task_id = create_task(client_id, agent_id)

        task = kernel.tasks.complete(task_id)

        assert task.status == TaskStatus.COMPLETED.value
        assert task.completed_at == clock.now()

    def test_already_completed_is_noop(self, kernel, create_task, client_id, agent_id, clock):
        task_id = create_task(client_id, agent_id, status=TaskStatus.COMPLETED)

        task = kernel.tasks.complete(task_id, at=clock.now())

        assert task.status == TaskStatus.COMPLETED.value
        assert task.completed_at is None

    def test_cancelled_task_cannot_complete(self, kernel, create_task, client_id, agent_id):
        task_id = create_task(client_id, agent_id, status=TaskStatus.CANCELLED)

        with pytest.raises(TaskStateError):
            kernel.tasks.complete(task_id)

    def test_unknown_task(self, kernel):
        with pytest.raises(TaskNotFoundError):
            kernel.tasks.complete(uuid4())


class TestCancelMany:
    def test_filter_by_type_leaves_others(self, kernel, create_task, client_id, agent_id):
        info = create_task(client_id, agent_id, TaskType.PROVIDE_INFO)
        upload = create_task(client_id, agent_id, TaskType.UPLOAD_SCREENSHOT)
        done = create_task(client_id, agent_id, TaskType.PROVIDE_INFO, TaskStatus.COMPLETED)

        cancelled = kernel.tasks.cancel_many(
            TaskFilter(client_id, frozenset({TaskType.PROVIDE_INFO}))
        )

        assert cancelled == 1
        assert kernel.session.get(Task, info).status == TaskStatus.CANCELLED.value
        assert kernel.session.get(Task, upload).status == TaskStatus.PENDING.value
        assert kernel.session.get(Task, done).status == TaskStatus.COMPLETED.value

    def test_other_clients_untouched(
        self, kernel, create_task, create_client, client_id, agent_id
    ):
        other_client = create_client(IntakeStatus.IN_EXECUTION, agent_id)
        other_task = create_task(other_client, agent_id)
        create_task(client_id, agent_id)

        assert kernel.tasks.cancel_many(TaskFilter(client_id)) == 1
        assert kernel.session.get(Task, other_task).status == TaskStatus.PENDING.value


class TestMarkOverdue:
    def test_flips_only_open_past_due(self, kernel, create_task, client_id, agent_id, clock):
        past = clock.now() - timedelta(hours=1)
        future = clock.now() + timedelta(hours=1)
        late = create_task(client_id, agent_id, due_at=past)
        late_in_progress = create_task(
            client_id, agent_id, status=TaskStatus.IN_PROGRESS, due_at=past
        )
        on_time = create_task(client_id, agent_id, due_at=future)
        no_due = create_task(client_id, agent_id)
        late_done = create_task(client_id, agent_id, status=TaskStatus.COMPLETED, due_at=past)

        flipped = kernel.tasks.mark_overdue()

        assert set(flipped) == {late, late_in_progress}
        statuses = {
            task_id: kernel.session.get(Task, task_id).status
            for task_id in (late, late_in_progress, on_time, no_due, late_done)
        }
        assert statuses[late] == TaskStatus.OVERDUE.value
        assert statuses[late_in_progress] == TaskStatus.OVERDUE.value
        assert statuses[on_time] == TaskStatus.PENDING.value
        assert statuses[no_due] == TaskStatus.PENDING.value
        assert statuses[late_done] == TaskStatus.COMPLETED.value

    def test_overdue_tasks_are_not_cancelled(self, kernel, create_task, client_id, agent_id, clock):
        create_task(client_id, agent_id, due_at=clock.now() - timedelta(days=1))
        kernel.tasks.mark_overdue()

        assert kernel.tasks.cancel_many(TaskFilter(client_id)) == 0


class TestQueries:
    def test_open_tasks_filters_status_and_type(
        self, kernel, create_task, client_id, agent_id
    ):
        info = create_task(client_id, agent_id, TaskType.PROVIDE_INFO)
        upload = create_task(
            client_id, agent_id, TaskType.UPLOAD_SCREENSHOT, TaskStatus.IN_PROGRESS
        )
        create_task(client_id, agent_id, TaskType.PROVIDE_INFO, TaskStatus.CANCELLED)

        assert {t.id for t in kernel.tasks.open_tasks(client_id)} == {info, upload}
        only_info = kernel.tasks.open_tasks(client_id, frozenset({TaskType.PROVIDE_INFO}))
        assert [t.id for t in only_info] == [info]

    def test_tasks_for_client_includes_closed(
        self, kernel, create_task, create_client, client_id, agent_id, clock
    ):
        first = create_task(client_id, agent_id, status=TaskStatus.COMPLETED)
        clock.advance(60)
        second = create_task(client_id, agent_id)
        create_task(create_client(IntakeStatus.IN_EXECUTION, agent_id), agent_id)

        assert [t.id for t in kernel.tasks.tasks_for_client(client_id)] == [first, second]
