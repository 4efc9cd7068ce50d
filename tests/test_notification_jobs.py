from __future__ import annotations

import asyncio

from fakeredis import FakeRedis
from mongomock_motor import AsyncMongoMockClient
from rq import Queue, SimpleWorker
from rq.job import JobStatus

from taskflow.core.config import get_settings
from taskflow.core.context import bind_request_id, reset_request_id
from taskflow.core.jobs import Notifier, close_job_connection, get_job_connection, get_job_queue, set_job_connection
from taskflow.notifications import NotificationInbox, NotificationKind, init_notification_store, set_notification_client


def test_notify_enqueues_delivery_with_request_id(notifier: Notifier, job_queue: Queue) -> None:
    token = bind_request_id("req-42")
    try:
        job = notifier.notify(
            NotificationKind.TASK_ASSIGNED,
            5,
            "You have been assigned to task: Ship",
            task_id=11,
            project_id=3,
        )
    finally:
        reset_request_id(token)

    assert job is not None
    assert job.func_name == "taskflow.jobs.notifications.deliver_notification_job"
    assert job.args == ("TASK_ASSIGNED", 5, "You have been assigned to task: Ship")
    assert job.kwargs == {"task_id": 11, "project_id": 3, "request_id": "req-42"}
    assert job_queue.count == 1


def test_disabled_notifier_is_a_no_op() -> None:
    assert Notifier(None).notify(NotificationKind.TASK_ASSIGNED, 5, "ignored") is None


def test_worker_delivers_notification_to_inbox(notifier: Notifier, job_queue: Queue) -> None:
    asyncio.run(init_notification_store(client=AsyncMongoMockClient(), force=True))
    try:
        job = notifier.notify(
            NotificationKind.TASK_STATUS_CHANGED,
            8,
            'Task "Ship" status changed to DONE',
            task_id=12,
            project_id=4,
        )
        assert job is not None

        SimpleWorker([job_queue], connection=job_queue.connection).work(burst=True)

        job.refresh()
        assert job.get_status() == JobStatus.FINISHED
        assert job.return_value()["user_id"] == 8

        delivered = asyncio.run(NotificationInbox().list_for_user(8))
        assert [(item.kind, item.task_id) for item in delivered] == [(NotificationKind.TASK_STATUS_CHANGED, 12)]
    finally:
        set_notification_client(None)


def test_job_queue_uses_injected_connection() -> None:
    fake = FakeRedis(decode_responses=False)
    set_job_connection(fake)
    try:
        queue = get_job_queue()
        assert get_job_connection() is fake
        assert queue.name == get_settings().job_queue_name
        assert get_job_queue() is queue
    finally:
        close_job_connection()
