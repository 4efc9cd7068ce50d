"""RQ integration: queue wiring and the best-effort notification emitter."""

from __future__ import annotations

import logging
from threading import Lock

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue
from rq.job import Job, Retry

from ..notifications.models import NotificationKind
from .config import Settings, get_settings
from .context import current_request_id

logger = logging.getLogger("taskflow.core.jobs")

_job_connection: Redis | None = None
_job_queue: Queue | None = None
_job_lock = Lock()


class JobQueueUnavailableError(RuntimeError):
    """Raised when the Redis-backed job queue cannot be reached."""


def set_job_connection(connection: Redis | None) -> None:
    """Inject a Redis connection for job queue operations (primarily for tests)."""

    global _job_connection, _job_queue
    with _job_lock:
        _job_connection = connection
        _job_queue = None


def close_job_connection() -> None:
    global _job_connection, _job_queue
    with _job_lock:
        connection = _job_connection
        if connection is not None:
            try:
                connection.close()
            except RedisError:
                logger.debug("Failed to close Redis connection cleanly.", exc_info=True)
        _job_connection = None
        _job_queue = None


def _resolve_job_connection() -> Redis:
    global _job_connection
    with _job_lock:
        if _job_connection is not None:
            return _job_connection
        settings = get_settings()
        try:
            connection = Redis.from_url(settings.redis_url)
            connection.ping()
        except RedisError as exc:
            logger.error("Redis job queue unavailable.", exc_info=True)
            raise JobQueueUnavailableError("Job queue is unavailable.") from exc
        _job_connection = connection
        return connection


def get_job_connection() -> Redis:
    """Return the Redis connection used for job processing."""

    return _resolve_job_connection()


def get_job_queue() -> Queue:
    """Return the notification queue configured for the application."""

    global _job_queue
    connection = _resolve_job_connection()
    with _job_lock:
        if _job_queue is None:
            settings = get_settings()
            _job_queue = Queue(
                settings.job_queue_name,
                connection=connection,
                default_timeout=settings.job_default_timeout or None,
            )
        return _job_queue


def build_retry(settings: Settings) -> Retry | None:
    if settings.job_max_retries <= 0:
        return None
    return Retry(max=settings.job_max_retries, interval=settings.job_retry_backoff_seconds or [0])


class Notifier:
    """Enqueue notification deliveries without ever failing the caller.

    A ``None`` queue turns every call into a logged no-op.
    """

    def __init__(self, queue: Queue | None, *, settings: Settings | None = None) -> None:
        self._queue = queue
        self._settings = settings or get_settings()

    @property
    def enabled(self) -> bool:
        return self._queue is not None

    def notify(
        self,
        kind: NotificationKind,
        user_id: int,
        message: str,
        *,
        task_id: int | None = None,
        project_id: int | None = None,
    ) -> Job | None:
        """Enqueue one delivery; returns the job, or ``None`` when nothing was queued."""

        queue = self._queue
        if queue is None:
            logger.debug("Notification queue disabled; dropping %s for user %s", kind.value, user_id)
            return None

        from ..jobs.notifications import deliver_notification_job

        settings = self._settings
        result_ttl = settings.job_result_ttl_seconds or None
        try:
            job = queue.enqueue(
                deliver_notification_job,
                kind.value,
                user_id,
                message,
                task_id=task_id,
                project_id=project_id,
                request_id=current_request_id(),
                retry=build_retry(settings),
                result_ttl=result_ttl,
                failure_ttl=result_ttl,
                job_timeout=settings.job_default_timeout or None,
                description=f"Deliver {kind.value} to user {user_id}",
            )
        except Exception:
            logger.warning(
                "Failed to enqueue %s notification for user %s",
                kind.value,
                user_id,
                exc_info=True,
                extra={"user_id": user_id, "task_id": task_id, "project_id": project_id},
            )
            return None
        logger.info(
            "Enqueued %s notification %s for user %s",
            kind.value,
            job.id,
            user_id,
            extra={"user_id": user_id, "task_id": task_id},
        )
        return job


__all__ = [
    "JobQueueUnavailableError",
    "Notifier",
    "build_retry",
    "close_job_connection",
    "get_job_connection",
    "get_job_queue",
    "set_job_connection",
]
