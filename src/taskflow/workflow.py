"""Task status state machine."""

from __future__ import annotations

from datetime import datetime

from .errors import BadRequestError
from .models import Task, TaskStatus, utcnow

TRANSITIONS: dict[TaskStatus, frozenset[TaskStatus]] = {
    TaskStatus.TODO: frozenset({TaskStatus.IN_PROGRESS}),
    TaskStatus.IN_PROGRESS: frozenset({TaskStatus.TODO, TaskStatus.DONE}),
    TaskStatus.DONE: frozenset({TaskStatus.TODO, TaskStatus.IN_PROGRESS}),
}


def can_transition(current: TaskStatus, target: TaskStatus) -> bool:
    return target in TRANSITIONS.get(current, frozenset())


def ensure_transition(current: TaskStatus, target: TaskStatus) -> None:
    """Raise ``BadRequestError`` unless ``current -> target`` is a listed edge.

    Self-transitions are not edges and are rejected.
    """
    if not can_transition(current, target):
        raise BadRequestError(
            f"Invalid status transition from {current.value} to {target.value}",
            details={"from": current.value, "to": target.value},
        )


def apply_transition(task: Task, target: TaskStatus, *, now: datetime | None = None) -> None:
    """Validate and apply ``target`` to ``task``, maintaining ``completed_at``."""
    ensure_transition(task.status, target)
    task.status = target
    task.completed_at = (now or utcnow()) if target == TaskStatus.DONE else None


__all__ = ["TRANSITIONS", "apply_transition", "can_transition", "ensure_transition"]
