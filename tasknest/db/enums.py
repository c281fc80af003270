from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    DONE = "done"

    @property
    def label(self) -> str:
        return _TASK_STATUS_LABELS[self]

    @property
    def css_class(self) -> str:
        return _TASK_STATUS_CSS_CLASSES[self]


_TASK_STATUS_LABELS: dict[TaskStatus, str] = {
    TaskStatus.NOT_STARTED: "Not started",
    TaskStatus.IN_PROGRESS: "In progress",
    TaskStatus.DONE: "Done",
}

_TASK_STATUS_CSS_CLASSES: dict[TaskStatus, str] = {
    TaskStatus.NOT_STARTED: "label-danger",
    TaskStatus.IN_PROGRESS: "label-info",
    TaskStatus.DONE: "",
}
