"""
Completion rules shared by sprint-end migration and carry-forward.

Both code paths ask the same filter whether a story, task or subtask still has
work left, so they cannot disagree on what "incomplete" means.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Callable, Optional, Union
from zoneinfo import ZoneInfo

from ..core.exceptions import InvalidArgumentError
from ..models.enums import EntityKind, StoryStatus, TaskStatus

StatusOrFlag = Union[str, bool, None]

STORY_DONE_STATUSES = frozenset({StoryStatus.DONE, StoryStatus.CANCELLED})
TASK_DONE_STATUSES = frozenset({TaskStatus.DONE, TaskStatus.CANCELLED})


def local_today(timezone_name: str = "UTC") -> date:
    """Today's date in the given IANA timezone."""
    return datetime.now(ZoneInfo(timezone_name)).date()


class CompletionFilter:
    """Pure predicates over entity state. No I/O, no side effects."""

    def __init__(self, today: Optional[Callable[[], date]] = None) -> None:
        self._today = today or local_today

    def today(self) -> date:
        return self._today()

    def is_eligible(self, kind: Union[EntityKind, str], status_or_flag: StatusOrFlag) -> bool:
        """True when an item of ``kind`` still has work left.

        Stories and tasks are judged by status; subtasks by their
        ``is_completed`` flag.
        """
        kind = EntityKind(kind)

        if kind is EntityKind.STORY:
            return self._story_status(status_or_flag) not in STORY_DONE_STATUSES
        if kind is EntityKind.TASK:
            return self._task_status(status_or_flag) not in TASK_DONE_STATUSES
        if kind is EntityKind.SUBTASK:
            return not bool(status_or_flag)

        raise InvalidArgumentError(f"Completion is not defined for {kind.value}")

    def is_overdue(self, due_date: Optional[date]) -> bool:
        return due_date is not None and due_date < self.today()

    def should_carry_forward(
        self,
        kind: Union[EntityKind, str],
        status_or_flag: StatusOrFlag,
        due_date: Optional[date]
    ) -> bool:
        """Carry-forward keeps unfinished work and anything past its due date."""
        return self.is_eligible(kind, status_or_flag) or self.is_overdue(due_date)

    # Entity helpers

    def story_is_eligible(self, story) -> bool:
        return self.is_eligible(EntityKind.STORY, story.status)

    def task_is_eligible(self, task) -> bool:
        return self.is_eligible(EntityKind.TASK, task.status)

    def subtask_is_eligible(self, subtask) -> bool:
        return self.is_eligible(EntityKind.SUBTASK, subtask.is_completed)

    @staticmethod
    def _story_status(value: StatusOrFlag) -> StoryStatus:
        try:
            return StoryStatus(value)
        except ValueError:
            raise InvalidArgumentError(f"Unknown story status: {value!r}")

    @staticmethod
    def _task_status(value: StatusOrFlag) -> TaskStatus:
        try:
            return TaskStatus(value)
        except ValueError:
            raise InvalidArgumentError(f"Unknown task status: {value!r}")
