from enum import Enum


class EntityKind(str, Enum):
    PROJECT = "project"
    SPRINT = "sprint"
    STORY = "story"
    TASK = "task"
    SUBTASK = "subtask"
    BACKLOG_STORY = "backlog_story"
    BACKLOG_TASK = "backlog_task"
    BACKLOG_SUBTASK = "backlog_subtask"
    ACTIVITY_LOG = "activity_log"
    NOTIFICATION = "notification"


class SprintStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class StoryStatus(str, Enum):
    BACKLOG = "backlog"
    TO_DO = "to_do"
    IN_PROGRESS = "in_progress"
    QA_REVIEW = "qa_review"
    DONE = "done"
    CANCELLED = "cancelled"


class TaskStatus(str, Enum):
    TO_DO = "to_do"
    IN_PROGRESS = "in_progress"
    QA_REVIEW = "qa_review"
    DONE = "done"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"
