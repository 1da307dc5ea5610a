"""
ORM models. Importing this package registers every table on ``Base.metadata``.
"""

from .base import Base, BaseModel
from .sprint import Project, Sprint
from .story import Story, Task, Subtask
from .backlog import BacklogStory, BacklogTask, BacklogSubtask
from .activity import ActivityLog, Notification

__all__ = [
    "Base",
    "BaseModel",
    "Project",
    "Sprint",
    "Story",
    "Task",
    "Subtask",
    "BacklogStory",
    "BacklogTask",
    "BacklogSubtask",
    "ActivityLog",
    "Notification",
]
