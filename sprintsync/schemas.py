from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .services.tree_copy import CopiedNode


def _row_of(node):
    return node.row if isinstance(node, CopiedNode) else node.entity


class ReadModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# Live side

class SubtaskRead(ReadModel):
    task_id: str
    title: str
    description: Optional[str] = None
    is_completed: bool = False
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    order_index: Optional[int] = 0
    bug_type: Optional[str] = None
    severity: Optional[str] = None
    category: Optional[str] = None
    labels: List[str] = Field(default_factory=list)


class TaskRead(ReadModel):
    story_id: str
    title: str
    description: Optional[str] = None
    status: str
    priority: Optional[str] = None
    assignee_id: Optional[str] = None
    reporter_id: Optional[str] = None
    due_date: Optional[date] = None
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    order_index: Optional[int] = 0
    task_number: Optional[int] = None
    labels: List[str] = Field(default_factory=list)
    is_pulled_from_backlog: bool = False
    subtasks: List[SubtaskRead] = Field(default_factory=list)


class StoryRead(ReadModel):
    project_id: str
    sprint_id: Optional[str] = None
    epic_id: Optional[str] = None
    release_id: Optional[str] = None
    parent_story_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    acceptance_criteria: List[str] = Field(default_factory=list)
    status: str
    priority: Optional[str] = None
    story_points: Optional[int] = None
    assignee_id: Optional[str] = None
    reporter_id: Optional[str] = None
    order_index: Optional[int] = 0
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    labels: List[str] = Field(default_factory=list)
    tasks: List[TaskRead] = Field(default_factory=list)

    @classmethod
    def from_tree(cls, node) -> "StoryRead":
        """Build from a ``CopiedNode`` or ``HierarchyNode`` of story → task → subtask."""
        tasks = []
        for task_node in node.children:
            subtasks = [SubtaskRead.model_validate(_row_of(s)) for s in task_node.children]
            tasks.append(TaskRead.model_validate(_row_of(task_node)).model_copy(update={"subtasks": subtasks}))
        return cls.model_validate(_row_of(node)).model_copy(update={"tasks": tasks})


# Backlog side

class BacklogSubtaskRead(ReadModel):
    backlog_task_id: str
    original_subtask_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    is_completed: bool = False
    assignee_id: Optional[str] = None
    due_date: Optional[date] = None
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    order_index: Optional[int] = 0
    bug_type: Optional[str] = None
    severity: Optional[str] = None
    category: Optional[str] = None
    labels: List[str] = Field(default_factory=list)


class BacklogTaskRead(ReadModel):
    backlog_story_id: str
    original_task_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    status: str
    priority: Optional[str] = None
    assignee_id: Optional[str] = None
    reporter_id: Optional[str] = None
    due_date: Optional[date] = None
    is_overdue: bool = False
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    order_index: Optional[int] = 0
    task_number: Optional[int] = None
    labels: List[str] = Field(default_factory=list)
    subtasks: List[BacklogSubtaskRead] = Field(default_factory=list)


class BacklogStoryRead(ReadModel):
    project_id: str
    original_story_id: Optional[str] = None
    original_sprint_id: Optional[str] = None
    created_from_sprint_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    acceptance_criteria: List[str] = Field(default_factory=list)
    status: str
    priority: Optional[str] = None
    story_points: Optional[int] = None
    assignee_id: Optional[str] = None
    reporter_id: Optional[str] = None
    epic_id: Optional[str] = None
    release_id: Optional[str] = None
    order_index: Optional[int] = 0
    estimated_hours: Optional[float] = None
    actual_hours: Optional[float] = None
    labels: List[str] = Field(default_factory=list)
    tasks: List[BacklogTaskRead] = Field(default_factory=list)

    @classmethod
    def from_tree(cls, node) -> "BacklogStoryRead":
        tasks = []
        for task_node in node.children:
            subtasks = [BacklogSubtaskRead.model_validate(_row_of(s)) for s in task_node.children]
            tasks.append(
                BacklogTaskRead.model_validate(_row_of(task_node)).model_copy(update={"subtasks": subtasks})
            )
        return cls.model_validate(_row_of(node)).model_copy(update={"tasks": tasks})


# Batch results

class CloneFailure(BaseModel):
    backlog_story_id: str
    reason: str
    error_type: str


class BatchCloneResult(BaseModel):
    target_sprint_id: str
    succeeded: List[StoryRead] = Field(default_factory=list)
    failed: List[CloneFailure] = Field(default_factory=list)

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def is_partial(self) -> bool:
        return bool(self.succeeded) and bool(self.failed)
