from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import (
    BacklogStory,
    BacklogSubtask,
    BacklogTask,
    Sprint,
    Story,
    Subtask,
    Task,
)
from ..models.enums import EntityKind


@dataclass
class HierarchyNode:
    """One entity plus the children loaded beneath it."""

    kind: EntityKind
    entity: Any
    children: List["HierarchyNode"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.entity.id

    def walk(self) -> Iterator["HierarchyNode"]:
        """Depth-first, parents before children."""
        yield self
        for child in self.children:
            yield from child.walk()

    def count(self, kind: EntityKind) -> int:
        return sum(1 for node in self.walk() if node.kind is kind)


class HierarchyReader:
    """Read-only access to the live story graph and its backlog mirror."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_sprint(self, sprint_id: str) -> Optional[Sprint]:
        return await self.db.get(Sprint, sprint_id)

    async def list_stories_by_sprint(self, sprint_id: str) -> List[Story]:
        stmt = (
            select(Story)
            .where(Story.sprint_id == sprint_id)
            .order_by(Story.order_index, Story.created_at, Story.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def load_story_with_descendants(self, story_id: str) -> Optional[HierarchyNode]:
        story = await self.db.get(Story, story_id)
        if story is None:
            return None

        tasks = await self._children(Task, Task.story_id, story.id)
        subtasks = await self._children(Subtask, Subtask.task_id, [t.id for t in tasks])

        return HierarchyNode(
            EntityKind.STORY,
            story,
            [
                HierarchyNode(
                    EntityKind.TASK,
                    task,
                    [HierarchyNode(EntityKind.SUBTASK, s) for s in subtasks if s.task_id == task.id],
                )
                for task in tasks
            ],
        )

    async def load_backlog_story_with_descendants(self, backlog_story_id: str) -> Optional[HierarchyNode]:
        backlog_story = await self.db.get(BacklogStory, backlog_story_id)
        if backlog_story is None:
            return None

        tasks = await self._children(BacklogTask, BacklogTask.backlog_story_id, backlog_story.id)
        subtasks = await self._children(
            BacklogSubtask, BacklogSubtask.backlog_task_id, [t.id for t in tasks]
        )

        return HierarchyNode(
            EntityKind.BACKLOG_STORY,
            backlog_story,
            [
                HierarchyNode(
                    EntityKind.BACKLOG_TASK,
                    task,
                    [
                        HierarchyNode(EntityKind.BACKLOG_SUBTASK, s)
                        for s in subtasks
                        if s.backlog_task_id == task.id
                    ],
                )
                for task in tasks
            ],
        )

    async def list_backlog_stories(self, project_id: str) -> List[BacklogStory]:
        stmt = (
            select(BacklogStory)
            .where(BacklogStory.project_id == project_id)
            .order_by(BacklogStory.order_index, BacklogStory.created_at, BacklogStory.id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_backlog_tasks(self, backlog_story_id: str) -> List[BacklogTask]:
        return await self._children(BacklogTask, BacklogTask.backlog_story_id, backlog_story_id)

    async def list_backlog_subtasks(self, backlog_task_id: str) -> List[BacklogSubtask]:
        return await self._children(BacklogSubtask, BacklogSubtask.backlog_task_id, backlog_task_id)

    async def find_archived_story(self, story_id: str, sprint_id: str) -> Optional[BacklogStory]:
        """Backlog snapshot already taken of ``story_id`` when ``sprint_id`` ended."""
        stmt = (
            select(BacklogStory)
            .where(
                BacklogStory.original_story_id == story_id,
                BacklogStory.original_sprint_id == sprint_id,
            )
            .limit(1)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def _children(self, model, parent_column, parent_ids) -> List[Any]:
        if isinstance(parent_ids, str):
            condition = parent_column == parent_ids
        else:
            if not parent_ids:
                return []
            condition = parent_column.in_(parent_ids)

        stmt = select(model).where(condition).order_by(model.order_index, model.created_at, model.id)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())
