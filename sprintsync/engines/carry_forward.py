from functools import partial
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import BacklogServiceError, InvalidArgumentError
from ..database import unit_of_work
from ..models import Story, Subtask, Task
from ..models.enums import EntityKind, StoryStatus
from ..schemas import StoryRead
from ..services.hierarchy import HierarchyReader
from ..services.tree_copy import (
    STORY_FIELDS,
    SUBTASK_FIELDS,
    TASK_FIELDS,
    TreeLevel,
    copy_attrs,
)
from ..utils.logging import get_logger
from .base_engine import BaseEngine

logger = get_logger(__name__)


class CarryForwardEngine(BaseEngine):
    """Duplicates one story from an earlier sprint into a new sprint.

    Only remaining work follows: tasks and subtasks that are unfinished or past
    their due date. The source story is never touched, and the backlog tables
    are not involved.
    """

    async def carry_forward(
        self,
        source_story_id: str,
        target_sprint_id: str,
        acting_user_id: Optional[str]
    ) -> StoryRead:
        logger.info(
            "Carrying story %s forward into sprint %s for user %s",
            source_story_id, target_sprint_id, acting_user_id
        )

        if not source_story_id:
            raise InvalidArgumentError("Source story id is required")

        try:
            return await self._carry_forward(source_story_id, target_sprint_id, acting_user_id)
        except BacklogServiceError:
            raise
        except (SQLAlchemyError, ValidationError) as e:
            logger.error("Carry-forward of story %s failed: %s", source_story_id, str(e))
            raise BacklogServiceError(
                f"Carrying story {source_story_id} forward failed: {str(e)}", source_story_id
            ) from e

    async def _carry_forward(
        self,
        source_story_id: str,
        target_sprint_id: str,
        acting_user_id: Optional[str]
    ) -> StoryRead:
        effects = self._new_effects()

        async with unit_of_work(self.session_factory) as session:
            reader = HierarchyReader(session)

            tree = await reader.load_story_with_descendants(source_story_id)
            if tree is None:
                raise InvalidArgumentError(f"Source story {source_story_id} not found", source_story_id)

            source = tree.entity
            await self._validate_target_sprint(reader, target_sprint_id, source.project_id)

            copied = await self._copier(session).copy(tree, [
                TreeLevel(EntityKind.STORY, partial(self._build_story, target_sprint_id)),
                TreeLevel(EntityKind.TASK, self._build_task, keep=self._task_follows),
                TreeLevel(EntityKind.SUBTASK, self._build_subtask, keep=self._subtask_follows),
            ])

            result = StoryRead.from_tree(copied)
            source_sprint_id = source.sprint_id

            for task_node in copied.children:
                task = task_node.row
                effects.record(
                    acting_user_id,
                    "pulled_to_sprint",
                    "task",
                    task.id,
                    f"Task '{task.title}' pulled from sprint '{source_sprint_id or 'N/A'}' "
                    f"to sprint '{target_sprint_id}'. Status: {task.status}",
                    {
                        "storyId": copied.id,
                        "originalTaskId": task_node.source_id,
                        "sourceSprintId": source_sprint_id,
                        "targetSprintId": target_sprint_id,
                        "dueDate": task.due_date.isoformat() if task.due_date else None,
                        "subtasksCopied": len(task_node.children),
                    },
                )

            effects.record(
                acting_user_id,
                "pulled_to_sprint",
                "story",
                copied.id,
                f"Story '{source.title}' pulled from sprint '{source_sprint_id or 'N/A'}' to sprint "
                f"'{target_sprint_id}'. Copied {len(copied.children)} tasks (overdue, in-progress, "
                f"and incomplete).",
                {
                    "originalStoryId": source.id,
                    "sourceSprintId": source_sprint_id,
                    "targetSprintId": target_sprint_id,
                    "tasksCopied": len(copied.children),
                    "tasksDropped": len(tree.children) - len(copied.children),
                },
            )

        self.dispatcher.dispatch(effects)
        logger.info(
            "Story %s carried forward as %s with %d of %d tasks",
            source_story_id, result.id, len(result.tasks), len(tree.children)
        )
        return result

    def _task_follows(self, task) -> bool:
        return self.completion.should_carry_forward(EntityKind.TASK, task.status, task.due_date)

    def _subtask_follows(self, subtask) -> bool:
        return self.completion.should_carry_forward(
            EntityKind.SUBTASK, subtask.is_completed, subtask.due_date
        )

    # Row builders

    @staticmethod
    def _build_story(target_sprint_id: str, source, parent_id: Optional[str], new_id: str) -> Story:
        return Story(
            id=new_id,
            project_id=source.project_id,
            sprint_id=target_sprint_id,
            # Every pulled copy points at the first story in its lineage
            parent_story_id=source.parent_story_id or source.id,
            status=StoryStatus.TO_DO.value,
            actual_hours=0.0,
            **copy_attrs(source, STORY_FIELDS),
        )

    @staticmethod
    def _build_task(source_task, parent_id: str, new_id: str) -> Task:
        return Task(
            id=new_id,
            story_id=parent_id,
            is_pulled_from_backlog=True,
            **copy_attrs(source_task, TASK_FIELDS),
        )

    @staticmethod
    def _build_subtask(source_subtask, parent_id: str, new_id: str) -> Subtask:
        return Subtask(
            id=new_id,
            task_id=parent_id,
            is_completed=source_subtask.is_completed,
            **copy_attrs(source_subtask, SUBTASK_FIELDS),
        )
