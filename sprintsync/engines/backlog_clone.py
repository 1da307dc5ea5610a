from functools import partial
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import BacklogServiceError, InvalidArgumentError, NotFoundError
from ..database import unit_of_work
from ..models import Story, Subtask, Task
from ..models.enums import EntityKind, StoryStatus
from ..schemas import BatchCloneResult, CloneFailure, StoryRead
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


class BacklogCloneEngine(BaseEngine):
    """Re-materializes backlog stories as brand-new live stories in a sprint.

    Backlog rows are only read. Cloning the same backlog story twice yields two
    independent story subtrees with disjoint ids.
    """

    def __init__(self, *args, max_batch_size: int = 100, **kwargs):
        super().__init__(*args, **kwargs)
        self.max_batch_size = max_batch_size

    async def clone_story(
        self,
        backlog_story_id: str,
        target_sprint_id: str,
        acting_user_id: Optional[str] = None
    ) -> StoryRead:
        logger.info("Cloning backlog story %s into sprint %s", backlog_story_id, target_sprint_id)

        try:
            return await self._clone_story(backlog_story_id, target_sprint_id, acting_user_id)
        except BacklogServiceError:
            raise
        except (SQLAlchemyError, ValidationError) as e:
            logger.error("Clone of backlog story %s failed: %s", backlog_story_id, str(e))
            raise BacklogServiceError(
                f"Cloning backlog story {backlog_story_id} failed: {str(e)}", backlog_story_id
            ) from e

    async def clone_stories(
        self,
        backlog_story_ids: List[str],
        target_sprint_id: str,
        acting_user_id: Optional[str] = None
    ) -> BatchCloneResult:
        """Clone each id independently; failures are reported, not raised."""
        if not backlog_story_ids:
            raise InvalidArgumentError("At least one backlog story id is required")
        if len(backlog_story_ids) > self.max_batch_size:
            raise InvalidArgumentError(
                f"Cannot clone {len(backlog_story_ids)} stories at once (limit {self.max_batch_size})"
            )

        async with self.session_factory() as session:
            if await HierarchyReader(session).get_sprint(target_sprint_id) is None:
                raise InvalidArgumentError(f"Target sprint {target_sprint_id} not found", target_sprint_id)

        result = BatchCloneResult(target_sprint_id=target_sprint_id)

        for backlog_story_id in backlog_story_ids:
            try:
                story = await self.clone_story(backlog_story_id, target_sprint_id, acting_user_id)
            except BacklogServiceError as e:
                logger.warning("Skipping backlog story %s: %s", backlog_story_id, str(e))
                result.failed.append(
                    CloneFailure(
                        backlog_story_id=backlog_story_id,
                        reason=str(e),
                        error_type=type(e).__name__,
                    )
                )
                continue

            result.succeeded.append(story)

        logger.info(
            "Batch clone into sprint %s: %d succeeded, %d failed",
            target_sprint_id, result.succeeded_count, result.failed_count
        )
        return result

    async def _clone_story(
        self,
        backlog_story_id: str,
        target_sprint_id: str,
        acting_user_id: Optional[str]
    ) -> StoryRead:
        effects = self._new_effects()

        async with unit_of_work(self.session_factory) as session:
            reader = HierarchyReader(session)

            tree = await reader.load_backlog_story_with_descendants(backlog_story_id)
            if tree is None:
                raise NotFoundError("BacklogStory", backlog_story_id)

            backlog_story = tree.entity
            sprint = await self._validate_target_sprint(reader, target_sprint_id, backlog_story.project_id)

            copied = await self._copier(session).copy(tree, [
                TreeLevel(EntityKind.STORY, partial(self._build_story, target_sprint_id)),
                TreeLevel(EntityKind.TASK, self._build_task),
                TreeLevel(EntityKind.SUBTASK, self._build_subtask),
            ])

            result = StoryRead.from_tree(copied)

            effects.record(
                acting_user_id,
                "cloned_from_backlog",
                "story",
                copied.id,
                f"Story '{backlog_story.title}' cloned from backlog into sprint '{sprint.name}'",
                {
                    "backlogStoryId": backlog_story.id,
                    "originalStoryId": backlog_story.original_story_id,
                    "targetSprintId": target_sprint_id,
                    "tasksCloned": len(result.tasks),
                    "subtasksCloned": sum(len(t.subtasks) for t in result.tasks),
                },
            )
            effects.notify(
                backlog_story.assignee_id,
                "Story added to sprint",
                f"'{backlog_story.title}' was pulled from the backlog into sprint '{sprint.name}'.",
                "story",
                copied.id,
            )

        self.dispatcher.dispatch(effects)
        logger.info("Backlog story %s cloned as story %s", backlog_story_id, result.id)
        return result

    # Row builders

    @staticmethod
    def _build_story(target_sprint_id: str, backlog_story, parent_id: Optional[str], new_id: str) -> Story:
        return Story(
            id=new_id,
            project_id=backlog_story.project_id,
            sprint_id=target_sprint_id,
            parent_story_id=backlog_story.original_story_id or backlog_story.id,
            status=StoryStatus.TO_DO.value,
            actual_hours=0.0,
            **copy_attrs(backlog_story, STORY_FIELDS),
        )

    @staticmethod
    def _build_task(backlog_task, parent_id: str, new_id: str) -> Task:
        return Task(
            id=new_id,
            story_id=parent_id,
            is_pulled_from_backlog=True,
            **copy_attrs(backlog_task, TASK_FIELDS),
        )

    @staticmethod
    def _build_subtask(backlog_subtask, parent_id: str, new_id: str) -> Subtask:
        return Subtask(
            id=new_id,
            task_id=parent_id,
            is_completed=backlog_subtask.is_completed,
            **copy_attrs(backlog_subtask, SUBTASK_FIELDS),
        )
