from functools import partial
from typing import List, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..core.exceptions import BacklogServiceError, NotFoundError
from ..database import unit_of_work
from ..models import BacklogStory, BacklogSubtask, BacklogTask, Sprint
from ..models.base import utcnow
from ..models.enums import EntityKind, StoryStatus
from ..schemas import BacklogStoryRead
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


class BacklogMigrationEngine(BaseEngine):
    """Archives a finished sprint's incomplete work into the backlog tables.

    Migration is a copy: the live stories, tasks and subtasks stay where they
    are as the sprint's historical record. Each story's subtree is written in
    its own transaction, so one bad story never blocks its siblings.
    """

    async def migrate_sprint(self, sprint_id: str) -> List[BacklogStoryRead]:
        logger.info("Migrating incomplete work of sprint %s to backlog", sprint_id)

        async with self.session_factory() as session:
            reader = HierarchyReader(session)
            sprint = await reader.get_sprint(sprint_id)
            if sprint is None:
                raise NotFoundError("Sprint", sprint_id)

            stories = await reader.list_stories_by_sprint(sprint_id)

        created: List[BacklogStoryRead] = []
        failed: List[str] = []
        eligible_ids: List[str] = []

        for story in stories:
            try:
                if self.completion.story_is_eligible(story):
                    eligible_ids.append(story.id)
            except BacklogServiceError as e:
                failed.append(story.id)
                logger.error("Cannot judge story %s from sprint %s: %s", story.id, sprint_id, str(e))

        logger.info(
            "Sprint %s: %d of %d stories are incomplete", sprint_id, len(eligible_ids), len(stories)
        )

        for story_id in eligible_ids:
            try:
                archived = await self._archive_story(story_id, sprint_id)
            except (BacklogServiceError, SQLAlchemyError, ValidationError) as e:
                failed.append(story_id)
                logger.error("Failed to archive story %s from sprint %s: %s", story_id, sprint_id, str(e))
                continue

            if archived is not None:
                created.append(archived)

        await self._mark_sprint_migrated(sprint_id)

        if failed:
            logger.warning(
                "Sprint %s migration finished with %d failed stories: %s",
                sprint_id, len(failed), ", ".join(failed)
            )
        logger.info("Sprint %s migration created %d backlog stories", sprint_id, len(created))
        return created

    async def _archive_story(self, story_id: str, sprint_id: str) -> Optional[BacklogStoryRead]:
        effects = self._new_effects()

        async with unit_of_work(self.session_factory) as session:
            reader = HierarchyReader(session)

            existing = await reader.find_archived_story(story_id, sprint_id)
            if existing is not None:
                logger.info(
                    "Story %s already archived as %s for sprint %s, skipping",
                    story_id, existing.id, sprint_id
                )
                return None

            tree = await reader.load_story_with_descendants(story_id)
            if tree is None:
                raise NotFoundError("Story", story_id)

            story = tree.entity
            if not self.completion.story_is_eligible(story):
                return None

            copied = await self._copier(session).copy(tree, [
                TreeLevel(EntityKind.BACKLOG_STORY, partial(self._snapshot_story, sprint_id)),
                TreeLevel(
                    EntityKind.BACKLOG_TASK,
                    self._snapshot_task,
                    keep=self.completion.task_is_eligible,
                ),
                TreeLevel(
                    EntityKind.BACKLOG_SUBTASK,
                    self._snapshot_subtask,
                    keep=self.completion.subtask_is_eligible,
                ),
            ])

            result = BacklogStoryRead.from_tree(copied)

            effects.record(
                None,
                "moved_to_backlog",
                "backlog_story",
                copied.id,
                f"Story '{story.title}' moved to backlog when sprint {sprint_id} ended",
                {
                    "originalStoryId": story.id,
                    "sprintId": sprint_id,
                    "tasksArchived": len(result.tasks),
                    "subtasksArchived": sum(len(t.subtasks) for t in result.tasks),
                },
            )
            effects.notify(
                story.assignee_id,
                "Story moved to backlog",
                f"'{story.title}' was not finished in its sprint and has been moved to the backlog.",
                "backlog_story",
                copied.id,
            )

        self.dispatcher.dispatch(effects)
        logger.debug("Archived story %s as backlog story %s", story_id, result.id)
        return result

    async def _mark_sprint_migrated(self, sprint_id: str) -> None:
        async with unit_of_work(self.session_factory) as session:
            sprint = await session.get(Sprint, sprint_id)
            if sprint is not None:
                sprint.backlog_migrated_at = utcnow()

    # Row builders

    @staticmethod
    def _snapshot_story(sprint_id: str, story, parent_id: Optional[str], new_id: str) -> BacklogStory:
        return BacklogStory(
            id=new_id,
            project_id=story.project_id,
            original_story_id=story.id,
            original_sprint_id=sprint_id,
            created_from_sprint_id=sprint_id,
            status=StoryStatus.BACKLOG.value,
            actual_hours=story.actual_hours,
            **copy_attrs(story, STORY_FIELDS),
        )

    def _snapshot_task(self, task, parent_id: str, new_id: str) -> BacklogTask:
        return BacklogTask(
            id=new_id,
            backlog_story_id=parent_id,
            original_task_id=task.id,
            is_overdue=self.completion.is_overdue(task.due_date),
            **copy_attrs(task, TASK_FIELDS),
        )

    @staticmethod
    def _snapshot_subtask(subtask, parent_id: str, new_id: str) -> BacklogSubtask:
        return BacklogSubtask(
            id=new_id,
            backlog_task_id=parent_id,
            original_subtask_id=subtask.id,
            is_completed=False,
            **copy_attrs(subtask, SUBTASK_FIELDS),
        )
