from typing import List, Optional

from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import Settings, get_settings
from ..core.exceptions import NotFoundError
from ..database import async_session
from ..engines import BacklogCloneEngine, BacklogMigrationEngine, CarryForwardEngine
from ..schemas import (
    BacklogStoryRead,
    BacklogSubtaskRead,
    BacklogTaskRead,
    BatchCloneResult,
    StoryRead,
)
from ..utils.logging import get_logger
from .completion import CompletionFilter, local_today
from .hierarchy import HierarchyReader
from .side_effects import (
    ActivityRecorder,
    DatabaseActivityRecorder,
    DatabaseNotificationSink,
    EffectDispatcher,
    NotificationSink,
)

logger = get_logger(__name__)


class BacklogService:
    """Service for moving work between sprints and the backlog"""

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        settings: Optional[Settings] = None,
        activity_recorder: Optional[ActivityRecorder] = None,
        notification_sink: Optional[NotificationSink] = None,
        completion: Optional[CompletionFilter] = None,
        dispatcher: Optional[EffectDispatcher] = None
    ):
        self.session_factory = session_factory or async_session
        self.settings = settings or get_settings()
        self.completion = completion or CompletionFilter(
            today=lambda: local_today(self.settings.timezone)
        )
        self.dispatcher = dispatcher or EffectDispatcher()

        if activity_recorder is None and self.settings.enable_activity_log:
            activity_recorder = DatabaseActivityRecorder(self.session_factory)
        if notification_sink is None and self.settings.enable_notifications:
            notification_sink = DatabaseNotificationSink(self.session_factory)

        engine_kwargs = dict(
            session_factory=self.session_factory,
            completion=self.completion,
            dispatcher=self.dispatcher,
            activity_recorder=activity_recorder if self.settings.enable_activity_log else None,
            notification_sink=notification_sink if self.settings.enable_notifications else None,
            max_id_attempts=self.settings.id_allocation_attempts,
        )
        self.migration_engine = BacklogMigrationEngine(**engine_kwargs)
        self.clone_engine = BacklogCloneEngine(
            max_batch_size=self.settings.max_batch_clone_size, **engine_kwargs
        )
        self.carry_forward_engine = CarryForwardEngine(**engine_kwargs)
        logger.debug(
            "Backlog service ready (activity log: %s, notifications: %s)",
            self.settings.enable_activity_log, self.settings.enable_notifications
        )

    async def migrate_sprint_to_backlog(self, sprint_id: str) -> List[BacklogStoryRead]:
        """Archive the incomplete stories of an ended sprint.

        Call once per sprint-end; stories already archived for this sprint
        are skipped, so a repeated call writes nothing new.
        """
        return await self.migration_engine.migrate_sprint(sprint_id)

    async def clone_backlog_story_to_sprint(
        self,
        backlog_story_id: str,
        target_sprint_id: str,
        acting_user_id: Optional[str] = None
    ) -> StoryRead:
        """Create a new story subtree in ``target_sprint_id`` from a backlog story"""
        return await self.clone_engine.clone_story(backlog_story_id, target_sprint_id, acting_user_id)

    async def clone_backlog_stories_to_sprint(
        self,
        backlog_story_ids: List[str],
        target_sprint_id: str,
        acting_user_id: Optional[str] = None
    ) -> BatchCloneResult:
        """Clone several backlog stories; per-id failures land in ``result.failed``"""
        return await self.clone_engine.clone_stories(backlog_story_ids, target_sprint_id, acting_user_id)

    async def carry_forward_story(
        self,
        source_story_id: str,
        target_sprint_id: str,
        acting_user_id: Optional[str]
    ) -> StoryRead:
        """Copy a previous sprint's story with only its remaining work"""
        return await self.carry_forward_engine.carry_forward(
            source_story_id, target_sprint_id, acting_user_id
        )

    async def list_backlog_stories(self, project_id: str) -> List[BacklogStoryRead]:
        """Get backlog stories for a project (without their subtrees)"""

        async with self.session_factory() as session:
            stories = await HierarchyReader(session).list_backlog_stories(project_id)
            return [BacklogStoryRead.model_validate(story) for story in stories]

    async def get_backlog_story(self, backlog_story_id: str) -> BacklogStoryRead:
        """Get a backlog story with its tasks and subtasks"""

        async with self.session_factory() as session:
            tree = await HierarchyReader(session).load_backlog_story_with_descendants(backlog_story_id)
            if tree is None:
                logger.warning("Backlog story %s not found", backlog_story_id)
                raise NotFoundError("BacklogStory", backlog_story_id)
            return BacklogStoryRead.from_tree(tree)

    async def list_backlog_tasks(self, backlog_story_id: str) -> List[BacklogTaskRead]:
        async with self.session_factory() as session:
            tasks = await HierarchyReader(session).list_backlog_tasks(backlog_story_id)
            return [BacklogTaskRead.model_validate(task) for task in tasks]

    async def list_backlog_subtasks(self, backlog_task_id: str) -> List[BacklogSubtaskRead]:
        async with self.session_factory() as session:
            subtasks = await HierarchyReader(session).list_backlog_subtasks(backlog_task_id)
            return [BacklogSubtaskRead.model_validate(subtask) for subtask in subtasks]

    async def wait_for_side_effects(self) -> None:
        """Block until queued activity logs and notifications have run"""
        await self.dispatcher.drain()
