from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..core.exceptions import InvalidArgumentError
from ..database import async_session
from ..models import Sprint
from ..services.completion import CompletionFilter
from ..services.hierarchy import HierarchyReader
from ..services.identity import IdentityAllocator
from ..services.side_effects import (
    ActivityRecorder,
    EffectDispatcher,
    NotificationSink,
    PendingEffects,
)
from ..services.tree_copy import TreeCopier


class BaseEngine:
    """Shared wiring for the migration, clone and carry-forward engines.

    Each engine opens one unit of work per story subtree through
    ``session_factory`` and hands post-commit effects to ``dispatcher``.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        completion: Optional[CompletionFilter] = None,
        dispatcher: Optional[EffectDispatcher] = None,
        activity_recorder: Optional[ActivityRecorder] = None,
        notification_sink: Optional[NotificationSink] = None,
        max_id_attempts: int = 5,
    ):
        self.session_factory = session_factory or async_session
        self.completion = completion or CompletionFilter()
        self.dispatcher = dispatcher or EffectDispatcher()
        self.activity_recorder = activity_recorder
        self.notification_sink = notification_sink
        self.max_id_attempts = max_id_attempts

    def _new_effects(self) -> PendingEffects:
        return PendingEffects(recorder=self.activity_recorder, sink=self.notification_sink)

    def _copier(self, session: AsyncSession) -> TreeCopier:
        return TreeCopier(session, IdentityAllocator(session, max_attempts=self.max_id_attempts))

    async def _validate_target_sprint(
        self,
        reader: HierarchyReader,
        target_sprint_id: str,
        project_id: str
    ) -> Sprint:
        """Target sprint must exist and belong to ``project_id``."""
        if not target_sprint_id:
            raise InvalidArgumentError("Target sprint id is required")

        sprint = await reader.get_sprint(target_sprint_id)
        if sprint is None:
            raise InvalidArgumentError(f"Target sprint {target_sprint_id} not found", target_sprint_id)

        if sprint.project_id != project_id:
            raise InvalidArgumentError(
                f"Target sprint {target_sprint_id} belongs to project {sprint.project_id}, "
                f"not {project_id}",
                target_sprint_id,
            )

        return sprint
