from __future__ import annotations

from typing import Dict, List, Optional
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import async_sessionmaker

from ..core.exceptions import InvalidStatusTransitionError, NotFoundError
from ..database import async_session, unit_of_work
from ..models import Sprint
from ..models.enums import SprintStatus
from ..schemas import BacklogStoryRead
from ..utils.logging import get_logger
from .backlog_service import BacklogService

# Type aliases
SprintId = str


class SprintService:
    """
    Sprint lifecycle: status transitions and the sprint-end hand-off to the
    backlog.
    """

    VALID_TRANSITIONS: Dict[SprintStatus, List[SprintStatus]] = {
        SprintStatus.PLANNING: [SprintStatus.ACTIVE, SprintStatus.CANCELLED],
        SprintStatus.ACTIVE: [SprintStatus.COMPLETED, SprintStatus.CANCELLED],
        SprintStatus.COMPLETED: [],
        SprintStatus.CANCELLED: [SprintStatus.PLANNING],
    }

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker] = None,
        backlog_service: Optional[BacklogService] = None
    ) -> None:
        self.session_factory = session_factory or async_session
        self.backlog_service = backlog_service or BacklogService(self.session_factory)
        self._logger = get_logger(__name__)

    async def get_sprint(self, sprint_id: SprintId) -> Sprint:
        """Get sprint by ID."""

        async with self.session_factory() as session:
            sprint = await session.get(Sprint, sprint_id)

        if sprint is None:
            raise NotFoundError("Sprint", sprint_id)

        return sprint

    async def update_sprint_status(self, sprint_id: SprintId, status: SprintStatus) -> Sprint:
        """Update sprint status with validation."""

        status = SprintStatus(status)

        async with unit_of_work(self.session_factory) as session:
            sprint = await session.get(Sprint, sprint_id)
            if sprint is None:
                raise NotFoundError("Sprint", sprint_id)

            current_status = SprintStatus(sprint.status)
            if not self._is_valid_status_transition(current_status, status):
                raise InvalidStatusTransitionError(current_status.value, status.value, sprint_id)

            sprint.status = status.value
            sprint.updated_at = datetime.now(timezone.utc)

        self._logger.info("Updated sprint %s status to %s", sprint_id, status.value)
        return sprint

    async def end_sprint(self, sprint_id: SprintId) -> List[BacklogStoryRead]:
        """Complete an active sprint and archive its unfinished stories."""

        await self.update_sprint_status(sprint_id, SprintStatus.COMPLETED)
        archived = await self.backlog_service.migrate_sprint_to_backlog(sprint_id)

        self._logger.info("Sprint %s ended, %d stories moved to backlog", sprint_id, len(archived))
        return archived

    def _is_valid_status_transition(self, current: SprintStatus, new: SprintStatus) -> bool:
        """Check valid status transitions."""

        return new in self.VALID_TRANSITIONS.get(current, [])
