from __future__ import annotations

from typing import Callable, Dict, Optional, Set, Type, Union
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import BacklogServiceError
from ..models import (
    ActivityLog,
    BacklogStory,
    BacklogSubtask,
    BacklogTask,
    BaseModel,
    Notification,
    Project,
    Sprint,
    Story,
    Subtask,
    Task,
)
from ..models.enums import EntityKind
from ..utils.logging import get_logger

# Four-letter prefix per kind, followed by a dashless UUID4
ID_PREFIXES: Dict[EntityKind, str] = {
    EntityKind.PROJECT: "PROJ",
    EntityKind.SPRINT: "SPNT",
    EntityKind.STORY: "STRY",
    EntityKind.TASK: "TASK",
    EntityKind.SUBTASK: "SUBT",
    EntityKind.BACKLOG_STORY: "BSTY",
    EntityKind.BACKLOG_TASK: "BTSK",
    EntityKind.BACKLOG_SUBTASK: "BSUB",
    EntityKind.ACTIVITY_LOG: "ACTL",
    EntityKind.NOTIFICATION: "NOTF",
}

MODELS_BY_KIND: Dict[EntityKind, Type[BaseModel]] = {
    EntityKind.PROJECT: Project,
    EntityKind.SPRINT: Sprint,
    EntityKind.STORY: Story,
    EntityKind.TASK: Task,
    EntityKind.SUBTASK: Subtask,
    EntityKind.BACKLOG_STORY: BacklogStory,
    EntityKind.BACKLOG_TASK: BacklogTask,
    EntityKind.BACKLOG_SUBTASK: BacklogSubtask,
    EntityKind.ACTIVITY_LOG: ActivityLog,
    EntityKind.NOTIFICATION: Notification,
}


def generate_id(kind: Union[EntityKind, str]) -> str:
    """Mint an id without checking the store (used for seed data)."""
    return ID_PREFIXES[EntityKind(kind)] + uuid.uuid4().hex


class IdentityAllocationError(BacklogServiceError):
    pass


class IdentityAllocator:
    """
    Issues fresh primary keys for rows created during migration and cloning.

    Every candidate is checked against the ids already handed out by this
    allocator and against the rows of that kind visible to the session, so a
    clone can never overwrite an existing row.
    """

    def __init__(
        self,
        db: AsyncSession,
        max_attempts: int = 5,
        token_factory: Optional[Callable[[], str]] = None
    ) -> None:
        self.db = db
        self.max_attempts = max_attempts
        self._token_factory = token_factory or (lambda: uuid.uuid4().hex)
        self._issued: Set[str] = set()
        self._logger = get_logger(__name__)

    @property
    def issued_count(self) -> int:
        return len(self._issued)

    async def next_id(self, kind: Union[EntityKind, str]) -> str:
        kind = EntityKind(kind)
        prefix = ID_PREFIXES[kind]
        model = MODELS_BY_KIND[kind]

        for attempt in range(1, self.max_attempts + 1):
            candidate = prefix + self._token_factory()

            if candidate in self._issued:
                self._logger.warning("Id %s already issued in this operation, retrying", candidate)
                continue

            if await self.db.get(model, candidate) is not None:
                self._logger.warning(
                    "Id %s collides with an existing %s row (attempt %d)", candidate, kind.value, attempt
                )
                continue

            self._issued.add(candidate)
            return candidate

        raise IdentityAllocationError(
            f"Could not allocate a unique {kind.value} id after {self.max_attempts} attempts"
        )
