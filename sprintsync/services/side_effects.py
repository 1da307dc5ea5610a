"""
Activity logging and notifications fired after a unit of work commits.

Engines queue effects while they write; the dispatcher only schedules them
once the transaction is committed, and runs each one as its own asyncio task.
A failing collaborator is logged and never reaches the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Set
import asyncio

from sqlalchemy.ext.asyncio import async_sessionmaker

from ..database import unit_of_work
from ..models import ActivityLog, Notification
from ..models.enums import EntityKind
from ..utils.logging import get_logger
from .identity import generate_id

logger = get_logger(__name__)

EffectCall = Callable[[], Awaitable[Any]]


class ActivityRecorder(Protocol):
    async def record(
        self,
        actor_id: Optional[str],
        action: str,
        entity_type: str,
        entity_id: str,
        description: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None: ...


class NotificationSink(Protocol):
    async def notify(
        self,
        user_id: str,
        title: str,
        message: str,
        related_type: Optional[str] = None,
        related_id: Optional[str] = None,
    ) -> None: ...


class DatabaseActivityRecorder:
    """Writes one ``activity_logs`` row per call, in its own transaction."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None) -> None:
        self.session_factory = session_factory

    async def record(self, actor_id, action, entity_type, entity_id, description=None, details=None):
        async with unit_of_work(self.session_factory) as session:
            session.add(
                ActivityLog(
                    id=generate_id(EntityKind.ACTIVITY_LOG),
                    user_id=actor_id,
                    action=action,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    description=description,
                    details=details or {},
                )
            )


class DatabaseNotificationSink:
    """Stores notifications for the in-app inbox."""

    def __init__(self, session_factory: Optional[async_sessionmaker] = None) -> None:
        self.session_factory = session_factory

    async def notify(self, user_id, title, message, related_type=None, related_id=None):
        async with unit_of_work(self.session_factory) as session:
            session.add(
                Notification(
                    id=generate_id(EntityKind.NOTIFICATION),
                    user_id=user_id,
                    title=title,
                    message=message,
                    type="backlog",
                    related_entity_type=related_type,
                    related_entity_id=related_id,
                )
            )


@dataclass
class PendingEffects:
    """Effects queued during one unit of work, released after it commits."""

    recorder: Optional[ActivityRecorder] = None
    sink: Optional[NotificationSink] = None
    calls: List[tuple] = field(default_factory=list)

    def record(self, actor_id, action, entity_type, entity_id, description=None, details=None) -> None:
        if self.recorder is None:
            return
        self.calls.append((
            f"activity {action} on {entity_type} {entity_id}",
            partial(self.recorder.record, actor_id, action, entity_type, entity_id, description, details),
        ))

    def notify(self, user_id, title, message, related_type=None, related_id=None) -> None:
        if self.sink is None or not user_id:
            return
        self.calls.append((
            f"notification to {user_id} about {related_type} {related_id}",
            partial(self.sink.notify, user_id, title, message, related_type, related_id),
        ))

    def __len__(self) -> int:
        return len(self.calls)


class EffectDispatcher:
    """Fire-and-forget runner for post-commit effects."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()
        self.failures = 0

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    def dispatch(self, effects: PendingEffects) -> None:
        for label, call in effects.calls:
            task = asyncio.create_task(self._run(label, call))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)
        effects.calls.clear()

    async def drain(self) -> None:
        """Wait for every scheduled effect to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run(self, label: str, call: EffectCall) -> None:
        try:
            await call()
        except Exception as e:
            self.failures += 1
            logger.error("Side effect failed (%s): %s", label, str(e))
