"""
Pytest configuration and fixtures.

Every test gets its own SQLite file (async engine) with all tables created,
a fixed "today" for overdue checks, and recording fakes for the activity log
and notification collaborators.
"""

import os
from datetime import date
from typing import Any, Dict, List

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

os.environ.setdefault("ENVIRONMENT", "testing")

from sprintsync.config import TestingConfig
from sprintsync.database import create_tables, unit_of_work
from sprintsync.models import (
    BacklogStory,
    BacklogSubtask,
    BacklogTask,
    Project,
    Sprint,
    Story,
    Subtask,
    Task,
)
from sprintsync.models.enums import EntityKind
from sprintsync.services.backlog_service import BacklogService
from sprintsync.services.completion import CompletionFilter
from sprintsync.services.identity import generate_id

TODAY = date(2025, 3, 14)


# =============================================================================
# COLLABORATOR FAKES
# =============================================================================

class RecordingActivityRecorder:
    def __init__(self):
        self.calls: List[Dict[str, Any]] = []

    async def record(self, actor_id, action, entity_type, entity_id, description=None, details=None):
        self.calls.append({
            "actor_id": actor_id,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "description": description,
            "details": details,
        })


class RecordingNotificationSink:
    def __init__(self):
        self.calls: List[Dict[str, Any]] = []

    async def notify(self, user_id, title, message, related_type=None, related_id=None):
        self.calls.append({
            "user_id": user_id,
            "title": title,
            "message": message,
            "related_type": related_type,
            "related_id": related_id,
        })


class FailingActivityRecorder:
    async def record(self, *args, **kwargs):
        raise RuntimeError("activity store unavailable")


# =============================================================================
# GRAPH BUILDER
# =============================================================================

class GraphBuilder:
    """Writes fixture rows, one committed transaction per row."""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    async def _add(self, row):
        async with unit_of_work(self.session_factory) as session:
            session.add(row)
        return row

    async def project(self, name="Checkout Revamp"):
        return await self._add(Project(id=generate_id(EntityKind.PROJECT), name=name))

    async def sprint(self, project, name="Sprint 1", status="active"):
        return await self._add(Sprint(
            id=generate_id(EntityKind.SPRINT),
            project_id=project.id,
            name=name,
            status=status,
        ))

    async def story(self, sprint, title="Story", status="in_progress", **fields):
        return await self._add(Story(
            id=fields.pop("id", None) or generate_id(EntityKind.STORY),
            project_id=sprint.project_id,
            sprint_id=sprint.id,
            title=title,
            status=status,
            **fields,
        ))

    async def task(self, story, title="Task", status="to_do", due_date=None, **fields):
        return await self._add(Task(
            id=generate_id(EntityKind.TASK),
            story_id=story.id,
            title=title,
            status=status,
            due_date=due_date,
            **fields,
        ))

    async def subtask(self, task, title="Subtask", is_completed=False, **fields):
        return await self._add(Subtask(
            id=generate_id(EntityKind.SUBTASK),
            task_id=task.id,
            title=title,
            is_completed=is_completed,
            **fields,
        ))

    async def backlog_story(self, project, title="Backlog story", original_story_id=None, **fields):
        return await self._add(BacklogStory(
            id=generate_id(EntityKind.BACKLOG_STORY),
            project_id=project.id,
            title=title,
            original_story_id=original_story_id,
            **fields,
        ))

    async def backlog_task(self, backlog_story, title="Backlog task", status="in_progress", **fields):
        return await self._add(BacklogTask(
            id=generate_id(EntityKind.BACKLOG_TASK),
            backlog_story_id=backlog_story.id,
            title=title,
            status=status,
            **fields,
        ))

    async def backlog_subtask(self, backlog_task, title="Backlog subtask", **fields):
        return await self._add(BacklogSubtask(
            id=generate_id(EntityKind.BACKLOG_SUBTASK),
            backlog_task_id=backlog_task.id,
            title=title,
            **fields,
        ))


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
async def engine(tmp_path):
    """Async engine on a throwaway SQLite file"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'sprintsync_test.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def builder(session_factory):
    return GraphBuilder(session_factory)


@pytest.fixture
def fetch(session_factory):
    """Query helper: ``await fetch(Model, *where)`` returns a list of rows"""

    async def _fetch(model, *where):
        async with session_factory() as session:
            stmt = select(model).where(*where) if where else select(model)
            result = await session.execute(stmt.order_by(model.id))
            return list(result.scalars().all())

    return _fetch


@pytest.fixture
def snapshot(fetch):
    """Dict snapshot of every row of the given models, keyed by id"""

    async def _snapshot(*models):
        rows = {}
        for model in models:
            for row in await fetch(model):
                rows[row.id] = row.to_dict()
        return rows

    return _snapshot


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def test_settings():
    return TestingConfig(max_batch_clone_size=5)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def completion(today):
    return CompletionFilter(today=lambda: today)


@pytest.fixture
def recorder():
    return RecordingActivityRecorder()


@pytest.fixture
def sink():
    return RecordingNotificationSink()


@pytest.fixture
def failing_recorder():
    return FailingActivityRecorder()


@pytest.fixture
def backlog_service(session_factory, test_settings, recorder, sink, completion):
    return BacklogService(
        session_factory=session_factory,
        settings=test_settings,
        activity_recorder=recorder,
        notification_sink=sink,
        completion=completion,
    )
