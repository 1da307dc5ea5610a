"""
Tests for sprint status transitions and the sprint-end hand-off.
"""

import pytest

from sprintsync.core.exceptions import InvalidStatusTransitionError, NotFoundError
from sprintsync.models import BacklogStory
from sprintsync.models.enums import SprintStatus
from sprintsync.services.sprint_service import SprintService


@pytest.fixture
def sprint_service(session_factory, backlog_service):
    return SprintService(session_factory=session_factory, backlog_service=backlog_service)


class TestStatusTransitions:
    async def test_planning_to_active(self, sprint_service, builder):
        sprint = await builder.sprint(await builder.project(), status="planning")

        updated = await sprint_service.update_sprint_status(sprint.id, SprintStatus.ACTIVE)

        assert updated.status == "active"
        assert (await sprint_service.get_sprint(sprint.id)).status == "active"

    async def test_accepts_plain_string(self, sprint_service, builder):
        sprint = await builder.sprint(await builder.project(), status="active")

        updated = await sprint_service.update_sprint_status(sprint.id, "cancelled")

        assert updated.status == "cancelled"

    async def test_completed_sprint_cannot_reopen(self, sprint_service, builder):
        sprint = await builder.sprint(await builder.project(), status="completed")

        with pytest.raises(InvalidStatusTransitionError):
            await sprint_service.update_sprint_status(sprint.id, SprintStatus.ACTIVE)

        assert (await sprint_service.get_sprint(sprint.id)).status == "completed"

    async def test_unknown_sprint(self, sprint_service):
        with pytest.raises(NotFoundError):
            await sprint_service.update_sprint_status("SPNT-missing", SprintStatus.ACTIVE)

        with pytest.raises(NotFoundError):
            await sprint_service.get_sprint("SPNT-missing")


class TestEndSprint:
    """Completing a sprint archives its unfinished stories"""

    async def test_completes_and_migrates(self, sprint_service, builder, fetch):
        sprint = await builder.sprint(await builder.project(), status="active")
        open_story = await builder.story(sprint, "Open", status="in_progress")
        await builder.story(sprint, "Closed", status="done")

        archived = await sprint_service.end_sprint(sprint.id)

        assert [s.original_story_id for s in archived] == [open_story.id]
        stored = await sprint_service.get_sprint(sprint.id)
        assert stored.status == "completed"
        assert stored.backlog_migrated_at is not None
        assert len(await fetch(BacklogStory)) == 1

    async def test_sprint_not_yet_started_is_rejected(self, sprint_service, builder, fetch):
        sprint = await builder.sprint(await builder.project(), status="planning")
        await builder.story(sprint, "Open", status="to_do")

        with pytest.raises(InvalidStatusTransitionError):
            await sprint_service.end_sprint(sprint.id)

        assert await fetch(BacklogStory) == []
