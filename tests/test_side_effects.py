"""
Tests for post-commit effects: queueing, fire-and-forget dispatch and the
database-backed collaborators.
"""

import asyncio
import logging

from sprintsync.config import TestingConfig as TestingSettings
from sprintsync.models import ActivityLog, Notification
from sprintsync.services.backlog_service import BacklogService
from sprintsync.services.side_effects import (
    DatabaseActivityRecorder,
    DatabaseNotificationSink,
    EffectDispatcher,
    PendingEffects,
)


class TestPendingEffects:
    """What gets queued"""

    def test_queues_record_and_notify(self, recorder, sink):
        effects = PendingEffects(recorder=recorder, sink=sink)

        effects.record("USER-1", "cloned_from_backlog", "story", "STRY1")
        effects.notify("USER-2", "Title", "Body", "story", "STRY1")

        assert len(effects) == 2
        assert recorder.calls == []

    def test_skips_missing_collaborators(self):
        effects = PendingEffects()

        effects.record("USER-1", "moved_to_backlog", "backlog_story", "BSTY1")
        effects.notify("USER-1", "Title", "Body")

        assert len(effects) == 0

    def test_skips_notification_without_recipient(self, sink):
        effects = PendingEffects(sink=sink)

        effects.notify(None, "Title", "Body")
        effects.notify("", "Title", "Body")

        assert len(effects) == 0


class TestEffectDispatcher:
    """Fire-and-forget execution"""

    async def test_runs_effects_after_dispatch(self, recorder, sink):
        effects = PendingEffects(recorder=recorder, sink=sink)
        effects.record("USER-1", "pulled_to_sprint", "task", "TASK1", "desc", {"storyId": "STRY1"})
        effects.notify("USER-2", "Title", "Body", "story", "STRY1")
        dispatcher = EffectDispatcher()

        dispatcher.dispatch(effects)
        assert len(effects) == 0
        await dispatcher.drain()

        assert recorder.calls[0]["details"] == {"storyId": "STRY1"}
        assert sink.calls[0]["related_id"] == "STRY1"
        assert dispatcher.in_flight == 0

    async def test_dispatch_does_not_wait(self, sink):
        release = asyncio.Event()

        class SlowSink:
            async def notify(self, *args):
                await release.wait()
                await sink.notify(*args)

        effects = PendingEffects(sink=SlowSink())
        effects.notify("USER-1", "Title", "Body")
        dispatcher = EffectDispatcher()

        dispatcher.dispatch(effects)
        assert dispatcher.in_flight == 1

        release.set()
        await dispatcher.drain()
        assert len(sink.calls) == 1

    async def test_failure_is_logged_and_swallowed(self, failing_recorder, sink, caplog):
        effects = PendingEffects(recorder=failing_recorder, sink=sink)
        effects.record(None, "moved_to_backlog", "backlog_story", "BSTY1")
        effects.notify("USER-1", "Title", "Body")
        dispatcher = EffectDispatcher()

        with caplog.at_level(logging.ERROR):
            dispatcher.dispatch(effects)
            await dispatcher.drain()

        assert dispatcher.failures == 1
        assert len(sink.calls) == 1
        assert "activity store unavailable" in caplog.text


class TestDatabaseCollaborators:
    async def test_activity_row_is_written(self, session_factory, fetch):
        await DatabaseActivityRecorder(session_factory).record(
            "USER-1", "pulled_to_sprint", "task", "TASK1", "Task pulled", {"storyId": "STRY1"}
        )

        rows = await fetch(ActivityLog)
        assert len(rows) == 1
        assert rows[0].id.startswith("ACTL")
        assert rows[0].action == "pulled_to_sprint"
        assert rows[0].details == {"storyId": "STRY1"}

    async def test_notification_row_is_written(self, session_factory, fetch):
        await DatabaseNotificationSink(session_factory).notify(
            "USER-1", "Story moved to backlog", "Body", "backlog_story", "BSTY1"
        )

        rows = await fetch(Notification)
        assert len(rows) == 1
        assert rows[0].user_id == "USER-1"
        assert rows[0].related_entity_id == "BSTY1"
        assert rows[0].is_read is False

    async def test_service_wires_database_collaborators(
        self, session_factory, test_settings, completion, builder, fetch
    ):
        project = await builder.project()
        sprint = await builder.sprint(project, status="completed")
        await builder.story(sprint, "Leftover", status="to_do", assignee_id="USER-ana")
        service = BacklogService(session_factory=session_factory, settings=test_settings, completion=completion)

        archived = await service.migrate_sprint_to_backlog(sprint.id)
        await service.wait_for_side_effects()

        assert [a.entity_id for a in await fetch(ActivityLog)] == [archived[0].id]
        assert [n.user_id for n in await fetch(Notification)] == ["USER-ana"]

    async def test_disabled_collaborators_are_not_called(self, session_factory, completion, recorder, sink, builder):
        project = await builder.project()
        sprint = await builder.sprint(project, status="completed")
        await builder.story(sprint, "Leftover", status="to_do", assignee_id="USER-ana")
        service = BacklogService(
            session_factory=session_factory,
            settings=TestingSettings(enable_activity_log=False, enable_notifications=False),
            activity_recorder=recorder,
            notification_sink=sink,
            completion=completion,
        )

        await service.migrate_sprint_to_backlog(sprint.id)
        await service.wait_for_side_effects()

        assert recorder.calls == []
        assert sink.calls == []
