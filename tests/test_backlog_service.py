"""
Tests for the backlog read operations and for migrate-then-clone end to end.
"""

import pytest

from sprintsync.core.exceptions import NotFoundError


@pytest.fixture
async def archived(builder, backlog_service):
    """Project whose first sprint ended with two unfinished stories"""
    project = await builder.project()
    sprint = await builder.sprint(project, "Sprint 1", status="completed")
    next_sprint = await builder.sprint(project, "Sprint 2", status="planning")

    api = await builder.story(sprint, "API", status="in_progress", order_index=1)
    endpoints = await builder.task(api, "Endpoints", status="in_progress", order_index=1)
    await builder.subtask(endpoints, "Pagination", order_index=1)
    await builder.subtask(endpoints, "Filtering", order_index=2)
    await builder.task(api, "Docs", status="to_do", order_index=2)
    await builder.story(sprint, "UI", status="qa_review", order_index=2)

    stories = await backlog_service.migrate_sprint_to_backlog(sprint.id)
    return {"project": project, "next_sprint": next_sprint, "stories": stories}


class TestBacklogReads:
    async def test_list_backlog_stories(self, backlog_service, archived):
        stories = await backlog_service.list_backlog_stories(archived["project"].id)

        assert sorted(s.title for s in stories) == ["API", "UI"]
        assert all(s.tasks == [] for s in stories)

    async def test_list_for_other_project_is_empty(self, backlog_service, archived):
        assert await backlog_service.list_backlog_stories("PROJ-other") == []

    async def test_get_backlog_story_includes_subtree(self, backlog_service, archived):
        api = archived["stories"][0]

        story = await backlog_service.get_backlog_story(api.id)

        assert story.id == api.id
        assert [t.id for t in story.tasks] == [t.id for t in api.tasks]
        assert [t.title for t in story.tasks] == ["Endpoints", "Docs"]
        assert [s.title for s in story.tasks[0].subtasks] == ["Pagination", "Filtering"]

    async def test_get_unknown_backlog_story(self, backlog_service, archived):
        with pytest.raises(NotFoundError):
            await backlog_service.get_backlog_story("BSTY-missing")

    async def test_list_tasks_and_subtasks(self, backlog_service, archived):
        api = archived["stories"][0]

        tasks = await backlog_service.list_backlog_tasks(api.id)
        subtasks = await backlog_service.list_backlog_subtasks(tasks[0].id)

        assert [t.title for t in tasks] == ["Endpoints", "Docs"]
        assert [s.title for s in subtasks] == ["Pagination", "Filtering"]
        assert all(s.backlog_task_id == tasks[0].id for s in subtasks)


class TestMigrateThenClone:
    async def test_archived_work_lands_in_next_sprint(self, backlog_service, archived):
        result = await backlog_service.clone_backlog_stories_to_sprint(
            [s.id for s in archived["stories"]], archived["next_sprint"].id, "USER-lead"
        )

        assert result.failed == []
        api, ui = result.succeeded
        assert api.parent_story_id == archived["stories"][0].original_story_id
        assert ui.parent_story_id == archived["stories"][1].original_story_id
        assert [t.title for t in api.tasks] == ["Endpoints", "Docs"]
        assert all(s.is_completed is False for t in api.tasks for s in t.subtasks)
        assert {s.sprint_id for s in result.succeeded} == {archived["next_sprint"].id}
