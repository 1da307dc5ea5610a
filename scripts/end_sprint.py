#!/usr/bin/env python3
"""
End a sprint and move its unfinished stories to the backlog.

Usage:
    python scripts/end_sprint.py SPNT...                  # complete sprint, then migrate
    python scripts/end_sprint.py SPNT... --migrate-only   # sprint already completed
    python scripts/end_sprint.py SPNT... --clone-into SPNT...   # then pull the archive into a new sprint
"""
import argparse
import asyncio
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sprintsync.config import get_settings
from sprintsync.core.exceptions import BacklogServiceError
from sprintsync.services.backlog_service import BacklogService
from sprintsync.services.sprint_service import SprintService
from sprintsync.utils.logging import setup_logging


async def end_sprint(sprint_id: str, migrate_only: bool, clone_into: str = None) -> int:
    settings = get_settings()
    backlog_service = BacklogService(settings=settings)
    sprint_service = SprintService(backlog_service=backlog_service)

    try:
        if migrate_only:
            archived = await backlog_service.migrate_sprint_to_backlog(sprint_id)
        else:
            archived = await sprint_service.end_sprint(sprint_id)
    except BacklogServiceError as e:
        print(f"❌ {e}")
        return 1

    print(f"📦 {len(archived)} stories moved to backlog")
    for story in archived:
        subtasks = sum(len(t.subtasks) for t in story.tasks)
        print(f"  - {story.id}  {story.title}  ({len(story.tasks)} tasks, {subtasks} subtasks)")

    if clone_into and archived:
        result = await backlog_service.clone_backlog_stories_to_sprint(
            [story.id for story in archived], clone_into
        )
        print(f"\n🔁 Cloned into {clone_into}: {result.succeeded_count} succeeded, {result.failed_count} failed")
        for failure in result.failed:
            print(f"  ✗ {failure.backlog_story_id}: {failure.reason}")

    await backlog_service.wait_for_side_effects()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="End a sprint and archive its unfinished work")
    parser.add_argument("sprint_id", help="Sprint that has ended")
    parser.add_argument("--migrate-only", action="store_true", help="Skip the status change")
    parser.add_argument("--clone-into", metavar="SPRINT_ID", help="Clone the archived stories into this sprint")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_file)

    sys.exit(asyncio.run(end_sprint(args.sprint_id, args.migrate_only, args.clone_into)))
