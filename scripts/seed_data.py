#!/usr/bin/env python3
"""
Seed Data Script for SprintSync Backlog

Creates realistic data for trying out sprint-end migration and cloning:
- 1 Project
- 2 Sprints (one active and ending, one planned)
- 6 Stories with tasks and subtasks in mixed states
  (done, in progress, overdue, blocked)

Usage:
    python scripts/seed_data.py              # Add seed data
    python scripts/seed_data.py --clear      # Clear all data first
"""
import asyncio
import sys
import os
from datetime import date, timedelta
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sprintsync.database import async_session, create_tables
from sprintsync.models import (
    ActivityLog, BacklogStory, BacklogSubtask, BacklogTask, Notification,
    Project, Sprint, Story, Subtask, Task,
)
from sprintsync.models.enums import EntityKind
from sprintsync.services.identity import generate_id


# ==================== DATA DEFINITIONS ====================

TODAY = date.today()

USERS = ["USER000000000001", "USER000000000002", "USER000000000003", "USER000000000004"]

# Each story: tasks as (title, status, due offset in days or None, [(subtask, completed)])
STORIES_DATA = [
    {
        "title": "User Authentication System", "priority": "high", "story_points": 8, "status": "done",
        "tasks": [
            ("Login endpoint", "done", -5, [("Validate credentials", True)]),
            ("Token refresh", "done", -3, []),
        ],
    },
    {
        "title": "Payment Gateway Integration", "priority": "high", "story_points": 8, "status": "in_progress",
        "tasks": [
            ("Stripe client", "done", -4, [("Sandbox keys", True)]),
            ("3D Secure flow", "in_progress", 2, [("Challenge page", False), ("Callback handler", True)]),
            ("Payment webhooks", "to_do", -1, [("Signature check", False)]),
        ],
    },
    {
        "title": "Email Notification System", "priority": "medium", "story_points": 5, "status": "in_progress",
        "tasks": [
            ("Template engine", "done", -2, []),
            ("Retry queue", "blocked", None, [("Dead letter topic", False)]),
        ],
    },
    {
        "title": "Search Functionality", "priority": "medium", "story_points": 5, "status": "to_do",
        "tasks": [
            ("Index products", "to_do", 3, [("Tokenizer config", False), ("Backfill job", False)]),
        ],
    },
    {
        "title": "Password Reset Flow", "priority": "high", "story_points": 3, "status": "qa_review",
        "tasks": [
            ("Reset token", "done", -6, []),
            ("Reset email", "qa_review", -1, [("Copy review", False)]),
        ],
    },
    {
        "title": "Dark Mode", "priority": "low", "story_points": 5, "status": "cancelled",
        "tasks": [
            ("Theme tokens", "cancelled", None, []),
        ],
    },
]


# ==================== SEED FUNCTIONS ====================

async def clear_all_data(session: AsyncSession):
    """Clear all data from the database"""
    print("🗑️  Clearing existing data...")

    # Delete in correct order (respecting foreign keys)
    for model in (BacklogSubtask, BacklogTask, BacklogStory, Subtask, Task, Story,
                  Sprint, Project, ActivityLog, Notification):
        await session.execute(delete(model))

    await session.commit()
    print("✅ All data cleared")


async def create_project(session: AsyncSession):
    print("\n🏢 Creating project...")

    project = Project(id=generate_id(EntityKind.PROJECT), name="Checkout Revamp", key="CHK")
    session.add(project)
    await session.commit()

    print(f"  ✓ Created: {project.name} ({project.id})")
    return project


async def create_sprints(session: AsyncSession, project):
    print("\n🏃 Creating sprints...")

    ending = Sprint(
        id=generate_id(EntityKind.SPRINT),
        project_id=project.id,
        name="Sprint 7",
        goal="Take payments end to end",
        start_date=TODAY - timedelta(days=13),
        end_date=TODAY,
        status="active",
    )
    next_sprint = Sprint(
        id=generate_id(EntityKind.SPRINT),
        project_id=project.id,
        name="Sprint 8",
        goal="Finish payments, start search",
        start_date=TODAY + timedelta(days=1),
        end_date=TODAY + timedelta(days=14),
        status="planning",
    )
    session.add_all([ending, next_sprint])
    await session.commit()

    print(f"  ✓ {ending.name} (active, ending today): {ending.id}")
    print(f"  ✓ {next_sprint.name} (planning): {next_sprint.id}")
    return ending, next_sprint


async def create_stories(session: AsyncSession, project, sprint):
    print(f"\n📋 Creating stories in {sprint.name}...")

    counts = {"stories": 0, "tasks": 0, "subtasks": 0}
    for index, story_data in enumerate(STORIES_DATA):
        story = Story(
            id=generate_id(EntityKind.STORY),
            project_id=project.id,
            sprint_id=sprint.id,
            title=story_data["title"],
            priority=story_data["priority"],
            story_points=story_data["story_points"],
            status=story_data["status"],
            assignee_id=USERS[index % len(USERS)],
            reporter_id=USERS[0],
            order_index=index,
            estimated_hours=story_data["story_points"] * 4.0,
        )
        session.add(story)
        await session.flush()
        counts["stories"] += 1

        for task_number, (title, status, due_offset, subtasks) in enumerate(story_data["tasks"], start=1):
            task = Task(
                id=generate_id(EntityKind.TASK),
                story_id=story.id,
                title=title,
                status=status,
                priority=story_data["priority"],
                assignee_id=USERS[(index + task_number) % len(USERS)],
                due_date=TODAY + timedelta(days=due_offset) if due_offset is not None else None,
                order_index=task_number,
                task_number=task_number,
                estimated_hours=6.0,
            )
            session.add(task)
            await session.flush()
            counts["tasks"] += 1

            for order, (subtask_title, completed) in enumerate(subtasks):
                session.add(Subtask(
                    id=generate_id(EntityKind.SUBTASK),
                    task_id=task.id,
                    title=subtask_title,
                    is_completed=completed,
                    order_index=order,
                    estimated_hours=2.0,
                ))
                counts["subtasks"] += 1

        print(f"  ✓ {story.title} [{story.status}] - {len(story_data['tasks'])} tasks")

    await session.commit()
    return counts


# ==================== MAIN ====================

async def seed_database(clear_first: bool = False):
    """Main seed function"""
    print("=" * 60)
    print("🌱 SprintSync Backlog - Database Seeding")
    print("=" * 60)

    await create_tables()

    async with async_session() as session:
        if clear_first:
            await clear_all_data(session)

        project = await create_project(session)
        ending, next_sprint = await create_sprints(session, project)
        counts = await create_stories(session, project, ending)

    print("\n" + "=" * 60)
    print("✅ Database seeding complete!")
    print("=" * 60)
    print("\n📊 Summary:")
    print(f"  Stories: {counts['stories']}")
    print(f"  Tasks: {counts['tasks']}")
    print(f"  Subtasks: {counts['subtasks']}")
    print("\n💡 Try it:")
    print(f"  python scripts/end_sprint.py {ending.id} --clone-into {next_sprint.id}")


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Seed SprintSync database")
    parser.add_argument("--clear", action="store_true", help="Clear all data before seeding")
    args = parser.parse_args()

    asyncio.run(seed_database(clear_first=args.clear))
