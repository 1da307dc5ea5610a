from sqlalchemy import Column, String, Integer, Text, Date, ForeignKey, JSON, Boolean, Float
from .base import BaseModel


class BacklogStory(BaseModel):
    """Archived snapshot of an incomplete story, written when its sprint ends.

    Rows in the backlog tables are append-only: cloning reads them and never
    writes back, so the same backlog story can be pulled into many sprints.
    """
    __tablename__ = "backlog_stories"

    # Provenance
    original_story_id = Column(String(40), nullable=True, index=True)
    original_sprint_id = Column(String(40), nullable=True, index=True)
    created_from_sprint_id = Column(String(40), nullable=True)

    # Snapshot of story fields
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    acceptance_criteria = Column(JSON, default=list)
    status = Column(String, default="backlog")
    priority = Column(String, default="medium")
    story_points = Column(Integer, nullable=True)
    labels = Column(JSON, default=list)
    order_index = Column(Integer, default=0)
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, default=0.0)
    assignee_id = Column(String(40), nullable=True)
    reporter_id = Column(String(40), nullable=True)
    epic_id = Column(String(40), nullable=True)
    release_id = Column(String(40), nullable=True)

    project_id = Column(String(40), ForeignKey("projects.id"), nullable=False, index=True)


class BacklogTask(BaseModel):
    __tablename__ = "backlog_tasks"

    original_task_id = Column(String(40), nullable=True, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, default="to_do")
    priority = Column(String, default="medium")
    labels = Column(JSON, default=list)
    order_index = Column(Integer, default=0)
    task_number = Column(Integer, nullable=True)
    due_date = Column(Date, nullable=True)
    is_overdue = Column(Boolean, default=False)  # past due when archived
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, default=0.0)
    assignee_id = Column(String(40), nullable=True)
    reporter_id = Column(String(40), nullable=True)

    backlog_story_id = Column(
        String(40), ForeignKey("backlog_stories.id", ondelete="CASCADE"), nullable=False, index=True
    )


class BacklogSubtask(BaseModel):
    __tablename__ = "backlog_subtasks"

    original_subtask_id = Column(String(40), nullable=True, index=True)

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_completed = Column(Boolean, default=False)
    labels = Column(JSON, default=list)
    order_index = Column(Integer, default=0)
    due_date = Column(Date, nullable=True)
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, default=0.0)
    assignee_id = Column(String(40), nullable=True)
    bug_type = Column(String, nullable=True)
    severity = Column(String, nullable=True)
    category = Column(String, nullable=True)

    backlog_task_id = Column(
        String(40), ForeignKey("backlog_tasks.id", ondelete="CASCADE"), nullable=False, index=True
    )
