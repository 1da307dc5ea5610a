from sqlalchemy import Column, String, Integer, Text, Date, ForeignKey, JSON, Boolean, Float
from .base import BaseModel


class Story(BaseModel):
    __tablename__ = "stories"

    # Core fields
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    acceptance_criteria = Column(JSON, default=list)
    status = Column(String, default="backlog")  # backlog, to_do, in_progress, qa_review, done, cancelled
    priority = Column(String, default="medium")  # low, medium, high, critical
    story_points = Column(Integer, nullable=True)
    labels = Column(JSON, default=list)
    order_index = Column(Integer, default=0)

    # Effort
    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, default=0.0)

    # People
    assignee_id = Column(String(40), nullable=True)
    reporter_id = Column(String(40), nullable=True)

    # Root story this one was cloned or carried forward from
    parent_story_id = Column(String(40), nullable=True, index=True)

    # Foreign keys
    project_id = Column(String(40), ForeignKey("projects.id"), nullable=False, index=True)
    sprint_id = Column(String(40), ForeignKey("sprints.id"), nullable=True, index=True)
    epic_id = Column(String(40), nullable=True)
    release_id = Column(String(40), nullable=True)


class Task(BaseModel):
    __tablename__ = "tasks"

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String, default="to_do")  # to_do, in_progress, qa_review, done, blocked, cancelled
    priority = Column(String, default="medium")
    labels = Column(JSON, default=list)
    order_index = Column(Integer, default=0)
    task_number = Column(Integer, nullable=True)
    due_date = Column(Date, nullable=True)

    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, default=0.0)

    assignee_id = Column(String(40), nullable=True)
    reporter_id = Column(String(40), nullable=True)

    is_pulled_from_backlog = Column(Boolean, default=False)

    story_id = Column(String(40), ForeignKey("stories.id"), nullable=False, index=True)


class Subtask(BaseModel):
    __tablename__ = "subtasks"

    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    is_completed = Column(Boolean, default=False)
    labels = Column(JSON, default=list)
    order_index = Column(Integer, default=0)
    due_date = Column(Date, nullable=True)

    estimated_hours = Column(Float, nullable=True)
    actual_hours = Column(Float, default=0.0)

    assignee_id = Column(String(40), nullable=True)

    # Bug tracking
    bug_type = Column(String, nullable=True)
    severity = Column(String, nullable=True)
    category = Column(String, nullable=True)

    task_id = Column(String(40), ForeignKey("tasks.id"), nullable=False, index=True)
