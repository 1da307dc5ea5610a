from sqlalchemy import Column, String, Date, DateTime, ForeignKey, Text
from .base import BaseModel


class Project(BaseModel):
    __tablename__ = "projects"

    name = Column(String, nullable=False)
    key = Column(String(16), nullable=True, unique=True)
    description = Column(Text, nullable=True)


class Sprint(BaseModel):
    __tablename__ = "sprints"

    name = Column(String, nullable=False)
    goal = Column(Text, nullable=True)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    status = Column(String, default="planning")  # planning, active, completed, cancelled

    # Stamped once the sprint's incomplete work has been archived
    backlog_migrated_at = Column(DateTime(timezone=True), nullable=True)

    # Foreign keys
    project_id = Column(String(40), ForeignKey("projects.id"), nullable=False, index=True)
