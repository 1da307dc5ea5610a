from sqlalchemy import Column, String, Text, JSON, Boolean
from .base import BaseModel


class ActivityLog(BaseModel):
    __tablename__ = "activity_logs"

    user_id = Column(String(40), nullable=True, index=True)  # None for system actions
    entity_type = Column(String, nullable=False)  # story, task, backlog_story
    entity_id = Column(String(40), nullable=False, index=True)
    action = Column(String, nullable=False)  # moved_to_backlog, cloned_from_backlog, pulled_to_sprint
    description = Column(Text, nullable=True)
    details = Column(JSON, default=dict)


class Notification(BaseModel):
    __tablename__ = "notifications"

    user_id = Column(String(40), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, default="info")
    related_entity_type = Column(String, nullable=True)
    related_entity_id = Column(String(40), nullable=True)
    is_read = Column(Boolean, default=False)
