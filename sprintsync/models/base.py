from sqlalchemy import Column, DateTime, String
from sqlalchemy.orm import declarative_base
from datetime import date, datetime, timezone
from typing import Any, Dict

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseModel(Base):
    __abstract__ = True

    # Prefixed string ids, minted by IdentityAllocator
    id = Column(String(40), primary_key=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert model instance to dictionary"""
        data = {}
        for column in self.__table__.columns:
            value = getattr(self, column.name)
            if isinstance(value, (date, datetime)):
                value = value.isoformat()
            data[column.name] = value
        return data

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
