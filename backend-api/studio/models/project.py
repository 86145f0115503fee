"""
Portfolio project model
"""

from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime, timezone
import uuid

from studio.core.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Project(Base):
    """Portfolio item"""

    __tablename__ = "projects"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    title = Column(String(200), nullable=False)
    category = Column(String(50), nullable=False)  # Graphic Design | Web Development
    thumbnail = Column(String(2000), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    project_url = Column(String(2000))
    created_at = Column(DateTime(timezone=True), default=_utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, title={self.title})>"
