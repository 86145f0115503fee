"""
Studio service model
"""

from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime, timezone
import uuid

from studio.core.database import Base, JSON


class Service(Base):
    """Service offered by the studio"""

    __tablename__ = "services"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    title = Column(String(200), nullable=False)
    icon = Column(String(20), nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    items = Column(JSON(), nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, title={self.title})>"
