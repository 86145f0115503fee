"""
Lead model (contact / hire-me submissions)

Rows are written once by the lead intake pipeline and never updated.
"""

from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime, timezone
import uuid

from studio.core.database import Base


class Lead(Base):
    """Inbound lead"""

    __tablename__ = "leads"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    name = Column(String(200), nullable=False)
    email = Column(String(255), nullable=False)
    type = Column(String(20), nullable=False, index=True)  # HIRE_ME | CONTACT_FORM
    budget = Column(String(100))
    message = Column(Text, nullable=False)
    reference_code = Column(String(40), nullable=False, index=True)
    summary = Column(Text)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, reference_code={self.reference_code})>"
