"""
Admin account model used by the store's password sign-in
"""

from sqlalchemy import Column, String, Boolean, DateTime, func
import uuid

from studio.core.database import Base


class AdminUser(Base):
    """Admin account"""
    __tablename__ = "admin_users"

    id = Column(String(64), primary_key=True, default=lambda: uuid.uuid4().hex)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<AdminUser(id={self.id}, email={self.email})>"
