from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from ravito.models.organization import Base


class StatusHistory(Base):
    __tablename__ = "status_history"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id"), nullable=False, index=True)

    # "order" or "daily_sheet"
    entity_type = Column(String(20), nullable=False)
    entity_id = Column(Integer, nullable=False, index=True)

    old_status = Column(String(50), nullable=True)  # null on creation
    new_status = Column(String(50), nullable=False)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    user_email = Column(String(255), nullable=False)  # kept if the user is removed

    notes = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User")
