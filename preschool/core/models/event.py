import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, Date, DateTime, ForeignKey, String, Text, Uuid

from preschool.core.enums import EventType
from preschool.db.session import Base


class Event(Base):
    """School event. event_type is informational; upcoming/past listings compare event_date to today."""

    __tablename__ = "events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    event_date = Column(Date, nullable=False, index=True)
    event_type = Column(String(20), nullable=False, default=EventType.UPCOMING.value)
    photos = Column(JSON, nullable=False, default=list)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
