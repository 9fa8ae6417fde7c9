"""Help query raised by a parent from the support page. open -> replied | closed."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from preschool.core.enums import QueryStatus
from preschool.db.session import Base


class HelpQuery(Base):
    __tablename__ = "queries"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    attachment_url = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=QueryStatus.OPEN.value)
    admin_response = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    parent = relationship("Profile", foreign_keys=[parent_id])
