"""Payment: parent-submitted fee payment against an admission, verified by an admin."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from preschool.core.enums import PaymentStatus, PaymentType
from preschool.db.session import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    admission_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("admissions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_date = Column(Date, nullable=False)
    payment_type = Column(String(20), nullable=False, default=PaymentType.INSTALLMENT.value)
    receipt_url = Column(Text, nullable=True)
    status = Column(String(30), nullable=False, default=PaymentStatus.PENDING_UPLOAD.value)
    verification_notes = Column(Text, nullable=True)
    verified_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    admission = relationship("Admission", back_populates="payments")
