"""
Admission: one per student. STATUS moves submitted -> approved | rejected (admin only).
uploaded_files maps a document type (e.g. birth_certificate) to a private storage path.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from preschool.core.enums import AdmissionStatus
from preschool.db.session import Base


class Admission(Base):
    __tablename__ = "admissions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    admission_date = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    status = Column(String(20), nullable=False, default=AdmissionStatus.SUBMITTED.value)
    total_fee = Column(Numeric(12, 2), nullable=False)
    uploaded_files = Column(JSON, nullable=False, default=dict)
    notes = Column(Text, nullable=True)
    reviewed_by = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    student = relationship("Student", back_populates="admission", foreign_keys=[student_id])
    payments = relationship("Payment", back_populates="admission", cascade="all, delete-orphan")
