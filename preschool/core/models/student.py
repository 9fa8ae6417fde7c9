"""Student: a child registered by a parent. Created together with its admission."""

import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from preschool.db.session import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    parent_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    full_name = Column(String(255), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    gender = Column(String(20), nullable=False)
    # Column is named "class" in the store
    class_name = Column("class", String(50), nullable=False)
    academic_year = Column(String(20), nullable=False)
    assigned_teacher = Column(String(255), nullable=True)
    emergency_contact_name = Column(String(255), nullable=False)
    emergency_contact_phone = Column(String(50), nullable=False)
    emergency_contact_relationship = Column(String(100), nullable=False)
    medical_conditions = Column(Text, nullable=True)
    allergies = Column(Text, nullable=True)
    residential_address = Column(Text, nullable=True)
    correspondence_address = Column(Text, nullable=True)
    religion = Column(String(100), nullable=True)
    caste = Column(String(100), nullable=True)
    mother_phone = Column(String(50), nullable=True)
    mother_email = Column(String(255), nullable=True)
    father_phone = Column(String(50), nullable=True)
    father_email = Column(String(255), nullable=True)
    preferred_whatsapp = Column(String(50), nullable=True)
    previous_school = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    parent = relationship("Profile", foreign_keys=[parent_id])
    admission = relationship("Admission", back_populates="student", uselist=False)
