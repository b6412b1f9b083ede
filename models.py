"""
Database Models
SQLAlchemy ORM models for DoseTrack
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Date, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from database import Base


class Patient(Base):
    """A person tracking their medications"""
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String(100))
    email = Column(String(255), unique=True, index=True, nullable=False)

    # IANA zone name; schedules are projected in this zone
    timezone = Column(String(50))

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    medications = relationship("Medication", back_populates="patient", cascade="all, delete-orphan")
    categories = relationship("Category", back_populates="patient", cascade="all, delete-orphan")


class Category(Base):
    """User-defined grouping for medications"""
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    name = Column(String(100), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    patient = relationship("Patient", back_populates="categories")
    medications = relationship("Medication", back_populates="category")

    __table_args__ = (
        UniqueConstraint("patient_id", "name", name="uq_category_patient_name"),
    )


class Medication(Base):
    """A medication regimen: dose, daily frequency and active date range"""
    __tablename__ = "medications"

    id = Column(Integer, primary_key=True, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id", ondelete="SET NULL"))

    name = Column(String(255), nullable=False)
    dose = Column(String(100), nullable=False)  # e.g., "1 tablet, 500mg"
    frequency_per_day = Column(Integer, nullable=False, default=1)

    # Inclusive calendar range; no end date means indefinite
    start_date = Column(Date, nullable=False)
    end_date = Column(Date)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    patient = relationship("Patient", back_populates="medications")
    category = relationship("Category", back_populates="medications")
    dose_logs = relationship("DoseLog", back_populates="medication", cascade="all, delete-orphan")

    __table_args__ = (
        Index("ix_medications_patient_range", "patient_id", "start_date", "end_date"),
    )


class DoseLog(Base):
    """A dose recorded as taken"""
    __tablename__ = "dose_logs"

    id = Column(Integer, primary_key=True, index=True)
    medication_id = Column(Integer, ForeignKey("medications.id", ondelete="CASCADE"), nullable=False)

    # Naive UTC
    scheduled_time = Column(DateTime, nullable=False)
    timestamp_taken = Column(DateTime, nullable=False, default=datetime.utcnow)

    taken_on_time = Column(Boolean, nullable=False, default=False)
    reward_earned = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    medication = relationship("Medication", back_populates="dose_logs")

    __table_args__ = (
        UniqueConstraint("medication_id", "scheduled_time", name="uq_dose_log_slot"),
        Index("ix_dose_logs_taken", "timestamp_taken"),
    )
