"""
Patient Service
Business logic for patient management
"""

import logging
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from sqlalchemy.orm import Session

from config import settings
from database import get_db_context
import models


logger = logging.getLogger(__name__)


def resolve_timezone(name: Optional[str]) -> ZoneInfo:
    """Look up an IANA zone, falling back to the configured default"""
    zone_name = name or settings.DEFAULT_TIMEZONE
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {zone_name}") from None


class PatientService:
    """
    Service for patient-related operations
    """

    async def create_patient(
        self,
        email: str,
        display_name: Optional[str] = None,
        timezone: Optional[str] = None,
        db: Optional[Session] = None
    ) -> models.Patient:
        """
        Create a new patient record

        Args:
            email: Patient email (unique)
            display_name: Name shown in the UI
            timezone: IANA zone used to project the daily schedule
            db: Database session (optional)

        Returns:
            Created Patient object
        """
        if timezone:
            resolve_timezone(timezone)

        def _create(session: Session) -> models.Patient:
            existing = session.query(models.Patient).filter(
                models.Patient.email == email
            ).first()

            if existing:
                raise ValueError(f"Patient with email {email} already exists")

            patient = models.Patient(
                email=email,
                display_name=display_name,
                timezone=timezone,
                is_active=True
            )

            session.add(patient)
            session.commit()
            session.refresh(patient)

            logger.info(f"Created patient {patient.id}")
            return patient

        if db:
            return _create(db)

        with get_db_context() as session:
            return _create(session)

    async def get_patient(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Patient]:
        """Get patient by ID"""
        def _get(session: Session) -> Optional[models.Patient]:
            return session.query(models.Patient).filter(
                models.Patient.id == patient_id
            ).first()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_patient_timezone(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> ZoneInfo:
        """Zone the patient's schedule is projected in"""
        patient = await self.get_patient(patient_id, db=db)
        if not patient:
            raise ValueError(f"Patient {patient_id} not found")
        return resolve_timezone(patient.timezone)


# Singleton instance
patient_service = PatientService()
