"""
Medication Service
Business logic for medication and category management
"""

import logging
from typing import Dict, List, Optional, Any
from datetime import date, datetime
from sqlalchemy.orm import Session
from sqlalchemy import and_, or_

from database import get_db_context
import models
from services.patient_service import resolve_timezone


logger = logging.getLogger(__name__)


EDITABLE_FIELDS = {"name", "dose", "frequency_per_day", "start_date", "end_date", "category_id"}


def _active_between(start: date, end: date):
    """Medications whose inclusive date range overlaps [start, end]"""
    return and_(
        models.Medication.start_date <= end,
        or_(
            models.Medication.end_date.is_(None),
            models.Medication.end_date >= start
        )
    )


class MedicationService:
    """
    Service for medication-related operations
    """

    def _check_category(self, session: Session, patient_id: int, category_id: Optional[int]) -> None:
        if category_id is None:
            return
        category = session.query(models.Category).filter(
            and_(
                models.Category.id == category_id,
                models.Category.patient_id == patient_id
            )
        ).first()
        if not category:
            raise ValueError(f"Category {category_id} not found for patient {patient_id}")

    async def add_medication(
        self,
        patient_id: int,
        name: str,
        dose: str,
        frequency_per_day: int = 1,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category_id: Optional[int] = None,
        db: Optional[Session] = None
    ) -> models.Medication:
        """
        Add a new medication for a patient

        Args:
            patient_id: Patient ID
            name: Medication name
            dose: Dose description (e.g., "1 tablet")
            frequency_per_day: Number of doses per day
            start_date: First day of the regimen (default: the patient's today)
            end_date: Last day of the regimen, None if indefinite
            category_id: Optional category owned by the same patient
            db: Database session

        Returns:
            Created Medication object
        """
        if frequency_per_day < 1:
            raise ValueError("frequency_per_day must be at least 1")

        def _add(session: Session) -> models.Medication:
            patient = session.query(models.Patient).filter(
                models.Patient.id == patient_id
            ).first()
            if not patient:
                raise ValueError(f"Patient {patient_id} not found")

            # "today" is the patient's calendar day
            first_day = start_date or datetime.now(resolve_timezone(patient.timezone)).date()
            if end_date is not None and end_date < first_day:
                raise ValueError(f"end_date {end_date} is before start_date {first_day}")

            self._check_category(session, patient_id, category_id)

            medication = models.Medication(
                patient_id=patient_id,
                category_id=category_id,
                name=name,
                dose=dose,
                frequency_per_day=frequency_per_day,
                start_date=first_day,
                end_date=end_date
            )

            session.add(medication)
            session.commit()
            session.refresh(medication)

            logger.info(f"Added medication {name} ({frequency_per_day}x daily) for patient {patient_id}")
            return medication

        if db:
            return _add(db)

        with get_db_context() as session:
            return _add(session)

    async def get_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Get medication by ID"""
        def _get(session: Session) -> Optional[models.Medication]:
            return session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_patient_medications(
        self,
        patient_id: int,
        active_on: Optional[date] = None,
        db: Optional[Session] = None
    ) -> List[models.Medication]:
        """Get a patient's medications, optionally only those active on a day"""
        def _get(session: Session) -> List[models.Medication]:
            query = session.query(models.Medication).filter(
                models.Medication.patient_id == patient_id
            )

            if active_on is not None:
                query = query.filter(_active_between(active_on, active_on))

            return query.order_by(models.Medication.name, models.Medication.id).all()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_medications_active_between(
        self,
        patient_id: int,
        start: date,
        end: date,
        db: Optional[Session] = None
    ) -> List[models.Medication]:
        """Medications active on at least one day of [start, end]"""
        def _get(session: Session) -> List[models.Medication]:
            return session.query(models.Medication).filter(
                and_(
                    models.Medication.patient_id == patient_id,
                    _active_between(start, end)
                )
            ).order_by(models.Medication.name, models.Medication.id).all()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def update_medication(
        self,
        medication_id: int,
        updates: Dict[str, Any],
        db: Optional[Session] = None
    ) -> Optional[models.Medication]:
        """Update editable medication fields"""
        def _update(session: Session) -> Optional[models.Medication]:
            medication = session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()

            if not medication:
                return None

            unknown = set(updates) - EDITABLE_FIELDS
            if unknown:
                raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")

            start_date = updates.get("start_date", medication.start_date)
            end_date = updates.get("end_date", medication.end_date)
            if end_date is not None and end_date < start_date:
                raise ValueError(f"end_date {end_date} is before start_date {start_date}")
            if updates.get("frequency_per_day", 1) < 1:
                raise ValueError("frequency_per_day must be at least 1")
            if "category_id" in updates:
                self._check_category(session, medication.patient_id, updates["category_id"])

            for key, value in updates.items():
                setattr(medication, key, value)

            session.commit()
            session.refresh(medication)

            logger.info(f"Updated medication {medication_id}: {list(updates.keys())}")
            return medication

        if db:
            return _update(db)

        with get_db_context() as session:
            return _update(session)

    async def delete_medication(
        self,
        medication_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """Delete a medication and its dose logs"""
        def _delete(session: Session) -> bool:
            medication = session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()

            if not medication:
                return False

            session.delete(medication)
            session.commit()

            logger.info(f"Deleted medication {medication_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)

    # ==================== CATEGORIES ====================

    async def add_category(
        self,
        patient_id: int,
        name: str,
        db: Optional[Session] = None
    ) -> models.Category:
        """Create a medication category for a patient"""
        def _add(session: Session) -> models.Category:
            patient = session.query(models.Patient).filter(
                models.Patient.id == patient_id
            ).first()
            if not patient:
                raise ValueError(f"Patient {patient_id} not found")

            existing = session.query(models.Category).filter(
                and_(
                    models.Category.patient_id == patient_id,
                    models.Category.name == name
                )
            ).first()
            if existing:
                raise ValueError(f"Category {name!r} already exists")

            category = models.Category(patient_id=patient_id, name=name)
            session.add(category)
            session.commit()
            session.refresh(category)

            logger.info(f"Added category {name!r} for patient {patient_id}")
            return category

        if db:
            return _add(db)

        with get_db_context() as session:
            return _add(session)

    async def get_patient_categories(
        self,
        patient_id: int,
        db: Optional[Session] = None
    ) -> List[models.Category]:
        def _get(session: Session) -> List[models.Category]:
            return session.query(models.Category).filter(
                models.Category.patient_id == patient_id
            ).order_by(models.Category.name).all()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def delete_category(
        self,
        category_id: int,
        db: Optional[Session] = None
    ) -> bool:
        """Delete a category; its medications become uncategorized"""
        def _delete(session: Session) -> bool:
            category = session.query(models.Category).filter(
                models.Category.id == category_id
            ).first()

            if not category:
                return False

            session.query(models.Medication).filter(
                models.Medication.category_id == category_id
            ).update({models.Medication.category_id: None}, synchronize_session="fetch")
            session.delete(category)
            session.commit()

            logger.info(f"Deleted category {category_id}")
            return True

        if db:
            return _delete(db)

        with get_db_context() as session:
            return _delete(session)


# Singleton instance
medication_service = MedicationService()
