"""
Dose Log Service
Records doses as taken and retrieves dose history
"""

import logging
from typing import List, Optional, Sequence
from datetime import datetime, timezone, tzinfo
from sqlalchemy.orm import Session
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError

from config import schedule_config
from database import get_db_context
import models
from services.patient_service import resolve_timezone


logger = logging.getLogger(__name__)


def to_utc_naive(value: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """
    Storage form for timestamps: naive UTC

    Naive values are read in `tz` when given, otherwise taken as UTC.
    """
    if value.tzinfo is None:
        if tz is None:
            return value
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _find_logged_dose(session: Session, medication_id: int, scheduled_utc: datetime) -> Optional[models.DoseLog]:
    return session.query(models.DoseLog).filter(
        and_(
            models.DoseLog.medication_id == medication_id,
            models.DoseLog.scheduled_time == scheduled_utc
        )
    ).first()


def is_on_time(scheduled_time: datetime, taken_at: datetime) -> bool:
    """Whether a dose was taken within the on-time window of its slot"""
    deviation = (to_utc_naive(taken_at) - to_utc_naive(scheduled_time)).total_seconds() / 60
    return abs(deviation) <= schedule_config.ON_TIME_WINDOW_MINUTES


class DoseLogService:
    """
    Service for dose logging
    """

    async def record_dose(
        self,
        medication_id: int,
        scheduled_time: datetime,
        taken_at: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> models.DoseLog:
        """
        Record a dose as taken

        Recording the same slot twice returns the existing log unchanged.
        Naive times are in the patient's timezone.

        Args:
            medication_id: Medication ID
            scheduled_time: Slot the dose belongs to
            taken_at: When the dose was taken (default: now)
            db: Database session

        Returns:
            DoseLog for the slot
        """
        def _record(session: Session) -> models.DoseLog:
            medication = session.query(models.Medication).filter(
                models.Medication.id == medication_id
            ).first()
            if not medication:
                raise ValueError(f"Medication {medication_id} not found")

            tz = resolve_timezone(medication.patient.timezone)
            scheduled_utc = to_utc_naive(scheduled_time, tz)
            taken_utc = to_utc_naive(taken_at, tz) if taken_at else datetime.utcnow()

            existing = _find_logged_dose(session, medication_id, scheduled_utc)
            if existing:
                logger.info(
                    f"Dose for medication {medication_id} at {scheduled_utc} already recorded"
                )
                return existing

            on_time = is_on_time(scheduled_utc, taken_utc)
            log = models.DoseLog(
                medication_id=medication_id,
                scheduled_time=scheduled_utc,
                timestamp_taken=taken_utc,
                taken_on_time=on_time,
                reward_earned=on_time
            )

            session.add(log)
            try:
                session.commit()
            except IntegrityError:
                # Another request recorded the same slot first
                session.rollback()
                existing = _find_logged_dose(session, medication_id, scheduled_utc)
                if existing is None:
                    raise
                return existing
            session.refresh(log)

            logger.info(
                f"Recorded dose for medication {medication_id} "
                f"(scheduled {scheduled_utc}, on time: {on_time})"
            )
            return log

        if db:
            return _record(db)

        with get_db_context() as session:
            return _record(session)

    async def get_logs(
        self,
        patient_id: int,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[models.DoseLog]:
        """
        A patient's dose logs taken within [start, end], newest first

        Naive bounds are in the patient's timezone.
        """
        def _get(session: Session) -> List[models.DoseLog]:
            patient = session.query(models.Patient).filter(
                models.Patient.id == patient_id
            ).first()
            if not patient:
                return []
            tz = resolve_timezone(patient.timezone)

            query = session.query(models.DoseLog).join(models.Medication).filter(
                models.Medication.patient_id == patient_id
            )
            if start is not None:
                query = query.filter(models.DoseLog.timestamp_taken >= to_utc_naive(start, tz))
            if end is not None:
                query = query.filter(models.DoseLog.timestamp_taken <= to_utc_naive(end, tz))
            return query.order_by(models.DoseLog.timestamp_taken.desc()).all()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)

    async def get_logs_for_medications(
        self,
        medication_ids: Sequence[int],
        start: datetime,
        end: datetime,
        db: Optional[Session] = None
    ) -> List[models.DoseLog]:
        """Logs of the given medications taken within [start, end]"""
        if not medication_ids:
            return []

        def _get(session: Session) -> List[models.DoseLog]:
            return session.query(models.DoseLog).filter(
                and_(
                    models.DoseLog.medication_id.in_(list(medication_ids)),
                    models.DoseLog.timestamp_taken >= to_utc_naive(start),
                    models.DoseLog.timestamp_taken <= to_utc_naive(end)
                )
            ).order_by(models.DoseLog.timestamp_taken).all()

        if db:
            return _get(db)

        with get_db_context() as session:
            return _get(session)


# Singleton instance
dose_log_service = DoseLogService()
