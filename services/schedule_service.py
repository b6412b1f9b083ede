"""
Schedule Service
Loads a patient's regimen and dose history and projects it into a classified
dose schedule
"""

import logging
from typing import Dict, List, Optional
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo
from sqlalchemy.orm import Session

from config import schedule_config
from database import get_db_context
import models
from services.patient_service import resolve_timezone
from services.medication_service import medication_service
from services.dose_log_service import dose_log_service
from tools.dose_scheduler import (
    dose_scheduler,
    DoseLogRecord,
    MedicationRecord,
    MultiDayWindow,
    ScheduledDose,
    ScheduleWindow,
    SingleDayWindow,
    DAY_START,
    DOSING_WINDOW_MINUTES,
    DUE_WINDOW,
    EARLY_MATCH_WINDOW,
)


logger = logging.getLogger(__name__)


REMINDER_GROUPS = ("due", "today", "tomorrow", "upcoming")


def _localize(value: Optional[datetime], tz: ZoneInfo) -> Optional[datetime]:
    """Stored naive-UTC timestamp to the patient's zone"""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz)


def _reference_time(now: Optional[datetime], tz: ZoneInfo) -> datetime:
    """The instant schedules are computed against, in the patient's zone"""
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def group_reminders(doses: List[ScheduledDose]) -> Dict[str, List[ScheduledDose]]:
    """Split reminder doses into the due/today/tomorrow/upcoming lists"""
    return {
        "due": [d for d in doses if d.buckets.is_due],
        "today": [d for d in doses if d.buckets.is_today],
        "tomorrow": [d for d in doses if d.buckets.is_tomorrow],
        "upcoming": [d for d in doses if d.buckets.is_upcoming],
    }


class ScheduleService:
    """
    Service for building dose schedules from stored data
    """

    async def _build(
        self,
        session: Session,
        patient_id: int,
        now: Optional[datetime],
        make_window,
    ) -> List[ScheduledDose]:
        patient = session.query(models.Patient).filter(
            models.Patient.id == patient_id
        ).first()
        if not patient:
            raise ValueError(f"Patient {patient_id} not found")

        tz = resolve_timezone(patient.timezone)
        reference = _reference_time(now, tz)
        window: ScheduleWindow = make_window(reference)
        days = window.days()
        if not days:
            return []

        medications = await medication_service.get_medications_active_between(
            patient_id, days[0], days[-1], db=session
        )

        # Widen by the match margins so logs at the edges still count
        first_slot = datetime.combine(days[0], DAY_START, tzinfo=tz)
        last_slot = datetime.combine(days[-1], DAY_START, tzinfo=tz) + timedelta(minutes=DOSING_WINDOW_MINUTES)
        logs = await dose_log_service.get_logs_for_medications(
            [m.id for m in medications],
            first_slot - EARLY_MATCH_WINDOW,
            last_slot + DUE_WINDOW,
            db=session
        )

        doses = dose_scheduler.build_schedule(
            [MedicationRecord.from_object(m) for m in medications],
            [
                DoseLogRecord(
                    id=log.id,
                    medication_id=log.medication_id,
                    timestamp_taken=_localize(log.timestamp_taken, tz),
                    scheduled_time=_localize(log.scheduled_time, tz),
                    taken_on_time=bool(log.taken_on_time),
                    reward_earned=bool(log.reward_earned),
                )
                for log in logs
            ],
            reference,
            window,
        )

        logger.debug(
            f"Built {len(doses)} doses for patient {patient_id} "
            f"over {len(days)} day(s) at {reference.isoformat()}"
        )
        return doses

    async def get_today_schedule(
        self,
        patient_id: int,
        now: Optional[datetime] = None,
        db: Optional[Session] = None
    ) -> List[ScheduledDose]:
        """
        All of today's doses with their status

        Args:
            patient_id: Patient ID
            now: Reference instant (default: current time in the patient's zone)
            db: Database session

        Returns:
            Ordered ScheduledDose list
        """
        def make_window(reference: datetime) -> ScheduleWindow:
            return SingleDayWindow(reference.date())

        if db:
            return await self._build(db, patient_id, now, make_window)

        with get_db_context() as session:
            return await self._build(session, patient_id, now, make_window)

    async def get_reminders(
        self,
        patient_id: int,
        now: Optional[datetime] = None,
        days: int = schedule_config.REMINDER_WINDOW_DAYS,
        db: Optional[Session] = None
    ) -> List[ScheduledDose]:
        """
        Future and currently due doses over the next `days` days

        Past-due doses that were never logged do not appear here; they
        show up as missed in today's schedule.
        """
        def make_window(reference: datetime) -> ScheduleWindow:
            return MultiDayWindow(reference.date(), days)

        if db:
            return await self._build(db, patient_id, now, make_window)

        with get_db_context() as session:
            return await self._build(session, patient_id, now, make_window)


# Singleton instance
schedule_service = ScheduleService()
