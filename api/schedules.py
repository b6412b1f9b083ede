"""
Schedules API Router
Endpoints for today's dose list, reminders and dose logging
"""

from typing import List, Optional
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, get_current_patient_id, services
from api.schemas.schedule import (
    DoseLogCreate,
    DoseLogResponse,
    ReminderList,
    ScheduledDoseResponse,
    TodaySchedule,
)
from config import schedule_config
from services.schedule_service import group_reminders
from tools.dose_scheduler import DoseStatus


router = APIRouter(prefix="/schedules", tags=["schedules"])
doses_router = APIRouter(prefix="/doses", tags=["doses"])


def _to_response(dose) -> ScheduledDoseResponse:
    return ScheduledDoseResponse(**dose.to_dict())


async def _reference_time(patient_id: int, at: Optional[datetime], db: Session) -> datetime:
    """Requested time, or the current time in the patient's zone"""
    patient_service = services.get_patient_service()
    tz = await patient_service.get_patient_timezone(patient_id, db=db)
    if at is None:
        return datetime.now(tz)
    return at.replace(tzinfo=tz) if at.tzinfo is None else at.astimezone(tz)


@router.get("/patient/{patient_id}/today", response_model=TodaySchedule)
async def get_today_schedule(
    patient_id: int = Depends(get_current_patient_id),
    at: Optional[datetime] = Query(None, description="Reference time (default: now)"),
    db: Session = Depends(get_db)
):
    """
    Every dose scheduled today with its status (pending, late, missed, taken)
    """
    schedule_service = services.get_schedule_service()

    try:
        now = await _reference_time(patient_id, at, db)
        doses = await schedule_service.get_today_schedule(patient_id, now=now, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    counts = {s: sum(1 for d in doses if d.status == s) for s in DoseStatus}

    return TodaySchedule(
        patient_id=patient_id,
        generated_at=now,
        doses=[_to_response(d) for d in doses],
        total=len(doses),
        taken=counts[DoseStatus.TAKEN],
        pending=counts[DoseStatus.PENDING],
        late=counts[DoseStatus.LATE],
        missed=counts[DoseStatus.MISSED]
    )


@router.get("/patient/{patient_id}/reminders", response_model=ReminderList)
async def get_reminders(
    patient_id: int = Depends(get_current_patient_id),
    at: Optional[datetime] = Query(None, description="Reference time (default: now)"),
    days: int = Query(schedule_config.REMINDER_WINDOW_DAYS, ge=1, le=31),
    db: Session = Depends(get_db)
):
    """
    Upcoming and currently due doses for the next `days` days
    """
    schedule_service = services.get_schedule_service()

    try:
        now = await _reference_time(patient_id, at, db)
        doses = await schedule_service.get_reminders(patient_id, now=now, days=days, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    groups = group_reminders(doses)

    return ReminderList(
        patient_id=patient_id,
        generated_at=now,
        days=days,
        due=[_to_response(d) for d in groups["due"]],
        today=[_to_response(d) for d in groups["today"]],
        tomorrow=[_to_response(d) for d in groups["tomorrow"]],
        upcoming=[_to_response(d) for d in groups["upcoming"]],
        total=len(doses)
    )


# ==================== DOSE LOGS ====================

@doses_router.post("/", response_model=DoseLogResponse, status_code=status.HTTP_201_CREATED)
async def record_dose(
    dose_data: DoseLogCreate,
    db: Session = Depends(get_db)
):
    """
    Mark a scheduled dose as taken

    Recording the same slot again returns the existing log.
    """
    dose_log_service = services.get_dose_log_service()

    try:
        return await dose_log_service.record_dose(
            medication_id=dose_data.medication_id,
            scheduled_time=dose_data.scheduled_time,
            taken_at=dose_data.taken_at,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )


@doses_router.get("/patient/{patient_id}", response_model=List[DoseLogResponse])
async def get_dose_logs(
    patient_id: int = Depends(get_current_patient_id),
    start: Optional[datetime] = Query(None, description="Earliest timestamp_taken (naive: patient local time)"),
    end: Optional[datetime] = Query(None, description="Latest timestamp_taken (naive: patient local time)"),
    db: Session = Depends(get_db)
):
    """A patient's dose history, newest first"""
    dose_log_service = services.get_dose_log_service()
    return await dose_log_service.get_logs(patient_id, start=start, end=end, db=db)
