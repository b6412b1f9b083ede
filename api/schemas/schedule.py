"""
Schedule Schemas
Pydantic models for dose logs, today's schedule and reminders
"""

from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict


# ==================== DOSE LOGS ====================

class DoseLogCreate(BaseModel):
    """Schema for recording a dose"""
    medication_id: int
    scheduled_time: datetime = Field(..., description="Slot the dose belongs to (naive: patient local time)")
    taken_at: Optional[datetime] = Field(None, description="Defaults to the time of the request (naive: patient local time)")


class DoseLogResponse(BaseModel):
    """Schema for dose log response (timestamps in UTC)"""
    id: int
    medication_id: int
    scheduled_time: datetime
    timestamp_taken: datetime
    taken_on_time: bool
    reward_earned: bool

    model_config = ConfigDict(from_attributes=True)


# ==================== SCHEDULE ====================

class ScheduledDoseResponse(BaseModel):
    """One occurrence in a schedule"""
    medication_id: int
    medication_name: str
    dose: str
    dose_number: int
    frequency_per_day: int
    scheduled_time: datetime
    status: str
    is_today: bool
    is_tomorrow: bool
    is_upcoming: bool
    is_due: bool
    log_id: Optional[int] = None


class TodaySchedule(BaseModel):
    """Every dose of the day with its status"""
    patient_id: int
    generated_at: datetime
    doses: List[ScheduledDoseResponse]
    total: int
    taken: int
    pending: int
    late: int
    missed: int


class ReminderList(BaseModel):
    """Forward-looking doses grouped the way the reminder view shows them"""
    patient_id: int
    generated_at: datetime
    days: int
    due: List[ScheduledDoseResponse]
    today: List[ScheduledDoseResponse]
    tomorrow: List[ScheduledDoseResponse]
    upcoming: List[ScheduledDoseResponse]
    total: int
