"""
Tools Package
Pure scheduling utilities for the DoseTrack system
"""

from .dose_scheduler import (
    DoseScheduler,
    DoseStatus,
    DayBuckets,
    DailyOccurrences,
    DoseLogRecord,
    MedicationRecord,
    MultiDayWindow,
    ScheduledDose,
    ScheduleInputError,
    SingleDayWindow,
    build_schedule,
    classify_status,
    daily_occurrences,
    day_buckets,
    dose_scheduler,
    find_matching_log,
    is_active_on,
)

__all__ = [
    "DoseScheduler",
    "DoseStatus",
    "DayBuckets",
    "DailyOccurrences",
    "DoseLogRecord",
    "MedicationRecord",
    "MultiDayWindow",
    "ScheduledDose",
    "ScheduleInputError",
    "SingleDayWindow",
    "build_schedule",
    "classify_status",
    "daily_occurrences",
    "day_buckets",
    "dose_scheduler",
    "find_matching_log",
    "is_active_on",
]
