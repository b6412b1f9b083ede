"""
Dose Scheduler
Projects a daily dose schedule from medication frequencies and classifies each
occurrence against the recorded dose logs.
"""

import logging
from typing import Any, Iterator, List, Optional, Sequence, Union
from dataclasses import dataclass, field
from datetime import datetime, date, time, timedelta, timezone
from enum import Enum


logger = logging.getLogger(__name__)


# Dosing window: occurrences are spread evenly over [08:00, 20:00)
DAY_START = time(8, 0)
DOSING_WINDOW_MINUTES = 12 * 60

# A log counts toward an occurrence if taken up to 2h early or 4h late
EARLY_MATCH_WINDOW = timedelta(hours=2)
DUE_WINDOW = timedelta(hours=4)

DEFAULT_LOOKAHEAD_DAYS = 7


class ScheduleInputError(ValueError):
    """Raised when medication or log data cannot be interpreted"""


class DoseStatus(str, Enum):
    """Lifecycle status of a scheduled dose"""
    PENDING = "pending"
    LATE = "late"
    MISSED = "missed"
    TAKEN = "taken"


# ==================== INPUT NORMALIZATION ====================

def _parse_date(value: Any, field_name: str) -> date:
    """Coerce a date, datetime or ISO string to a calendar date"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            # Timestamps such as "2024-03-01T00:00:00" keep only their day
            return datetime.fromisoformat(text).date()
        except ValueError:
            raise ScheduleInputError(f"Cannot parse {field_name}: {value!r}") from None
    raise ScheduleInputError(f"Unsupported {field_name} type: {type(value).__name__}")


def _parse_instant(value: Any, field_name: str) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            raise ScheduleInputError(f"Cannot parse {field_name}: {value!r}") from None
    raise ScheduleInputError(f"Unsupported {field_name} type: {type(value).__name__}")


def _align(instant: datetime, tz) -> datetime:
    """
    Express an instant in the reference zone of "now".

    Naive instants are assumed to already be in that zone. When the reference
    is naive, aware instants are converted to UTC and made naive.
    """
    if tz is None:
        if instant.tzinfo is None:
            return instant
        return instant.astimezone(timezone.utc).replace(tzinfo=None)
    if instant.tzinfo is None:
        return instant.replace(tzinfo=tz)
    return instant.astimezone(tz)


# ==================== DATA MODEL ====================

@dataclass(frozen=True)
class MedicationRecord:
    """A medication as seen by the scheduler"""
    id: Any
    name: str
    frequency_per_day: int
    start_date: date
    end_date: Optional[date] = None
    dose: str = ""
    category_id: Any = None

    def __post_init__(self):
        start = _parse_date(self.start_date, "start_date")
        end = _parse_date(self.end_date, "end_date") if self.end_date is not None else None
        if end is not None and end < start:
            raise ScheduleInputError(
                f"Medication {self.name!r} ends ({end}) before it starts ({start})"
            )
        object.__setattr__(self, "start_date", start)
        object.__setattr__(self, "end_date", end)

    @classmethod
    def from_object(cls, obj: Any) -> "MedicationRecord":
        """Build from any object exposing the medication attributes (e.g. an ORM row)"""
        return cls(
            id=obj.id,
            name=obj.name,
            frequency_per_day=obj.frequency_per_day,
            start_date=obj.start_date,
            end_date=obj.end_date,
            dose=getattr(obj, "dose", "") or "",
            category_id=getattr(obj, "category_id", None),
        )


@dataclass(frozen=True)
class DoseLogRecord:
    """A recorded dose as seen by the scheduler"""
    id: Any
    medication_id: Any
    timestamp_taken: datetime
    scheduled_time: Optional[datetime] = None
    taken_on_time: bool = False
    reward_earned: bool = False

    def __post_init__(self):
        object.__setattr__(
            self, "timestamp_taken", _parse_instant(self.timestamp_taken, "timestamp_taken")
        )
        if self.scheduled_time is not None:
            object.__setattr__(
                self, "scheduled_time", _parse_instant(self.scheduled_time, "scheduled_time")
            )


@dataclass(frozen=True)
class DayBuckets:
    """Temporal tags used by the reminder view; independent of status"""
    is_today: bool = False
    is_tomorrow: bool = False
    is_upcoming: bool = False
    is_due: bool = False


@dataclass(frozen=True)
class ScheduledDose:
    """One classified occurrence of a medication on a given day"""
    medication: MedicationRecord
    dose_index: int
    scheduled_time: datetime
    status: DoseStatus
    buckets: DayBuckets = field(default_factory=DayBuckets)
    log: Optional[DoseLogRecord] = None

    @property
    def dose_number(self) -> int:
        """1-based position within the day ("dose 2 of 3")"""
        return self.dose_index + 1

    @property
    def sort_key(self):
        return (
            self.scheduled_time,
            self.medication.name,
            self.dose_index,
            str(self.medication.id),
        )

    def to_dict(self) -> dict:
        return {
            "medication_id": self.medication.id,
            "medication_name": self.medication.name,
            "dose": self.medication.dose,
            "dose_number": self.dose_number,
            "frequency_per_day": self.medication.frequency_per_day,
            "scheduled_time": self.scheduled_time.isoformat(),
            "status": self.status.value,
            "is_today": self.buckets.is_today,
            "is_tomorrow": self.buckets.is_tomorrow,
            "is_upcoming": self.buckets.is_upcoming,
            "is_due": self.buckets.is_due,
            "log_id": self.log.id if self.log else None,
        }


@dataclass(frozen=True)
class SingleDayWindow:
    """Every occurrence of one day, whatever its status"""
    day: date

    def days(self) -> List[date]:
        return [_parse_date(self.day, "day")]


@dataclass(frozen=True)
class MultiDayWindow:
    """Forward-looking window used for reminders"""
    start_day: date
    day_count: int = DEFAULT_LOOKAHEAD_DAYS

    def days(self) -> List[date]:
        if self.day_count < 0:
            raise ScheduleInputError(f"day_count must not be negative: {self.day_count}")
        start = _parse_date(self.start_day, "start_day")
        return [start + timedelta(days=offset) for offset in range(self.day_count)]


ScheduleWindow = Union[SingleDayWindow, MultiDayWindow]


# ==================== OCCURRENCE GENERATION ====================

def effective_frequency(frequency_per_day: int) -> int:
    """Clamp non-positive frequencies to a single daily dose"""
    if frequency_per_day is None or frequency_per_day < 1:
        logger.debug(f"Clamping frequency_per_day={frequency_per_day!r} to 1")
        return 1
    if frequency_per_day > DOSING_WINDOW_MINUTES:
        raise ScheduleInputError(
            f"frequency_per_day={frequency_per_day} exceeds the "
            f"{DOSING_WINDOW_MINUTES} whole minutes of the dosing window"
        )
    return int(frequency_per_day)


class DailyOccurrences:
    """
    Scheduled instants of one medication on one day.

    Iterating is lazy and may be repeated; each pass yields the same
    strictly increasing instants within [08:00, 20:00).
    """

    def __init__(self, frequency_per_day: int, day: date, tzinfo=None):
        self.count = effective_frequency(frequency_per_day)
        self.day = day
        self.tzinfo = tzinfo

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[datetime]:
        start = datetime.combine(self.day, DAY_START, tzinfo=self.tzinfo)
        for i in range(self.count):
            offset_minutes = (i * DOSING_WINDOW_MINUTES) // self.count
            yield start + timedelta(minutes=offset_minutes)


def daily_occurrences(medication: MedicationRecord, day: date, tzinfo=None) -> DailyOccurrences:
    """Occurrence instants for a medication on a given day"""
    return DailyOccurrences(medication.frequency_per_day, day, tzinfo)


def is_active_on(medication: MedicationRecord, day: Union[date, datetime, str]) -> bool:
    """Whether the medication's date range covers the calendar day"""
    target = _parse_date(day, "day")
    if target < medication.start_date:
        return False
    return medication.end_date is None or target <= medication.end_date


# ==================== CLASSIFICATION ====================

def find_matching_log(
    scheduled_time: datetime,
    logs: Sequence[DoseLogRecord],
) -> Optional[DoseLogRecord]:
    """First log taken within [scheduled - 2h, scheduled + 4h]"""
    earliest = scheduled_time - EARLY_MATCH_WINDOW
    latest = scheduled_time + DUE_WINDOW
    for log in logs:
        if earliest <= _align(log.timestamp_taken, scheduled_time.tzinfo) <= latest:
            return log
    return None


def classify_status(scheduled_time: datetime, now: datetime, matched: bool) -> DoseStatus:
    """Status of an occurrence; a matching log always wins"""
    if matched:
        return DoseStatus.TAKEN
    # missed from exactly scheduled + 4h on; is_due still holds at that instant
    if now >= scheduled_time + DUE_WINDOW:
        return DoseStatus.MISSED
    if now > scheduled_time:
        return DoseStatus.LATE
    return DoseStatus.PENDING


def is_due(scheduled_time: datetime, now: datetime) -> bool:
    return scheduled_time <= now <= scheduled_time + DUE_WINDOW


def day_buckets(scheduled_time: datetime, now: datetime) -> DayBuckets:
    """Today/tomorrow/upcoming/due tags relative to now"""
    today = now.date()
    tomorrow = today + timedelta(days=1)
    scheduled_day = scheduled_time.date()
    return DayBuckets(
        is_today=scheduled_day == today,
        is_tomorrow=scheduled_day == tomorrow,
        is_upcoming=scheduled_day > tomorrow and scheduled_time > now,
        is_due=is_due(scheduled_time, now),
    )


# ==================== SCHEDULE BUILDER ====================

class DoseScheduler:
    """
    Builds classified dose schedules.

    Pure: "now" is always supplied by the caller and no state is kept
    between calls.
    """

    def build_schedule(
        self,
        medications: Sequence[MedicationRecord],
        logs: Sequence[DoseLogRecord],
        now: Union[datetime, str],
        window: ScheduleWindow,
    ) -> List[ScheduledDose]:
        """
        Expand the window into ordered, classified occurrences

        Args:
            medications: Medications to schedule
            logs: Recorded doses used to mark occurrences as taken
            now: Reference instant; its zone is the schedule's zone
            window: SingleDayWindow (all occurrences) or MultiDayWindow
                (only future or currently due occurrences)

        Returns:
            ScheduledDose list ordered by time, medication name, dose index
        """
        now = _parse_instant(now, "now")
        tz = now.tzinfo
        forward_only = isinstance(window, MultiDayWindow)

        logs_by_medication = {}
        for log in logs:
            logs_by_medication.setdefault(log.medication_id, []).append(log)

        doses: List[ScheduledDose] = []
        for day in window.days():
            for medication in medications:
                if not is_active_on(medication, day):
                    continue
                med_logs = logs_by_medication.get(medication.id, [])

                for index, scheduled_time in enumerate(daily_occurrences(medication, day, tz)):
                    if forward_only and not (scheduled_time > now or is_due(scheduled_time, now)):
                        continue

                    log = find_matching_log(scheduled_time, med_logs)
                    doses.append(ScheduledDose(
                        medication=medication,
                        dose_index=index,
                        scheduled_time=scheduled_time,
                        status=classify_status(scheduled_time, now, log is not None),
                        buckets=day_buckets(scheduled_time, now),
                        log=log,
                    ))

        doses.sort(key=lambda d: d.sort_key)
        return doses

    def today(
        self,
        medications: Sequence[MedicationRecord],
        logs: Sequence[DoseLogRecord],
        now: datetime,
    ) -> List[ScheduledDose]:
        """All of today's occurrences, as shown on the dose-logging screen"""
        now = _parse_instant(now, "now")
        return self.build_schedule(medications, logs, now, SingleDayWindow(now.date()))

    def reminders(
        self,
        medications: Sequence[MedicationRecord],
        logs: Sequence[DoseLogRecord],
        now: datetime,
        days: int = DEFAULT_LOOKAHEAD_DAYS,
    ) -> List[ScheduledDose]:
        """Future and currently due occurrences over the next `days` days"""
        now = _parse_instant(now, "now")
        return self.build_schedule(medications, logs, now, MultiDayWindow(now.date(), days))


# Singleton instance
dose_scheduler = DoseScheduler()


def build_schedule(
    medications: Sequence[MedicationRecord],
    logs: Sequence[DoseLogRecord],
    now: Union[datetime, str],
    window: ScheduleWindow,
) -> List[ScheduledDose]:
    """Convenience function to build a schedule"""
    return dose_scheduler.build_schedule(medications, logs, now, window)
