"""
Tests for Schedule Service
Tests schedule projection from stored medications and dose logs
"""

import pytest
from datetime import datetime, date, timedelta, timezone
from zoneinfo import ZoneInfo

from models import DoseLog, Medication
from services.schedule_service import ScheduleService, group_reminders
from tools.dose_scheduler import DoseStatus


# =============================================================================
# Test Fixtures
# =============================================================================

@pytest.fixture
def schedule_service():
    """Create schedule service instance"""
    return ScheduleService()


# =============================================================================
# Test Today's Schedule
# =============================================================================

class TestTodaySchedule:
    """Tests for the single-day schedule"""

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_without_logs(self, schedule_service, db_session, test_patient, test_medication, today):
        doses = await schedule_service.get_today_schedule(
            test_patient.id,
            now=datetime.combine(today, datetime.min.time()).replace(hour=9),
            db=db_session
        )

        assert [d.scheduled_time.hour for d in doses] == [8, 14]
        assert [d.status for d in doses] == [DoseStatus.LATE, DoseStatus.PENDING]
        assert all(d.scheduled_time.tzinfo is not None for d in doses)

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_stored_log_marks_dose_taken(
        self, schedule_service, db_session, test_patient, test_medication, test_dose_log, today
    ):
        doses = await schedule_service.get_today_schedule(
            test_patient.id,
            now=datetime(today.year, today.month, today.day, 9, 0),
            db=db_session
        )

        assert doses[0].status == DoseStatus.TAKEN
        assert doses[0].log.id == test_dose_log.id
        assert doses[1].status == DoseStatus.PENDING

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_patient_zone_is_used(self, schedule_service, db_session, ny_patient, today):
        medication = Medication(
            patient_id=ny_patient.id, name="Levothyroxine", dose="75mcg",
            frequency_per_day=1, start_date=today
        )
        db_session.add(medication)
        db_session.commit()

        # 08:30 EDT is stored as 12:30 UTC
        db_session.add(DoseLog(
            medication_id=medication.id,
            scheduled_time=datetime(2024, 3, 12, 12, 0),
            timestamp_taken=datetime(2024, 3, 12, 12, 30),
            taken_on_time=True,
            reward_earned=True
        ))
        db_session.commit()

        doses = await schedule_service.get_today_schedule(
            ny_patient.id,
            now=datetime(2024, 3, 12, 14, 0, tzinfo=timezone.utc),
            db=db_session
        )

        assert len(doses) == 1
        assert doses[0].scheduled_time == datetime(2024, 3, 12, 8, 0, tzinfo=ZoneInfo("America/New_York"))
        assert doses[0].status == DoseStatus.TAKEN

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_ended_medication_not_scheduled(self, schedule_service, db_session, test_patient, today):
        db_session.add(Medication(
            patient_id=test_patient.id, name="Amoxicillin", dose="250mg",
            frequency_per_day=3, start_date=today - timedelta(days=7),
            end_date=today - timedelta(days=1)
        ))
        db_session.commit()

        doses = await schedule_service.get_today_schedule(
            test_patient.id, now=datetime(2024, 3, 12, 9, 0), db=db_session
        )

        assert doses == []

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_unknown_patient(self, schedule_service, db_session):
        with pytest.raises(ValueError):
            await schedule_service.get_today_schedule(999, now=datetime(2024, 3, 12, 9, 0), db=db_session)


# =============================================================================
# Test Reminders
# =============================================================================

class TestReminders:
    """Tests for the seven-day reminder window"""

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_past_due_dose_omitted(self, schedule_service, db_session, test_patient, test_medication):
        now = datetime(2024, 3, 12, 12, 30)
        doses = await schedule_service.get_reminders(test_patient.id, now=now, db=db_session)

        assert len(doses) == 13
        assert doses[0].scheduled_time.hour == 14
        assert doses[0].scheduled_time.date() == date(2024, 3, 12)

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_grouping(self, schedule_service, db_session, test_patient, test_medication):
        now = datetime(2024, 3, 12, 15, 0)
        doses = await schedule_service.get_reminders(test_patient.id, now=now, db=db_session)
        groups = group_reminders(doses)

        assert len(groups["due"]) == 1
        assert len(groups["today"]) == 1
        assert len(groups["tomorrow"]) == 2
        assert len(groups["upcoming"]) == 10
        assert groups["due"][0] is groups["today"][0]

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_custom_day_count(self, schedule_service, db_session, test_patient, test_medication):
        now = datetime(2024, 3, 12, 7, 0)
        doses = await schedule_service.get_reminders(test_patient.id, now=now, days=2, db=db_session)

        assert len(doses) == 4
        assert {d.scheduled_time.date() for d in doses} == {date(2024, 3, 12), date(2024, 3, 13)}

    @pytest.mark.asyncio
    @pytest.mark.database
    async def test_future_medication_appears_on_start_day(self, schedule_service, db_session, test_patient, today):
        db_session.add(Medication(
            patient_id=test_patient.id, name="Prednisone", dose="5mg",
            frequency_per_day=1, start_date=today + timedelta(days=3),
            end_date=today + timedelta(days=4)
        ))
        db_session.commit()

        doses = await schedule_service.get_reminders(
            test_patient.id, now=datetime(2024, 3, 12, 7, 0), db=db_session
        )

        assert [d.scheduled_time.date() for d in doses] == [date(2024, 3, 15), date(2024, 3, 16)]
        assert all(d.buckets.is_upcoming for d in doses)
