"""
Tests for the development seeding script
"""

import pytest

from models import Category, DoseLog, Medication
from scripts.seed_data import seed_demo_patient, seed_dose_history, seed_medications


@pytest.mark.database
def test_seed_demo_patient_is_idempotent(db_session):
    first = seed_demo_patient(db_session)
    db_session.commit()
    second = seed_demo_patient(db_session)

    assert first.id == second.id


@pytest.mark.database
def test_seeded_history_matches_slots(db_session):
    patient = seed_demo_patient(db_session)
    medications = seed_medications(db_session, patient.id)
    seed_dose_history(db_session, medications, days=5)
    db_session.commit()

    assert db_session.query(Medication).count() == 4
    assert db_session.query(Category).count() == 2

    logs = db_session.query(DoseLog).all()
    assert logs
    for log in logs:
        assert log.scheduled_time.hour >= 8
        assert log.scheduled_time.hour < 20
        assert log.reward_earned == log.taken_on_time
