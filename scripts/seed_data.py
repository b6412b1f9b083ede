#!/usr/bin/env python
"""
Seed Data
Script to seed the database with a demo patient, medications and dose history
"""

import sys
import os
import argparse
import logging
import random
from datetime import timedelta, date
from typing import List

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import SessionLocal, init_db
from models import Patient, Category, Medication, DoseLog
from services.dose_log_service import is_on_time
from tools.dose_scheduler import MedicationRecord, daily_occurrences


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEMO_EMAIL = "demo@dosetrack.app"


def seed_demo_patient(db) -> Patient:
    """Create the demo patient unless it already exists"""
    existing = db.query(Patient).filter(Patient.email == DEMO_EMAIL).first()
    if existing:
        logger.info("Demo patient already exists")
        return existing

    patient = Patient(
        email=DEMO_EMAIL,
        display_name="Demo",
        timezone="UTC",
        is_active=True
    )
    db.add(patient)
    db.flush()

    logger.info(f"Created patient {patient.email} (ID: {patient.id})")
    return patient


def seed_medications(db, patient_id: int) -> List[Medication]:
    """Add a small regimen split over two categories"""
    heart = Category(patient_id=patient_id, name="Heart")
    diabetes = Category(patient_id=patient_id, name="Diabetes")
    db.add_all([heart, diabetes])
    db.flush()

    start = date.today() - timedelta(days=60)
    regimen = [
        ("Metformin", "500mg tablet", 2, diabetes.id, None),
        ("Lisinopril", "20mg tablet", 1, heart.id, None),
        ("Atorvastatin", "40mg tablet", 1, heart.id, None),
        ("Amoxicillin", "250mg capsule", 3, None, date.today() + timedelta(days=4)),
    ]

    medications = []
    for name, dose, frequency, category_id, end_date in regimen:
        medication = Medication(
            patient_id=patient_id,
            category_id=category_id,
            name=name,
            dose=dose,
            frequency_per_day=frequency,
            start_date=start if end_date is None else date.today() - timedelta(days=3),
            end_date=end_date
        )
        db.add(medication)
        medications.append(medication)

    db.flush()
    for medication in medications:
        logger.info(f"  Added: {medication.name} x{medication.frequency_per_day}/day")
    return medications


def seed_dose_history(db, medications: List[Medication], days: int = 30, rate: float = 0.85):
    """Log past doses, taken with probability `rate` and some delay"""
    random.seed(42)

    today = date.today()
    created = 0

    for medication in medications:
        record = MedicationRecord.from_object(medication)
        for day_offset in range(1, days + 1):
            day = today - timedelta(days=day_offset)
            if day < medication.start_date:
                continue

            for slot in daily_occurrences(record, day):
                if random.random() >= rate:
                    continue
                taken_at = slot + timedelta(minutes=random.randint(-20, 90))
                on_time = is_on_time(slot, taken_at)
                db.add(DoseLog(
                    medication_id=medication.id,
                    scheduled_time=slot,
                    timestamp_taken=taken_at,
                    taken_on_time=on_time,
                    reward_earned=on_time
                ))
                created += 1

    db.flush()
    logger.info(f"Created {created} dose logs")


def seed_all(clear_existing: bool = False, days: int = 30):
    """Run all seed operations"""
    init_db()

    db = SessionLocal()

    try:
        if clear_existing:
            logger.info("Clearing existing data...")
            db.query(DoseLog).delete()
            db.query(Medication).delete()
            db.query(Category).delete()
            db.query(Patient).delete()
            db.commit()

        patient = seed_demo_patient(db)
        if not patient.medications:
            medications = seed_medications(db, patient.id)
            seed_dose_history(db, medications, days=days)
        db.commit()

        logger.info(
            f"Seeding complete: {db.query(Patient).count()} patients, "
            f"{db.query(Medication).count()} medications, "
            f"{db.query(DoseLog).count()} dose logs"
        )
        logger.info(f"Demo patient ID: {patient.id}")

    except Exception as e:
        db.rollback()
        logger.error(f"Error during seeding: {e}")
        raise
    finally:
        db.close()


def main():
    parser = argparse.ArgumentParser(
        description="Seed the database with demo data"
    )
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear existing data before seeding"
    )
    parser.add_argument(
        "--days",
        type=int,
        default=30,
        help="Days of dose history to generate"
    )

    args = parser.parse_args()

    seed_all(clear_existing=args.clear, days=args.days)


if __name__ == "__main__":
    main()
