"""
Pytest Configuration and Shared Fixtures
========================================

This module provides shared fixtures for all DoseTrack tests.
Fixtures include database sessions, test clients and sample data.
"""

import os
import sys
from datetime import datetime, date, timedelta
from typing import Generator, Dict, Any

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import Base
from api.deps import get_db
from models import Patient, Medication, DoseLog, Category
from app import app


# ==================== DATABASE FIXTURES ====================

@pytest.fixture(scope="function")
def test_engine():
    """Create a test database engine with in-memory SQLite"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    # Enable foreign keys for SQLite
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """Create a test database session"""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=test_engine
    )

    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a FastAPI test client with database override"""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


# ==================== SAMPLE DATA FIXTURES ====================

@pytest.fixture
def today() -> date:
    """Fixed calendar day used across schedule tests"""
    return date(2024, 3, 12)


@pytest.fixture
def sample_patient_data() -> Dict[str, Any]:
    """Sample patient data for creating test patients"""
    return {
        "email": "jane.doe@example.com",
        "display_name": "Jane",
        "timezone": "UTC",
        "is_active": True
    }


@pytest.fixture
def sample_medication_data(today: date) -> Dict[str, Any]:
    """Sample medication data"""
    return {
        "name": "Metformin",
        "dose": "500mg tablet",
        "frequency_per_day": 2,
        "start_date": today - timedelta(days=10),
        "end_date": None
    }


# ==================== MODEL FIXTURES ====================

@pytest.fixture
def test_patient(db_session: Session, sample_patient_data: Dict) -> Patient:
    """Create a test patient in the database"""
    patient = Patient(**sample_patient_data)
    db_session.add(patient)
    db_session.commit()
    db_session.refresh(patient)
    return patient


@pytest.fixture
def ny_patient(db_session: Session) -> Patient:
    """Patient living in New York (UTC-4 on the sample day)"""
    patient = Patient(email="ny@example.com", display_name="NY", timezone="America/New_York")
    db_session.add(patient)
    db_session.commit()
    db_session.refresh(patient)
    return patient


@pytest.fixture
def test_category(db_session: Session, test_patient: Patient) -> Category:
    """Create a test category"""
    category = Category(patient_id=test_patient.id, name="Diabetes")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def test_medication(db_session: Session, test_patient: Patient, sample_medication_data: Dict) -> Medication:
    """Create a test medication"""
    medication = Medication(patient_id=test_patient.id, **sample_medication_data)
    db_session.add(medication)
    db_session.commit()
    db_session.refresh(medication)
    return medication


@pytest.fixture
def test_dose_log(db_session: Session, test_medication: Medication, today: date) -> DoseLog:
    """A dose of the 08:00 slot taken at 08:30"""
    log = DoseLog(
        medication_id=test_medication.id,
        scheduled_time=datetime.combine(today, datetime.min.time()).replace(hour=8),
        timestamp_taken=datetime.combine(today, datetime.min.time()).replace(hour=8, minute=30),
        taken_on_time=True,
        reward_earned=True
    )
    db_session.add(log)
    db_session.commit()
    db_session.refresh(log)
    return log


# ==================== PYTEST CONFIGURATION ====================

def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "api: mark test as an API test")
    config.addinivalue_line("markers", "database: mark test as requiring database")
