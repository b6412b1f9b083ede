"""
Services Module
Business logic layer for the DoseTrack application
"""

from services.patient_service import PatientService, patient_service
from services.medication_service import MedicationService, medication_service
from services.dose_log_service import DoseLogService, dose_log_service
from services.schedule_service import ScheduleService, schedule_service, group_reminders


__all__ = [
    # Service classes
    "PatientService",
    "MedicationService",
    "DoseLogService",
    "ScheduleService",
    # Singleton instances
    "patient_service",
    "medication_service",
    "dose_log_service",
    "schedule_service",
    # Helpers
    "group_reminders",
]
