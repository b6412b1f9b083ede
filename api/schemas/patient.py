"""
Patient Schemas
Pydantic models for patient-related API requests and responses
"""

from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, ConfigDict


class PatientCreate(BaseModel):
    """Schema for creating a new patient"""
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    display_name: Optional[str] = Field(None, max_length=100)
    timezone: Optional[str] = Field(None, max_length=50, description="IANA zone, e.g. Europe/Berlin")


class PatientResponse(BaseModel):
    """Schema for patient response"""
    id: int
    email: str
    display_name: Optional[str] = None
    timezone: Optional[str] = None
    is_active: bool = True
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
