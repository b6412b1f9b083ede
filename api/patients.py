"""
Patients API Router
Endpoints for patient management
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.patient import PatientCreate, PatientResponse


router = APIRouter(prefix="/patients", tags=["patients"])


@router.post("/", response_model=PatientResponse, status_code=status.HTTP_201_CREATED)
async def create_patient(
    patient_data: PatientCreate,
    db: Session = Depends(get_db)
):
    """
    Register a new patient

    - **email**: Unique email address
    - **timezone**: IANA zone used to project the daily schedule
    """
    patient_service = services.get_patient_service()

    try:
        return await patient_service.create_patient(
            email=patient_data.email,
            display_name=patient_data.display_name,
            timezone=patient_data.timezone,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("/{patient_id}", response_model=PatientResponse)
async def get_patient(
    patient_id: int,
    db: Session = Depends(get_db)
):
    """Get a patient by ID"""
    patient_service = services.get_patient_service()

    patient = await patient_service.get_patient(patient_id, db=db)
    if not patient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Patient {patient_id} not found"
        )
    return patient
