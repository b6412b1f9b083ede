"""
Medications API Router
Endpoints for medication and category management
"""

from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.medication import (
    CategoryCreate,
    CategoryResponse,
    MedicationCreate,
    MedicationList,
    MedicationResponse,
    MedicationUpdate,
)


router = APIRouter(prefix="/medications", tags=["medications"])
categories_router = APIRouter(prefix="/categories", tags=["categories"])


@router.post("/", response_model=MedicationResponse, status_code=status.HTTP_201_CREATED)
async def create_medication(
    medication_data: MedicationCreate,
    db: Session = Depends(get_db)
):
    """
    Add a new medication for a patient

    - **name**: Medication name
    - **dose**: Dose description (e.g., "1 tablet")
    - **frequency_per_day**: Doses per day, spread over 08:00-20:00
    - **start_date** / **end_date**: Inclusive active range
    """
    medication_service = services.get_medication_service()

    try:
        return await medication_service.add_medication(
            patient_id=medication_data.patient_id,
            name=medication_data.name,
            dose=medication_data.dose,
            frequency_per_day=medication_data.frequency_per_day,
            start_date=medication_data.start_date,
            end_date=medication_data.end_date,
            category_id=medication_data.category_id,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("/patient/{patient_id}", response_model=MedicationList)
async def get_patient_medications(
    patient_id: int,
    active_on: Optional[date] = Query(None, description="Only medications active on this day"),
    db: Session = Depends(get_db)
):
    """
    Get all medications for a patient, ordered by name
    """
    medication_service = services.get_medication_service()

    medications = await medication_service.get_patient_medications(
        patient_id,
        active_on=active_on,
        db=db
    )

    return MedicationList(
        medications=[MedicationResponse.model_validate(m) for m in medications],
        total=len(medications)
    )


@router.get("/{medication_id}", response_model=MedicationResponse)
async def get_medication(
    medication_id: int,
    db: Session = Depends(get_db)
):
    """Get a medication by ID"""
    medication_service = services.get_medication_service()

    medication = await medication_service.get_medication(medication_id, db=db)
    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )
    return medication


@router.put("/{medication_id}", response_model=MedicationResponse)
async def update_medication(
    medication_id: int,
    medication_data: MedicationUpdate,
    db: Session = Depends(get_db)
):
    """
    Update medication information
    """
    medication_service = services.get_medication_service()

    updates = medication_data.model_dump(exclude_unset=True)
    # end_date and category_id may be cleared explicitly; the rest cannot be null
    updates = {
        k: v for k, v in updates.items()
        if v is not None or k in ("end_date", "category_id")
    }

    try:
        if updates:
            medication = await medication_service.update_medication(medication_id, updates, db=db)
        else:
            medication = await medication_service.get_medication(medication_id, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    if not medication:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )

    return medication


@router.delete("/{medication_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_medication(
    medication_id: int,
    db: Session = Depends(get_db)
):
    """Delete a medication and its dose history"""
    medication_service = services.get_medication_service()

    deleted = await medication_service.delete_medication(medication_id, db=db)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Medication {medication_id} not found"
        )


# ==================== CATEGORIES ====================

@categories_router.post("/", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    category_data: CategoryCreate,
    db: Session = Depends(get_db)
):
    """Create a medication category"""
    medication_service = services.get_medication_service()

    try:
        return await medication_service.add_category(
            patient_id=category_data.patient_id,
            name=category_data.name,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@categories_router.get("/patient/{patient_id}", response_model=List[CategoryResponse])
async def get_patient_categories(
    patient_id: int,
    db: Session = Depends(get_db)
):
    """List a patient's categories"""
    medication_service = services.get_medication_service()
    return await medication_service.get_patient_categories(patient_id, db=db)


@categories_router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    db: Session = Depends(get_db)
):
    """Delete a category; its medications are kept without a category"""
    medication_service = services.get_medication_service()

    deleted = await medication_service.delete_category(category_id, db=db)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Category {category_id} not found"
        )
