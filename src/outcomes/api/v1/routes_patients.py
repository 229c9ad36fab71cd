from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.outcomes.domain.models.common import PaginatedResult
from src.outcomes.domain.models.patient import Patient, PatientCreate, PatientUpdate, PatientWithCounts
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.security import get_api_key, get_current_user
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.patients.service import patient_service

router = APIRouter(
    prefix="/patients",
    tags=["patients"],
    dependencies=[Depends(get_api_key)],
)


class SoftDeleteRequest(BaseModel):
    reason: Optional[str] = None


class BulkSoftDeleteRequest(BaseModel):
    ids: List[str] = Field(min_length=1)
    reason: Optional[str] = None


@router.get("/", response_model=PaginatedResult[PatientWithCounts])
async def list_patients(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    include_deleted: bool = False,
) -> PaginatedResult[PatientWithCounts]:
    return patient_service.find_all(page=page, limit=limit, include_deleted=include_deleted)


@router.get("/deleted", response_model=PaginatedResult[Patient])
async def list_deleted_patients(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> PaginatedResult[Patient]:
    return patient_service.find_deleted(page=page, limit=limit)


@router.get("/search", response_model=List[Patient])
async def search_patients(q: str = Query(..., min_length=1)) -> List[Patient]:
    return patient_service.search_by_external_id(q)


@router.get("/external/{external_id}", response_model=Patient)
async def get_patient_by_external_id(external_id: str) -> Patient:
    return patient_service.get_by_external_id(external_id)


@router.post("/soft-delete")
async def soft_delete_patients(
    payload: BulkSoftDeleteRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> dict:
    deleted = patient_service.soft_delete_many(payload.ids, deleted_by=current_user.id, reason=payload.reason)
    audit_service.log_event(
        action="soft_delete_patients",
        resource_type="patient",
        actor_id=current_user.id,
        extra={"count": deleted},
    )
    return {"deleted": deleted}


@router.get("/{patient_id}", response_model=Patient)
async def get_patient(patient_id: str) -> Patient:
    return patient_service.get_patient(patient_id)


@router.post("/", response_model=Patient, status_code=status.HTTP_201_CREATED)
async def create_patient(
    payload: PatientCreate,
    current_user: UserPublic = Depends(get_current_user),
) -> Patient:
    patient = patient_service.create_patient(payload, current_user)
    audit_service.log_event(
        action="create_patient",
        resource_type="patient",
        resource_id=patient.id,
        actor_id=current_user.id,
    )
    return patient


@router.put("/{patient_id}", response_model=Patient)
async def update_patient(
    patient_id: str,
    payload: PatientUpdate,
    current_user: UserPublic = Depends(get_current_user),
) -> Patient:
    patient = patient_service.update_patient(patient_id, payload)
    audit_service.log_event(
        action="update_patient",
        resource_type="patient",
        resource_id=patient_id,
        actor_id=current_user.id,
    )
    return patient


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_patient(
    patient_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> None:
    patient_service.delete_patient(patient_id)
    audit_service.log_event(
        action="delete_patient",
        resource_type="patient",
        resource_id=patient_id,
        actor_id=current_user.id,
    )


@router.post("/{patient_id}/soft-delete", response_model=Patient)
async def soft_delete_patient(
    patient_id: str,
    payload: SoftDeleteRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> Patient:
    patient = patient_service.soft_delete_patient(patient_id, deleted_by=current_user.id, reason=payload.reason)
    audit_service.log_event(
        action="soft_delete_patient",
        resource_type="patient",
        resource_id=patient_id,
        actor_id=current_user.id,
    )
    return patient


@router.post("/{patient_id}/restore", response_model=Patient)
async def restore_patient(
    patient_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> Patient:
    patient = patient_service.restore_patient(patient_id)
    audit_service.log_event(
        action="restore_patient",
        resource_type="patient",
        resource_id=patient_id,
        actor_id=current_user.id,
    )
    return patient
