from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from src.outcomes.domain.models.common import Note, PaginatedResult
from src.outcomes.domain.models.consultation import Consultation, ConsultationCreate
from src.outcomes.domain.models.patient_case import PatientCase, PatientCaseCreate, PatientCaseUpdate
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.security import get_api_key, get_current_user
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.cases.service import patient_case_service
from src.outcomes.services.consultations.service import consultation_service

router = APIRouter(
    prefix="",
    tags=["cases"],
    dependencies=[Depends(get_api_key)],
)


class NoteCreateRequest(BaseModel):
    note: str = Field(min_length=1)


class SoftDeleteRequest(BaseModel):
    reason: Optional[str] = None


# Cases of one patient


@router.get("/patients/{patient_id}/cases", response_model=List[PatientCase])
async def list_cases(patient_id: str) -> List[PatientCase]:
    return patient_case_service.list_cases(patient_id)


@router.post(
    "/patients/{patient_id}/cases",
    response_model=PatientCase,
    status_code=status.HTTP_201_CREATED,
)
async def create_case(
    patient_id: str,
    payload: PatientCaseCreate,
    current_user: UserPublic = Depends(get_current_user),
) -> PatientCase:
    case = patient_case_service.create_case(patient_id, payload)
    audit_service.log_event(
        action="create_case",
        resource_type="patient_case",
        resource_id=case.id,
        actor_id=current_user.id,
        extra={"patient_id": patient_id},
    )
    return case


@router.get("/patients/{patient_id}/cases/{case_id}", response_model=PatientCase)
async def get_case(patient_id: str, case_id: str) -> PatientCase:
    return patient_case_service.get_case(patient_id, case_id)


@router.put("/patients/{patient_id}/cases/{case_id}", response_model=PatientCase)
async def update_case(
    patient_id: str,
    case_id: str,
    payload: PatientCaseUpdate,
    current_user: UserPublic = Depends(get_current_user),
) -> PatientCase:
    case = patient_case_service.update_case(patient_id, case_id, payload)
    audit_service.log_event(
        action="update_case",
        resource_type="patient_case",
        resource_id=case_id,
        actor_id=current_user.id,
    )
    return case


@router.delete("/patients/{patient_id}/cases/{case_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_case(
    patient_id: str,
    case_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> None:
    patient_case_service.delete_case(patient_id, case_id)
    audit_service.log_event(
        action="delete_case",
        resource_type="patient_case",
        resource_id=case_id,
        actor_id=current_user.id,
        extra={"patient_id": patient_id},
    )


@router.post("/patients/{patient_id}/cases/{case_id}/soft-delete", response_model=PatientCase)
async def soft_delete_case(
    patient_id: str,
    case_id: str,
    payload: SoftDeleteRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> PatientCase:
    case = patient_case_service.soft_delete_case(
        patient_id, case_id, deleted_by=current_user.id, reason=payload.reason
    )
    audit_service.log_event(
        action="soft_delete_case",
        resource_type="patient_case",
        resource_id=case_id,
        actor_id=current_user.id,
    )
    return case


# Case lookups across patients


@router.get("/cases/search", response_model=List[PatientCase])
async def search_cases(q: str = Query(..., min_length=1)) -> List[PatientCase]:
    return patient_case_service.search_by_external_id(q)


@router.get("/cases/deleted", response_model=PaginatedResult[PatientCase])
async def list_deleted_cases(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> PaginatedResult[PatientCase]:
    return patient_case_service.find_deleted(page=page, limit=limit)


@router.get("/cases/diagnosis/{diagnosis}", response_model=List[PatientCase])
async def find_cases_by_diagnosis(diagnosis: str) -> List[PatientCase]:
    return patient_case_service.find_by_diagnosis(diagnosis)


@router.get("/cases/icd10/{code}", response_model=List[PatientCase])
async def find_cases_by_icd10(code: str) -> List[PatientCase]:
    return patient_case_service.find_by_icd10(code)


@router.get("/cases/supervisor/{supervisor_id}", response_model=List[PatientCase])
async def find_cases_by_supervisor(supervisor_id: str) -> List[PatientCase]:
    return patient_case_service.find_by_supervisor(supervisor_id)


@router.get("/cases/{case_id}/supervisors", response_model=List[UserPublic])
async def get_case_supervisors(case_id: str) -> List[UserPublic]:
    return patient_case_service.get_supervisors(case_id)


@router.post("/cases/{case_id}/restore", response_model=PatientCase)
async def restore_case(
    case_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> PatientCase:
    case = patient_case_service.restore_case(case_id)
    audit_service.log_event(
        action="restore_case",
        resource_type="patient_case",
        resource_id=case_id,
        actor_id=current_user.id,
    )
    return case


@router.get("/cases/{case_id}/notes", response_model=List[Note])
async def list_case_notes(case_id: str) -> List[Note]:
    return patient_case_service.list_notes(case_id)


@router.post("/cases/{case_id}/notes", response_model=PatientCase, status_code=status.HTTP_201_CREATED)
async def add_case_note(
    case_id: str,
    payload: NoteCreateRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> PatientCase:
    return patient_case_service.add_note(case_id, payload.note, created_by=current_user.id)


@router.delete("/cases/{case_id}/notes/{note_id}", response_model=PatientCase)
async def delete_case_note(case_id: str, note_id: str) -> PatientCase:
    return patient_case_service.delete_note(case_id, note_id)


# Consultations of a case


@router.get("/cases/{case_id}/consultations", response_model=List[Consultation])
async def list_case_consultations(case_id: str) -> List[Consultation]:
    patient_case_service.get_case_by_id(case_id)
    return consultation_service.list_by_case(case_id)


@router.post(
    "/cases/{case_id}/consultations",
    response_model=Consultation,
    status_code=status.HTTP_201_CREATED,
)
async def create_consultation(
    case_id: str,
    payload: ConsultationCreate,
    current_user: UserPublic = Depends(get_current_user),
) -> Consultation:
    consultation = consultation_service.create_consultation(case_id, payload)
    audit_service.log_event(
        action="create_consultation",
        resource_type="consultation",
        resource_id=consultation.id,
        actor_id=current_user.id,
        extra={"case_id": case_id},
    )
    return consultation
