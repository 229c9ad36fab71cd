from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.outcomes.domain.models.surgery import Surgery, SurgeryCreate, SurgeryUpdate
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.security import get_api_key, get_current_user
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.surgeries.service import surgery_service

router = APIRouter(
    prefix="/surgeries",
    tags=["surgeries"],
    dependencies=[Depends(get_api_key)],
)


class SurgeryNoteRequest(BaseModel):
    note: str = Field(min_length=1)


@router.get("/", response_model=List[Surgery])
async def list_surgeries() -> List[Surgery]:
    return surgery_service.list_surgeries()


@router.get("/search/{fragment}", response_model=List[Surgery])
async def search_surgeries(fragment: str) -> List[Surgery]:
    return surgery_service.search_by_external_id(fragment)


@router.get("/diagnosis/{diagnosis}", response_model=List[Surgery])
async def find_surgeries_by_diagnosis(diagnosis: str) -> List[Surgery]:
    return surgery_service.find_by_diagnosis(diagnosis)


@router.get("/icd10/{code}", response_model=List[Surgery])
async def find_surgeries_by_icd10(code: str) -> List[Surgery]:
    return surgery_service.find_by_icd10(code)


@router.get("/surgeon/{surgeon_id}", response_model=List[Surgery])
async def find_surgeries_by_surgeon(surgeon_id: str) -> List[Surgery]:
    return surgery_service.find_by_surgeon(surgeon_id)


@router.get("/case/{case_id}", response_model=List[Surgery])
async def list_case_surgeries(case_id: str) -> List[Surgery]:
    return surgery_service.list_by_case(case_id)


@router.post("/case/{case_id}", response_model=Surgery, status_code=status.HTTP_201_CREATED)
async def create_surgery(
    case_id: str,
    payload: SurgeryCreate,
    current_user: UserPublic = Depends(get_current_user),
) -> Surgery:
    surgery = surgery_service.create_surgery(case_id, payload)
    audit_service.log_event(
        action="create_surgery",
        resource_type="surgery",
        resource_id=surgery.id,
        actor_id=current_user.id,
        extra={"case_id": case_id},
    )
    return surgery


@router.get("/{surgery_id}", response_model=Surgery)
async def get_surgery(surgery_id: str) -> Surgery:
    return surgery_service.get_surgery(surgery_id)


@router.get("/{surgery_id}/surgeons", response_model=List[UserPublic])
async def list_surgeons(surgery_id: str) -> List[UserPublic]:
    return surgery_service.get_surgeons(surgery_id)


@router.put("/{surgery_id}", response_model=Surgery)
async def update_surgery(
    surgery_id: str,
    payload: SurgeryUpdate,
    current_user: UserPublic = Depends(get_current_user),
) -> Surgery:
    surgery = surgery_service.update_surgery(surgery_id, payload)
    audit_service.log_event(
        action="update_surgery",
        resource_type="surgery",
        resource_id=surgery_id,
        actor_id=current_user.id,
    )
    return surgery


@router.delete("/{surgery_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_surgery(
    surgery_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> None:
    surgery_service.delete_surgery(surgery_id)
    audit_service.log_event(
        action="delete_surgery",
        resource_type="surgery",
        resource_id=surgery_id,
        actor_id=current_user.id,
    )


@router.post("/{surgery_id}/notes", response_model=Surgery, status_code=status.HTTP_201_CREATED)
async def add_surgery_note(
    surgery_id: str,
    payload: SurgeryNoteRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> Surgery:
    surgery = surgery_service.add_note(surgery_id, payload.note, created_by=current_user.id)
    audit_service.log_event(
        action="add_surgery_note",
        resource_type="surgery",
        resource_id=surgery_id,
        actor_id=current_user.id,
        extra={"note_id": surgery.additional_data[-1].id},
    )
    return surgery


@router.delete("/{surgery_id}/notes/{note_id}", response_model=Surgery)
async def delete_surgery_note(
    surgery_id: str,
    note_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> Surgery:
    surgery = surgery_service.delete_note(surgery_id, note_id)
    audit_service.log_event(
        action="delete_surgery_note",
        resource_type="surgery",
        resource_id=surgery_id,
        actor_id=current_user.id,
        extra={"note_id": note_id},
    )
    return surgery
