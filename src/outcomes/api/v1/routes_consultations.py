from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.outcomes.domain.models.consultation import Consultation, ConsultationUpdate
from src.outcomes.domain.models.form import Form
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.security import get_api_key, get_current_user
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.consultations.service import consultation_service
from src.outcomes.services.forms.service import form_service

router = APIRouter(
    prefix="/consultations",
    tags=["consultations"],
    dependencies=[Depends(get_api_key)],
)


class NoteCreateRequest(BaseModel):
    note: str = Field(min_length=1)


@router.get("/", response_model=List[Consultation])
async def list_consultations_on_days(from_date: date, to_date: Optional[date] = None) -> List[Consultation]:
    """Consultations scheduled between ``from_date`` and ``to_date`` (inclusive)."""

    return consultation_service.list_on_days(from_date, to_date)


@router.get("/code/{code}", response_model=Consultation)
async def get_consultation_by_code(code: str) -> Consultation:
    return consultation_service.get_by_code(code)


@router.get("/{consultation_id}", response_model=Consultation)
async def get_consultation(consultation_id: str) -> Consultation:
    return consultation_service.get_consultation(consultation_id)


@router.put("/{consultation_id}", response_model=Consultation)
async def update_consultation(
    consultation_id: str,
    payload: ConsultationUpdate,
    current_user: UserPublic = Depends(get_current_user),
) -> Consultation:
    consultation = consultation_service.update_consultation(consultation_id, payload)
    audit_service.log_event(
        action="update_consultation",
        resource_type="consultation",
        resource_id=consultation_id,
        actor_id=current_user.id,
    )
    return consultation


@router.delete("/{consultation_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_consultation(
    consultation_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> None:
    consultation_service.delete_consultation(consultation_id)
    audit_service.log_event(
        action="delete_consultation",
        resource_type="consultation",
        resource_id=consultation_id,
        actor_id=current_user.id,
    )


@router.get("/{consultation_id}/forms", response_model=List[Form])
async def list_consultation_forms(consultation_id: str) -> List[Form]:
    consultation_service.get_consultation(consultation_id)
    return form_service.get_forms_for_consultation(consultation_id)


@router.get("/{consultation_id}/code")
async def get_consultation_code(consultation_id: str) -> dict:
    return {"code": consultation_service.get_form_access_code(consultation_id)}


@router.post("/{consultation_id}/notes", response_model=Consultation, status_code=status.HTTP_201_CREATED)
async def add_consultation_note(
    consultation_id: str,
    payload: NoteCreateRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> Consultation:
    consultation = consultation_service.add_note(consultation_id, payload.note, created_by=current_user.id)
    audit_service.log_event(
        action="add_consultation_note",
        resource_type="consultation",
        resource_id=consultation_id,
        actor_id=current_user.id,
        extra={"note_id": consultation.notes[-1].id},
    )
    return consultation


@router.delete("/{consultation_id}/notes/{note_id}", response_model=Consultation)
async def delete_consultation_note(
    consultation_id: str,
    note_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> Consultation:
    consultation = consultation_service.delete_note(consultation_id, note_id)
    audit_service.log_event(
        action="delete_consultation_note",
        resource_type="consultation",
        resource_id=consultation_id,
        actor_id=current_user.id,
        extra={"note_id": note_id},
    )
    return consultation
