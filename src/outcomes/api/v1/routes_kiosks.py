from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from src.outcomes.domain.models.consultation import Consultation, KioskConsultationStatus
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.security import get_api_key, get_current_user
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.kiosks.service import kiosk_service

router = APIRouter(
    prefix="/kiosks",
    tags=["kiosks"],
    dependencies=[Depends(get_api_key)],
)


class KioskStatusRequest(BaseModel):
    status: KioskConsultationStatus
    notes: Optional[str] = None


@router.get("/", response_model=List[UserPublic])
async def list_kiosks() -> List[UserPublic]:
    return kiosk_service.get_all_kiosks()


@router.get("/available", response_model=List[UserPublic])
async def list_available_kiosks() -> List[UserPublic]:
    return kiosk_service.get_available_kiosks()


# The calling kiosk device


@router.get("/me/consultation", response_model=Consultation)
async def get_my_consultation(current_user: UserPublic = Depends(get_current_user)) -> Consultation:
    return kiosk_service.get_consultation_for(current_user.id)


@router.put("/me/consultation/status", response_model=Consultation)
async def update_my_consultation_status(
    payload: KioskStatusRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> Consultation:
    consultation = kiosk_service.update_consultation_status(current_user.id, payload.status, payload.notes)
    audit_service.log_event(
        action="update_kiosk_status",
        resource_type="consultation",
        resource_id=consultation.id,
        actor_id=current_user.id,
        extra={"status": payload.status.value},
    )
    return consultation


# Any kiosk, by user id


@router.get("/{kiosk_user_id}/consultation", response_model=Consultation)
async def get_kiosk_consultation(kiosk_user_id: str) -> Consultation:
    return kiosk_service.get_consultation_for(kiosk_user_id)


@router.put("/{kiosk_user_id}/consultation/status", response_model=Consultation)
async def update_kiosk_consultation_status(
    kiosk_user_id: str,
    payload: KioskStatusRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> Consultation:
    consultation = kiosk_service.update_consultation_status(kiosk_user_id, payload.status, payload.notes)
    audit_service.log_event(
        action="update_kiosk_status",
        resource_type="consultation",
        resource_id=consultation.id,
        actor_id=current_user.id,
        extra={"status": payload.status.value},
    )
    return consultation


@router.put("/{kiosk_user_id}/consultation/{consultation_id}", response_model=Consultation)
async def set_kiosk_consultation(
    kiosk_user_id: str,
    consultation_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> Consultation:
    consultation = kiosk_service.set_consultation(kiosk_user_id, consultation_id)
    audit_service.log_event(
        action="assign_kiosk",
        resource_type="consultation",
        resource_id=consultation_id,
        actor_id=current_user.id,
        extra={"kiosk_id": kiosk_user_id},
    )
    return consultation


@router.delete("/{kiosk_user_id}/consultation", status_code=status.HTTP_204_NO_CONTENT)
async def release_kiosk(
    kiosk_user_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> None:
    kiosk_service.delete_consultation_for(kiosk_user_id)
    audit_service.log_event(
        action="release_kiosk",
        resource_type="user",
        resource_id=kiosk_user_id,
        actor_id=current_user.id,
    )
