from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from src.outcomes.domain.models.access_code import CodeValidation, FormAccessCode
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.security import get_api_key, get_current_user
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.codes.service import access_code_service

router = APIRouter(
    prefix="/codes",
    tags=["codes"],
    dependencies=[Depends(get_api_key)],
)


class CodeBatchRequest(BaseModel):
    # Upper bound is ACCESS_CODE_BATCH_MAX, checked by the service.
    count: int = Field(default=1, ge=1)


@router.get("/", response_model=List[FormAccessCode])
async def list_codes() -> List[FormAccessCode]:
    return access_code_service.get_all_codes()


@router.get("/available", response_model=List[FormAccessCode])
async def list_available_codes() -> List[FormAccessCode]:
    return access_code_service.get_available_codes()


@router.post("/", response_model=List[FormAccessCode], status_code=status.HTTP_201_CREATED)
async def add_codes(
    payload: CodeBatchRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> List[FormAccessCode]:
    codes = access_code_service.add_codes(payload.count)
    audit_service.log_event(
        action="add_codes",
        resource_type="form_access_code",
        actor_id=current_user.id,
        extra={"count": len(codes)},
    )
    return codes


@router.get("/id/{code_id}", response_model=FormAccessCode)
async def get_code_by_id(code_id: str) -> FormAccessCode:
    return access_code_service.get_code_by_id(code_id)


@router.delete("/id/{code_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_code(
    code_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> None:
    access_code_service.delete_code(code_id)
    audit_service.log_event(
        action="delete_code",
        resource_type="form_access_code",
        resource_id=code_id,
        actor_id=current_user.id,
    )


@router.get("/{code}", response_model=FormAccessCode)
async def get_code(code: str) -> FormAccessCode:
    return access_code_service.get_code(code)


@router.get("/{code}/validate", response_model=CodeValidation)
async def validate_code(code: str) -> CodeValidation:
    return access_code_service.validate_code(code)


@router.post("/{code}/activate/{consultation_id}", response_model=FormAccessCode)
async def activate_code(
    code: str,
    consultation_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> FormAccessCode:
    found = access_code_service.activate_code(code, consultation_id)
    audit_service.log_event(
        action="activate_code",
        resource_type="form_access_code",
        resource_id=found.id,
        actor_id=current_user.id,
        extra={"consultation_id": consultation_id},
    )
    return found


@router.post("/{code}/deactivate", response_model=FormAccessCode)
async def deactivate_code(
    code: str,
    current_user: UserPublic = Depends(get_current_user),
) -> FormAccessCode:
    found = access_code_service.deactivate_code(code)
    audit_service.log_event(
        action="deactivate_code",
        resource_type="form_access_code",
        resource_id=found.id,
        actor_id=current_user.id,
    )
    return found
