from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status

from src.outcomes.domain.models.common import PaginatedResult
from src.outcomes.domain.models.form import Form, FormIds, FormSoftDeleteRequest, FormUpdate, FormVersion
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.security import get_api_key, get_current_user
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.forms.service import form_service

router = APIRouter(
    prefix="/forms",
    tags=["forms"],
    dependencies=[Depends(get_api_key)],
)


@router.get("/", response_model=List[Form])
async def list_forms() -> List[Form]:
    return form_service.get_forms()


@router.get("/deleted", response_model=PaginatedResult[Form])
async def list_deleted_forms(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> PaginatedResult[Form]:
    return form_service.get_deleted_forms(page=page, limit=limit)


@router.post("/delete")
async def delete_forms(
    payload: FormIds,
    current_user: UserPublic = Depends(get_current_user),
) -> dict:
    deleted = form_service.delete_forms(payload.ids)
    audit_service.log_event(
        action="delete_forms",
        resource_type="form",
        actor_id=current_user.id,
        extra={"count": deleted},
    )
    return {"deleted": deleted}


@router.get("/{form_id}", response_model=Form)
async def get_form(form_id: str) -> Form:
    return form_service.get_form(form_id)


@router.put("/{form_id}", response_model=Form)
async def update_form(
    form_id: str,
    payload: FormUpdate,
    current_user: UserPublic = Depends(get_current_user),
) -> Form:
    form = form_service.update_form(form_id, payload, changed_by=current_user.id)
    audit_service.log_event(
        action="update_form",
        resource_type="form",
        resource_id=form_id,
        actor_id=current_user.id,
        extra={"status": form.form_fill_status.value},
    )
    return form


@router.delete("/{form_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_form(
    form_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> None:
    form_service.delete_form(form_id)
    audit_service.log_event(
        action="delete_form",
        resource_type="form",
        resource_id=form_id,
        actor_id=current_user.id,
    )


@router.post("/{form_id}/soft-delete", response_model=Form)
async def soft_delete_form(
    form_id: str,
    payload: FormSoftDeleteRequest,
    current_user: UserPublic = Depends(get_current_user),
) -> Form:
    form = form_service.soft_delete_form(form_id, deleted_by=current_user.id, reason=payload.reason)
    audit_service.log_event(
        action="soft_delete_form",
        resource_type="form",
        resource_id=form_id,
        actor_id=current_user.id,
    )
    return form


@router.post("/{form_id}/restore", response_model=Form)
async def restore_form(
    form_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> Form:
    form = form_service.restore_form(form_id)
    audit_service.log_event(
        action="restore_form",
        resource_type="form",
        resource_id=form_id,
        actor_id=current_user.id,
    )
    return form


@router.get("/{form_id}/versions", response_model=List[FormVersion])
async def list_form_versions(form_id: str) -> List[FormVersion]:
    return form_service.get_form_versions(form_id)


@router.post("/{form_id}/versions/{version}/restore", response_model=Form)
async def restore_form_version(
    form_id: str,
    version: int,
    current_user: UserPublic = Depends(get_current_user),
) -> Form:
    form = form_service.restore_form_version(form_id, version, changed_by=current_user.id)
    audit_service.log_event(
        action="restore_form_version",
        resource_type="form",
        resource_id=form_id,
        actor_id=current_user.id,
        extra={"version": version},
    )
    return form
