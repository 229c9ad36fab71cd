from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, status

from src.outcomes.domain.models.form_template import (
    DepartmentFormTemplate,
    FormTemplate,
    FormTemplateCreate,
    FormTemplateUpdate,
    TemplateIds,
)
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.security import get_api_key, get_current_user, require_roles
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.formtemplates.service import PRIVILEGED_ROLES, form_template_service

router = APIRouter(
    prefix="/formtemplates",
    tags=["formtemplates"],
    dependencies=[Depends(get_api_key)],
)

department_router = APIRouter(
    prefix="/departments/{department_id}/formtemplates",
    tags=["formtemplates"],
    dependencies=[Depends(get_api_key)],
)

_require_template_editor = require_roles(*PRIVILEGED_ROLES)


@router.get("/", response_model=List[FormTemplate])
async def list_form_templates(
    department_id: Optional[str] = None,
    current_user: UserPublic = Depends(get_current_user),
) -> List[FormTemplate]:
    """Templates visible to the caller, optionally only those of one department."""

    return form_template_service.list_templates(current_user, department_id)


@router.get("/mappings", response_model=List[DepartmentFormTemplate])
async def list_department_mappings() -> List[DepartmentFormTemplate]:
    return form_template_service.list_mappings()


@router.get("/{template_id}", response_model=FormTemplate)
async def get_form_template(
    template_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> FormTemplate:
    return form_template_service.get_template_for_user(template_id, current_user)


@router.post("/", response_model=FormTemplate, status_code=status.HTTP_201_CREATED)
async def create_form_template(
    payload: FormTemplateCreate,
    current_user: UserPublic = Depends(_require_template_editor),
) -> FormTemplate:
    template = form_template_service.create_template(payload)
    audit_service.log_event(
        action="create_form_template",
        resource_type="form_template",
        resource_id=template.id,
        actor_id=current_user.id,
    )
    return template


@router.put("/{template_id}", response_model=FormTemplate)
async def update_form_template(
    template_id: str,
    payload: FormTemplateUpdate,
    current_user: UserPublic = Depends(_require_template_editor),
) -> FormTemplate:
    template = form_template_service.update_template(template_id, payload)
    audit_service.log_event(
        action="update_form_template",
        resource_type="form_template",
        resource_id=template_id,
        actor_id=current_user.id,
    )
    return template


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_form_template(
    template_id: str,
    current_user: UserPublic = Depends(_require_template_editor),
) -> None:
    form_template_service.delete_template(template_id)
    audit_service.log_event(
        action="delete_form_template",
        resource_type="form_template",
        resource_id=template_id,
        actor_id=current_user.id,
    )


# Department mappings


@department_router.get("", response_model=DepartmentFormTemplate)
async def get_department_mapping(department_id: str) -> DepartmentFormTemplate:
    return form_template_service.get_mapping(department_id)


@department_router.put("", response_model=DepartmentFormTemplate)
async def set_department_mapping(
    department_id: str,
    payload: TemplateIds,
    current_user: UserPublic = Depends(_require_template_editor),
) -> DepartmentFormTemplate:
    mapping = form_template_service.set_mapping(department_id, payload.form_template_ids)
    audit_service.log_event(
        action="set_department_templates",
        resource_type="department_form_template",
        resource_id=department_id,
        actor_id=current_user.id,
        extra={"count": len(mapping.form_template_ids)},
    )
    return mapping


@department_router.post("/add", response_model=DepartmentFormTemplate)
async def add_department_templates(
    department_id: str,
    payload: TemplateIds,
    current_user: UserPublic = Depends(_require_template_editor),
) -> DepartmentFormTemplate:
    mapping = form_template_service.add_templates(department_id, payload.form_template_ids)
    audit_service.log_event(
        action="add_department_templates",
        resource_type="department_form_template",
        resource_id=department_id,
        actor_id=current_user.id,
    )
    return mapping


@department_router.post("/remove", response_model=DepartmentFormTemplate)
async def remove_department_templates(
    department_id: str,
    payload: TemplateIds,
    current_user: UserPublic = Depends(_require_template_editor),
) -> DepartmentFormTemplate:
    mapping = form_template_service.remove_templates(department_id, payload.form_template_ids)
    audit_service.log_event(
        action="remove_department_templates",
        resource_type="department_form_template",
        resource_id=department_id,
        actor_id=current_user.id,
    )
    return mapping


@department_router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_department_mapping(
    department_id: str,
    current_user: UserPublic = Depends(_require_template_editor),
) -> None:
    form_template_service.delete_mapping(department_id)
    audit_service.log_event(
        action="delete_department_templates",
        resource_type="department_form_template",
        resource_id=department_id,
        actor_id=current_user.id,
    )
