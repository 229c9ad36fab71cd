from __future__ import annotations

from typing import List

from fastapi import APIRouter
from pydantic import BaseModel

from src.outcomes.domain.models.access_code import CodeValidation
from src.outcomes.domain.models.form import Form, FormUpdate
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.codes.service import access_code_service
from src.outcomes.services.forms.service import form_service

# Patient-facing: the form access code is the only credential.
router = APIRouter(prefix="/access", tags=["access"])


class AccessOverview(BaseModel):
    validation: CodeValidation
    forms: List[Form]


@router.get("/{code}", response_model=AccessOverview)
async def open_with_code(code: str) -> AccessOverview:
    validation = access_code_service.validate_code(code)
    forms = form_service.get_forms_for_consultation(validation.consultation_id)
    return AccessOverview(validation=validation, forms=forms)


@router.put("/{code}/forms/{form_id}", response_model=Form)
async def submit_form_with_code(code: str, form_id: str, payload: FormUpdate) -> Form:
    update = payload.model_copy(update={"code": code})
    form = form_service.update_form(form_id, update)
    audit_service.log_event(
        action="submit_form",
        resource_type="form",
        resource_id=form_id,
        extra={"via": "access_code", "status": form.form_fill_status.value},
    )
    return form
