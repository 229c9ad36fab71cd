from __future__ import annotations

import copy
import logging
from typing import Iterable, List, Optional

from src.outcomes.domain.models.common import PaginatedResult, utcnow
from src.outcomes.domain.models.form import (
    Form,
    FormFillStatus,
    FormUpdate,
    FormVersion,
    PatientFormData,
)
from src.outcomes.errors import BadRequestError, ForbiddenError, NotFoundError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.formtemplates.plugins.registry import get_plugin

logger = logging.getLogger(__name__)

# Client fill states mapped onto the stored form status.
_FILL_STATUS = {
    "draft": FormFillStatus.DRAFT,
    "incomplete": FormFillStatus.INCOMPLETE,
    "complete": FormFillStatus.COMPLETED,
    "completed": FormFillStatus.COMPLETED,
}


class FormService:
    """Questionnaire instances (PROMs) filled in for a consultation."""

    def create_form_by_template_id(
        self,
        template_id: str,
        *,
        case_id: Optional[str] = None,
        consultation_id: Optional[str] = None,
    ) -> Form:
        template = repos.form_template_repository.get(template_id)
        if template is None:
            raise NotFoundError(f"Form template {template_id} not found")
        form = Form(
            form_template_id=template.id,
            title=template.title,
            description=template.description,
            form_schema=copy.deepcopy(template.form_schema),
            case_id=case_id,
            consultation_id=consultation_id,
            form_start_time=utcnow(),
        )
        repos.form_repository.save(form)
        logger.debug("Created form %s from template %s", form.id, template_id)
        return form

    def get_forms(self) -> List[Form]:
        return repos.form_repository.list(lambda f: not f.is_deleted)

    def get_form(self, form_id: str) -> Form:
        form = repos.form_repository.get(form_id)
        if form is None or form.is_deleted:
            raise NotFoundError("Form not found")
        return form

    def get_forms_for_consultation(self, consultation_id: str) -> List[Form]:
        return repos.form_repository.list(lambda f: f.consultation_id == consultation_id and not f.is_deleted)

    def _verify_access_code(self, form: Form, code: str) -> None:
        found = repos.form_access_code_repository.find_one(lambda c: c.code == code)
        if found is None or not found.consultation_id:
            raise ForbiddenError("Invalid or inactive access code")
        if found.is_expired(utcnow()):
            raise ForbiddenError("Access code has expired")
        if found.consultation_id != form.consultation_id:
            raise ForbiddenError("Access code does not grant permission to edit this form")

    def _score(self, form: Form, data: PatientFormData) -> PatientFormData:
        plugin = get_plugin(form.form_template_id)
        if plugin is None or not data.raw_data:
            return data
        if not plugin.validate_form_data(data.raw_data):
            raise BadRequestError("Form data contains invalid answers")
        scoring = plugin.calculate_score(data.raw_data)
        return data.model_copy(update={"subscales": scoring.subscales, "total": scoring.total})

    def _snapshot(self, form: Form, *, changed_by: Optional[str], change_notes: str) -> None:
        repos.form_version_repository.save(
            FormVersion(
                form_id=form.id,
                version=form.current_version,
                patient_form_data=form.patient_form_data,
                form_fill_status=form.form_fill_status,
                changed_by=changed_by,
                change_notes=change_notes,
            )
        )
        form.current_version += 1

    def update_form(self, form_id: str, update: FormUpdate, *, changed_by: Optional[str] = None) -> Form:
        """Store submitted answers, score them and track fill timing.

        When ``update.code`` is given the caller is a patient using a form
        access code, which must be linked to this form's consultation.
        """

        form = self.get_form(form_id)
        if update.code:
            self._verify_access_code(form, update.code)

        now = utcnow()
        data = update.patient_form_data
        if data is not None:
            data = self._score(form, data)
            if form.patient_form_data is not None:
                notes = "Form updated via patient access code" if update.code else "Form updated"
                self._snapshot(form, changed_by=changed_by, change_notes=notes)
            form.patient_form_data = data
            if data.fill_status in _FILL_STATUS:
                form.form_fill_status = _FILL_STATUS[data.fill_status]

        if update.form_fill_status is not None:
            form.form_fill_status = update.form_fill_status
        if form.form_fill_status == FormFillStatus.COMPLETED and form.form_end_time is None:
            form.form_end_time = now

        if update.completion_time_seconds is not None:
            form.completion_time_seconds = update.completion_time_seconds
        elif data is not None and data.begin_fill and data.completed_at:
            form.completion_time_seconds = round((data.completed_at - data.begin_fill).total_seconds())
        elif form.form_start_time and form.form_end_time:
            form.completion_time_seconds = round((form.form_end_time - form.form_start_time).total_seconds())

        form.updated_at = now
        repos.form_repository.save(form)
        logger.info("Updated form %s (status %s)", form.id, form.form_fill_status.value)
        return form

    def delete_form(self, form_id: str) -> None:
        if repos.form_repository.get(form_id) is None:
            raise NotFoundError("Form not found")
        self.delete_forms([form_id])

    def delete_forms(self, form_ids: Iterable[str]) -> int:
        """Hard delete forms with their version history and drop them from their consultations.

        Unknown ids are skipped.
        """

        deleted = 0
        for form_id in form_ids:
            for version in repos.form_version_repository.list(lambda v: v.form_id == form_id):
                repos.form_version_repository.delete(version.id)
            form = repos.form_repository.get(form_id)
            if form is None:
                continue
            repos.form_repository.delete(form_id)
            deleted += 1
            consultation = repos.consultation_repository.get(form.consultation_id) if form.consultation_id else None
            if consultation is not None and form_id in consultation.proms:
                consultation.proms.remove(form_id)
                repos.consultation_repository.save(consultation)
        return deleted

    # Soft delete

    def soft_delete_form(self, form_id: str, *, deleted_by: Optional[str] = None, reason: Optional[str] = None) -> Form:
        form = self.get_form(form_id)
        form.deleted_at = utcnow()
        form.deleted_by = deleted_by
        form.deletion_reason = reason
        repos.form_repository.save(form)
        return form

    def restore_form(self, form_id: str) -> Form:
        form = repos.form_repository.get(form_id)
        if form is None:
            raise NotFoundError("Form not found")
        if not form.is_deleted:
            raise BadRequestError("Form is not deleted")
        form.deleted_at = None
        form.deleted_by = None
        form.deletion_reason = None
        repos.form_repository.save(form)
        return form

    def get_deleted_forms(self, *, page: int = 1, limit: int = 10) -> PaginatedResult[Form]:
        forms = repos.form_repository.list(lambda f: f.is_deleted)
        forms.sort(key=lambda f: f.deleted_at, reverse=True)
        return PaginatedResult[Form].from_items(forms, page=page, limit=limit)

    # Versions

    def get_form_versions(self, form_id: str) -> List[FormVersion]:
        self.get_form(form_id)
        versions = repos.form_version_repository.list(lambda v: v.form_id == form_id)
        return sorted(versions, key=lambda v: v.version, reverse=True)

    def restore_form_version(self, form_id: str, version: int, *, changed_by: Optional[str] = None) -> Form:
        form = self.get_form(form_id)
        snapshot = repos.form_version_repository.find_one(lambda v: v.form_id == form_id and v.version == version)
        if snapshot is None:
            raise NotFoundError(f"Version {version} not found for this form")
        self._snapshot(form, changed_by=changed_by, change_notes=f"Restored version {version}")
        form.patient_form_data = snapshot.patient_form_data
        form.form_fill_status = snapshot.form_fill_status
        form.updated_at = utcnow()
        repos.form_repository.save(form)
        return form


form_service = FormService()
