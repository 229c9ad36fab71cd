from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Iterable, List, Optional

from src.outcomes.domain.models.common import Note, apply_changes, utcnow
from src.outcomes.domain.models.consultation import Consultation, ConsultationCreate, ConsultationUpdate
from src.outcomes.domain.models.form import Form
from src.outcomes.errors import BadRequestError, ConflictError, NotFoundError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.codes.service import access_code_service
from src.outcomes.services.forms.service import form_service
from src.outcomes.services.kiosks.service import kiosk_service

logger = logging.getLogger(__name__)

_UNSET = object()


class ConsultationService:
    """Consultations and the code, kiosk and forms attached to each of them."""

    def get_consultation(self, consultation_id: str) -> Consultation:
        consultation = repos.consultation_repository.get(consultation_id)
        if consultation is None:
            raise NotFoundError("Consultation not found")
        return consultation

    def _check_templates(self, template_ids: Iterable[str]) -> List[str]:
        unique = list(dict.fromkeys(template_ids))
        missing = [tid for tid in unique if repos.form_template_repository.get(tid) is None]
        if missing:
            raise BadRequestError(f"Unknown form template ids: {', '.join(missing)}")
        return unique

    def _check_new_code(self, value: str):
        """Look up a code to link by document id, falling back to the code string."""

        code = repos.form_access_code_repository.get(value) or access_code_service.find_code(value)
        if code is None:
            raise BadRequestError("Form access code not found")
        if code.is_active:
            raise ConflictError("Form access code is already active")
        return code

    def create_consultation(self, case_id: str, payload: ConsultationCreate) -> Consultation:
        case = repos.patient_case_repository.get(case_id)
        if case is None or case.is_deleted:
            raise NotFoundError("Case not found")

        # Validate every collaborator before anything is written.
        code = self._check_new_code(payload.form_access_code) if payload.form_access_code else None
        if payload.kiosk_id:
            kiosk_service.get_kiosk_user(payload.kiosk_id)
        template_ids = self._check_templates(payload.form_templates)

        consultation = Consultation(
            patient_case_id=case_id,
            **payload.model_dump(exclude={"form_templates", "form_access_code", "kiosk_id"}),
        )
        repos.consultation_repository.save(consultation)

        if code is not None:
            access_code_service.activate_code(code.code, consultation.id)
        if payload.kiosk_id:
            kiosk_service.set_consultation(payload.kiosk_id, consultation.id)

        forms = [
            form_service.create_form_by_template_id(tid, case_id=case_id, consultation_id=consultation.id)
            for tid in template_ids
        ]
        consultation = self.get_consultation(consultation.id)
        consultation.proms = [form.id for form in forms]
        repos.consultation_repository.save(consultation)

        case.consultations.append(consultation.id)
        repos.patient_case_repository.save(case)
        logger.info("Created consultation %s for case %s with %d forms", consultation.id, case_id, len(forms))
        return consultation

    def _release_code(self, consultation: Consultation) -> None:
        """Deactivate the code currently linked to ``consultation``, if still active."""

        if not consultation.form_access_code:
            return
        previous = repos.form_access_code_repository.get(consultation.form_access_code)
        if previous is not None and previous.is_active and previous.consultation_id == consultation.id:
            access_code_service.deactivate_code(previous.code)

    def _wanted_templates(
        self,
        consultation: Consultation,
        proms: Optional[List[str]],
        form_templates: Optional[List[str]],
    ) -> List[str]:
        """Template ids the consultation should end up with forms for.

        Each ``proms`` entry is a form id or a template id; omitted ``proms``
        keeps the current forms. ``form_templates`` adds to either.
        """

        wanted: List[str] = []
        unknown: List[str] = []
        for entry in consultation.proms if proms is None else proms:
            form = repos.form_repository.get(entry)
            if form is not None:
                wanted.append(form.form_template_id)
            elif repos.form_template_repository.get(entry) is not None:
                wanted.append(entry)
            elif proms is not None:
                unknown.append(entry)
        if unknown:
            raise BadRequestError(f"Unknown form or template ids: {', '.join(unknown)}")
        wanted.extend(self._check_templates(form_templates or []))
        return list(dict.fromkeys(wanted))

    def update_consultation(self, consultation_id: str, payload: ConsultationUpdate) -> Consultation:
        consultation = self.get_consultation(consultation_id)
        changes = payload.model_dump(exclude_unset=True)
        code_change = changes.pop("form_access_code", _UNSET)
        kiosk_change = changes.pop("kiosk_id", _UNSET)
        proms = changes.pop("proms", None)
        form_templates = changes.pop("form_templates", None)

        new_code = None
        if code_change is not _UNSET and code_change:
            linked = repos.form_access_code_repository.get(consultation.form_access_code or "")
            if linked is None or code_change not in (linked.id, linked.code):
                new_code = self._check_new_code(code_change)
        if kiosk_change is not _UNSET and kiosk_change:
            kiosk_service.get_kiosk_user(kiosk_change)
        wanted = None
        if proms is not None or form_templates is not None:
            wanted = self._wanted_templates(consultation, proms, form_templates)

        consultation = apply_changes(consultation, {**changes, "updated_at": utcnow()})
        repos.consultation_repository.save(consultation)

        if new_code is not None:
            self._release_code(consultation)
            access_code_service.activate_code(new_code.code, consultation.id)
        elif code_change is None and consultation.form_access_code:
            # Unlinking leaves the code itself active until it expires.
            consultation.form_access_code = None
            repos.consultation_repository.save(consultation)

        if kiosk_change is not _UNSET and kiosk_change != consultation.kiosk_id:
            if kiosk_change:
                kiosk_service.set_consultation(kiosk_change, consultation.id)
            else:
                consultation = self.get_consultation(consultation.id)
                kiosk_service.release_consultation(consultation)
                repos.consultation_repository.save(consultation)

        consultation = self.get_consultation(consultation.id)
        if wanted is None:
            return consultation

        current: List[Form] = [f for f in (repos.form_repository.get(fid) for fid in consultation.proms) if f]
        keep = [f for f in current if f.form_template_id in wanted]
        drop = [f for f in current if f.form_template_id not in wanted]
        have = {f.form_template_id for f in keep}
        created = [
            form_service.create_form_by_template_id(
                tid, case_id=consultation.patient_case_id, consultation_id=consultation.id
            )
            for tid in wanted
            if tid not in have
        ]
        consultation.proms = [f.id for f in keep] + [f.id for f in created]
        repos.consultation_repository.save(consultation)

        if drop:
            logger.warning(
                "Deleting %d forms no longer requested by consultation %s", len(drop), consultation.id
            )
            form_service.delete_forms(f.id for f in drop)
        return consultation

    def delete_consultation(self, consultation_id: str) -> None:
        consultation = self.get_consultation(consultation_id)
        form_ids = set(consultation.proms)
        form_ids.update(f.id for f in repos.form_repository.list(lambda f: f.consultation_id == consultation_id))
        form_service.delete_forms(form_ids)

        self._release_code(consultation)
        kiosk_service.release_consultation(consultation)

        case = repos.patient_case_repository.get(consultation.patient_case_id)
        if case is not None and consultation_id in case.consultations:
            case.consultations.remove(consultation_id)
            repos.patient_case_repository.save(case)

        repos.consultation_repository.delete(consultation_id)
        logger.info("Deleted consultation %s", consultation_id)

    # Queries

    def list_by_case(self, case_id: str) -> List[Consultation]:
        consultations = repos.consultation_repository.list(lambda c: c.patient_case_id == case_id)
        return sorted(consultations, key=lambda c: c.date_and_time)

    def list_on_days(self, from_date: date, to_date: Optional[date] = None) -> List[Consultation]:
        """Consultations from 00:00 of ``from_date`` through the end of ``to_date``."""

        to_date = to_date or from_date
        if to_date < from_date:
            raise BadRequestError("to_date must not be before from_date")
        start = datetime.combine(from_date, time.min)
        end = datetime.combine(to_date, time.max)
        consultations = repos.consultation_repository.list(lambda c: start <= c.date_and_time <= end)
        return sorted(consultations, key=lambda c: c.date_and_time)

    def get_by_code(self, code: str) -> Consultation:
        found = access_code_service.get_code(code)
        if not found.consultation_id:
            raise BadRequestError("Code is not linked to a consultation")
        return self.get_consultation(found.consultation_id)

    def get_form_access_code(self, consultation_id: str) -> str:
        consultation = self.get_consultation(consultation_id)
        if not consultation.form_access_code:
            raise NotFoundError("No access code linked to this consultation")
        return access_code_service.get_code_by_id(consultation.form_access_code).code

    # Notes

    def add_note(self, consultation_id: str, text: str, created_by: Optional[str] = None) -> Consultation:
        consultation = self.get_consultation(consultation_id)
        consultation.notes.append(Note(note=text, created_by=created_by))
        consultation.updated_at = utcnow()
        repos.consultation_repository.save(consultation)
        return consultation

    def delete_note(self, consultation_id: str, note_id: str) -> Consultation:
        consultation = self.get_consultation(consultation_id)
        remaining = [note for note in consultation.notes if note.id != note_id]
        if len(remaining) == len(consultation.notes):
            raise NotFoundError("Note not found")
        consultation.notes = remaining
        consultation.updated_at = utcnow()
        repos.consultation_repository.save(consultation)
        return consultation


consultation_service = ConsultationService()
