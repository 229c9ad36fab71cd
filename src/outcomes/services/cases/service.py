from __future__ import annotations

import logging
import secrets
import string
from datetime import datetime
from typing import Iterable, List, Optional

from src.outcomes.domain.models.common import Note, PaginatedResult, apply_changes, utcnow
from src.outcomes.domain.models.patient_case import PatientCase, PatientCaseCreate, PatientCaseUpdate
from src.outcomes.domain.models.user import User
from src.outcomes.errors import BadRequestError, ConflictError, NotFoundError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.consultations.service import consultation_service
from src.outcomes.services.surgeries.service import surgery_service

logger = logging.getLogger(__name__)

_EXTERNAL_ID_ALPHABET = string.ascii_letters + string.digits


def generate_case_external_id() -> str:
    """Random ``XXX-XXX-XXX`` identifier of letters and digits."""

    return "-".join("".join(secrets.choice(_EXTERNAL_ID_ALPHABET) for _ in range(3)) for _ in range(3))


class PatientCaseService:
    """Treatment cases of a patient, with their notes and supervisors."""

    def _external_id_taken(self, external_id: str, exclude_id: Optional[str] = None) -> bool:
        return (
            repos.patient_case_repository.count(
                lambda c: c.external_id == external_id and c.id != exclude_id and not c.is_deleted
            )
            > 0
        )

    def _get_patient(self, patient_id: str):
        patient = repos.patient_repository.get(patient_id)
        if patient is None or patient.is_deleted:
            raise NotFoundError("Patient not found")
        return patient

    def get_case_by_id(self, case_id: str) -> PatientCase:
        case = repos.patient_case_repository.get(case_id)
        if case is None or case.is_deleted:
            raise NotFoundError("Case not found")
        return case

    def list_cases(self, patient_id: str) -> List[PatientCase]:
        self._get_patient(patient_id)
        return repos.patient_case_repository.list(lambda c: c.patient_id == patient_id and not c.is_deleted)

    def get_case(self, patient_id: str, case_id: str) -> PatientCase:
        case = self.get_case_by_id(case_id)
        if case.patient_id != patient_id:
            raise NotFoundError("Case not found")
        return case

    def create_case(self, patient_id: str, payload: PatientCaseCreate) -> PatientCase:
        patient = self._get_patient(patient_id)
        case = PatientCase(patient_id=patient_id, **payload.model_dump())
        # A missing or already used external id is replaced by a fresh one.
        if not case.external_id or self._external_id_taken(case.external_id):
            external_id = generate_case_external_id()
            while self._external_id_taken(external_id):
                external_id = generate_case_external_id()
            case.external_id = external_id
        repos.patient_case_repository.save(case)

        patient.cases.append(case.id)
        repos.patient_repository.save(patient)
        logger.info("Created case %s for patient %s", case.id, patient_id)
        return case

    def update_case(self, patient_id: str, case_id: str, payload: PatientCaseUpdate) -> PatientCase:
        case = self.get_case(patient_id, case_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("external_id") and self._external_id_taken(changes["external_id"], exclude_id=case_id):
            raise ConflictError("Case with this external ID already exists")
        case = apply_changes(case, {**changes, "updated_at": utcnow()})
        repos.patient_case_repository.save(case)
        return case

    def delete_case(self, patient_id: str, case_id: str) -> None:
        case = repos.patient_case_repository.get(case_id)
        if case is None or case.patient_id != patient_id:
            raise NotFoundError("Case not found")
        for consultation in repos.consultation_repository.list(lambda c: c.patient_case_id == case_id):
            consultation_service.delete_consultation(consultation.id)
        surgery_service.delete_for_case(case_id)
        repos.patient_case_repository.delete(case_id)

        patient = repos.patient_repository.get(patient_id)
        if patient is not None and case_id in patient.cases:
            patient.cases.remove(case_id)
            repos.patient_repository.save(patient)
        logger.info("Deleted case %s", case_id)

    # Queries

    def search_by_external_id(self, fragment: str) -> List[PatientCase]:
        needle = fragment.lower()
        return repos.patient_case_repository.list(
            lambda c: not c.is_deleted and c.external_id is not None and needle in c.external_id.lower()
        )

    def find_by_diagnosis(self, diagnosis: str) -> List[PatientCase]:
        return repos.patient_case_repository.list(
            lambda c: not c.is_deleted and (diagnosis in c.main_diagnosis or diagnosis in c.other_diagnosis)
        )

    def find_by_icd10(self, code: str) -> List[PatientCase]:
        return repos.patient_case_repository.list(
            lambda c: not c.is_deleted and (code in c.main_diagnosis_icd10 or code in c.other_diagnosis_icd10)
        )

    def find_by_supervisor(self, supervisor_id: str) -> List[PatientCase]:
        return repos.patient_case_repository.list(lambda c: not c.is_deleted and supervisor_id in c.supervisors)

    def get_supervisors(self, case_id: str) -> List[User]:
        case = self.get_case_by_id(case_id)
        users = [repos.user_repository.get(user_id) for user_id in case.supervisors]
        return [user for user in users if user is not None]

    # Notes

    def list_notes(self, case_id: str) -> List[Note]:
        return self.get_case_by_id(case_id).notes

    def add_note(self, case_id: str, text: str, created_by: Optional[str] = None) -> PatientCase:
        case = self.get_case_by_id(case_id)
        case.notes.append(Note(note=text, created_by=created_by))
        case.updated_at = utcnow()
        repos.patient_case_repository.save(case)
        return case

    def delete_note(self, case_id: str, note_id: str) -> PatientCase:
        case = self.get_case_by_id(case_id)
        remaining = [note for note in case.notes if note.id != note_id]
        if len(remaining) == len(case.notes):
            raise NotFoundError("Note not found")
        case.notes = remaining
        case.updated_at = utcnow()
        repos.patient_case_repository.save(case)
        return case

    # Soft delete

    def soft_delete_case(
        self, patient_id: str, case_id: str, *, deleted_by: Optional[str] = None, reason: Optional[str] = None
    ) -> PatientCase:
        case = self.get_case(patient_id, case_id)
        case.deleted_at = utcnow()
        case.deleted_by = deleted_by
        case.deletion_reason = reason
        repos.patient_case_repository.save(case)
        return case

    def soft_delete_many(
        self,
        case_ids: Iterable[str],
        *,
        deleted_by: Optional[str] = None,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> int:
        now = now or utcnow()
        count = 0
        for case_id in case_ids:
            case = repos.patient_case_repository.get(case_id)
            if case is None or case.is_deleted:
                continue
            case.deleted_at = now
            case.deleted_by = deleted_by
            case.deletion_reason = reason
            repos.patient_case_repository.save(case)
            count += 1
        return count

    def restore_case(self, case_id: str) -> PatientCase:
        case = repos.patient_case_repository.get(case_id)
        if case is None:
            raise NotFoundError("Case not found")
        if not case.is_deleted:
            raise BadRequestError("Case is not deleted")
        case.deleted_at = None
        case.deleted_by = None
        case.deletion_reason = None
        repos.patient_case_repository.save(case)
        return case

    def find_deleted(self, *, page: int = 1, limit: int = 10) -> PaginatedResult[PatientCase]:
        cases = repos.patient_case_repository.list(lambda c: c.is_deleted)
        cases.sort(key=lambda c: c.deleted_at, reverse=True)
        return PaginatedResult[PatientCase].from_items(cases, page=page, limit=limit)


patient_case_service = PatientCaseService()
