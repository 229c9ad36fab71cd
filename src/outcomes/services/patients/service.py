from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from src.outcomes.domain.models.common import PaginatedResult, apply_changes, utcnow
from src.outcomes.domain.models.patient import Patient, PatientCreate, PatientUpdate, PatientWithCounts
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.errors import BadRequestError, ConflictError, NotFoundError
from src.outcomes.infra.db import inmemory as repos
from src.outcomes.services.cases.service import patient_case_service

logger = logging.getLogger(__name__)


class PatientService:
    """Patients, identified by one or more external (hospital) ids."""

    def _with_counts(self, patients: Iterable[Patient]) -> List[PatientWithCounts]:
        patients = list(patients)
        ids = {p.id for p in patients}
        case_counts: Dict[str, int] = {}
        consultation_counts: Dict[str, int] = {}
        for case in repos.patient_case_repository.list(lambda c: c.patient_id in ids and not c.is_deleted):
            case_counts[case.patient_id] = case_counts.get(case.patient_id, 0) + 1
            consultations = repos.consultation_repository.count(lambda c: c.patient_case_id == case.id)
            consultation_counts[case.patient_id] = consultation_counts.get(case.patient_id, 0) + consultations
        return [
            PatientWithCounts(
                **p.model_dump(),
                case_count=case_counts.get(p.id, 0),
                consultation_count=consultation_counts.get(p.id, 0),
            )
            for p in patients
        ]

    def find_all(self, *, page: int = 1, limit: int = 10, include_deleted: bool = False) -> PaginatedResult[PatientWithCounts]:
        patients = repos.patient_repository.list(lambda p: include_deleted or not p.is_deleted)
        # Newest first.
        patients.reverse()
        result = PaginatedResult[Patient].from_items(patients, page=page, limit=limit)
        return PaginatedResult[PatientWithCounts](
            items=self._with_counts(result.items),
            total=result.total,
            page=result.page,
            limit=result.limit,
            total_pages=result.total_pages,
        )

    def get_patient(self, patient_id: str) -> Patient:
        patient = repos.patient_repository.get(patient_id)
        if patient is None or patient.is_deleted:
            raise NotFoundError("Patient not found")
        return patient

    def get_by_external_id(self, external_id: str) -> Patient:
        patient = repos.patient_repository.find_one(
            lambda p: external_id in p.external_patient_id and not p.is_deleted
        )
        if patient is None:
            raise NotFoundError("Patient not found")
        return patient

    def search_by_external_id(self, fragment: str) -> List[Patient]:
        needle = fragment.lower()
        return repos.patient_repository.list(
            lambda p: not p.is_deleted and any(needle in ext.lower() for ext in p.external_patient_id)
        )

    def _ensure_unique_external_ids(self, external_ids: Iterable[str], exclude_id: Optional[str] = None) -> None:
        wanted = set(external_ids)
        clash = repos.patient_repository.find_one(
            lambda p: p.id != exclude_id and bool(wanted.intersection(p.external_patient_id))
        )
        if clash is not None:
            raise ConflictError("Patient with this external ID already exists")

    def create_patient(self, payload: PatientCreate, current_user: Optional[UserPublic] = None) -> Patient:
        self._ensure_unique_external_ids(payload.external_patient_id)
        patient = Patient(**payload.model_dump())
        if patient.department is None and current_user is not None and current_user.department:
            patient.department = current_user.department[0]
        repos.patient_repository.save(patient)
        logger.info("Created patient %s", patient.id)
        return patient

    def update_patient(self, patient_id: str, payload: PatientUpdate) -> Patient:
        patient = self.get_patient(patient_id)
        changes = payload.model_dump(exclude_unset=True)
        if changes.get("external_patient_id") is not None:
            if not changes["external_patient_id"]:
                raise BadRequestError("A patient needs at least one external ID")
            self._ensure_unique_external_ids(changes["external_patient_id"], exclude_id=patient_id)
        patient = apply_changes(patient, {**changes, "updated_at": utcnow()})
        repos.patient_repository.save(patient)
        return patient

    def delete_patient(self, patient_id: str) -> None:
        patient = repos.patient_repository.get(patient_id)
        if patient is None:
            raise NotFoundError("Patient not found")
        for case in repos.patient_case_repository.list(lambda c: c.patient_id == patient_id):
            patient_case_service.delete_case(patient_id, case.id)
        repos.patient_repository.delete(patient_id)
        logger.info("Deleted patient %s", patient_id)

    def soft_delete_patient(
        self, patient_id: str, *, deleted_by: Optional[str] = None, reason: Optional[str] = None
    ) -> Patient:
        """Mark the patient and its open cases as deleted with one timestamp."""

        patient = self.get_patient(patient_id)
        now = utcnow()
        patient.deleted_at = now
        patient.deleted_by = deleted_by
        patient.deletion_reason = reason
        repos.patient_repository.save(patient)
        case_ids = [c.id for c in repos.patient_case_repository.list(lambda c: c.patient_id == patient_id)]
        patient_case_service.soft_delete_many(case_ids, deleted_by=deleted_by, reason=reason, now=now)
        return patient

    def soft_delete_many(
        self, patient_ids: Iterable[str], *, deleted_by: Optional[str] = None, reason: Optional[str] = None
    ) -> int:
        deleted = 0
        for patient_id in patient_ids:
            patient = repos.patient_repository.get(patient_id)
            if patient is None or patient.is_deleted:
                continue
            self.soft_delete_patient(patient_id, deleted_by=deleted_by, reason=reason)
            deleted += 1
        return deleted

    def restore_patient(self, patient_id: str) -> Patient:
        """Undo a soft delete, including the cases deleted along with the patient."""

        patient = repos.patient_repository.get(patient_id)
        if patient is None:
            raise NotFoundError("Patient not found")
        if not patient.is_deleted:
            raise BadRequestError("Patient is not deleted")
        deleted_at = patient.deleted_at
        patient.deleted_at = None
        patient.deleted_by = None
        patient.deletion_reason = None
        repos.patient_repository.save(patient)
        for case in repos.patient_case_repository.list(
            lambda c: c.patient_id == patient_id and c.deleted_at == deleted_at
        ):
            patient_case_service.restore_case(case.id)
        return patient

    def find_deleted(self, *, page: int = 1, limit: int = 10) -> PaginatedResult[Patient]:
        patients = repos.patient_repository.list(lambda p: p.is_deleted)
        patients.sort(key=lambda p: p.deleted_at, reverse=True)
        return PaginatedResult[Patient].from_items(patients, page=page, limit=limit)


patient_service = PatientService()
