from __future__ import annotations

import logging
from typing import List, Optional

from src.outcomes.domain.models.common import Note, apply_changes, utcnow
from src.outcomes.domain.models.surgery import Surgery, SurgeryCreate, SurgeryUpdate
from src.outcomes.domain.models.user import User
from src.outcomes.errors import NotFoundError
from src.outcomes.infra.db import inmemory as repos

logger = logging.getLogger(__name__)


class SurgeryService:
    """Surgeries performed within a patient case.

    The case keeps the ids of its surgeries in ``PatientCase.surgeries``;
    creating and deleting a surgery keeps that list in step.
    """

    def list_surgeries(self) -> List[Surgery]:
        return repos.surgery_repository.list()

    def get_surgery(self, surgery_id: str) -> Surgery:
        surgery = repos.surgery_repository.get(surgery_id)
        if surgery is None:
            raise NotFoundError("Surgery not found")
        return surgery

    def list_by_case(self, case_id: str) -> List[Surgery]:
        surgeries = repos.surgery_repository.list(lambda s: s.patient_case_id == case_id)
        return sorted(surgeries, key=lambda s: s.surgery_date)

    def create_surgery(self, case_id: str, payload: SurgeryCreate) -> Surgery:
        case = repos.patient_case_repository.get(case_id)
        if case is None or case.is_deleted:
            raise NotFoundError("Case not found")

        surgery = Surgery(patient_case_id=case_id, **payload.model_dump())
        repos.surgery_repository.save(surgery)
        case.surgeries.append(surgery.id)
        repos.patient_case_repository.save(case)
        logger.info("Created surgery %s for case %s", surgery.id, case_id)
        return surgery

    def update_surgery(self, surgery_id: str, payload: SurgeryUpdate) -> Surgery:
        surgery = apply_changes(
            self.get_surgery(surgery_id), {**payload.model_dump(exclude_unset=True), "updated_at": utcnow()}
        )
        return repos.surgery_repository.save(surgery)

    def delete_surgery(self, surgery_id: str) -> None:
        surgery = self.get_surgery(surgery_id)
        repos.surgery_repository.delete(surgery_id)
        case = repos.patient_case_repository.get(surgery.patient_case_id)
        if case is not None and surgery_id in case.surgeries:
            case.surgeries.remove(surgery_id)
            repos.patient_case_repository.save(case)
        logger.info("Deleted surgery %s", surgery_id)

    def delete_for_case(self, case_id: str) -> int:
        surgeries = repos.surgery_repository.list(lambda s: s.patient_case_id == case_id)
        for surgery in surgeries:
            repos.surgery_repository.delete(surgery.id)
        return len(surgeries)

    # Queries

    def search_by_external_id(self, fragment: str) -> List[Surgery]:
        needle = fragment.lower()
        return repos.surgery_repository.list(lambda s: s.external_id is not None and needle in s.external_id.lower())

    def find_by_diagnosis(self, diagnosis: str) -> List[Surgery]:
        return repos.surgery_repository.list(lambda s: diagnosis in s.diagnosis)

    def find_by_icd10(self, code: str) -> List[Surgery]:
        return repos.surgery_repository.list(lambda s: code in s.diagnosis_icd10)

    def find_by_surgeon(self, surgeon_id: str) -> List[Surgery]:
        return repos.surgery_repository.list(lambda s: surgeon_id in s.surgeons)

    def get_surgeons(self, surgery_id: str) -> List[User]:
        users = [repos.user_repository.get(user_id) for user_id in self.get_surgery(surgery_id).surgeons]
        return [user for user in users if user is not None]

    # Notes

    def add_note(self, surgery_id: str, text: str, created_by: Optional[str] = None) -> Surgery:
        surgery = self.get_surgery(surgery_id)
        surgery.additional_data.append(Note(note=text, created_by=created_by))
        surgery.updated_at = utcnow()
        return repos.surgery_repository.save(surgery)

    def delete_note(self, surgery_id: str, note_id: str) -> Surgery:
        surgery = self.get_surgery(surgery_id)
        remaining = [note for note in surgery.additional_data if note.id != note_id]
        if len(remaining) == len(surgery.additional_data):
            raise NotFoundError("Note not found")
        surgery.additional_data = remaining
        surgery.updated_at = utcnow()
        return repos.surgery_repository.save(surgery)


surgery_service = SurgeryService()
