from __future__ import annotations

from typing import List

from src.outcomes.domain.models.clinical_study import ClinicalStudy, ClinicalStudyCreate, ClinicalStudyUpdate
from src.outcomes.domain.models.common import apply_changes, to_naive_utc
from src.outcomes.errors import BadRequestError, NotFoundError
from src.outcomes.infra.db import inmemory as repos


def _check_dates(study: ClinicalStudy) -> None:
    begin, end = to_naive_utc(study.begin_date), to_naive_utc(study.end_date)
    if begin is not None and end is not None and end < begin:
        raise BadRequestError("Study end date must not be before its begin date")


class ClinicalStudyService:
    def list_studies(self) -> List[ClinicalStudy]:
        return repos.clinical_study_repository.list()

    def get_study(self, study_id: str) -> ClinicalStudy:
        study = repos.clinical_study_repository.get(study_id)
        if study is None:
            raise NotFoundError("Clinical study not found")
        return study

    def create_study(self, payload: ClinicalStudyCreate) -> ClinicalStudy:
        study = ClinicalStudy(**payload.model_dump())
        _check_dates(study)
        return repos.clinical_study_repository.save(study)

    def update_study(self, study_id: str, payload: ClinicalStudyUpdate) -> ClinicalStudy:
        current = self.get_study(study_id)
        study = apply_changes(current, payload.model_dump(exclude_unset=True))
        _check_dates(study)
        return repos.clinical_study_repository.save(study)

    def delete_study(self, study_id: str) -> None:
        self.get_study(study_id)
        repos.clinical_study_repository.delete(study_id)

    def find_by_supervisor(self, supervisor_id: str) -> List[ClinicalStudy]:
        return repos.clinical_study_repository.list(lambda s: supervisor_id in s.supervisors)

    def find_by_study_nurse(self, nurse_id: str) -> List[ClinicalStudy]:
        return repos.clinical_study_repository.list(lambda s: nurse_id in s.study_nurses)

    def find_by_diagnosis(self, icd10_code: str) -> List[ClinicalStudy]:
        return repos.clinical_study_repository.list(lambda s: icd10_code in s.included_icd10_diagnosis)


clinical_study_service = ClinicalStudyService()
