from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status

from src.outcomes.domain.models.clinical_study import ClinicalStudy, ClinicalStudyCreate, ClinicalStudyUpdate
from src.outcomes.domain.models.user import UserPublic
from src.outcomes.security import get_api_key, get_current_user
from src.outcomes.services.audit.service import audit_service
from src.outcomes.services.studies.service import clinical_study_service

router = APIRouter(
    prefix="/studies",
    tags=["studies"],
    dependencies=[Depends(get_api_key)],
)


@router.get("/", response_model=List[ClinicalStudy])
async def list_studies() -> List[ClinicalStudy]:
    return clinical_study_service.list_studies()


@router.get("/supervisor/{supervisor_id}", response_model=List[ClinicalStudy])
async def find_studies_by_supervisor(supervisor_id: str) -> List[ClinicalStudy]:
    return clinical_study_service.find_by_supervisor(supervisor_id)


@router.get("/nurse/{nurse_id}", response_model=List[ClinicalStudy])
async def find_studies_by_nurse(nurse_id: str) -> List[ClinicalStudy]:
    return clinical_study_service.find_by_study_nurse(nurse_id)


@router.get("/diagnosis/{icd10_code}", response_model=List[ClinicalStudy])
async def find_studies_by_diagnosis(icd10_code: str) -> List[ClinicalStudy]:
    return clinical_study_service.find_by_diagnosis(icd10_code)


@router.get("/{study_id}", response_model=ClinicalStudy)
async def get_study(study_id: str) -> ClinicalStudy:
    return clinical_study_service.get_study(study_id)


@router.post("/", response_model=ClinicalStudy, status_code=status.HTTP_201_CREATED)
async def create_study(
    payload: ClinicalStudyCreate,
    current_user: UserPublic = Depends(get_current_user),
) -> ClinicalStudy:
    study = clinical_study_service.create_study(payload)
    audit_service.log_event(
        action="create_study",
        resource_type="clinical_study",
        resource_id=study.id,
        actor_id=current_user.id,
    )
    return study


@router.put("/{study_id}", response_model=ClinicalStudy)
async def update_study(
    study_id: str,
    payload: ClinicalStudyUpdate,
    current_user: UserPublic = Depends(get_current_user),
) -> ClinicalStudy:
    study = clinical_study_service.update_study(study_id, payload)
    audit_service.log_event(
        action="update_study",
        resource_type="clinical_study",
        resource_id=study_id,
        actor_id=current_user.id,
    )
    return study


@router.delete("/{study_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_study(
    study_id: str,
    current_user: UserPublic = Depends(get_current_user),
) -> None:
    clinical_study_service.delete_study(study_id)
    audit_service.log_event(
        action="delete_study",
        resource_type="clinical_study",
        resource_id=study_id,
        actor_id=current_user.id,
    )
