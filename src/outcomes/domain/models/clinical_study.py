from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from src.outcomes.domain.models.common import new_id, utcnow


class StudyType(str, Enum):
    PROSPECTIVE = "prospective"
    RETROSPECTIVE = "retrospective"
    RANDOMISED_CONTROL_TRIAL = "randomised control trial"
    BLINDED = "blinded"
    DOUBLE_BLINDED = "double blinded"


class ClinicalStudy(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=1)
    description: Optional[str] = None
    included_icd10_diagnosis: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    begin_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    study_type: List[StudyType] = Field(default_factory=list)
    study_nurses: List[str] = Field(default_factory=list)
    supervisors: List[str] = Field(default_factory=list)


class ClinicalStudyCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    included_icd10_diagnosis: List[str] = Field(default_factory=list)
    begin_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    study_type: List[StudyType] = Field(default_factory=list)
    study_nurses: List[str] = Field(default_factory=list)
    supervisors: List[str] = Field(default_factory=list)


class ClinicalStudyUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    included_icd10_diagnosis: Optional[List[str]] = None
    begin_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    study_type: Optional[List[StudyType]] = None
    study_nurses: Optional[List[str]] = None
    supervisors: Optional[List[str]] = None
