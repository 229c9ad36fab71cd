from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from src.outcomes.domain.models.common import Note, SoftDeleteFields, new_id, utcnow


class PatientCase(SoftDeleteFields):
    id: str = Field(default_factory=new_id)
    patient_id: str
    external_id: Optional[str] = None
    main_diagnosis: List[str] = Field(default_factory=list)
    study_diagnosis: List[str] = Field(default_factory=list)
    other_diagnosis: List[str] = Field(default_factory=list)
    main_diagnosis_icd10: List[str] = Field(default_factory=list)
    study_diagnosis_icd10: List[str] = Field(default_factory=list)
    other_diagnosis_icd10: List[str] = Field(default_factory=list)
    surgeries: List[str] = Field(default_factory=list)
    supervisors: List[str] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    medical_history: Optional[str] = None
    consultations: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class PatientCaseCreate(BaseModel):
    external_id: Optional[str] = None
    main_diagnosis: List[str] = Field(default_factory=list)
    study_diagnosis: List[str] = Field(default_factory=list)
    other_diagnosis: List[str] = Field(default_factory=list)
    main_diagnosis_icd10: List[str] = Field(default_factory=list)
    study_diagnosis_icd10: List[str] = Field(default_factory=list)
    other_diagnosis_icd10: List[str] = Field(default_factory=list)
    surgeries: List[str] = Field(default_factory=list)
    supervisors: List[str] = Field(default_factory=list)
    medical_history: Optional[str] = None


class PatientCaseUpdate(BaseModel):
    external_id: Optional[str] = None
    main_diagnosis: Optional[List[str]] = None
    study_diagnosis: Optional[List[str]] = None
    other_diagnosis: Optional[List[str]] = None
    main_diagnosis_icd10: Optional[List[str]] = None
    study_diagnosis_icd10: Optional[List[str]] = None
    other_diagnosis_icd10: Optional[List[str]] = None
    surgeries: Optional[List[str]] = None
    supervisors: Optional[List[str]] = None
    medical_history: Optional[str] = None
