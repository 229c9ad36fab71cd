from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from src.outcomes.domain.models.common import SoftDeleteFields, new_id, to_naive_utc, utcnow
from src.outcomes.domain.models.scoring import SubscaleScore


class FormFillStatus(str, Enum):
    DRAFT = "draft"
    INCOMPLETE = "incomplete"
    COMPLETED = "completed"


class PatientFormData(BaseModel):
    """Answers submitted by the patient plus the scores derived from them."""

    raw_data: Dict[str, Any] = Field(default_factory=dict)
    subscales: Dict[str, Optional[SubscaleScore]] = Field(default_factory=dict)
    total: Optional[SubscaleScore] = None
    # Client-side fill state: "draft", "incomplete" or "complete".
    fill_status: Optional[str] = None
    begin_fill: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_validator("begin_fill", "completed_at")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class Form(SoftDeleteFields):
    id: str = Field(default_factory=new_id)
    case_id: Optional[str] = None
    consultation_id: Optional[str] = None
    form_template_id: str
    title: str
    description: Optional[str] = None
    form_schema: Dict[str, Any] = Field(default_factory=dict)
    form_fill_status: FormFillStatus = FormFillStatus.DRAFT
    patient_form_data: Optional[PatientFormData] = None
    form_start_time: Optional[datetime] = None
    form_end_time: Optional[datetime] = None
    completion_time_seconds: Optional[int] = None
    current_version: int = 1
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class FormUpdate(BaseModel):
    patient_form_data: Optional[PatientFormData] = None
    form_fill_status: Optional[FormFillStatus] = None
    completion_time_seconds: Optional[int] = None
    # Form access code string, required when a patient edits through a code.
    code: Optional[str] = None


class FormVersion(BaseModel):
    id: str = Field(default_factory=new_id)
    form_id: str
    version: int
    patient_form_data: Optional[PatientFormData] = None
    form_fill_status: FormFillStatus
    changed_by: Optional[str] = None
    change_notes: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)


class FormSoftDeleteRequest(BaseModel):
    reason: Optional[str] = None


class FormIds(BaseModel):
    ids: List[str]
