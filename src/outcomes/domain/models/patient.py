from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from src.outcomes.domain.models.common import SoftDeleteFields, new_id, utcnow


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"
    DIVERSE = "diverse"


class Patient(SoftDeleteFields):
    id: str = Field(default_factory=new_id)
    # A patient may be known under several hospital identifiers.
    external_patient_id: List[str] = Field(default_factory=list)
    sex: Optional[Sex] = None
    cases: List[str] = Field(default_factory=list)
    department: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class PatientWithCounts(Patient):
    case_count: int = 0
    consultation_count: int = 0


class PatientCreate(BaseModel):
    external_patient_id: List[str] = Field(min_length=1)
    sex: Optional[Sex] = None
    department: Optional[str] = None


class PatientUpdate(BaseModel):
    external_patient_id: Optional[List[str]] = None
    sex: Optional[Sex] = None
    department: Optional[str] = None
