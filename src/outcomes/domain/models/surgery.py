from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from src.outcomes.domain.models.common import Note, new_id, to_naive_utc, utcnow


class SurgerySide(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    NONE = "none"


class AnaesthesiaType(BaseModel):
    id: Optional[int] = None
    type: Optional[str] = None


class Surgery(BaseModel):
    id: str = Field(default_factory=new_id)
    patient_case_id: str
    external_id: Optional[str] = None
    diagnosis: List[str] = Field(default_factory=list)
    diagnosis_icd10: List[str] = Field(default_factory=list)
    therapy: Optional[str] = None
    ops_codes: List[str] = Field(default_factory=list)
    side: SurgerySide
    surgery_date: datetime
    # Minutes.
    surgery_time: Optional[float] = None
    tourniquet: Optional[float] = None
    anaesthesia_type: Optional[AnaesthesiaType] = None
    roentgen_dosis: Optional[float] = None
    roentgen_time: Optional[str] = None
    additional_data: List[Note] = Field(default_factory=list)
    surgeons: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @field_validator("surgery_date")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class SurgeryCreate(BaseModel):
    external_id: Optional[str] = None
    diagnosis: List[str] = Field(default_factory=list)
    diagnosis_icd10: List[str] = Field(default_factory=list)
    therapy: Optional[str] = None
    ops_codes: List[str] = Field(default_factory=list)
    side: SurgerySide
    surgery_date: datetime
    surgery_time: Optional[float] = None
    tourniquet: Optional[float] = None
    anaesthesia_type: Optional[AnaesthesiaType] = None
    roentgen_dosis: Optional[float] = None
    roentgen_time: Optional[str] = None
    surgeons: List[str] = Field(default_factory=list)


class SurgeryUpdate(BaseModel):
    external_id: Optional[str] = None
    diagnosis: Optional[List[str]] = None
    diagnosis_icd10: Optional[List[str]] = None
    therapy: Optional[str] = None
    ops_codes: Optional[List[str]] = None
    side: Optional[SurgerySide] = None
    surgery_date: Optional[datetime] = None
    surgery_time: Optional[float] = None
    tourniquet: Optional[float] = None
    anaesthesia_type: Optional[AnaesthesiaType] = None
    roentgen_dosis: Optional[float] = None
    roentgen_time: Optional[str] = None
    surgeons: Optional[List[str]] = None
