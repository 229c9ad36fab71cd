from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from src.outcomes.domain.models.common import Note, new_id, to_naive_utc, utcnow


class ConsultationReason(str, Enum):
    PLANNED = "planned"
    UNPLANNED = "unplanned"
    EMERGENCY = "emergency"
    PAIN = "pain"
    FOLLOWUP = "followup"


class KioskConsultationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Consultation(BaseModel):
    id: str = Field(default_factory=new_id)
    patient_case_id: str
    date_and_time: datetime
    reason_for_consultation: List[ConsultationReason] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    visited_by: List[str] = Field(default_factory=list)
    # Ids of the forms (PROMs) attached to this consultation.
    proms: List[str] = Field(default_factory=list)
    # Id of the linked FormAccessCode document, not the code string.
    form_access_code: Optional[str] = None
    # Id of the kiosk user currently assigned to this consultation.
    kiosk_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    @field_validator("date_and_time")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class ConsultationCreate(BaseModel):
    date_and_time: datetime
    reason_for_consultation: List[ConsultationReason] = Field(default_factory=list)
    notes: List[Note] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    visited_by: List[str] = Field(default_factory=list)
    form_templates: List[str] = Field(default_factory=list)
    form_access_code: Optional[str] = None
    kiosk_id: Optional[str] = None


class ConsultationUpdate(BaseModel):
    """Partial update. Only fields present in the payload are applied.

    ``form_access_code`` and ``kiosk_id`` may be sent as null to unlink.
    """

    date_and_time: Optional[datetime] = None
    reason_for_consultation: Optional[List[ConsultationReason]] = None
    images: Optional[List[str]] = None
    visited_by: Optional[List[str]] = None
    proms: Optional[List[str]] = None
    form_templates: Optional[List[str]] = None
    form_access_code: Optional[str] = None
    kiosk_id: Optional[str] = None
