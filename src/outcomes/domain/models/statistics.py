from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.outcomes.domain.models.scoring import SubscaleScore


class PromScores(BaseModel):
    """Scores of one form, as plotted on a case timeline."""

    form_id: str
    form_template_id: Optional[str] = None
    title: str
    subscales: Dict[str, Optional[SubscaleScore]] = Field(default_factory=dict)
    total: Optional[SubscaleScore] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    completion_time_seconds: Optional[int] = None


class ConsultationScores(BaseModel):
    consultation_id: str
    date: datetime
    proms: List[PromScores] = Field(default_factory=list)


class CaseStatistics(BaseModel):
    case_id: str
    total_consultations: int
    consultations: List[ConsultationScores] = Field(default_factory=list)
    # Date of the case's first surgery, the zero point of a postoperative timeline.
    surgery_date: Optional[datetime] = None
    case_created_at: Optional[datetime] = None
