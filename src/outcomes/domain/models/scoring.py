from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class SubscaleScore(BaseModel):
    name: str
    description: str
    raw_score: Optional[float] = None
    normalized_score: Optional[float] = None
    max_possible_score: float
    answered_questions: int
    total_questions: int
    completion_percentage: int
    is_complete: bool


class ScoringData(BaseModel):
    raw_data: Dict[str, Any] = Field(default_factory=dict)
    subscales: Dict[str, Optional[SubscaleScore]] = Field(default_factory=dict)
    total: Optional[SubscaleScore] = None
