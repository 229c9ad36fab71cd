from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.outcomes.domain.models.common import new_id


class FormAccessCode(BaseModel):
    id: str = Field(default_factory=new_id)
    code: str = Field(pattern=r"^[A-Z]{3}[0-9]{2}$")
    activated_on: Optional[datetime] = None
    expires_on: Optional[datetime] = None
    consultation_id: Optional[str] = None

    @property
    def is_active(self) -> bool:
        return self.activated_on is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_on is not None and self.expires_on <= now


class CodeValidation(BaseModel):
    code: str
    valid: bool
    consultation_id: Optional[str] = None
    expires_on: Optional[datetime] = None
