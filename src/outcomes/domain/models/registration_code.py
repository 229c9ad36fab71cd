from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from src.outcomes.domain.models.common import new_id, utcnow
from src.outcomes.domain.models.user import UserRole

REGISTRATION_CODE_PATTERN = r"^[A-Za-z0-9]{3}-[A-Za-z0-9]{3}-[A-Za-z0-9]{3}$"


class RegistrationCode(BaseModel):
    id: str = Field(default_factory=new_id)
    code: str = Field(pattern=REGISTRATION_CODE_PATTERN)
    created_at: datetime = Field(default_factory=utcnow)
    activated_at: Optional[datetime] = None
    valid_until: Optional[datetime] = None
    user_created_with: Optional[str] = None
    roles: List[UserRole] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)
    user_department: List[str] = Field(default_factory=list)
    user_belongs_to_center: List[str] = Field(default_factory=list)
    active: bool = True


class RegistrationCodeCreate(BaseModel):
    count: int = Field(default=1, ge=1, le=100)
    roles: List[UserRole] = Field(min_length=1)
    permissions: List[str] = Field(default_factory=list)
    user_department: List[str] = Field(default_factory=list)
    user_belongs_to_center: List[str] = Field(default_factory=list)
    valid_until: Optional[datetime] = None


class RegisterUserRequest(BaseModel):
    code: str = Field(pattern=REGISTRATION_CODE_PATTERN)
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: Optional[str] = None
    email: Optional[EmailStr] = None
