from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from src.outcomes.domain.models.common import new_id, utcnow


class UserRole(str, Enum):
    ADMIN = "admin"
    DEVELOPER = "developer"
    DOCTOR = "doctor"
    STUDY_NURSE = "study-nurse"
    MFA = "mfa"
    KIOSK = "kiosk"


class UserPublic(BaseModel):
    """User as returned by the API. Never carries the password hash."""

    id: str = Field(default_factory=new_id)
    username: str = Field(min_length=1)
    name: Optional[str] = None
    department: List[str] = Field(default_factory=list)
    roles: List[UserRole] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)
    email: Optional[EmailStr] = None
    last_login: Optional[datetime] = None
    belongs_to_center: List[str] = Field(default_factory=list)
    days_before_consultations: int = Field(default=7, ge=0, le=365)
    # Kiosk users: the consultation currently shown on the device.
    consultation_id: Optional[str] = None
    postop_week: Optional[int] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None

    def has_role(self, *roles: UserRole) -> bool:
        return any(role in self.roles for role in roles)


class User(UserPublic):
    password_hash: Optional[str] = None


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    name: Optional[str] = None
    department: List[str] = Field(default_factory=list)
    roles: List[UserRole] = Field(default_factory=list)
    permissions: List[str] = Field(default_factory=list)
    email: Optional[EmailStr] = None
    belongs_to_center: List[str] = Field(default_factory=list)
    days_before_consultations: int = Field(default=7, ge=0, le=365)
    postop_week: Optional[int] = None


class UserUpdate(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None
    department: Optional[List[str]] = None
    roles: Optional[List[UserRole]] = None
    permissions: Optional[List[str]] = None
    email: Optional[EmailStr] = None
    belongs_to_center: Optional[List[str]] = None
    days_before_consultations: Optional[int] = Field(default=None, ge=0, le=365)
    postop_week: Optional[int] = None


class LoginRequest(BaseModel):
    username: str
    password: str


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(min_length=1)
