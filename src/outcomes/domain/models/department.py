from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from src.outcomes.domain.models.common import new_id, utcnow


class DepartmentType(str, Enum):
    DEPARTMENT = "department"
    CENTER = "center"


class UserDepartment(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = Field(min_length=2, max_length=100)
    short_name: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    department_type: DepartmentType = DepartmentType.DEPARTMENT
    # Parent center id for departments that belong to a center.
    center: Optional[str] = None
    # Derived on read, never persisted as truth.
    has_child_departments: bool = False
    # Overrides the default access-code life, e.g. "2d".
    external_access_code_life: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class UserDepartmentCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    short_name: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    department_type: DepartmentType = DepartmentType.DEPARTMENT
    center: Optional[str] = None
    external_access_code_life: Optional[str] = None


class UserDepartmentUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    short_name: Optional[str] = None
    description: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    department_type: Optional[DepartmentType] = None
    center: Optional[str] = None
    external_access_code_life: Optional[str] = None
