from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from src.outcomes.domain.models.common import new_id, utcnow


class FormTemplate(BaseModel):
    id: str = Field(default_factory=new_id)
    title: str
    description: Optional[str] = None
    form_schema: Dict[str, Any] = Field(default_factory=dict)
    form_schema_ui: Dict[str, Any] = Field(default_factory=dict)
    # Sample answers used to preview the template.
    form_data: Dict[str, Any] = Field(default_factory=dict)
    translations: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class FormTemplateCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    form_schema: Dict[str, Any] = Field(default_factory=dict)
    form_schema_ui: Dict[str, Any] = Field(default_factory=dict)
    form_data: Dict[str, Any] = Field(default_factory=dict)
    translations: Dict[str, Any] = Field(default_factory=dict)


class FormTemplateUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    form_schema: Optional[Dict[str, Any]] = None
    form_schema_ui: Optional[Dict[str, Any]] = None
    form_data: Optional[Dict[str, Any]] = None
    translations: Optional[Dict[str, Any]] = None


class DepartmentFormTemplate(BaseModel):
    id: str = Field(default_factory=new_id)
    department_id: str
    form_template_ids: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: Optional[datetime] = None


class TemplateIds(BaseModel):
    form_template_ids: List[str]
