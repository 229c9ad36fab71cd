from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Generic, List, Optional, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field, ValidationError

from src.outcomes.errors import BadRequestError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


def new_id() -> str:
    """Return a 24-character hex identifier, the shape document stores use."""

    return uuid4().hex[:24]


def utcnow() -> datetime:
    """Naive UTC timestamp. All stored datetimes are naive UTC."""

    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class Note(BaseModel):
    id: str = Field(default_factory=new_id)
    date_created: datetime = Field(default_factory=utcnow)
    created_by: Optional[str] = None
    note: str


class SoftDeleteFields(BaseModel):
    deleted_at: Optional[datetime] = None
    deleted_by: Optional[str] = None
    deletion_reason: Optional[str] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class PaginatedResult(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def from_items(cls, items: List[T], *, page: int = 1, limit: int = 10) -> "PaginatedResult[T]":
        """Slice an already sorted list into one page."""

        page = max(page, 1)
        limit = max(limit, 1)
        start = (page - 1) * limit
        total = len(items)
        return cls(
            items=items[start : start + limit],
            total=total,
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit),
        )


def apply_changes(document: M, changes: Dict[str, Any]) -> M:
    """Return a copy of ``document`` with ``changes`` applied and re-validated.

    An explicit null for a field that cannot hold one, or any other value the
    stored type rejects, raises BadRequestError.
    """

    try:
        return type(document).model_validate({**document.model_dump(), **changes})
    except ValidationError as exc:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()})
        raise BadRequestError(f"Invalid value for: {', '.join(fields)}") from exc
