from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class DocumentORM(Base):
    """One row per document. Collections share the table."""

    __tablename__ = "documents"

    collection: Mapped[str] = mapped_column(String(64), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Insertion sequence within the collection, used for stable ordering.
    seq: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    @classmethod
    def from_domain(cls, collection: str, doc, *, seq: int, now: datetime) -> "DocumentORM":
        return cls(
            collection=collection,
            id=doc.id,
            seq=seq,
            data=doc.model_dump(mode="json"),
            created_at=now,
            updated_at=now,
        )

    def to_domain(self, model):
        return model.model_validate(self.data)
