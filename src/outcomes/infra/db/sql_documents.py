from __future__ import annotations

from typing import List, Optional

from sqlalchemy import delete, func, select

from src.outcomes.domain.models.common import utcnow
from src.outcomes.infra.db.models import DocumentORM
from src.outcomes.infra.db.repositories import DocumentRepository, M, Predicate
from src.outcomes.infra.db.session import SessionFactory


class SqlDocumentRepository(DocumentRepository[M]):
    """SQL-backed repository storing each document as a JSON row.

    Filtering happens in Python after loading the collection, which matches
    the in-memory implementation exactly and is adequate for the data volumes
    of a single clinic.
    """

    def __init__(self, session_factory: SessionFactory, collection, model) -> None:
        super().__init__(collection, model)
        self._session_factory = session_factory

    def get(self, doc_id: str) -> Optional[M]:
        session = self._session_factory()
        try:
            orm = session.get(DocumentORM, (self.collection, doc_id))
            if orm is None:
                return None
            return orm.to_domain(self.model)
        finally:
            session.close()

    def list(self, predicate: Optional[Predicate] = None) -> List[M]:
        session = self._session_factory()
        try:
            stmt = select(DocumentORM).where(DocumentORM.collection == self.collection).order_by(DocumentORM.seq)
            docs = [orm.to_domain(self.model) for orm in session.scalars(stmt)]
        finally:
            session.close()
        if predicate is None:
            return docs
        return [doc for doc in docs if predicate(doc)]

    def save(self, doc: M) -> M:
        session = self._session_factory()
        try:
            now = utcnow()
            orm = session.get(DocumentORM, (self.collection, doc.id))
            if orm is None:
                last_seq = session.scalar(
                    select(func.max(DocumentORM.seq)).where(DocumentORM.collection == self.collection)
                )
                session.add(DocumentORM.from_domain(self.collection, doc, seq=(last_seq or 0) + 1, now=now))
            else:
                orm.data = doc.model_dump(mode="json")
                orm.updated_at = now
            session.commit()
            return doc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def delete(self, doc_id: str) -> bool:
        session = self._session_factory()
        try:
            result = session.execute(
                delete(DocumentORM).where(DocumentORM.collection == self.collection, DocumentORM.id == doc_id)
            )
            session.commit()
            return result.rowcount > 0
        finally:
            session.close()

    def clear(self) -> None:
        session = self._session_factory()
        try:
            session.execute(delete(DocumentORM).where(DocumentORM.collection == self.collection))
            session.commit()
        finally:
            session.close()
