from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)

Predicate = Callable[[M], bool]


class DocumentRepository(ABC, Generic[M]):
    """Stores one collection of pydantic documents keyed by their ``id``.

    Implementations hand out copies: mutating a returned model has no effect
    until it is passed back to ``save``.
    """

    def __init__(self, collection: str, model: Type[M]) -> None:
        self.collection = collection
        self.model = model

    @abstractmethod
    def get(self, doc_id: str) -> Optional[M]:
        raise NotImplementedError

    @abstractmethod
    def list(self, predicate: Optional[Predicate] = None) -> List[M]:
        """Return matching documents in insertion order."""
        raise NotImplementedError

    @abstractmethod
    def save(self, doc: M) -> M:
        """Insert or replace ``doc`` and return the stored copy."""
        raise NotImplementedError

    @abstractmethod
    def delete(self, doc_id: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError

    def find_one(self, predicate: Predicate) -> Optional[M]:
        for doc in self.list(predicate):
            return doc
        return None

    def count(self, predicate: Optional[Predicate] = None) -> int:
        return len(self.list(predicate))
