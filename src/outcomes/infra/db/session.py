from __future__ import annotations

from collections.abc import Callable

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from src.outcomes.infra.db.models import Base

SessionFactory = Callable[[], Session]


def create_sqlalchemy_session_factory(database_url: str, *, create_tables: bool = True) -> SessionFactory:
    """Create a factory producing SQLAlchemy sessions bound to ``database_url``.

    Tables are created if they do not exist. Real deployments should manage
    the schema with migrations and pass ``create_tables=False``.
    """

    engine = create_engine(database_url, future=True)
    if create_tables:
        Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False, class_=Session)

    def _factory() -> Session:  # pragma: no cover - thin wrapper
        return SessionLocal()

    return _factory
