from __future__ import annotations

import logging
from typing import Optional

from src.outcomes.config import settings
from src.outcomes.infra.db import inmemory as inmemory_repos
from src.outcomes.infra.db.session import create_sqlalchemy_session_factory
from src.outcomes.infra.db.sql_documents import SqlDocumentRepository

logger = logging.getLogger(__name__)


def init_sql_repositories(database_url: Optional[str] = None, *, force: bool = False) -> bool:
    """Optionally switch in-memory repositories to SQL-backed implementations.

    If USE_SQL_REPOS is not enabled (and ``force`` is not set) or no database
    URL is configured, this is a no-op and the in-memory repositories remain
    active. Returns True when the swap happened.
    """

    if not (settings.use_sql_repos or force):
        return False

    db_url = database_url or settings.database_url
    if not db_url:
        logger.warning("USE_SQL_REPOS is enabled but DATABASE_URL is not set; keeping in-memory repositories")
        return False

    session_factory = create_sqlalchemy_session_factory(db_url)

    # Swap repository singletons so that services resolving
    # inmemory_repos.<name> now reach the database.
    for name in inmemory_repos.REPOSITORY_NAMES:
        current = getattr(inmemory_repos, name)
        setattr(inmemory_repos, name, SqlDocumentRepository(session_factory, current.collection, current.model))

    logger.info("SQL document repositories initialised")
    return True


def use_inmemory_repositories() -> None:
    """Restore fresh in-memory repositories for every collection."""

    for name in inmemory_repos.REPOSITORY_NAMES:
        current = getattr(inmemory_repos, name)
        setattr(inmemory_repos, name, inmemory_repos.InMemoryDocumentRepository(current.collection, current.model))
