"""
API Dependencies: the product catalog for each request.

The catalog backend is picked by settings.catalog_backend:
  memory   → one shared InMemoryCatalog built from the bundled seed data
  database → a DatabaseCatalog on a session opened for the request
"""

import logging
from functools import lru_cache
from typing import AsyncGenerator

from pharmreturns.config import settings
from pharmreturns.database import async_session
from pharmreturns.services.catalog import DatabaseCatalog, InMemoryCatalog, ProductCatalog

logger = logging.getLogger(__name__)


# ── Catalog ──────────────────────────────────────────────────────────────────

@lru_cache(maxsize=1)
def get_memory_catalog() -> InMemoryCatalog:
    catalog = InMemoryCatalog.from_seed()
    logger.info("Loaded in-memory NDC catalog")
    return catalog


async def get_catalog() -> AsyncGenerator[ProductCatalog, None]:
    """Yield the configured product catalog for the current request.

    The database backend owns its session for the whole request; a handler
    error rolls it back before the session is closed.
    """
    if settings.catalog_backend != "database":
        yield get_memory_catalog()
        return

    async with async_session() as session:
        try:
            yield DatabaseCatalog(session)
        except Exception:
            await session.rollback()
            raise
