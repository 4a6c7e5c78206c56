"""Fournisseurs d'instantanés du catalogue de temples."""
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Union

import asyncpg

from app.db.postgres_connector import PostgresConnector
from app.db.schema import SAMPLE_TEMPLES
from app.errors import CatalogUnavailableError
from app.logger import logger
from app.models import CatalogEntry

TEMPLE_SELECT_SQL = """
SELECT id, name, type AS category, address, city, lat, lng, opening_hours,
       ritual_timings, festivals, accessibility, contact, description, image_url
FROM temples
"""


class CatalogProvider(ABC):
    """
    Fournit une vue cohérente et en lecture seule du catalogue.

    L'instantané retourné ne doit pas changer pendant une recherche.
    """

    @abstractmethod
    async def get_snapshot(self) -> List[CatalogEntry]:
        """Retourne toutes les entrées, dans un ordre d'itération stable."""

    @abstractmethod
    async def get_entry(self, entry_id: Union[int, str]) -> Optional[CatalogEntry]:
        """Retourne une entrée par son identifiant, ou None."""


class InMemoryCatalogProvider(CatalogProvider):
    """Catalogue en mémoire (tests, démonstration sans base)."""

    def __init__(self, entries: Iterable[Union[CatalogEntry, Dict[str, Any]]] = ()):
        self._entries: List[CatalogEntry] = [
            e if isinstance(e, CatalogEntry) else CatalogEntry.model_validate(e)
            for e in entries
        ]

    async def get_snapshot(self) -> List[CatalogEntry]:
        return list(self._entries)

    async def get_entry(self, entry_id: Union[int, str]) -> Optional[CatalogEntry]:
        for entry in self._entries:
            if str(entry.id) == str(entry_id):
                return entry
        return None


class PostgresCatalogProvider(CatalogProvider):
    """Catalogue lu depuis la table `temples`."""

    def __init__(self, db_connector: PostgresConnector):
        self.db = db_connector

    async def get_snapshot(self) -> List[CatalogEntry]:
        rows = await self._query(TEMPLE_SELECT_SQL + " ORDER BY id")
        return [CatalogEntry.model_validate(row) for row in rows]

    async def get_entry(self, entry_id: Union[int, str]) -> Optional[CatalogEntry]:
        try:
            temple_id = int(entry_id)
        except (TypeError, ValueError):
            return None
        rows = await self._query(TEMPLE_SELECT_SQL + " WHERE id = $1", temple_id)
        return CatalogEntry.model_validate(rows[0]) if rows else None

    async def _query(self, sql: str, *args) -> List[Dict[str, Any]]:
        try:
            return await self.db.execute_query(sql, *args)
        except (asyncpg.PostgresError, ConnectionError, OSError) as e:
            logger.error("Catalog query failed: {error}", error=e)
            raise CatalogUnavailableError("Temple catalog is unavailable") from e


def sample_catalog() -> InMemoryCatalogProvider:
    """Catalogue en mémoire peuplé avec les temples d'exemple."""
    return InMemoryCatalogProvider(
        {"id": i, **temple} for i, temple in enumerate(SAMPLE_TEMPLES, start=1)
    )
