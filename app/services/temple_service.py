"""Fiches détaillées des temples, avis et événements."""
import asyncio
from typing import Optional, Union

from app.db.postgres_connector import PostgresConnector
from app.logger import logger
from app.models import Review, ReviewCreate, TempleDetail, TempleEvent
from app.search.catalog_provider import CatalogProvider

REVIEWS_SQL = """
SELECT r.*, u.name AS user_name
FROM reviews r JOIN users u ON r.user_id = u.id
WHERE r.temple_id = $1
ORDER BY r.created_at DESC, r.id DESC
"""
EVENTS_SQL = "SELECT * FROM events WHERE temple_id = $1 ORDER BY event_date"
INSERT_REVIEW_SQL = """
INSERT INTO reviews (temple_id, user_id, rating, comment) VALUES ($1, $2, $3, $4)
"""


class TempleService:
    """Enrichit une entrée du catalogue avec ses avis et ses événements."""

    def __init__(self, catalog_provider: CatalogProvider, db_connector: PostgresConnector):
        self.catalog_provider = catalog_provider
        self.db = db_connector

    async def get_detail(self, temple_id: Union[int, str]) -> Optional[TempleDetail]:
        """
        Retourne la fiche complète d'un temple, ou None s'il n'existe pas.

        Avis et événements sont chargés en parallèle.
        """
        entry = await self.catalog_provider.get_entry(temple_id)
        if entry is None:
            return None

        try:
            db_id = int(entry.id)
        except (TypeError, ValueError):
            # Identifiant hors base (catalogue en mémoire) : ni avis ni événements
            logger.debug("Temple {temple_id} has no integer id, skipping reviews", temple_id=entry.id)
            return TempleDetail.model_validate(entry.model_dump())

        reviews, events = await asyncio.gather(
            self.db.execute_query(REVIEWS_SQL, db_id),
            self.db.execute_query(EVENTS_SQL, db_id),
        )
        return TempleDetail.model_validate({
            **entry.model_dump(),
            "reviews": [Review.model_validate(r) for r in reviews],
            "events": [TempleEvent.model_validate(e) for e in events],
        })

    async def add_review(self, review: ReviewCreate) -> None:
        """Enregistre un nouvel avis."""
        await self.db.execute(
            INSERT_REVIEW_SQL, review.temple_id, review.user_id, review.rating, review.comment
        )
        logger.info(
            "Review added for temple {temple_id} by user {user_id}",
            temple_id=review.temple_id, user_id=review.user_id,
        )
