"""Module contenant le service de recherche principal."""
# app/search/search_service.py
import time
from typing import Dict, List, Optional, Sequence, Union

import psutil
from redis.exceptions import RedisError

from app.cache import CacheManager
from app.config import settings
from app.logger import logger
from app.models import CatalogEntry, RankedResult, SearchCriteria, SearchResponse
from app.scoring.ranking import ProximityRanker
from app.search.catalog_filter import CatalogFilter
from app.search.catalog_provider import CatalogProvider

SearchHit = Union[CatalogEntry, RankedResult]


def run_search(
        catalog: Sequence[CatalogEntry],
        criteria: SearchCriteria,
        default_radius_km: float = settings.DEFAULT_RADIUS_KM,
        catalog_filter: Optional[CatalogFilter] = None,
        ranker: Optional[ProximityRanker] = None) -> List[SearchHit]:
    """
    Compose le filtre et le classement de proximité.

    1. Filtre structurel (ville, catégories).
    2. Si un point de référence est fourni, classement par distance borné
       par `criteria.radius_km` (ou `default_radius_km` s'il n'est pas fixé).
    3. Sinon, les entrées filtrées sont retournées dans l'ordre du catalogue.
    """
    catalog_filter = catalog_filter or CatalogFilter()
    filtered = catalog_filter.apply(catalog, criteria)

    if criteria.reference_point is None:
        return filtered

    ranker = ranker or ProximityRanker()
    radius_km = criteria.radius_km if criteria.radius_km is not None else default_radius_km
    return ranker.rank(filtered, criteria.reference_point, radius_km)


class SearchService:
    """Service de recherche : instantané du catalogue, recherche pure, cache Redis."""

    def __init__(
            self,
            catalog_provider: CatalogProvider,
            cache: Optional[CacheManager] = None,
            default_radius_km: float = settings.DEFAULT_RADIUS_KM,
            cache_ttl: int = settings.CACHE_TTL_SECONDS):
        self.catalog_provider = catalog_provider
        self.cache = cache
        self.default_radius_km = default_radius_km
        self.cache_ttl = cache_ttl
        self.catalog_filter = CatalogFilter()
        self.ranker = ProximityRanker()

    async def search(self, criteria: SearchCriteria) -> SearchResponse:
        """Effectue une recherche en utilisant le cache si disponible.

        Args:
            criteria: Critères validés à la frontière HTTP.

        Returns:
            Un objet SearchResponse avec les résultats.

        Raises:
            CatalogUnavailableError: si le catalogue ne peut pas être chargé.
        """
        cache_key = f"search:{criteria.cache_key()}|default={self.default_radius_km}"

        cached = await self._cache_get(cache_key)
        if cached:
            logger.info("Cache HIT for key: {key}", key=cache_key)
            return SearchResponse.model_validate_json(cached)

        logger.info("Cache MISS for key: {key}", key=cache_key)
        response = await self._execute_search(criteria)
        await self._cache_set(cache_key, response.model_dump_json())
        return response

    async def _execute_search(self, criteria: SearchCriteria) -> SearchResponse:
        """Exécute la recherche sans cache."""
        start_time = time.time()

        catalog = await self.catalog_provider.get_snapshot()
        hits = run_search(
            catalog,
            criteria,
            default_radius_km=self.default_radius_km,
            catalog_filter=self.catalog_filter,
            ranker=self.ranker,
        )

        ranked = criteria.reference_point is not None
        radius_km = None
        if ranked:
            radius_km = criteria.radius_km if criteria.radius_km is not None else self.default_radius_km

        duration = time.time() - start_time
        memory_mb = psutil.Process().memory_info().rss / 1024 / 1024

        logger.info(
            "Recherche (city={city}, categories={categories}, ranked={ranked}) : "
            "{count}/{total} résultats | Durée = {duration:.4f}s | RAM = {memory:.2f} Mo",
            city=criteria.city_pattern,
            categories=sorted(c.value for c in criteria.categories),
            ranked=ranked,
            count=len(hits),
            total=len(catalog),
            duration=duration,
            memory=memory_mb,
        )

        return SearchResponse(
            hits=[hit.model_dump(by_alias=True) for hit in hits],
            total=len(hits),
            total_before_filter=len(catalog),
            ranked=ranked,
            radius_km=radius_km,
            query_time_ms=duration * 1000,
            memory_used_mb=memory_mb,
            count_per_city=self._calculate_count_per_city(hits),
        )

    @staticmethod
    def _calculate_count_per_city(hits: Sequence[SearchHit]) -> Dict[str, int]:
        """Calcule le nombre de résultats par ville."""
        count_per_city: Dict[str, int] = {}
        for hit in hits:
            if hit.city:
                count_per_city[hit.city] = count_per_city.get(hit.city, 0) + 1
        return dict(sorted(count_per_city.items()))

    async def _cache_get(self, key: str) -> Optional[str]:
        if self.cache is None:
            return None
        try:
            return await self.cache.get(key)
        except RedisError as e:
            logger.warning("Cache read failed, searching without cache: {error}", error=e)
            return None

    async def _cache_set(self, key: str, value: str) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, value, expire=self.cache_ttl)
        except RedisError as e:
            logger.warning("Cache write failed: {error}", error=e)
