"""Filtrage structurel du catalogue (ville, catégories)."""
from typing import Iterable, List

from app.models import CatalogEntry, SearchCriteria


class CatalogFilter:  # pylint: disable=too-few-public-methods
    """
    Applique les prédicats de ville et de catégorie au catalogue.

    Le filtre est stable (l'ordre relatif est conservé), idempotent, et ne
    lève jamais d'exception : une entrée sans ville ou sans catégorie ne
    correspond simplement pas au critère concerné.
    """

    def apply(
            self,
            catalog: Iterable[CatalogEntry],
            criteria: SearchCriteria) -> List[CatalogEntry]:
        """
        Filtre le catalogue selon les critères.

        Args:
            catalog: Entrées dans l'ordre d'itération du catalogue
            criteria: Critères validés

        Returns:
            Les entrées retenues, dans leur ordre d'origine
        """
        pattern = (criteria.city_pattern or "").casefold()
        labels = {category.value for category in criteria.categories}

        return [
            entry for entry in catalog
            if self._city_matches(entry, pattern) and self._category_matches(entry, labels)
        ]

    @staticmethod
    def _city_matches(entry: CatalogEntry, pattern: str) -> bool:
        if not pattern:
            return True
        if not isinstance(entry.city, str):
            return False
        return pattern in entry.city.casefold()

    @staticmethod
    def _category_matches(entry: CatalogEntry, labels: set) -> bool:
        if not labels:
            return True
        return entry.category in labels
