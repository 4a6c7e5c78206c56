"""Classement par proximité autour d'un point de référence."""
from typing import Iterable, List

from app.config import settings
from app.errors import InvalidCoordinate
from app.logger import logger
from app.models import CatalogEntry, RankedResult, validate_radius
from app.scoring.distance import GeoPoint, haversine_km


class ProximityRanker:  # pylint: disable=too-few-public-methods
    """Annote les entrées de leur distance, borne au rayon et trie."""

    def __init__(self, earth_radius_km: float = settings.EARTH_RADIUS_KM):
        self.earth_radius_km = earth_radius_km

    def rank(
            self,
            entries: Iterable[CatalogEntry],
            reference_point: GeoPoint,
            radius_km: float) -> List[RankedResult]:
        """
        Classe les entrées par distance croissante au point de référence.

        Les entrées sans coordonnées exploitables sont ignorées. Les entrées
        à plus de `radius_km` sont écartées (borne incluse). Le tri est stable :
        à distance égale, l'ordre d'entrée est conservé.

        Args:
            entries: Entrées déjà filtrées
            reference_point: Position de l'utilisateur
            radius_km: Rayon maximal en kilomètres

        Returns:
            Liste de RankedResult, vide si rien ne correspond

        Raises:
            InvalidCoordinate: point de référence hors bornes
            InvalidRadius: rayon négatif ou non fini
        """
        if reference_point is None or not reference_point.is_valid():
            raise InvalidCoordinate(f"Invalid reference point: {reference_point!r}")
        radius_km = validate_radius(radius_km)
        if radius_km is None:
            radius_km = settings.DEFAULT_RADIUS_KM

        ranked: List[RankedResult] = []
        skipped = 0
        for entry in entries:
            location = entry.location
            if location is None:
                skipped += 1
                logger.debug("Entry {entry_id} has no usable location, skipped", entry_id=entry.id)
                continue
            distance = haversine_km(reference_point, location, self.earth_radius_km)
            if distance <= radius_km:
                ranked.append(RankedResult.from_entry(entry, distance))

        # sorted() est stable : les égalités gardent l'ordre d'entrée
        ranked = sorted(ranked, key=lambda r: r.distance_km)

        if skipped:
            logger.info(
                "Proximity ranking skipped {skipped} entries without coordinates",
                skipped=skipped,
            )
        return ranked
