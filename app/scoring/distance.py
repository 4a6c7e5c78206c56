"""Calcul de distance orthodromique (formule de haversine)."""
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.config import settings
from app.errors import InvalidCoordinate


@dataclass(frozen=True)
class GeoPoint:
    """Représente un point géographique en degrés décimaux."""
    lat: float
    lng: float

    def is_valid(self) -> bool:
        """Vrai si les coordonnées sont finies et dans les bornes terrestres."""
        return (
            math.isfinite(self.lat) and math.isfinite(self.lng)
            and -90.0 <= self.lat <= 90.0
            and -180.0 <= self.lng <= 180.0
        )

    @classmethod
    def from_values(cls, lat: Any, lng: Any) -> Optional['GeoPoint']:
        """Construit un point, ou None si les valeurs sont absentes ou invalides."""
        if lat is None or lng is None or isinstance(lat, bool) or isinstance(lng, bool):
            return None
        try:
            point = cls(lat=float(lat), lng=float(lng))
        except (ValueError, TypeError):
            return None
        return point if point.is_valid() else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional['GeoPoint']:
        """Crée un GeoPoint depuis un dictionnaire avec support multi-format."""
        if "_geo" in data and isinstance(data["_geo"], dict):
            return cls.from_values(data["_geo"].get("lat"), data["_geo"].get("lng"))
        if "lng" in data:
            return cls.from_values(data.get("lat"), data.get("lng"))
        if "long" in data:
            return cls.from_values(data.get("lat"), data.get("long"))
        return None

    @classmethod
    def validated(cls, lat: Any, lng: Any) -> 'GeoPoint':
        """
        Construit un point de référence fourni par l'appelant.

        Raises:
            InvalidCoordinate: si une valeur manque ou sort des bornes.
        """
        if lat is None or lng is None:
            raise InvalidCoordinate("Both lat and lng are required for a reference point")
        point = cls.from_values(lat, lng)
        if point is None:
            raise InvalidCoordinate(
                f"Invalid coordinate lat={lat!r}, lng={lng!r}: "
                "lat must be in [-90, 90] and lng in [-180, 180]"
            )
        return point


def haversine_km(
        a: GeoPoint,
        b: GeoPoint,
        earth_radius_km: float = settings.EARTH_RADIUS_KM) -> float:
    """
    Distance orthodromique entre deux points, en kilomètres.

    Les coordonnées doivent avoir été validées par l'appelant.

    Args:
        a: Premier point
        b: Deuxième point
        earth_radius_km: Rayon terrestre (6371 km par défaut)

    Returns:
        Distance en kilomètres
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    lat1 = math.radians(a.lat)
    lat2 = math.radians(b.lat)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lng / 2) ** 2
    )
    # Dérive flottante près des antipodes
    h = min(1.0, max(0.0, h))
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return earth_radius_km * c
