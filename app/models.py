"""Modèles Pydantic et structures de critères pour la recherche de temples."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.errors import InvalidCategory, InvalidRadius
from app.scoring.distance import GeoPoint


class Category(str, Enum):
    """Ensemble fermé des catégories de temples."""
    HINDU = "Hindu"
    BUDDHIST = "Buddhist"
    JAIN = "Jain"
    SIKH = "Sikh"
    OTHER = "Other"

    @classmethod
    def parse(cls, label: str) -> "Category":
        """Retrouve une catégorie par son libellé, sans tenir compte de la casse."""
        wanted = label.strip().casefold()
        for category in cls:
            if category.value.casefold() == wanted:
                return category
        raise InvalidCategory(
            f"Unknown category {label!r}, expected one of {[c.value for c in cls]}"
        )


class CatalogEntry(BaseModel):  # pylint: disable=too-few-public-methods
    """Un temple du catalogue. Les champs descriptifs ne sont pas interprétés."""
    model_config = ConfigDict(extra="allow", frozen=True)

    id: Union[int, str]
    name: Optional[str] = None
    category: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    lat: Optional[Any] = None
    lng: Optional[Any] = None
    opening_hours: Optional[str] = None
    ritual_timings: Optional[str] = None
    festivals: Optional[str] = None
    accessibility: Optional[str] = None
    contact: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def location(self) -> Optional[GeoPoint]:
        """Coordonnées exploitables, ou None si absentes ou invalides."""
        return GeoPoint.from_values(self.lat, self.lng)


DISTANCE_KEYS = ("distance_km", "distanceKm")


class RankedResult(CatalogEntry):  # pylint: disable=too-few-public-methods
    """Entrée du catalogue annotée de sa distance au point de référence."""
    model_config = ConfigDict(populate_by_name=True)

    distance_km: float = Field(alias="distanceKm")

    @classmethod
    def from_entry(cls, entry: CatalogEntry, distance_km: float) -> "RankedResult":
        """
        Annote une entrée avec la distance calculée.

        Une distance déjà présente dans l'entrée (champ extra) est écartée.
        """
        fields = {
            key: value for key, value in entry.model_dump().items()
            if key not in DISTANCE_KEYS
        }
        return cls.model_validate({**fields, "distance_km": distance_km})


@dataclass(frozen=True)
class SearchCriteria:
    """
    Critères validés d'une recherche.

    `radius_km` à None signifie "rayon par défaut", distinct de 0.
    Le rayon est ignoré sans point de référence.
    """
    city_pattern: Optional[str] = None
    categories: FrozenSet[Category] = field(default_factory=frozenset)
    reference_point: Optional[GeoPoint] = None
    radius_km: Optional[float] = None

    def cache_key(self) -> str:
        """Clé stable pour le cache Redis."""
        categories = ",".join(sorted(c.value for c in self.categories))
        point = (
            f"{self.reference_point.lat},{self.reference_point.lng}"
            if self.reference_point else ""
        )
        return (
            f"city={(self.city_pattern or '').casefold()}|cat={categories}"
            f"|point={point}|radius={self.radius_km if self.reference_point else ''}"
        )


class SearchRequest(BaseModel):  # pylint: disable=too-few-public-methods
    """Requête de recherche telle que reçue par l'API."""
    model_config = ConfigDict(populate_by_name=True)

    city_pattern: Optional[str] = Field(default=None, alias="cityPattern")
    categories: Optional[List[str]] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    radius_km: Optional[float] = Field(default=None, alias="radiusKm")

    def to_criteria(self) -> SearchCriteria:
        """
        Valide la requête et construit les critères de recherche.

        Raises:
            InvalidCoordinate: lat/lng incomplets ou hors bornes
            InvalidRadius: rayon négatif ou non fini
            InvalidCategory: catégorie inconnue
        """
        categories = frozenset(
            Category.parse(label) for label in (self.categories or []) if label.strip()
        )

        reference_point = None
        radius_km = None
        if self.lat is not None or self.lng is not None:
            reference_point = GeoPoint.validated(self.lat, self.lng)
            radius_km = validate_radius(self.radius_km)

        return SearchCriteria(
            city_pattern=self.city_pattern or None,
            categories=categories,
            reference_point=reference_point,
            radius_km=radius_km,
        )


def validate_radius(radius_km: Optional[float]) -> Optional[float]:
    """Rejette un rayon négatif ou non fini. None est accepté (défaut)."""
    if radius_km is None:
        return None
    # NaN échoue aussi à cette comparaison
    if not 0 <= radius_km < float("inf"):
        raise InvalidRadius(f"Invalid radius {radius_km!r}: must be a finite number >= 0")
    return float(radius_km)


class SearchResponse(BaseModel):  # pylint: disable=too-few-public-methods
    """Réponse de recherche."""
    hits: List[Dict[str, Any]]
    total: int
    total_before_filter: int
    ranked: bool
    radius_km: Optional[float] = None
    query_time_ms: float
    memory_used_mb: Optional[float] = None
    count_per_city: Dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")


class Review(BaseModel):  # pylint: disable=too-few-public-methods
    """Avis d'un utilisateur sur un temple."""
    model_config = ConfigDict(extra="allow")

    id: int
    temple_id: int
    user_id: int
    rating: Optional[int] = None
    comment: Optional[str] = None
    user_name: Optional[str] = None
    created_at: Optional[Any] = None


class ReviewCreate(BaseModel):  # pylint: disable=too-few-public-methods
    """Nouvel avis."""
    temple_id: int
    user_id: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class TempleEvent(BaseModel):  # pylint: disable=too-few-public-methods
    """Événement organisé par un temple."""
    model_config = ConfigDict(extra="allow")

    id: int
    temple_id: int
    title: Optional[str] = None
    description: Optional[str] = None
    event_date: Optional[Any] = None


class TempleDetail(CatalogEntry):  # pylint: disable=too-few-public-methods
    """Fiche complète d'un temple avec ses avis et événements."""
    reviews: List[Review] = Field(default_factory=list)
    events: List[TempleEvent] = Field(default_factory=list)


class RegisterRequest(BaseModel):  # pylint: disable=too-few-public-methods
    email: str
    password: str = Field(min_length=1)
    name: str


class LoginRequest(BaseModel):  # pylint: disable=too-few-public-methods
    email: str
    password: str


class UserOut(BaseModel):  # pylint: disable=too-few-public-methods
    id: int
    email: str
    name: Optional[str] = None


class AuthResponse(BaseModel):  # pylint: disable=too-few-public-methods
    token: str
    user: UserOut


class ChatTurn(BaseModel):  # pylint: disable=too-few-public-methods
    """Un tour de conversation précédent."""
    role: str = "user"
    text: str


class ChatRequest(BaseModel):  # pylint: disable=too-few-public-methods
    message: str
    history: List[ChatTurn] = Field(default_factory=list)
    location: Optional[Dict[str, Any]] = None


class ChatResponse(BaseModel):  # pylint: disable=too-few-public-methods
    text: str
