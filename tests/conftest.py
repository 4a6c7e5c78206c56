# tests/conftest.py
import pytest
from unittest.mock import MagicMock, AsyncMock

from app.models import CatalogEntry
from app.search.catalog_provider import InMemoryCatalogProvider, sample_catalog

# Référence utilisée dans les scénarios : Shaniwar Wada, Pune
PUNE_CENTER = (18.5204, 73.8567)


def make_entry(entry_id, category="Hindu", city="Pune", lat=18.5164, lng=73.8560, **extra):
    """Construit une entrée de catalogue minimale."""
    return CatalogEntry(
        id=entry_id, name=f"Temple {entry_id}", category=category, city=city,
        lat=lat, lng=lng, **extra
    )


@pytest.fixture
def sample_provider():
    """Les cinq temples d'exemple (un par catégorie sauf Other)."""
    return sample_catalog()


@pytest.fixture
def mixed_catalog():
    """Catalogue de 5 entrées de catégories mélangées, dont une sans coordonnées."""
    return [
        make_entry(1, "Hindu", "Pune", 18.5164, 73.8560),
        make_entry(2, "Buddhist", "Mumbai", 19.0760, 72.8777),
        make_entry(3, "Jain", "Pune", 18.4529, 73.8554),
        make_entry(4, "Sikh", "PUNE cantonment", 18.5126, 73.8787),
        make_entry(5, "Other", "Pune", None, None),
    ]


# --- Mocks des clients de bas niveau ---

@pytest.fixture
def mock_db_connector():
    """Fixture pour un mock du connecteur PostgreSQL."""
    db_conn = MagicMock()
    db_conn.execute_query = AsyncMock(return_value=[])
    db_conn.fetchrow = AsyncMock(return_value=None)
    db_conn.fetchval = AsyncMock(return_value=None)
    db_conn.execute = AsyncMock(return_value="INSERT 0 1")
    return db_conn


@pytest.fixture
def mock_cache_manager():
    """Fixture pour un mock du gestionnaire de cache Redis."""
    cache = MagicMock()
    cache.get = AsyncMock(return_value=None)  # Par défaut, le cache est toujours vide (miss)
    cache.set = AsyncMock()
    return cache


@pytest.fixture
def search_service_mock(mixed_catalog, mock_cache_manager):
    """SearchService sur un catalogue en mémoire avec un cache mocké."""
    from app.search.search_service import SearchService

    return SearchService(
        catalog_provider=InMemoryCatalogProvider(mixed_catalog),
        cache=mock_cache_manager,
    )
