# tests/test_ranking.py
import pytest

from app.errors import InvalidCoordinate, InvalidRadius
from app.models import CatalogEntry, RankedResult
from app.scoring.distance import GeoPoint
from app.scoring.ranking import ProximityRanker

from conftest import PUNE_CENTER, make_entry

REFERENCE = GeoPoint(*PUNE_CENTER)


@pytest.fixture
def ranker():
    return ProximityRanker()


def test_single_entry_within_radius(ranker):
    result = ranker.rank([make_entry(1)], REFERENCE, 10)
    assert len(result) == 1
    assert isinstance(result[0], RankedResult)
    assert result[0].id == 1
    assert result[0].distance_km == pytest.approx(0.45, abs=0.01)


def test_entry_outside_small_radius_is_discarded(ranker):
    assert ranker.rank([make_entry(1)], REFERENCE, 0.1) == []


def test_results_are_sorted_and_bounded(ranker, mixed_catalog):
    result = ranker.rank(mixed_catalog, REFERENCE, 10)
    distances = [r.distance_km for r in result]
    assert distances == sorted(distances)
    assert all(d <= 10 for d in distances)
    # Mumbai est hors rayon, l'entrée 5 n'a pas de coordonnées
    assert [r.id for r in result] == [1, 4, 3]


def test_entries_without_location_are_skipped(ranker):
    catalog = [
        make_entry("missing", lat=None, lng=None),
        make_entry("nan", lat=float("nan"), lng=73.85),
        make_entry("out-of-range", lat=123.0, lng=73.85),
        make_entry("ok"),
    ]
    result = ranker.rank(catalog, REFERENCE, 10)
    assert [r.id for r in result] == ["ok"]


def test_ties_keep_input_order(ranker):
    # Symétriques autour de (0, 0) : distances identiques au bit près
    origin = GeoPoint(0.0, 0.0)
    catalog = [
        make_entry("far", lat=0.0, lng=0.5),
        make_entry("east", lat=0.0, lng=0.1),
        make_entry("west", lat=0.0, lng=-0.1),
    ]
    result = ranker.rank(catalog, origin, 100)
    assert result[0].distance_km == result[1].distance_km
    assert [r.id for r in result] == ["east", "west", "far"]

    reversed_result = ranker.rank(list(reversed(catalog)), origin, 100)
    assert [r.id for r in reversed_result] == ["west", "east", "far"]


def test_stale_distance_field_on_entry_is_replaced(ranker):
    entry = make_entry("stale", lat=PUNE_CENTER[0], lng=PUNE_CENTER[1], distanceKm=999)
    result = ranker.rank([entry], REFERENCE, 10)

    assert result[0].distance_km == 0.0
    dumped = result[0].model_dump(by_alias=True)
    assert dumped["distanceKm"] == 0.0
    assert "distance_km" not in dumped


def test_radius_boundary_is_inclusive(ranker):
    entry = make_entry(1)
    exact = ranker.rank([entry], REFERENCE, 10)[0].distance_km
    assert len(ranker.rank([entry], REFERENCE, exact)) == 1


def test_zero_radius_keeps_only_exact_position(ranker):
    catalog = [make_entry("here", lat=PUNE_CENTER[0], lng=PUNE_CENTER[1]), make_entry("near")]
    result = ranker.rank(catalog, REFERENCE, 0)
    assert [r.id for r in result] == ["here"]
    assert result[0].distance_km == 0.0


def test_empty_input_gives_empty_output(ranker):
    assert ranker.rank([], REFERENCE, 10) == []


def test_ranking_across_the_date_line(ranker):
    catalog = [
        make_entry("far", lat=0.0, lng=170.0),
        make_entry("across", lat=0.0, lng=-179.95),
    ]
    result = ranker.rank(catalog, GeoPoint(0.0, 179.95), 50)
    assert [r.id for r in result] == ["across"]


def test_invalid_reference_point_is_rejected(ranker):
    with pytest.raises(InvalidCoordinate):
        ranker.rank([make_entry(1)], GeoPoint(95.0, 0.0), 10)


@pytest.mark.parametrize("radius", [-1, float("nan"), float("inf")])
def test_invalid_radius_is_rejected(ranker, radius):
    with pytest.raises(InvalidRadius):
        ranker.rank([make_entry(1)], REFERENCE, radius)


def test_ranked_result_keeps_entry_fields_and_serializes_distance():
    entry = CatalogEntry(id=7, name="Katraj Jain Temple", category="Jain", city="Pune",
                         lat=18.4529, lng=73.8554, website="https://example.org")
    ranked = RankedResult.from_entry(entry, 7.5)
    dumped = ranked.model_dump(by_alias=True)
    assert dumped["distanceKm"] == 7.5
    assert dumped["name"] == "Katraj Jain Temple"
    assert dumped["website"] == "https://example.org"
    assert "distance_km" not in dumped
