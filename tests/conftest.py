"""
Shared fixtures: a study area over central Paris, two districts covering its
southern half, and a factory for raw place records.
"""

import pytest
from shapely.geometry import box

from venue_density.analysis.districts import districts_to_frame
from venue_density.models import District, RawPlaceRecord, SamplingPoint

VENUE = ("restaurant", "food", "point_of_interest", "establishment")


@pytest.fixture
def study_area():
    return box(2.30, 48.80, 2.40, 48.90)


@pytest.fixture
def districts():
    """West (A) and east (B) halves of the southern part of the study area."""
    return districts_to_frame([
        District(id="A", name="Quartier A", arrondissement=1,
                 geometry=box(2.30, 48.80, 2.35, 48.85), surface=2_000_000.0),
        District(id="B", name="Quartier B", arrondissement=2,
                 geometry=box(2.35, 48.80, 2.40, 48.85), surface=4_000_000.0),
    ])


@pytest.fixture
def make_record():
    def factory(place_id, lat=48.82, lng=2.32, rating=None, rating_count=None,
                types=VENUE, name=None, price_level=None):
        return RawPlaceRecord(
            id=place_id,
            name=name or f"Place {place_id}",
            lat=lat,
            lng=lng,
            price_level=price_level,
            rating=rating,
            rating_count=rating_count,
            types=frozenset(types)
        )
    return factory


@pytest.fixture
def four_points():
    return [
        SamplingPoint(index=0, longitude=2.32, latitude=48.82, radius_meters=52.5),
        SamplingPoint(index=1, longitude=2.33, latitude=48.82, radius_meters=52.5),
        SamplingPoint(index=2, longitude=2.32, latitude=48.83, radius_meters=52.5),
        SamplingPoint(index=3, longitude=2.33, latitude=48.83, radius_meters=52.5),
    ]
