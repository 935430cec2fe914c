import json

import pytest
from shapely.geometry import box

from venue_density.analysis.cleaning import clean, read_clean_places, write_clean_places, write_report
from venue_density.analysis.districts import districts_to_frame
from venue_density.models import District, RawPlaceRecord


def records_of(places):
    """Clean rows back to raw records, to feed a second cleaning pass."""
    return [
        RawPlaceRecord(id=row["id"], name=row["name"], lat=row["lat"], lng=row["lng"],
                       price_level=None, rating=row["rating"], rating_count=None,
                       types=frozenset(row["types"]))
        for _, row in places.iterrows()
    ]


def test_keeps_venues_only(make_record, study_area, districts):
    batches = {0: [
        make_record("resto"),
        make_record("street", types=("route",)),
        make_record("city", types=("locality", "political")),
        make_record("museum", types=("museum", "point_of_interest")),
        make_record("shop", types=("store", "establishment")),
    ]}
    result = clean(batches, study_area, districts)

    assert sorted(result.places["id"]) == ["museum", "resto", "shop"]
    assert result.report.non_venue == 2


def test_duplicates_keep_most_recent(make_record, study_area, districts):
    batches = {
        3: [make_record("a", rating=4.5, rating_count=120)],
        0: [make_record("a", rating=4.0, rating_count=100), make_record("b")],
        1: [make_record("a", rating=4.2, rating_count=110)],
    }
    result = clean(batches, study_area, districts)
    places = result.places.set_index("id")

    assert list(result.places["id"]) == ["a", "b"], "one row per id, sorted by id"
    assert places.loc["a", "rating"] == 4.5
    assert places.loc["a", "rating_count"] == 120
    assert places.loc["a", "point_index"] == 3
    assert result.report.duplicates == 2


def test_duplicate_within_one_batch_keeps_last(make_record, study_area, districts):
    batches = {5: [make_record("a", rating=3.0), make_record("a", rating=3.5)]}
    result = clean(batches, study_area, districts)
    assert result.places["rating"].tolist() == [3.5]


def test_outside_study_area(make_record, study_area, districts):
    batches = {0: [
        make_record("inside"),
        make_record("versailles", lat=48.80, lng=2.13),
        make_record("edge", lat=48.82, lng=2.30),
    ]}
    result = clean(batches, study_area, districts)

    assert "versailles" not in set(result.places["id"])
    assert result.report.outside_study_area == 1


def test_district_assignment(make_record, study_area, districts):
    batches = {0: [
        make_record("west", lat=48.82, lng=2.32),
        make_record("east", lat=48.82, lng=2.38),
    ]}
    result = clean(batches, study_area, districts)
    assigned = dict(zip(result.places["id"], result.places["district_id"]))
    assert assigned == {"east": "B", "west": "A"}


def test_unmatched_district_is_reported(make_record, study_area, districts):
    batches = {0: [make_record("north", lat=48.87, lng=2.32), make_record("south")]}
    result = clean(batches, study_area, districts)

    assert list(result.places["id"]) == ["south"]
    assert result.report.unmatched_district == ["north"], "must be reported, not dropped silently"


def test_multiple_districts_are_reported(make_record, study_area):
    overlapping = districts_to_frame([
        District(id="A", name="A", arrondissement=1,
                 geometry=box(2.30, 48.80, 2.35, 48.85), surface=2_000_000.0),
        District(id="C", name="C", arrondissement=1,
                 geometry=box(2.31, 48.81, 2.33, 48.83), surface=500_000.0),
    ])
    batches = {0: [make_record("both", lat=48.82, lng=2.32),
                   make_record("only_a", lat=48.84, lng=2.34)]}
    result = clean(batches, study_area, overlapping)

    assert list(result.places["id"]) == ["only_a"]
    assert result.report.multiple_districts == ["both"]


def test_malformed_records(make_record, study_area, districts):
    batches = {0: [make_record("ok"), make_record("nowhere", lat=None, lng=None),
                   make_record(None)]}
    result = clean(batches, study_area, districts)
    assert list(result.places["id"]) == ["ok"]
    assert result.report.malformed == 2


def test_report_accounts_for_every_record(make_record, study_area, districts):
    batches = {
        0: [make_record("a"), make_record("street", types=("route",)), make_record("far", lat=49.5)],
        1: [make_record("a"), make_record("north", lat=48.88)],
    }
    report = clean(batches, study_area, districts).report
    excluded = (report.malformed + report.non_venue + report.duplicates + report.outside_study_area
                + len(report.unmatched_district) + len(report.multiple_districts))
    assert report.raw_records == 5
    assert report.clean_places + excluded == report.raw_records


def test_cleaning_is_idempotent(make_record, study_area, districts):
    batches = {
        0: [make_record("a", rating=4.1), make_record("b", rating=3.9, lng=2.38), make_record("a", rating=4.3)],
        1: [make_record("c", rating=4.8, lat=48.83, types=("cafe", "establishment"))],
    }
    first = clean(batches, study_area, districts).places
    second = clean({0: records_of(first)}, study_area, districts).places

    assert list(second["id"]) == list(first["id"])
    assert list(second["district_id"]) == list(first["district_id"])
    assert list(second["rating"]) == list(first["rating"])


def test_empty_input(study_area, districts):
    result = clean({}, study_area, districts)
    assert result.places.empty
    assert "district_id" in result.places.columns
    assert result.report.raw_records == 0


def test_write_and_read_clean_places(tmp_path, make_record, study_area, districts):
    batches = {0: [make_record("a", rating=4.25, rating_count=12)]}
    result = clean(batches, study_area, districts)

    path = write_clean_places(result.places, tmp_path / "clean_places.csv")
    loaded = read_clean_places(path)
    assert loaded["id"].tolist() == ["a"]
    assert loaded["district_id"].tolist() == ["A"]
    assert loaded["rating"].tolist() == [4.25]
    assert set(loaded.loc[0, "types"]) == {"restaurant", "food", "point_of_interest", "establishment"}
    assert loaded.geometry.iloc[0].x == pytest.approx(2.32)

    report_path = write_report(result.report, tmp_path / "report.json")
    assert json.loads(report_path.read_text())["clean_places"] == 1


if __name__ == '__main__':
    pytest.main()
