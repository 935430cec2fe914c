import pandas as pd
import pytest

from venue_density.analysis.cleaning import clean
from venue_density.analysis.density import aggregate, metrics_to_frame, write_metrics


def by_district(metrics):
    return {m.district_id: m for m in metrics}


def test_density_per_district(make_record, study_area, districts):
    places = clean({0: [
        make_record("a1", rating=4.0, rating_count=10),
        make_record("a2", rating=None, rating_count=None, lat=48.83),
        make_record("b1", rating=3.0, rating_count=5, lng=2.38),
        make_record("b2", rating=5.0, rating_count=7, lng=2.39),
    ]}, study_area, districts).places

    metrics = by_district(aggregate(places, districts))

    assert metrics["A"].count == 2
    assert metrics["A"].mean_rating == pytest.approx(4.0), "null ratings are excluded from the mean"
    assert metrics["A"].total_rating_count == 10
    assert metrics["A"].density == pytest.approx(1_000_000 * 2 / 2_000_000)

    assert metrics["B"].count == 2
    assert metrics["B"].mean_rating == pytest.approx(4.0)
    assert metrics["B"].total_rating_count == 12
    assert metrics["B"].density == pytest.approx(0.5)


def test_every_district_is_reported(make_record, study_area, districts):
    places = clean({0: [make_record("a1", rating=4.0)]}, study_area, districts).places
    metrics = aggregate(places, districts)

    assert [m.district_id for m in metrics] == ["A", "B"]
    empty = by_district(metrics)["B"]
    assert empty.count == 0
    assert empty.density == 0
    assert empty.mean_rating is None
    assert empty.total_rating_count == 0


def test_no_ratings_at_all(make_record, study_area, districts):
    places = clean({0: [make_record("a1"), make_record("a2", lat=48.83)]}, study_area, districts).places
    metric = by_district(aggregate(places, districts))["A"]
    assert metric.count == 2
    assert metric.mean_rating is None
    assert metric.total_rating_count == 0


def test_no_places(study_area, districts):
    places = clean({}, study_area, districts).places
    metrics = aggregate(places, districts)
    assert [(m.count, m.density, m.mean_rating) for m in metrics] == [(0, 0, None), (0, 0, None)]


def test_metrics_frame_joins_districts(make_record, study_area, districts, tmp_path):
    places = clean({0: [make_record("a1", rating=4.0)]}, study_area, districts).places
    metrics = aggregate(places, districts)

    joined = metrics_to_frame(metrics, districts)
    assert list(joined["name"]) == ["Quartier A", "Quartier B"]
    assert list(joined["count"]) == [1, 0]
    assert joined.geometry.notna().all()

    path = write_metrics(metrics, tmp_path / "density_metrics.csv")
    written = pd.read_csv(path, dtype={"district_id": str})
    assert list(written.columns) == ["district_id", "count", "mean_rating", "total_rating_count", "density"]
    assert written["density"].tolist() == pytest.approx([0.5, 0.0])


if __name__ == '__main__':
    pytest.main()
