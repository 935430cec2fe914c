import pandas as pd
import pytest

import venue_density.utils.checkpoint as checkpoint
from venue_density.errors import CheckpointError
from venue_density.models import SamplingPoint


@pytest.fixture
def points():
    return [
        SamplingPoint(index=i, longitude=2.3 + i / 1000, latitude=48.8 + i / 1000, radius_meters=52.5)
        for i in range(5)
    ]


def test_initialize_and_reload(tmp_path, points):
    path = tmp_path / "grid_checkpoint.csv"
    checkpoint.CsvJobStore(path).initialize(points)
    assert path.exists(), "Checkpoint file was not created"

    df = pd.read_csv(path)
    assert list(df.columns) == ["index", "longitude", "latitude", "radius", "done"], "Checkpoint header mismatch"
    assert len(df) == 5

    loaded = checkpoint.CsvJobStore(path).load()
    assert loaded == points, "Loaded checkpoint does not match saved grid"


def test_mark_done_survives_crash(tmp_path, points):
    path = tmp_path / "grid_checkpoint.csv"
    store = checkpoint.CsvJobStore(path)
    store.initialize(points)
    store.mark_done(0)
    store.mark_done(3)
    del store  # simulated crash: nothing but the file survives

    reloaded = checkpoint.CsvJobStore(path)
    pending = [p.index for p in reloaded.pending_entries()]
    assert pending == [1, 2, 4]
    assert reloaded.progress() == {"total": 5, "done": 2, "pending": 3}


def test_pending_entries_restartable(tmp_path, points):
    path = tmp_path / "grid_checkpoint.csv"
    store = checkpoint.CsvJobStore(path)
    store.initialize(points)

    pending = store.pending_entries()
    first = next(pending)
    store.mark_done(first.index)
    assert first.index == 0

    store.load()
    assert [p.index for p in store.pending_entries()] == [1, 2, 3, 4]


def test_stale_tmp_file_is_discarded(tmp_path, points):
    path = tmp_path / "grid_checkpoint.csv"
    store = checkpoint.CsvJobStore(path)
    store.initialize(points)
    store.mark_done(1)

    # a write interrupted before the atomic replace
    store.tmp_path.write_text("index,longitude,lat")

    reloaded = checkpoint.CsvJobStore(path)
    assert not reloaded.tmp_path.exists()
    assert [p.index for p in reloaded.pending_entries()] == [0, 2, 3, 4]


def test_initialize_refuses_to_clobber(tmp_path, points):
    path = tmp_path / "grid_checkpoint.csv"
    store = checkpoint.CsvJobStore(path)
    store.initialize(points)
    store.mark_done(0)

    with pytest.raises(CheckpointError):
        checkpoint.CsvJobStore(path).initialize(points)

    checkpoint.CsvJobStore(path).initialize(points[:2], overwrite=True)
    assert checkpoint.CsvJobStore(path).progress() == {"total": 2, "done": 0, "pending": 2}


def test_stores_do_not_mutate_caller_points(tmp_path, points):
    store = checkpoint.CsvJobStore(tmp_path / "grid_checkpoint.csv")
    store.initialize(points)
    store.mark_done(0)

    memory = checkpoint.InMemoryJobStore(points)
    memory.mark_done(1)

    assert not any(p.done for p in points), "marking done must not change the caller's grid"


def test_initialize_starts_every_point_pending(tmp_path, points):
    points[2].done = True
    path = tmp_path / "grid_checkpoint.csv"
    checkpoint.CsvJobStore(path).initialize(points)
    assert checkpoint.CsvJobStore(path).progress() == {"total": 5, "done": 0, "pending": 5}


def test_custom_store_only_implements_persistence(points):
    class ListStore(checkpoint.JobStore):
        def __init__(self, rows):
            super().__init__()
            self.rows = rows
            self.load()

        def load(self):
            self._entries = {p.index: p for p in self.rows}
            return self.entries()

        def mark_done(self, index):
            self._entries[index].done = True

    store = ListStore(points)
    store.mark_done(4)
    assert [p.index for p in store.pending_entries()] == [0, 1, 2, 3]
    assert store.progress() == {"total": 5, "done": 1, "pending": 4}


def test_load_no_file(tmp_path):
    store = checkpoint.CsvJobStore(tmp_path / "missing.csv")
    with pytest.raises(CheckpointError):
        store.load()


def test_load_missing_columns(tmp_path):
    path = tmp_path / "grid_checkpoint.csv"
    path.write_text("index,longitude,latitude\n0,2.3,48.8\n")
    with pytest.raises(CheckpointError):
        checkpoint.CsvJobStore(path)


def test_repeated_rows_keep_last(tmp_path):
    path = tmp_path / "grid_checkpoint.csv"
    path.write_text(
        "index,longitude,latitude,radius,done\n"
        "1,2.31,48.81,52.5,False\n"
        "0,2.30,48.80,52.5,False\n"
        "0,2.30,48.80,52.5,True\n"
    )
    store = checkpoint.CsvJobStore(path)
    assert [p.index for p in store.entries()] == [0, 1]
    assert [p.index for p in store.pending_entries()] == [1]


def test_in_memory_store(points):
    store = checkpoint.InMemoryJobStore(points)
    store.mark_done(2)
    assert [p.index for p in store.pending_entries()] == [0, 1, 3, 4]
    with pytest.raises(KeyError):
        store.mark_done(99)


if __name__ == '__main__':
    pytest.main()
