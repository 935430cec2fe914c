import pytest

from venue_density.core.tiles import TileResultStore


def test_write_and_read(tmp_path, make_record):
    store = TileResultStore(tmp_path / "tiles")
    records = [
        make_record("a", lat=48.8606, lng=2.3376, rating=4.4, rating_count=1520, price_level=2),
        make_record("b", types=("route",)),
    ]
    path = store.write(7, records)

    assert path.name == "tile_000007.csv"
    assert store.read(7) == records


def test_rewrite_replaces_batch(tmp_path, make_record):
    store = TileResultStore(tmp_path)
    store.write(3, [make_record("a"), make_record("b")])
    store.write(3, [make_record("c")])

    assert [r.id for r in store.read(3)] == ["c"], "a refetched point must not accumulate records"
    assert not list(tmp_path.glob("*.tmp"))


def test_empty_batch_is_recorded(tmp_path):
    store = TileResultStore(tmp_path)
    store.write(0, [])
    assert store.indices() == [0]
    assert store.read(0) == []


def test_read_all_keyed_by_index(tmp_path, make_record):
    store = TileResultStore(tmp_path)
    store.write(12, [make_record("x")])
    store.write(2, [make_record("y"), make_record("z")])
    (tmp_path / "notes.txt").write_text("not a tile")

    batches = store.read_all()
    assert list(batches) == [2, 12]
    assert [r.id for r in batches[2]] == ["y", "z"]


def test_missing_directory(tmp_path):
    assert TileResultStore(tmp_path / "absent").read_all() == {}


if __name__ == '__main__':
    pytest.main()
