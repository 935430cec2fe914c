"""
Tile Results Module
-------------------

One CSV file per sampling point (`tile_<index>.csv`) holding the normalized
RawPlaceRecord fields of that point's search. Files are keyed by the point index
and written atomically, so fetching a point again overwrites its file instead of
appending duplicates.
"""

import json
import os
import re
from pathlib import Path
from typing import Dict, Iterable, List, Union

import pandas as pd

from ..models import RawPlaceRecord
from ..utils.logger import logger

TILE_COLUMNS = ["id", "name", "lat", "lng", "price_level", "rating", "rating_count", "types"]
TILE_PATTERN = re.compile(r"^tile_(\d+)\.csv$")


def _none_if_missing(value, cast):
    if value is None or pd.isna(value):
        return None
    return cast(value)


def _parse_types(value) -> frozenset:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return frozenset()
    try:
        return frozenset(json.loads(value))
    except (TypeError, ValueError):
        return frozenset()


class TileResultStore:
    """Sink for per-point result batches."""

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, index: int) -> Path:
        return self.directory / f"tile_{index:06d}.csv"

    def write(self, index: int, records: Iterable[RawPlaceRecord]) -> Path:
        rows = []
        for record in records:
            row = record.to_dict()
            row["types"] = json.dumps(row["types"])
            rows.append(row)
        df = pd.DataFrame(rows, columns=TILE_COLUMNS)

        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(index)
        tmp_path = path.with_name(path.name + ".tmp")
        with open(tmp_path, "w", newline="", encoding="utf-8") as f:
            df.to_csv(f, index=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, path)

        logger.debug("Wrote tile results", extra={
            "operation": "write_tile",
            "point_index": index,
            "records": len(rows),
            "path": str(path)
        })
        return path

    def indices(self) -> List[int]:
        if not self.directory.exists():
            return []
        found = []
        for path in self.directory.iterdir():
            match = TILE_PATTERN.match(path.name)
            if match:
                found.append(int(match.group(1)))
        return sorted(found)

    def read(self, index: int) -> List[RawPlaceRecord]:
        df = pd.read_csv(self.path_for(index), dtype={"id": str, "name": str, "types": str},
                         float_precision="round_trip")
        records = []
        for row in df.to_dict("records"):
            records.append(RawPlaceRecord(
                id=_none_if_missing(row.get("id"), str),
                name=_none_if_missing(row.get("name"), str),
                lat=_none_if_missing(row.get("lat"), float),
                lng=_none_if_missing(row.get("lng"), float),
                price_level=_none_if_missing(row.get("price_level"), int),
                rating=_none_if_missing(row.get("rating"), float),
                rating_count=_none_if_missing(row.get("rating_count"), int),
                types=_parse_types(row.get("types"))
            ))
        return records

    def read_all(self) -> Dict[int, List[RawPlaceRecord]]:
        """Every stored batch keyed by sampling point index."""
        batches = {index: self.read(index) for index in self.indices()}
        logger.info("Read tile results", extra={
            "operation": "read_tiles",
            "tiles": len(batches),
            "records": sum(len(b) for b in batches.values())
        })
        return batches
