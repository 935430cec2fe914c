"""
Checkpoint Management Module
------------------------------------------------------------------------------------
This module provides the job stores that track which sampling points have been
fetched, so an acquisition run of several hours can be resumed exactly where it
stopped.

The persisted state is a CSV table with the columns

    index, longitude, latitude, radius, done

one row per sampling point. It is rewritten in full after every point: the new
content goes to a temporary file that is fsynced and then atomically swapped in
with `os.replace`, so a crash leaves either the previous or the new table on
disk, never a truncated one. A stale temporary file from a crashed write is
discarded on load.

Classes:
    JobStore:          interface used by the acquisition loop
    CsvJobStore:       durable store backed by the checkpoint CSV
    InMemoryJobStore:  non-durable store for tests and dry runs

Dependencies:
    - pandas: For reading and writing the checkpoint table
    - utils.logger: For operation logging
"""

import os
from abc import ABC, abstractmethod
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Union

import pandas as pd

from ..errors import CheckpointError
from ..models import SamplingPoint
from .logger import logger

CHECKPOINT_COLUMNS = ["index", "longitude", "latitude", "radius", "done"]

# ----------------------------------------------------------------------------------------------------------

class JobStore(ABC):
    """Mapping from sampling point index to its point and done flag.

    Subclasses keep their entries in `_entries` (index -> SamplingPoint) and
    only implement how that state is read and persisted.
    """

    def __init__(self) -> None:
        self._entries: Dict[int, SamplingPoint] = {}

    @abstractmethod
    def load(self) -> List[SamplingPoint]:
        """(Re)read the state and return every entry ordered by index."""

    @abstractmethod
    def mark_done(self, index: int) -> None:
        """Flag a point as handled. Must be durable when the call returns."""

    def entries(self) -> List[SamplingPoint]:
        return sorted(self._entries.values(), key=lambda p: p.index)

    def pending_entries(self) -> Iterator[SamplingPoint]:
        """Lazily yield the points not yet done, in index order.

        The pending set is taken when iteration starts; calling `load()` and
        iterating again picks up from the persisted state.
        """
        pending = [point for point in self.entries() if not point.done]
        for point in pending:
            yield point

    def progress(self) -> Dict[str, int]:
        entries = self.entries()
        done = sum(1 for p in entries if p.done)
        return {"total": len(entries), "done": done, "pending": len(entries) - done}

# ----------------------------------------------------------------------------------------------------------

class InMemoryJobStore(JobStore):

    def __init__(self, points: Iterable[SamplingPoint]):
        super().__init__()
        # Copies, so marking a point done never touches the caller's grid
        self._entries = {p.index: replace(p) for p in points}

    def load(self) -> List[SamplingPoint]:
        return self.entries()

    def mark_done(self, index: int) -> None:
        if index not in self._entries:
            raise KeyError(f"unknown sampling point index {index}")
        self._entries[index].done = True

# ----------------------------------------------------------------------------------------------------------

class CsvJobStore(JobStore):

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self.path = Path(path)
        self.tmp_path = self.path.with_name(self.path.name + ".tmp")
        if self.path.exists():
            self.load()

    def initialize(self, points: Iterable[SamplingPoint], overwrite: bool = False) -> None:
        """Create the checkpoint for a fresh grid, every point pending. Refuses to clobber an existing one."""
        if self.path.exists() and not overwrite:
            raise CheckpointError(
                f"checkpoint {self.path} already exists; pass overwrite=True to start over"
            )
        self._entries = {p.index: replace(p, done=False) for p in points}
        self._write()
        logger.info("Initialized checkpoint", extra={
            "operation": "save_checkpoint",
            "checkpoint_file": str(self.path),
            "points": len(self._entries)
        })

    def load(self) -> List[SamplingPoint]:
        if self.tmp_path.exists():
            # Leftover from a write interrupted before os.replace
            logger.warning("Discarding partial checkpoint write", extra={
                "operation": "load_checkpoint",
                "tmp_file": str(self.tmp_path)
            })
            self.tmp_path.unlink()

        if not self.path.exists():
            raise CheckpointError(f"no checkpoint found at {self.path}")

        try:
            df = pd.read_csv(self.path, float_precision="round_trip")
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise CheckpointError(f"checkpoint {self.path} is unreadable: {e}") from e

        missing = set(CHECKPOINT_COLUMNS) - set(df.columns)
        if missing:
            raise CheckpointError(f"checkpoint {self.path} is missing columns {sorted(missing)}")

        # Rows are keyed by index; a repeated index keeps its last row
        df = df.drop_duplicates(subset="index", keep="last").sort_values("index")

        self._entries = {}
        for row in df.to_dict("records"):
            self._entries[int(row["index"])] = SamplingPoint(
                index=int(row["index"]),
                longitude=float(row["longitude"]),
                latitude=float(row["latitude"]),
                radius_meters=float(row["radius"]),
                done=_as_bool(row["done"])
            )

        progress = self.progress()
        logger.info("Loaded checkpoint", extra={
            "operation": "load_checkpoint",
            "checkpoint_file": str(self.path),
            **progress
        })
        return self.entries()

    def mark_done(self, index: int) -> None:
        if index not in self._entries:
            raise KeyError(f"unknown sampling point index {index}")
        self._entries[index].done = True
        self._write()

    def _write(self) -> None:
        df = pd.DataFrame(
            [
                (p.index, p.longitude, p.latitude, p.radius_meters, p.done)
                for p in self.entries()
            ],
            columns=CHECKPOINT_COLUMNS
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)

        try:
            # Write to a temporary file first to avoid corruption if the process is interrupted
            with open(self.tmp_path, "w", newline="", encoding="utf-8") as f:
                df.to_csv(f, index=False)
                f.flush()
                os.fsync(f.fileno())

            # Atomic replacement of the checkpoint file
            os.replace(self.tmp_path, self.path)
        except OSError as e:
            logger.error(f"Failed to save checkpoint: {str(e)}", extra={
                "operation": "save_checkpoint",
                "checkpoint_file": str(self.path),
                "error": str(e)
            })
            if self.tmp_path.exists():
                self.tmp_path.unlink()
            raise

# ----------------------------------------------------------------------------------------------------------

def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes"}
    if pd.isna(value):
        return False
    return bool(value)
