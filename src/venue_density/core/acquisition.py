"""
Acquisition Loop Module
-----------------------

Drives the bulk Places acquisition over a sampling grid, one point at a time.

For every pending point, in index order:
    1. fetch the point's search circle (all pages)
    2. write the records to the point's tile file (success, or partial pages on a fault);
       malformed results are written too, for the cleaning report to count
    3. on a fault, append a line to the fault log
    4. mark the point done in the job store

Step 4 always runs after the point has been handled and before the next point
starts, so a crash at any moment loses at most the in-flight point, and a
restart neither refetches nor skips anything. A failed point is still marked
done: it is not retried in the same run.

Points are processed serially on purpose. The Places quota and rate limits make
concurrent requests counterproductive.
"""

import logging
import time
import uuid
from typing import Any, Dict, Optional

from ..config import METRICS_EVERY
from ..models import SamplingPoint
from ..utils.checkpoint import JobStore
from ..utils.logger import logger
from .places import FetchResult, PlacesFetcher
from .tiles import TileResultStore


class AcquisitionLoop:
    """
    Resumable, serial acquisition over the pending entries of a job store.

    Usage:
        loop = AcquisitionLoop(
            job_store=CsvJobStore(CHECKPOINT_FILE),
            fetcher=PlacesFetcher(api_key=get_api_key()),
            sink=TileResultStore(TILES_DIR),
            fault_log=setup_fault_log(FAULT_LOG_FILE)
        )
        summary = loop.run()
    """

    def __init__(
            self,
            job_store: JobStore,
            fetcher: PlacesFetcher,
            sink: TileResultStore,
            fault_log: Optional[logging.Logger] = None,
            metrics_every: int = METRICS_EVERY
            ) -> None:
        self.job_store = job_store
        self.fetcher = fetcher
        self.sink = sink
        self.fault_log = fault_log
        self.metrics_every = metrics_every
        self.session_id: str = str(uuid.uuid4())[:8]

    def record_fault(self, point: SamplingPoint, reason: str) -> None:
        logger.warning("Sampling point failed, marking done without retry", extra={
            "operation": "acquisition",
            "session_id": self.session_id,
            "point_index": point.index,
            "lat": point.latitude,
            "lng": point.longitude,
            "radius": point.radius_meters,
            "error": reason,
            "status": "fault"
        })
        if self.fault_log is not None:
            self.fault_log.warning(
                f"index={point.index} lat={point.latitude} lng={point.longitude} "
                f"radius={point.radius_meters}\t{reason}"
            )

    def handle_point(self, point: SamplingPoint) -> FetchResult:
        result = self.fetcher.fetch(point.latitude, point.longitude, point.radius_meters)

        if result.ok or result.records:
            self.sink.write(point.index, result.records)
        if not result.ok:
            self.record_fault(point, result.reason)

        # Checkpoint before moving on; this ordering is what makes resuming exact
        self.job_store.mark_done(point.index)
        return result

    def run(self, max_points: Optional[int] = None) -> Dict[str, Any]:
        """
        Process pending points until none are left or `max_points` have been handled.

        Returns:
            Summary dict with processed, failed, records, malformed and remaining counts.
        """
        start_time = time.time()
        progress = self.job_store.progress()
        logger.info("Starting acquisition", extra={
            "operation": "acquisition",
            "session_id": self.session_id,
            "max_points": max_points,
            **progress
        })

        processed = 0
        failed = 0
        records = 0
        malformed = 0

        for point in self.job_store.pending_entries():
            if max_points is not None and processed >= max_points:
                break

            result = self.handle_point(point)
            processed += 1
            records += len(result.records)
            malformed += result.malformed
            if not result.ok:
                failed += 1

            logger.info("Processed sampling point", extra={
                "operation": "acquisition",
                "session_id": self.session_id,
                "point_index": point.index,
                "pages": result.pages,
                "records": len(result.records),
                "malformed": result.malformed,
                "status": "success" if result.ok else "fault"
            })

            if self.metrics_every and processed % self.metrics_every == 0:
                self.fetcher.metrics.log_metrics()

        self.fetcher.metrics.log_metrics()
        summary = {
            "session_id": self.session_id,
            "processed": processed,
            "failed": failed,
            "records": records,
            "malformed": malformed,
            "remaining": self.job_store.progress()["pending"],
            "duration_sec": round(time.time() - start_time, 2)
        }
        logger.info("Acquisition run complete", extra={
            "operation": "acquisition",
            "status": "completed",
            **summary
        })
        return summary


def run(job_store: JobStore,
        fetcher: PlacesFetcher,
        sink: TileResultStore,
        fault_log: Optional[logging.Logger] = None,
        max_points: Optional[int] = None) -> Dict[str, Any]:
    """Build an AcquisitionLoop and run it once."""
    return AcquisitionLoop(job_store, fetcher, sink, fault_log=fault_log).run(max_points=max_points)
