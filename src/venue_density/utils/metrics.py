"""
API Metrics Tracking Module

Collects and emits structured logging of Places API usage for a single
acquisition run.

This module defines the APIMetrics class, which keeps counters for:
  - total API requests made: one per page, follow-up pages included
  - total results returned by the API: cumulative results across all pages
  - points fetched successfully and points that ended in a fault

It also provides a method to log these metrics, with a results-per-request
ratio, via the package JSON logger. The ratio is a quick read on how many
search circles hit the 60 result cap.

Usage:
    metrics = APIMetrics()
    fetcher = PlacesFetcher(api_key, metrics=metrics)
    ...
    metrics.log_metrics()
"""

from .logger import logger


class APIMetrics:
    """Track API usage metrics"""
    def __init__(self):
        self.total_requests:int = 0
        self.results_returned:int = 0
        self.successful_points:int = 0
        self.failed_points:int = 0

    def as_dict(self) -> dict:
        return {
            "total_requests": self.total_requests,
            "results_returned": self.results_returned,
            "successful_points": self.successful_points,
            "failed_points": self.failed_points,
            "results_per_request": round(self.results_returned / max(1, self.total_requests), 2)
        }

    def log_metrics(self):
        """Log current API metrics"""
        logger.info("API Metrics Summary", extra={
            "operation": "api_metrics",
            "metrics": self.as_dict()
        })
