"""
Google Places Nearby Search Module
--------------------------------

This module queries the Google Places Nearby Search API for one sampling circle,
following next_page_tokens, and normalizes every result into a RawPlaceRecord.

API constraints handled here:
    - at most 20 results per page and 3 pages per location (60 results)
    - a next_page_token only becomes valid some time after it is issued; asking
      for the next page too early returns INVALID_REQUEST, so every follow-up
      request waits PAGE_TOKEN_DELAY seconds (10 by default)

Faults never escape `PlacesFetcher.fetch`. Network errors, unparseable bodies and
non-OK API statuses (INVALID_REQUEST, OVER_QUERY_LIMIT, REQUEST_DENIED, ...) come
back as a FetchFailure carrying the reason and whatever pages were read before
the fault. There is no retry: the caller logs the fault and moves on, relying on
the grid overlap to cover the gap.

Classes:
    FetchSuccess:  records from a completed search (possibly empty)
    FetchFailure:  fault reason plus partial records
    PlacesFetcher: the paginated search client

Functions:
    normalize_place: Restrict one API result to id, name, coordinates, price level,
                     rating, rating count and types.
"""

import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Union

import requests

from ..config import MAX_PAGES, MAX_RESULTS_PER_PAGE, PAGE_TOKEN_DELAY, PLACE_TYPE, REQUEST_TIMEOUT
from ..models import RawPlaceRecord
from ..utils.logger import logger
from ..utils.metrics import APIMetrics

NEARBY_SEARCH_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"

# ----------------------------------------------------------------------------------------------------------

@dataclass
class FetchSuccess:
    records: List[RawPlaceRecord] = field(default_factory=list)
    pages: int = 0
    malformed: int = 0
    ok: bool = field(default=True, init=False)


@dataclass
class FetchFailure:
    reason: str
    records: List[RawPlaceRecord] = field(default_factory=list)
    pages: int = 0
    malformed: int = 0
    ok: bool = field(default=False, init=False)


FetchResult = Union[FetchSuccess, FetchFailure]

# ----------------------------------------------------------------------------------------------------------

def _optional(value, cast):
    if value is None:
        return None
    try:
        return cast(value)
    except (TypeError, ValueError):
        return None


def _mapping(value) -> dict:
    return value if isinstance(value, dict) else {}


def normalize_place(result) -> RawPlaceRecord:
    """
    Map one API result to a RawPlaceRecord.

    A result without a place id or a usable location still yields a record, with
    those fields set to None. It is kept in the batch so the cleaning step can
    count it as malformed.
    """
    result = _mapping(result)
    location = _mapping(_mapping(result.get("geometry")).get("location"))
    types = result.get("types")

    return RawPlaceRecord(
        id=_optional(result.get("place_id"), str) or None,
        name=_optional(result.get("name"), str),
        lat=_optional(location.get("lat"), float),
        lng=_optional(location.get("lng"), float),
        price_level=_optional(result.get("price_level"), int),
        rating=_optional(result.get("rating"), float),
        rating_count=_optional(result.get("user_ratings_total"), int),
        types=frozenset(t for t in types if isinstance(t, str)) if isinstance(types, list) else frozenset()
    )


# ----------------------------------------------------------------------------------------------------------

class PlacesFetcher:
    """
    Paginated Nearby Search client for a single sampling circle at a time.

    Usage:
        fetcher = PlacesFetcher(api_key=get_api_key())
        result = fetcher.fetch(48.8566, 2.3522, 52.5)
        if result.ok:
            print(len(result.records))
        else:
            print(result.reason)

    `session` and `sleep` can be swapped for fakes in tests.
    """

    def __init__(
            self,
            api_key: str,
            place_type: Optional[str] = PLACE_TYPE,
            page_delay: float = PAGE_TOKEN_DELAY,
            max_pages: int = MAX_PAGES,
            timeout: float = REQUEST_TIMEOUT,
            session: Optional[requests.Session] = None,
            sleep: Callable[[float], None] = time.sleep,
            metrics: Optional[APIMetrics] = None
            ) -> None:
        self.api_key = api_key
        self.place_type = place_type
        self.page_delay = page_delay
        self.max_pages = max_pages
        self.timeout = timeout
        self.session = session or requests.Session()
        self.sleep = sleep
        self.metrics = metrics or APIMetrics()

    def _first_page_params(self, lat: float, lng: float, radius: float) -> dict:
        params = {
            "location": f"{lat},{lng}",
            "radius": radius,
            "key": self.api_key
        }
        if self.place_type:
            params["type"] = self.place_type
        return params

    def fetch(self, lat: float, lng: float, radius: float) -> FetchResult:
        """
        Retrieve up to `max_pages` pages of nearby places around (lat, lng).

        Returns:
            FetchSuccess with the normalized records of every page (incomplete ones
            included and counted in `malformed`), or FetchFailure with the fault
            reason and the records read before the fault.
        """
        search_id = str(uuid.uuid4())[:8]
        params = self._first_page_params(lat, lng, radius)
        records: List[RawPlaceRecord] = []
        page_count = 0
        malformed = 0
        start_time = time.time()

        logger.debug("Starting nearby search", extra={
            "operation": "nearby_search",
            "search_id": search_id,
            "lat": lat,
            "lng": lng,
            "radius": radius
        })

        while page_count < self.max_pages:
            try:
                # Counted up front: a request that times out may still use quota
                self.metrics.total_requests += 1
                response = self.session.get(NEARBY_SEARCH_URL, params=params, timeout=self.timeout)
                response.raise_for_status()
                data = response.json()
            except (requests.RequestException, ValueError) as e:
                return self._failure(search_id, lat, lng, radius, f"{type(e).__name__}: {e}",
                                     records, page_count, malformed)

            if not isinstance(data, dict):
                return self._failure(search_id, lat, lng, radius,
                                     f"ParseError: expected a JSON object, got {type(data).__name__}",
                                     records, page_count, malformed)

            status = data.get("status")
            if status == "ZERO_RESULTS":
                break
            if status != "OK":
                reason = f"{status}: {data.get('error_message', 'No error message')}"
                return self._failure(search_id, lat, lng, radius, reason,
                                     records, page_count, malformed)

            results = data.get("results", [])
            if not isinstance(results, list):
                return self._failure(search_id, lat, lng, radius,
                                     f"ParseError: expected a results list, got {type(results).__name__}",
                                     records, page_count, malformed)

            for result in results:
                record = normalize_place(result)
                if not record.is_complete:
                    malformed += 1
                records.append(record)

            page_count += 1
            self.metrics.results_returned += len(results)

            logger.debug("Fetched places", extra={
                "operation": "nearby_search",
                "search_id": search_id,
                "page": page_count,
                "results_count": len(results),
                "total_so_far": len(records)
            })

            token = data.get("next_page_token")
            if not token or page_count >= self.max_pages:
                break

            self.sleep(self.page_delay)  # wait for token to activate
            params = {
                "pagetoken": token,
                "key": self.api_key
            }

        self.metrics.successful_points += 1
        logger.info("Completed nearby search", extra={
            "operation": "nearby_search",
            "search_id": search_id,
            "total_pages": page_count,
            "total_results": len(records),
            "malformed": malformed,
            "duration_sec": round(time.time() - start_time, 2),
            "is_capped": len(records) >= MAX_RESULTS_PER_PAGE * self.max_pages
        })
        return FetchSuccess(records=records, pages=page_count, malformed=malformed)

    def _failure(self, search_id, lat, lng, radius, reason, records, pages, malformed) -> FetchFailure:
        self.metrics.failed_points += 1
        logger.error(f"Error in nearby search: {reason}", extra={
            "operation": "nearby_search",
            "search_id": search_id,
            "lat": lat,
            "lng": lng,
            "radius": radius,
            "pages_before_fault": pages,
            "error": reason,
            "status": "error"
        })
        return FetchFailure(reason=reason, records=records, pages=pages, malformed=malformed)
