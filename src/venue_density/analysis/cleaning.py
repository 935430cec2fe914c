"""
Place Cleaning Module
---------------------

Turns the per-tile result batches into one consistent set of venues.

Steps:
    1. concatenate every batch (batch order does not matter)
    2. drop malformed records (no id or no coordinates)
    3. keep venues only: records whose types include point_of_interest or
       establishment (the rest are streets, localities, ...)
    4. deduplicate by place id; the most recently observed record wins, i.e. the one
       from the highest sampling point index, then the latest in that batch
    5. keep places intersecting the study area (boundary included)
    6. attach the enclosing district with a `within` spatial join

A place inside zero or several districts is a data-quality fault: it is left out
of the clean set and its id is listed in the report. Every excluded record is
counted in the CleaningReport, nothing is dropped silently.
"""

import json
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Union

import geopandas as gpd
import pandas as pd
from shapely.geometry.base import BaseGeometry

from ..config import VENUE_TYPES
from ..models import RawPlaceRecord
from ..utils.logger import logger

WGS84 = "EPSG:4326"
RECORD_COLUMNS = ["id", "name", "lat", "lng", "price_level", "rating", "rating_count", "types"]
CLEAN_COLUMNS = RECORD_COLUMNS + ["point_index", "district_id"]


@dataclass
class CleaningReport:
    raw_records: int = 0
    malformed: int = 0
    non_venue: int = 0
    duplicates: int = 0
    outside_study_area: int = 0
    unmatched_district: List[str] = field(default_factory=list)
    multiple_districts: List[str] = field(default_factory=list)
    clean_places: int = 0

    def as_dict(self) -> Dict:
        return asdict(self)


@dataclass
class CleaningResult:
    places: gpd.GeoDataFrame
    report: CleaningReport


def _empty_places() -> gpd.GeoDataFrame:
    return gpd.GeoDataFrame(columns=CLEAN_COLUMNS + ["geometry"], geometry="geometry", crs=WGS84)


def _is_venue(types) -> bool:
    return not VENUE_TYPES.isdisjoint(types or ())


def batches_to_frame(batches: Mapping[int, Sequence[RawPlaceRecord]]) -> pd.DataFrame:
    """Concatenate batches ordered by point index, keeping each record's position."""
    rows = []
    for point_index in sorted(batches):
        for position, record in enumerate(batches[point_index]):
            row = record.to_dict()
            row["point_index"] = point_index
            row["position"] = position
            rows.append(row)
    return pd.DataFrame(rows, columns=RECORD_COLUMNS + ["point_index", "position"])


def clean(
        batches: Mapping[int, Sequence[RawPlaceRecord]],
        study_area: BaseGeometry,
        districts: gpd.GeoDataFrame
        ) -> CleaningResult:
    """
    Merge, filter, deduplicate and district-tag raw batches.

    Args:
        batches: raw records keyed by sampling point index
        study_area: WGS84 polygon places must intersect
        districts: frame from `prepare_districts` / `load_districts`

    Returns:
        CleaningResult with a GeoDataFrame of unique places (one row per id,
        sorted by id) and the data-quality report.
    """
    report = CleaningReport()
    df = batches_to_frame(batches)
    report.raw_records = len(df)

    malformed = (df["id"].isna() | df["lat"].isna() | df["lng"].isna()).astype(bool)
    report.malformed = int(malformed.sum())
    df = df.loc[~malformed]

    is_venue = df["types"].map(_is_venue).astype(bool)
    report.non_venue = int((~is_venue).sum())
    df = df.loc[is_venue]

    # rows are in observation order, so the last duplicate is the newest one
    before = len(df)
    df = df.drop_duplicates(subset="id", keep="last").reset_index(drop=True)
    report.duplicates = before - len(df)

    places = gpd.GeoDataFrame(
        df,
        geometry=gpd.points_from_xy(df["lng"].astype(float), df["lat"].astype(float)),
        crs=WGS84
    )
    inside = places.intersects(study_area).to_numpy(dtype=bool)
    report.outside_study_area = int((~inside).sum())
    places = places.loc[inside]

    if places.empty:
        result = _empty_places()
    else:
        if districts.crs is not None and districts.crs != places.crs:
            districts = districts.to_crs(places.crs)
        joined = gpd.sjoin(
            places,
            districts[["district_id", "geometry"]],
            how="left",
            predicate="within"
        )
        match_counts = joined.groupby(level=0)["district_id"].count()

        unmatched = match_counts.index[match_counts == 0]
        multiple = match_counts.index[match_counts > 1]
        report.unmatched_district = sorted(places.loc[unmatched, "id"].tolist())
        report.multiple_districts = sorted(places.loc[multiple, "id"].tolist())

        single = match_counts.index[match_counts == 1]
        result = joined.loc[joined.index.isin(single)]
        result = result.drop(columns=["index_right", "position"], errors="ignore")
        result = result.sort_values("id").reset_index(drop=True)
        result = result[CLEAN_COLUMNS + ["geometry"]]

    report.clean_places = len(result)

    if report.unmatched_district or report.multiple_districts:
        logger.warning("Places with ambiguous district excluded", extra={
            "operation": "clean",
            "unmatched_district": len(report.unmatched_district),
            "multiple_districts": len(report.multiple_districts)
        })
    logger.info("Cleaned places", extra={
        "operation": "clean",
        "report": {k: v if isinstance(v, int) else len(v) for k, v in report.as_dict().items()}
    })

    return CleaningResult(places=result, report=report)

# ----------------------------------------------------------------------------------------------------------

def write_clean_places(places: gpd.GeoDataFrame, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    out = pd.DataFrame(places[CLEAN_COLUMNS]).copy()
    out["types"] = out["types"].map(lambda types: json.dumps(sorted(types)))
    out.to_csv(path, index=False)
    return path


def read_clean_places(path: Union[str, Path]) -> gpd.GeoDataFrame:
    df = pd.read_csv(path, dtype={"id": str, "name": str, "district_id": str, "types": str},
                     float_precision="round_trip")
    df["types"] = df["types"].map(lambda value: json.loads(value) if isinstance(value, str) else [])
    return gpd.GeoDataFrame(df, geometry=gpd.points_from_xy(df["lng"], df["lat"]), crs=WGS84)


def write_report(report: CleaningReport, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(report.as_dict(), f, indent=2)
    return path
