"""
Density Aggregation Module
--------------------------

Per-district venue metrics for the visualization layer:

    count               number of clean places in the district
    mean_rating         mean of the non-null ratings (None when there are none)
    total_rating_count  sum of the non-null rating counts
    density             places per square kilometer, 1_000_000 * count / surface

Every district gets a metric, including districts without places (count 0,
density 0, mean_rating None).
"""

from dataclasses import asdict
from pathlib import Path
from typing import List, Optional, Union

import geopandas as gpd
import pandas as pd

from ..config import DENSITY_SCALE
from ..models import DensityMetric
from ..utils.logger import logger


def aggregate(clean_places: pd.DataFrame, districts: gpd.GeoDataFrame) -> List[DensityMetric]:
    frame = pd.DataFrame({
        "district_id": clean_places["district_id"].astype(str),
        "rating": pd.to_numeric(clean_places["rating"], errors="coerce"),
        "rating_count": pd.to_numeric(clean_places["rating_count"], errors="coerce"),
    })
    grouped = frame.groupby("district_id").agg(
        count=("rating", "size"),
        mean_rating=("rating", "mean"),
        total_rating_count=("rating_count", "sum"),
    )

    known = set(districts["district_id"].astype(str))
    orphans = sorted(set(grouped.index) - known)
    if orphans:
        logger.warning("Places reference unknown districts", extra={
            "operation": "aggregate",
            "district_ids": orphans
        })

    metrics = []
    for district in districts.itertuples(index=False):
        district_id = str(district.district_id)
        if district_id in grouped.index:
            row = grouped.loc[district_id]
            count = int(row["count"])
            mean_rating = None if pd.isna(row["mean_rating"]) else float(row["mean_rating"])
            total_rating_count = int(row["total_rating_count"])
        else:
            count, mean_rating, total_rating_count = 0, None, 0

        density = DENSITY_SCALE * count / float(district.surface) if count else 0.0
        metrics.append(DensityMetric(
            district_id=district_id,
            count=count,
            mean_rating=mean_rating,
            total_rating_count=total_rating_count,
            density=density
        ))

    logger.info("Aggregated district density", extra={
        "operation": "aggregate",
        "districts": len(metrics),
        "places": sum(m.count for m in metrics)
    })
    return metrics


def metrics_to_frame(
        metrics: List[DensityMetric],
        districts: Optional[gpd.GeoDataFrame] = None
        ) -> pd.DataFrame:
    """Metrics as a table; joined to district names and polygons when `districts` is given."""
    frame = pd.DataFrame(
        [asdict(m) for m in metrics],
        columns=["district_id", "count", "mean_rating", "total_rating_count", "density"]
    )
    if districts is None:
        return frame
    return districts.merge(frame, on="district_id", how="left")


def write_metrics(metrics: List[DensityMetric], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    metrics_to_frame(metrics).to_csv(path, index=False)
    return path
