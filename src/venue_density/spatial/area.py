"""
Study Area Module
-----------------

Loads the study area polygon and clips sampling grids to it.

The point-in-polygon test is shapely's `intersects` (through geopandas), so points
lying exactly on the boundary are kept. The same predicate is used when cleaning
places against the study area.
"""

from pathlib import Path
from typing import List, Sequence, Union

import geopandas as gpd
from shapely.geometry.base import BaseGeometry

from ..errors import ConfigurationError
from ..models import SamplingPoint
from ..utils.logger import logger

WGS84 = "EPSG:4326"


def load_study_area(path: Union[str, Path]) -> BaseGeometry:
    """
    Read a vector file (GeoJSON, GeoPackage, shapefile...) and merge all of its
    features into a single WGS84 geometry.
    """
    gdf = gpd.read_file(path)
    if gdf.empty:
        raise ConfigurationError(f"study area file {path} has no features")
    if gdf.crs is not None:
        gdf = gdf.to_crs(WGS84)
    area = gdf.union_all()

    logger.info("Loaded study area", extra={
        "operation": "load_study_area",
        "path": str(path),
        "features": len(gdf),
        "bounds": list(area.bounds)
    })
    return area


def filter_to_region(points: Sequence[SamplingPoint], polygon: BaseGeometry) -> List[SamplingPoint]:
    """Return the points inside `polygon` (boundary included), in input order.

    Indices are left untouched, so a clipped grid keeps gaps in its numbering.
    """
    if not points:
        return []

    locations = gpd.GeoSeries(
        gpd.points_from_xy([p.longitude for p in points], [p.latitude for p in points]),
        crs=WGS84
    )
    inside = locations.intersects(polygon).to_numpy()
    kept = [point for point, keep in zip(points, inside) if keep]

    logger.info("Filtered grid to study area", extra={
        "operation": "filter_area",
        "input_points": len(points),
        "kept_points": len(kept)
    })
    return kept
