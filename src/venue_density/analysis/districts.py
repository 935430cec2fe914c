"""
District reference data.

Districts come from an external boundary file (the Paris "quartiers" open data
set by default). Source columns are renamed to

    district_id, name, arrondissement, surface, geometry

with `surface` in square meters. When the source has no surface column it is
computed in a metric CRS (AREA_CRS).
"""

from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import geopandas as gpd

from ..config import AREA_CRS, DISTRICT_COLUMNS
from ..errors import ConfigurationError
from ..models import District
from ..utils.logger import logger

WGS84 = "EPSG:4326"
DISTRICT_FIELDS = ["district_id", "name", "arrondissement", "surface", "geometry"]


def prepare_districts(
        gdf: gpd.GeoDataFrame,
        columns: Optional[Dict[str, str]] = None,
        area_crs: str = AREA_CRS
        ) -> gpd.GeoDataFrame:
    columns = columns or DISTRICT_COLUMNS
    if gdf.crs is None:
        gdf = gdf.set_crs(WGS84)
    if gdf.geometry.name != "geometry":
        gdf = gdf.rename_geometry("geometry")

    if columns["surface"] not in gdf.columns:
        gdf = gdf.copy()
        gdf[columns["surface"]] = gdf.to_crs(area_crs).geometry.area

    missing = [source for source in columns.values() if source not in gdf.columns]
    if missing:
        raise ConfigurationError(f"district data is missing columns {missing}")

    districts = gdf.rename(columns={source: target for target, source in columns.items()})
    districts = districts.to_crs(WGS84)[DISTRICT_FIELDS].reset_index(drop=True)
    districts["district_id"] = districts["district_id"].astype(str)

    if districts["district_id"].duplicated().any():
        raise ConfigurationError("district ids must be unique")
    if not (districts["surface"] > 0).all():
        raise ConfigurationError("every district surface must be positive")

    return districts


def load_districts(path: Union[str, Path], columns: Optional[Dict[str, str]] = None) -> gpd.GeoDataFrame:
    districts = prepare_districts(gpd.read_file(path), columns=columns)
    logger.info("Loaded districts", extra={
        "operation": "load_districts",
        "path": str(path),
        "districts": len(districts)
    })
    return districts


def districts_to_frame(districts: Iterable[District]) -> gpd.GeoDataFrame:
    rows = [
        {
            "district_id": str(d.id),
            "name": d.name,
            "arrondissement": d.arrondissement,
            "surface": d.surface,
            "geometry": d.geometry,
        }
        for d in districts
    ]
    return gpd.GeoDataFrame(rows, columns=DISTRICT_FIELDS, geometry="geometry", crs=WGS84)
