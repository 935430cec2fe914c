"""
Grid Generation Module
--------------------------------

This module generates the staggered sampling grid used to query the Places API
over a bounding region. Each grid point is the center of one search circle.

The grid is two interleaved square lattices with a spacing of two radii:

  - primary lattice:   starts at (west, south), inclusive bounds (<=)
  - secondary lattice: shifted by one radius on both axes, exclusive bounds (<)

so every secondary point sits in the middle of four primary points. Adjacent
circles overlap by roughly 57%, which trades extra requests for fewer missed
venues where a single circle hits the 60 result cap. The exclusive bound on the
secondary lattice keeps it from adding points on the north and east edges.

Functions:
  generate_grid(region, radius_meters) -> list[SamplingPoint]:
    Build the staggered grid with contiguous indices starting at 0, primary lattice
    first (row-major, south to north, west to east), then the secondary lattice.

  generate_grid_from_config(grid_config) -> list[SamplingPoint]:
    Same, with custom degree/meter conversion factors.
"""

from typing import List

from ..models import BoundingRegion, GridConfig, SamplingPoint
from ..utils.logger import logger


def _axis(start: float, step: float, stop: float, inclusive: bool) -> List[float]:
    """Coordinates start + i*step up to stop. Multiplying avoids drift from repeated addition."""
    values = []
    i = 0
    while True:
        value = start + i * step
        if value > stop or (not inclusive and value == stop):
            break
        values.append(value)
        i += 1
    return values


def generate_grid_from_config(grid_config: GridConfig) -> List[SamplingPoint]:
    region = grid_config.region
    radius_lat = grid_config.radius_lat
    radius_lng = grid_config.radius_lng
    lat_step = 2 * radius_lat
    lng_step = 2 * radius_lng

    lattices = [
        # primary
        (_axis(region.south, lat_step, region.north, inclusive=True),
         _axis(region.west, lng_step, region.east, inclusive=True)),
        # secondary
        (_axis(region.south + radius_lat, lat_step, region.north, inclusive=False),
         _axis(region.west + radius_lng, lng_step, region.east, inclusive=False)),
    ]

    points: List[SamplingPoint] = []
    for latitudes, longitudes in lattices:
        for lat in latitudes:
            for lng in longitudes:
                points.append(SamplingPoint(
                    index=len(points),
                    longitude=lng,
                    latitude=lat,
                    radius_meters=grid_config.radius_meters
                ))

    logger.info("Generated sampling grid", extra={
        "operation": "generate_grid",
        "point_count": len(points),
        "primary_count": len(lattices[0][0]) * len(lattices[0][1]),
        "secondary_count": len(lattices[1][0]) * len(lattices[1][1]),
        "radius_meters": grid_config.radius_meters,
        "bounds": region.as_dict()
    })

    return points


def generate_grid(region: BoundingRegion, radius_meters: float) -> List[SamplingPoint]:
    """Create the staggered grid covering `region` with the configured degree/meter factors."""
    return generate_grid_from_config(GridConfig(region=region, radius_meters=radius_meters))
