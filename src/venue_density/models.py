"""
Data Model Module
-----------------

Value types shared by the acquisition and analysis phases.

Classes:
    BoundingRegion:  north/south/east/west box in degrees.
    GridConfig:      region, sampling radius and the degree/meter conversion used to tile it.
    SamplingPoint:   one grid location queried against the Places API.
    RawPlaceRecord:  one normalized Places API result.
    District:        static district reference record.
    DensityMetric:   per-district aggregate derived from the cleaned places.
"""

from dataclasses import dataclass, field, asdict
from typing import Optional, FrozenSet, Dict, Any

from .errors import ConfigurationError
from .config import METERS_PER_DEGREE_LAT, METERS_PER_DEGREE_LNG


@dataclass(frozen=True)
class BoundingRegion:
    north: float
    south: float
    east: float
    west: float

    def __post_init__(self) -> None:
        if not self.north > self.south:
            raise ConfigurationError(f"north ({self.north}) must be greater than south ({self.south})")
        if not self.east > self.west:
            raise ConfigurationError(f"east ({self.east}) must be greater than west ({self.west})")

    def as_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class GridConfig:
    """Grid parameters.

    The radius bounds the total number of API calls for the region, so it is
    picked against the monthly quota rather than tuned for accuracy. The
    degree/meter factors are only valid close to the latitude they were
    measured at.
    """
    region: BoundingRegion
    radius_meters: float
    meters_per_degree_lat: float = METERS_PER_DEGREE_LAT
    meters_per_degree_lng: float = METERS_PER_DEGREE_LNG

    def __post_init__(self) -> None:
        if not self.radius_meters > 0:
            raise ConfigurationError(f"radius must be positive, got {self.radius_meters}")
        if not (self.meters_per_degree_lat > 0 and self.meters_per_degree_lng > 0):
            raise ConfigurationError("degree to meter conversion factors must be positive")

    @property
    def radius_lat(self) -> float:
        return self.radius_meters / self.meters_per_degree_lat

    @property
    def radius_lng(self) -> float:
        return self.radius_meters / self.meters_per_degree_lng


@dataclass
class SamplingPoint:
    index: int
    longitude: float
    latitude: float
    radius_meters: float
    done: bool = False


@dataclass(frozen=True)
class RawPlaceRecord:
    id: Optional[str]
    name: Optional[str]
    lat: Optional[float]
    lng: Optional[float]
    price_level: Optional[int] = None
    rating: Optional[float] = None
    rating_count: Optional[int] = None
    types: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_complete(self) -> bool:
        """False when the id or a coordinate is missing (a malformed API result)."""
        return bool(self.id) and self.lat is not None and self.lng is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "lat": self.lat,
            "lng": self.lng,
            "price_level": self.price_level,
            "rating": self.rating,
            "rating_count": self.rating_count,
            "types": sorted(self.types),
        }


@dataclass(frozen=True)
class District:
    id: str
    name: str
    arrondissement: int
    geometry: Any  # shapely polygon, EPSG:4326
    surface: float  # square meters


@dataclass(frozen=True)
class DensityMetric:
    district_id: str
    count: int
    mean_rating: Optional[float]
    total_rating_count: int
    density: float  # places per square kilometer
