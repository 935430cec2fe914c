
"""
venue_density
~~~~~~~~~~~~~

Resumable, rate-limited Places API acquisition over a staggered sampling grid,
followed by cleaning and per-district venue density statistics.
"""

__version__ = "0.1.0"

# -------------------------------------------------------------------
# Package-level logger (this lives in utils/logger.py, not to be
# confused with the stdlib `logging` package)
# -------------------------------------------------------------------
from .utils.logger      import logger, configure_logging, setup_fault_log

# -------------------------------------------------------------------
# Data model & errors
# -------------------------------------------------------------------
from .errors            import VenueDensityError, ConfigurationError, CheckpointError
from .models            import (BoundingRegion, GridConfig, SamplingPoint, RawPlaceRecord,
                                District, DensityMetric)

# -------------------------------------------------------------------
# Spatial grid
# -------------------------------------------------------------------
from .spatial.grid      import generate_grid, generate_grid_from_config
from .spatial.area      import filter_to_region, load_study_area

# -------------------------------------------------------------------
# Acquisition
# -------------------------------------------------------------------
from .utils.checkpoint  import JobStore, CsvJobStore, InMemoryJobStore
from .core.places       import PlacesFetcher, FetchSuccess, FetchFailure, normalize_place
from .core.tiles        import TileResultStore
from .core.acquisition  import AcquisitionLoop

# -------------------------------------------------------------------
# Analysis
# -------------------------------------------------------------------
from .analysis.districts import load_districts, prepare_districts, districts_to_frame
from .analysis.cleaning  import clean, CleaningReport, CleaningResult
from .analysis.density   import aggregate, metrics_to_frame
from .utils.metrics      import APIMetrics

# -------------------------------------------------------------------
# Public API
# -------------------------------------------------------------------
__all__ = [
    # logging
    "logger",
    "configure_logging",
    "setup_fault_log",
    # model
    "VenueDensityError",
    "ConfigurationError",
    "CheckpointError",
    "BoundingRegion",
    "GridConfig",
    "SamplingPoint",
    "RawPlaceRecord",
    "District",
    "DensityMetric",
    # spatial
    "generate_grid",
    "generate_grid_from_config",
    "filter_to_region",
    "load_study_area",
    # acquisition
    "JobStore",
    "CsvJobStore",
    "InMemoryJobStore",
    "PlacesFetcher",
    "FetchSuccess",
    "FetchFailure",
    "normalize_place",
    "TileResultStore",
    "AcquisitionLoop",
    # analysis
    "load_districts",
    "prepare_districts",
    "districts_to_frame",
    "clean",
    "CleaningReport",
    "CleaningResult",
    "aggregate",
    "metrics_to_frame",
    # utils
    "APIMetrics",
]
