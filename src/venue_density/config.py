"""
Configuration module for the Venue Density pipeline.
-------------------------------------------

This module defines all of the tunable parameters, file paths, and environment-driven settings
used by the grid generation, the paginated Places acquisition and the density analysis.
"""

import os
from pathlib import Path
from typing import Dict, Any

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

# Base paths
VENUE_DENSITY_HOME = os.getenv('VENUE_DENSITY_HOME', os.getcwd())
DATA_DIR = Path(VENUE_DENSITY_HOME) / 'data'
LOGS_DIR = Path(VENUE_DENSITY_HOME) / 'logs'

# Acquisition artefacts
CHECKPOINT_FILE = DATA_DIR / 'grid_checkpoint.csv'
TILES_DIR = DATA_DIR / 'tiles'
FAULT_LOG_FILE = LOGS_DIR / 'fetch_faults.log'

# Analysis artefacts
CLEAN_PLACES_FILE = DATA_DIR / 'clean_places.csv'
CLEANING_REPORT_FILE = DATA_DIR / 'cleaning_report.json'
DENSITY_METRICS_FILE = DATA_DIR / 'density_metrics.csv'

# Grid parameters
SAMPLING_RADIUS = float(os.getenv('SAMPLING_RADIUS', 52.5))  # in meters
REGION = {
    'north': float(os.getenv('REGION_NORTH', 48.91)),
    'south': float(os.getenv('REGION_SOUTH', 48.81)),
    'east': float(os.getenv('REGION_EAST', 2.47)),
    'west': float(os.getenv('REGION_WEST', 2.22)),
}

# Degree to meter conversion for the study latitude (Paris, ~48.86N).
# Not a geodesic conversion: override both values for any other region.
METERS_PER_DEGREE_LAT = float(os.getenv('METERS_PER_DEGREE_LAT', 111110))
METERS_PER_DEGREE_LNG = float(os.getenv('METERS_PER_DEGREE_LNG', 73000))

# Places API parameters
PLACE_TYPE = os.getenv('PLACE_TYPE', 'restaurant')
PAGE_TOKEN_DELAY = float(os.getenv('PAGE_TOKEN_DELAY', 10))  # seconds before a next_page_token is valid
MAX_PAGES = int(os.getenv('MAX_PAGES', 3))
MAX_RESULTS_PER_PAGE = 20
REQUEST_TIMEOUT = float(os.getenv('REQUEST_TIMEOUT', 30))
METRICS_EVERY = int(os.getenv('METRICS_EVERY', 50))

# Cleaning / density parameters
VENUE_TYPES = frozenset({'point_of_interest', 'establishment'})
DISTRICT_COLUMNS = {
    'district_id': os.getenv('DISTRICT_ID_COLUMN', 'c_qu'),
    'name': os.getenv('DISTRICT_NAME_COLUMN', 'l_qu'),
    'arrondissement': os.getenv('DISTRICT_ARRONDISSEMENT_COLUMN', 'c_ar'),
    'surface': os.getenv('DISTRICT_SURFACE_COLUMN', 'surface'),
}
AREA_CRS = os.getenv('AREA_CRS', 'EPSG:2154')  # Lambert-93, metric
DENSITY_SCALE = 1_000_000  # square meters -> square kilometers


def get_api_key() -> str:
    """Return the Places API key, failing fast when it is not configured."""
    api_key = os.getenv('GOOGLE_PLACES_API_KEY')
    if not api_key:
        raise ConfigurationError("GOOGLE_PLACES_API_KEY environment variable is required")
    return api_key


def ensure_directories() -> None:
    for directory in [DATA_DIR, LOGS_DIR, TILES_DIR]:
        directory.mkdir(parents=True, exist_ok=True)


def get_config() -> Dict[str, Any]:
    """
    Get the current configuration as a dictionary.
    Useful for logging and debugging.
    """
    return {
        'paths': {
            'home': VENUE_DENSITY_HOME,
            'data_dir': str(DATA_DIR),
            'logs_dir': str(LOGS_DIR),
            'checkpoint_file': str(CHECKPOINT_FILE),
            'tiles_dir': str(TILES_DIR),
            'fault_log': str(FAULT_LOG_FILE)
        },
        'grid': {
            'sampling_radius': SAMPLING_RADIUS,
            'region': REGION,
            'meters_per_degree_lat': METERS_PER_DEGREE_LAT,
            'meters_per_degree_lng': METERS_PER_DEGREE_LNG
        },
        'places_api': {
            'place_type': PLACE_TYPE,
            'page_token_delay': PAGE_TOKEN_DELAY,
            'max_pages': MAX_PAGES,
            'request_timeout': REQUEST_TIMEOUT
        },
        'analysis': {
            'venue_types': sorted(VENUE_TYPES),
            'district_columns': DISTRICT_COLUMNS,
            'area_crs': AREA_CRS
        }
    }
