"""Exception types raised by the venue density pipeline."""


class VenueDensityError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(VenueDensityError, ValueError):
    """Invalid region, radius, credentials or reference data layout.

    Raised before any API call is issued.
    """


class CheckpointError(VenueDensityError):
    """The grid checkpoint cannot be read or would be clobbered."""
