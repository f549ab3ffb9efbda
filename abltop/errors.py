"""Fatal error taxonomy for the open-top boundary condition.

None of these are recoverable: a boundary condition with a bad sampling
geometry or an inconsistent partition layout cannot produce a valid top
velocity, so the run is expected to stop.
"""


class ABLTopBCError(Exception):
    """Base class for every fatal open-top boundary condition error."""


class ConfigurationError(ABLTopBCError, ValueError):
    """Invalid settings: unsupported regime, bad blend ramp, degenerate dz."""


class GeometryError(ConfigurationError):
    """Mesh is not a uniform logically Cartesian block at the sampling plane."""


class DistributionMismatchError(ABLTopBCError):
    """A partition contributed a different number of values than planned."""
