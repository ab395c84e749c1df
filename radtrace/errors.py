"""
Exceptions raised by radtrace.

Construction-time problems (bad radii, degenerate boxes, malformed scene
dictionaries) propagate to the caller. Conditions met while tracing, such as
a degenerate scatter direction or total internal reflection, are caught
locally and turned into "no result".
"""


class RadTraceError(Exception):
    """Base class for all radtrace errors."""
    pass


class DegenerateVectorError(RadTraceError, ValueError):
    """A zero-length (or denormal-length) vector cannot be normalized."""
    pass


class InvalidGeometryError(RadTraceError, ValueError):
    """A shape has non-positive measure or an impossible configuration."""
    pass


class TotalInternalReflection(RadTraceError):
    """Snell's law has no solution; the ray must be reflected instead."""
    pass


class SceneBuildError(RadTraceError):
    """Error while building a scene from a parameter dictionary."""
    pass
