"""
Engine Errors

Only snapshot loading failures propagate to callers. Every other condition
(unknown entities, malformed edges, pruned branches, empty seed sets)
degrades to an empty or partial result.
"""


class GraphIntelError(Exception):
    """Base class for engine errors."""


class SnapshotUnavailable(GraphIntelError):
    """The backing store could not provide entities or edges."""

    def __init__(self, message: str, resource: str = "snapshot"):
        super().__init__(message)
        self.resource = resource
