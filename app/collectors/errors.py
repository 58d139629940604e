"""Collector failure types.

Both are caught at the collector boundary and reported as a failed
CollectionResult; they never reach the HTTP layer as exceptions.
"""


class CollectorError(Exception):
    """Base class for collector failures."""


class UpstreamError(CollectorError):
    """The upstream could not be reached or answered with an error."""


class PayloadError(CollectorError, ValueError):
    """The upstream answered, but the payload is not in the expected shape."""
