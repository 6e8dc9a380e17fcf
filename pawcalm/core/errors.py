"""
Engine exceptions.

Insufficient data is never an exception: it is reported through
``RateStatus.INSUFFICIENT`` or ``None`` results.
"""


class PawCalmError(Exception):
    """Base class for all engine errors."""


class SnapshotInvariantError(PawCalmError):
    """Raised when derived progress state is internally inconsistent.

    This points at an upstream data-entry bug; the snapshot is refused
    rather than clamped.
    """

    def __init__(self, violations: list[str]):
        self.violations = violations
        super().__init__("; ".join(violations))


class InvalidInputError(PawCalmError, ValueError):
    """Raised when a caller passes a value outside the engine's domain."""


class MalformedEventError(PawCalmError, ValueError):
    """Raised when a single raw record cannot become a domain event."""

    def __init__(self, message: str, record: object = None):
        self.record = record
        super().__init__(message)
