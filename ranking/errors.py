"""
Trending subsystem errors.
"""
from typing import Optional, Union


class TrendingError(Exception):
    """Base class for trending subsystem errors."""


class InvalidArgument(TrendingError, ValueError):
    """Malformed article identifier or period. Raised before any store call."""


class StoreUnavailable(TrendingError):
    """The ranking store could not be reached or rejected the call."""


class PartialRotationFailure(TrendingError):
    """Rotating or pruning a single window failed; other windows are unaffected."""

    def __init__(self, period: str, cause: Union[BaseException, str, None] = None):
        self.period = period
        self.cause = cause
        super().__init__(f"Rotation of '{period}' failed: {cause}")
