"""
Ring Error Definitions

All exceptions raised by the ring core derive from RingError so callers can
catch the whole family at once. Errors are raised synchronously to the caller
of the failing operation and are never logged or swallowed by the core.
"""

from typing import Optional


class RingError(Exception):
    """Base class for all cachering errors."""


class ConfigError(RingError, ValueError):
    """
    Raised when a server list or ring parameter is invalid.

    Covers empty server lists, malformed addresses, out-of-range ports,
    non-positive weights, duplicate server identities, unknown hash
    strategies and non-positive point multipliers.

    Attributes:
        entry: The offending server entry, if the error concerns one
    """

    def __init__(self, message: str, entry: Optional[str] = None):
        super().__init__(message)
        self.entry = entry


class EmptyRingError(RingError, LookupError):
    """Raised when looking up a key on a ring with no continuum points."""
