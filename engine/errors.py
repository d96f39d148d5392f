"""Typed failures raised by the dimensioning and negotiation engine.

All of them are deterministic: retrying the same call with the same input
fails the same way, so callers fix the input instead of retrying.
"""


class DimensioningError(Exception):
    """Base class for every engine failure."""


class InvalidInputError(DimensioningError, ValueError):
    """Numeric input is malformed or out of range."""


class ConfigurationError(DimensioningError):
    """Unknown enum value or an invalid setup (e.g. a second baseline)."""


class BaselineImmutableError(DimensioningError):
    """A mutation was attempted on the protected baseline scenario."""


class NotFoundError(DimensioningError, LookupError):
    """Unknown scenario, version, adjustment index or job position."""
