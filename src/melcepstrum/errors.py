"""
Exception types raised by the transform pipeline.

All of them derive from ValueError so callers that already guard numeric
code with ``except ValueError`` keep working.
"""


class MelcepstrumError(Exception):
    """Base class for all melcepstrum errors."""


class ConfigurationError(MelcepstrumError, ValueError):
    """Invalid window size, sample rate, band or coefficient count."""


class ShapeMismatchError(MelcepstrumError, ValueError):
    """Matrix dimensions do not fit the requested multiply/resize/crop."""


class NotPowerOfTwoError(MelcepstrumError, ValueError):
    """A Haar transform was asked to work on a non power-of-two length."""
