from __future__ import annotations


class DDCError(ValueError):
    """Base class for every error raised by ddcsim."""


class ConfigurationError(DDCError):
    """Invalid parameter combination, detected before solving or simulating."""


class NumericalError(DDCError):
    """Non-finite values produced while solving."""


class SamplingError(DDCError):
    """Attempt to sample from something that is not a probability distribution."""
