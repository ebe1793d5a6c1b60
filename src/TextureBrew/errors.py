"""Typed failures raised by the texture synthesis pipeline."""


class SynthesisError(Exception):
    """Base class for every error surfaced by `synthesize()`."""


class InvalidParameters(SynthesisError, ValueError):
    """Raised before any pixel work when parameters violate their ranges."""


class EmptySource(SynthesisError, ValueError):
    """Raised when a raster has a zero (or negative) dimension."""


class EncodingFailure(SynthesisError, RuntimeError):
    """Raised when a buffer cannot be serialized to its output format."""
