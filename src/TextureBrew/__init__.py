"""Provide package metadata and the public synthesis API for `TextureBrew`."""

__version__ = "1.0.0"

from .errors import EmptySource, EncodingFailure, InvalidParameters, SynthesisError  # noqa: E402
from .config import BorderSettings, PipelineConfig, SynthesisParams  # noqa: E402
from .core import RasterBuffer  # noqa: E402
from .pipeline import SynthesisMaps, TextureSet, TextureSynthesizer, synthesize  # noqa: E402

__all__ = [
    "__version__",
    "synthesize", "TextureSynthesizer", "TextureSet", "SynthesisMaps",
    "RasterBuffer",
    "PipelineConfig", "SynthesisParams", "BorderSettings",
    "SynthesisError", "InvalidParameters", "EmptySource", "EncodingFailure",
]
