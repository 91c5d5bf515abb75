"""frameshift - Interactive component to video composition converter.

frameshift rewrites interactive React components (state hooks, timers, event
handlers) into Remotion compositions whose output is a pure function of the
current frame.

Core principles:
- Determinism: the same source always converts to the same output
- Minimal intervention: complete modules are only touched where they must be
- No I/O in the core: manifests are passed in and updated in memory
- Non-fatal notices: repairs are reported, never silently applied
"""

__version__ = "0.1.0"
__author__ = "frameshift Contributors"

from frameshift.pipeline import ConversionPipeline, convert
from frameshift.transforms.base import ConversionError, ParseError
from frameshift.transforms.keyframes import (
    is_valid_range,
    validate_interpolation_range,
    validate_range_pair,
)

__all__ = [
    "ConversionError",
    "ConversionPipeline",
    "ParseError",
    "convert",
    "is_valid_range",
    "validate_interpolation_range",
    "validate_range_pair",
]
