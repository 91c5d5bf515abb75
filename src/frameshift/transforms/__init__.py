"""frameshift transforms - stages that rewrite a SourceModule in place.

Stages run in this order inside the pipeline:
- StructurePreserver.guard: fence template and style regions
- HookEliminator: state, effects and timers to frame expressions
- InteractionStripper: event attributes and orphaned handlers
- StructurePreserver.apply: unwrap, restore fences, balance delimiters
- ExportNormalizer: exactly one default export
- repair_interpolations: interpolate() range repair
"""

from frameshift.transforms.base import ConversionError, ParseError, TransformStage
from frameshift.transforms.exports import ExportNormalizer
from frameshift.transforms.hooks import HookEliminator
from frameshift.transforms.interactions import InteractionStripper
from frameshift.transforms.structure import StructurePreserver

__all__ = [
    "ConversionError",
    "ExportNormalizer",
    "HookEliminator",
    "InteractionStripper",
    "ParseError",
    "StructurePreserver",
    "TransformStage",
]
