"""frameshift data models.

- SourceModule / TransformedModule: pipeline input and output
- StateBinding, EffectBinding, EventHandlerBinding: facts collected from source
- KeyframeSequence: interpolate() domain and output range
- ConversionNotice: non-fatal condition raised during conversion
"""

from frameshift.models.module import (
    DetectedPattern,
    EffectBinding,
    EventHandlerBinding,
    ImportSpecifier,
    KeyframeSequence,
    SourceModule,
    StateBinding,
    StateRole,
    TextEdit,
    TransformedModule,
    TriggerKind,
)
from frameshift.models.notice import ConversionNotice, NoticeKind

__all__ = [
    "ConversionNotice",
    "DetectedPattern",
    "EffectBinding",
    "EventHandlerBinding",
    "ImportSpecifier",
    "KeyframeSequence",
    "NoticeKind",
    "SourceModule",
    "StateBinding",
    "StateRole",
    "TextEdit",
    "TransformedModule",
    "TriggerKind",
]
