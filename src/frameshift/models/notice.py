"""Conversion notices.

Non-fatal conditions raised while converting a module:
- UNCLASSIFIABLE_BINDING: state fell back to a static snapshot
- STRUCTURAL_REPAIR: brace/paren safety net appended closers
- DEPENDENCY_ADDED: a package was added to the manifest
- KEYFRAME_REPAIR: an interpolate() range was corrected
- DUPLICATE_EXPORT: an earlier export of a repeated name was dropped
- IMPORT_ADDED: a Remotion API used without an import was imported
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class NoticeKind(Enum):
    """Kind of non-fatal conversion condition."""

    UNCLASSIFIABLE_BINDING = "unclassifiable-binding"
    STRUCTURAL_REPAIR = "structural-repair"
    DEPENDENCY_ADDED = "dependency-added"
    KEYFRAME_REPAIR = "keyframe-repair"
    DUPLICATE_EXPORT = "duplicate-export"
    IMPORT_ADDED = "import-added"

    @property
    def is_informational(self) -> bool:
        """Return True for notices that report additions rather than repairs."""
        return self in (NoticeKind.DEPENDENCY_ADDED, NoticeKind.IMPORT_ADDED)


@dataclass
class ConversionNotice:
    """Non-fatal condition encountered during conversion.

    Attributes:
        kind: Notice category
        stage: Stage that raised it (hooks, structure, dependencies, keyframes)
        message: Human-readable description
        details: Extra fields for JSON logs (binding name, package, ...)
    """

    kind: NoticeKind
    stage: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "stage": self.stage,
            "message": self.message,
            "details": self.details,
        }
