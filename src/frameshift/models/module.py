"""Conversion entities.

This module contains the request-scoped records a conversion works on:
- DetectedPattern / StateRole / TriggerKind: classification enums
- StateBinding, EffectBinding, EventHandlerBinding: facts collected from source
- ImportSpecifier: one import statement
- TextEdit: byte-range replacement applied to a SourceModule
- SourceModule: text plus syntax tree, shared by all pipeline stages
- TransformedModule: pipeline output
- KeyframeSequence: interpolate() domain and output range
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol

from frameshift.models.notice import ConversionNotice


class DetectedPattern(Enum):
    """Shape of the input module, decides how aggressively it is rewritten."""

    SIMPLE_FRAGMENT = "SimpleFragment"
    SIMPLE_FUNCTION_COMPONENT = "SimpleFunctionComponent"
    ARROW_CONST_COMPONENT = "ArrowConstComponent"
    COMPLETE_MULTI_COMPONENT_MODULE = "CompleteMultiComponentModule"
    CONTENT_HEAVY_SHOWCASE = "ContentHeavyShowcase"

    @property
    def is_complete(self) -> bool:
        """Return True for patterns that get minimal intervention."""
        return self in (
            DetectedPattern.COMPLETE_MULTI_COMPONENT_MODULE,
            DetectedPattern.CONTENT_HEAVY_SHOWCASE,
        )


class StateRole(Enum):
    """Inferred role of a state binding."""

    COUNTER = "Counter"
    TOGGLE = "Toggle"
    POSITIONAL_COORDINATE = "PositionalCoordinate"
    SELECTION_INDEX = "SelectionIndex"
    COLLECTION = "Collection"
    UNCLASSIFIABLE = "Unclassifiable"


class TriggerKind(Enum):
    """What runs an effect."""

    INTERVAL = "interval"
    MOUNT_ONLY = "mount-only"
    DEPENDENCY_TRACKED = "dependency-tracked"


Span = tuple[int, int]


@dataclass
class StateBinding:
    """A useState declaration targeted for elimination.

    Attributes:
        name: State variable name
        setter: Setter name (None when the pattern omits it)
        initial_value_expression: Source of the initializer (None when omitted)
        update_sites: Source of every setter call
        role: Inferred role
        initializer_is_lazy: Initializer is a function to call once
        interval_ms: Period of the timer that drives the updates
        frame_loop: Updates run from a requestAnimationFrame loop
        step: Increment applied per tick (Counter, SelectionIndex)
        modulus: Wrap-around value for periodic counters
        length_of: Array whose length bounds a SelectionIndex
        schedule: One-shot (delay_ms, value) assignments made by timeouts
        collection_expression: Deterministic construction lifted from a mount effect
        interaction_driven: Updated from event handlers
        declaration: Byte span of the declaration statement
        scope: Byte span of the enclosing function body
    """

    name: str
    setter: str | None
    initial_value_expression: str | None
    update_sites: list[str] = field(default_factory=list)
    role: StateRole = StateRole.UNCLASSIFIABLE
    initializer_is_lazy: bool = False
    interval_ms: float | None = None
    frame_loop: bool = False
    step: str | None = None
    modulus: str | None = None
    length_of: str | None = None
    schedule: list[tuple[float, str]] = field(default_factory=list)
    collection_expression: str | None = None
    interaction_driven: bool = False
    declaration: Span = (0, 0)
    scope: Span = (0, 0)

    @property
    def is_timer_driven(self) -> bool:
        """Return True if a periodic timer or frame loop updates this state."""
        return self.interval_ms is not None


@dataclass
class EffectBinding:
    """A useEffect call.

    Attributes:
        trigger: What runs the effect
        body: Source of the effect callback
        states: Names of state bindings whose setters it calls
        interval_ms: Timer period when the effect registers one
        listeners: Event names registered through addEventListener
        span: Byte span of the effect statement
    """

    trigger: TriggerKind
    body: str
    states: list[str] = field(default_factory=list)
    interval_ms: float | None = None
    listeners: list[str] = field(default_factory=list)
    span: Span = (0, 0)


@dataclass
class EventHandlerBinding:
    """A function bound to an interaction attribute.

    Attributes:
        name: Handler identifier
        kind: Declaration form (function, arrow, callback)
        span: Byte span of the declaration statement
        attributes: Event attributes that referenced it
    """

    name: str
    kind: str
    span: Span
    attributes: list[str] = field(default_factory=list)


@dataclass
class ImportSpecifier:
    """One import statement.

    Attributes:
        source: Module specifier string
        default: Default import binding
        named: Local names bound by named imports
        namespace: Namespace import binding
        type_only: `import type` statement
        span: Byte span of the statement
    """

    source: str
    default: str | None = None
    named: list[str] = field(default_factory=list)
    namespace: str | None = None
    type_only: bool = False
    span: Span = (0, 0)


@dataclass(frozen=True)
class TextEdit:
    """Replace bytes [start, end) of a module with `replacement`."""

    start: int
    end: int
    replacement: str = ""


class SyntaxParser(Protocol):
    """Anything that turns source bytes into a tree-sitter tree."""

    def parse(self, source: str | bytes) -> Any: ...


class SourceModule:
    """Source text and its syntax tree, shared by every pipeline stage.

    Trees are immutable, so stages collect TextEdits against the current tree
    and apply them in one batch; the module is then reparsed. Overlapping
    edits are resolved in favour of the outermost one.
    """

    def __init__(self, text: str, parser: SyntaxParser) -> None:
        self._parser = parser
        self.detected_pattern: DetectedPattern | None = None
        self.state_bindings: list[StateBinding] = []
        self.effect_bindings: list[EffectBinding] = []
        self.handler_bindings: list[EventHandlerBinding] = []
        self.imports: list[ImportSpecifier] = []
        self.fences: dict[str, str] = {}
        self.notices: list[ConversionNotice] = []
        self._set_text(text)

    def _set_text(self, text: str) -> None:
        self.text = text
        self.source = text.encode("utf-8")
        self.tree = self._parser.parse(self.source)

    @property
    def root(self) -> Any:
        """Root node of the current tree."""
        return self.tree.root_node

    @property
    def has_error(self) -> bool:
        """Return True if the current tree contains syntax errors."""
        return self.root.has_error

    def text_of(self, node: Any) -> str:
        """Return the source text covered by a node."""
        return self.source[node.start_byte : node.end_byte].decode("utf-8")

    def slice(self, start: int, end: int) -> str:
        """Return the source text between two byte offsets."""
        return self.source[start:end].decode("utf-8")

    def replace_text(self, text: str) -> None:
        """Swap in new text and reparse."""
        self._set_text(text)

    def apply_edits(self, edits: list[TextEdit]) -> int:
        """Apply a batch of edits against the current tree and reparse.

        Args:
            edits: Edits whose offsets refer to the current source

        Returns:
            Number of edits applied (edits nested in another are dropped)
        """
        if not edits:
            return 0

        replacements = sorted(
            {e for e in edits if e.end > e.start}, key=lambda e: (e.start, -e.end)
        )
        kept: list[TextEdit] = []
        for edit in replacements:
            if kept and edit.start < kept[-1].end:
                continue
            kept.append(edit)

        # Insertions survive unless they fall strictly inside a replacement.
        for edit in edits:
            if edit.end == edit.start and not any(k.start < edit.start < k.end for k in kept):
                kept.append(edit)

        kept.sort(key=lambda e: (e.start, e.end > e.start))

        result = self.source
        for edit in reversed(kept):
            result = result[: edit.start] + edit.replacement.encode("utf-8") + result[edit.end :]

        self._set_text(result.decode("utf-8"))
        return len(kept)


@dataclass
class TransformedModule:
    """Result of a conversion.

    Attributes:
        text: Output source
        exported_component_name: Identifier behind the default export
        retained_imports: Module specifiers imported by the output
        added_dependencies: Packages added to the manifest, with versions
        detected_pattern: Classification of the input
        notices: Non-fatal conditions raised along the way
    """

    text: str
    exported_component_name: str | None
    retained_imports: list[str] = field(default_factory=list)
    added_dependencies: dict[str, str] = field(default_factory=dict)
    detected_pattern: DetectedPattern | None = None
    notices: list[ConversionNotice] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert metadata to a dictionary (output text excluded)."""
        return {
            "exported_component_name": self.exported_component_name,
            "retained_imports": self.retained_imports,
            "added_dependencies": self.added_dependencies,
            "detected_pattern": self.detected_pattern.value if self.detected_pattern else None,
            "notices": [notice.to_dict() for notice in self.notices],
        }


@dataclass
class KeyframeSequence:
    """Domain and output range of one interpolation.

    Attributes:
        domain: Input breakpoints, strictly increasing after repair
        codomain: Output values, same length as domain after repair
    """

    domain: list[float]
    codomain: list[Any]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"domain": self.domain, "codomain": self.codomain}
