"""Keyframe sequence validation and repair.

`interpolate(input, inputRange, outputRange)` requires a strictly increasing
input range. The range functions here work on plain number lists and never
raise; `repair_interpolations` applies them to every literal
`interpolate()` call in a module.
"""

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from frameshift.analyzers.ast_parser import (
    TSXParser,
    call_arguments,
    find_all,
    hook_name,
    is_within,
    unwrap_parens,
)
from frameshift.models import KeyframeSequence, SourceModule, TextEdit
from frameshift.transforms.imports import ensure_named_imports
from frameshift.utils.logging import get_logger

_logger = get_logger()

Number = int | float

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{3,8}$")
_FUNCTION_COLOR = re.compile(r"^(rgb|rgba|hsl|hsla)\s*\(.*\)$", re.IGNORECASE)
NAMED_COLORS = frozenset(
    {
        "red",
        "blue",
        "green",
        "yellow",
        "orange",
        "purple",
        "pink",
        "black",
        "white",
        "gray",
        "grey",
        "brown",
        "cyan",
        "magenta",
        "transparent",
    }
)


# =============================================================================
# Range functions
# =============================================================================


def is_valid_range(domain: Sequence[Number]) -> bool:
    """Return True if every element is strictly greater than its predecessor.

    Empty and single-element ranges are valid.
    """
    return all(current > previous for previous, current in zip(domain, domain[1:]))


def validate_interpolation_range(domain: Sequence[Number]) -> list[Number]:
    """Repair a domain so it is strictly increasing.

    Single left-to-right pass: an element greater than the previous emitted
    value is kept, anything else becomes previous + 1. Already-valid values
    are never touched, so the repair is idempotent.

    Args:
        domain: Interpolation input range

    Returns:
        New list, strictly increasing
    """
    repaired: list[Number] = []
    previous: Number = -math.inf
    for element in domain:
        if element > previous:
            value = element
        else:
            value = previous + 1
        repaired.append(value)
        previous = value
    return repaired


def validate_range_pair(domain: Sequence[Number], codomain: Sequence[Any]) -> KeyframeSequence:
    """Repair a domain and fit its output range to the same length.

    Excess output values are truncated; missing ones repeat the last output
    value (or 0 when the output range is empty). Output values are never
    otherwise altered.

    Args:
        domain: Interpolation input range
        codomain: Interpolation output range

    Returns:
        KeyframeSequence with matching lengths
    """
    repaired = validate_interpolation_range(domain)
    values = list(codomain[: len(repaired)])
    filler = codomain[-1] if codomain else 0
    values.extend([filler] * (len(repaired) - len(values)))
    return KeyframeSequence(domain=repaired, codomain=values)


def is_color_value(value: Any) -> bool:
    """Return True for hex, rgb()/hsl() and named CSS colour strings."""
    if not isinstance(value, str):
        return False
    text = value.strip()
    return bool(
        _HEX_COLOR.match(text) or _FUNCTION_COLOR.match(text) or text.lower() in NAMED_COLORS
    )


def detect_color_values(values: Sequence[Any]) -> bool:
    """Return True if any output value is a colour."""
    return any(is_color_value(value) for value in values)


# =============================================================================
# Source-level repair
# =============================================================================


@dataclass
class KeyframeRepair:
    """One corrected interpolate() call.

    Attributes:
        line: 1-based line of the call
        original_domain: Domain before repair (None when not numeric)
        domain: Domain after repair
        codomain_resized: Output range length was reconciled
        switched_to_colors: Call was rewritten to interpolateColors
    """

    line: int
    original_domain: list[Number] | None
    domain: list[Number] | None
    codomain_resized: bool = False
    switched_to_colors: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "line": self.line,
            "original_domain": self.original_domain,
            "domain": self.domain,
            "codomain_resized": self.codomain_resized,
            "switched_to_colors": self.switched_to_colors,
        }


def format_number(value: Number) -> str:
    """Render a number the way it would be written in source."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def _literal_number(module: SourceModule, node: Any) -> Number | None:
    node = unwrap_parens(node)
    text = module.text_of(node).replace("_", "")
    if node.type == "unary_expression" and text.startswith("-"):
        inner = _literal_number(module, node.named_children[0])
        return None if inner is None else -inner
    if node.type != "number":
        return None
    try:
        return int(text, 0)
    except ValueError:
        try:
            return float(text)
        except ValueError:
            return None


def _string_value(module: SourceModule, node: Any) -> str | None:
    if node.type != "string":
        return None
    return module.text_of(node)[1:-1]


def _elements(array: Any) -> list[Any]:
    return [c for c in array.named_children if c.type != "comment"]


def _plan_repair(
    module: SourceModule, call: Any
) -> tuple[KeyframeRepair, list[TextEdit], bool] | None:
    """Return (repair, edits, needs interpolateColors import) for one call."""
    name = hook_name(module, call)
    if name not in ("interpolate", "interpolateColors"):
        return None
    arguments = call_arguments(call)
    if len(arguments) < 3:
        return None
    domain_node, codomain_node = arguments[1], arguments[2]
    if domain_node.type != "array" or codomain_node.type != "array":
        return None

    domain_elements = _elements(domain_node)
    codomain_elements = _elements(codomain_node)
    if any(e.type == "spread_element" for e in domain_elements + codomain_elements):
        return None

    edits: list[TextEdit] = []
    repair = KeyframeRepair(line=call.start_point[0] + 1, original_domain=None, domain=None)
    numbers = [_literal_number(module, e) for e in domain_elements]

    domain_texts = [module.text_of(e) for e in domain_elements]
    if all(n is not None for n in numbers):
        original = [n for n in numbers if n is not None]
        fixed = validate_interpolation_range(original)
        if fixed != original:
            repair.original_domain = original
            repair.domain = fixed
            domain_texts = [
                text if old == new else format_number(new)
                for text, old, new in zip(domain_texts, original, fixed)
            ]
            edits.append(
                TextEdit(
                    domain_node.start_byte,
                    domain_node.end_byte,
                    "[" + ", ".join(domain_texts) + "]",
                )
            )

    codomain_texts = [module.text_of(e) for e in codomain_elements]
    if domain_texts and len(codomain_texts) != len(domain_texts):
        fitted = validate_range_pair(range(len(domain_texts)), codomain_texts or ["0"])
        repair.codomain_resized = True
        edits.append(
            TextEdit(
                codomain_node.start_byte,
                codomain_node.end_byte,
                "[" + ", ".join(fitted.codomain) + "]",
            )
        )

    needs_colors = False
    colors = [_string_value(module, e) for e in codomain_elements]
    if name == "interpolate" and detect_color_values([c for c in colors if c is not None]):
        function = call.child_by_field_name("function")
        target = function.child_by_field_name("property") if (
            function.type == "member_expression"
        ) else function
        edits.append(TextEdit(target.start_byte, target.end_byte, "interpolateColors"))
        # interpolateColors() takes no options argument.
        if len(arguments) > 3:
            edits.append(TextEdit(arguments[2].end_byte, arguments[-1].end_byte, ""))
        repair.switched_to_colors = True
        needs_colors = function.type != "member_expression"

    if not edits:
        return None
    return repair, edits, needs_colors


def repair_interpolations(module: SourceModule) -> list[KeyframeRepair]:
    """Repair the literal ranges of every interpolate() call in a module.

    - numeric input ranges are made strictly increasing
    - output ranges are fitted to the input range length
    - numeric interpolate() over colour outputs becomes interpolateColors()

    Calls nested in another call's ranges are repaired first, one layer per
    pass, so an outer edit never overwrites an inner one.

    Args:
        module: Module to edit in place

    Returns:
        One entry per call that changed
    """
    repairs: list[KeyframeRepair] = []
    needs_colors = False

    while True:
        planned = []
        for call in find_all(module.root, "call_expression"):
            plan = _plan_repair(module, call)
            if plan is not None:
                planned.append((call, plan))
        if not planned:
            break

        edits: list[TextEdit] = []
        for call, (repair, call_edits, imports_colors) in planned:
            if any(other is not call and is_within(other, call) for other, _ in planned):
                continue
            edits.extend(call_edits)
            repairs.append(repair)
            needs_colors = needs_colors or imports_colors
        module.apply_edits(edits)

    if needs_colors:
        ensure_named_imports(module, "remotion", ["interpolateColors"])

    for repair in repairs:
        _logger.debug(f"Repaired interpolate() range on line {repair.line}")
    return repairs


def repair_interpolation_source(
    text: str, parser: TSXParser | None = None
) -> tuple[str, list[KeyframeRepair]]:
    """Repair interpolate() ranges in raw source text.

    Args:
        text: Module source
        parser: Parser to reuse (a new one is created when omitted)

    Returns:
        Tuple of (repaired text, repairs)
    """
    module = SourceModule(text, parser or TSXParser())
    repairs = repair_interpolations(module)
    return module.text, repairs
