"""Hook elimination.

Replaces every eligible `useState` declaration with a pure expression of the
frame counter, deletes the setter calls and removes the timer effects and
callbacks that only existed to drive those setters.

Replacement by role:
- Counter: `initial + Math.floor(frame / intervalFrames) * step`, wrapped in
  `% modulus` when the update wraps around
- SelectionIndex: `Math.floor(frame / intervalFrames) % items.length`
- Toggle: `Math.floor(frame / periodFrames) % 2 === 0` (or `=== 1` when it
  starts false)
- one-shot timeouts: `frame >= delayFrames ? value : initial`
- Collection: lifted mount-effect construction, Math.random() seeded
- everything else: the initial value
"""

import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Any

from frameshift.analyzers.ast_parser import (
    FUNCTION_TYPES,
    ancestors,
    call_arguments,
    call_name,
    collect_imports,
    declared_names,
    enclosing_statement,
    find_all,
    hook_name,
    identifier_names,
    is_within,
    local_function_statement,
    mentioned_in_fences,
    references,
    statement_span,
    unwrap_parens,
)
from frameshift.analyzers.bindings import EFFECT_HOOKS, BindingCollector, function_name
from frameshift.config import FrameshiftConfig
from frameshift.models import (
    DetectedPattern,
    NoticeKind,
    SourceModule,
    StateBinding,
    StateRole,
    TextEdit,
)
from frameshift.transforms.base import TransformStage
from frameshift.transforms.imports import (
    ensure_named_imports,
    import_local_name,
    remove_unused_named_imports,
)
from frameshift.transforms.keyframes import format_number
from frameshift.utils.logging import get_logger

_logger = get_logger()

REACT_HOOKS = ["useState", "useEffect", "useCallback", "useLayoutEffect"]
TIMER_PLUMBING = frozenset(
    {
        "setInterval",
        "clearInterval",
        "setTimeout",
        "clearTimeout",
        "requestAnimationFrame",
        "cancelAnimationFrame",
    }
)
SIDE_EFFECT_FREE = re.compile(r"^(Math|console|Number|JSON)\.|^(Date\.now|performance\.now)$")
_SIMPLE_OPERAND = re.compile(r"^[\w$.]+(\(\))?$")
_IDENTIFIER_TOKEN = re.compile(r"(?<![\w$.])[A-Za-z_$][\w$]*")
_MATH_RANDOM = re.compile(r"\bMath\.random\(\s*\)")


def _operand(text: str) -> str:
    """Parenthesize an expression unless it is a plain name, number or call."""
    text = text.strip()
    return text if _SIMPLE_OPERAND.match(text) else f"({text})"


# =============================================================================
# Frame expressions
# =============================================================================


class FrameExpressions:
    """Builds frame-counter expressions for one component scope.

    Attributes:
        frame: Identifier bound to useCurrentFrame()
        fps: Identifier bound to useVideoConfig().fps
    """

    def __init__(self, frame: str, fps: str) -> None:
        self.frame = frame
        self.fps = fps

    def frames(self, ms: float, frame_loop: bool = False) -> str:
        """Frames elapsed in `ms` milliseconds."""
        if frame_loop:
            return f"({self.fps} / {format_number(round(1000 / ms, 6))})"
        seconds = round(ms / 1000, 6)
        if seconds == 1:
            return self.fps
        return f"({self.fps} * {format_number(seconds)})"

    def ticks(self, ms: float, frame_loop: bool = False) -> str:
        """Number of whole timer ticks elapsed at the current frame."""
        if ms <= 0:
            return self.frame
        return f"Math.floor({self.frame} / {self.frames(ms, frame_loop)})"

    def counter(
        self,
        initial: str | None,
        step: str | None,
        ticks: str,
        modulus: str | None = None,
    ) -> str:
        """`initial + ticks * step`, wrapped in `% modulus` when given."""
        step = (step or "1").strip()
        negative = step.startswith("-")
        magnitude = step[1:].strip() if negative else step
        if magnitude.startswith("(") and magnitude.endswith(")"):
            magnitude = magnitude[1:-1].strip()
        term = ticks if magnitude == "1" else f"{ticks} * {_operand(magnitude)}"

        start = (initial or "0").strip()
        if start in ("0", "0.0"):
            value = f"-{term}" if negative else term
        else:
            value = f"{_operand(start)} {'-' if negative else '+'} {term}"

        if modulus is None:
            return value
        if value != ticks:
            value = f"({value})"
        return f"{value} % {_operand(modulus)}"

    def toggle(self, initial: str | None, ticks: str) -> str:
        """Alternate every tick, matching the initial value at frame 0."""
        parity = f"{ticks} % 2"
        initial = (initial or "false").strip()
        if initial == "true":
            return f"{parity} === 0"
        if initial in ("false", "undefined", "null"):
            return f"{parity} === 1"
        value = _operand(initial)
        return f"{parity} === 0 ? {value} : !{value}"

    def schedule(self, initial: str | None, steps: list[tuple[float, str]]) -> str:
        """Ternary chain switching value at each one-shot delay."""
        expression = initial or "undefined"
        for delay, value in sorted(steps):
            threshold = "0" if delay <= 0 else self.frames(delay)
            expression = f"{self.frame} >= {threshold} ? {value} : {expression}"
        return expression


@dataclass
class _ScopeNames:
    """Frame/fps identifiers chosen for one component body."""

    frame: str
    fps: str
    declare_frame: bool
    declare_fps: bool


def _snapshot(binding: StateBinding) -> str:
    initial = binding.initial_value_expression
    if initial is None:
        return "undefined"
    if binding.initializer_is_lazy:
        return f"({initial})()"
    return initial


def _seed_random(
    expression: str, name: str, random_name: str = "random"
) -> tuple[str, bool]:
    """Replace Math.random() with deterministic random() draws."""
    if not _MATH_RANDOM.search(expression):
        return expression, False
    seeded = _MATH_RANDOM.sub(f"{random_name}('{name}-' + randomSeed++)", expression)
    return f"(() => {{\nlet randomSeed = 0;\nreturn {seeded};\n}})()", True


# =============================================================================
# Stage
# =============================================================================


class HookEliminator(TransformStage):
    """Rewrites useState bindings as functions of the frame counter."""

    name = "hooks"

    def __init__(self, config: FrameshiftConfig | None = None) -> None:
        self.config = config or FrameshiftConfig()
        self.eliminated: list[str] = []

    def eligible(self, module: SourceModule, binding: StateBinding) -> bool:
        """Return True if this binding is rewritten for the module's pattern.

        Complete modules only lose timer-driven state unless
        `rewrite.complete_modules` is "full".
        """
        if binding.scope == (0, 0):
            return False
        pattern = module.detected_pattern
        if pattern is None or not pattern.is_complete:
            return True
        mode = self.config.rewrite.complete_modules
        if mode == "full":
            return True
        if mode == "export-only":
            return False
        return bool(
            binding.is_timer_driven or binding.schedule or self._auto_advances(module, binding)
        )

    def _auto_advances(self, module: SourceModule, binding: StateBinding) -> bool:
        return (
            module.detected_pattern is DetectedPattern.CONTENT_HEAVY_SHOWCASE
            and binding.role is StateRole.SELECTION_INDEX
            and binding.interaction_driven
            and not binding.is_timer_driven
        )

    def apply(self, module: SourceModule) -> None:
        """Eliminate eligible state bindings from the module."""
        BindingCollector(self.config.timing).collect(module)
        bindings = [b for b in module.state_bindings if self.eligible(module, b)]
        self.eliminated = [b.name for b in bindings]
        if not bindings:
            return

        by_scope: dict[tuple[int, int], list[StateBinding]] = defaultdict(list)
        for binding in bindings:
            by_scope[binding.scope].append(binding)

        edits: list[TextEdit] = []
        setters: set[str] = set()
        sweep: set[str] = set()
        remotion: list[str] = []

        for span, scoped in by_scope.items():
            body = self._node_at(module, span)
            if body is None:
                continue
            names = self._scope_names(module, body)
            expressions = FrameExpressions(names.frame, names.fps)

            replacements = {}
            for binding in scoped:
                expression, imports = self._replacement(module, binding, expressions)
                replacements[binding.name] = expression
                remotion.extend(imports)

            joined = " ".join(replacements.values())
            uses_frame = bool(re.search(rf"\b{re.escape(names.frame)}\b", joined))
            uses_fps = bool(re.search(rf"\b{re.escape(names.fps)}\b", joined))
            edits.extend(self._declaration_edits(module, body, scoped, replacements))
            edits.extend(self._time_declarations(module, body, names, uses_frame, uses_fps))
            if names.declare_frame and uses_frame:
                remotion.append("useCurrentFrame")
            if names.declare_fps and uses_fps:
                remotion.append("useVideoConfig")

            scope_setters = {b.setter for b in scoped if b.setter}
            setters.update(scope_setters)
            edits.extend(self._effect_edits(module, body, scope_setters))
            setter_edits, callers = self._setter_edits(module, body, scope_setters)
            edits.extend(setter_edits)
            sweep.update(callers)

        module.apply_edits(edits)
        self._sweep_functions(module, sweep)
        remove_unused_named_imports(module, "react", REACT_HOOKS)
        if remotion:
            ensure_named_imports(module, "remotion", list(dict.fromkeys(remotion)))

        _logger.info(f"Eliminated {len(bindings)} state binding(s): {', '.join(self.eliminated)}")

    # -- replacement expressions ---------------------------------------------

    def _replacement(
        self, module: SourceModule, binding: StateBinding, expressions: FrameExpressions
    ) -> tuple[str, list[str]]:
        """Return the frame expression for a binding and the remotion names it needs."""
        initial = _snapshot(binding)
        start = initial if binding.initial_value_expression is not None else None
        role = binding.role

        if binding.is_timer_driven and role in (StateRole.COUNTER, StateRole.SELECTION_INDEX):
            ticks = expressions.ticks(binding.interval_ms, binding.frame_loop)
            modulus = f"{binding.length_of}.length" if binding.length_of else binding.modulus
            return expressions.counter(start, binding.step, ticks, modulus), []

        if binding.is_timer_driven and role is StateRole.TOGGLE:
            ticks = expressions.ticks(binding.interval_ms, binding.frame_loop)
            return expressions.toggle(initial, ticks), []

        if binding.schedule:
            return expressions.schedule(initial, binding.schedule), []

        if self._auto_advances(module, binding):
            seconds = self.config.timing.showcase_seconds_per_item
            ticks = expressions.ticks(seconds * 1000)
            modulus = f"{binding.length_of}.length" if binding.length_of else None
            return expressions.counter(start, binding.step, ticks, modulus), []

        if role is StateRole.COLLECTION and binding.collection_expression is not None:
            if self.config.rewrite.seed_random:
                local = import_local_name(module, "remotion", "random")
                expression, seeded = _seed_random(
                    binding.collection_expression, binding.name, local
                )
                entry = "random" if local == "random" else f"random as {local}"
                return expression, [entry] if seeded else []
            return binding.collection_expression, []

        if role is StateRole.UNCLASSIFIABLE:
            self.notify(
                module,
                NoticeKind.UNCLASSIFIABLE_BINDING,
                f"State '{binding.name}' could not be classified; using its initial value",
                binding=binding.name,
                update_sites=len(binding.update_sites),
            )
        return initial, []

    # -- identifiers ----------------------------------------------------------

    def _node_at(self, module: SourceModule, span: tuple[int, int]) -> Any | None:
        for node in find_all(module.root, "statement_block"):
            if (node.start_byte, node.end_byte) == span:
                return node
        return None

    def _top_level_names(self, module: SourceModule) -> set[str]:
        names: set[str] = set()
        for spec in collect_imports(module):
            names.update(spec.named)
            names.update(n for n in (spec.default, spec.namespace) if n)
        for statement in module.root.named_children:
            if statement.type == "import_statement":
                continue
            target = statement.child_by_field_name("declaration")
            target = target if target is not None else statement
            if target.type in ("function_declaration", "class_declaration"):
                name = target.child_by_field_name("name")
                if name is not None:
                    names.add(module.text_of(name))
            elif target.type in ("lexical_declaration", "variable_declaration"):
                for declarator in target.named_children:
                    pattern = declarator.child_by_field_name("name")
                    if pattern is not None:
                        names.update(identifier_names(module, pattern))
        return names

    def _scope_names(self, module: SourceModule, body: Any) -> _ScopeNames:
        """Pick frame/fps identifiers, reusing existing hook bindings."""
        frame = fps = None
        for declarator in find_all(body, "variable_declarator"):
            value = unwrap_parens(declarator.child_by_field_name("value"))
            target = declarator.child_by_field_name("name")
            if value is None or target is None or value.type != "call_expression":
                continue
            hook = hook_name(module, value)
            if hook == "useCurrentFrame" and target.type == "identifier" and frame is None:
                frame = module.text_of(target)
            elif hook == "useVideoConfig" and target.type == "object_pattern" and fps is None:
                for prop in target.named_children:
                    if prop.type == "shorthand_property_identifier_pattern" and (
                        module.text_of(prop) == "fps"
                    ):
                        fps = "fps"
                    elif prop.type == "pair_pattern":
                        key = prop.child_by_field_name("key")
                        value_node = prop.child_by_field_name("value")
                        if key is not None and module.text_of(key) == "fps" and (
                            value_node is not None and value_node.type == "identifier"
                        ):
                            fps = module.text_of(value_node)

        output = self.config.output
        taken = declared_names(module, body.parent if body.parent is not None else body)
        taken |= self._top_level_names(module)
        declare_frame = frame is None
        declare_fps = fps is None
        if frame is None:
            frame = output.frame_identifier if output.frame_identifier not in taken else (
                "remotionFrame"
            )
        if fps is None:
            fps = output.fps_identifier if output.fps_identifier not in taken else "remotionFps"
        return _ScopeNames(frame, fps, declare_frame, declare_fps)

    def _time_declarations(
        self,
        module: SourceModule,
        body: Any,
        names: _ScopeNames,
        uses_frame: bool,
        uses_fps: bool,
    ) -> list[TextEdit]:
        lines = []
        if names.declare_frame and uses_frame:
            lines.append(f"const {names.frame} = useCurrentFrame();")
        if names.declare_fps and uses_fps:
            pattern = "fps" if names.fps == "fps" else f"fps: {names.fps}"
            lines.append(f"const {{ {pattern} }} = useVideoConfig();")
        if not lines:
            return []
        indent = self._indent_of(module, body.named_children[0]) if body.named_children else "  "
        text = "".join(f"\n{indent}{line}" for line in lines)
        return [TextEdit(body.start_byte + 1, body.start_byte + 1, text)]

    def _indent_of(self, module: SourceModule, node: Any) -> str:
        line_start = module.source.rfind(b"\n", 0, node.start_byte) + 1
        prefix = module.source[line_start : node.start_byte].decode("utf-8")
        return prefix if not prefix.strip() else "  "

    # -- declarations ---------------------------------------------------------

    def _declaration_edits(
        self,
        module: SourceModule,
        body: Any,
        bindings: list[StateBinding],
        replacements: dict[str, str],
    ) -> list[TextEdit]:
        statements = list(body.named_children)
        declared_at: dict[str, int] = {}
        for index, statement in enumerate(statements):
            if statement.type not in ("lexical_declaration", "variable_declaration"):
                continue
            for declarator in statement.named_children:
                pattern = declarator.child_by_field_name("name")
                if pattern is not None:
                    for name in identifier_names(module, pattern):
                        declared_at[name] = index

        edits = []
        for binding in bindings:
            declarator = self._state_declarator(module, body, binding)
            if declarator is None:
                continue
            statement = declarator.parent
            expression = replacements[binding.name]
            single = statement is not None and len(
                [d for d in statement.named_children if d.type == "variable_declarator"]
            ) == 1
            if not single:
                edits.append(
                    TextEdit(
                        declarator.start_byte,
                        declarator.end_byte,
                        f"{binding.name} = {expression}",
                    )
                )
                continue

            line = f"const {binding.name} = {expression};"
            index = next(
                (i for i, s in enumerate(statements) if s.start_byte == statement.start_byte), None
            )
            target = self._move_target(module, statements, index, binding.name, expression,
                                       declared_at)
            if target is None:
                edits.append(TextEdit(statement.start_byte, statement.end_byte, line))
            else:
                start, end = statement_span(module, statement)
                anchor = statements[target].end_byte
                indent = self._indent_of(module, statement)
                edits.append(TextEdit(start, end, ""))
                edits.append(TextEdit(anchor, anchor, f"\n{indent}{line}"))
        return edits

    def _state_declarator(self, module: SourceModule, body: Any, binding: StateBinding) -> Any:
        for call in find_all(body, "call_expression"):
            if hook_name(module, call) != "useState":
                continue
            declarator = call.parent
            if declarator is None or declarator.type != "variable_declarator":
                continue
            pattern = declarator.child_by_field_name("name")
            if pattern is None or pattern.type != "array_pattern":
                continue
            first = pattern.named_children[0] if pattern.named_children else None
            if first is not None and module.text_of(first) == binding.name and (
                declarator.parent is not None
                and (declarator.parent.start_byte, declarator.parent.end_byte)
                == binding.declaration
            ):
                return declarator
        return None

    def _move_target(
        self,
        module: SourceModule,
        statements: list[Any],
        index: int | None,
        name: str,
        expression: str,
        declared_at: dict[str, int],
    ) -> int | None:
        """Index of the statement to move a declaration after, if any.

        A replacement that reads a const declared further down would hit
        the temporal dead zone, so it moves below that const unless
        something in between already reads the state.
        """
        if index is None:
            return None
        later = [
            declared_at[token]
            for token in _IDENTIFIER_TOKEN.findall(expression)
            if declared_at.get(token, -1) > index
        ]
        if not later:
            return None
        target = max(later)
        pattern = re.compile(rf"(?<![\w$.]){re.escape(name)}\b")
        for statement in statements[index + 1 : target + 1]:
            if pattern.search(module.text_of(statement)):
                return None
        return target

    # -- setters and effects --------------------------------------------------

    def _setter_calls(self, module: SourceModule, body: Any, setters: set[str]) -> list[Any]:
        calls = []
        for call in find_all(body, "call_expression"):
            function = call.child_by_field_name("function")
            if function is not None and function.type == "identifier" and (
                module.text_of(function) in setters
            ):
                calls.append(call)
        return calls

    def _setter_edits(
        self, module: SourceModule, body: Any, setters: set[str]
    ) -> tuple[list[TextEdit], set[str]]:
        """Delete setter calls; return the edits and the functions that held them."""
        edits = []
        callers: set[str] = set()
        calls = self._setter_calls(module, body, setters)
        call_functions = {c.child_by_field_name("function").start_byte for c in calls}

        for call in calls:
            for parent in ancestors(call):
                if parent.start_byte == body.start_byte and parent.end_byte == body.end_byte:
                    break
                if parent.type in FUNCTION_TYPES:
                    name = function_name(parent)
                    if name is not None:
                        callers.add(name)

            parent = call.parent
            if parent.type == "expression_statement":
                holder = parent.parent
                if holder is not None and holder.type in ("statement_block", "program",
                                                          "switch_case", "switch_default"):
                    start, end = statement_span(module, parent)
                    edits.append(TextEdit(start, end, ""))
                else:
                    edits.append(TextEdit(parent.start_byte, parent.end_byte, "{}"))
            elif parent.type == "arrow_function":
                edits.append(TextEdit(call.start_byte, call.end_byte, "{}"))
            else:
                edits.append(TextEdit(call.start_byte, call.end_byte, "undefined"))

        # Setters passed around by reference become no-ops.
        for node in find_all(body, "identifier", "shorthand_property_identifier"):
            name = module.text_of(node)
            if name not in setters or node.start_byte in call_functions:
                continue
            if node.type == "shorthand_property_identifier":
                edits.append(TextEdit(node.start_byte, node.end_byte, f"{name}: () => {{}}"))
                continue
            parent = node.parent
            if parent is not None and parent.type in ("array_pattern", "variable_declarator"):
                continue
            edits.append(TextEdit(node.start_byte, node.end_byte, "(() => {})"))
        return edits, callers

    def _effect_edits(self, module: SourceModule, body: Any, setters: set[str]) -> list[TextEdit]:
        edits = []
        for call in find_all(body, "call_expression"):
            if hook_name(module, call) not in EFFECT_HOOKS:
                continue
            if not self._drives_only_setters(module, call, setters):
                continue
            statement = enclosing_statement(call)
            if statement.type != "expression_statement":
                continue
            start, end = statement_span(module, statement)
            edits.append(TextEdit(start, end, ""))
        return edits

    def _drives_only_setters(self, module: SourceModule, effect: Any, setters: set[str]) -> bool:
        """Return True if an effect does nothing but run timers for `setters`."""
        arguments = call_arguments(effect)
        if not arguments:
            return False
        callback = arguments[0]
        if not setters & set(identifier_names(module, callback)):
            return False

        local = declared_names(module, callback)
        setter_calls = self._setter_calls(module, callback, setters)
        for call in find_all(callback, "call_expression"):
            if any(is_within(call, s) for s in setter_calls):
                continue
            name = call_name(module, call) or ""
            if (
                name in TIMER_PLUMBING
                or name.split(".")[-1] in TIMER_PLUMBING and name.startswith("window.")
                or name in local
                or SIDE_EFFECT_FREE.match(name)
            ):
                continue
            return False

        assignments = find_all(
            callback, "assignment_expression", "augmented_assignment_expression"
        )
        for assignment in assignments:
            left = assignment.child_by_field_name("left")
            if left is None:
                continue
            if left.type == "identifier" and module.text_of(left) in local:
                continue
            if left.type == "member_expression" and module.text_of(left).endswith(".current"):
                continue
            return False
        return True

    def _sweep_functions(self, module: SourceModule, candidates: set[str]) -> None:
        """Delete setter-holding functions nothing references any more."""
        pending = set(candidates)
        while pending:
            edits = []
            for name in sorted(pending):
                statement = local_function_statement(module, name)
                if statement is None:
                    continue
                if references(module, name, exclude=statement):
                    continue
                if mentioned_in_fences(module, name):
                    continue
                start, end = statement_span(module, statement)
                edits.append(TextEdit(start, end, ""))
                _logger.debug(f"Removed unused function '{name}'")
            if not edits:
                return
            module.apply_edits(edits)
            pending = {n for n in pending if local_function_statement(module, n) is not None}

