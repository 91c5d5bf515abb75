"""State, effect and event-handler collection.

Finds every useState declaration and infers its role from the shape of its
setter calls and from what triggers them:
- `s + k` / `s - k`: Counter
- `(s + k) % n`, or a ternary reset to 0: periodic Counter, or SelectionIndex
  when the bound is `items.length`
- `!s`: Toggle
- array/Map/Set updates: Collection
- x/y or velocity updates: PositionalCoordinate

Triggers are setInterval callbacks, requestAnimationFrame loops, setTimeout
(periodic when the effect re-runs on the state it sets, one-shot otherwise),
mount effects and event handlers.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any

from frameshift.analyzers.ast_parser import (
    FUNCTION_TYPES,
    ancestors,
    call_arguments,
    enclosing_function,
    enclosing_statement,
    find_all,
    function_body,
    hook_name,
    identifier_names,
    is_within,
    operator_of,
    unwrap_parens,
)
from frameshift.analyzers.classifier import NAVIGATION_STATE_NAMES
from frameshift.config import TimingConfig
from frameshift.models import (
    EffectBinding,
    EventHandlerBinding,
    SourceModule,
    StateBinding,
    StateRole,
    TriggerKind,
)
from frameshift.utils.logging import get_logger

_logger = get_logger()

EVENT_ATTRIBUTE = re.compile(
    r"^on(Click|DoubleClick|Mouse\w*|Pointer\w*|Touch\w*|Key\w*|Change|Input|Submit|"
    r"Focus|Blur|Wheel|Scroll|Drag\w*|Drop|ContextMenu|Select|Reset)$"
)
INTERACTION_EVENTS = re.compile(
    r"^(click|dblclick|mouse\w*|pointer\w*|touch\w*|key\w*|wheel|scroll|drag\w*|drop|"
    r"contextmenu|input|change|submit|focus|blur)$"
)
HANDLER_NAME = re.compile(r"^(handle|on)[A-Z]")
PHYSICS_WORDS = re.compile(
    r"\b(vx|vy|dx|dy|velocity|gravity|acceleration|friction|bounce|speed)\b|\.(x|y)\b"
)
COLLECTION_METHODS = frozenset(
    {"map", "filter", "concat", "slice", "reduce", "flatMap", "splice", "sort", "reverse"}
)
TIMER_CALLS = frozenset({"setInterval", "setTimeout", "requestAnimationFrame"})
EFFECT_HOOKS = frozenset({"useEffect", "useLayoutEffect"})


@dataclass
class UpdateShape:
    """What one setter call does to its state."""

    kind: str
    step: str | None = None
    modulus: str | None = None
    length_of: str | None = None
    value: str | None = None


@dataclass
class SiteContext:
    """What triggers one setter call."""

    kind: str
    delay: float | None = None
    effect: Any = None


@dataclass
class _Scope:
    """Per-module lookup tables built once per collection."""

    constants: dict[str, float] = field(default_factory=dict)
    timer_callbacks: dict[str, tuple[str, Any]] = field(default_factory=dict)
    handler_names: set[str] = field(default_factory=set)


# =============================================================================
# Expression helpers
# =============================================================================


def numeric_value(module: SourceModule, node: Any, constants: dict[str, float]) -> float | None:
    """Evaluate a constant numeric expression (literals, known consts, + - * /)."""
    node = unwrap_parens(node)
    if node is None:
        return None
    if node.type == "number":
        text = module.text_of(node).replace("_", "")
        try:
            return float(int(text, 0))
        except ValueError:
            try:
                return float(text)
            except ValueError:
                return None
    if node.type == "identifier":
        return constants.get(module.text_of(node))
    if node.type == "unary_expression" and operator_of(node) == "-":
        inner = numeric_value(module, node.named_children[0], constants)
        return None if inner is None else -inner
    if node.type == "binary_expression":
        left = numeric_value(module, node.child_by_field_name("left"), constants)
        right = numeric_value(module, node.child_by_field_name("right"), constants)
        if left is None or right is None:
            return None
        operator = operator_of(node)
        if operator == "+":
            return left + right
        if operator == "-":
            return left - right
        if operator == "*":
            return left * right
        if operator == "/" and right != 0:
            return left / right
    return None


def _is_ref(module: SourceModule, node: Any, name: str) -> bool:
    node = unwrap_parens(node)
    return node is not None and node.type == "identifier" and module.text_of(node) == name


def _mentions(module: SourceModule, node: Any, name: str) -> bool:
    return name in identifier_names(module, node)


def _increment(module: SourceModule, node: Any, name: str) -> str | None:
    """Return the step of `name + k` / `k + name` / `name - k`."""
    node = unwrap_parens(node)
    if node is None or node.type != "binary_expression":
        return None
    operator = operator_of(node)
    left = node.child_by_field_name("left")
    right = node.child_by_field_name("right")
    if operator == "+":
        if _is_ref(module, left, name) and not _mentions(module, right, name):
            return module.text_of(unwrap_parens(right))
        if _is_ref(module, right, name) and not _mentions(module, left, name):
            return module.text_of(unwrap_parens(left))
    if operator == "-" and _is_ref(module, left, name) and not _mentions(module, right, name):
        step = unwrap_parens(right)
        text = module.text_of(step)
        return f"-{text}" if step.type in ("number", "identifier") else f"-({text})"
    return None


def _length_object(module: SourceModule, node: Any) -> str | None:
    """Return `items` when `node` contains `items.length`."""
    for member in find_all(node, "member_expression"):
        prop = member.child_by_field_name("property")
        if prop is not None and module.text_of(prop) == "length":
            return module.text_of(member.child_by_field_name("object"))
    return None


def _plus_one(text: str, offset: int) -> str:
    match = re.fullmatch(r"\s*(.+?)\s*-\s*(\d+)\s*", text)
    if match and int(match.group(2)) == offset:
        return match.group(1)
    try:
        value = float(text)
    except ValueError:
        return f"({text}) + {offset}"
    return str(int(value + offset)) if (value + offset).is_integer() else str(value + offset)


def _ternary_shape(module: SourceModule, node: Any, name: str) -> UpdateShape | None:
    condition = unwrap_parens(node.child_by_field_name("condition"))
    consequence = unwrap_parens(node.child_by_field_name("consequence"))
    alternative = unwrap_parens(node.child_by_field_name("alternative"))
    if condition is None or consequence is None or alternative is None:
        return None

    if _is_ref(module, condition, name) and consequence.type in ("false", "true"):
        return UpdateShape("toggle")

    step = _increment(module, consequence, name)
    reset_on_true = False
    if step is None:
        step = _increment(module, alternative, name)
        reset_on_true = True
    if step is None:
        return None

    length_of = _length_object(module, condition)
    if length_of is not None:
        return UpdateShape("periodic", step=step, length_of=length_of)

    if condition.type != "binary_expression":
        return UpdateShape("increment", step=step)
    operator = operator_of(condition)
    left = condition.child_by_field_name("left")
    right = condition.child_by_field_name("right")
    if _is_ref(module, left, name):
        bound = module.text_of(unwrap_parens(right))
    elif _is_ref(module, right, name):
        bound = module.text_of(unwrap_parens(left))
        operator = {"<": ">", ">": "<", "<=": ">=", ">=": "<="}.get(operator, operator)
    else:
        return UpdateShape("increment", step=step)

    inclusive_ops = (">=", "===", "==") if reset_on_true else ("<",)
    offset = 1 if operator in inclusive_ops else 2
    return UpdateShape("periodic", step=step, modulus=_plus_one(bound, offset))


def update_shape(module: SourceModule, expression: Any, name: str) -> UpdateShape:
    """Describe what a setter argument does to the state `name`."""
    node = unwrap_parens(expression)
    if node is None:
        return UpdateShape("unknown")
    text = module.text_of(node)

    if node.type in ("true", "false", "number", "string", "null", "undefined"):
        return UpdateShape("literal", value=text)
    if node.type == "unary_expression" and operator_of(node) == "!":
        if _is_ref(module, node.named_children[0], name):
            return UpdateShape("toggle")
    if node.type == "unary_expression" and operator_of(node) == "-":
        if node.named_children and node.named_children[0].type == "number":
            return UpdateShape("literal", value=text)

    step = _increment(module, node, name)
    if step is not None:
        return UpdateShape("increment", step=step)

    if node.type == "binary_expression" and operator_of(node) == "%":
        inner_step = _increment(module, node.child_by_field_name("left"), name)
        if inner_step is not None:
            bound = node.child_by_field_name("right")
            length_of = _length_object(module, bound)
            return UpdateShape(
                "periodic",
                step=inner_step,
                modulus=module.text_of(unwrap_parens(bound)),
                length_of=length_of,
            )

    if node.type == "ternary_expression":
        shape = _ternary_shape(module, node, name)
        if shape is not None:
            return shape

    if node.type == "array" or (
        node.type == "new_expression" and re.match(r"new\s+(Map|Set)\b", text)
    ):
        return UpdateShape("collection")
    if node.type == "call_expression":
        function = node.child_by_field_name("function")
        if function is not None and function.type == "member_expression":
            prop = function.child_by_field_name("property")
            if prop is not None and module.text_of(prop) in COLLECTION_METHODS:
                if _mentions(module, function.child_by_field_name("object"), name):
                    return UpdateShape("collection")

    if _mentions(module, node, name) and PHYSICS_WORDS.search(text):
        return UpdateShape("positional")
    if node.type == "object" and _mentions(module, node, name):
        return UpdateShape("positional" if PHYSICS_WORDS.search(text) else "unknown")

    return UpdateShape("unknown")


def _role_from_initial(module: SourceModule, node: Any | None) -> StateRole:
    node = unwrap_parens(node)
    if node is None:
        return StateRole.UNCLASSIFIABLE
    text = module.text_of(node)
    if node.type in ("true", "false"):
        return StateRole.TOGGLE
    if node.type == "number" or (node.type == "unary_expression" and text.startswith("-")):
        return StateRole.COUNTER
    if node.type == "array" or re.match(r"(new\s+(Map|Set)\b|Array\.from\b)", text):
        return StateRole.COLLECTION
    if node.type == "object" and re.search(r"\bx\s*:", text) and re.search(r"\by\s*:", text):
        return StateRole.POSITIONAL_COORDINATE
    return StateRole.UNCLASSIFIABLE


def _updater(call: Any) -> tuple[Any, str | None]:
    """Split a setter argument into (expression, parameter name).

    `setX(prev => prev + 1)` yields the `prev + 1` node and "prev";
    `setX(x + 1)` yields the argument and None.
    """
    arguments = call_arguments(call)
    if not arguments:
        return None, None
    argument = arguments[0]
    if argument.type not in ("arrow_function", "function_expression", "function"):
        return argument, None

    parameter = argument.child_by_field_name("parameter")
    if parameter is None:
        parameters = argument.child_by_field_name("parameters")
        params = [p for p in parameters.named_children] if parameters is not None else []
        if len(params) != 1:
            return argument, None
        pattern = params[0].child_by_field_name("pattern")
        parameter = pattern if pattern is not None else params[0]

    body = argument.child_by_field_name("body")
    if body is not None and body.type == "statement_block":
        statements = [s for s in body.named_children if s.type != "comment"]
        if len(statements) == 1 and statements[0].type == "return_statement":
            returned = statements[0].named_children
            body = returned[0] if returned else None
        else:
            return argument, None
    return body, parameter.text.decode("utf-8") if parameter is not None else None


def function_name(node: Any) -> str | None:
    """Name a function node gets from its declaration or declarator."""
    name = node.child_by_field_name("name")
    if name is not None and node.type == "function_declaration":
        return name.text.decode("utf-8")
    parent = node.parent
    # useCallback(() => ..., deps)
    if parent is not None and parent.type == "arguments":
        call = parent.parent
        if call is not None and call.type == "call_expression":
            parent = call.parent
    if parent is not None and parent.type == "variable_declarator":
        target = parent.child_by_field_name("name")
        if target is not None and target.type == "identifier":
            return target.text.decode("utf-8")
    return None


# =============================================================================
# Collector
# =============================================================================


class BindingCollector:
    """Collects state, effect and handler bindings into a SourceModule."""

    def __init__(self, timing: TimingConfig | None = None) -> None:
        self.timing = timing or TimingConfig()

    def collect(self, module: SourceModule) -> None:
        """Populate module.state_bindings, effect_bindings and handler_bindings."""
        scope = self._build_scope(module)
        module.handler_bindings = self._collect_handlers(module, scope)
        scope.handler_names.update(h.name for h in module.handler_bindings)
        module.state_bindings = self._collect_states(module, scope)
        module.effect_bindings = self._collect_effects(module, scope)

        for binding in module.state_bindings:
            _logger.debug(
                f"State '{binding.name}' inferred as {binding.role.value}"
                + (f" every {binding.interval_ms:g}ms" if binding.interval_ms else "")
            )

    # -- lookup tables --------------------------------------------------------

    def _build_scope(self, module: SourceModule) -> _Scope:
        scope = _Scope()
        for declarator in find_all(module.root, "variable_declarator"):
            name = declarator.child_by_field_name("name")
            value = declarator.child_by_field_name("value")
            if name is None or value is None or name.type != "identifier":
                continue
            number = numeric_value(module, value, scope.constants)
            if number is not None:
                scope.constants[module.text_of(name)] = number

        for call in find_all(module.root, "call_expression"):
            name = hook_name(module, call)
            if name not in TIMER_CALLS:
                continue
            arguments = call_arguments(call)
            if not arguments or arguments[0].type != "identifier":
                continue
            callback = module.text_of(arguments[0])
            delay = arguments[1] if len(arguments) > 1 else None
            if name == "requestAnimationFrame":
                scope.timer_callbacks[callback] = ("frame", None)
            elif name == "setInterval":
                scope.timer_callbacks[callback] = ("interval", delay)
            else:
                owner = enclosing_function(call)
                if owner is not None and function_name(owner) == callback:
                    # setTimeout(tick) inside tick reschedules itself.
                    scope.timer_callbacks[callback] = ("interval", delay)
        return scope

    def _delay_ms(self, module: SourceModule, node: Any, scope: _Scope) -> float:
        if node is None:
            return 0.0
        value = numeric_value(module, node, scope.constants)
        if value is None or value < 0 or math.isnan(value):
            _logger.debug(
                f"Timer delay '{module.text_of(node)}' not constant, "
                f"assuming {self.timing.default_interval_ms:g}ms"
            )
            return float(self.timing.default_interval_ms)
        return value

    # -- handlers -------------------------------------------------------------

    def _collect_handlers(self, module: SourceModule, scope: _Scope) -> list[EventHandlerBinding]:
        referenced: dict[str, list[str]] = {}
        for attribute in find_all(module.root, "jsx_attribute"):
            if not attribute.named_children:
                continue
            attribute_name = module.text_of(attribute.named_children[0])
            if not EVENT_ATTRIBUTE.match(attribute_name):
                continue
            for value in attribute.named_children[1:]:
                for name in identifier_names(module, value):
                    referenced.setdefault(name, []).append(attribute_name)

        handlers: list[EventHandlerBinding] = []
        for node in find_all(module.root, "function_declaration", "variable_declarator"):
            name_node = node.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            name = module.text_of(name_node)
            if name not in referenced and not HANDLER_NAME.match(name):
                continue
            if node.type == "function_declaration":
                kind = "function"
            else:
                value = unwrap_parens(node.child_by_field_name("value"))
                if value is None:
                    continue
                if value.type in ("arrow_function", "function_expression", "function"):
                    kind = "arrow"
                elif value.type == "call_expression" and hook_name(module, value) == "useCallback":
                    kind = "callback"
                else:
                    continue
            statement = enclosing_statement(node)
            handlers.append(
                EventHandlerBinding(
                    name=name,
                    kind=kind,
                    span=(statement.start_byte, statement.end_byte),
                    attributes=referenced.get(name, []),
                )
            )
        return handlers

    # -- states ---------------------------------------------------------------

    def _collect_states(self, module: SourceModule, scope: _Scope) -> list[StateBinding]:
        bindings: list[StateBinding] = []
        for call in find_all(module.root, "call_expression"):
            if hook_name(module, call) != "useState":
                continue
            declarator = call.parent
            if declarator is None or declarator.type != "variable_declarator":
                continue
            pattern = declarator.child_by_field_name("name")
            if pattern is None or pattern.type != "array_pattern":
                continue
            elements = [e for e in pattern.named_children if e.type == "identifier"]
            if not elements or pattern.named_children[0].type != "identifier":
                continue

            arguments = call_arguments(call)
            initial = arguments[0] if arguments else None
            owner = enclosing_function(call)
            body = function_body(owner)
            statement = enclosing_statement(declarator)

            binding = StateBinding(
                name=module.text_of(elements[0]),
                setter=module.text_of(elements[1]) if len(elements) > 1 else None,
                initial_value_expression=module.text_of(initial) if initial is not None else None,
                initializer_is_lazy=initial is not None
                and initial.type in ("arrow_function", "function_expression", "function"),
                declaration=(statement.start_byte, statement.end_byte),
                scope=(body.start_byte, body.end_byte) if body is not None else (0, 0),
            )
            self._infer_role(module, binding, initial, body, scope)
            bindings.append(binding)
        return bindings

    def _setter_calls(self, module: SourceModule, binding: StateBinding, body: Any) -> list[Any]:
        if binding.setter is None:
            return []
        root = body if body is not None else module.root
        calls = []
        for call in find_all(root, "call_expression"):
            function = call.child_by_field_name("function")
            if function is not None and function.type == "identifier" and (
                module.text_of(function) == binding.setter
            ):
                calls.append(call)
        return calls

    def _site_context(
        self, module: SourceModule, call: Any, body: Any, binding: StateBinding, scope: _Scope
    ) -> SiteContext:
        timer: tuple[str, Any] | None = None
        effect = None
        named: list[str] = []

        for parent in ancestors(call):
            if body is not None and parent.start_byte == body.start_byte and (
                parent.end_byte == body.end_byte
            ):
                break
            if parent.type == "jsx_attribute" and parent.named_children:
                if EVENT_ATTRIBUTE.match(module.text_of(parent.named_children[0])):
                    return SiteContext("event")
            if parent.type in FUNCTION_TYPES:
                name = function_name(parent)
                if name is not None:
                    named.append(name)
            if parent.type != "call_expression":
                continue
            name = hook_name(module, parent)
            arguments = call_arguments(parent)
            inside_callback = bool(arguments) and is_within(call, arguments[0])
            if timer is None and name in TIMER_CALLS and inside_callback:
                timer = (name, arguments[1] if len(arguments) > 1 else None)
            if name in EFFECT_HOOKS:
                effect = parent
                break

        for name in named:
            if timer is None and name in scope.timer_callbacks:
                kind, delay = scope.timer_callbacks[name]
                timer = ("requestAnimationFrame" if kind == "frame" else "setInterval", delay)

        if timer is not None:
            kind, delay = timer
            if kind == "requestAnimationFrame":
                return SiteContext("frame", delay=1000 / self.timing.frame_loop_hz, effect=effect)
            ms = self._delay_ms(module, delay, scope)
            if kind == "setInterval":
                return SiteContext("interval", delay=ms, effect=effect)
            if effect is not None and self._effect_depends_on(module, effect, binding.name):
                return SiteContext("interval", delay=ms, effect=effect)
            return SiteContext("timeout", delay=ms, effect=effect)

        if any(name in scope.handler_names for name in named):
            return SiteContext("event")
        if effect is not None:
            return SiteContext("effect", effect=effect)
        return SiteContext("other")

    def _effect_depends_on(self, module: SourceModule, effect: Any, name: str) -> bool:
        arguments = call_arguments(effect)
        if len(arguments) < 2 or arguments[1].type != "array":
            return False
        return name in identifier_names(module, arguments[1])

    def _infer_role(
        self,
        module: SourceModule,
        binding: StateBinding,
        initial: Any | None,
        body: Any,
        scope: _Scope,
    ) -> None:
        sites: list[tuple[UpdateShape, SiteContext, Any]] = []
        for call in self._setter_calls(module, binding, body):
            binding.update_sites.append(module.text_of(call))
            expression, parameter = _updater(call)
            shape = update_shape(module, expression, parameter or binding.name)
            context = self._site_context(module, call, body, binding, scope)
            sites.append((shape, context, call))

        initial_role = _role_from_initial(module, initial)
        periodic = [s for s in sites if s[1].kind in ("interval", "frame")]
        one_shots = [s for s in sites if s[1].kind == "timeout" and s[0].kind == "literal"]
        mounts = [s for s in sites if s[1].kind == "effect"]
        events = [s for s in sites if s[1].kind == "event"]
        binding.interaction_driven = bool(events)

        if periodic:
            shapes = [s for s in periodic if s[0].kind != "literal"] or periodic
            shape, context, _ = shapes[0]
            binding.interval_ms = context.delay
            binding.frame_loop = context.kind == "frame"
            self._apply_shape(binding, shape, initial_role)
            if binding.role is StateRole.UNCLASSIFIABLE:
                binding.interval_ms = None
            return

        if one_shots:
            binding.schedule = sorted(
                (context.delay or 0.0, shape.value or "undefined")
                for shape, context, _ in one_shots
            )
            values = {value for _, value in binding.schedule}
            binding.role = (
                StateRole.TOGGLE if values <= {"true", "false"} else initial_role
                if initial_role is not StateRole.UNCLASSIFIABLE else StateRole.COUNTER
            )
            return

        for shape, context, call in mounts:
            lifted = self._lift_mount_value(module, binding, call, context.effect)
            if lifted is not None and (
                initial_role is StateRole.COLLECTION or shape.kind == "collection"
            ):
                binding.role = StateRole.COLLECTION
                binding.collection_expression = lifted
                return

        if events:
            shapes = [s for s in events if s[0].kind not in ("literal", "unknown")]
            if shapes:
                self._apply_shape(binding, shapes[0][0], initial_role)
                return
            if binding.name in NAVIGATION_STATE_NAMES:
                match = re.search(rf"(\w+)\[\s*{re.escape(binding.name)}\s*\]", module.text)
                binding.role = StateRole.SELECTION_INDEX
                binding.length_of = match.group(1) if match else None
                binding.step = "1"
                return

        if sites:
            shapes = [s for s in sites if s[0].kind not in ("literal", "unknown")]
            if shapes:
                self._apply_shape(binding, shapes[0][0], initial_role)
                return
            # Only ever set to literals: the initial literal decides.
            literal_only = all(s[0].kind == "literal" for s in sites)
            binding.role = initial_role if literal_only else StateRole.UNCLASSIFIABLE
            return

        binding.role = initial_role

    def _apply_shape(self, binding: StateBinding, shape: UpdateShape, initial: StateRole) -> None:
        binding.step = shape.step
        binding.modulus = shape.modulus
        binding.length_of = shape.length_of
        if shape.kind == "increment":
            binding.role = StateRole.COUNTER
        elif shape.kind == "periodic":
            binding.role = (
                StateRole.SELECTION_INDEX if shape.length_of is not None else StateRole.COUNTER
            )
        elif shape.kind == "toggle":
            binding.role = StateRole.TOGGLE
        elif shape.kind == "collection":
            binding.role = StateRole.COLLECTION
        elif shape.kind == "positional":
            binding.role = (
                StateRole.COLLECTION
                if initial is StateRole.COLLECTION
                else StateRole.POSITIONAL_COORDINATE
            )
        else:
            binding.role = StateRole.UNCLASSIFIABLE

    def _lift_mount_value(
        self, module: SourceModule, binding: StateBinding, call: Any, effect: Any
    ) -> str | None:
        """Rebuild the value a mount-only effect assigns, as one expression.

        Declarations and loops that precede the setter call inside the effect
        are kept; timers, listeners and other setter calls are dropped.
        """
        if effect is None:
            return None
        arguments = call_arguments(effect)
        if not arguments:
            return None
        if len(arguments) > 1 and not (
            arguments[1].type == "array" and not arguments[1].named_children
        ):
            return None
        expression, parameter = _updater(call)
        if expression is None or parameter is not None:
            return None

        callback_body = arguments[0].child_by_field_name("body")
        if callback_body is None:
            return None
        if callback_body.type != "statement_block":
            return module.text_of(expression)

        statement = enclosing_statement(call)
        if statement.parent is None or statement.parent.start_byte != callback_body.start_byte:
            return None
        if statement.type != "expression_statement":
            return None

        kept = []
        for sibling in callback_body.named_children:
            if sibling.start_byte >= statement.start_byte:
                break
            if sibling.type in ("return_statement", "comment", "expression_statement"):
                continue
            text = module.text_of(sibling)
            if re.search(r"\b(setInterval|setTimeout|requestAnimationFrame|addEventListener)\b",
                         text):
                continue
            kept.append(text)

        value = module.text_of(expression)
        if not kept:
            return value
        lines = "\n".join(kept)
        return f"(() => {{\n{lines}\nreturn {value};\n}})()"

    # -- effects --------------------------------------------------------------

    def _collect_effects(self, module: SourceModule, scope: _Scope) -> list[EffectBinding]:
        setters = {b.setter: b.name for b in module.state_bindings if b.setter}
        effects: list[EffectBinding] = []
        for call in find_all(module.root, "call_expression"):
            if hook_name(module, call) not in EFFECT_HOOKS:
                continue
            arguments = call_arguments(call)
            if not arguments:
                continue
            callback = arguments[0]
            deps = arguments[1] if len(arguments) > 1 else None

            timers = [
                c
                for c in find_all(callback, "call_expression")
                if hook_name(module, c) in ("setInterval", "requestAnimationFrame")
            ]
            if timers:
                trigger = TriggerKind.INTERVAL
            elif deps is not None and deps.type == "array" and not deps.named_children:
                trigger = TriggerKind.MOUNT_ONLY
            else:
                trigger = TriggerKind.DEPENDENCY_TRACKED

            interval = None
            for timer in timers:
                timer_arguments = call_arguments(timer)
                if hook_name(module, timer) == "requestAnimationFrame":
                    interval = 1000 / self.timing.frame_loop_hz
                elif len(timer_arguments) > 1:
                    interval = self._delay_ms(module, timer_arguments[1], scope)
                break

            names = set(identifier_names(module, callback))
            listeners = []
            for listener in find_all(callback, "call_expression"):
                if hook_name(module, listener) != "addEventListener":
                    continue
                listener_arguments = call_arguments(listener)
                if listener_arguments and listener_arguments[0].type == "string":
                    listeners.append(module.text_of(listener_arguments[0])[1:-1])

            statement = enclosing_statement(call)
            effects.append(
                EffectBinding(
                    trigger=trigger,
                    body=module.text_of(callback),
                    states=sorted(state for setter, state in setters.items() if setter in names),
                    interval_ms=interval,
                    listeners=listeners,
                    span=(statement.start_byte, statement.end_byte),
                )
            )
        return effects
