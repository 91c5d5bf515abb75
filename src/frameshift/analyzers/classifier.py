"""Source classification.

Decides how aggressively a module is rewritten. The decision is an explicit,
priority-ordered list of rules; the first rule that matches wins and the
result names it, so each tier can be tested on its own.

Rules (in order):
- bare-fragment: JSX with no module structure
- multiple-components: more than one top-level component
- type-declarations: interface/type/enum declarations
- length-threshold: long modules (content-heavy showcase or complete)
- function-declaration: a single function component
- arrow-const: a single arrow-const component
- fallback: anything else is treated as a complete module
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from frameshift.analyzers.ast_parser import (
    collect_imports,
    find_all,
    hook_name,
    is_component_name,
    unwrap_parens,
)
from frameshift.config import ClassifierConfig
from frameshift.models import DetectedPattern, SourceModule

JSX_TYPES = ("jsx_element", "jsx_self_closing_element", "jsx_fragment")
TYPE_DECLARATION_TYPES = ("interface_declaration", "type_alias_declaration", "enum_declaration")
COMPONENT_TYPE_ANNOTATION = re.compile(r"^\s*:\s*(React\.)?(FC|FunctionComponent|VFC)\b")

NAVIGATION_STATE_NAMES = frozenset(
    {"currentSlide", "currentScene", "currentPage", "activeSlide", "sceneIndex", "slideIndex"}
)
_SHOWCASE_STATE = re.compile(
    r"\[\s*(" + "|".join(sorted(NAVIGATION_STATE_NAMES)) + r")\s*,\s*\w+\s*\]\s*=\s*"
    r"(React\.)?useState"
)
_SHOWCASE_COLLECTION = re.compile(r"\b(const|let|var)\s+(slides|scenes|sections|pages)\s*[:=]")


@dataclass
class ComponentDeclaration:
    """A top-level component-shaped declaration.

    Attributes:
        name: Declared identifier
        kind: "function", "arrow", "class" or "call" (memo/forwardRef wrappers)
        exported: Declared with `export`
        typed_component: Annotated as React.FC / FunctionComponent
        node: Declaration node (function_declaration, variable_declarator, ...)
        statement: Top-level statement holding the declaration
    """

    name: str
    kind: str
    exported: bool
    typed_component: bool
    node: Any
    statement: Any


@dataclass
class ModuleShape:
    """Structural facts about a module, as the classifier and exporter see them."""

    import_count: int = 0
    components: list[ComponentDeclaration] = field(default_factory=list)
    declared: set[str] = field(default_factory=set)
    type_declarations: int = 0
    default_exports: list[Any] = field(default_factory=list)
    fragments: list[Any] = field(default_factory=list)
    has_functions: bool = False
    length: int = 0

    @property
    def has_structure(self) -> bool:
        """Return True if the module has imports, exports or functions."""
        return bool(
            self.import_count
            or self.components
            or self.default_exports
            or self.has_functions
        )


@dataclass
class Classification:
    """Tagged result of classification.

    Attributes:
        pattern: Detected pattern
        rule: Name of the rule that fired
        reasons: Facts that made the rule fire
    """

    pattern: DetectedPattern
    rule: str
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"pattern": self.pattern.value, "rule": self.rule, "reasons": self.reasons}


# =============================================================================
# Shape inspection
# =============================================================================


def _component_kind(module: SourceModule, value: Any) -> str | None:
    value = unwrap_parens(value)
    if value is None:
        return None
    if value.type == "arrow_function":
        return "arrow"
    if value.type in ("function_expression", "function"):
        return "function"
    if value.type == "call_expression" and hook_name(module, value) in ("memo", "forwardRef"):
        return "call"
    return None


def is_default_specifier(module: SourceModule, specifier: Any) -> bool:
    """Return True for `x as default` and for a bare `default` re-export."""
    if specifier.type != "export_specifier":
        return False
    alias = specifier.child_by_field_name("alias")
    if alias is not None:
        return module.text_of(alias) == "default"
    name = specifier.child_by_field_name("name")
    return module.text_of(name if name is not None else specifier).strip() == "default"


def _inspect_statement(module: SourceModule, statement: Any, shape: ModuleShape) -> None:
    exported = statement.type == "export_statement"
    declaration = statement
    if exported:
        is_default = any(not c.is_named and c.type == "default" for c in statement.children)
        if is_default:
            shape.default_exports.append(statement)
        else:
            specifiers = [
                specifier
                for clause in statement.named_children
                if clause.type == "export_clause"
                for specifier in clause.named_children
            ]
            if any(is_default_specifier(module, s) for s in specifiers):
                shape.default_exports.append(statement)
        declaration = statement.child_by_field_name("declaration")
        if declaration is None:
            value = statement.child_by_field_name("value")
            if value is not None and find_all(value, *JSX_TYPES):
                shape.has_functions = True
            return

    if declaration.type in TYPE_DECLARATION_TYPES:
        shape.type_declarations += 1
        return

    if declaration.type in ("function_declaration", "generator_function_declaration"):
        name_node = declaration.child_by_field_name("name")
        shape.has_functions = True
        if name_node is None:
            return
        name = module.text_of(name_node)
        shape.declared.add(name)
        if is_component_name(name):
            shape.components.append(
                ComponentDeclaration(name, "function", exported, False, declaration, statement)
            )
        return

    if declaration.type in ("class_declaration", "abstract_class_declaration"):
        name_node = declaration.child_by_field_name("name")
        if name_node is None:
            return
        name = module.text_of(name_node)
        shape.declared.add(name)
        if is_component_name(name) and "Component" in module.text_of(declaration).split("{")[0]:
            shape.components.append(
                ComponentDeclaration(name, "class", exported, False, declaration, statement)
            )
        return

    if declaration.type in ("lexical_declaration", "variable_declaration"):
        for declarator in declaration.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            name = module.text_of(name_node)
            shape.declared.add(name)
            kind = _component_kind(module, declarator.child_by_field_name("value"))
            if kind is not None:
                shape.has_functions = True
            if kind is not None and is_component_name(name):
                annotation = declarator.child_by_field_name("type")
                typed = annotation is not None and bool(
                    COMPONENT_TYPE_ANNOTATION.match(module.text_of(annotation))
                )
                shape.components.append(
                    ComponentDeclaration(name, kind, exported, typed, declarator, statement)
                )
        return

    if declaration.type == "expression_statement" and not exported:
        expression = unwrap_parens(declaration.named_children[0]) if (
            declaration.named_children
        ) else None
        if expression is not None and expression.type in JSX_TYPES:
            shape.fragments.append(declaration)


def inspect_shape(module: SourceModule) -> ModuleShape:
    """Collect the structural facts of a module's top level."""
    shape = ModuleShape(
        import_count=len(collect_imports(module)),
        length=len(module.text),
    )
    for statement in module.root.named_children:
        if statement.type in ("import_statement", "comment"):
            continue
        _inspect_statement(module, statement, shape)
    return shape


def has_showcase_markers(text: str) -> bool:
    """Return True if the source navigates through slides or scenes."""
    return bool(_SHOWCASE_STATE.search(text) or _SHOWCASE_COLLECTION.search(text))


# =============================================================================
# Rules
# =============================================================================

Rule = Callable[[ModuleShape, SourceModule, ClassifierConfig], Classification | None]


def rule_bare_fragment(
    shape: ModuleShape, module: SourceModule, config: ClassifierConfig
) -> Classification | None:
    """JSX with no import, export or declaration structure."""
    if shape.fragments and not shape.has_structure:
        return Classification(
            DetectedPattern.SIMPLE_FRAGMENT,
            "bare-fragment",
            [f"{len(shape.fragments)} top-level JSX expression(s), no module structure"],
        )
    return None


def rule_multiple_components(
    shape: ModuleShape, module: SourceModule, config: ClassifierConfig
) -> Classification | None:
    """More than one top-level component."""
    if len(shape.components) > 1:
        names = ", ".join(c.name for c in shape.components)
        return Classification(
            DetectedPattern.COMPLETE_MULTI_COMPONENT_MODULE,
            "multiple-components",
            [f"components: {names}"],
        )
    return None


def rule_type_declarations(
    shape: ModuleShape, module: SourceModule, config: ClassifierConfig
) -> Classification | None:
    """Interface, type alias or enum declarations."""
    if shape.type_declarations:
        return Classification(
            DetectedPattern.COMPLETE_MULTI_COMPONENT_MODULE,
            "type-declarations",
            [f"{shape.type_declarations} type declaration(s)"],
        )
    return None


def rule_length_threshold(
    shape: ModuleShape, module: SourceModule, config: ClassifierConfig
) -> Classification | None:
    """Long modules, with a lower bar for import-heavy ones."""
    threshold = config.length_threshold
    reasons = []
    if shape.length > threshold:
        reasons.append(f"length {shape.length} > {threshold}")
    elif shape.length > threshold * 0.75 and shape.import_count >= config.heavy_import_count:
        reasons.append(
            f"length {shape.length} > {int(threshold * 0.75)} "
            f"with {shape.import_count} imports"
        )
    else:
        return None

    if has_showcase_markers(module.text):
        reasons.append("slide/scene navigation markers")
        return Classification(DetectedPattern.CONTENT_HEAVY_SHOWCASE, "length-threshold", reasons)
    return Classification(
        DetectedPattern.COMPLETE_MULTI_COMPONENT_MODULE, "length-threshold", reasons
    )


def rule_function_declaration(
    shape: ModuleShape, module: SourceModule, config: ClassifierConfig
) -> Classification | None:
    """A single function-declaration component."""
    if len(shape.components) == 1 and shape.components[0].kind in ("function", "class"):
        return Classification(
            DetectedPattern.SIMPLE_FUNCTION_COMPONENT,
            "function-declaration",
            [f"component {shape.components[0].name}"],
        )
    return None


def rule_arrow_const(
    shape: ModuleShape, module: SourceModule, config: ClassifierConfig
) -> Classification | None:
    """A single arrow-const component."""
    if len(shape.components) == 1 and shape.components[0].kind in ("arrow", "call"):
        return Classification(
            DetectedPattern.ARROW_CONST_COMPONENT,
            "arrow-const",
            [f"component {shape.components[0].name}"],
        )
    return None


def rule_fallback(
    shape: ModuleShape, module: SourceModule, config: ClassifierConfig
) -> Classification | None:
    """Anything else gets minimal intervention."""
    return Classification(
        DetectedPattern.COMPLETE_MULTI_COMPONENT_MODULE,
        "fallback",
        ["no single component shape recognised"],
    )


RULES: list[tuple[str, Rule]] = [
    ("bare-fragment", rule_bare_fragment),
    ("multiple-components", rule_multiple_components),
    ("type-declarations", rule_type_declarations),
    ("length-threshold", rule_length_threshold),
    ("function-declaration", rule_function_declaration),
    ("arrow-const", rule_arrow_const),
    ("fallback", rule_fallback),
]


class SourceClassifier:
    """Applies the rule list to a parsed module."""

    def __init__(self, config: ClassifierConfig | None = None) -> None:
        self.config = config or ClassifierConfig()

    def classify(self, module: SourceModule) -> Classification:
        """Classify a module and record the pattern on it.

        Args:
            module: Parsed module

        Returns:
            Classification from the first matching rule
        """
        shape = inspect_shape(module)
        for _, rule in RULES:
            result = rule(shape, module, self.config)
            if result is not None:
                module.detected_pattern = result.pattern
                return result
        raise AssertionError("fallback rule always matches")
