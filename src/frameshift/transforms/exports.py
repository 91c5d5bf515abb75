"""Export normalization.

A state machine over the module's export shape. Every path ends in
DEFAULT_EXPORTED: exactly one default export that resolves to a component
identifier.

    BARE_FRAGMENT ──────────────────────────────┐
    NAMED_ARROW_CONST ─> IMPLICIT_FUNCTION ─────┤
    COMPLETE_MULTI_COMPONENT_MODULE ────────────┼─> DEFAULT_EXPORTED
    NO_EXPORT ──────────────────────────────────┘
"""

import re
import textwrap
from collections import defaultdict
from enum import Enum
from typing import Any

from frameshift.analyzers.ast_parser import find_all, statement_span, unwrap_parens
from frameshift.analyzers.classifier import (
    JSX_TYPES,
    ModuleShape,
    inspect_shape,
    is_default_specifier,
)
from frameshift.config import FrameshiftConfig
from frameshift.models import DetectedPattern, NoticeKind, SourceModule, TextEdit
from frameshift.transforms.base import ConversionError, TransformStage
from frameshift.transforms.imports import ensure_default_import, ensure_named_imports
from frameshift.utils.logging import get_logger

_logger = get_logger()

FC_TYPE_ARGUMENT = re.compile(
    r"^\s*:\s*(?:React\.)?(?:FC|FunctionComponent|VFC)\s*<(.+)>\s*$", re.S
)
MAX_TRANSITIONS = 8


class ExportState(Enum):
    """Export shape of a module."""

    NO_EXPORT = "NoExport"
    IMPLICIT_FUNCTION_DECLARATION = "ImplicitFunctionDeclaration"
    NAMED_ARROW_CONST = "NamedArrowConst"
    COMPLETE_MULTI_COMPONENT_MODULE = "CompleteMultiComponentModule"
    BARE_FRAGMENT = "BareFragment"
    DEFAULT_EXPORTED = "DefaultExported"


def _is_default_export(statement: Any) -> bool:
    return statement.type == "export_statement" and any(
        not c.is_named and c.type == "default" for c in statement.children
    )


def default_export_name(module: SourceModule) -> str | None:
    """Return the identifier behind the module's default export, if any."""
    for statement in module.root.named_children:
        if statement.type != "export_statement":
            continue
        if _is_default_export(statement):
            declaration = statement.child_by_field_name("declaration")
            if declaration is not None:
                name = declaration.child_by_field_name("name")
                return module.text_of(name) if name is not None else None
            value = unwrap_parens(statement.child_by_field_name("value"))
            if value is not None and value.type == "identifier":
                return module.text_of(value)
            return None
        for clause in statement.named_children:
            if clause.type != "export_clause":
                continue
            for specifier in clause.named_children:
                if not is_default_specifier(module, specifier):
                    continue
                # `export { default } from ...` has no local component
                if specifier.child_by_field_name("alias") is None:
                    return None
                return module.text_of(specifier.child_by_field_name("name"))
    return None


def has_default_export(module: SourceModule) -> bool:
    """Return True if the module declares or re-exports a default export."""
    return bool(inspect_shape(module).default_exports)


def _export_specifiers(statement: Any) -> list[Any]:
    return [
        specifier
        for clause in statement.named_children
        if clause.type == "export_clause"
        for specifier in clause.named_children
        if specifier.type == "export_specifier"
    ]


def _declared_export_names(module: SourceModule, declaration: Any) -> list[str]:
    """Names bound by an exported declaration that cannot be declared twice."""
    if declaration.type in ("lexical_declaration", "variable_declaration"):
        names = []
        for declarator in declaration.named_children:
            target = declarator.child_by_field_name("name")
            if declarator.type == "variable_declarator" and target is not None:
                if target.type == "identifier":
                    names.append(module.text_of(target))
        return names
    if declaration.type in ("function_declaration", "class_declaration", "type_alias_declaration"):
        name = declaration.child_by_field_name("name")
        return [module.text_of(name)] if name is not None else []
    return []


def _indent_jsx(module: SourceModule, expression: Any, prefix: str) -> str:
    """Return JSX text re-indented under `prefix`, keeping its relative layout."""
    text = module.text_of(expression)
    if "`" in text:
        # template literal content is whitespace-sensitive
        return prefix + text
    block = textwrap.dedent(" " * expression.start_point[1] + text)
    return textwrap.indent(block, prefix)


def _unique_name(taken: set[str], name: str) -> str:
    if name not in taken:
        return name
    candidate = f"{name}Root"
    index = 2
    while candidate in taken:
        candidate = f"{name}Root{index}"
        index += 1
    return candidate


class ExportNormalizer(TransformStage):
    """Drives a module to exactly one default-exported root component."""

    name = "exports"

    def __init__(self, config: FrameshiftConfig | None = None) -> None:
        self.config = config or FrameshiftConfig()
        self.transitions: list[ExportState] = []
        self._handlers = {
            ExportState.NO_EXPORT: self._generate_component,
            ExportState.IMPLICIT_FUNCTION_DECLARATION: self._export_function,
            ExportState.NAMED_ARROW_CONST: self._convert_arrow,
            ExportState.COMPLETE_MULTI_COMPONENT_MODULE: self._export_root,
            ExportState.BARE_FRAGMENT: self._wrap_fragment,
        }

    def apply(self, module: SourceModule) -> None:
        """Run the state machine until the module has one default export.

        Raises:
            ConversionError: If the machine fails to reach DEFAULT_EXPORTED
        """
        self._dedupe_defaults(module)
        self._dedupe_named(module)
        state = self.initial_state(module)
        self.transitions = [state]
        while state is not ExportState.DEFAULT_EXPORTED:
            if len(self.transitions) > MAX_TRANSITIONS:
                raise ConversionError(
                    f"export normalization did not settle: {[s.value for s in self.transitions]}",
                    stage=self.name,
                )
            state = self._handlers[state](module)
            self.transitions.append(state)

        _logger.debug(
            "Export transitions: " + " -> ".join(s.value for s in self.transitions)
        )

    def initial_state(self, module: SourceModule) -> ExportState:
        """Classify the module's current export shape."""
        shape = inspect_shape(module)
        if shape.default_exports:
            self._name_anonymous_default(module, shape)
            return ExportState.DEFAULT_EXPORTED
        return self._shape_state(module, shape)

    def _shape_state(self, module: SourceModule, shape: ModuleShape) -> ExportState:
        if shape.default_exports:
            return ExportState.DEFAULT_EXPORTED
        if module.detected_pattern is DetectedPattern.SIMPLE_FRAGMENT or (
            shape.fragments and not shape.components
        ):
            return ExportState.BARE_FRAGMENT
        if module.detected_pattern is not None and module.detected_pattern.is_complete:
            return ExportState.COMPLETE_MULTI_COMPONENT_MODULE
        if len(shape.components) == 1:
            if shape.components[0].kind in ("function", "class"):
                return ExportState.IMPLICIT_FUNCTION_DECLARATION
            return ExportState.NAMED_ARROW_CONST
        if shape.components:
            return ExportState.COMPLETE_MULTI_COMPONENT_MODULE
        return ExportState.NO_EXPORT

    # -- default export fix-ups -----------------------------------------------

    def _dedupe_defaults(self, module: SourceModule) -> None:
        """Keep the first default export, demote the rest."""
        shape = inspect_shape(module)
        edits = []
        for statement in shape.default_exports[1:]:
            if _is_default_export(statement):
                declaration = statement.child_by_field_name("declaration")
                if declaration is not None:
                    edits.append(TextEdit(statement.start_byte, declaration.start_byte, ""))
                else:
                    start, end = statement_span(module, statement)
                    edits.append(TextEdit(start, end, ""))
                continue
            for clause in statement.named_children:
                if clause.type != "export_clause":
                    continue
                kept = [
                    module.text_of(s)
                    for s in clause.named_children
                    if s.type == "export_specifier" and not is_default_specifier(module, s)
                ]
                if kept:
                    edits.append(
                        TextEdit(clause.start_byte, clause.end_byte, "{ " + ", ".join(kept) + " }")
                    )
                else:
                    start, end = statement_span(module, statement)
                    edits.append(TextEdit(start, end, ""))
        if edits:
            module.apply_edits(edits)
            _logger.debug(f"Removed {len(edits)} duplicate default export(s)")

    def _dedupe_named(self, module: SourceModule) -> None:
        """Keep the last export of each name.

        Earlier exports lose their `export` keyword, or are deleted when a
        later declaration defines the same name again. Merging declarations
        (interfaces, enums, overload signatures) are left alone.
        """
        occurrences: dict[str, list[tuple[Any, Any]]] = defaultdict(list)
        for statement in module.root.named_children:
            if statement.type != "export_statement" or _is_default_export(statement):
                continue
            declaration = statement.child_by_field_name("declaration")
            if declaration is not None:
                for name in _declared_export_names(module, declaration):
                    occurrences[name].append((statement, declaration))
                continue
            for specifier in _export_specifiers(statement):
                if is_default_specifier(module, specifier):
                    continue
                alias = specifier.child_by_field_name("alias")
                exported = alias if alias is not None else specifier.child_by_field_name("name")
                occurrences[module.text_of(exported)].append((statement, specifier))

        edits: list[TextEdit] = []
        dropped: dict[tuple[int, int], set[int]] = defaultdict(set)
        clauses: dict[tuple[int, int], Any] = {}
        for name, found in occurrences.items():
            if len(found) < 2:
                continue
            for index, (statement, node) in enumerate(found[:-1]):
                if node.type == "export_specifier":
                    key = (statement.start_byte, statement.end_byte)
                    clauses[key] = statement
                    dropped[key].add(node.start_byte)
                    continue
                redeclared = any(n.type != "export_specifier" for _, n in found[index + 1 :])
                if redeclared and len(_declared_export_names(module, node)) == 1:
                    start, end = statement_span(module, statement)
                    edits.append(TextEdit(start, end, ""))
                else:
                    edits.append(TextEdit(statement.start_byte, node.start_byte, ""))
            self.notify(
                module,
                NoticeKind.DUPLICATE_EXPORT,
                f"Export '{name}' appeared {len(found)} times; kept the last one",
                name=name,
                count=len(found),
            )

        for key, statement in clauses.items():
            specifiers = _export_specifiers(statement)
            kept = [module.text_of(s) for s in specifiers if s.start_byte not in dropped[key]]
            if kept:
                clause = specifiers[0].parent
                edits.append(
                    TextEdit(clause.start_byte, clause.end_byte, "{ " + ", ".join(kept) + " }")
                )
            else:
                start, end = statement_span(module, statement)
                edits.append(TextEdit(start, end, ""))

        if edits:
            module.apply_edits(edits)

    def _name_anonymous_default(self, module: SourceModule, shape: ModuleShape) -> None:
        statement = shape.default_exports[0]
        if not _is_default_export(statement):
            return
        name = _unique_name(shape.declared, self.config.output.root_component)

        declaration = statement.child_by_field_name("declaration")
        value = unwrap_parens(statement.child_by_field_name("value"))
        target = declaration if declaration is not None else value
        if target is None:
            return
        if target.type in ("function_declaration", "class_declaration", "identifier"):
            if target.type == "identifier" or target.child_by_field_name("name") is not None:
                return

        if target.type in ("function_expression", "function", "class", "function_declaration"):
            keyword = next(
                (c for c in target.children if not c.is_named and c.type in ("function", "class")),
                None,
            )
            if keyword is not None:
                module.apply_edits([TextEdit(keyword.end_byte, keyword.end_byte, f" {name}")])
                return

        if target.type == "arrow_function":
            function = self._function_from_arrow(module, target, name, None)
            replacement = f"export default {function}"
            module.apply_edits([TextEdit(statement.start_byte, statement.end_byte, replacement)])
            return

        if target.type in JSX_TYPES:
            replacement = (
                f"export default function {name}() {{\n"
                f"  return (\n    {module.text_of(target)}\n  );\n}}"
            )
        else:
            replacement = f"const {name} = {module.text_of(target)};\n\nexport default {name};"
        module.apply_edits([TextEdit(statement.start_byte, statement.end_byte, replacement)])

    def _append_default(self, module: SourceModule, name: str) -> None:
        text = module.text.rstrip("\n")
        module.replace_text(f"{text}\n\nexport default {name};\n")
        _logger.debug(f"Added default export of '{name}'")

    # -- state handlers -------------------------------------------------------

    def _export_function(self, module: SourceModule) -> ExportState:
        shape = inspect_shape(module)
        if shape.default_exports:
            return ExportState.DEFAULT_EXPORTED
        if not shape.components:
            return ExportState.NO_EXPORT
        self._append_default(module, shape.components[0].name)
        return ExportState.DEFAULT_EXPORTED

    def _convert_arrow(self, module: SourceModule) -> ExportState:
        shape = inspect_shape(module)
        if not shape.components:
            return ExportState.NO_EXPORT
        component = shape.components[0]
        declarator = component.node
        value = unwrap_parens(declarator.child_by_field_name("value"))
        declaration = declarator.parent
        single = declaration is not None and len(
            [d for d in declaration.named_children if d.type == "variable_declarator"]
        ) == 1
        if value is None or value.type != "arrow_function" or not single:
            self._append_default(module, component.name)
            return ExportState.DEFAULT_EXPORTED

        annotation = declarator.child_by_field_name("type")
        props = None
        if annotation is not None:
            match = FC_TYPE_ARGUMENT.match(module.text_of(annotation))
            props = match.group(1).strip() if match else None

        function = self._function_from_arrow(module, value, component.name, props)
        prefix = "export " if component.exported else ""
        module.apply_edits(
            [TextEdit(component.statement.start_byte, component.statement.end_byte,
                      prefix + function)]
        )
        _logger.debug(f"Converted arrow component '{component.name}' to a function declaration")
        return ExportState.IMPLICIT_FUNCTION_DECLARATION

    def _function_from_arrow(
        self, module: SourceModule, arrow: Any, name: str, props: str | None
    ) -> str:
        """Render an arrow function as `function name(...) {...}`."""
        is_async = any(not c.is_named and c.type == "async" for c in arrow.children)
        type_parameters = arrow.child_by_field_name("type_parameters")
        return_type = arrow.child_by_field_name("return_type")
        parameters = arrow.child_by_field_name("parameters")
        parameter = arrow.child_by_field_name("parameter")

        if parameters is not None:
            params = module.text_of(parameters)
            first = parameters.named_children[0] if parameters.named_children else None
            if props and first is not None and first.child_by_field_name("type") is None:
                params = (
                    module.slice(parameters.start_byte, first.end_byte)
                    + f": {props}"
                    + module.slice(first.end_byte, parameters.end_byte)
                )
        elif parameter is not None:
            params = f"({module.text_of(parameter)}" + (f": {props})" if props else ")")
        else:
            params = "()"

        body = arrow.child_by_field_name("body")
        if body is None:
            block = "{}"
        elif body.type == "statement_block":
            block = module.text_of(body)
        else:
            block = f"{{\n  return {module.text_of(body)};\n}}"

        head = "async function" if is_async else "function"
        generics = module.text_of(type_parameters) if type_parameters is not None else ""
        returns = module.text_of(return_type) if return_type is not None else ""
        return f"{head} {name}{generics}{params}{returns} {block}"

    def _export_root(self, module: SourceModule) -> ExportState:
        shape = inspect_shape(module)
        if shape.default_exports:
            return ExportState.DEFAULT_EXPORTED
        root = self.pick_root(shape)
        if root is None:
            return ExportState.NO_EXPORT
        self._append_default(module, root)
        return ExportState.DEFAULT_EXPORTED

    def pick_root(self, shape: ModuleShape) -> str | None:
        """Choose the root of a multi-component module.

        Preference: an exported const typed as a React component, then the
        conventional root name when declared, then the last component.
        """
        for component in shape.components:
            if component.exported and component.typed_component:
                return component.name
        for name in (self.config.output.root_component, "App"):
            if name in shape.declared:
                return name
        if shape.components:
            return shape.components[-1].name
        return None

    def _wrap_fragment(self, module: SourceModule) -> ExportState:
        shape = inspect_shape(module)
        if not shape.fragments:
            return ExportState.NO_EXPORT

        name = _unique_name(shape.declared, self.config.output.root_component)
        frame = self.config.output.frame_identifier
        fps = self.config.output.fps_identifier
        bodies = [
            _indent_jsx(module, unwrap_parens(statement.named_children[0]), "      ")
            for statement in shape.fragments
        ]

        used = set()
        for statement in shape.fragments:
            for node in find_all(statement, "identifier"):
                used.add(module.text_of(node))
        needs_frame = frame in used and frame not in shape.declared
        needs_fps = fps in used and fps not in shape.declared

        lines = [f"export default function {name}() {{"]
        if needs_frame:
            lines.append(f"  const {frame} = useCurrentFrame();")
        if needs_fps:
            pattern = "fps" if fps == "fps" else f"fps: {fps}"
            lines.append(f"  const {{ {pattern} }} = useVideoConfig();")
        lines.append("  return (")
        lines.append("    <AbsoluteFill>")
        lines.extend(bodies)
        lines.append("    </AbsoluteFill>")
        lines.append("  );")
        lines.append("}")

        first = shape.fragments[0]
        edits = [TextEdit(first.start_byte, first.end_byte, "\n".join(lines))]
        for statement in shape.fragments[1:]:
            start, end = statement_span(module, statement)
            edits.append(TextEdit(start, end, ""))
        module.apply_edits(edits)

        names = ["AbsoluteFill"]
        if needs_frame:
            names.append("useCurrentFrame")
        if needs_fps:
            names.append("useVideoConfig")
        ensure_default_import(module, "react", "React")
        ensure_named_imports(module, "remotion", names)
        _logger.debug(f"Wrapped {len(bodies)} bare fragment(s) in '{name}'")
        return ExportState.DEFAULT_EXPORTED

    def _generate_component(self, module: SourceModule) -> ExportState:
        shape = inspect_shape(module)
        if shape.fragments:
            return ExportState.BARE_FRAGMENT
        if shape.components:
            return ExportState.COMPLETE_MULTI_COMPONENT_MODULE
        name = _unique_name(shape.declared, self.config.output.root_component)
        text = module.text.rstrip("\n")
        separator = "\n\n" if text else ""
        module.replace_text(
            f"{text}{separator}export default function {name}() {{\n"
            f"  return <AbsoluteFill />;\n}}\n"
        )
        ensure_named_imports(module, "remotion", ["AbsoluteFill"])
        _logger.warning(f"No component found; generated placeholder '{name}'")
        return ExportState.DEFAULT_EXPORTED
