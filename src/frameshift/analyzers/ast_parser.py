"""TSX parsing via tree-sitter.

Every stage reads the module through a tree-sitter TSX tree. The helpers here
cover the queries the stages share: walking, identifier references, import
statements, statement spans and delimiter balance.

NOTE: tree-sitter is a required dependency. No fallback parsing is
implemented - if the grammar cannot be loaded, conversion fails. Run
`frameshift check` to verify dependencies.
"""

import re
from collections.abc import Iterator
from typing import Any

from frameshift.models import ImportSpecifier, SourceModule
from frameshift.utils.logging import get_logger

_logger = get_logger()

LANGUAGE = "tsx"

FUNCTION_TYPES = frozenset(
    {
        "function_declaration",
        "function_expression",
        "function",
        "arrow_function",
        "generator_function_declaration",
        "method_definition",
    }
)

# Nodes whose contents never hold code-level delimiters.
OPAQUE_TYPES = frozenset(
    {
        "string",
        "template_string",
        "comment",
        "jsx_text",
        "regex",
        "html_character_reference",
    }
)

_COMPONENT_NAME = re.compile(r"^[A-Z][A-Za-z0-9_$]*$")
_PAIRS = {"{": "}", "(": ")", "[": "]"}


class ParserUnavailableError(Exception):
    """Raised when the tree-sitter TSX grammar cannot be loaded.

    Run `frameshift check` to verify dependencies.
    """

    def __init__(self, message: str | None = None) -> None:
        self.message = message or (
            "tree-sitter TSX grammar is not available. "
            "Run `frameshift check` to verify dependencies."
        )
        super().__init__(self.message)


class TSXParser:
    """tree-sitter parser for TypeScript + JSX source.

    The grammar is loaded on first use. Each instance owns its own parser, so
    separate conversions never share parser state.
    """

    def __init__(self) -> None:
        self._parser: Any = None
        self._init_error: str | None = None

    def _ensure_initialized(self) -> None:
        """Load the TSX grammar.

        Raises:
            ParserUnavailableError: If the grammar cannot be loaded
        """
        if self._parser is not None:
            return

        if self._init_error:
            raise ParserUnavailableError(self._init_error)

        try:
            from tree_sitter_language_pack import get_parser
        except ImportError as e:
            self._init_error = f"tree-sitter-language-pack not installed: {e}"
            raise ParserUnavailableError(self._init_error) from e

        try:
            self._parser = get_parser(LANGUAGE)
        except Exception as e:
            self._init_error = f"Failed to initialize {LANGUAGE} parser: {e}"
            raise ParserUnavailableError(self._init_error) from e

        _logger.debug(f"Initialized tree-sitter parser for {LANGUAGE}")

    def check_available(self) -> bool:
        """Check if the TSX grammar is available.

        Returns:
            True if tree-sitter is functional, False otherwise
        """
        try:
            self._ensure_initialized()
            return True
        except ParserUnavailableError:
            return False

    def parse(self, source: str | bytes) -> Any:
        """Parse source into a tree-sitter tree.

        Args:
            source: Module text or its UTF-8 bytes

        Returns:
            tree_sitter.Tree

        Raises:
            ParserUnavailableError: If the grammar cannot be loaded
        """
        self._ensure_initialized()
        if isinstance(source, str):
            source = source.encode("utf-8")
        return self._parser.parse(source)


# =============================================================================
# Tree queries
# =============================================================================


def walk(node: Any) -> Iterator[Any]:
    """Yield `node` and all of its descendants in document order."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def find_all(node: Any, *types: str) -> list[Any]:
    """Return every descendant (including `node`) of the given types."""
    wanted = set(types)
    return [n for n in walk(node) if n.type in wanted]


def ancestors(node: Any) -> Iterator[Any]:
    """Yield the parents of `node`, innermost first."""
    current = node.parent
    while current is not None:
        yield current
        current = current.parent


def unwrap_parens(node: Any) -> Any:
    """Strip parenthesized_expression wrappers."""
    while node is not None and node.type == "parenthesized_expression":
        inner = [c for c in node.named_children if c.type != "comment"]
        if not inner:
            break
        node = inner[0]
    return node


def operator_of(node: Any) -> str | None:
    """Return the operator token of a binary/unary/update/assignment node."""
    field_node = node.child_by_field_name("operator")
    if field_node is not None:
        return field_node.type
    for child in node.children:
        if not child.is_named:
            return child.type
    return None


def is_within(node: Any, container: Any) -> bool:
    """Return True if `node` lies inside `container` (inclusive)."""
    return container.start_byte <= node.start_byte and node.end_byte <= container.end_byte


def is_component_name(name: str | None) -> bool:
    """Components start with an uppercase letter."""
    return bool(name and _COMPONENT_NAME.match(name))


def call_name(module: SourceModule, call: Any) -> str | None:
    """Return the callee text of a call_expression, e.g. `useState` or `React.useState`."""
    if call is None or call.type != "call_expression":
        return None
    function = call.child_by_field_name("function")
    if function is None:
        return None
    return module.text_of(function)


def hook_name(module: SourceModule, call: Any) -> str | None:
    """Return the hook a call invokes, ignoring a `React.` prefix."""
    name = call_name(module, call)
    if name is None:
        return None
    return name.split(".")[-1]


def call_arguments(call: Any) -> list[Any]:
    """Return the argument nodes of a call_expression."""
    arguments = call.child_by_field_name("arguments")
    if arguments is None:
        return []
    return [a for a in arguments.named_children if a.type != "comment"]


def enclosing_function(node: Any) -> Any | None:
    """Return the innermost function node containing `node`."""
    for parent in ancestors(node):
        if parent.type in FUNCTION_TYPES:
            return parent
    return None


def function_body(function: Any) -> Any | None:
    """Return the body node of a function."""
    if function is None:
        return None
    return function.child_by_field_name("body")


def enclosing_statement(node: Any) -> Any:
    """Return the statement directly inside a block or program that holds `node`."""
    current = node
    while current.parent is not None and current.parent.type not in (
        "program",
        "statement_block",
        "switch_case",
        "switch_default",
    ):
        current = current.parent
    return current


def identifier_names(module: SourceModule, node: Any) -> list[str]:
    """Return every identifier-like token text under `node`."""
    return [
        module.text_of(n)
        for n in walk(node)
        if n.type
        in (
            "identifier",
            "shorthand_property_identifier",
            "shorthand_property_identifier_pattern",
        )
    ]


def references(module: SourceModule, name: str, exclude: Any | None = None) -> list[Any]:
    """Return identifier nodes named `name`, optionally outside one subtree.

    Property names (`obj.name`) and object keys are not references.
    """
    found = []
    for node in walk(module.root):
        if node.type not in ("identifier", "shorthand_property_identifier"):
            continue
        if exclude is not None and is_within(node, exclude):
            continue
        if module.text_of(node) == name:
            found.append(node)
    return found


def declared_names(module: SourceModule, scope: Any) -> set[str]:
    """Return names declared by variables, parameters and functions in `scope`."""
    names: set[str] = set()
    for node in walk(scope):
        if node.type == "variable_declarator":
            target = node.child_by_field_name("name")
            if target is not None:
                names.update(identifier_names(module, target))
        elif node.type in ("function_declaration", "class_declaration"):
            name = node.child_by_field_name("name")
            if name is not None:
                names.add(module.text_of(name))
        elif node.type in ("required_parameter", "optional_parameter"):
            pattern = node.child_by_field_name("pattern")
            if pattern is not None:
                names.update(identifier_names(module, pattern))
        elif node.type == "arrow_function":
            parameter = node.child_by_field_name("parameter")
            if parameter is not None:
                names.add(module.text_of(parameter))
    return names


def statement_span(module: SourceModule, node: Any) -> tuple[int, int]:
    """Byte span of a statement, widened to whole lines when it owns them.

    Deleting the widened span leaves no blank line behind.
    """
    source = module.source
    start, end = node.start_byte, node.end_byte

    line_start = source.rfind(b"\n", 0, start) + 1
    if source[line_start:start].strip():
        return start, end

    line_end = source.find(b"\n", end)
    if line_end == -1:
        line_end = len(source)
    if source[end:line_end].strip():
        return start, end

    return line_start, min(line_end + 1, len(source))


def collect_imports(module: SourceModule) -> list[ImportSpecifier]:
    """Return the module's import statements."""
    imports: list[ImportSpecifier] = []
    for statement in module.root.named_children:
        if statement.type != "import_statement":
            continue
        source_node = statement.child_by_field_name("source")
        if source_node is None:
            continue
        spec = ImportSpecifier(
            source=module.text_of(source_node)[1:-1],
            type_only=any(
                not c.is_named and c.type == "type" for c in statement.children
            ),
            span=(statement.start_byte, statement.end_byte),
        )
        for clause in statement.named_children:
            if clause.type != "import_clause":
                continue
            for part in clause.named_children:
                if part.type == "identifier":
                    spec.default = module.text_of(part)
                elif part.type == "namespace_import":
                    names = identifier_names(module, part)
                    spec.namespace = names[-1] if names else None
                elif part.type == "named_imports":
                    for specifier in part.named_children:
                        if specifier.type != "import_specifier":
                            continue
                        alias = specifier.child_by_field_name("alias")
                        name = specifier.child_by_field_name("name")
                        local = alias if alias is not None else name
                        if local is not None:
                            spec.named.append(module.text_of(local))
        imports.append(spec)
    return imports


def first_error(module: SourceModule) -> tuple[int, int] | None:
    """Return the (line, column) of the first syntax error, 1-based."""
    for node in walk(module.root):
        if node.type == "ERROR" or node.is_missing:
            row, column = node.start_point
            return row + 1, column + 1
    return None


# =============================================================================
# Delimiter balance
# =============================================================================


def _opaque_ranges(tree: Any) -> list[tuple[int, int]]:
    ranges = []
    stack = [tree.root_node]
    while stack:
        node = stack.pop()
        if node.type in OPAQUE_TYPES and not node.is_missing:
            ranges.append((node.start_byte, node.end_byte))
            continue
        stack.extend(node.children)
    ranges.sort()
    return ranges


def unclosed_delimiters(source: bytes, tree: Any) -> str:
    """Return the closers needed to balance braces, parens and brackets.

    Strings, templates, comments and JSX text (as the tree sees them) are
    skipped. Stray closers are ignored; only a deficit of closers counts.

    Args:
        source: Module bytes
        tree: tree-sitter tree for `source`

    Returns:
        Closing characters to append, innermost first
    """
    ranges = _opaque_ranges(tree)
    stack: list[str] = []
    index = 0
    position = 0
    length = len(source)

    while position < length:
        if index < len(ranges) and position >= ranges[index][0]:
            position = max(position, ranges[index][1])
            index += 1
            continue
        char = chr(source[position])
        if char in _PAIRS:
            stack.append(_PAIRS[char])
        elif char in ")}]" and stack and stack[-1] == char:
            stack.pop()
        position += 1

    return "".join(reversed(stack))


def local_function_statement(module: SourceModule, name: str) -> Any | None:
    """Return the statement declaring a function named `name` inside a function body.

    Covers function declarations, arrow/function consts and useCallback consts.
    Top-level declarations are not returned.
    """
    for node in find_all(module.root, "function_declaration", "variable_declarator"):
        target = node.child_by_field_name("name")
        if target is None or target.type != "identifier" or module.text_of(target) != name:
            continue
        if node.type == "variable_declarator":
            value = unwrap_parens(node.child_by_field_name("value"))
            if value is None:
                continue
            is_function = value.type in FUNCTION_TYPES or (
                value.type == "call_expression" and hook_name(module, value) == "useCallback"
            )
            if not is_function:
                continue
        statement = enclosing_statement(node)
        if statement.parent is None or statement.parent.type != "statement_block":
            continue
        return statement
    return None


def mentioned_in_fences(module: SourceModule, name: str) -> bool:
    """Return True if fenced template or style text mentions `name`."""
    pattern = re.compile(rf"(?<![\w$]){re.escape(name)}(?![\w$])")
    return any(pattern.search(text) for text in module.fences.values())
