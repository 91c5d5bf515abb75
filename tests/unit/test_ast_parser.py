"""Unit tests for TSX parsing helpers."""

from collections.abc import Callable

import pytest

from frameshift.analyzers.ast_parser import (
    TSXParser,
    call_name,
    collect_imports,
    declared_names,
    find_all,
    first_error,
    hook_name,
    is_component_name,
    local_function_statement,
    references,
    statement_span,
    unclosed_delimiters,
)
from frameshift.models import SourceModule

ModuleFactory = Callable[[str], SourceModule]


class TestTSXParser:
    """Tests for the tree-sitter wrapper."""

    def test_parser_available(self, parser: TSXParser) -> None:
        """Test that the TSX grammar loads."""
        assert parser.check_available() is True

    def test_parse_tsx(self, parser: TSXParser) -> None:
        """Test parsing typed JSX."""
        tree = parser.parse("const A = ({ n }: { n: number }) => <div>{n}</div>;")

        assert tree.root_node.type == "program"
        assert not tree.root_node.has_error

    def test_parse_bytes(self, parser: TSXParser) -> None:
        """Test that bytes and text parse the same."""
        text = "const é = 1;"

        assert parser.parse(text.encode("utf-8")).root_node.end_byte == len(text.encode("utf-8"))


class TestCalls:
    """Tests for call helpers."""

    def test_hook_name_strips_namespace(self, make_module: ModuleFactory) -> None:
        """Test that `React.useState` is recognised as useState."""
        module = make_module("const [a, setA] = React.useState(0);")
        call = find_all(module.root, "call_expression")[0]

        assert call_name(module, call) == "React.useState"
        assert hook_name(module, call) == "useState"

    @pytest.mark.parametrize(
        "name,expected",
        [("Counter", True), ("counter", False), ("A1", True), ("", False), (None, False)],
    )
    def test_is_component_name(self, name: str | None, expected: bool) -> None:
        """Test component naming convention."""
        assert is_component_name(name) is expected


class TestNames:
    """Tests for declarations and references."""

    def test_references_skip_properties(self, make_module: ModuleFactory) -> None:
        """Test that member properties and object keys are not references."""
        module = make_module("const a = 1;\nobj.a;\nconst b = { a: 2 };\nconsole.log(a + 1);\n")

        assert len(references(module, "a")) == 2

    def test_references_exclude(self, make_module: ModuleFactory) -> None:
        """Test excluding the declaring statement."""
        module = make_module("function helper() {\n  return 1;\n}\n")
        statement = module.root.named_children[0]

        assert references(module, "helper", exclude=statement) == []

    def test_declared_names(self, make_module: ModuleFactory) -> None:
        """Test names bound by variables, parameters and functions."""
        module = make_module(
            "function F(x, { y }) {\n"
            "  const [z, setZ] = useState(0);\n"
            "  const w = (v) => v;\n"
            "  function inner() {}\n"
            "}\n"
        )

        assert declared_names(module, module.root) == {
            "F", "x", "y", "z", "setZ", "w", "v", "inner"
        }

    def test_local_function_statement(self, make_module: ModuleFactory) -> None:
        """Test that only functions inside a body are found."""
        module = make_module(
            "const top = () => 1;\n"
            "function C() {\n"
            "  const handle = useCallback(() => {}, []);\n"
            "  const value = 2;\n"
            "  return null;\n"
            "}\n"
        )

        assert local_function_statement(module, "top") is None
        assert local_function_statement(module, "value") is None
        statement = local_function_statement(module, "handle")
        assert module.text_of(statement) == "const handle = useCallback(() => {}, []);"


class TestImports:
    """Tests for import collection."""

    def test_collect_imports(self, make_module: ModuleFactory) -> None:
        """Test default, named, aliased, namespace and type-only imports."""
        module = make_module(
            "import React, { useState, useEffect as useFx } from 'react';\n"
            "import * as THREE from 'three';\n"
            "import type { FC } from 'react';\n"
            "import './styles.css';\n"
        )

        imports = collect_imports(module)

        assert [spec.source for spec in imports] == ["react", "three", "react", "./styles.css"]
        assert imports[0].default == "React"
        assert imports[0].named == ["useState", "useFx"]
        assert imports[1].namespace == "THREE"
        assert imports[2].type_only is True
        assert imports[3].default is None


class TestSpans:
    """Tests for statement spans and error positions."""

    def test_statement_span_whole_line(self, make_module: ModuleFactory) -> None:
        """Test that a statement alone on its line takes the whole line."""
        module = make_module("const a = 1;\n  const b = 2;\nconst c = 3;\n")
        statement = module.root.named_children[1]

        start, end = statement_span(module, statement)

        assert module.slice(start, end) == "  const b = 2;\n"

    def test_statement_span_shared_line(self, make_module: ModuleFactory) -> None:
        """Test that a statement sharing its line keeps its own span."""
        module = make_module("const a = 1; const b = 2;\n")
        statement = module.root.named_children[1]

        start, end = statement_span(module, statement)

        assert module.slice(start, end) == "const b = 2;"

    def test_first_error(self, make_module: ModuleFactory) -> None:
        """Test the 1-based position of the first syntax error."""
        module = make_module("const a = 1;\nconst = = ;\n")

        line, _column = first_error(module)

        assert line == 2

    def test_no_error(self, make_module: ModuleFactory) -> None:
        """Test valid input has no error position."""
        assert first_error(make_module("const a = 1;\n")) is None


class TestUnclosedDelimiters:
    """Tests for delimiter balance."""

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("const a = [1, (2", ")]"),
            ("function A() {\n  if (x) {\n", "}}"),
            ("const s = '{';\n", ""),
            ("// {\nconst a = 1;\n", ""),
            ("const t = `(${a}`;\n", ""),
            ("const a = (1));\n", ""),
        ],
    )
    def test_closers(self, parser: TSXParser, source: str, expected: str) -> None:
        """Test that strings, comments and stray closers are ignored."""
        data = source.encode("utf-8")

        assert unclosed_delimiters(data, parser.parse(data)) == expected
