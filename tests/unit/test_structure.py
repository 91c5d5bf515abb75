"""Unit tests for structure preservation and import edits."""

from collections.abc import Callable

import pytest

from frameshift.config import load_config_from_dict
from frameshift.models import NoticeKind, SourceModule
from frameshift.transforms.imports import (
    ensure_default_import,
    ensure_named_imports,
    remove_unused_named_imports,
)
from frameshift.transforms.structure import FENCE_PREFIX, StructurePreserver, to_double_quoted

ModuleFactory = Callable[[str], SourceModule]


class TestFences:
    """Tests for fencing and restoring fragile regions."""

    def test_interpolated_template_fenced(self, make_module: ModuleFactory) -> None:
        """Test that a template with ${} is replaced by a fence and restored verbatim."""
        source = "const label = `Score: ${score}`;\n"
        module = make_module(source)
        stage = StructurePreserver()

        assert stage.guard(module) == 1
        assert FENCE_PREFIX in module.text
        assert "${score}" not in module.text

        stage.restore(module)

        assert module.text == source
        assert module.fences == {}

    def test_style_contents_fenced(self, make_module: ModuleFactory) -> None:
        """Test that inline style contents are fenced as one region."""
        source = (
            "export default function Styled() {\n"
            "  return <style>{`.a { color: ${color}; }`}</style>;\n"
            "}\n"
        )
        module = make_module(source)

        assert StructurePreserver().guard(module) == 1
        assert "color" not in module.text

    def test_plain_template_not_fenced(self, make_module: ModuleFactory) -> None:
        """Test that templates without interpolation are left for downgrading."""
        module = make_module("const a = `plain`;\n")

        assert StructurePreserver().guard(module) == 0


class TestDowngradeTemplates:
    """Tests for template literal downgrading."""

    def test_plain_template_becomes_string(self, make_module: ModuleFactory) -> None:
        """Test that an interpolation-free template becomes a double-quoted string."""
        module = make_module("const a = `hello`;\n")

        assert StructurePreserver().downgrade_templates(module) == 1
        assert module.text == 'const a = "hello";\n'

    def test_tagged_template_kept(self, make_module: ModuleFactory) -> None:
        """Test that tagged templates keep their backticks."""
        module = make_module("const q = css`color: red;`;\n")

        assert StructurePreserver().downgrade_templates(module) == 0
        assert "css`color: red;`" in module.text

    @pytest.mark.parametrize(
        "body,expected",
        [
            ("hello", '"hello"'),
            ('say "hi"', '"say \\"hi\\""'),
            ("a\nb", '"a\\nb"'),
            ("cost \\$5", '"cost $5"'),
            ("tick \\`", '"tick `"'),
        ],
    )
    def test_to_double_quoted(self, body: str, expected: str) -> None:
        """Test escaping when rewriting template bodies."""
        assert to_double_quoted(body) == expected


class TestUnwrap:
    """Tests for wrapper element unwrapping."""

    def test_self_closing_wrapper_renders_component(self, make_module: ModuleFactory) -> None:
        """Test that a self-closing wrapper becomes its component prop."""
        module = make_module(
            "import { Composition } from 'remotion';\n"
            "import { Scene } from './Scene';\n"
            "export const Root = () => (\n"
            "  <Composition id=\"Main\" component={Scene} durationInFrames={90} fps={30} />\n"
            ");\n"
        )

        assert StructurePreserver().unwrap(module) == 1
        assert "<Scene />" in module.text
        assert "Composition" not in module.text
        assert not module.has_error

    def test_wrapper_with_children(self, make_module: ModuleFactory) -> None:
        """Test that a wrapper with several children becomes a fragment."""
        module = make_module(
            "const View = () => (\n"
            "  <Composition>\n"
            "    <A />\n"
            "    <B />\n"
            "  </Composition>\n"
            ");\n"
        )

        StructurePreserver().unwrap(module)

        assert "<><A />\n    <B /></>" in module.text

    def test_configured_wrapper(self, make_module: ModuleFactory) -> None:
        """Test that the wrapper element name comes from configuration."""
        config = load_config_from_dict({"output": {"wrapper_element": "Sequence"}})
        module = make_module("const View = () => <div><Sequence><A /></Sequence></div>;\n")

        StructurePreserver(config).unwrap(module)

        assert module.text == "const View = () => <div><A /></div>;\n"


class TestBalance:
    """Tests for delimiter balancing."""

    def test_missing_brace_appended(self, make_module: ModuleFactory) -> None:
        """Test that a missing closing brace is appended with a notice."""
        module = make_module("function A() {\n  return 1;\n")

        closers = StructurePreserver().balance(module)

        assert closers == "}"
        assert module.text.endswith("}\n")
        assert module.notices[0].kind is NoticeKind.STRUCTURAL_REPAIR
        assert module.notices[0].details["closers"] == "}"

    def test_balanced_unchanged(self, make_module: ModuleFactory) -> None:
        """Test that balanced input is untouched."""
        source = "function A() {\n  return [1, (2)];\n}\n"
        module = make_module(source)

        assert StructurePreserver().balance(module) == ""
        assert module.text == source
        assert module.notices == []


class TestImportEdits:
    """Tests for shared import helpers."""

    def test_named_import_extended(self, make_module: ModuleFactory) -> None:
        """Test that missing names join an existing named import."""
        module = make_module("import { interpolate } from 'remotion';\n")

        added = ensure_named_imports(module, "remotion", ["interpolate", "random"])

        assert added == ["random"]
        assert module.text == "import { interpolate, random } from 'remotion';\n"

    def test_named_import_added_after_imports(self, make_module: ModuleFactory) -> None:
        """Test that a new import line follows the last import."""
        module = make_module("import React from 'react';\nconst a = 1;\n")

        ensure_named_imports(module, "remotion", ["useCurrentFrame"])

        assert module.text.startswith(
            "import React from 'react';\nimport { useCurrentFrame } from 'remotion';\n"
        )

    def test_unused_names_removed(self, make_module: ModuleFactory) -> None:
        """Test that unreferenced names go and referenced ones stay."""
        module = make_module(
            "import React, { useState, useMemo } from 'react';\n"
            "const x = useMemo(() => 1, []);\n"
        )

        removed = remove_unused_named_imports(module, "react", ["useState", "useMemo"])

        assert removed == ["useState"]
        assert module.text.startswith("import React, { useMemo } from 'react';")

    def test_empty_import_dropped(self, make_module: ModuleFactory) -> None:
        """Test that an import left with no bindings is removed."""
        module = make_module("import { useState } from 'react';\nconst a = 1;\n")

        remove_unused_named_imports(module, "react", ["useState"])

        assert "import" not in module.text

    def test_default_import_added(self, make_module: ModuleFactory) -> None:
        """Test that a default import is merged into an existing named import."""
        module = make_module("import { useState } from 'react';\n")

        assert ensure_default_import(module, "react", "React") is True
        assert module.text == "import React, { useState } from 'react';\n"
        assert ensure_default_import(module, "react", "React") is False
