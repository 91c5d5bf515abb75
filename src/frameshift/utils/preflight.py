"""Preflight validation.

The converter depends on tree-sitter and its TSX grammar. There is no
fallback parser: if the grammar cannot be loaded, conversion cannot run,
so `frameshift check` reports it up front.
"""

import importlib.metadata
import importlib.util
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ToolCheck:
    """Result of checking a single dependency.

    Attributes:
        name: Dependency name
        available: Whether it is importable and usable
        version: Installed version if known
        required: Whether conversion needs it
        path: Module location if available
        message: Status message (human-readable context)
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation.

    Attributes:
        success: Whether all required dependencies are available
        checks: Individual check results
        errors: Error messages for missing required dependencies
        warnings: Warning messages for missing optional dependencies
    """

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Add a check result."""
        self.checks.append(check)

        if not check.available:
            if check.required:
                self.success = False
                self.errors.append(f"Required dependency not usable: {check.name}")
            else:
                self.warnings.append(f"Optional dependency not usable: {check.name}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "path": c.path,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


def _distribution_version(distribution: str) -> str | None:
    try:
        return importlib.metadata.version(distribution)
    except importlib.metadata.PackageNotFoundError:
        return None


class PreflightChecker:
    """Validates parser and library availability before conversion.

    Usage:
        checker = PreflightChecker()
        result = checker.check_all()
        if not result.success:
            raise typer.Exit(1)
    """

    def check_module(
        self,
        module: str,
        distribution: str,
        purpose: str,
        required: bool = True,
    ) -> ToolCheck:
        """Check that a Python module can be found.

        Args:
            module: Import name
            distribution: Package name on the index
            purpose: Short description shown when the check passes
            required: Whether conversion needs the module

        Returns:
            ToolCheck result
        """
        spec = importlib.util.find_spec(module)
        if spec is None:
            return ToolCheck(
                name=distribution,
                available=False,
                required=required,
                message=f"Install with: pip install {distribution}",
            )

        return ToolCheck(
            name=distribution,
            available=True,
            version=_distribution_version(distribution),
            required=required,
            path=spec.origin,
            message=purpose,
        )

    def check_tsx_grammar(self, required: bool = True) -> ToolCheck:
        """Check that the TSX grammar loads and parses a trivial component.

        Args:
            required: Whether the grammar is required

        Returns:
            ToolCheck result
        """
        from frameshift.analyzers.ast_parser import ParserUnavailableError, TSXParser

        parser = TSXParser()
        try:
            tree = parser.parse("const A = () => <div />;")
        except ParserUnavailableError as e:
            return ToolCheck(
                name="tsx-grammar",
                available=False,
                required=required,
                message=e.message,
            )

        if tree.root_node.has_error:
            return ToolCheck(
                name="tsx-grammar",
                available=False,
                required=required,
                message="TSX grammar loaded but failed to parse a trivial component",
            )

        return ToolCheck(
            name="tsx-grammar",
            available=True,
            required=required,
            message="TSX parser (tree-sitter-language-pack)",
        )

    def check_all(self) -> PreflightResult:
        """Run all preflight checks.

        Returns:
            PreflightResult with all check results
        """
        result = PreflightResult()

        result.add_check(self.check_module("tree_sitter", "tree-sitter", "AST parser core"))
        result.add_check(
            self.check_module(
                "tree_sitter_language_pack",
                "tree-sitter-language-pack",
                "Grammar bundle",
            )
        )
        if result.success:
            result.add_check(self.check_tsx_grammar())

        result.add_check(self.check_module("yaml", "PyYAML", "Configuration files"))

        return result
