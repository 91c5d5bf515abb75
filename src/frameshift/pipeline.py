"""Conversion pipeline orchestrator.

Runs every stage over one shared SourceModule and collects the result.
"""

import logging
import re
from dataclasses import dataclass

from frameshift.analyzers.ast_parser import (
    TSXParser,
    collect_imports,
    first_error,
    unclosed_delimiters,
)
from frameshift.analyzers.classifier import Classification, SourceClassifier
from frameshift.analyzers.dependency import DependencyResolver, PackageManifest
from frameshift.config import FrameshiftConfig
from frameshift.models import ConversionNotice, NoticeKind, SourceModule, TransformedModule
from frameshift.transforms.base import ConversionError, ParseError
from frameshift.transforms.exports import (
    ExportNormalizer,
    default_export_name,
    has_default_export,
)
from frameshift.transforms.hooks import HookEliminator
from frameshift.transforms.imports import add_missing_api_imports
from frameshift.transforms.interactions import InteractionStripper
from frameshift.transforms.keyframes import repair_interpolations
from frameshift.transforms.structure import StructurePreserver
from frameshift.utils.logging import get_logger, summarize_notices

logger = logging.getLogger(__name__)

_MODULE_SYNTAX = re.compile(r"^\s*(import|export)\b", re.MULTILINE)


@dataclass
class ParseAttempt:
    """One rung of the parse recovery ladder."""

    name: str
    text: str


class ConversionPipeline:
    """Converts interactive component source into a frame-driven composition.

    The pipeline sequence:
    1. Parse (with recovery: closers appended, then fragment wrapping)
    2. Classify the module
    3. Fence fragile regions
    4. Eliminate state hooks
    5. Strip interactions
    6. Unwrap, restore fences, balance delimiters
    7. Normalize exports (one default, no repeated names)
    8. Repair interpolate() ranges
    9. Import Remotion APIs used without an import
    10. Reconcile dependencies

    The manifest is updated in place; nothing touches the filesystem.
    """

    def __init__(
        self,
        config: FrameshiftConfig | None = None,
        manifest: PackageManifest | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: frameshift configuration (uses defaults if None)
            manifest: package.json to reconcile (a default manifest if None)
        """
        self.config = config or FrameshiftConfig()
        self.manifest = manifest if manifest is not None else PackageManifest.default()
        self.classification: Classification | None = None
        self._parser = TSXParser()

    def run(self, source_text: str) -> TransformedModule:
        """Convert one module.

        Args:
            source_text: Component source (TSX)

        Returns:
            TransformedModule with output text and metadata

        Raises:
            ParseError: If the input cannot be parsed even after recovery
            ConversionError: If a stage cannot complete
        """
        logger.info("Starting conversion (%d characters)", len(source_text))

        module = self.parse(source_text)

        # Stage 1: Classification
        self.classification = SourceClassifier(self.config.classifier).classify(module)
        pattern = self.classification.pattern
        logger.info(
            "Detected %s (rule: %s)", pattern.value, self.classification.rule
        )

        # Stage 2: Fence template and style regions
        structure = StructurePreserver(self.config)
        structure.guard(module)

        # Stage 3: Hook elimination
        mode = self.config.rewrite.complete_modules
        if not pattern.is_complete or mode != "export-only":
            HookEliminator(self.config).apply(module)
        else:
            logger.info("Skipping hook elimination (complete module, export-only)")

        # Stage 4: Interaction stripping
        if not pattern.is_complete or mode == "full":
            InteractionStripper(self.config).apply(module)

        # Stage 5: Structure
        structure.apply(module)

        # Stage 6: Default export
        ExportNormalizer(self.config).apply(module)

        # Stage 7: Keyframes
        if self.config.rewrite.repair_keyframes:
            self._repair_keyframes(module)

        # Stage 8: Imports for Remotion APIs used without one
        self._add_missing_imports(module)

        # Stage 9: Dependencies
        added = self._resolve_dependencies(module)

        # Final delimiter check
        structure.balance(module)

        exported = default_export_name(module)
        if exported is None and not has_default_export(module):
            raise ConversionError("output has no default export", stage="exports")

        result = TransformedModule(
            text=module.text,
            exported_component_name=exported,
            retained_imports=list(dict.fromkeys(spec.source for spec in collect_imports(module))),
            added_dependencies=added,
            detected_pattern=pattern,
            notices=list(module.notices),
        )
        logger.info(
            "Conversion complete: %s exported, %s",
            exported or "anonymous component",
            summarize_notices(result.notices),
        )
        return result

    # =========================================================================
    # Parsing
    # =========================================================================

    def parse(self, source_text: str) -> SourceModule:
        """Parse source, falling back to repaired variants.

        Attempts, in order: the raw text, the text with missing closers
        appended, and (for input with no import/export) the text wrapped in a
        fragment.

        Raises:
            ParseError: If every attempt still has syntax errors
        """
        module = SourceModule(source_text, self._parser)
        if not module.has_error:
            return module
        position = first_error(module)

        attempts = []
        closers = unclosed_delimiters(module.source, module.tree)
        if closers:
            attempts.append(
                ParseAttempt("closers", source_text.rstrip() + "\n" + closers + "\n")
            )
        if not _MODULE_SYNTAX.search(source_text):
            attempts.append(ParseAttempt("fragment", f"<>\n{source_text.strip()}\n</>\n"))

        for attempt in attempts:
            candidate = SourceModule(attempt.text, self._parser)
            if candidate.has_error:
                logger.debug("Parse recovery '%s' failed", attempt.name)
                continue
            self._notice(
                candidate,
                NoticeKind.STRUCTURAL_REPAIR,
                "parse",
                f"Input needed parse recovery ({attempt.name})",
                recovery=attempt.name,
            )
            return candidate

        line, column = position if position is not None else (None, None)
        raise ParseError("Input is not valid TSX", line=line, column=column)

    # =========================================================================
    # Post-processing
    # =========================================================================

    def _resolve_dependencies(self, module: SourceModule) -> dict[str, str]:
        resolver = DependencyResolver(
            pins=self.config.dependencies.pins,
            default_version=self.config.dependencies.default_version,
        )
        specifiers = [spec.source for spec in collect_imports(module) if not spec.type_only]
        added = resolver.resolve(specifiers, self.manifest)
        for package, version in added.items():
            self._notice(
                module,
                NoticeKind.DEPENDENCY_ADDED,
                "dependencies",
                f"Added dependency {package} {version}",
                level=logging.INFO,
                package=package,
                version=version,
            )
        return added

    def _add_missing_imports(self, module: SourceModule) -> None:
        for source, names in add_missing_api_imports(module).items():
            self._notice(
                module,
                NoticeKind.IMPORT_ADDED,
                "imports",
                f"Imported {', '.join(names)} from '{source}'",
                level=logging.INFO,
                source=source,
                names=names,
            )

    def _repair_keyframes(self, module: SourceModule) -> None:
        for repair in repair_interpolations(module):
            self._notice(
                module,
                NoticeKind.KEYFRAME_REPAIR,
                "keyframes",
                f"Repaired interpolate() call on line {repair.line}",
                **repair.to_dict(),
            )

    def _notice(
        self,
        module: SourceModule,
        kind: NoticeKind,
        stage: str,
        message: str,
        level: int = logging.WARNING,
        **details: object,
    ) -> None:
        notice = ConversionNotice(kind=kind, stage=stage, message=message, details=dict(details))
        module.notices.append(notice)
        get_logger().notice(notice, level)


def convert(
    source_text: str,
    config: FrameshiftConfig | None = None,
    manifest: PackageManifest | None = None,
) -> str:
    """Convert interactive component source into a frame-driven composition.

    Args:
        source_text: Component source (TSX)
        config: frameshift configuration (uses defaults if None)
        manifest: package.json to reconcile in place (a default one if None)

    Returns:
        Converted source with exactly one default export

    Raises:
        ParseError: If the input cannot be parsed
    """
    return ConversionPipeline(config, manifest).run(source_text).text
