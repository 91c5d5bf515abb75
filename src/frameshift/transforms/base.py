"""Abstract base class for pipeline stages.

Every rewriting stage implements this interface. Each stage:
1. Reads the facts collected on the shared SourceModule
2. Collects TextEdits against the current tree
3. Applies them in one batch (the module reparses)
4. Records non-fatal conditions as ConversionNotices
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from frameshift.models import ConversionNotice, NoticeKind, SourceModule
from frameshift.utils.logging import get_logger

_logger = get_logger()


class ConversionError(Exception):
    """Raised when a module cannot be converted."""

    def __init__(self, message: str, stage: str | None = None) -> None:
        self.stage = stage
        self.message = message
        full_message = f"{stage}: {message}" if stage else message
        super().__init__(full_message)


class ParseError(ConversionError):
    """Raised when input stays unparseable after every recovery attempt.

    Attributes:
        line: 1-based line of the first syntax error, if known
        column: 1-based column of the first syntax error, if known
    """

    def __init__(
        self,
        message: str,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message, stage="parse")


class TransformStage(ABC):
    """One rewriting step over a SourceModule.

    Attributes:
        name: Stage identifier used in logs and notices
    """

    name: str = "stage"

    @abstractmethod
    def apply(self, module: SourceModule) -> None:
        """Rewrite the module in place.

        Args:
            module: Shared module; edits are applied before returning
        """
        pass

    def notify(
        self,
        module: SourceModule,
        kind: NoticeKind,
        message: str,
        level: int = logging.WARNING,
        **details: Any,
    ) -> ConversionNotice:
        """Record a notice on the module and log it.

        Args:
            module: Module collecting the notice
            kind: Notice category
            message: Human-readable description
            level: Logging level for the structured log line
            **details: Extra fields carried in JSON logs

        Returns:
            The recorded notice
        """
        notice = ConversionNotice(kind=kind, stage=self.name, message=message, details=details)
        module.notices.append(notice)
        _logger.notice(notice, level)
        return notice
