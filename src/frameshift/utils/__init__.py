"""frameshift utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: Parser and library availability checks
"""

from frameshift.utils.logging import get_logger, setup_logging
from frameshift.utils.preflight import PreflightChecker, PreflightResult

__all__ = [
    "get_logger",
    "setup_logging",
    "PreflightChecker",
    "PreflightResult",
]
