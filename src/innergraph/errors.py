"""
Exception types raised by innergraph.

The analysis pass itself fails open: syntax it does not recognise is kept,
never raised on. Exceptions are reserved for the surrounding plumbing
(parsing, configuration) and for misuse of the write-once decision API.
"""

from __future__ import annotations

from typing import Optional


class InnerGraphError(Exception):
    """Base class for all innergraph errors."""


class ParseError(InnerGraphError):
    """The source could not be parsed as JavaScript."""

    def __init__(
        self,
        message: str,
        filename: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.filename = filename
        self.line = line
        self.column = column
        where = filename or "<source>"
        if line is not None:
            where = f"{where}:{line}"
            if column is not None:
                where = f"{where}:{column}"
        super().__init__(f"{where}: {message}")


class ConfigError(InnerGraphError):
    """A configuration file is missing, unreadable or holds a bad value."""


class DecisionAlreadyPublished(InnerGraphError):
    """A usage decision was written twice."""


class AnalysisFinished(InnerGraphError):
    """A traversal event arrived after the module was flattened."""
