"""Application-level exception types for botfleet."""

from __future__ import annotations


class BotFleetError(Exception):
    """Base exception for botfleet."""


class ConfigurationError(BotFleetError):
    """Raised when settings fail startup validation."""


class UsageError(BotFleetError):
    """Raised when console command arguments are malformed or incomplete."""

    def __init__(self, message: str = "", command: str | None = None) -> None:
        super().__init__(message)
        self.command = command


class DirectoryLookupError(BotFleetError):
    """Raised when a session fails to look up or message a directory entry."""


class PatternError(BotFleetError):
    """Raised when a search pattern is not a valid regular expression."""


class ResolutionError(BotFleetError):
    """Raised when the reply target of an inbound message cannot be determined."""
