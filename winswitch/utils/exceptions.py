"""Custom exceptions for the window switcher."""

from typing import List, Optional


class ConfigError(Exception):
    """Raised when there is a configuration error."""
    pass


class ExternalToolError(Exception):
    """Raised when an external command fails.

    This covers both commands that cannot be launched (missing binary,
    permission problems) and commands that exit with a non-zero status.
    """
    def __init__(self, message: str, command: Optional[List[str]] = None,
                 returncode: Optional[int] = None, stderr: Optional[str] = None):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class ParsingError(Exception):
    """Exception raised for parsing-related errors.

    This exception is raised when there are issues with parsing data,
    such as invalid formats or missing required fields.
    """
    pass


class MalformedLineError(ParsingError):
    """Raised when a line of window-list output does not have the expected shape."""
    def __init__(self, message: str, line: Optional[str] = None, line_number: Optional[int] = None):
        super().__init__(message)
        self.line = line
        self.line_number = line_number


class StoreError(Exception):
    """Raised when a document store operation fails."""
    pass


class StoreConflictError(StoreError):
    """Raised when an optimistic write used a stale revision."""
    def __init__(self, message: str, doc_id: Optional[str] = None):
        super().__init__(message)
        self.doc_id = doc_id


class AmbiguousTitleError(Exception):
    """Signals that a title lookup matched more than one live window.

    The session controller logs this condition and keeps the first match.
    """
    def __init__(self, title: str, matches: List[str]):
        super().__init__(f"Title {title!r} matches {len(matches)} windows: {', '.join(matches)}")
        self.title = title
        self.matches = matches
