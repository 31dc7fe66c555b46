"""
Exceptions raised by the diagram render cache.
"""

from typing import Optional


class RenderError(Exception):
    """Base class for render cache failures."""
    pass


class SourceNotFound(RenderError):
    """Raised when a logical diagram path does not resolve to a file."""

    def __init__(self, book: str, path: str):
        super().__init__(f"Diagram not found: {book}{path}")
        self.book = book
        self.path = path


class ConversionError(RenderError):
    """
    Raised when the dia converter fails.

    Carries the captured diagnostic text, since dia reports most of its
    problems on stderr rather than through the exit status.
    """

    def __init__(
        self,
        executable: str,
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = ''
    ):
        super().__init__(f"{executable}: {message}")
        self.executable = executable
        self.exit_code = exit_code
        self.stderr = stderr


class RenderInterrupted(RenderError):
    """Raised when a caller stops waiting on an in-flight export."""
    pass
