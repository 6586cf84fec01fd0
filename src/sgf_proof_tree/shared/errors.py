"""Exception hierarchy for SGF proof-tree loading.

Every parse failure carries the half-open source span ``[start, end)`` of the
offending input so callers can point at it. The plain string form is
``"<message> at <start>:<end>"``; a detailed form with a highlighted excerpt
of the source is available through :meth:`SGFError.render`.
"""

from typing import Optional

DEFAULT_CONTEXT_WINDOW = 20
DEFAULT_HIGHLIGHT_START = "\033[1;31m"
DEFAULT_HIGHLIGHT_END = "\033[0m"


class SGFError(Exception):
    """Base exception for all SGF input errors."""

    def __init__(
        self,
        message: str,
        start: int,
        end: int,
        detail: Optional[str] = None,
    ) -> None:
        """Initialize SGF error.

        Args:
            message: Human-readable description of the problem
            start: Start offset of the offending span
            end: End offset (exclusive) of the offending span
            detail: Pre-rendered detailed text replacing the plain form
        """
        self.message = message
        self.start = start
        self.end = end
        self.detail = detail
        super().__init__(detail if detail is not None else self.location())

    @property
    def span(self) -> tuple[int, int]:
        """Get the offending span as a ``(start, end)`` tuple."""
        return self.start, self.end

    def location(self) -> str:
        """Format the error as ``"<message> at <start>:<end>"``."""
        return f"{self.message} at {self.start}:{self.end}"

    def render(
        self,
        source: str,
        window: int = DEFAULT_CONTEXT_WINDOW,
        highlight_start: str = DEFAULT_HIGHLIGHT_START,
        highlight_end: str = DEFAULT_HIGHLIGHT_END,
    ) -> str:
        """Render the error with a highlighted excerpt of the source.

        Args:
            source: Original input text the offsets refer to
            window: Number of characters shown before and after the span
            highlight_start: Marker inserted before the offending span
            highlight_end: Marker inserted after the offending span

        Returns:
            Location line followed by the excerpt, or just the location line
            when no source is available
        """
        if not source:
            return self.location()

        start = min(max(self.start, 0), len(source))
        end = min(max(self.end, start), len(source))
        before = max(0, start - window)
        after = min(len(source), end + window)
        return (
            f"{self.location()}\n"
            f"{source[before:start]}{highlight_start}"
            f"{source[start:end]}{highlight_end}{source[end:after]}"
        )

    def with_context(
        self,
        source: str,
        window: int = DEFAULT_CONTEXT_WINDOW,
        highlight_start: str = DEFAULT_HIGHLIGHT_START,
        highlight_end: str = DEFAULT_HIGHLIGHT_END,
    ) -> "SGFError":
        """Create a copy of this error whose string form is the detailed one."""
        detailed = type(self)(
            self.message,
            self.start,
            self.end,
            detail=self.render(source, window, highlight_start, highlight_end),
        )
        detailed.__cause__ = self
        return detailed


class LexicalError(SGFError):
    """Malformed character-level input: invalid character, unterminated value."""


class StructuralError(SGFError):
    """Token arrived in a parser state that does not allow it."""


class MalformedProofDataError(SGFError):
    """Node properties contradict each other (e.g. a transposition flag on an
    unsolved node) or a recognized tag has the wrong number of values."""

    def __init__(
        self,
        message: str,
        start: int = 0,
        end: int = 0,
        detail: Optional[str] = None,
    ) -> None:
        super().__init__(message, start, end, detail)


class NodeAllocationError(MemoryError):
    """Node creation failed; no partially constructed node was registered."""
