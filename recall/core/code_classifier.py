"""
Code detection for code-focused context.

The default classifier is a coarse substring heuristic. It sits behind a
small protocol so callers can swap in something more precise.

Dependencies: None
System role: Candidate filter for code context assembly
"""

from collections.abc import Iterable
from typing import Protocol

DEFAULT_CODE_MARKERS: tuple[str, ...] = (
    "function",
    "const",
    "class",
    "import",
    "```",
    "{",
    "=>",
)


class CodeClassifier(Protocol):
    """Decides whether a chunk of text looks like code."""

    def looks_like_code(self, text: str) -> bool:
        ...


class SubstringCodeClassifier:
    """Flags text containing any of a set of markers (case-insensitive)."""

    def __init__(self, markers: Iterable[str] = DEFAULT_CODE_MARKERS) -> None:
        self.markers = tuple(marker.lower() for marker in markers)

    def looks_like_code(self, text: str) -> bool:
        lowered = text.lower()
        return any(marker in lowered for marker in self.markers)
