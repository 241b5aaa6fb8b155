"""
Token reference scanning.

Finds var(--name) / var(--name, fallback) call sites in documents and
reports their positions as zero-based (line, character) ranges. Full-document
results are cached per document URI and content version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable


# =============================================================================
# Constants
# =============================================================================

# Linear in line length: no nested quantifiers that can backtrack.
CSS_VAR_PATTERN = re.compile(
    r"var\(\s*(--[A-Za-z0-9_-]+)\s*(?:,((?:[^()]|\([^()]*\))*))?\)"
)

COMMENT_PATTERN = re.compile(r"/\*.*?\*/", re.DOTALL)

SUPPORTED_LANGUAGES = frozenset({
    "css",
    "less",
    "scss",
    "sass",
    "javascript",
    "javascriptreact",
    "typescript",
    "typescriptreact",
    "vue",
    "html",
    "markdown",
})

EXTENSION_LANGUAGES = {
    ".css": "css",
    ".less": "less",
    ".scss": "scss",
    ".sass": "sass",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "javascriptreact",
    ".ts": "typescript",
    ".tsx": "typescriptreact",
    ".vue": "vue",
    ".html": "html",
    ".htm": "html",
    ".md": "markdown",
}


# =============================================================================
# Data Structures
# =============================================================================


@dataclass(frozen=True, order=True)
class Position:
    line: int
    character: int


@dataclass(frozen=True)
class Range:
    """Half-open text range [start, end)."""

    start: Position
    end: Position

    @classmethod
    def on_line(cls, line: int, start: int, end: int) -> "Range":
        return cls(Position(line, start), Position(line, end))


@dataclass(frozen=True)
class ScanMatch:
    """A single token reference found in a document.

    Attributes:
        token_name: Referenced name, e.g. '--ant-color-primary'.
        full_match: The whole call text, e.g. 'var(--ant-color-primary)'.
        range: Range of the whole call expression.
        token_range: Range of the name only.
        fallback: Literal fallback given in the call, if any.
    """

    token_name: str
    full_match: str
    range: Range
    token_range: Range
    fallback: Optional[str] = None


@runtime_checkable
class Document(Protocol):
    """What the scanner needs from a document."""

    @property
    def uri(self) -> str: ...

    @property
    def version(self) -> int: ...

    @property
    def language_id(self) -> str: ...

    @property
    def line_count(self) -> int: ...

    def line_at(self, line: int) -> str: ...


@dataclass
class TextDocument:
    """In-memory text document with a content version.

    The version increases on every update(); the scanner uses it to decide
    whether a cached result is still valid.
    """

    uri: str
    text: str
    language_id: str = "css"
    version: int = 1
    _lines: list[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._lines = _split_lines(self.text)

    @classmethod
    def from_path(cls, path: Path, version: int = 1) -> "TextDocument":
        path = Path(path)
        return cls(
            uri=path.resolve().as_uri(),
            text=path.read_text(encoding="utf-8"),
            language_id=EXTENSION_LANGUAGES.get(path.suffix.lower(), "plaintext"),
            version=version,
        )

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def line_at(self, line: int) -> str:
        return self._lines[line]

    def update(self, text: str) -> None:
        """Replace the content and bump the version."""
        self.text = text
        self._lines = _split_lines(text)
        self.version += 1


def _split_lines(text: str) -> list[str]:
    return [line.rstrip("\r") for line in text.split("\n")]


def _blank(match: re.Match) -> str:
    """Replace a comment with spaces, keeping newlines and column offsets."""
    return re.sub(r"[^\n]", " ", match.group(0))


def strip_comments(text: str) -> str:
    """Blank out /* */ comments without shifting any character positions."""
    return COMMENT_PATTERN.sub(_blank, text)


# =============================================================================
# Scanner
# =============================================================================


class TokenScanner:
    """Locates token references in documents.

    Any custom property name is accepted (--ant-, --el-, --my-, ...). The
    scanner does not consult the registry.
    """

    def __init__(self) -> None:
        self._cache: dict[str, tuple[int, list[ScanMatch]]] = {}

    def scan_document(self, document: Document) -> list[ScanMatch]:
        """Scan a whole document, reusing the cached result for its version.

        Returns the same list object while the document version is unchanged.
        Any other version, lower ones included, rescans and replaces the entry.
        """
        uri = document.uri
        version = document.version

        cached = self._cache.get(uri)
        if cached is not None and cached[0] == version:
            return cached[1]

        matches = self._perform_scan(document, 0, document.line_count - 1)
        self._cache[uri] = (version, matches)

        return matches

    def scan_range(self, document: Document, line_range: Range) -> list[ScanMatch]:
        """Scan the lines covered by a range (both end lines included)."""
        last = min(line_range.end.line, document.line_count - 1)
        return self._perform_scan(document, line_range.start.line, last)

    def scan_line(self, text: str, line_number: int) -> list[ScanMatch]:
        """Scan a single line of text.

        Comment spans are blanked first so references inside /* */ are
        skipped while columns stay aligned with the original text. References
        nested in a fallback, as in var(--a, var(--b)), are reported after
        the call that contains them.
        """
        return self._scan_span(strip_comments(text), line_number, 0)

    def _scan_span(self, text: str, line_number: int, offset: int) -> list[ScanMatch]:
        matches: list[ScanMatch] = []

        for match in CSS_VAR_PATTERN.finditer(text):
            raw_fallback = match.group(2)
            fallback = raw_fallback.strip() if raw_fallback is not None else None

            matches.append(
                ScanMatch(
                    token_name=match.group(1),
                    full_match=match.group(0),
                    range=Range.on_line(line_number, offset + match.start(), offset + match.end()),
                    token_range=Range.on_line(
                        line_number, offset + match.start(1), offset + match.end(1)
                    ),
                    fallback=fallback or None,
                )
            )
            if raw_fallback and "var(" in raw_fallback:
                matches.extend(
                    self._scan_span(raw_fallback, line_number, offset + match.start(2))
                )

        return matches

    def is_supported_document(self, document: Document) -> bool:
        return document.language_id in SUPPORTED_LANGUAGES

    def clear_cache(self, uri: Optional[str] = None) -> None:
        """Drop the cached result for one document, or for all of them."""
        if uri is None:
            self._cache.clear()
        else:
            self._cache.pop(uri, None)

    def _perform_scan(self, document: Document, first: int, last: int) -> list[ScanMatch]:
        if last < first or first >= document.line_count:
            return []

        # Block comments may start on an earlier line, so blank from line 0
        text = "\n".join(document.line_at(i) for i in range(last + 1))
        lines = strip_comments(text).split("\n")

        matches: list[ScanMatch] = []
        for line_number in range(max(first, 0), last + 1):
            matches.extend(self.scan_line(lines[line_number], line_number))
        return matches
