"""
Core data models for the site comparison engine.

All models are plain data structures that can be serialized and reused
by both the CLI and any other front end.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Union


@dataclass(frozen=True)
class Link:
    """An anchor with an href, in document order."""

    text: str
    href: str

    def to_dict(self) -> dict:
        return {"text": self.text, "href": self.href}


@dataclass(frozen=True)
class Image:
    """An image with a src attribute."""

    alt: str
    src: str

    def to_dict(self) -> dict:
        return {"alt": self.alt, "src": self.src}


@dataclass(frozen=True)
class FormInput:
    """A form control (input, textarea or select)."""

    name: str = ""
    type: str = "text"

    def to_dict(self) -> dict:
        return {"name": self.name, "type": self.type}


@dataclass(frozen=True)
class Form:
    """A form and its controls."""

    action: str = ""
    method: str = "GET"
    inputs: tuple[FormInput, ...] = ()

    def to_dict(self) -> dict:
        return {
            "action": self.action,
            "method": self.method,
            "inputs": [form_input.to_dict() for form_input in self.inputs],
        }


@dataclass(frozen=True)
class Document:
    """
    Structured content extracted from normalized markup.

    Frozen so a document cannot change once the extractor has built it.
    Missing elements are represented by empty strings and empty tuples.
    """

    title: str = ""
    headings: tuple[str, ...] = ()  # H1-H6 flattened, document order
    paragraphs: tuple[str, ...] = ()  # Non-empty after trim
    links: tuple[Link, ...] = ()
    images: tuple[Image, ...] = ()
    forms: tuple[Form, ...] = ()

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "headings": list(self.headings),
            "paragraphs": list(self.paragraphs),
            "links": [link.to_dict() for link in self.links],
            "images": [image.to_dict() for image in self.images],
            "forms": [form.to_dict() for form in self.forms],
        }


@dataclass(frozen=True)
class Snippet:
    """Two-sided text excerpt, each side truncated for display."""

    site1: str
    site2: str
    type: str = "text"

    def to_dict(self) -> dict:
        return {"type": self.type, "site1": self.site1, "site2": self.site2}


@dataclass
class ContentChange:
    """
    Items whose comparison key exists on one side only.

    ``type`` is either "addition" (only on site 2) or "deletion" (only on site 1).
    """

    type: str
    content_type: str
    items: list
    count: int
    snippet: Snippet

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "content_type": self.content_type,
            "items": [str(item) for item in self.items],
            "count": self.count,
            "snippet": self.snippet.to_dict(),
        }


@dataclass
class Reordering:
    """Reorder signal derived from the LCS shortfall of two sequences."""

    content_type: str
    count: int
    description: str
    type: str = "reordering"

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "content_type": self.content_type,
            "count": self.count,
            "description": self.description,
        }


@dataclass
class ImageSourceSnippet:
    """Image sources present on one site only."""

    type: str  # "images_only_in_site1" or "images_only_in_site2"
    count: int
    examples: list[str]

    def to_dict(self) -> dict:
        return {"type": self.type, "count": self.count, "examples": list(self.examples)}


SnippetRecord = Union[Snippet, ContentChange, Reordering, ImageSourceSnippet]


@dataclass
class ContentDiffResult:
    """Outcome of reconciling two ordered content sequences."""

    differences: list[Reordering] = field(default_factory=list)
    additions: list[ContentChange] = field(default_factory=list)
    deletions: list[ContentChange] = field(default_factory=list)
    matches: int = 0
    reordered: bool = False

    @property
    def has_changes(self) -> bool:
        """True if the matcher reported anything other than plain matches."""
        return bool(self.differences or self.additions or self.deletions or self.reordered)

    def to_dict(self) -> dict:
        return {
            "differences": [d.to_dict() for d in self.differences],
            "additions": [a.to_dict() for a in self.additions],
            "deletions": [d.to_dict() for d in self.deletions],
            "matches": self.matches,
            "reordered": self.reordered,
        }


@dataclass
class Difference:
    """
    One field-level difference for a compared path.

    ``site1``/``site2`` hold the raw titles for the title field and element
    counts for every other field.
    """

    type: str
    site1: Union[str, int]
    site2: Union[str, int]
    details: list[str] = field(default_factory=list)
    snippets: list[SnippetRecord] = field(default_factory=list)

    @property
    def count_delta(self) -> int | None:
        """Absolute count difference, or None for non-numeric summaries."""
        if isinstance(self.site1, int) and isinstance(self.site2, int):
            return abs(self.site1 - self.site2)
        return None

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "site1": self.site1,
            "site2": self.site2,
            "details": list(self.details),
            "snippets": [snippet.to_dict() for snippet in self.snippets],
        }


@dataclass
class PathComparison:
    """Comparison outcome for a single path present on both sites."""

    url: str  # Path, e.g. "/about"
    differences: list[Difference] = field(default_factory=list)

    @property
    def has_differences(self) -> bool:
        return len(self.differences) > 0

    @property
    def difference_types(self) -> list[str]:
        return [difference.type for difference in self.differences]

    def to_dict(self) -> dict:
        return {
            "url": self.url,
            "has_differences": self.has_differences,
            "differences": [difference.to_dict() for difference in self.differences],
        }


@dataclass(frozen=True)
class PathError:
    """A path that could not be compared because one side failed to render."""

    path: str
    error: str

    def to_dict(self) -> dict:
        return {"path": self.path, "error": self.error}


@dataclass
class RenderResult:
    """
    Result of rendering one URL.

    ``content`` is None when the page could not be rendered; ``error`` then
    carries the reason.
    """

    url: str
    content: str | None
    status: int = 0
    links: list[str] = field(default_factory=list)
    error: str | None = None
    render_time_ms: int = 0

    @property
    def success(self) -> bool:
        return self.content is not None and self.error is None


@dataclass(frozen=True)
class Credentials:
    """HTTP basic authentication credentials for one site."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class AuthProbeResult:
    """Outcome of checking credentials against a site root."""

    success: bool
    status: int = 0
    error: str | None = None


@dataclass
class ComparisonResult:
    """
    Complete results of comparing two sites.

    ``comparisons`` holds every compared path, with or without differences.
    Run-level summaries are built from it by ``sitediff.aggregator``.
    """

    site1: str
    site2: str
    started_at: datetime
    finished_at: datetime | None = None
    comparisons: list[PathComparison] = field(default_factory=list)
    errors: list[PathError] = field(default_factory=list)
    pages_discovered_site1: int = 0
    pages_discovered_site2: int = 0

    @property
    def total_compared(self) -> int:
        return len(self.comparisons)

    @property
    def pages_with_differences(self) -> list[PathComparison]:
        return [comparison for comparison in self.comparisons if comparison.has_differences]

    @property
    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def to_dict(self) -> dict:
        return {
            "comparisons": [comparison.to_dict() for comparison in self.comparisons],
            "errors": [error.to_dict() for error in self.errors],
        }
