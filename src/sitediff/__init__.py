"""
Site Comparison Engine.

Compares two versions of a website (e.g. staging vs. production) page by page
and reports structural and content drift beyond cosmetic noise. Designed to be
reusable by the CLI and other front ends.
"""

# Core models
# Main orchestrator
from .config import ComparatorConfig
from .differ import FieldComparator, PageDiffer
from .extractor import DocumentExtractor
from .job_runner import JobRunner
from .matcher import ContentSequenceMatcher
from .models import (
    ComparisonResult,
    ContentDiffResult,
    Difference,
    Document,
    PathComparison,
    PathError,
    RenderResult,
)
from .normalizer import ContentNormalizer

__all__ = [
    # Models
    "Document",
    "ContentDiffResult",
    "Difference",
    "PathComparison",
    "PathError",
    "RenderResult",
    "ComparisonResult",
    # Engine components
    "ComparatorConfig",
    "ContentNormalizer",
    "DocumentExtractor",
    "ContentSequenceMatcher",
    "FieldComparator",
    "PageDiffer",
    # Main entry point
    "JobRunner",
]
