"""
Run-level aggregation of path comparisons.

Summaries consumed by reports: difference-type tally, the significant
subset and the addition/deletion/reordering analysis.
"""

import threading
from collections.abc import Iterable
from datetime import datetime

from .models import ComparisonResult, Difference, PathComparison, PathError

# Count delta above which a numeric difference is significant
SIGNIFICANT_COUNT_DELTA = 2


def difference_type_summary(comparisons: Iterable[PathComparison]) -> dict[str, int]:
    """Count Difference records per field kind across all paths."""
    type_counts: dict[str, int] = {}

    for comparison in comparisons:
        for difference in comparison.differences:
            type_counts[difference.type] = type_counts.get(difference.type, 0) + 1

    return type_counts


def is_significant(difference: Difference) -> bool:
    """Title changes, differences with snippets and large count deltas are significant."""
    if difference.type == "title":
        return True
    if difference.snippets:
        return True
    delta = difference.count_delta
    return delta is not None and delta > SIGNIFICANT_COUNT_DELTA


def significant_differences(
    comparisons: Iterable[PathComparison], limit: int = 5
) -> list[PathComparison]:
    """
    Select paths with significant differences.

    Returns the first ``limit`` qualifying paths in input order, each holding
    only its significant differences. Paths are not ranked by magnitude.
    """
    significant: list[PathComparison] = []

    for comparison in comparisons:
        if len(significant) >= limit:
            break
        kept = [difference for difference in comparison.differences if is_significant(difference)]
        if kept:
            significant.append(PathComparison(url=comparison.url, differences=kept))

    return significant


def offset_analysis_summary(comparisons: Iterable[PathComparison]) -> dict:
    """
    Tally additions, deletions and reorderings found in difference snippets.

    Only snippets that made it into a Difference are counted, so the totals
    are bounded by the per-field snippet caps.
    """
    summary = {
        "total_pages": 0,
        "pages_with_additions": 0,
        "pages_with_deletions": 0,
        "pages_with_reordering": 0,
        "total_additions": 0,
        "total_deletions": 0,
        "content_types": {},
    }
    content_types: dict[str, int] = summary["content_types"]

    for comparison in comparisons:
        summary["total_pages"] += 1
        has_additions = False
        has_deletions = False
        has_reordering = False

        for difference in comparison.differences:
            for snippet in difference.snippets:
                if snippet.type == "addition":
                    has_additions = True
                    summary["total_additions"] += snippet.count
                    content_types[snippet.content_type] = (
                        content_types.get(snippet.content_type, 0) + snippet.count
                    )
                elif snippet.type == "deletion":
                    has_deletions = True
                    summary["total_deletions"] += snippet.count
                    content_types[snippet.content_type] = (
                        content_types.get(snippet.content_type, 0) + snippet.count
                    )
                elif snippet.type == "reordering":
                    has_reordering = True

        if has_additions:
            summary["pages_with_additions"] += 1
        if has_deletions:
            summary["pages_with_deletions"] += 1
        if has_reordering:
            summary["pages_with_reordering"] += 1

    return summary


def build_summary(result: ComparisonResult) -> dict:
    """Build the run summary object consumed by reports."""
    timestamp = result.finished_at or datetime.now()
    return {
        "total_compared": result.total_compared,
        "pages_with_differences": len(result.pages_with_differences),
        "errors": len(result.errors),
        "site1": result.site1,
        "site2": result.site2,
        "timestamp": timestamp.isoformat(),
        "difference_types": difference_type_summary(result.comparisons),
    }


def build_report(result: ComparisonResult, limit: int = 5) -> dict:
    """
    Build the full report body written to JSON.

    Args:
        result: Completed comparison run
        limit: Maximum number of paths listed as significant

    Returns:
        Dict with summary, comparisons, errors, significant_differences and
        offset_analysis keys
    """
    differing = result.pages_with_differences
    report = {"summary": build_summary(result)}
    report.update(result.to_dict())
    report["significant_differences"] = [
        comparison.to_dict() for comparison in significant_differences(differing, limit=limit)
    ]
    report["offset_analysis"] = offset_analysis_summary(differing)
    return report


class ResultCollector:
    """
    Thread-safe sink for per-path outcomes.

    Comparisons may run in parallel workers; appends are serialized with a lock.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._comparisons: list[PathComparison] = []
        self._errors: list[PathError] = []

    def add_comparison(self, comparison: PathComparison) -> None:
        with self._lock:
            self._comparisons.append(comparison)

    def add_error(self, path: str, error: str) -> None:
        with self._lock:
            self._errors.append(PathError(path=path, error=error))

    @property
    def comparisons(self) -> list[PathComparison]:
        with self._lock:
            return list(self._comparisons)

    @property
    def errors(self) -> list[PathError]:
        with self._lock:
            return list(self._errors)
