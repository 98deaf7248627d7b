"""
Unit tests for run-level aggregation.
"""

import threading
from datetime import datetime

from sitediff.aggregator import (
    ResultCollector,
    build_report,
    build_summary,
    difference_type_summary,
    is_significant,
    offset_analysis_summary,
    significant_differences,
)
from sitediff.models import (
    ComparisonResult,
    ContentChange,
    Difference,
    PathComparison,
    PathError,
    Reordering,
    Snippet,
)


def addition(content_type: str, count: int = 1) -> ContentChange:
    return ContentChange(
        type="addition",
        content_type=content_type,
        items=["x"] * count,
        count=count,
        snippet=Snippet(site1="", site2="x"),
    )


def deletion(content_type: str, count: int = 1) -> ContentChange:
    return ContentChange(
        type="deletion",
        content_type=content_type,
        items=["x"] * count,
        count=count,
        snippet=Snippet(site1="x", site2=""),
    )


class TestDifferenceTypeSummary:
    """Tests for difference type tally."""

    def test_counts_per_kind(self):
        """Test counting Difference records per field kind."""
        comparisons = [
            PathComparison(
                url="/",
                differences=[Difference("title", "A", "B"), Difference("forms", 1, 2)],
            ),
            PathComparison(url="/about", differences=[Difference("forms", 0, 1)]),
            PathComparison(url="/same"),
        ]

        assert difference_type_summary(comparisons) == {"title": 1, "forms": 2}

    def test_empty(self):
        """Test tally of no comparisons."""
        assert difference_type_summary([]) == {}


class TestSignificance:
    """Tests for significance rules."""

    def test_title_always_significant(self):
        """Test that title differences qualify."""
        assert is_significant(Difference("title", "A", "B")) is True

    def test_snippets_make_significant(self):
        """Test that any snippet qualifies a difference."""
        assert is_significant(Difference("headings", 2, 2, snippets=[addition("heading")])) is True

    def test_count_delta_threshold(self):
        """Test that only deltas above two qualify."""
        assert is_significant(Difference("images", 1, 3)) is False
        assert is_significant(Difference("images", 1, 4)) is True

    def test_first_paths_in_input_order(self):
        """Test that selection keeps input order and stops at the limit."""
        comparisons = [
            PathComparison(url=f"/page{i}", differences=[Difference("title", "A", "B")])
            for i in range(8)
        ]

        selected = significant_differences(comparisons)

        assert [c.url for c in selected] == [f"/page{i}" for i in range(5)]

    def test_not_ranked_by_magnitude(self):
        """Test that a larger later difference does not displace earlier ones."""
        comparisons = [
            PathComparison(url="/small", differences=[Difference("images", 0, 3)]),
            PathComparison(url="/large", differences=[Difference("images", 0, 50)]),
        ]

        selected = significant_differences(comparisons, limit=1)

        assert [c.url for c in selected] == ["/small"]

    def test_keeps_only_significant_differences(self):
        """Test that insignificant differences are filtered out of each path."""
        comparisons = [
            PathComparison(
                url="/",
                differences=[Difference("forms", 1, 2), Difference("title", "A", "B")],
            ),
            PathComparison(url="/minor", differences=[Difference("forms", 1, 2)]),
        ]

        selected = significant_differences(comparisons)

        assert len(selected) == 1
        assert selected[0].difference_types == ["title"]
        # Input is left untouched
        assert comparisons[0].difference_types == ["forms", "title"]

    def test_zero_limit(self):
        """Test that a zero limit selects nothing."""
        comparisons = [PathComparison(url="/", differences=[Difference("title", "A", "B")])]

        assert significant_differences(comparisons, limit=0) == []


class TestOffsetAnalysis:
    """Tests for addition/deletion/reordering analysis."""

    def test_tallies(self):
        """Test page and item tallies across snippet kinds."""
        comparisons = [
            PathComparison(
                url="/",
                differences=[
                    Difference(
                        "headings",
                        2,
                        3,
                        snippets=[addition("heading"), deletion("heading", 2)],
                    ),
                    Difference(
                        "paragraphs",
                        3,
                        3,
                        snippets=[
                            Reordering("paragraph", 1, "1 paragraphs appear to be reordered"),
                            addition("paragraph", 3),
                        ],
                    ),
                ],
            ),
            PathComparison(
                url="/about",
                differences=[Difference("title", "A", "B", snippets=[Snippet("A", "B")])],
            ),
        ]

        summary = offset_analysis_summary(comparisons)

        assert summary == {
            "total_pages": 2,
            "pages_with_additions": 1,
            "pages_with_deletions": 1,
            "pages_with_reordering": 1,
            "total_additions": 4,
            "total_deletions": 2,
            "content_types": {"heading": 3, "paragraph": 3},
        }

    def test_empty(self):
        """Test analysis of no comparisons."""
        summary = offset_analysis_summary([])

        assert summary["total_pages"] == 0
        assert summary["content_types"] == {}


class TestBuildReport:
    """Tests for run summary and report assembly."""

    def make_result(self) -> ComparisonResult:
        return ComparisonResult(
            site1="https://staging.example.com",
            site2="https://example.com",
            started_at=datetime(2024, 1, 1, 12, 0, 0),
            finished_at=datetime(2024, 1, 1, 12, 5, 0),
            comparisons=[
                PathComparison(
                    url="/",
                    differences=[
                        Difference("title", "A", "B"),
                        Difference("headings", 1, 2, snippets=[addition("heading")]),
                    ],
                ),
                PathComparison(url="/about"),
            ],
            errors=[PathError(path="/broken", error="HTTP 500: Server Error")],
        )

    def test_build_summary(self):
        """Test run summary contents."""
        summary = build_summary(self.make_result())

        assert summary == {
            "total_compared": 2,
            "pages_with_differences": 1,
            "errors": 1,
            "site1": "https://staging.example.com",
            "site2": "https://example.com",
            "timestamp": "2024-01-01T12:05:00",
            "difference_types": {"title": 1, "headings": 1},
        }

    def test_build_report(self):
        """Test that the report combines the result with its aggregates."""
        report = build_report(self.make_result())

        assert list(report) == [
            "summary",
            "comparisons",
            "errors",
            "significant_differences",
            "offset_analysis",
        ]
        assert [c["url"] for c in report["comparisons"]] == ["/", "/about"]
        assert report["errors"] == [{"path": "/broken", "error": "HTTP 500: Server Error"}]
        assert report["significant_differences"][0]["url"] == "/"
        assert report["offset_analysis"]["total_pages"] == 1
        assert report["offset_analysis"]["total_additions"] == 1

    def test_build_report_limit(self):
        """Test the significant path limit."""
        report = build_report(self.make_result(), limit=0)

        assert report["significant_differences"] == []


class TestResultCollector:
    """Tests for ResultCollector class."""

    def test_collects_comparisons_and_errors(self):
        """Test appending comparisons and path errors."""
        collector = ResultCollector()
        collector.add_comparison(PathComparison(url="/"))
        collector.add_error("/broken", "HTTP 500: Internal Server Error")

        assert [c.url for c in collector.comparisons] == ["/"]
        assert collector.errors[0].path == "/broken"
        assert collector.errors[0].error == "HTTP 500: Internal Server Error"

    def test_returns_copies(self):
        """Test that callers cannot mutate collected lists."""
        collector = ResultCollector()
        collector.comparisons.append(PathComparison(url="/"))

        assert collector.comparisons == []

    def test_concurrent_appends(self):
        """Test that appends from parallel workers are all kept."""
        collector = ResultCollector()

        def worker(worker_id: int):
            for i in range(200):
                collector.add_comparison(PathComparison(url=f"/{worker_id}/{i}"))

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(collector.comparisons) == 1600
        assert len({c.url for c in collector.comparisons}) == 1600
