"""
Storage layer for persisting comparison results.

Provides an abstract interface for storage backends and a file-based
implementation for JSON, CSV and HTML reports.
"""

import csv
import json
import logging
from abc import ABC, abstractmethod
from html import escape
from pathlib import Path

from .aggregator import (
    build_report,
    build_summary,
    offset_analysis_summary,
    significant_differences,
)
from .models import ComparisonResult, Difference, PathComparison

logger = logging.getLogger(__name__)

FORMATS = ("json", "csv", "html")


class StorageError(Exception):
    """Base exception for storage errors."""

    pass


class Storage(ABC):
    """Abstract interface for storage backends."""

    @abstractmethod
    def save(
        self, result: ComparisonResult, format: str = "json", output_path: str | None = None
    ) -> str:
        """
        Save comparison results.

        Args:
            result: ComparisonResult to save
            format: Output format ('json', 'csv' or 'html')
            output_path: Optional output file name. If not provided, generates one.

        Returns:
            Path to the saved file (for file storage) or identifier

        Raises:
            StorageError: If save operation fails
        """
        pass


class FileStorage(Storage):
    """
    File-based storage implementation.

    Writes JSON for programmatic access, CSV for spreadsheets and a
    self-contained HTML report for people.
    """

    def __init__(self, output_directory: str = "./comparator-results"):
        """
        Initialize file storage.

        Args:
            output_directory: Directory to save output files
        """
        self.output_directory = Path(output_directory)
        self.output_directory.mkdir(parents=True, exist_ok=True)

    def save(
        self, result: ComparisonResult, format: str = "json", output_path: str | None = None
    ) -> str:
        format_lower = format.lower()

        if format_lower not in FORMATS:
            raise StorageError(f"Unsupported format: {format}. Use 'json', 'csv' or 'html'.")

        if output_path is None:
            timestamp = result.started_at.strftime("%Y-%m-%dT%H-%M-%S")
            prefix = "report" if format_lower == "html" else "results"
            output_path = f"{prefix}-{timestamp}.{format_lower}"

        output_file_path = self.output_directory / output_path

        try:
            if format_lower == "json":
                self._save_json(result, output_file_path)
            elif format_lower == "csv":
                self._save_csv(result, output_file_path)
            else:
                self._save_html(result, output_file_path)
        except (OSError, TypeError, ValueError) as e:
            raise StorageError(f"Failed to save results: {str(e)}")

        logger.info("Saved %s report to %s", format_lower, output_file_path)
        return str(output_file_path)

    def _save_json(self, result: ComparisonResult, output_path: Path):
        with open(output_path, "w", encoding="utf-8") as jsonfile:
            json.dump(build_report(result), jsonfile, indent=2, ensure_ascii=False)

    def _save_csv(self, result: ComparisonResult, output_path: Path):
        """
        Save results to CSV format.

        One row per compared path followed by one row per path-level error.
        """
        summary = build_summary(result)

        with open(output_path, "w", newline="", encoding="utf-8") as csvfile:
            csvfile.write("# Site Comparison Report\n")
            csvfile.write(f"# Site 1: {summary['site1']}\n")
            csvfile.write(f"# Site 2: {summary['site2']}\n")
            csvfile.write(f"# Generated: {summary['timestamp']}\n")
            csvfile.write(f"# Pages Compared: {summary['total_compared']}\n")
            csvfile.write(f"# Pages With Differences: {summary['pages_with_differences']}\n")
            csvfile.write(f"# Errors: {summary['errors']}\n")
            csvfile.write("\n")

            fieldnames = ["Path", "Has Differences", "Difference Types", "Details", "Error"]
            writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
            writer.writeheader()

            for comparison in result.comparisons:
                writer.writerow(
                    {
                        "Path": comparison.url,
                        "Has Differences": "Yes" if comparison.has_differences else "No",
                        "Difference Types": ", ".join(comparison.difference_types),
                        "Details": "; ".join(_flatten_details(comparison)),
                        "Error": "",
                    }
                )

            for error in result.errors:
                writer.writerow(
                    {
                        "Path": error.path,
                        "Has Differences": "",
                        "Difference Types": "",
                        "Details": "",
                        "Error": error.error,
                    }
                )

    def _save_html(self, result: ComparisonResult, output_path: Path):
        with open(output_path, "w", encoding="utf-8") as htmlfile:
            htmlfile.write(render_html_report(result))


def _flatten_details(comparison: PathComparison) -> list[str]:
    lines = []
    for difference in comparison.differences:
        if difference.details:
            lines.extend(f"{difference.type}: {detail}" for detail in difference.details)
        else:
            lines.append(f"{difference.type}: {difference.site1} -> {difference.site2}")
    return lines


REPORT_STYLE = """
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; margin: 0; padding: 20px; background: #f5f5f5; }
.container { max-width: 1200px; margin: 0 auto; background: white; border-radius: 8px; }
.header { background: #2563eb; color: white; padding: 20px; border-radius: 8px 8px 0 0; }
.content { padding: 20px; }
.summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; margin-bottom: 30px; }
.metric { background: #f8fafc; padding: 15px; border-radius: 6px; text-align: center; }
.metric h3 { margin: 0 0 10px 0; color: #475569; font-size: 14px; }
.metric .value { font-size: 28px; font-weight: bold; color: #1e293b; }
.section h2 { color: #1e293b; border-bottom: 2px solid #e2e8f0; padding-bottom: 10px; }
.difference { background: #fef2f2; border: 1px solid #fecaca; padding: 15px; margin-bottom: 15px; border-radius: 6px; }
.diff-item { background: white; padding: 10px; margin: 5px 0; border-radius: 4px; font-family: monospace; font-size: 12px; }
.diff-type { display: inline-block; background: #e9ecef; padding: 2px 6px; border-radius: 3px; font-size: 10px; margin-right: 10px; }
.diff-details { margin: 10px 0; padding: 10px; background: #f8f9fa; border-left: 3px solid #007bff; }
.error { background: #fffbeb; border: 1px solid #fed7aa; padding: 15px; margin-bottom: 15px; border-radius: 6px; }
.no-differences { text-align: center; padding: 40px; color: #059669; }
"""


def render_html_report(result: ComparisonResult) -> str:
    """Render a self-contained HTML report. All page-derived text is escaped."""
    summary = build_summary(result)
    with_differences = result.pages_with_differences
    offsets = offset_analysis_summary(with_differences)
    significant = significant_differences(with_differences)

    parts = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '<meta charset="UTF-8">',
        f"<title>Comparator Report - {escape(summary['timestamp'])}</title>",
        f"<style>{REPORT_STYLE}</style>",
        "</head>",
        "<body>",
        '<div class="container">',
        '<div class="header">',
        "<h1>Comparator Comparison Report</h1>",
        f"<p>Generated on {escape(summary['timestamp'])}</p>",
        f"<p><strong>Site 1:</strong> {escape(summary['site1'])}<br>"
        f"<strong>Site 2:</strong> {escape(summary['site2'])}</p>",
        "</div>",
        '<div class="content">',
        '<div class="summary">',
        _metric("Pages Compared", summary["total_compared"]),
        _metric("Differences Found", summary["pages_with_differences"]),
        _metric("Errors", summary["errors"]),
        "</div>",
    ]

    if summary["difference_types"]:
        parts.append('<div class="section"><h2>Difference Types Found</h2><div class="summary">')
        for difference_type, count in summary["difference_types"].items():
            parts.append(_metric(difference_type, count))
        parts.append("</div></div>")

    if offsets["total_pages"] > 0:
        parts.append('<div class="section"><h2>Content Change Analysis</h2><div class="summary">')
        parts.append(
            _metric(
                "Pages with Additions",
                offsets["pages_with_additions"],
                f"{offsets['total_additions']} total items added",
            )
        )
        parts.append(
            _metric(
                "Pages with Deletions",
                offsets["pages_with_deletions"],
                f"{offsets['total_deletions']} total items removed",
            )
        )
        parts.append(
            _metric("Pages with Reordering", offsets["pages_with_reordering"], "Content order changes")
        )
        parts.append("</div>")
        if offsets["content_types"]:
            parts.append("<h3>Content Changes by Type:</h3><div class=\"summary\">")
            for content_type, count in offsets["content_types"].items():
                parts.append(_metric(content_type, count))
            parts.append("</div>")
        parts.append("</div>")

    if significant:
        parts.append('<div class="section"><h2>Most Significant Differences</h2>')
        parts.extend(_render_comparison(comparison, with_details=False) for comparison in significant)
        parts.append("</div>")

    if with_differences:
        parts.append('<div class="section"><h2>Pages with Differences</h2>')
        parts.extend(_render_comparison(comparison) for comparison in with_differences)
        parts.append("</div>")
    else:
        parts.append('<div class="no-differences"><h2>No significant differences found!</h2></div>')

    if result.has_errors:
        parts.append('<div class="section"><h2>Errors Encountered</h2>')
        for error in result.errors:
            parts.append(
                f'<div class="error"><strong>{escape(error.path)}:</strong> {escape(error.error)}</div>'
            )
        parts.append("</div>")

    parts.extend(["</div>", "</div>", "</body>", "</html>"])
    return "\n".join(parts)


def _metric(label: str, value, note: str | None = None) -> str:
    note_html = f'<div style="font-size: 12px; color: #64748b;">{escape(note)}</div>' if note else ""
    return (
        f'<div class="metric"><h3>{escape(str(label))}</h3>'
        f'<div class="value">{escape(str(value))}</div>{note_html}</div>'
    )


def _render_comparison(comparison: PathComparison, with_details: bool = True) -> str:
    items = "".join(_render_difference(difference, with_details) for difference in comparison.differences)
    return f'<div class="difference"><h4>{escape(comparison.url)}</h4>{items}</div>'


def _render_difference(difference: Difference, with_details: bool) -> str:
    html = [
        '<div class="diff-item">',
        f'<span class="diff-type">{escape(difference.type)}</span>',
        f"<strong>Site 1:</strong> {escape(str(difference.site1))} | "
        f"<strong>Site 2:</strong> {escape(str(difference.site2))}",
    ]

    if with_details and difference.details:
        lines = "<br>".join(f"&bull; {escape(detail)}" for detail in difference.details)
        html.append(f'<div class="diff-details"><strong>Details:</strong><br>{lines}</div>')

    if with_details and difference.snippets:
        lines = "<br><br>".join(_render_snippet(snippet) for snippet in difference.snippets)
        html.append(f'<div class="diff-details"><strong>Specific Differences:</strong><br>{lines}</div>')

    html.append("</div>")
    return "".join(html)


def _render_snippet(snippet) -> str:
    if snippet.type == "addition":
        label = f"Added {snippet.content_type}" + (f"s ({snippet.count})" if snippet.count > 1 else "")
        return f'&bull; <strong>{escape(label)}:</strong><br>"{escape(snippet.snippet.site2)}"'
    if snippet.type == "deletion":
        label = f"Removed {snippet.content_type}" + (f"s ({snippet.count})" if snippet.count > 1 else "")
        return f'&bull; <strong>{escape(label)}:</strong><br>"{escape(snippet.snippet.site1)}"'
    if snippet.type == "reordering":
        return f"&bull; <strong>{escape(snippet.description)}</strong>"
    if snippet.type in ("images_only_in_site1", "images_only_in_site2"):
        site_label = "Site 1 only" if snippet.type == "images_only_in_site1" else "Site 2 only"
        examples = ", ".join(f'"{escape(src)}"' for src in snippet.examples)
        return f"&bull; <strong>{site_label} ({snippet.count} images):</strong><br>{examples}"
    return (
        f'&bull; Site 1: "{escape(snippet.site1)}"<br>'
        f'Site 2: "{escape(snippet.site2)}"'
    )
