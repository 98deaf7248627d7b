"""
Terminal output formatter for CLI.

Handles all display logic - no business logic, just presentation.
"""

from sitediff.aggregator import build_summary, offset_analysis_summary
from sitediff.models import ComparisonResult, Difference

MAX_SNIPPETS_SHOWN = 5


def print_results_summary(result: ComparisonResult) -> None:
    """
    Print a human-readable summary of results to terminal.

    Shows overall statistics, the change analysis and details for paths
    with differences.

    Args:
        result: ComparisonResult for the run
    """
    summary = build_summary(result)
    with_differences = result.pages_with_differences

    print("\n" + "=" * 80)
    print("SITE COMPARISON REPORT")
    print("=" * 80)
    print(f"\nSite 1:                 {summary['site1']}")
    print(f"Site 2:                 {summary['site2']}")
    print(f"Pages Discovered:       {result.pages_discovered_site1} / {result.pages_discovered_site2}")
    print(f"Pages Compared:         {summary['total_compared']}")
    print(f"Pages With Differences: {summary['pages_with_differences']}")
    print(f"Errors:                 {summary['errors']}")

    if result.finished_at:
        duration = (result.finished_at - result.started_at).total_seconds()
        print(f"Duration:               {duration:.1f} seconds")

    if summary["difference_types"]:
        print("\nDifference Types:")
        for difference_type, count in summary["difference_types"].items():
            print(f"  {difference_type}: {count}")

    offsets = offset_analysis_summary(with_differences)
    if offsets["total_pages"] > 0:
        print("\nContent Change Analysis:")
        print(
            f"  Pages with additions:  {offsets['pages_with_additions']}"
            f" ({offsets['total_additions']} items)"
        )
        print(
            f"  Pages with deletions:  {offsets['pages_with_deletions']}"
            f" ({offsets['total_deletions']} items)"
        )
        print(f"  Pages with reordering: {offsets['pages_with_reordering']}")

    print(f"\n{'=' * 80}")
    print(f"Differences Detected: {len(with_differences)} / {summary['total_compared']} paths")
    print(f"{'=' * 80}\n")

    if not with_differences:
        print("✓ No significant differences detected.\n")
    else:
        for i, comparison in enumerate(with_differences, 1):
            print(f"[{i}] {comparison.url}")
            for difference in comparison.differences:
                _print_difference(difference)
            print("\n" + "-" * 80 + "\n")

    if result.has_errors:
        print(f"\n{'=' * 80}")
        print(f"FAILED PATHS ({len(result.errors)})")
        print(f"{'=' * 80}\n")

        for i, error in enumerate(result.errors, 1):
            print(f"[{i}] {error.path}")
            print(f"    • {error.error}")


def _print_difference(difference: Difference) -> None:
    """
    Print one field difference with its details and snippets.

    Args:
        difference: Difference to display
    """
    print(f"\n    {difference.type.upper()}: {difference.site1} vs {difference.site2}")

    for detail in difference.details:
        print(f"      • {detail}")

    for snippet in difference.snippets[:MAX_SNIPPETS_SHOWN]:
        if snippet.type == "addition":
            print(f"      + {snippet.snippet.site2}")
        elif snippet.type == "deletion":
            print(f"      - {snippet.snippet.site1}")
        elif snippet.type == "reordering":
            print(f"      ~ {snippet.description}")
        elif snippet.type.startswith("images_only_in_"):
            print(f"      {snippet.type}: {', '.join(snippet.examples)}")
        else:
            print(f'      "{snippet.site1}" -> "{snippet.site2}"')

    if len(difference.snippets) > MAX_SNIPPETS_SHOWN:
        print(f"      ... and {len(difference.snippets) - MAX_SNIPPETS_SHOWN} more")
