"""
Sequence matcher for offset-aware content comparison.

Reconciles two ordered content sequences by comparison key instead of by
position, so an inserted paragraph does not make every following paragraph
look different. Reports additions, deletions and a reorder signal derived
from the longest common subsequence (LCS) of both key sequences.

Reorder signal caveat: an addition or deletion also shortens the LCS relative
to the shorter sequence, so ``reordered`` can be raised without any real
transposition. That is the default behavior. Pass
``detect_true_reordering=True`` to compute the LCS over shared keys only,
which limits the signal to genuine order changes.
"""

import re
from collections.abc import Hashable, Sequence

from .models import ContentChange, ContentDiffResult, Reordering, Snippet

_WHITESPACE_RE = re.compile(r"\s+")

# Snippet lengths for change records and two-sided field snippets
CHANGE_SNIPPET_LENGTH = 150
DEFAULT_SNIPPET_LENGTH = 100


def comparison_key(item) -> str:
    """Project an element onto its comparison key (trimmed, collapsed, case-folded)."""
    text = item if isinstance(item, str) else str(item)
    return _WHITESPACE_RE.sub(" ", text.strip()).casefold()


def truncate(text: str, max_length: int = DEFAULT_SNIPPET_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[:max_length] + "..."


def get_snippet(text1, text2, max_length: int = DEFAULT_SNIPPET_LENGTH) -> Snippet:
    """Build a two-sided snippet, truncating each side to ``max_length`` characters."""
    return Snippet(site1=truncate(str(text1), max_length), site2=truncate(str(text2), max_length))


def longest_common_subsequence(seq_a: Sequence[Hashable], seq_b: Sequence[Hashable]) -> list:
    """
    Compute the longest common subsequence with the standard DP table.

    O(len(seq_a) * len(seq_b)) time and space.
    """
    m, n = len(seq_a), len(seq_b)
    table = [[0] * (n + 1) for _ in range(m + 1)]

    for i in range(1, m + 1):
        for j in range(1, n + 1):
            if seq_a[i - 1] == seq_b[j - 1]:
                table[i][j] = table[i - 1][j - 1] + 1
            else:
                table[i][j] = max(table[i - 1][j], table[i][j - 1])

    lcs = []
    i, j = m, n
    while i > 0 and j > 0:
        if seq_a[i - 1] == seq_b[j - 1]:
            lcs.append(seq_a[i - 1])
            i -= 1
            j -= 1
        elif table[i - 1][j] > table[i][j - 1]:
            i -= 1
        else:
            j -= 1

    lcs.reverse()
    return lcs


class ContentSequenceMatcher:
    """
    Matches two content sequences and classifies their differences.

    Holds only configuration, so a single instance can serve concurrent callers.
    """

    def __init__(self, max_items: int | None = None, detect_true_reordering: bool = False):
        """
        Initialize the matcher.

        Args:
            max_items: Optional cap applied to both sequences before matching,
                bounding the O(n*m) LCS table for very long pages
            detect_true_reordering: Compute the reorder signal over shared keys
                only, so additions and deletions alone never raise it
        """
        self.max_items = max_items
        self.detect_true_reordering = detect_true_reordering

    def match(
        self,
        seq_a: Sequence | None,
        seq_b: Sequence | None,
        content_type: str = "content",
    ) -> ContentDiffResult:
        """
        Reconcile two ordered sequences.

        Args:
            seq_a: Items from site 1
            seq_b: Items from site 2
            content_type: Label used in records, e.g. "heading"

        Returns:
            ContentDiffResult with additions, deletions, matches and reorder signal
        """
        items_a = list(seq_a or [])
        items_b = list(seq_b or [])
        if self.max_items is not None:
            items_a = items_a[: self.max_items]
            items_b = items_b[: self.max_items]

        keys_a = [comparison_key(item) for item in items_a]
        keys_b = [comparison_key(item) for item in items_b]

        groups_a = _group_by_key(keys_a, items_a)
        groups_b = _group_by_key(keys_b, items_b)

        matched = {key for key in groups_a if key in groups_b}

        additions = [
            ContentChange(
                type="addition",
                content_type=content_type,
                items=items,
                count=len(items),
                snippet=get_snippet("", items[0], CHANGE_SNIPPET_LENGTH),
            )
            for key, items in groups_b.items()
            if key not in matched
        ]

        deletions = [
            ContentChange(
                type="deletion",
                content_type=content_type,
                items=items,
                count=len(items),
                snippet=get_snippet(items[0], "", CHANGE_SNIPPET_LENGTH),
            )
            for key, items in groups_a.items()
            if key not in matched
        ]

        if self.detect_true_reordering:
            keys_a = [key for key in keys_a if key in matched]
            keys_b = [key for key in keys_b if key in matched]

        reorder_count = min(len(keys_a), len(keys_b)) - len(
            longest_common_subsequence(keys_a, keys_b)
        )

        differences = []
        if reorder_count > 0:
            differences.append(
                Reordering(
                    content_type=content_type,
                    count=reorder_count,
                    description=f"{reorder_count} {content_type}s appear to be reordered",
                )
            )

        return ContentDiffResult(
            differences=differences,
            additions=additions,
            deletions=deletions,
            matches=len(matched),
            reordered=reorder_count > 0,
        )


def _group_by_key(keys: list[str], items: list) -> dict[str, list]:
    """Group original items by comparison key, keeping first-seen key order."""
    groups: dict[str, list] = {}
    for key, item in zip(keys, items):
        groups.setdefault(key, []).append(item)
    return groups
