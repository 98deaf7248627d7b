"""
Markup normalizer for removing spurious differences between two sites.

Strips noise (configured elements, attributes and class tokens, comments),
rewrites absolute references from one domain to the other and collapses
whitespace so both pages can be compared like for like.
"""

import re
from collections.abc import Iterable

from bs4 import BeautifulSoup, Comment

from .config import DEFAULT_IGNORE_ATTRIBUTES, DEFAULT_IGNORE_CLASSES, DEFAULT_IGNORE_ELEMENTS

_WHITESPACE_RE = re.compile(r"\s+")
_INTER_TAG_WHITESPACE_RE = re.compile(r">\s+<")

# Attributes whose values are rewritten from the source to the target domain
URL_ATTRIBUTES = ("href", "src")


class ContentNormalizer:
    """
    Canonicalizes rendered markup.

    Class tokens are dropped when they *contain* any ignore-class token, so a
    legitimate class such as ``randomized-grid`` is removed along with
    ``random``. Configure narrower tokens if that matters for a site.
    """

    def __init__(
        self,
        ignore_elements: Iterable[str] | None = None,
        ignore_attributes: Iterable[str] | None = None,
        ignore_classes: Iterable[str] | None = None,
    ):
        """
        Initialize the normalizer.

        Args:
            ignore_elements: Tag names removed together with their content
            ignore_attributes: Attribute names removed from every element
            ignore_classes: Substrings; any class token containing one is dropped
        """
        self.ignore_elements = set(
            DEFAULT_IGNORE_ELEMENTS if ignore_elements is None else ignore_elements
        )
        self.ignore_attributes = set(
            DEFAULT_IGNORE_ATTRIBUTES if ignore_attributes is None else ignore_attributes
        )
        self.ignore_classes = set(
            DEFAULT_IGNORE_CLASSES if ignore_classes is None else ignore_classes
        )

    def normalize(self, html: str | None, source_domain: str, target_domain: str) -> str:
        """
        Normalize markup for comparison.

        Args:
            html: Rendered markup
            source_domain: Domain string to replace in href/src values
            target_domain: Domain string to substitute for it

        Returns:
            Normalized markup string
        """
        if not html:
            return ""

        soup = BeautifulSoup(html, "lxml")

        self._remove_ignored_elements(soup)
        self._clean_attributes(soup)
        self._rewrite_domains(soup, source_domain, target_domain)
        self._remove_comments(soup)

        return self._collapse_whitespace(str(soup))

    def _remove_ignored_elements(self, soup: BeautifulSoup):
        if not self.ignore_elements:
            return

        for tag in soup.find_all(list(self.ignore_elements)):
            # Nested matches go away with their ancestor
            if tag.decomposed:
                continue
            tag.decompose()

    def _clean_attributes(self, soup: BeautifulSoup):
        for tag in soup.find_all(True):
            for attr in self.ignore_attributes:
                if attr in tag.attrs:
                    del tag[attr]

            classes = tag.get("class")
            if classes is None:
                continue
            if isinstance(classes, str):
                classes = classes.split()

            kept = [
                cls
                for cls in classes
                if not any(token in cls for token in self.ignore_classes)
            ]
            if kept:
                tag["class"] = kept
            else:
                del tag["class"]

    def _rewrite_domains(self, soup: BeautifulSoup, source_domain: str, target_domain: str):
        if not source_domain or source_domain == target_domain:
            return

        for attr in URL_ATTRIBUTES:
            for tag in soup.find_all(attrs={attr: True}):
                value = tag.get(attr)
                if not isinstance(value, str) or source_domain not in value:
                    continue
                # Already rewritten; only reachable when the target contains the source
                if source_domain in target_domain and target_domain in value:
                    continue
                # Every occurrence, so a second pass has nothing left to rewrite
                tag[attr] = value.replace(source_domain, target_domain)

    def _remove_comments(self, soup: BeautifulSoup):
        for comment in soup.find_all(string=lambda text: isinstance(text, Comment)):
            comment.extract()

    def _collapse_whitespace(self, markup: str) -> str:
        markup = _WHITESPACE_RE.sub(" ", markup)
        markup = _INTER_TAG_WHITESPACE_RE.sub("><", markup)
        return markup.strip()
