"""
Content differ for comparing the same page on two sites.

Each field comparator produces at most one Difference per field kind. The
PageDiffer runs normalize -> extract -> compare for a single path.
"""

from collections.abc import Sequence

from .config import ComparatorConfig
from .extractor import DocumentExtractor
from .matcher import ContentSequenceMatcher, get_snippet
from .models import (
    Difference,
    Document,
    Form,
    Image,
    ImageSourceSnippet,
    Link,
    PathComparison,
)
from .normalizer import ContentNormalizer

# Overall snippet caps per field kind (None means uncapped)
HEADING_SNIPPET_LIMIT = 5
PARAGRAPH_SNIPPET_LIMIT = 3
LINK_SNIPPET_LIMIT = None

IMAGE_EXAMPLE_LIMIT = 2


class FieldComparator:
    """
    Per-field comparison policies.

    Sequence fields (headings, paragraphs, link texts) go through the
    ContentSequenceMatcher; images and forms use count and set rules.
    """

    def __init__(self, matcher: ContentSequenceMatcher | None = None):
        self.matcher = matcher or ContentSequenceMatcher()

    def compare_title(self, title1: str, title2: str) -> Difference | None:
        if title1.strip() == title2.strip():
            return None

        return Difference(
            type="title",
            site1=title1,
            site2=title2,
            snippets=[get_snippet(title1, title2)],
        )

    def compare_headings(self, headings1: Sequence[str], headings2: Sequence[str]) -> Difference | None:
        return self._compare_sequence(
            "headings",
            "heading",
            headings1,
            headings2,
            snippet_limit=HEADING_SNIPPET_LIMIT,
        )

    def compare_paragraphs(
        self, paragraphs1: Sequence[str], paragraphs2: Sequence[str]
    ) -> Difference | None:
        return self._compare_sequence(
            "paragraphs",
            "paragraph",
            paragraphs1,
            paragraphs2,
            snippet_limit=PARAGRAPH_SNIPPET_LIMIT,
        )

    def compare_links(self, links1: Sequence[Link], links2: Sequence[Link]) -> Difference | None:
        """
        Compare links by their visible text.

        Links without text take part in the count check only.
        """
        texts1 = [link.text for link in links1 if link.text]
        texts2 = [link.text for link in links2 if link.text]

        return self._compare_sequence(
            "links",
            "link",
            texts1,
            texts2,
            snippet_limit=LINK_SNIPPET_LIMIT,
            count1=len(links1),
            count2=len(links2),
            changed_label="have different text",
        )

    def compare_images(self, images1: Sequence[Image], images2: Sequence[Image]) -> Difference | None:
        details: list[str] = []
        snippets: list[ImageSourceSnippet] = []

        if len(images1) != len(images2):
            details.append(f"Different number of images: {len(images1)} vs {len(images2)}")

        missing_alt1 = sum(1 for image in images1 if not image.alt.strip())
        missing_alt2 = sum(1 for image in images2 if not image.alt.strip())

        if missing_alt1 != missing_alt2:
            details.append(
                f"Different number of images without alt text: {missing_alt1} vs {missing_alt2}"
            )

        srcs1 = [image.src for image in images1 if image.src]
        srcs2 = [image.src for image in images2 if image.src]
        srcs1_set = set(srcs1)
        srcs2_set = set(srcs2)

        unique_srcs1 = [src for src in srcs1 if src not in srcs2_set]
        unique_srcs2 = [src for src in srcs2 if src not in srcs1_set]

        if unique_srcs1 or unique_srcs2:
            details.append("Different image sources found")
            if unique_srcs1:
                snippets.append(
                    ImageSourceSnippet(
                        type="images_only_in_site1",
                        count=len(unique_srcs1),
                        examples=unique_srcs1[:IMAGE_EXAMPLE_LIMIT],
                    )
                )
            if unique_srcs2:
                snippets.append(
                    ImageSourceSnippet(
                        type="images_only_in_site2",
                        count=len(unique_srcs2),
                        examples=unique_srcs2[:IMAGE_EXAMPLE_LIMIT],
                    )
                )

        if not details:
            return None

        return Difference(
            type="images",
            site1=len(images1),
            site2=len(images2),
            details=details,
            snippets=snippets,
        )

    def compare_forms(self, forms1: Sequence[Form], forms2: Sequence[Form]) -> Difference | None:
        """
        Compare form counts, action counts and total input counts.

        Forms are not matched individually, so input counts that move
        between forms without changing the total go unnoticed.
        """
        details: list[str] = []

        if len(forms1) != len(forms2):
            details.append(f"Different number of forms: {len(forms1)} vs {len(forms2)}")

        actions1 = sum(1 for form in forms1 if form.action)
        actions2 = sum(1 for form in forms2 if form.action)

        if actions1 != actions2:
            details.append(f"Different number of form actions: {actions1} vs {actions2}")

        total_inputs1 = sum(len(form.inputs) for form in forms1)
        total_inputs2 = sum(len(form.inputs) for form in forms2)

        if total_inputs1 != total_inputs2:
            details.append(f"Different total input fields: {total_inputs1} vs {total_inputs2}")

        if not details:
            return None

        return Difference(type="forms", site1=len(forms1), site2=len(forms2), details=details)

    def _compare_sequence(
        self,
        field_kind: str,
        content_type: str,
        items1: Sequence[str],
        items2: Sequence[str],
        snippet_limit: int | None,
        count1: int | None = None,
        count2: int | None = None,
        changed_label: str = "have different content",
    ) -> Difference | None:
        count1 = len(items1) if count1 is None else count1
        count2 = len(items2) if count2 is None else count2

        details: list[str] = []
        snippets: list = []

        if count1 != count2:
            details.append(f"Different number of {field_kind}: {count1} vs {count2}")

        result = self.matcher.match(items1, items2, content_type)

        if result.differences:
            details.append(f"{len(result.differences)} {field_kind} {changed_label}")
            snippets.extend(result.differences[:3])

        if result.additions:
            details.append(f"{len(result.additions)} {field_kind} added")
            snippets.extend(result.additions[:2])

        if result.deletions:
            details.append(f"{len(result.deletions)} {field_kind} removed")
            snippets.extend(result.deletions[:2])

        if result.reordered:
            details.append(f"{field_kind.capitalize()} appear to be reordered")

        if not details:
            return None

        if snippet_limit is not None:
            snippets = snippets[:snippet_limit]

        return Difference(
            type=field_kind,
            site1=count1,
            site2=count2,
            details=details,
            snippets=snippets,
        )


class PageDiffer:
    """
    Compares one path rendered on two sites.

    Holds only configuration; compare() can be called concurrently.
    """

    def __init__(
        self,
        normalizer: ContentNormalizer | None = None,
        extractor: DocumentExtractor | None = None,
        comparator: FieldComparator | None = None,
    ):
        self.normalizer = normalizer or ContentNormalizer()
        self.extractor = extractor or DocumentExtractor()
        self.comparator = comparator or FieldComparator()

    @classmethod
    def from_config(cls, config: ComparatorConfig) -> "PageDiffer":
        return cls(
            normalizer=ContentNormalizer(
                ignore_elements=config.ignore_elements,
                ignore_attributes=config.ignore_attributes,
                ignore_classes=config.ignore_classes,
            ),
            comparator=FieldComparator(
                ContentSequenceMatcher(
                    max_items=config.max_sequence_items,
                    detect_true_reordering=config.detect_true_reordering,
                )
            ),
        )

    def extract_pair(
        self, html1: str, html2: str, domain1: str, domain2: str
    ) -> tuple[Document, Document]:
        """
        Normalize both sides and extract their documents.

        Site 1 references are rewritten onto site 2's domain and site 2 is left
        as is, so same-path links and sources point at one host on both sides.
        """
        normalized1 = self.normalizer.normalize(html1, domain1, domain2)
        normalized2 = self.normalizer.normalize(html2, domain2, domain2)
        return self.extractor.extract(normalized1), self.extractor.extract(normalized2)

    def compare(
        self, path: str, html1: str, html2: str, domain1: str, domain2: str
    ) -> PathComparison:
        """
        Compare a path's markup from both sites.

        Args:
            path: Path identifying the page on both hosts
            html1: Rendered markup from site 1
            html2: Rendered markup from site 2
            domain1: Site 1 domain, e.g. "https://staging.example.com"
            domain2: Site 2 domain

        Returns:
            PathComparison with one Difference per differing field
        """
        document1, document2 = self.extract_pair(html1, html2, domain1, domain2)
        return PathComparison(url=path, differences=self.compare_documents(document1, document2))

    def compare_documents(self, document1: Document, document2: Document) -> list[Difference]:
        candidates = [
            self.comparator.compare_title(document1.title, document2.title),
            self.comparator.compare_headings(document1.headings, document2.headings),
            self.comparator.compare_paragraphs(document1.paragraphs, document2.paragraphs),
            self.comparator.compare_links(document1.links, document2.links),
            self.comparator.compare_images(document1.images, document2.images),
            self.comparator.compare_forms(document1.forms, document2.forms),
        ]
        return [difference for difference in candidates if difference is not None]
