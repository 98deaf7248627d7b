"""
Unit tests for field comparators and page differ.
"""

from sitediff.config import ComparatorConfig
from sitediff.differ import FieldComparator, PageDiffer
from sitediff.models import (
    ContentChange,
    Document,
    Form,
    FormInput,
    Image,
    ImageSourceSnippet,
    Link,
    Reordering,
    Snippet,
)


def make_form(input_count: int, action: str = "") -> Form:
    return Form(action=action, inputs=tuple(FormInput(name=f"f{i}") for i in range(input_count)))


class TestCompareTitle:
    """Tests for title comparison."""

    def test_different_titles(self):
        """Test that differing titles keep raw values and a two-sided snippet."""
        difference = FieldComparator().compare_title("Home", "Home Page")

        assert difference.type == "title"
        assert difference.site1 == "Home"
        assert difference.site2 == "Home Page"
        assert difference.snippets == [Snippet(site1="Home", site2="Home Page")]

    def test_titles_equal_after_trim(self):
        """Test that surrounding whitespace is not a difference."""
        assert FieldComparator().compare_title(" Home ", "Home") is None

    def test_long_titles_truncated(self):
        """Test that title snippets are capped at 100 characters."""
        difference = FieldComparator().compare_title("A" * 120, "B")

        assert difference.site1 == "A" * 120
        assert difference.snippets[0].site1 == "A" * 100 + "..."


class TestCompareHeadings:
    """Tests for heading comparison."""

    def test_identical_headings(self):
        """Test that identical headings produce no difference."""
        assert FieldComparator().compare_headings(["A", "B"], ["A", "B"]) is None

    def test_added_heading(self):
        """Test count mismatch and addition details."""
        difference = FieldComparator().compare_headings(["A", "B"], ["A", "B", "C"])

        assert difference.type == "headings"
        assert difference.site1 == 2
        assert difference.site2 == 3
        assert difference.details == ["Different number of headings: 2 vs 3", "1 headings added"]
        assert len(difference.snippets) == 1
        assert isinstance(difference.snippets[0], ContentChange)
        assert difference.snippets[0].items == ["C"]

    def test_reordered_headings(self):
        """Test that reordering is reported without a count mismatch."""
        difference = FieldComparator().compare_headings(["A", "B", "C"], ["B", "A", "C"])

        assert difference.site1 == difference.site2 == 3
        assert difference.details == [
            "1 headings have different content",
            "Headings appear to be reordered",
        ]
        assert isinstance(difference.snippets[0], Reordering)

    def test_snippet_cap(self):
        """Test that heading snippets are capped at five records."""
        headings1 = [f"Old {i}" for i in range(4)]
        headings2 = [f"New {i}" for i in range(4)]
        difference = FieldComparator().compare_headings(headings1, headings2)

        assert "4 headings added" in difference.details
        assert "4 headings removed" in difference.details
        # 1 reordering + 2 additions + 2 deletions
        assert len(difference.snippets) == 5


class TestCompareParagraphs:
    """Tests for paragraph comparison."""

    def test_snippet_cap(self):
        """Test that paragraph snippets are capped at three records."""
        paragraphs1 = [f"Old paragraph {i}" for i in range(4)]
        paragraphs2 = [f"New paragraph {i}" for i in range(4)]
        difference = FieldComparator().compare_paragraphs(paragraphs1, paragraphs2)

        assert difference.type == "paragraphs"
        assert len(difference.snippets) == 3
        assert difference.snippets[0].type == "reordering"
        assert [snippet.type for snippet in difference.snippets[1:]] == ["addition", "addition"]

    def test_inserted_paragraph(self):
        """Test that one inserted paragraph reports a single addition."""
        difference = FieldComparator().compare_paragraphs(
            ["Intro", "Body"], ["Intro", "New", "Body"]
        )

        assert difference.details == ["Different number of paragraphs: 2 vs 3", "1 paragraphs added"]


class TestCompareLinks:
    """Tests for link comparison."""

    def test_empty_link_texts_only_count(self):
        """Test that links without text change the count but not the text match."""
        links1 = [Link("About", "/about"), Link("", "/icon")]
        links2 = [Link("About", "/about")]
        difference = FieldComparator().compare_links(links1, links2)

        assert difference.site1 == 2
        assert difference.site2 == 1
        assert difference.details == ["Different number of links: 2 vs 1"]
        assert difference.snippets == []

    def test_href_changes_ignored(self):
        """Test that links are compared by text only."""
        links1 = [Link("About", "/about")]
        links2 = [Link("About", "/about-us")]

        assert FieldComparator().compare_links(links1, links2) is None

    def test_reordered_links(self):
        """Test reordering label for links."""
        links1 = [Link("A", "/a"), Link("B", "/b")]
        links2 = [Link("B", "/b"), Link("A", "/a")]
        difference = FieldComparator().compare_links(links1, links2)

        assert difference.details == ["1 links have different text", "Links appear to be reordered"]

    def test_link_snippets_uncapped(self):
        """Test that link snippets are not capped beyond the per-kind slices."""
        links1 = [Link(f"Old {i}", f"/o{i}") for i in range(4)]
        links2 = [Link(f"New {i}", f"/n{i}") for i in range(4)]
        difference = FieldComparator().compare_links(links1, links2)

        assert len(difference.snippets) == 5


class TestCompareImages:
    """Tests for image comparison."""

    def test_unique_sources_both_directions(self):
        """Test that each side's unique sources produce one record."""
        images1 = [Image("X", "x"), Image("Y", "y")]
        images2 = [Image("Y", "y"), Image("Z", "z")]
        difference = FieldComparator().compare_images(images1, images2)

        assert difference.type == "images"
        assert difference.details == ["Different image sources found"]
        assert difference.snippets == [
            ImageSourceSnippet(type="images_only_in_site1", count=1, examples=["x"]),
            ImageSourceSnippet(type="images_only_in_site2", count=1, examples=["z"]),
        ]

    def test_examples_capped(self):
        """Test that at most two example sources are listed."""
        images1 = [Image("", f"/{i}.png") for i in range(4)]
        difference = FieldComparator().compare_images(images1, [])

        assert difference.details[0] == "Different number of images: 4 vs 0"
        assert difference.snippets[0].count == 4
        assert difference.snippets[0].examples == ["/0.png", "/1.png"]
        assert len(difference.snippets) == 1

    def test_missing_alt_text(self):
        """Test missing alt text detail."""
        images1 = [Image("Logo", "/logo.png")]
        images2 = [Image("  ", "/logo.png")]
        difference = FieldComparator().compare_images(images1, images2)

        assert difference.details == ["Different number of images without alt text: 0 vs 1"]
        assert difference.snippets == []

    def test_identical_images(self):
        """Test that identical images produce no difference."""
        images = [Image("Logo", "/logo.png")]
        assert FieldComparator().compare_images(images, list(images)) is None


class TestCompareForms:
    """Tests for form comparison."""

    def test_input_total_mismatch_only(self):
        """Test that only the input totals are cited when form counts match."""
        difference = FieldComparator().compare_forms([make_form(4)], [make_form(6)])

        assert difference.type == "forms"
        assert difference.site1 == 1
        assert difference.site2 == 1
        assert difference.details == ["Different total input fields: 4 vs 6"]
        assert difference.snippets == []

    def test_form_and_action_counts(self):
        """Test form count and action count details."""
        forms1 = [make_form(1, action="/search")]
        forms2 = [make_form(1, action="/search"), make_form(0)]
        difference = FieldComparator().compare_forms(forms1, forms2)

        assert difference.details == ["Different number of forms: 1 vs 2"]

        difference = FieldComparator().compare_forms([make_form(1, "/a")], [make_form(1)])
        assert difference.details == ["Different number of form actions: 1 vs 0"]

    def test_inputs_moved_between_forms(self):
        """Test that equal totals spread differently are not reported."""
        forms1 = [make_form(1), make_form(3)]
        forms2 = [make_form(2), make_form(2)]

        assert FieldComparator().compare_forms(forms1, forms2) is None


class TestPageDiffer:
    """Tests for PageDiffer class."""

    STAGING = "https://staging.example.com"
    PRODUCTION = "https://example.com"

    def test_identical_pages_across_domains(self):
        """Test that cross-domain references compare equal after rewriting."""
        html1 = f"""
        <html><head><title>Home</title></head><body>
        <h1>Welcome</h1>
        <a href="{self.STAGING}/about">About</a>
        <img src="/logo.png" alt="Logo">
        <script>var build = "staging";</script>
        </body></html>
        """
        html2 = f"""
        <html><head><title>Home</title></head><body>
        <h1>Welcome</h1>
        <a href="{self.PRODUCTION}/about">About</a>
        <img src="/logo.png" alt="Logo">
        <script>var build = "production";</script>
        </body></html>
        """
        comparison = PageDiffer().compare("/", html1, html2, self.STAGING, self.PRODUCTION)

        assert comparison.url == "/"
        assert comparison.has_differences is False

    def test_identical_pages_with_absolute_image_sources(self):
        """Test that each site pointing images at its own host is not a difference."""
        html1 = f'<body><img src="{self.STAGING}/logo.png" alt="Logo"></body>'
        html2 = f'<body><img src="{self.PRODUCTION}/logo.png" alt="Logo"></body>'
        comparison = PageDiffer().compare("/", html1, html2, self.STAGING, self.PRODUCTION)

        assert comparison.has_differences is False

    def test_extract_pair_rewrites_site1_towards_site2(self):
        """Test that both sides end up referencing site 2's host."""
        html1 = f'<body><a href="{self.STAGING}/x">X</a></body>'
        html2 = f'<body><a href="{self.PRODUCTION}/x">X</a></body>'
        document1, document2 = PageDiffer().extract_pair(
            html1, html2, self.STAGING, self.PRODUCTION
        )

        assert document1.links[0].href == f"{self.PRODUCTION}/x"
        assert document2.links[0].href == f"{self.PRODUCTION}/x"

    def test_site2_reference_to_site1_kept(self):
        """Test that site 2 markup is not rewritten towards site 1."""
        html = f'<body><img src="{self.STAGING}/preview.png" alt="Preview"></body>'
        _, document2 = PageDiffer().extract_pair(
            "<body></body>", html, self.STAGING, self.PRODUCTION
        )

        assert document2.images[0].src == f"{self.STAGING}/preview.png"

    def test_field_order(self):
        """Test that differences come out in title, headings, ... forms order."""
        html1 = "<html><head><title>A</title></head><body><h1>One</h1><form></form></body></html>"
        html2 = "<html><head><title>B</title></head><body><h1>Two</h1></body></html>"
        comparison = PageDiffer().compare("/", html1, html2, self.STAGING, self.PRODUCTION)

        assert comparison.difference_types == ["title", "headings", "forms"]

    def test_compare_documents(self):
        """Test comparison of already extracted documents."""
        differences = PageDiffer().compare_documents(
            Document(title="Home", paragraphs=("Hello",)),
            Document(title="Home", paragraphs=("Hello", "World")),
        )

        assert [difference.type for difference in differences] == ["paragraphs"]

    def test_from_config(self):
        """Test that configuration reaches normalizer and matcher."""
        config = ComparatorConfig(
            ignore_classes=["build"], detect_true_reordering=True, max_sequence_items=10
        )
        differ = PageDiffer.from_config(config)

        assert differ.normalizer.ignore_classes == {"build"}
        assert differ.comparator.matcher.detect_true_reordering is True
        assert differ.comparator.matcher.max_items == 10
