"""
Document extractor for parsing normalized markup into structured data.

Builds the typed Document the field comparators work on. Missing elements
degrade to empty values; extraction never fails on malformed markup.
"""

from bs4 import BeautifulSoup
from bs4.element import Tag

from .models import Document, Form, FormInput, Image, Link


class DocumentExtractor:
    """
    Extracts a Document from HTML.

    Stateless; one instance can be shared across threads.
    """

    # Heading tags flattened into one sequence
    HEADING_TAGS = ["h1", "h2", "h3", "h4", "h5", "h6"]

    # Form controls counted as inputs
    FORM_CONTROL_TAGS = ["input", "textarea", "select"]

    def extract(self, html: str | None) -> Document:
        """
        Extract structured content from HTML.

        Args:
            html: Markup to parse (normally the normalizer's output)

        Returns:
            Document containing structured content
        """
        if not html:
            return Document()

        soup = BeautifulSoup(html, "lxml")

        return Document(
            title=self._extract_title(soup),
            headings=self._extract_headings(soup),
            paragraphs=self._extract_paragraphs(soup),
            links=self._extract_links(soup),
            images=self._extract_images(soup),
            forms=self._extract_forms(soup),
        )

    def _extract_title(self, soup: BeautifulSoup) -> str:
        return "".join(title.get_text() for title in soup.find_all("title")).strip()

    def _extract_headings(self, soup: BeautifulSoup) -> tuple[str, ...]:
        """
        Extract all headings (H1-H6) in document order.

        Empty headings are kept so that heading counts reflect the markup.
        """
        return tuple(element.get_text().strip() for element in soup.find_all(self.HEADING_TAGS))

    def _extract_paragraphs(self, soup: BeautifulSoup) -> tuple[str, ...]:
        texts = (element.get_text().strip() for element in soup.find_all("p"))
        return tuple(text for text in texts if text)

    def _extract_links(self, soup: BeautifulSoup) -> tuple[Link, ...]:
        return tuple(
            Link(text=anchor.get_text().strip(), href=_attribute(anchor, "href"))
            for anchor in soup.find_all("a", href=True)
        )

    def _extract_images(self, soup: BeautifulSoup) -> tuple[Image, ...]:
        return tuple(
            Image(alt=_attribute(image, "alt"), src=_attribute(image, "src"))
            for image in soup.find_all("img", src=True)
        )

    def _extract_forms(self, soup: BeautifulSoup) -> tuple[Form, ...]:
        forms = []

        for form in soup.find_all("form"):
            inputs = tuple(
                FormInput(
                    name=_attribute(control, "name"),
                    type=_attribute(control, "type") or "text",
                )
                for control in form.find_all(self.FORM_CONTROL_TAGS)
            )
            forms.append(
                Form(
                    action=_attribute(form, "action"),
                    method=_attribute(form, "method") or "GET",
                    inputs=inputs,
                )
            )

        return tuple(forms)


def _attribute(element: Tag, name: str) -> str:
    """Return an attribute value as a string, or "" when it is missing."""
    value = element.get(name)
    if value is None:
        return ""
    if isinstance(value, list):
        return " ".join(value)
    return value
