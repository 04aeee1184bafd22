"""HTML rewriting: turns a fetched document into its "Fale" rendition.

The rewrite runs on a tree owned by a single call:

1. parse the document with BeautifulSoup (``html.parser``), keeping entity
   and character references in text as written,
2. keep an existing ``<base href>`` or insert one pointing at the source URL,
3. resolve relative ``src``/``href``/``action``/``data-src`` values against
   the source URL,
4. substitute the three exact casings of "Yale" in every text node outside
   ``<script>``/``<style>``, and in the title,
5. append a small responsive-layout stylesheet to ``<head>``,
6. serialize the tree back to HTML.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Doctype, NavigableString, ParserRejectedMarkup, Tag
from bs4.builder import HTMLParserTreeBuilder
from bs4.builder._htmlparser import BeautifulSoupHTMLParser
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter

from faleproxy.logger import get_logger
from faleproxy.scraper.models import RewrittenPage

logger = get_logger(__name__)

_URL_ATTRIBUTES = ("src", "href", "action", "data-src")

# Values starting with any of these are left exactly as written.
_UNTOUCHED_PREFIXES = ("http", "//", "#", "javascript:", "data:")

_SKIPPED_TAGS = frozenset({"script", "style"})

# Exact-case only: "YaLe" and friends are deliberately not matched.
_SUBSTITUTIONS = (
    ("Yale", "Fale"),
    ("YALE", "FALE"),
    ("yale", "fale"),
)

_RESPONSIVE_CSS = """
  img, video, iframe { max-width: 100%; height: auto; }
  body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; }
"""



class _RawEntityHTMLParser(BeautifulSoupHTMLParser):
    """Keeps character and entity references in text exactly as written."""

    def handle_charref(self, name: str) -> None:
        self.handle_data(f"&#{name};")

    def handle_entityref(self, name: str) -> None:
        self.handle_data(f"&{name};")


class _RawEntityTreeBuilder(HTMLParserTreeBuilder):
    """``html.parser`` tree builder driven by :class:`_RawEntityHTMLParser`."""

    def feed(self, markup: Any) -> None:
        args, kwargs = self.parser_args
        parser = _RawEntityHTMLParser(self.soup, *args, **kwargs)
        try:
            parser.feed(markup)
            parser.close()
        except AssertionError as exc:
            raise ParserRejectedMarkup(exc)
        parser.already_closed_empty_element = []


class _RawTextFormatter(HTMLFormatter):
    """Writes text back untouched (it still holds its original references).

    Attribute values arrive decoded from the parser, so they are re-escaped.
    """

    def attribute_value(self, value: str) -> str:
        return EntitySubstitution.substitute_xml(value)


# Void elements are written as <base ...> rather than <base .../>.
_FORMATTER = _RawTextFormatter(
    entity_substitution=None,
    void_element_close_prefix=None,
)


def replace_yale(text: str) -> str:
    """Apply the Yale→Fale substitutions to *text*, one casing at a time."""
    for old, new in _SUBSTITUTIONS:
        text = text.replace(old, new)
    return text


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _ensure_head(soup: BeautifulSoup) -> Tag:
    """Return the document's ``<head>``, creating one if the parser found none."""
    head = soup.find("head")
    if head is not None:
        return head

    head = soup.new_tag("head")
    if soup.html is not None:
        soup.html.insert(0, head)
        return head

    # Bare fragment: keep a leading doctype in front of the new head.
    index = 0
    for position, child in enumerate(soup.contents):
        if isinstance(child, Doctype):
            index = position + 1
    soup.insert(index, head)
    return head


def _resolve_base(soup: BeautifulSoup, head: Tag, source_url: str) -> Tag:
    """Return the base tag in effect, inserting one for *source_url* if needed."""
    base = soup.find("base")
    if base is not None and base.get("href"):
        return base

    base = soup.new_tag("base", attrs={"href": source_url})
    head.insert(0, base)
    return base


def _absolutize_urls(soup: BeautifulSoup, source_url: str, base: Tag) -> int:
    """Resolve relative URL attributes against *source_url*; return the count."""
    rewritten = 0
    for attr in _URL_ATTRIBUTES:
        for element in soup.find_all(attrs={attr: True}):
            if element is base:
                continue
            value = element.get(attr)
            if value and not value.startswith(_UNTOUCHED_PREFIXES):
                element[attr] = urljoin(source_url, value)
                rewritten += 1
    return rewritten


def _is_text_node(node) -> bool:
    # Comments, doctypes, CDATA and processing instructions are
    # PreformattedString subclasses, not page text.
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def _substitute_text(node: Tag) -> None:
    """Depth-first walk replacing text in place, skipping script/style subtrees."""
    if node.name in _SKIPPED_TAGS:
        return

    for child in list(node.children):
        if isinstance(child, Tag):
            _substitute_text(child)
        elif _is_text_node(child):
            text = str(child)
            new_text = replace_yale(text)
            if new_text != text:
                child.replace_with(type(child)(new_text))


def _rewrite_title(soup: BeautifulSoup) -> str:
    """Substitute the title text and write it back; return it ("" if absent)."""
    titles = soup.find_all("title")
    title = replace_yale("".join(tag.get_text() for tag in titles))
    for tag in titles:
        tag.string = title
    return title


def _inject_style(soup: BeautifulSoup, head: Tag) -> None:
    style = soup.new_tag("style")
    style.string = _RESPONSIVE_CSS
    head.append(style)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def rewrite_html(html: str, source_url: str) -> RewrittenPage:
    """Rewrite *html* fetched from *source_url* and return a :class:`RewrittenPage`.

    Relative URLs are always resolved against *source_url*, never against a
    ``<base>`` tag discovered in the document.

    Parser and URL-resolution errors are not caught here.
    """
    # No multi-valued attributes: class="a   b" must come back byte for byte.
    soup = BeautifulSoup(html, builder=_RawEntityTreeBuilder(multi_valued_attributes=None))
    head = _ensure_head(soup)

    base = _resolve_base(soup, head, source_url)
    rewritten = _absolutize_urls(soup, source_url, base)

    _substitute_text(soup)
    title = _rewrite_title(soup)
    _inject_style(soup, head)

    logger.debug("Rewrote %d URL attribute(s) for %s", rewritten, source_url)
    return RewrittenPage(
        url=source_url,
        content=soup.decode(formatter=_FORMATTER),
        title=title,
    )
