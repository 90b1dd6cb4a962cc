import copy
from dataclasses import dataclass
from typing import List, Optional

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup
from soupsieve import SelectorSyntaxError

from app.services.errors import ConversionFailure, ParseFailure
from app.services.profiles import BuilderProfile

# Tags removed outright from generic pages before a content container is chosen
_UNWANTED_TAGS = {"script", "noscript", "iframe", "object", "embed", "nav", "link"}

# Tracking pixels / beacons
_TRACKER_SELECTORS = (
    'img[src*="analytics"]',
    'img[src*="pixel"]',
    'img[src*="facebook.com/tr"]',
    'img[width="1"][height="1"]',
)

# Class / id fragments marking cookie banners, consent dialogs and chat embeds
_NOTICE_KEYWORDS = {
    "cookie",
    "gdpr",
    "consent",
    "tracking",
    "tracker",
    "chat-widget",
}


@dataclass(frozen=True)
class SourceDocument:
    """Parsed input page.

    ``tree`` is never mutated; extraction works on :meth:`working_copy`.
    """

    tree: BeautifulSoup
    title: str
    styles: str

    def working_copy(self) -> BeautifulSoup:
        return copy.copy(self.tree)


def _extract_title(soup: BeautifulSoup) -> str:
    head = soup.head
    title_tag = head.find("title") if head else None
    if title_tag:
        return title_tag.get_text().strip()
    return ""


def _extract_styles(soup: BeautifulSoup) -> str:
    """Return the text of every ``<style>`` element, in document order."""
    blocks = [style.get_text() for style in soup.find_all("style")]
    return "\n".join(block for block in blocks if block.strip())


def parse_document(html: str) -> SourceDocument:
    """Parse *html* into a :class:`SourceDocument`.

    Raises:
        ParseFailure: if *html* is not text or the parser rejects it.
    """
    if not isinstance(html, str):
        raise ParseFailure(f"Expected HTML text, got {type(html).__name__}.")
    try:
        soup = BeautifulSoup(html, "lxml")
    except ParserRejectedMarkup as exc:
        raise ParseFailure(f"Markup rejected by parser: {exc}") from exc

    return SourceDocument(tree=soup, title=_extract_title(soup), styles=_extract_styles(soup))


def _has_notice_attr(tag: Tag) -> bool:
    """Return True when a tag's id or class names a cookie notice, tracker or chat embed."""
    if not tag.attrs:
        return False
    attrs_to_check = []
    if tag.get("id"):
        attrs_to_check.append(str(tag["id"]).lower())
    for cls in tag.get("class", []):
        attrs_to_check.append(cls.lower())

    return any(keyword in attr for attr in attrs_to_check for keyword in _NOTICE_KEYWORDS)


def _is_unwanted(tag: Tag, in_article: bool) -> bool:
    if tag.name in _UNWANTED_TAGS:
        return True
    # Site chrome only: headers / footers inside an article belong to it
    if tag.name in ("header", "footer") and not in_article:
        return True
    return tag.name not in ("html", "body") and _has_notice_attr(tag)


def _remove_unwanted(soup: BeautifulSoup) -> None:
    # Top-down walk; a removed subtree is not visited again
    stack = [(soup, False)]
    while stack:
        node, in_article = stack.pop()
        for child in list(node.children):
            if not isinstance(child, Tag):
                continue
            if _is_unwanted(child, in_article):
                child.decompose()
            else:
                stack.append((child, in_article or child.name == "article"))

    for tag in soup.select(", ".join(_TRACKER_SELECTORS)):
        tag.decompose()


def _strip_attributes(soup: BeautifulSoup, names) -> None:
    if not names:
        return
    for tag in soup.find_all(True):
        for name in names:
            if name in tag.attrs:
                del tag[name]


def _outermost(soup: BeautifulSoup, nodes: List[Tag]) -> List[Tag]:
    """Drop matches nested inside another match so no markup is emitted twice.

    Walks the tree once in document order and stops descending at the first
    match on each branch.
    """
    matched = {id(node) for node in nodes}
    if not matched:
        return []
    found = []
    stack = [soup]
    while stack:
        tag = stack.pop()
        if id(tag) in matched:
            found.append(tag)
            continue
        stack.extend(reversed([child for child in tag.contents if isinstance(child, Tag)]))
    return found


def _join_matches(soup: BeautifulSoup, selectors) -> str:
    if not selectors:
        return ""
    nodes = soup.select(", ".join(selectors))
    return "".join(str(node) for node in _outermost(soup, nodes))


def _has_text(tag: Tag) -> bool:
    return next(tag.stripped_strings, None) is not None


def _first_with_text(soup: BeautifulSoup, selectors) -> Optional[Tag]:
    # A blank match has only blank matches inside it, so nested ones are skipped
    for selector in selectors:
        for node in _outermost(soup, soup.select(selector)):
            if _has_text(node):
                return node
    return None


def _body_markup(soup: BeautifulSoup) -> str:
    body = soup.body
    return body.decode_contents() if body else ""


def _extract(soup: BeautifulSoup, profile: BuilderProfile) -> str:
    if profile.remove_unwanted:
        _remove_unwanted(soup)
    _strip_attributes(soup, profile.attributes_to_strip)

    markup = _join_matches(soup, profile.builder_selectors)
    if markup:
        return markup

    if profile.first_match_only:
        node = _first_with_text(soup, profile.fallback_selectors)
        markup = node.decode_contents() if node else ""
    else:
        markup = _join_matches(soup, profile.fallback_selectors)

    if not markup.strip():
        markup = _body_markup(soup)
    return markup


def extract_content(source: SourceDocument, profile: BuilderProfile) -> str:
    """Return the markup representing the real content of *source*.

    Builder pages yield the concatenated builder sections, then the common
    content containers, then the whole body. Generic pages are stripped of
    site chrome first and yield the inner markup of the first non-blank
    candidate container, else the whole body.

    Raises:
        ConversionFailure: if a selector or tree operation fails.
    """
    soup = source.working_copy()
    try:
        return _extract(soup, profile)
    except SelectorSyntaxError as exc:
        raise ConversionFailure(f"{profile.label} selector rejected: {exc}") from exc
    except Exception as exc:
        raise ConversionFailure(f"{profile.label} extraction failed: {exc}") from exc
