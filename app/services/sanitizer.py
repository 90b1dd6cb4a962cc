"""Allowlist HTML sanitizer for extracted page content.

:func:`sanitize` keeps structural and styling markup (layout elements,
classes, inline styles, form controls, images, simple SVG icons) and removes
everything able to run code: script-bearing elements, event-handler
attributes, and URLs with executable schemes. Elements outside the allowlist
are unwrapped so their text survives; elements whose content is itself
active or invisible (``script``, ``iframe``, ``template``, ...) are removed
together with their content.

The output is stable: ``sanitize(sanitize(html)) == sanitize(html)``.
"""

import re

from bs4 import BeautifulSoup, CData, Comment, Declaration, Doctype, ProcessingInstruction, Tag

# Removed together with everything inside them
_DROP_TAGS = {
    "script",
    "style",
    "noscript",
    "template",
    "iframe",
    "frame",
    "frameset",
    "object",
    "embed",
    "applet",
    "base",
    "link",
    "meta",
    "title",
    "head",
    "math",
    "foreignobject",
    "use",
    "animate",
    "animatemotion",
    "animatetransform",
    "set",
    "handler",
    "listener",
}

_ALLOWED_TAGS = {
    # Sections and grouping
    "address", "article", "aside", "blockquote", "center", "dd", "details",
    "div", "dl", "dt", "figcaption", "figure", "footer", "h1", "h2", "h3",
    "h4", "h5", "h6", "header", "hgroup", "hr", "li", "main", "nav", "ol",
    "p", "pre", "section", "summary", "ul",
    # Text-level
    "a", "abbr", "b", "bdi", "bdo", "br", "cite", "code", "data", "del",
    "dfn", "em", "font", "i", "ins", "kbd", "mark", "q", "rp", "rt", "ruby",
    "s", "samp", "small", "span", "strike", "strong", "sub", "sup", "time",
    "tt", "u", "var", "wbr",
    # Tables
    "caption", "col", "colgroup", "table", "tbody", "td", "tfoot", "th",
    "thead", "tr",
    # Media
    "audio", "img", "picture", "source", "track", "video",
    # Forms
    "button", "fieldset", "form", "input", "label", "legend", "optgroup",
    "option", "select", "textarea",
    # Static SVG icons
    "svg", "g", "path", "circle", "ellipse", "line", "polyline", "polygon",
    "rect", "defs", "lineargradient", "radialgradient", "stop",
}

_GLOBAL_ATTRS = {
    "class", "id", "style", "title", "lang", "dir", "role", "hidden", "tabindex",
    "align", "valign", "width", "height",
}

_TAG_ATTRS = {
    "a": {"href", "target", "rel", "name", "download", "hreflang", "type"},
    "img": {"src", "alt", "srcset", "sizes", "loading", "decoding", "border"},
    "source": {"src", "srcset", "sizes", "type", "media"},
    "video": {"src", "poster", "controls", "autoplay", "loop", "muted", "playsinline", "preload"},
    "audio": {"src", "controls", "autoplay", "loop", "muted", "preload"},
    "track": {"src", "kind", "srclang", "label", "default"},
    "blockquote": {"cite"},
    "q": {"cite"},
    "del": {"cite", "datetime"},
    "ins": {"cite", "datetime"},
    "time": {"datetime"},
    "data": {"value"},
    "ol": {"start", "reversed", "type"},
    "li": {"value"},
    "td": {"colspan", "rowspan", "headers", "bgcolor"},
    "th": {"colspan", "rowspan", "headers", "scope", "abbr", "bgcolor"},
    "col": {"span"},
    "colgroup": {"span"},
    "table": {"border", "cellpadding", "cellspacing", "summary", "bgcolor"},
    "tr": {"bgcolor"},
    "font": {"color", "face", "size"},
    "details": {"open"},
    "form": {"action", "method", "name", "autocomplete", "novalidate", "enctype"},
    "input": {
        "type", "name", "value", "placeholder", "checked", "disabled", "readonly",
        "required", "min", "max", "step", "maxlength", "minlength", "pattern",
        "autocomplete", "size", "multiple", "accept",
    },
    "button": {"type", "name", "value", "disabled"},
    "select": {"name", "disabled", "required", "multiple", "size"},
    "option": {"value", "selected", "disabled", "label"},
    "optgroup": {"label", "disabled"},
    "textarea": {"name", "rows", "cols", "placeholder", "disabled", "readonly", "required", "maxlength", "wrap"},
    "label": {"for"},
    "fieldset": {"disabled", "name"},
}

_SVG_ATTRS = {
    "viewbox", "xmlns", "fill", "fill-rule", "fill-opacity", "clip-rule",
    "stroke", "stroke-width", "stroke-linecap", "stroke-linejoin",
    "stroke-opacity", "opacity", "d", "points", "cx", "cy", "r", "rx", "ry",
    "x", "y", "x1", "y1", "x2", "y2", "transform", "offset", "stop-color",
    "stop-opacity", "gradientunits", "gradienttransform",
    "preserveaspectratio", "focusable",
}
_SVG_TAGS = {
    "svg", "g", "path", "circle", "ellipse", "line", "polyline", "polygon",
    "rect", "defs", "lineargradient", "radialgradient", "stop",
}

_URL_ATTRS = {"href", "src", "action", "poster", "cite"}
_SAFE_SCHEMES = {"http", "https", "mailto", "tel"}

# data: URIs are only kept for raster images
_DATA_IMAGE_RE = re.compile(r"^data:image/(png|jpe?g|gif|webp|avif|bmp);", re.IGNORECASE)
_SCHEME_RE = re.compile(r"^([a-z][a-z0-9+.\-]*):")
# Browsers ignore control characters and whitespace inside a scheme
_URL_NOISE_RE = re.compile(r"[\x00-\x20\x7f]+")

_UNSAFE_CSS_RE = re.compile(
    r"expression\s*\(|javascript:|vbscript:|-moz-binding|behavior\s*:",
    re.IGNORECASE,
)
_CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)


def _is_safe_url(value: str, allow_data_image: bool = False) -> bool:
    compact = _URL_NOISE_RE.sub("", value).lower()
    match = _SCHEME_RE.match(compact)
    if not match:
        # Relative URL, fragment or empty
        return True
    scheme = match.group(1)
    if scheme in _SAFE_SCHEMES:
        return True
    return allow_data_image and scheme == "data" and bool(_DATA_IMAGE_RE.match(compact))


def _is_safe_srcset(value: str) -> bool:
    candidates = [part.strip().split()[0] for part in value.split(",") if part.strip()]
    return all(_is_safe_url(url) for url in candidates)


def _is_safe_style(value: str) -> bool:
    normalized = _CSS_COMMENT_RE.sub("", value).replace("\\", "")
    return not _UNSAFE_CSS_RE.search(normalized)


def _allowed_attr(tag_name: str, attr: str) -> bool:
    if attr.startswith("on"):
        return False
    if attr.startswith(("data-", "aria-")):
        return True
    if attr in _GLOBAL_ATTRS or attr in _TAG_ATTRS.get(tag_name, ()):
        return True
    return tag_name in _SVG_TAGS and attr in _SVG_ATTRS


def _clean_attrs(tag: Tag) -> None:
    cleaned = {}
    for attr, value in tag.attrs.items():
        name = attr.lower()
        if not _allowed_attr(tag.name, name):
            continue
        text = " ".join(value) if isinstance(value, list) else str(value)
        if name in _URL_ATTRS:
            allow_data = tag.name in ("img", "source") and name == "src"
            if not _is_safe_url(text, allow_data_image=allow_data):
                continue
        elif name == "srcset" and not _is_safe_srcset(text):
            continue
        elif name == "style" and not _is_safe_style(text):
            continue
        cleaned[attr] = value
    tag.attrs = cleaned

    if tag.name == "a" and str(tag.get("target", "")).lower() == "_blank":
        tag["rel"] = "noopener noreferrer"


def _clean_tree(soup: BeautifulSoup) -> None:
    """Drop, unwrap or filter every element, top-down.

    Dropped subtrees are never visited. Elements outside the allowlist are
    hidden rather than unwrapped: their own tags are left out of the
    serialized markup while their children are still cleaned in place.
    """
    stack = [child for child in reversed(soup.contents) if isinstance(child, Tag)]
    while stack:
        tag = stack.pop()
        name = tag.name.lower()
        if name in _DROP_TAGS:
            tag.decompose()
            continue
        if name in _ALLOWED_TAGS:
            _clean_attrs(tag)
        else:
            tag.hidden = True
        stack.extend(reversed([child for child in tag.contents if isinstance(child, Tag)]))


def sanitize(html: str) -> str:
    """Return *html* with every executable or unsafe construct removed.

    Args:
        html: A markup fragment (extracted page content).

    Returns:
        The sanitized fragment as a string.
    """
    # Fragment parser; lxml would wrap the content in <html><body><p>
    soup = BeautifulSoup(html, "html.parser")

    for node in soup.find_all(
        string=lambda text: isinstance(text, (CData, Comment, Declaration, Doctype, ProcessingInstruction))
    ):
        node.extract()

    _clean_tree(soup)

    # Removed nodes leave adjacent whitespace strings behind ("\n" + "\n")
    # and hidden elements still sit in the tree. Parsing the cleaned markup
    # once more folds both the way a second pass would read them back.
    return str(BeautifulSoup(str(soup), "html.parser"))
