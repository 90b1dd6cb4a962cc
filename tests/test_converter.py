"""Tests for the end-to-end conversion pipeline in app.services.converter."""

import re
import time
from unittest.mock import patch

import pytest

from app.services.converter import convert, convert_page
from app.services.errors import ConversionFailed, ConversionFailure, ParseFailure
from app.services.profiles import get_profile
from app.services.sanitizer import sanitize

_EVENT_HANDLER_RE = re.compile(r"<[^>]+\son[a-z]+\s*=", re.IGNORECASE)


def _body(doc: str) -> str:
    return doc.split("<body>", 1)[1]


def _container(doc: str) -> str:
    inner = doc.split('<div class="container">\n', 1)[1]
    return inner.rsplit("\n  </div>\n</body>", 1)[0]


# ---------------------------------------------------------------------------
# Shared HTML fixtures
# ---------------------------------------------------------------------------

_ELEMENTOR_HTML = """
<!DOCTYPE html>
<html>
<head>
  <title>Spring Sale</title>
  <link rel="stylesheet" href="/wp-content/plugins/elementor/assets/css/frontend.min.css">
  <style>.elementor-heading-title { font-size: 40px; }</style>
</head>
<body>
  <nav class="site-nav"><a href="/">Home</a></nav>
  <section class="elementor-section" data-elementor-type="wp-page" data-elementor-id="12">
    <div class="elementor-container">
      <h2 class="elementor-heading-title">Spring Sale</h2>
      <a href="javascript:buy()" onclick="track()">Buy now</a>
      <script>window.dataLayer = [];</script>
    </div>
  </section>
</body>
</html>
"""

_GHL_HTML = """
<html>
<head>
  <script src="https://link.gohighlevel.com/js/form_embed.js"></script>
</head>
<body>
  <div class="section" data-block-id="b-1" data-block-type="hero">Text</div>
</body>
</html>
"""

_GENERIC_HTML = """
<html>
<head><title>About us</title></head>
<body>
  <header><a href="/">Logo</a></header>
  <main>
    <h1>About</h1>
    <p>We build things.</p>
    <script>alert(1)</script>
  </main>
  <div class="cookie-notice">We use cookies</div>
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------

class TestConvertScenarios:
    def test_elementor_section_attribute_removed(self):
        doc = convert('<div class="elementor-section" data-elementor-id="5">Hi</div>', "elementor")
        assert '<div class="elementor-section">Hi</div>' in _body(doc)
        assert "data-elementor-id" not in doc

    def test_ghl_page_detected_and_block_ids_removed(self):
        result = convert_page(_GHL_HTML)
        assert result.page_type == "ghl"
        assert "Text" in _body(result.html)
        assert "data-block-id" not in result.html
        assert "<script" not in result.html

    def test_generic_script_removed(self):
        result = convert_page("<p>Hello</p><script>alert(1)</script>")
        assert result.page_type == "generic"
        assert "<script" not in result.html.lower()
        assert "Hello" in result.html

    def test_empty_input_gives_minimal_document(self):
        doc = convert("")
        assert doc.startswith("<!DOCTYPE html>")
        assert "<title>Converted Page</title>" in doc
        assert _container(doc) == ""


class TestConvertElementor:
    def test_full_page(self):
        result = convert_page(_ELEMENTOR_HTML)
        body = _body(result.html)
        assert result.page_type == "elementor"
        assert result.title == "Spring Sale"
        assert "Spring Sale</h2>" in body
        assert "Home" not in body
        assert "onclick" not in body
        assert "javascript:" not in body
        assert "dataLayer" not in result.html
        assert "data-elementor" not in result.html

    def test_inline_styles_carried_into_head_once(self):
        doc = convert(_ELEMENTOR_HTML)
        assert doc.count(".elementor-heading-title { font-size: 40px; }") == 1
        assert doc.index(".elementor-heading-title {") < doc.index("<body>")

    def test_default_title(self):
        doc = convert('<div class="elementor-section">x</div>')
        assert "<title>Converted Elementor Page</title>" in doc


class TestConvertGHL:
    def test_default_title(self):
        assert "<title>Converted GHL Page</title>" in convert(_GHL_HTML)

    def test_explicit_type_overrides_detection(self):
        result = convert_page('<div class="section">Hi</div>', "ghl")
        assert result.page_type == "ghl"
        assert '<div class="section">Hi</div>' in result.html


class TestConvertGeneric:
    def test_chrome_removed(self):
        result = convert_page(_GENERIC_HTML)
        body = _body(result.html)
        assert result.title == "About us"
        assert "<h1>About</h1>" in body
        assert "Logo" not in body
        assert "cookies" not in body
        assert "<script" not in body

    def test_body_fallback_never_empty(self):
        doc = convert("<div><p>Only a div</p></div>")
        assert "<p>Only a div</p>" in _container(doc)


# ---------------------------------------------------------------------------
# Invariants
# ---------------------------------------------------------------------------

_HOSTILE_INPUTS = [
    "<script>alert(1)</script>",
    '<img src="x" onerror="alert(1)">',
    '<div class="elementor-section"><svg onload="alert(1)"></svg></div>',
    '<div class="section"><a href="javascript:alert(1)" onmouseover="x()">x</a></div>gohighlevel',
    "<main><SCRIPT>alert(1)</SCRIPT><p>t</p></main>",
    '<body onload="alert(1)"><p>t</p></body>',
    "<p>unterminated <script>alert(1)",
    "<<script>script>alert(1)<</script>/script>",
    '<section class="elementor-section">\n<h2>T</h2>\n<script>track()</script>\n<p>x</p>\n</section>',
    "<main>\n<p>a</p>\n<!-- note -->\n<p>b</p>\n</main>",
]


class TestConvertInvariants:
    @pytest.mark.parametrize("html", _HOSTILE_INPUTS)
    def test_no_script_or_event_handlers(self, html):
        body = _body(convert(html))
        assert "<script" not in body.lower()
        assert not _EVENT_HANDLER_RE.search(body)

    @pytest.mark.parametrize("html", _HOSTILE_INPUTS + [_ELEMENTOR_HTML, _GHL_HTML, _GENERIC_HTML])
    def test_container_content_is_already_sanitized(self, html):
        content = _container(convert(html))
        assert sanitize(content) == content

    def test_same_input_same_output(self):
        assert convert(_ELEMENTOR_HTML) == convert(_ELEMENTOR_HTML)


class TestConvertErrors:
    def test_non_text_input_raises_conversion_failed(self):
        with pytest.raises(ConversionFailed) as excinfo:
            convert(b"<p>bytes</p>", "generic")
        assert str(excinfo.value) == "Failed to parse HTML content"
        assert isinstance(excinfo.value.__cause__, ParseFailure)

    def test_extraction_failure_is_wrapped(self):
        with patch(
            "app.services.converter.extract_content",
            side_effect=ConversionFailure("selector blew up"),
        ):
            with pytest.raises(ConversionFailed) as excinfo:
                convert('<div class="elementor-section">x</div>', "elementor")
        assert excinfo.value.message == "Failed to convert Elementor page"
        assert excinfo.value.page_type == "elementor"
        assert isinstance(excinfo.value.__cause__, ConversionFailure)

    def test_unknown_page_type(self):
        with pytest.raises(ValueError):
            convert("<p>x</p>", "wix")

    def test_get_profile_unknown(self):
        with pytest.raises(ValueError):
            get_profile("squarespace")

    def test_sanitizer_error_is_wrapped(self):
        with patch("app.services.converter.sanitize", side_effect=RuntimeError("boom")):
            with pytest.raises(ConversionFailed) as excinfo:
                convert('<div class="section">x</div>', "ghl")
        assert excinfo.value.message == "Failed to convert GHL page"
        assert isinstance(excinfo.value.__cause__, RuntimeError)


class TestConvertDeepNesting:
    @pytest.mark.parametrize("page_type", ["elementor", "ghl", "generic"])
    def test_deeply_nested_markup(self, page_type):
        html = '<div class="section">' * 3000 + "x"
        started = time.perf_counter()
        doc = convert(html, page_type)
        assert time.perf_counter() - started < 10
        assert "x" in _container(doc)
