"""Standalone document assembly for converted page content."""

import html
import re
from typing import Optional

# Layout reset and full-bleed container
BASELINE_CSS = """
    body {
      font-family: 'Arial', sans-serif;
      line-height: 1.6;
      margin: 0;
      padding: 0;
    }
    .container {
      width: 100%;
      max-width: 1200px;
      margin: 0 auto;
      padding: 20px;
    }
"""

# Appended after the source page's own inline styles so these rules win ties
RESPONSIVE_CSS = """
    /* Responsive styles */
    @media (max-width: 768px) {
      .container {
        padding: 10px;
      }
    }

    /* Image optimization */
    img {
      max-width: 100%;
      height: auto;
    }

    /* Form styles */
    input, textarea, select, button {
      width: 100%;
      padding: 8px;
      margin-bottom: 10px;
      box-sizing: border-box;
    }

    /* Button styles */
    .btn, button, [type="submit"] {
      display: inline-block;
      padding: 10px 20px;
      background-color: #4a6bdf;
      color: white;
      border: none;
      border-radius: 4px;
      cursor: pointer;
      text-decoration: none;
      font-weight: bold;
    }

    .btn:hover, button:hover, [type="submit"]:hover {
      background-color: #3a55b4;
    }
"""

DEFAULT_TITLE = "Converted Page"

# Style text must not close the <style> element early
_STYLE_END_RE = re.compile(r"</(style)", re.IGNORECASE)


def _safe_styles(styles: str) -> str:
    return _STYLE_END_RE.sub(r"<\\/\1", styles)


def build_stylesheet(styles: str = "") -> str:
    """Return the embedded stylesheet: baseline rules, source styles, responsive rules."""
    parts = [BASELINE_CSS]
    if styles.strip():
        parts.append(_safe_styles(styles).strip("\n") + "\n")
    parts.append(RESPONSIVE_CSS)
    return "".join(parts)


def assemble_document(
    content: str,
    title: Optional[str] = None,
    styles: str = "",
    default_title: str = DEFAULT_TITLE,
) -> str:
    """Wrap sanitized *content* in a complete standalone HTML document.

    Args:
        content: Sanitized markup placed inside the ``.container`` element.
        title: Source page title; blank or missing titles use *default_title*.
        styles: Inline ``<style>`` text carried over from the source page.
        default_title: Fallback title for the page type.
    """
    page_title = html.escape((title or "").strip() or default_title, quote=False)
    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        '  <meta charset="UTF-8">',
        '  <meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f"  <title>{page_title}</title>",
        "  <style>",
        build_stylesheet(styles).strip("\n"),
        "  </style>",
        "</head>",
        "<body>",
        '  <div class="container">',
        content.strip("\n"),
        "  </div>",
        "</body>",
        "</html>",
    ]
    return "\n".join(lines) + "\n"
