"""Page-builder detection from raw page HTML.

:func:`detect_page_type` classifies an uploaded or fetched page into one of
three source types so the converter can pick the matching extraction
profile.

Page types
----------
``"elementor"``
    WordPress page built with Elementor (``elementor`` class prefixes or any
    ``wp-content`` asset path).

``"ghl"``
    GoHighLevel funnel / website page (``gohighlevel`` or ``ghl.page``
    references).

``"generic"``
    Anything else, including the empty string.
"""

import re
from typing import Literal

PageType = Literal["elementor", "ghl", "generic"]

PAGE_TYPES: tuple = ("elementor", "ghl", "generic")

# Signatures are matched case-sensitively, Elementor strictly before GHL.
_ELEMENTOR_PATTERN = re.compile(r"elementor|wp-content")
_GHL_PATTERN = re.compile(r"gohighlevel|ghl\.page")


def detect_page_type(html: str) -> PageType:
    """Classify the page builder that produced *html*.

    Args:
        html: Raw HTML text, as uploaded or fetched.

    Returns:
        A :data:`PageType` string. A page carrying both Elementor and GHL
        signatures is always ``"elementor"``.
    """
    if _ELEMENTOR_PATTERN.search(html):
        return "elementor"

    if _GHL_PATTERN.search(html):
        return "ghl"

    return "generic"
