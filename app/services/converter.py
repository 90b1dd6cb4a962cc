"""Conversion pipeline: detect → parse → extract → sanitize → assemble.

One parameterized pipeline serves every page type; the per-type behaviour
lives in :mod:`app.services.profiles`. The pipeline is a pure function of
its inputs and keeps no state between calls.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from app.services.assembler import assemble_document
from app.services.detector import PageType, detect_page_type
from app.services.errors import ConversionFailed, ConversionFailure, ParseFailure
from app.services.extractor import extract_content, parse_document
from app.services.profiles import get_profile
from app.services.sanitizer import sanitize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    """A finished conversion."""

    page_type: PageType
    title: str
    html: str


def convert_page(raw_html: str, page_type: Optional[PageType] = None) -> ConversionResult:
    """Convert *raw_html* into a standalone, sanitized HTML document.

    Args:
        raw_html: Page markup, already read or fetched by the caller.
        page_type: Source page type; detected from *raw_html* when omitted.

    Raises:
        ValueError: if *page_type* is not a known page type.
        ConversionFailed: if any stage of the conversion fails. The
            underlying exception is chained as ``__cause__``.
    """
    if page_type is None:
        page_type = detect_page_type(raw_html) if isinstance(raw_html, str) else "generic"
    profile = get_profile(page_type)

    try:
        source = parse_document(raw_html)
        extracted = extract_content(source, profile)
        title = source.title or profile.default_title
        document = assemble_document(
            sanitize(extracted),
            title=title,
            styles=source.styles,
            default_title=profile.default_title,
        )
    except ParseFailure as exc:
        logger.error("Could not parse %s page: %s", profile.label, exc)
        raise ConversionFailed(profile.failure_message, page_type=page_type) from exc
    except ConversionFailure as exc:
        logger.exception("Extraction failed for %s page", profile.label)
        raise ConversionFailed(profile.failure_message, page_type=page_type) from exc
    except Exception as exc:
        logger.exception("Unexpected error converting %s page", profile.label)
        raise ConversionFailed(profile.failure_message, page_type=page_type) from exc

    logger.info(
        "Converted %s page",
        profile.label,
        extra={"page_type": page_type, "input_size": len(raw_html), "output_size": len(document)},
    )
    return ConversionResult(page_type=page_type, title=title, html=document)


def convert(raw_html: str, page_type: Optional[PageType] = None) -> str:
    """Return the normalized HTML document for *raw_html*.

    See :func:`convert_page`.
    """
    return convert_page(raw_html, page_type).html
