"""Per-builder extraction profiles.

Every :data:`~app.services.detector.PageType` maps to one
:class:`BuilderProfile`; the converter runs the same pipeline for all of
them and only the profile changes.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

from app.services.detector import PageType


@dataclass(frozen=True)
class BuilderProfile:
    """Selectors and defaults that drive content extraction for one page type."""

    name: PageType
    label: str
    # Section / container markers. Empty for pages without a builder.
    builder_selectors: Tuple[str, ...]
    fallback_selectors: Tuple[str, ...]
    # Builder-only identifying attributes removed from every element.
    attributes_to_strip: Tuple[str, ...]
    default_title: str
    failure_message: str
    # Generic pages drop chrome (nav, cookie notices, trackers, ...) and keep
    # only the first non-blank candidate container.
    remove_unwanted: bool = False
    first_match_only: bool = False


ELEMENTOR = BuilderProfile(
    name="elementor",
    label="Elementor",
    builder_selectors=(".elementor-section", ".elementor-container"),
    fallback_selectors=("main", "#content", ".content", "article"),
    attributes_to_strip=(
        "data-elementor-type",
        "data-elementor-id",
        "data-elementor-settings",
        "data-element_type",
        "data-widget_type",
        "data-settings",
        "data-id",
    ),
    default_title="Converted Elementor Page",
    failure_message="Failed to convert Elementor page",
)

GHL = BuilderProfile(
    name="ghl",
    label="GoHighLevel",
    builder_selectors=(".section", ".block", ".container", '[data-type="section"]'),
    fallback_selectors=("main", "#content", ".content", ".page-content"),
    attributes_to_strip=("data-block-id", "data-block-type"),
    default_title="Converted GHL Page",
    failure_message="Failed to convert GHL page",
)

GENERIC = BuilderProfile(
    name="generic",
    label="Generic",
    builder_selectors=(),
    # Most specific first.
    fallback_selectors=(
        "main",
        '[role="main"]',
        "#main-content",
        ".main-content",
        "#content",
        ".content",
        ".page-content",
        ".entry-content",
        ".post-content",
        "article",
        "section",
        ".container",
    ),
    attributes_to_strip=(),
    default_title="Converted Page",
    failure_message="Failed to parse HTML content",
    remove_unwanted=True,
    first_match_only=True,
)

PROFILES: Dict[str, BuilderProfile] = {
    profile.name: profile for profile in (ELEMENTOR, GHL, GENERIC)
}


def get_profile(page_type: str) -> BuilderProfile:
    """Return the profile for *page_type*.

    Raises:
        ValueError: if *page_type* is not a known page type.
    """
    try:
        return PROFILES[page_type]
    except KeyError:
        raise ValueError(
            f"Unknown page type '{page_type}'. Expected one of: {', '.join(PROFILES)}."
        ) from None
