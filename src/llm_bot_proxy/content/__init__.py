"""Curated content extraction and injection."""

from .fragments import (
    InjectionResult,
    extract_element_outer_html_by_id,
    inject_fragment,
    inject_html,
)

__all__ = [
    "InjectionResult",
    "extract_element_outer_html_by_id",
    "inject_fragment",
    "inject_html",
]
