"""
HTML fragment extraction and injection.

The curated page in the secondary store carries one element (by default
``id="optimized-for-ai"``) whose outer HTML is grafted into the origin page
just before ``</body>``.

Matching is textual, not a parse: the element ends at the first closing tag
with the same name after the opening tag. A nested element with the same tag
name therefore cuts the fragment short.
"""

import re
from dataclasses import dataclass

_BODY_CLOSE_RE = re.compile(r"</body>", re.IGNORECASE)


@dataclass
class InjectionResult:
    """Outbound HTML plus whether a fragment was actually grafted in."""

    html: str
    fragment_injected: bool


def _element_by_id_pattern(element_id: str) -> re.Pattern:
    return re.compile(
        r"<([a-zA-Z0-9:-]+)([^*>]*\s)?id=([\"'])"
        + re.escape(element_id)
        + r"\3[^>]*>([\s\S]*?)</\1\s*>",
        re.IGNORECASE,
    )


def extract_element_outer_html_by_id(html: str, element_id: str) -> str:
    """
    Extract the outer HTML of the first element with the given id.

    Args:
        html: Full HTML document text
        element_id: Exact id attribute value to look for

    Returns:
        The element's markup including its opening and closing tags,
        or "" if nothing matches

    Examples:
        >>> extract_element_outer_html_by_id('<p><b id="x">hi</b></p>', "x")
        '<b id="x">hi</b>'
        >>> extract_element_outer_html_by_id("<p>hi</p>", "x")
        ''
    """
    if not html or not element_id:
        return ""
    match = _element_by_id_pattern(element_id).search(html)
    return match.group(0) if match else ""


def inject_html(base_html: str, fragment: str) -> str:
    """
    Insert a fragment before the first closing body tag.

    Falls back to appending the fragment when the document has no
    ``</body>``. An empty fragment leaves the document unchanged.

    Args:
        base_html: Origin page HTML
        fragment: Markup to insert

    Returns:
        The combined HTML
    """
    if not fragment:
        return base_html

    match = _BODY_CLOSE_RE.search(base_html)
    if match is None:
        return base_html + fragment
    return base_html[: match.start()] + fragment + base_html[match.start() :]


def inject_fragment(base_html: str, fragment: str) -> InjectionResult:
    """Inject a fragment and report whether anything was added."""
    return InjectionResult(
        html=inject_html(base_html, fragment),
        fragment_injected=bool(fragment),
    )
