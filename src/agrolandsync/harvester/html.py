"""
HTML description building and length-bounded truncation.

truncate_html never returns more than max_length characters and closes every
tag it leaves open, as long as the closing tags still fit in the budget.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from .models import FeedProduct

# Block-level closers considered safe cut points.
SAFE_CLOSING_TAGS = ("</li>", "</p>", "</div>")

DESCRIPTION_MAX_LENGTH = 1000
DESCRIPTION_HEADER = "<h2>Opis produktu</h2>"
ATTRIBUTES_LABEL = "<b>Parametry: </b>"

_TAG_RE = re.compile(r"</?([a-zA-Z0-9]+)[^>]*>")

_SAFE_CLOSING_RE = re.compile(
    "|".join(re.escape(tag) for tag in SAFE_CLOSING_TAGS), re.IGNORECASE | re.ASCII
)


def _last_safe_cutoff(html: str, max_length: int) -> Optional[int]:
    """End index of the latest safe closing tag lying wholly inside max_length."""
    # Matched on the original text: str.lower() can change the length.
    best_end = None
    for match in _SAFE_CLOSING_RE.finditer(html, 0, max_length):
        best_end = match.end()
    return best_end


def _open_tags(html: str) -> list:
    # Self-closing tags (<br/>) are pushed like any other opener.
    stack = []
    for match in _TAG_RE.finditer(html):
        name = match.group(1)
        if not match.group(0).startswith("</"):
            stack.append(name)
        elif stack and stack[-1].lower() == name.lower():
            stack.pop()
    return stack


def truncate_html(html: Optional[str], max_length: int) -> Optional[str]:
    """Cut ``html`` to at most ``max_length`` characters at a safe block boundary.

    Input already within the limit (or empty) is returned unchanged. Otherwise
    the text is cut after the last </li>, </p> or </div> that fits, or hard at
    max_length when none does, then still-open tags are closed innermost first
    while they fit.
    """
    if not html or len(html) <= max_length:
        return html

    cutoff = _last_safe_cutoff(html, max_length)
    if cutoff is None:
        cutoff = max_length
    truncated = html[: min(cutoff, len(html))]

    stack = _open_tags(truncated)
    while stack:
        close_tag = f"</{stack.pop()}>"
        if len(truncated) + len(close_tag) > max_length:
            break
        truncated += close_tag

    if len(truncated) > max_length:
        truncated = truncated[:max_length]

    return truncated


def _clean_attributes(attributes: Iterable[Optional[str]]) -> list:
    return [a for a in attributes if a and a.strip()]


def build_description(
    product: FeedProduct, max_length: int = DESCRIPTION_MAX_LENGTH
) -> str:
    """Render the product description HTML and fit it into max_length."""
    parts = [DESCRIPTION_HEADER]

    if product.desc and product.desc.strip():
        parts.append(f"<p>{product.desc}</p>")

    attributes = _clean_attributes(product.attributes)
    if attributes:
        parts.append(f"<p>{ATTRIBUTES_LABEL}{', '.join(attributes)}</p>")

    return truncate_html("".join(parts), max_length)


__all__ = [
    "SAFE_CLOSING_TAGS",
    "DESCRIPTION_MAX_LENGTH",
    "truncate_html",
    "build_description",
]
