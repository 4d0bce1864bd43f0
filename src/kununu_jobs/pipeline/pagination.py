# src/kununu_jobs/pipeline/pagination.py
"""
Find the next listing page.

The "next" control has looked different in almost every kununu release, so
resolution degrades step by step:

1. hard stop at the page limit
2. an explicit next link (rel/aria-label/arrow text)
3. a numbered link for the next page
4. incrementing ?page= on the current URL

Step 4 always produces a URL, which is why step 1 must come first.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

NEXT_LABELS = ("next", "weiter")
NEXT_TEXTS = {"weiter", "nächste", "next", ">", "»", "›"}


def _usable_href(a: Tag) -> Optional[str]:
    href = (a.get("href") or "").strip()
    if not href or href == "#" or href.lower().startswith("javascript:"):
        return None
    return href


def _is_disabled(a: Tag) -> bool:
    classes = a.get("class") or []
    return (
        "disabled" in classes
        or a.has_attr("disabled")
        or (a.get("aria-disabled") or "").lower() == "true"
    )


def _is_next_control(a: Tag) -> bool:
    rel = a.get("rel") or []
    if isinstance(rel, str):
        rel = rel.split()
    if "next" in [r.lower() for r in rel]:
        return True
    label = (a.get("aria-label") or "").lower()
    if any(word in label for word in NEXT_LABELS):
        return True
    return a.get_text(strip=True).lower() in NEXT_TEXTS


def page_param(url: str) -> Optional[int]:
    for key, value in parse_qsl(urlsplit(url).query):
        if key == "page":
            try:
                return int(value)
            except ValueError:
                return None
    return None


def with_page(url: str, page: int) -> str:
    """Return `url` with its page query parameter set to `page`."""
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "page"]
    query.append(("page", str(page)))
    return urlunsplit(parts._replace(query=urlencode(query)))


def resolve_next_page(
    soup: BeautifulSoup,
    current_url: str,
    current_page: int,
    page_limit: int,
) -> Optional[str]:
    next_page = current_page + 1
    if next_page > page_limit:
        return None

    anchors = soup.find_all("a")

    for a in anchors:
        href = _usable_href(a)
        if href and not _is_disabled(a) and _is_next_control(a):
            return urljoin(current_url, href)

    next_param = re.compile(rf"[?&]page={next_page}(?:[&#]|$)")
    for a in anchors:
        href = _usable_href(a)
        if not href:
            continue
        if a.get_text(strip=True) == str(next_page) or next_param.search(href):
            return urljoin(current_url, href)

    # The URL's own page value wins over the caller's counter; they can drift.
    current = page_param(current_url) or current_page
    return with_page(current_url, current + 1)
