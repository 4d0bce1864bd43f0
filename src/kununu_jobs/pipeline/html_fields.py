# src/kununu_jobs/pipeline/html_fields.py
"""
Selector-based fallback for detail pages, and job-link discovery on listings.

The selectors are deliberately broad ("class contains ...") because kununu's
CSS class names are generated and change between releases.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup

from kununu_jobs.clients.kununu import JOB_PATH
from kununu_jobs.models import PartialJobData
from kununu_jobs.pipeline.normalize import normalize_salary

# Tried in order; first non-empty text wins.
TEXT_SELECTORS: Dict[str, Tuple[str, ...]] = {
    "title": ('h1', '[class*="jobTitle"]', '[class*="job-title"]'),
    "company": ('[class*="company"]', '[data-testid*="company"]'),
    "location": ('[class*="location"]', '[class*="Location"]'),
    "employment_type": ('[class*="employmentType"]', '[class*="job-type"]'),
    "salary": ('[class*="salary"]', '[class*="Salary"]'),
}

DESCRIPTION_SELECTORS: Tuple[str, ...] = (
    '[class*="job-description"]',
    '[class*="jobDescription"]',
    '[class*="description"]',
)


def _first_text(soup: BeautifulSoup, selectors: Iterable[str]) -> Optional[str]:
    for selector in selectors:
        for el in soup.select(selector):
            text = " ".join(el.get_text(" ").split())
            if text:
                return text
    return None


def _first_inner_html(soup: BeautifulSoup, selectors: Iterable[str]) -> Optional[str]:
    for selector in selectors:
        for el in soup.select(selector):
            inner = el.decode_contents().strip()
            if inner:
                return inner
    return None


def extract_html_fields(soup: BeautifulSoup, skip: Iterable[str] = ()) -> PartialJobData:
    """
    Fill whatever is not in `skip` from the page markup.
    Fields with no match are left out; never raises on odd markup.
    """
    skip = set(skip)
    out: PartialJobData = {}

    for field, selectors in TEXT_SELECTORS.items():
        if field in skip:
            continue
        text = _first_text(soup, selectors)
        if field == "salary":
            text = normalize_salary(text)
        if text:
            out[field] = text

    if "description_html" not in skip:
        desc = _first_inner_html(soup, DESCRIPTION_SELECTORS)
        if desc:
            out["description_html"] = desc

    return out


def extract_job_links(soup: BeautifulSoup, page_url: str) -> List[str]:
    """
    Absolute detail-page URLs linked from a listing page, in page order,
    without duplicates. Fragments are dropped so "#apply" links collapse.
    """
    links: List[str] = []
    seen = set()
    for a in soup.select(f'a[href*="{JOB_PATH}"]'):
        href = (a.get("href") or "").strip()
        if JOB_PATH not in href:
            continue
        full_url, _ = urldefrag(urljoin(page_url, href))
        if full_url not in seen:
            seen.add(full_url)
            links.append(full_url)
    return links
