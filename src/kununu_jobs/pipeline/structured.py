# src/kununu_jobs/pipeline/structured.py
"""
Pull the schema.org JobPosting out of a detail page's JSON-LD blocks.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterator, Optional

from bs4 import BeautifulSoup

from kununu_jobs.models import PartialJobData
from kununu_jobs.pipeline.normalize import (
    extract_location,
    normalize_date,
    normalize_salary,
)

logger = logging.getLogger(__name__)


def _is_job_posting(item: dict) -> bool:
    item_type = item.get("@type") or item.get("type")
    if isinstance(item_type, str):
        return item_type == "JobPosting"
    if isinstance(item_type, list):
        return "JobPosting" in item_type
    return False


def _iter_items(data: Any) -> Iterator[dict]:
    # A block holds one object, a list of objects, or an object with @graph
    items = data if isinstance(data, list) else [data]
    for item in items:
        if not isinstance(item, dict):
            continue
        yield item
        graph = item.get("@graph")
        if isinstance(graph, list):
            yield from (g for g in graph if isinstance(g, dict))


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, list):
        value = ", ".join(str(v).strip() for v in value if v)
    value = str(value).strip()
    return value or None


def _job_posting_fields(item: dict) -> PartialJobData:
    org = item.get("hiringOrganization")
    if isinstance(org, str):
        org = {"name": org}
    elif not isinstance(org, dict):
        org = {}

    return {
        "title": _text(item.get("title") or item.get("name")),
        "company": _text(org.get("name")),
        "company_url": _text(org.get("url") or org.get("sameAs")),
        "date_posted": normalize_date(item.get("datePosted")),
        "valid_through": normalize_date(item.get("validThrough")),
        "description_html": _text(item.get("description")),
        "location": extract_location(item.get("jobLocation")),
        "employment_type": _text(item.get("employmentType")),
        "salary": normalize_salary(item.get("baseSalary")),
    }


def extract_job_posting(soup: BeautifulSoup) -> Optional[PartialJobData]:
    """
    Scan every <script type="application/ld+json"> block in document order and
    return the fields of the first JobPosting, or None.

    A block that does not parse is logged at DEBUG and skipped.
    """
    for script in soup.find_all("script", type="application/ld+json"):
        raw = script.string or script.get_text() or ""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            logger.debug("JSON-LD parse error: %s", e)
            continue

        for item in _iter_items(data):
            if _is_job_posting(item):
                return _job_posting_fields(item)
    return None
