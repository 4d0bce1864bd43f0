# src/kununu_jobs/pipeline/assemble.py
"""
Merge the per-source partials into one JobRecord.

The merge is per field, not per record: each field takes the first value
present in the order given by FIELD_PRECEDENCE. Keeping the table explicit
means the rule (API > JSON-LD > HTML) can be read and tested field by field.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Set, Tuple

from kununu_jobs.models import (
    SOURCE_API,
    SOURCE_HTML,
    SOURCE_MERGED,
    JobRecord,
    PartialJobData,
)
from kununu_jobs.pipeline.normalize import clean_text

API = "api"
STRUCTURED = "structured"
HTML = "html"

_DEFAULT_ORDER = (API, STRUCTURED, HTML)

FIELD_PRECEDENCE: Dict[str, Tuple[str, ...]] = {
    "title": _DEFAULT_ORDER,
    "company": _DEFAULT_ORDER,
    "company_url": _DEFAULT_ORDER,
    "location": _DEFAULT_ORDER,
    "employment_type": _DEFAULT_ORDER,
    "salary": _DEFAULT_ORDER,
    "date_posted": _DEFAULT_ORDER,
    "valid_through": _DEFAULT_ORDER,
    "description_html": _DEFAULT_ORDER,
}


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def merge_partials(
    api: Optional[PartialJobData] = None,
    structured: Optional[PartialJobData] = None,
    html: Optional[PartialJobData] = None,
) -> Tuple[Dict[str, Any], Set[str]]:
    """
    Apply FIELD_PRECEDENCE. Returns the merged fields and the set of sources
    that supplied at least one of them.
    """
    sources = {API: api or {}, STRUCTURED: structured or {}, HTML: html or {}}
    merged: Dict[str, Any] = {}
    contributors: Set[str] = set()

    for field, order in FIELD_PRECEDENCE.items():
        merged[field] = None
        for name in order:
            value = sources[name].get(field)
            if _present(value):
                merged[field] = value
                contributors.add(name)
                break
    return merged, contributors


def missing_fields(*partials: Optional[PartialJobData]) -> Set[str]:
    """Fields none of the given partials provide (what the HTML fallback must fill)."""
    return {
        field for field in FIELD_PRECEDENCE
        if not any(_present((p or {}).get(field)) for p in partials)
    }


def _pick_source(contributors: Iterable[str], had_api: bool) -> str:
    contributors = set(contributors)
    if had_api and contributors - {API}:
        return SOURCE_MERGED
    if had_api:
        return SOURCE_API
    return SOURCE_HTML


def assemble_record(
    url: str,
    api: Optional[PartialJobData] = None,
    structured: Optional[PartialJobData] = None,
    html: Optional[PartialJobData] = None,
) -> JobRecord:
    """
    Build the output record for `url`. description_text is always derived
    from the chosen description_html, never taken from a source.
    """
    merged, contributors = merge_partials(api, structured, html)
    return {
        "title": merged["title"],
        "company": merged["company"],
        "company_url": merged["company_url"],
        "location": merged["location"],
        "employment_type": merged["employment_type"],
        "salary": merged["salary"],
        "date_posted": merged["date_posted"],
        "valid_through": merged["valid_through"],
        "description_html": merged["description_html"],
        "description_text": clean_text(merged["description_html"]),
        "url": url,
        "source": _pick_source(contributors, had_api=bool(api)),
    }


def stub_record(url: str) -> JobRecord:
    """URL-only record for listing links when detail collection is off."""
    return assemble_record(url)
