# src/kununu_jobs/models.py
"""
Typed shapes for everything that flows through the harvester.

Records stay plain dicts with type hints (TypedDict), so they can be written
to the sink as-is. The few values that must not change during a run
(search filters, page cursors, salary inputs) are frozen dataclasses.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, TypedDict, Union


# Output field order is part of the wire contract.
RECORD_FIELDS = (
    "title",
    "company",
    "company_url",
    "location",
    "employment_type",
    "salary",
    "date_posted",
    "valid_through",
    "description_html",
    "description_text",
    "url",
    "source",
)

SOURCE_API = "api"
SOURCE_HTML = "kununu"
SOURCE_MERGED = "merged"


class JobRecord(TypedDict):
    """
    One finished job posting, as handed to the output sink.

    Notes:
    - `url` is the natural key and is always set.
    - Every other field may be None when no source provided it.
    - `source` is "api", "kununu" (HTML only) or "merged".
    """

    title: Optional[str]
    company: Optional[str]
    company_url: Optional[str]
    location: Optional[str]
    employment_type: Optional[str]
    salary: Optional[str]
    date_posted: Optional[str]
    valid_through: Optional[str]
    description_html: Optional[str]
    description_text: Optional[str]
    url: str
    source: str


# Any subset of JobRecord keys coming from one source (api, JSON-LD, HTML).
PartialJobData = Dict[str, Any]


@dataclass(frozen=True)
class SearchCriteria:
    """Search filters shared by the API query and the HTML search URL."""

    title: str = ""
    location: str = ""
    home_office: bool = False
    employment_type: str = ""
    career_level: str = ""


class SourceMode(str, enum.Enum):
    API = "API"
    HTML = "HTML"


@dataclass(frozen=True)
class PageCursor:
    page_number: int
    source_mode: SourceMode
    url: Optional[str] = None  # only set for HTML listing pages


# ---- Salary input tagged union ----------------------------------------------

@dataclass(frozen=True)
class NumericSalary:
    amount: float


@dataclass(frozen=True)
class StructuredSalary:
    # schema.org MonetaryAmount, already unpacked
    min_value: Any = None
    max_value: Any = None
    currency: Optional[str] = None


@dataclass(frozen=True)
class FreeTextSalary:
    text: str


SalaryInput = Union[NumericSalary, StructuredSalary, FreeTextSalary]
