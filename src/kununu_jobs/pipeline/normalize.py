# src/kununu_jobs/pipeline/normalize.py
"""
Turn raw salary / location / date values into canonical strings, and map
Kununu's raw API response into our partial job dicts.

Everything here is a pure function. Salary text in the wild is messy
(currency symbols, ranges, single figures, German vs. US number formats),
so nothing in this module raises on bad input: it degrades to the best
string it can build, or None.
"""

from __future__ import annotations

import datetime as dt
import math
import re
from typing import Any, List, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from kununu_jobs.clients.kununu import JOB_URL_PREFIX, SITE_ROOT
from kununu_jobs.models import (
    SOURCE_API,
    FreeTextSalary,
    NumericSalary,
    PartialJobData,
    SalaryInput,
    StructuredSalary,
)

DEFAULT_CURRENCY = "EUR"

_LEADING_NUMBER = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)")
# "." followed by exactly three digits and then a non-digit (or the end)
_THOUSANDS_DOT = re.compile(r"\.(?=\d{3}(?:\D|$))")
_NUMBER_TOKEN = re.compile(r"\d[\d.,\s]*\d")
_EURO = re.compile(r"€|eur", re.IGNORECASE)
_ISO_DATE = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:[T ].*)?$")
_STRIP_TAGS = ["script", "style", "noscript", "iframe"]


# ---- Salary -----------------------------------------------------------------

def parse_salary_number(raw: Any) -> Optional[float]:
    """
    Parse one salary figure. "45.000" -> 45000.0, "45,5" -> 45.5.

    "." counts as a thousands separator when exactly three digits follow it,
    "," is the decimal separator.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw) if math.isfinite(raw) else None

    cleaned = re.sub(r"[^\d,.\-]", "", str(raw))
    cleaned = _THOUSANDS_DOT.sub("", cleaned)
    cleaned = cleaned.replace(",", ".", 1)
    m = _LEADING_NUMBER.match(cleaned)
    if not m:
        return None
    value = float(m.group())
    return value if math.isfinite(value) else None


def _round_half_up(n: float) -> int:
    return int(math.floor(n + 0.5))


def format_salary_range(
    min_value: Optional[float],
    max_value: Optional[float],
    currency: Optional[str] = None,
) -> Optional[str]:
    """Render "45,000 - 60,000 EUR", "50,000 EUR" or None."""
    cur = currency or DEFAULT_CURRENCY

    def fmt(n: Optional[float]) -> Optional[str]:
        if n is None or not math.isfinite(n):
            return None
        return f"{_round_half_up(n):,}"

    min_fmt = fmt(min_value)
    max_fmt = fmt(max_value)
    if min_fmt is not None and max_fmt is not None and min_value != max_value:
        return f"{min_fmt} - {max_fmt} {cur}"
    if min_fmt is not None:
        return f"{min_fmt} {cur}"
    return None


def classify_salary(raw: Any) -> Optional[SalaryInput]:
    """
    Tag a raw salary value as numeric, structured (schema.org MonetaryAmount)
    or free text. Empty values give None.
    """
    if not raw or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return NumericSalary(float(raw))
    if isinstance(raw, dict):
        value = raw.get("value")
        nested = value if isinstance(value, dict) else raw
        currency = (
            raw.get("currency")
            or raw.get("currencyCode")
            or (value.get("currency") if isinstance(value, dict) else None)
            or DEFAULT_CURRENCY
        )
        low = nested.get("minValue")
        if low is None:
            low = nested.get("value")
        return StructuredSalary(
            min_value=low,
            max_value=nested.get("maxValue"),
            currency=currency,
        )
    return FreeTextSalary(str(raw))


def _normalize_free_text(text: str) -> Optional[str]:
    clean = re.sub(r"\s+", " ", text.replace("\u00a0", " ")).strip()
    if not clean:
        return None
    currency = DEFAULT_CURRENCY if _EURO.search(clean) else None

    numbers: List[float] = []
    for m in _NUMBER_TOKEN.finditer(clean):
        n = parse_salary_number(m.group())
        if n is not None:
            numbers.append(n)

    if len(numbers) >= 2:
        return format_salary_range(min(numbers), max(numbers), currency)
    if len(numbers) == 1:
        return format_salary_range(numbers[0], None, currency) or clean
    return f"{clean} ({currency})" if currency else clean


def normalize_salary(raw: Any) -> Optional[str]:
    """
    Best-effort canonical salary string from a number, a MonetaryAmount dict,
    free text, or an already-tagged SalaryInput. Never raises.
    """
    tagged = raw if isinstance(raw, (NumericSalary, StructuredSalary, FreeTextSalary)) else classify_salary(raw)

    if tagged is None:
        return None
    if isinstance(tagged, NumericSalary):
        if not tagged.amount:
            return None
        return format_salary_range(parse_salary_number(tagged.amount), None, DEFAULT_CURRENCY)
    if isinstance(tagged, StructuredSalary):
        return format_salary_range(
            parse_salary_number(tagged.min_value),
            parse_salary_number(tagged.max_value),
            tagged.currency,
        )
    return _normalize_free_text(tagged.text)


# ---- Location / dates / text ------------------------------------------------

def extract_location(job_location: Any) -> Optional[str]:
    """
    "Berlin, BE, DE" from a schema.org jobLocation (a Place, or a list of
    them; only the first one is used).
    """
    if not job_location:
        return None
    if isinstance(job_location, list):
        job_location = job_location[0]
    if isinstance(job_location, str):
        return job_location.strip() or None
    if not isinstance(job_location, dict):
        return None

    addr = job_location.get("address")
    if isinstance(addr, str):
        return addr.strip() or None
    if not isinstance(addr, dict):
        return None

    parts = []
    for key in ("addressLocality", "addressRegion", "addressCountry"):
        part = addr.get(key)
        if isinstance(part, dict):
            part = part.get("name")
        if part and str(part).strip():
            parts.append(str(part).strip())
    return ", ".join(parts) or None


def normalize_date(raw: Any) -> Optional[str]:
    # ISO timestamps -> "YYYY-MM-DD"; epoch numbers -> ISO date; other text as-is
    if raw is None or raw == "" or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        seconds = raw / 1000 if raw > 1e11 else raw
        try:
            return dt.datetime.fromtimestamp(seconds, tz=dt.timezone.utc).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return None
    text = str(raw).strip()
    if not text:
        return None
    m = _ISO_DATE.match(text)
    return m.group(1) if m else text


def clean_text(html: Optional[str]) -> Optional[str]:
    """Plain text of an HTML fragment, without script/style/noscript/iframe."""
    if not html:
        return None
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_STRIP_TAGS):
        tag.decompose()
    text = re.sub(r"\s+", " ", soup.get_text(" ")).strip()
    return text or None


# ---- API payloads -----------------------------------------------------------

def _name_and_url(value: Any, name_key: str, url_key: str, x: dict) -> tuple:
    if isinstance(value, dict):
        return value.get("name") or x.get(name_key), value.get("url") or x.get(url_key)
    if isinstance(value, str) and value.strip():
        return value.strip(), x.get(url_key)
    return x.get(name_key), x.get(url_key)


def normalize_kununu_api(payload: Any) -> Optional[List[PartialJobData]]:
    """
    Transform one Kununu search API response into a list of API partials.

    Returns None when the payload does not have the expected {"jobs": [...]}
    shape, which the controller treats the same as an empty page.
    """
    if not isinstance(payload, dict):
        return None
    jobs = payload.get("jobs")
    if not isinstance(jobs, list):
        return None

    out: List[PartialJobData] = []
    for x in jobs:
        if not isinstance(x, dict):
            continue

        # The API has shipped both "id" and "uuid" over time
        job_id = x.get("id") or x.get("uuid")

        company, company_url = _name_and_url(x.get("company"), "companyName", "companyUrl", x)
        location, _ = _name_and_url(x.get("location"), "locationName", "locationUrl", x)

        url = x.get("url")
        if url:
            url = urljoin(SITE_ROOT, str(url))
        elif job_id:
            url = f"{JOB_URL_PREFIX}{job_id}"

        out.append({
            "id": str(job_id) if job_id else None,
            "title": ((x.get("title") or x.get("jobTitle") or "").strip() or None),
            "company": company,
            "company_url": company_url,
            "location": location,
            "employment_type": x.get("employmentType"),
            "salary": normalize_salary(x.get("salary") or x.get("salaryText")),
            "date_posted": normalize_date(x.get("publishedAt") or x.get("datePosted")),
            "url": url,
            "source": SOURCE_API,
        })
    return out
