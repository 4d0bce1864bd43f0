# src/kununu_jobs/clients/kununu.py

"""
Plain-function client for kununu.com: the JSON search API and the HTML pages.

Design goals:
- Keep *all* HTTP details here (URLs, headers, timeouts, retries) so the
  crawl logic never builds a request by hand.
- Expose simple functions; the controller gets them passed in, which is also
  how tests swap in fakes.
- Return raw JSON / parsed documents; normalization happens in pipeline/.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlencode

import httpx
from bs4 import BeautifulSoup
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from kununu_jobs.models import SearchCriteria

logger = logging.getLogger(__name__)

SITE_ROOT = "https://www.kununu.com"
SEARCH_URL = f"{SITE_ROOT}/de/jobs"
API_SEARCH_URL = f"{SITE_ROOT}/api/v1/jobs/search"
JOB_PATH = "/de/job/"
JOB_URL_PREFIX = f"{SITE_ROOT}{JOB_PATH}"

API_PAGE_SIZE = 50  # the API may still return ~30 per page
REQUEST_TIMEOUT = 30
MAX_ATTEMPTS = 3

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0",
    "Mozilla/5.0 (X11; Linux x86_64; rv:121.0) Gecko/20100101 Firefox/121.0",
)

FetchJson = Callable[..., Any]
FetchDocument = Callable[..., BeautifulSoup]


# ---- Request building ---------------------------------------------------------

@dataclass(frozen=True)
class RequestContext:
    kind: str  # "api" or "html"
    seed: int = 0  # picks the user agent; the controller passes a running counter


def build_headers(context: RequestContext) -> Dict[str, str]:
    """
    Headers for one request. Pure: same context in, same headers out.
    """
    if context.kind == "api":
        accept = "application/json, text/plain, */*"
    else:
        accept = "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8"
    return {
        "User-Agent": USER_AGENTS[context.seed % len(USER_AGENTS)],
        "Accept": accept,
        "Accept-Language": "de-DE,de;q=0.9,en-US;q=0.8,en;q=0.7",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }


def build_search_url(criteria: SearchCriteria, page: int = 1) -> str:
    """
    HTML search URL for the same filters the API query uses.
    kununu paginates listings with ?page=N, page 1 has no parameter.
    """
    params = []
    if criteria.title:
        params.append(("q", criteria.title))
    if criteria.location:
        params.append(("l", criteria.location))
    if criteria.home_office:
        params.append(("w", "home-office"))
    if criteria.employment_type:
        params.append(("m", criteria.employment_type))
    if criteria.career_level:
        params.append(("t", criteria.career_level))
    if page > 1:
        params.append(("page", str(page)))
    return f"{SEARCH_URL}?{urlencode(params)}" if params else SEARCH_URL


def build_api_params(criteria: SearchCriteria, page_index: int) -> Dict[str, str]:
    """Query params for one API page. page_index is 0-based, the API is 1-based."""
    params: Dict[str, str] = {}
    if criteria.title:
        params["q"] = criteria.title
    if criteria.location:
        params["location"] = criteria.location
    if criteria.home_office:
        params["homeOffice"] = "true"
    if criteria.employment_type:
        params["employmentType"] = criteria.employment_type
    if criteria.career_level:
        params["careerLevel"] = criteria.career_level
    params["page"] = str(page_index + 1)
    params["limit"] = str(API_PAGE_SIZE)
    return params


# ---- Transport ----------------------------------------------------------------

_transport_retry = retry(
    # 1s, 2s, 4s ... capped at 8s; three attempts in total
    wait=wait_exponential(min=1, max=8),
    stop=stop_after_attempt(MAX_ATTEMPTS),
    retry=retry_if_exception_type(httpx.HTTPError),
    before_sleep=before_sleep_log(logger, logging.DEBUG),
    reraise=True,
)


@_transport_retry
def fetch_json(url: str, params: Dict[str, str], headers: Dict[str, str], proxy: Optional[str] = None) -> Any:
    """
    One GET returning decoded JSON. Raises httpx.HTTPError once retries are
    exhausted, ValueError when the body is not JSON.
    """
    with httpx.Client(timeout=REQUEST_TIMEOUT, headers=headers, proxy=proxy, follow_redirects=True) as client:
        resp = client.get(url, params=params)
        resp.raise_for_status()  # raises httpx.HTTPStatusError for 4xx/5xx
        return resp.json()


@_transport_retry
def fetch_document(url: str, headers: Dict[str, str], proxy: Optional[str] = None) -> BeautifulSoup:
    """One GET returning the parsed HTML document."""
    with httpx.Client(timeout=REQUEST_TIMEOUT, headers=headers, proxy=proxy, follow_redirects=True) as client:
        resp = client.get(url)
        resp.raise_for_status()
        return BeautifulSoup(resp.text, "html.parser")


# ---- Public API -----------------------------------------------------------------

def kununu_search(
    criteria: SearchCriteria,
    page_index: int = 0,
    *,
    headers: Optional[Dict[str, str]] = None,
    proxy: Optional[str] = None,
    fetch: FetchJson = fetch_json,
) -> Any:
    """
    Fetch ONE page of API search results and return the raw JSON.

    Pass the result to pipeline.normalize.normalize_kununu_api.
    """
    return fetch(
        API_SEARCH_URL,
        build_api_params(criteria, page_index),
        headers or build_headers(RequestContext("api", page_index)),
        proxy,
    )
