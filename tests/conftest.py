from __future__ import annotations

import json
import threading
from typing import Dict, List, Optional

import httpx
import pytest
from bs4 import BeautifulSoup

from kununu_jobs.models import SearchCriteria


class ListSink:
    def __init__(self):
        self.records: List[dict] = []
        self._lock = threading.Lock()

    def emit(self, record):
        with self._lock:
            self.records.append(dict(record))

    @property
    def urls(self) -> List[str]:
        return [r["url"] for r in self.records]


class FakeSite:
    """
    Stands in for kununu: API pages by 1-based page number, HTML documents by URL.
    Unknown URLs fail like an exhausted transport would.
    """

    def __init__(self):
        self.api_pages: Dict[int, object] = {}
        self.api_error: Optional[Exception] = None
        self.documents: Dict[str, str] = {}
        self.api_calls: List[dict] = []
        self.document_calls: List[str] = []

    def fetch_json(self, url, params, headers, proxy=None):
        self.api_calls.append(dict(params))
        if self.api_error is not None:
            raise self.api_error
        return self.api_pages.get(int(params["page"]), {"jobs": []})

    def fetch_document(self, url, headers, proxy=None):
        self.document_calls.append(url)
        if url not in self.documents:
            raise httpx.ConnectError(f"unreachable: {url}")
        return BeautifulSoup(self.documents[url], "html.parser")


def detail_html(title, company="ACME GmbH", city="Munich", salary=None, description="<p>Build things.</p>"):
    posting = {
        "@context": "https://schema.org",
        "@type": "JobPosting",
        "title": title,
        "hiringOrganization": {"@type": "Organization", "name": company, "url": "https://acme.example"},
        "jobLocation": {"@type": "Place", "address": {"addressLocality": city, "addressCountry": "DE"}},
        "datePosted": "2024-05-01T08:00:00+02:00",
        "description": description,
    }
    if salary is not None:
        posting["baseSalary"] = salary
    return f"""
    <html><head>
      <script type="application/ld+json">{json.dumps(posting)}</script>
    </head><body><h1>{title}</h1></body></html>
    """


def listing_html(job_urls, next_href=None):
    links = "\n".join(f'<li><a href="{u}">Job</a></li>' for u in job_urls)
    nav = f'<a rel="next" href="{next_href}">Weiter</a>' if next_href else ""
    return f"<html><body><ul>{links}</ul><nav>{nav}</nav></body></html>"


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def sink():
    return ListSink()


@pytest.fixture
def criteria():
    return SearchCriteria(title="python", location="Berlin")
