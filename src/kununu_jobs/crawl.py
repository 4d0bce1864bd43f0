# src/kununu_jobs/crawl.py
"""
Acquisition controller: API first, HTML listing + detail crawl as fallback.

Phases:
- API_PAGING: sequential API pages until empty/failed, or the budget is used.
  Skipped when explicit start URLs were given.
- HTML_LISTING: listing pages from the search URL (or the start URLs), each
  one discovering detail links and the next listing page.
- HTML_DETAIL_DRAIN: remaining detail fetches finish; their results are
  merged and emitted while budget is left, otherwise only counted.
- DONE

Listing and detail fetches share one bounded worker pool. Every decision that
touches the dedup set or the counters goes through AcquisitionState.
"""

from __future__ import annotations

import enum
import itertools
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from typing import Any, Callable, Optional, Protocol

import httpx
from bs4 import BeautifulSoup

from kununu_jobs.clients import kununu
from kununu_jobs.clients.kununu import RequestContext, build_headers, build_search_url
from kununu_jobs.clients.proxy import ProxyRotator
from kununu_jobs.config import RunConfig
from kununu_jobs.models import JobRecord, PageCursor, PartialJobData, SourceMode
from kununu_jobs.pipeline.assemble import FIELD_PRECEDENCE, assemble_record, missing_fields, stub_record
from kununu_jobs.pipeline.filter import AcquisitionState
from kununu_jobs.pipeline.html_fields import extract_html_fields, extract_job_links
from kununu_jobs.pipeline.normalize import normalize_kununu_api
from kununu_jobs.pipeline.pagination import page_param, resolve_next_page
from kununu_jobs.pipeline.structured import extract_job_posting

logger = logging.getLogger(__name__)


class Phase(str, enum.Enum):
    API_PAGING = "API_PAGING"
    HTML_LISTING = "HTML_LISTING"
    HTML_DETAIL_DRAIN = "HTML_DETAIL_DRAIN"
    DONE = "DONE"


class Sink(Protocol):
    def emit(self, record: JobRecord) -> None: ...


@dataclass
class RunSummary:
    saved: int
    seen: int
    api_pages: int
    listing_pages: int
    failed_details: int
    phase: str

    def to_dict(self) -> dict:
        return asdict(self)


class WorkQueue:
    """
    Bounded pool for listing and detail tasks, with a pending counter.

    A task may enqueue follow-up tasks; join() returns once nothing is
    queued or running. Exceptions are logged per task and never reach
    sibling tasks.
    """

    def __init__(self, max_workers: int):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="kununu")
        self._pending = 0
        self._cond = threading.Condition()

    def enqueue(self, fn: Callable[..., Any], *args: Any) -> None:
        with self._cond:
            self._pending += 1
        self._executor.submit(self._run, fn, *args)

    def _run(self, fn: Callable[..., Any], *args: Any) -> None:
        try:
            fn(*args)
        except Exception:
            logger.exception("Task %s failed", getattr(fn, "__name__", fn))
        finally:
            with self._cond:
                self._pending -= 1
                self._cond.notify_all()

    def pending_count(self) -> int:
        with self._cond:
            return self._pending

    def join(self) -> None:
        with self._cond:
            while self._pending:
                self._cond.wait()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)


class AcquisitionController:
    def __init__(
        self,
        config: RunConfig,
        sink: Sink,
        *,
        fetch_json: kununu.FetchJson = kununu.fetch_json,
        fetch_document: kununu.FetchDocument = kununu.fetch_document,
        proxies: Optional[ProxyRotator] = None,
    ):
        self.config = config
        self.sink = sink
        self.fetch_json = fetch_json
        self.fetch_document = fetch_document
        self.proxies = proxies or ProxyRotator(config.proxy_urls)
        self.state = AcquisitionState(target_count=config.results_wanted, max_pages=config.max_pages)
        self.phase = Phase.API_PAGING if config.api_enabled else Phase.HTML_LISTING
        self.queue = WorkQueue(config.max_concurrency)

        self._html_started = False
        self._api_pages = 0
        self._listing_pages = 0
        self._failed_details = 0
        self._listings_pending = 0
        self._counter_lock = threading.Lock()
        self._phase_lock = threading.Lock()
        self._seed = itertools.count()

    # ---- helpers ----------------------------------------------------------------

    def _transition(self, phase: Phase) -> None:
        with self._phase_lock:
            if phase != self.phase:
                logger.info("Phase %s -> %s", self.phase.value, phase.value)
                self.phase = phase

    def _headers(self, kind: str) -> dict:
        return build_headers(RequestContext(kind, next(self._seed)))

    def _target_label(self) -> str:
        return "all" if self.config.unbounded else str(self.config.results_wanted)

    # ---- API path ----------------------------------------------------------------

    def _fetch_api_page(self, page_index: int) -> Optional[list]:
        try:
            payload = kununu.kununu_search(
                self.config.criteria,
                page_index,
                headers=self._headers("api"),
                proxy=self.proxies.next(),
                fetch=self.fetch_json,
            )
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("API fetch failed: %s. Falling back to HTML parsing.", e)
            return None
        return normalize_kununu_api(payload)

    def run_api_paging(self) -> None:
        logger.info("Attempting API-based scraping...")
        for page_index in itertools.count():
            cursor = PageCursor(page_number=page_index + 1, source_mode=SourceMode.API)
            if self.state.remaining() <= 0 or not self.state.within_page_limit(cursor.page_number):
                break

            jobs = self._fetch_api_page(page_index)
            if not jobs:
                logger.info("No more jobs from API at page %d. Switching to HTML parsing.", cursor.page_number)
                break
            self._api_pages += 1
            logger.info("API returned %d jobs from page %d", len(jobs), cursor.page_number)

            for job in jobs:
                if self.state.remaining() <= 0:
                    break
                url = job.get("url")
                if not url:
                    continue
                if self.config.collect_details:
                    if self.state.reserve_detail(url):
                        self.queue.enqueue(self.process_detail, url, job)
                elif self.state.accept_direct(url):
                    self.sink.emit(assemble_record(url, api=job))

    # ---- HTML path ---------------------------------------------------------------

    def initial_listing_cursors(self) -> list:
        urls = self.config.start_urls or (build_search_url(self.config.criteria, 1),)
        return [
            PageCursor(page_number=page_param(u) or 1, source_mode=SourceMode.HTML, url=u)
            for u in urls
        ]

    def start_html_listing(self) -> None:
        self._html_started = True
        self._transition(Phase.HTML_LISTING)
        self.enqueue_listing(*self.initial_listing_cursors())

    def enqueue_listing(self, *cursors: PageCursor) -> None:
        # counted up front so an early finisher cannot end the listing phase
        with self._counter_lock:
            self._listings_pending += len(cursors)
        for cursor in cursors:
            self.queue.enqueue(self._listing_task, cursor)

    def _listing_task(self, cursor: PageCursor) -> None:
        # a listing enqueues its next page before it settles, so the count
        # only reaches 0 once pagination has ended on every branch
        try:
            self.process_listing(cursor)
        finally:
            with self._counter_lock:
                self._listings_pending -= 1
                last = self._listings_pending == 0
            if last:
                self._transition(Phase.HTML_DETAIL_DRAIN)

    def process_listing(self, cursor: PageCursor) -> None:
        if self.state.is_done():
            logger.debug("Target reached; not fetching listing %s", cursor.url)
            return

        logger.info("Processing LIST page: %s", cursor.url)
        try:
            soup = self.fetch_document(cursor.url, self._headers("html"), self.proxies.next())
        except httpx.HTTPError as e:
            logger.error("LIST %s failed: %s. Stopping pagination on this branch.", cursor.url, e)
            return
        with self._counter_lock:
            self._listing_pages += 1

        self.handle_listing(soup, cursor)

    def handle_listing(self, soup: BeautifulSoup, cursor: PageCursor) -> int:
        """
        Claim new job links from one listing document and queue the next page.
        Returns how many links were claimed.
        """
        links = extract_job_links(soup, cursor.url)
        fresh = self.state.filter_new(links)
        logger.info("Found %d job links (%d new) on page %d", len(links), len(fresh), cursor.page_number)

        claimed = 0
        for url in fresh:
            if self.state.remaining() <= 0:
                break
            if self.config.collect_details:
                if self.state.reserve_detail(url):
                    self.queue.enqueue(self.process_detail, url, None)
                    claimed += 1
            elif self.state.accept_direct(url):
                self.sink.emit(stub_record(url))
                claimed += 1

        if not self.state.is_done() and self.state.within_page_limit(cursor.page_number + 1):
            next_url = resolve_next_page(soup, cursor.url, cursor.page_number, self.config.max_pages)
            if next_url:
                logger.info("Enqueueing next page: %s", next_url)
                self.enqueue_listing(
                    PageCursor(page_number=cursor.page_number + 1, source_mode=SourceMode.HTML, url=next_url),
                )
            else:
                logger.info(
                    "No next page found at page %d (max_pages=%d, jobsOnPage=%d)",
                    cursor.page_number, self.config.max_pages, len(links),
                )
        return claimed

    # ---- details -----------------------------------------------------------------

    def build_detail_record(self, soup: BeautifulSoup, url: str, api_data: Optional[PartialJobData]) -> JobRecord:
        structured = extract_job_posting(soup) or {}
        todo = missing_fields(api_data, structured)
        html = extract_html_fields(soup, skip=set(FIELD_PRECEDENCE) - todo) if todo else {}
        return assemble_record(url, api=api_data, structured=structured, html=html)

    def process_detail(self, url: str, api_data: Optional[PartialJobData] = None) -> None:
        if self.state.is_done():
            # budget was used up while this task waited; it only settles the counter
            self.state.release_detail()
            logger.debug("Target reached; skipping detail %s", url)
            return

        try:
            soup = self.fetch_document(url, self._headers("html"), self.proxies.next())
            record = self.build_detail_record(soup, url, api_data)
        except Exception as e:
            self.state.release_detail()
            with self._counter_lock:
                self._failed_details += 1
            logger.error("DETAIL %s failed: %s", url, e)
            return

        saved = self.state.complete_detail()
        if not saved:
            logger.debug("Target reached; discarding finished detail %s", url)
            return
        self.sink.emit(record)
        logger.info("Saved job %d/%s: %s", saved, self._target_label(), record["title"])

    # ---- run ---------------------------------------------------------------------

    def run(self) -> RunSummary:
        if len(self.proxies):
            logger.info("Rotating requests over %d proxies", len(self.proxies))
        try:
            if self.config.api_enabled:
                self.run_api_paging()

            if self.state.remaining() > 0:
                self.start_html_listing()
            else:
                # API jobs hold the whole budget; only their details are left
                self._transition(Phase.HTML_DETAIL_DRAIN)

            self.queue.join()

            # API-driven details may have failed after the API phase ended and
            # left budget that only the HTML path can still fill.
            if not self._html_started and self.state.remaining() > 0:
                self.start_html_listing()
                self.queue.join()

            self._transition(Phase.DONE)
        finally:
            self.queue.shutdown()

        logger.info("Finished. Saved %d job listings from Kununu.", self.state.saved_count)
        return self.summary()

    def summary(self) -> RunSummary:
        return RunSummary(
            saved=self.state.saved_count,
            seen=len(self.state.seen_urls),
            api_pages=self._api_pages,
            listing_pages=self._listing_pages,
            failed_details=self._failed_details,
            phase=self.phase.value,
        )


def run(
    config: RunConfig,
    sink: Sink,
    *,
    fetch_json: kununu.FetchJson = kununu.fetch_json,
    fetch_document: kununu.FetchDocument = kununu.fetch_document,
) -> RunSummary:
    """Harvest jobs for `config` into `sink` and return the run summary."""
    controller = AcquisitionController(config, sink, fetch_json=fetch_json, fetch_document=fetch_document)
    return controller.run()
