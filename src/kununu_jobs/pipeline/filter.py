# src/kununu_jobs/pipeline/filter.py
"""
Dedup set and counters shared by every task of one run.

All check-then-act steps (seen? budget left? -> mark + count) happen inside
one lock acquisition, so two tasks can never schedule the same URL or push
the run past its target.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Iterable, List, Set


@dataclass
class AcquisitionState:
    target_count: int
    max_pages: int
    saved_count: int = 0
    in_flight: int = 0
    seen_urls: Set[str] = field(default_factory=set)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def _has_budget(self) -> bool:
        return self.saved_count + self.in_flight < self.target_count

    def reserve_detail(self, url: str) -> bool:
        """Claim `url` for a detail fetch. False if already seen or no budget left."""
        with self._lock:
            if url in self.seen_urls or not self._has_budget():
                return False
            self.seen_urls.add(url)
            self.in_flight += 1
            return True

    def accept_direct(self, url: str) -> bool:
        """Claim `url` and count it as saved right away (no detail fetch)."""
        with self._lock:
            if url in self.seen_urls or not self._has_budget():
                return False
            self.seen_urls.add(url)
            self.saved_count += 1
            return True

    def complete_detail(self) -> int:
        """
        Settle a finished detail fetch. Returns the new saved count, or 0 when
        the target was already reached and the record must be discarded.
        """
        with self._lock:
            self.in_flight = max(0, self.in_flight - 1)
            if self.saved_count >= self.target_count:
                return 0
            self.saved_count += 1
            return self.saved_count

    def release_detail(self) -> None:
        """Settle a detail fetch that was skipped or failed."""
        with self._lock:
            self.in_flight = max(0, self.in_flight - 1)

    def remaining(self) -> int:
        with self._lock:
            return max(0, self.target_count - self.saved_count - self.in_flight)

    def is_done(self) -> bool:
        with self._lock:
            return self.saved_count >= self.target_count

    def within_page_limit(self, page_number: int) -> bool:
        """True while `page_number` (1-based) is below the per-source page limit."""
        return page_number <= self.max_pages

    def filter_new(self, urls: Iterable[str]) -> List[str]:
        """
        Keep only URLs not seen yet. Read-only: use reserve_detail /
        accept_direct to actually claim one.
        """
        with self._lock:
            return [u for u in urls if u not in self.seen_urls]
