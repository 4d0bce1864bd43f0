# src/kununu_jobs/clients/proxy.py
from __future__ import annotations

import itertools
import threading
from typing import Iterable, Optional


class ProxyRotator:
    """Round-robin over proxy URLs. next() returns None when none are configured."""

    def __init__(self, urls: Iterable[str] = ()):
        self.urls = [u for u in urls if u]
        self._cycle = itertools.cycle(self.urls) if self.urls else None
        self._lock = threading.Lock()

    def next(self) -> Optional[str]:
        if self._cycle is None:
            return None
        with self._lock:
            return next(self._cycle)

    def __len__(self) -> int:
        return len(self.urls)
