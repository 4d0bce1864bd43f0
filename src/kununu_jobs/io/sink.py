# src/kununu_jobs/io/sink.py
from __future__ import annotations

import json
import sys
import threading
from pathlib import Path
from typing import IO, Optional, Union

import pandas as pd

from kununu_jobs.models import RECORD_FIELDS, JobRecord


class JsonlSink:
    """
    Append-only output: one JSON object per line, keys in JobRecord order.

    - Never rewrites or truncates an existing file.
    - Safe to call emit() from several worker threads.
    - Writes to stdout when no path is given.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self.count = 0
        self._lock = threading.Lock()
        self._fh: Optional[IO[str]] = None

    def __enter__(self) -> "JsonlSink":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _handle(self) -> IO[str]:
        if self._fh is None:
            if self.path is None:
                self._fh = sys.stdout
            else:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self._fh = self.path.open("a", encoding="utf-8")
        return self._fh

    def emit(self, record: JobRecord) -> None:
        if not record.get("url"):
            raise ValueError("record without url cannot be emitted")
        row = {k: record.get(k) for k in RECORD_FIELDS}
        line = json.dumps(row, ensure_ascii=False)
        with self._lock:
            fh = self._handle()
            fh.write(line + "\n")
            fh.flush()
            self.count += 1

    def close(self) -> None:
        with self._lock:
            if self._fh is not None and self._fh is not sys.stdout:
                self._fh.close()
            self._fh = None


def export_csv(jsonl_path: Union[str, Path], csv_path: Union[str, Path], last: Optional[int] = None) -> int:
    """
    Convert a JSONL run output into a CSV with the JobRecord columns.

    The JSONL file is append-only, so `last` keeps only the trailing rows
    (the ones written by the current run). Returns the number of rows written.
    """
    jsonl_path = Path(jsonl_path)
    # a run that emitted nothing never opens its output file
    if not jsonl_path.exists() or jsonl_path.stat().st_size == 0:
        df = pd.DataFrame(columns=list(RECORD_FIELDS))
    else:
        df = pd.read_json(jsonl_path, lines=True, dtype=False)
        df = df.reindex(columns=list(RECORD_FIELDS))
    if last is not None:
        df = df.tail(last)
    df.to_csv(csv_path, index=False)
    return len(df)
