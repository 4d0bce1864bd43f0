# src/kununu_jobs/config.py
"""
Run configuration: validate the enumerated input keys into a RunConfig.

Input uses the same keys whether it comes from an INPUT json file or from
CLI options (jobTitle, results_wanted, startUrls, ...). Anything unusable
raises ConfigError, the only error that stops a run before it starts.
"""

from __future__ import annotations

import math
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from kununu_jobs.models import SearchCriteria

DEFAULT_RESULTS_WANTED = 100
DEFAULT_MAX_PAGES = 50
DEFAULT_MAX_CONCURRENCY = 12
MAX_CONCURRENCY_CEILING = 50  # above this kununu starts blocking
UNBOUNDED = sys.maxsize

_UNBOUNDED_WORDS = {"all", "unlimited", "inf", "infinity", "max"}
_TRUE_WORDS = {"true", "1", "yes", "y", "on"}
_FALSE_WORDS = {"false", "0", "no", "n", "off", ""}

PROXY_ENV_VAR = "KUNUNU_PROXY_URLS"
PROXY_SCHEMES = ("http", "https", "socks5", "socks5h")


class ConfigError(ValueError):
    """Input that cannot be turned into a run."""


@dataclass(frozen=True)
class RunConfig:
    criteria: SearchCriteria = field(default_factory=SearchCriteria)
    results_wanted: int = DEFAULT_RESULTS_WANTED
    max_pages: int = DEFAULT_MAX_PAGES
    collect_details: bool = True
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY
    start_urls: Tuple[str, ...] = ()
    proxy_urls: Tuple[str, ...] = ()

    @property
    def api_enabled(self) -> bool:
        # explicit start URLs mean HTML mode only
        return not self.start_urls

    @property
    def unbounded(self) -> bool:
        return self.results_wanted >= UNBOUNDED


def _positive_int(name: str, value: Any, default: int, *, allow_unbounded: bool = False) -> int:
    if value is None or value == "":
        return default
    if allow_unbounded:
        if isinstance(value, str) and value.strip().lower() in _UNBOUNDED_WORDS:
            return UNBOUNDED
        if isinstance(value, float) and math.isinf(value) and value > 0:
            return UNBOUNDED
        # CLI options arrive as text
        if value == -1 or (isinstance(value, str) and value.strip() == "-1"):
            return UNBOUNDED
    if isinstance(value, bool):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{name} must be a positive integer, got {value!r}") from None
    if not math.isfinite(number) or number != int(number) or number < 1:
        raise ConfigError(f"{name} must be a positive integer, got {value!r}")
    return int(number)


def _bool(name: str, value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    text = str(value).strip().lower()
    if text in _TRUE_WORDS:
        return True
    if text in _FALSE_WORDS:
        return False
    raise ConfigError(f"{name} must be a boolean, got {value!r}")


def _text(name: str, value: Any) -> str:
    if value is None:
        return ""
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ConfigError(f"{name} must be a string, got {value!r}")
    return str(value).strip()


def _check_url(url: Any) -> str:
    if not isinstance(url, str) or not url.strip():
        raise ConfigError(f"start URL must be a non-empty string, got {url!r}")
    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        raise ConfigError(f"start URL must be http(s): {url!r}")
    return url


def _start_urls(raw: Dict[str, Any]) -> Tuple[str, ...]:
    urls: List[str] = []
    start_urls = raw.get("startUrls")
    if start_urls:
        if not isinstance(start_urls, list):
            raise ConfigError("startUrls must be a list")
        for item in start_urls:
            # request-list style {"url": ...} objects are accepted too
            urls.append(_check_url(item.get("url") if isinstance(item, dict) else item))
    else:
        single = raw.get("startUrl") or raw.get("url")
        if single:
            urls.append(_check_url(single))
    return tuple(urls)


def _check_proxy(url: str) -> str:
    parts = urlsplit(url)
    if parts.scheme.lower() not in PROXY_SCHEMES or not parts.hostname:
        raise ConfigError(f"proxy URL must be {'/'.join(PROXY_SCHEMES)}://host[:port], got {url!r}")
    return url


def _proxy_urls(raw: Dict[str, Any]) -> Tuple[str, ...]:
    proxy_conf = raw.get("proxyConfiguration")
    if proxy_conf:
        if not isinstance(proxy_conf, dict):
            raise ConfigError("proxyConfiguration must be an object")
        urls = proxy_conf.get("proxyUrls") or []
        if not isinstance(urls, list) or not all(isinstance(u, str) for u in urls):
            raise ConfigError("proxyConfiguration.proxyUrls must be a list of strings")
    else:
        urls = os.getenv(PROXY_ENV_VAR, "").split(",")
    return tuple(_check_proxy(u.strip()) for u in urls if u.strip())


def load_config(raw: Optional[Dict[str, Any]] = None) -> RunConfig:
    """Validate raw input into a RunConfig. Raises ConfigError."""
    raw = raw or {}
    if not isinstance(raw, dict):
        raise ConfigError("input must be a JSON object")

    criteria = SearchCriteria(
        title=_text("jobTitle", raw.get("jobTitle")),
        location=_text("location", raw.get("location")),
        home_office=_bool("homeOffice", raw.get("homeOffice"), False),
        employment_type=_text("employmentType", raw.get("employmentType")),
        career_level=_text("careerLevel", raw.get("careerLevel")),
    )

    max_concurrency = _positive_int("maxConcurrency", raw.get("maxConcurrency"), DEFAULT_MAX_CONCURRENCY)

    return RunConfig(
        criteria=criteria,
        results_wanted=_positive_int(
            "results_wanted", raw.get("results_wanted"), DEFAULT_RESULTS_WANTED, allow_unbounded=True
        ),
        max_pages=_positive_int("max_pages", raw.get("max_pages"), DEFAULT_MAX_PAGES),
        collect_details=_bool("collectDetails", raw.get("collectDetails"), True),
        max_concurrency=min(max_concurrency, MAX_CONCURRENCY_CEILING),
        start_urls=_start_urls(raw),
        proxy_urls=_proxy_urls(raw),
    )
