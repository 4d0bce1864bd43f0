import pytest

from kununu_jobs.config import (
    DEFAULT_MAX_CONCURRENCY,
    PROXY_ENV_VAR,
    UNBOUNDED,
    ConfigError,
    load_config,
)


@pytest.fixture(autouse=True)
def _no_proxy_env(monkeypatch):
    monkeypatch.delenv(PROXY_ENV_VAR, raising=False)


def test_defaults():
    config = load_config({})
    assert config.results_wanted == 100
    assert config.max_pages == 50
    assert config.collect_details is True
    assert config.max_concurrency == DEFAULT_MAX_CONCURRENCY
    assert config.start_urls == ()
    assert config.api_enabled
    assert config.proxy_urls == ()


def test_criteria_mapping():
    config = load_config({
        "jobTitle": " Data Engineer ",
        "location": "Wien",
        "homeOffice": "true",
        "employmentType": "1",
        "careerLevel": "3",
    })
    c = config.criteria
    assert (c.title, c.location, c.home_office, c.employment_type, c.career_level) == (
        "Data Engineer", "Wien", True, "1", "3",
    )


@pytest.mark.parametrize("value", ["all", "unlimited", "inf", float("inf"), -1, "-1", " -1 "])
def test_unbounded_results(value):
    config = load_config({"results_wanted": value})
    assert config.results_wanted == UNBOUNDED
    assert config.unbounded


def test_numeric_strings_and_concurrency_cap():
    config = load_config({"results_wanted": "5", "max_pages": 3, "maxConcurrency": 500})
    assert config.results_wanted == 5
    assert config.max_pages == 3
    assert config.max_concurrency == 50


@pytest.mark.parametrize("raw", [
    {"results_wanted": 0},
    {"results_wanted": "lots"},
    {"results_wanted": 2.5},
    {"max_pages": -3},
    {"max_pages": True},
    {"maxConcurrency": 0},
    {"collectDetails": "maybe"},
    {"startUrls": "https://www.kununu.com/de/jobs"},
    {"startUrls": ["ftp://example.com"]},
    {"proxyConfiguration": {"proxyUrls": "http://p:1"}},
    {"jobTitle": {"nested": 1}},
])
def test_unusable_input_raises(raw):
    with pytest.raises(ConfigError):
        load_config(raw)


def test_start_urls_turn_off_api():
    config = load_config({"startUrls": ["https://www.kununu.com/de/jobs?q=a", {"url": "https://www.kununu.com/de/jobs?q=b"}]})
    assert config.start_urls == ("https://www.kununu.com/de/jobs?q=a", "https://www.kununu.com/de/jobs?q=b")
    assert not config.api_enabled

    assert load_config({"url": "https://www.kununu.com/de/jobs"}).start_urls == ("https://www.kununu.com/de/jobs",)
    assert load_config({"startUrl": "https://www.kununu.com/de/jobs?page=3"}).start_urls == (
        "https://www.kununu.com/de/jobs?page=3",
    )
    # an empty list means "not given"
    assert load_config({"startUrls": []}).api_enabled


def test_proxy_configuration_and_env(monkeypatch):
    config = load_config({"proxyConfiguration": {"proxyUrls": ["http://p1:8000", " ", "http://p2:8000"]}})
    assert config.proxy_urls == ("http://p1:8000", "http://p2:8000")

    monkeypatch.setenv(PROXY_ENV_VAR, "http://e1:1, http://e2:2")
    assert load_config({}).proxy_urls == ("http://e1:1", "http://e2:2")


@pytest.mark.parametrize("url", ["ftp://nope", "nope:8000", "http://", "socks4://p:1080"])
def test_unusable_proxy_url_raises(url):
    with pytest.raises(ConfigError):
        load_config({"proxyConfiguration": {"proxyUrls": [url]}})


def test_unusable_proxy_env_raises(monkeypatch):
    monkeypatch.setenv(PROXY_ENV_VAR, "http://ok:1,ftp://nope")
    with pytest.raises(ConfigError):
        load_config({})


def test_socks_proxies_are_accepted():
    config = load_config({"proxyConfiguration": {"proxyUrls": ["socks5://p:1080", "socks5h://user:pw@p:1080"]}})
    assert config.proxy_urls == ("socks5://p:1080", "socks5h://user:pw@p:1080")
