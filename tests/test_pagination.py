import pytest
from bs4 import BeautifulSoup

from kununu_jobs.pipeline.pagination import page_param, resolve_next_page, with_page

BASE = "https://www.kununu.com/de/jobs?q=python"
PAGE_2 = "https://www.kununu.com/de/jobs?q=python&page=2"


def _soup(body):
    return BeautifulSoup(f"<html><body>{body}</body></html>", "html.parser")


@pytest.mark.parametrize("body", [
    '<a rel="next" href="/de/jobs?q=python&page=5">Weiter</a>',
    '<a href="/de/jobs?q=python&page=5">5</a>',
    "",
])
def test_page_limit_is_a_hard_stop(body):
    assert resolve_next_page(_soup(body), "https://www.kununu.com/de/jobs?q=python&page=4", 4, 4) is None


def test_rel_next_is_resolved_absolute():
    soup = _soup('<a href="/de/jobs?q=python&page=2">2</a><a rel="next" href="/de/jobs?q=python&page=2&x=1">›</a>')
    # the explicit control wins over the numbered link even when it comes later
    assert resolve_next_page(soup, BASE, 1, 10) == "https://www.kununu.com/de/jobs?q=python&page=2&x=1"


def test_aria_label_weiter_case_insensitive():
    soup = _soup('<a aria-label="WEITER zur Seite 2" href="?q=python&page=2">→</a>')
    assert resolve_next_page(soup, BASE, 1, 10) == PAGE_2


@pytest.mark.parametrize("text", ["Weiter", "Nächste", "»", "›", ">"])
def test_next_glyph_text(text):
    soup = _soup(f'<a href="/de/jobs?q=python&page=2">{text}</a>')
    assert resolve_next_page(soup, BASE, 1, 10) == PAGE_2


def test_disabled_next_is_ignored():
    soup = _soup(
        '<a class="button disabled" rel="next" href="/de/jobs?q=python&page=9">Weiter</a>'
        '<a aria-disabled="true" aria-label="next" href="/de/jobs?q=python&page=8">›</a>'
        '<a href="/de/jobs?q=python&page=3">3</a>'
    )
    assert resolve_next_page(soup, PAGE_2, 2, 10) == "https://www.kununu.com/de/jobs?q=python&page=3"


def test_javascript_and_hash_hrefs_are_ignored():
    soup = _soup('<a rel="next" href="javascript:void(0)">Weiter</a><a rel="next" href="#">›</a>')
    # falls through to the synthetic URL
    assert resolve_next_page(soup, BASE, 1, 10) == PAGE_2


def test_numbered_link_by_href_param():
    soup = _soup('<a href="/de/jobs?q=python&page=30">30</a><a class="x" href="/de/jobs?page=3&q=python">more</a>')
    assert resolve_next_page(soup, PAGE_2, 2, 50) == "https://www.kununu.com/de/jobs?page=3&q=python"


def test_synthetic_fallback_reads_page_from_url():
    url = "https://www.kununu.com/de/jobs?q=python&page=4"
    # caller's counter says 2, the URL says 4
    assert resolve_next_page(_soup("<p>no links</p>"), url, 2, 10) == "https://www.kununu.com/de/jobs?q=python&page=5"


def test_synthetic_fallback_without_page_param():
    assert resolve_next_page(_soup(""), BASE, 1, 10) == PAGE_2


def test_page_helpers():
    assert page_param(PAGE_2) == 2
    assert page_param(BASE) is None
    assert page_param("https://x.example/?page=abc") is None
    assert with_page(PAGE_2, 7) == "https://www.kununu.com/de/jobs?q=python&page=7"
