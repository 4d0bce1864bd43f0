from bs4 import BeautifulSoup

from kununu_jobs.pipeline.html_fields import extract_html_fields, extract_job_links

DETAIL = """
<html><body>
  <header><h1>  Senior   Python Developer </h1></header>
  <div class="sc-company-name">ACME GmbH</div>
  <span class="jobLocation_x1">Berlin</span>
  <span class="employmentType_a">Vollzeit</span>
  <div class="salary-box">45.000 - 60.000 €</div>
  <section class="job-description__body"><p>Build <b>things</b>.</p><script>t()</script></section>
</body></html>
"""


def test_extracts_all_fields():
    data = extract_html_fields(BeautifulSoup(DETAIL, "html.parser"))

    assert data["title"] == "Senior Python Developer"
    assert data["company"] == "ACME GmbH"
    assert data["location"] == "Berlin"
    assert data["employment_type"] == "Vollzeit"
    assert data["salary"] == "45,000 - 60,000 EUR"
    assert data["description_html"] == "<p>Build <b>things</b>.</p><script>t()</script>"


def test_skip_leaves_fields_alone():
    data = extract_html_fields(BeautifulSoup(DETAIL, "html.parser"), skip={"title", "salary", "description_html"})

    assert "title" not in data
    assert "salary" not in data
    assert "description_html" not in data
    assert data["company"] == "ACME GmbH"


def test_first_non_empty_candidate_wins():
    html = '<h1>  </h1><div class="job-title">Fallback Title</div><div class="companyLogo"></div><div class="company">Real Co</div>'
    data = extract_html_fields(BeautifulSoup(html, "html.parser"))

    assert data["title"] == "Fallback Title"
    assert data["company"] == "Real Co"


def test_no_matches_gives_empty_partial():
    assert extract_html_fields(BeautifulSoup("<html><body><p>nothing</p></body></html>", "html.parser")) == {}


def test_extract_job_links():
    html = """
    <a href="/de/job/abc-123">A</a>
    <a href="https://www.kununu.com/de/job/def-456?utm=1">B</a>
    <a href="/de/job/abc-123#apply">A again</a>
    <a href="/de/jobs?page=2">listing</a>
    <a href="/de/acme">company</a>
    <a>no href</a>
    """
    links = extract_job_links(BeautifulSoup(html, "html.parser"), "https://www.kununu.com/de/jobs?q=python")

    assert links == [
        "https://www.kununu.com/de/job/abc-123",
        "https://www.kununu.com/de/job/def-456?utm=1",
    ]
