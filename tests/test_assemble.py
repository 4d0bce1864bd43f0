from kununu_jobs.models import RECORD_FIELDS
from kununu_jobs.pipeline.assemble import (
    FIELD_PRECEDENCE,
    assemble_record,
    merge_partials,
    missing_fields,
    stub_record,
)

URL = "https://www.kununu.com/de/job/abc"


def test_api_beats_structured_for_location():
    record = assemble_record(URL, api={"location": "Berlin"}, structured={"location": "Munich"})
    assert record["location"] == "Berlin"


def test_precedence_is_per_field():
    api = {"title": "API title", "company": None, "source": "api"}
    structured = {"title": "LD title", "company": "LD company", "salary": ""}
    html = {"title": "HTML title", "company": "HTML company", "salary": "50,000 EUR", "employment_type": "Vollzeit"}

    record = assemble_record(URL, api=api, structured=structured, html=html)

    assert record["title"] == "API title"
    assert record["company"] == "LD company"
    # empty strings do not block lower-precedence sources
    assert record["salary"] == "50,000 EUR"
    assert record["employment_type"] == "Vollzeit"


def test_description_text_is_always_derived():
    structured = {"description_html": "<p>Real <i>text</i></p><style>.x{}</style>", "description_text": "bogus"}
    record = assemble_record(URL, structured=structured)

    assert record["description_text"] == "Real text"


def test_source_labels():
    assert assemble_record(URL, api={"title": "T"})["source"] == "api"
    assert assemble_record(URL, api={"title": "T"}, structured={"company": "C"})["source"] == "merged"
    assert assemble_record(URL, structured={"title": "T"}, html={"company": "C"})["source"] == "kununu"


def test_record_shape_matches_wire_contract():
    record = assemble_record(URL, api={"title": "T", "id": "123"})
    assert list(record) == list(RECORD_FIELDS)
    assert "id" not in record


def test_stub_record():
    record = stub_record(URL)
    assert record["url"] == URL
    assert record["source"] == "kununu"
    assert all(record[k] is None for k in RECORD_FIELDS if k not in ("url", "source"))


def test_merge_partials_reports_contributors():
    merged, contributors = merge_partials({"title": "A"}, {"title": "B", "company": "C"}, {})
    assert merged["title"] == "A"
    assert merged["company"] == "C"
    assert contributors == {"api", "structured"}


def test_missing_fields():
    assert missing_fields({"title": "A"}, {"company": "C", "salary": " "}) == set(FIELD_PRECEDENCE) - {"title", "company"}
    assert missing_fields() == set(FIELD_PRECEDENCE)
