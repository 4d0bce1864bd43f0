# src/kununu_jobs/cli.py
"""
Command-line interface for the kununu job harvester.

This module provides CLI commands to:
- Harvest jobs (API first, HTML fallback) into a JSONL file
- Preview the search URL / API params built from the filters
- Debug the API by fetching and normalizing a single page
"""

from dotenv import load_dotenv
load_dotenv(override=True)  # automatically looks for a .env file in the project root

import json
import logging
from pathlib import Path
from typing import List, Optional

import httpx
import typer

from kununu_jobs.clients.kununu import build_api_params, build_search_url, kununu_search
from kununu_jobs.config import ConfigError, load_config
from kununu_jobs.crawl import run
from kununu_jobs.io.sink import JsonlSink, export_csv
from kununu_jobs.pipeline.normalize import normalize_kununu_api

logger = logging.getLogger("kununu_jobs")

# Typer app instance for CLI commands
app = typer.Typer(help="Kununu job harvester")


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def _read_input(path: Optional[Path]) -> dict:
    if path is None:
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read input file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"input file {path} must hold a JSON object")
    return data


def _overrides(**options) -> dict:
    # only options the user actually passed override the input file
    return {
        k: list(v) if isinstance(v, tuple) else v
        for k, v in options.items()
        if v is not None and not (isinstance(v, (list, tuple)) and not v)
    }


def _load(input_file: Optional[Path], **options):
    raw = _read_input(input_file)
    raw.update(_overrides(**options))
    return load_config(raw)


@app.command()
def scrape(
    job_title: Optional[str] = typer.Option(None, "--job-title", "-q", help="Job title / keywords"),
    location: Optional[str] = typer.Option(None, "--location", "-l", help="City or region"),
    home_office: Optional[bool] = typer.Option(None, "--home-office/--no-home-office", help="Only remote-friendly jobs"),
    employment_type: Optional[str] = typer.Option(None, "--employment-type", help="kununu employment type code"),
    career_level: Optional[str] = typer.Option(None, "--career-level", help="kununu career level code"),
    results_wanted: Optional[str] = typer.Option(None, "--results-wanted", "-n", help="Max records (default 100, 'all' for no limit)"),
    max_pages: Optional[int] = typer.Option(None, "--max-pages", help="Max pages per source (default 50)"),
    collect_details: Optional[bool] = typer.Option(None, "--details/--no-details", help="Fetch each job's detail page"),
    max_concurrency: Optional[int] = typer.Option(None, "--max-concurrency", help="Parallel requests (default 12, max 50)"),
    start_urls: Optional[List[str]] = typer.Option(None, "--start-url", help="Listing URL(s) to crawl instead of the API"),
    proxy_urls: Optional[List[str]] = typer.Option(None, "--proxy", help="Proxy URL(s), rotated per request"),
    input_file: Optional[Path] = typer.Option(None, "--input", "-i", help="JSON file with run input"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="JSONL output file (appended to); stdout if omitted"),
    csv_path: Optional[Path] = typer.Option(None, "--csv", help="Also export this run's records as CSV"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """
    Harvest jobs: API pages → (fallback) HTML listings → detail pages → JSONL.
    """
    _setup_logging(verbose)
    try:
        config = _load(
            input_file,
            jobTitle=job_title,
            location=location,
            homeOffice=home_office,
            employmentType=employment_type,
            careerLevel=career_level,
            results_wanted=results_wanted,
            max_pages=max_pages,
            collectDetails=collect_details,
            maxConcurrency=max_concurrency,
            startUrls=start_urls,
            proxyConfiguration={"proxyUrls": proxy_urls} if proxy_urls else None,
        )
        if csv_path and output is None:
            raise ConfigError("--csv needs --output (the CSV is exported from that file)")
    except ConfigError as e:
        logger.error("Invalid input: %s", e)
        raise typer.Exit(code=2)

    with JsonlSink(output) as sink:
        summary = run(config, sink)

    if csv_path:
        rows = export_csv(output, csv_path, last=sink.count)
        typer.echo(f"Exported {rows} rows to {csv_path}", err=True)

    typer.echo(json.dumps(summary.to_dict(), indent=2), err=True)


@app.command()
def search_url(
    job_title: str = typer.Option("", "--job-title", "-q"),
    location: str = typer.Option("", "--location", "-l"),
    home_office: bool = typer.Option(False, "--home-office/--no-home-office"),
    employment_type: str = typer.Option("", "--employment-type"),
    career_level: str = typer.Option("", "--career-level"),
    page: int = typer.Option(1, "--page", min=1),
):
    """
    Quick check: show the HTML search URL and API params for these filters.

    Both are built from the same criteria, so they should always describe
    the same search.
    """
    try:
        config = load_config({
            "jobTitle": job_title,
            "location": location,
            "homeOffice": home_office,
            "employmentType": employment_type,
            "careerLevel": career_level,
        })
    except ConfigError as e:
        typer.echo(f"Invalid input: {e}", err=True)
        raise typer.Exit(code=2)

    print(json.dumps({
        "search_url": build_search_url(config.criteria, page),
        "api_params": build_api_params(config.criteria, page - 1),
    }, indent=2, ensure_ascii=False))


@app.command()
def api_page(
    job_title: str = typer.Option("", "--job-title", "-q"),
    location: str = typer.Option("", "--location", "-l"),
    page: int = typer.Option(1, "--page", min=1),
):
    """
    Debug: fetch one API page and print what the normalizer makes of it.
    """
    _setup_logging(False)
    config = load_config({"jobTitle": job_title, "location": location})
    try:
        raw = kununu_search(config.criteria, page - 1)
    except (httpx.HTTPError, ValueError) as e:
        typer.echo(f"API fetch failed: {e}", err=True)
        raise typer.Exit(code=1)
    jobs = normalize_kununu_api(raw)
    if jobs is None:
        typer.echo("Unexpected API response shape (no 'jobs' list).", err=True)
        raise typer.Exit(code=1)
    print(json.dumps(jobs, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    app()
