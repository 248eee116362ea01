"""Typer-based command line for crawling, map generation and local search."""

import os

os.environ.setdefault("LOGFIRE_IGNORE_NO_CONFIG", "1")

from dotenv import load_dotenv

load_dotenv(".env")
load_dotenv(".env.local")

import asyncio
from typing import NoReturn, Optional

import typer

from text_search.config import get_settings
from text_search.exceptions import TextSearchError
from text_search.logging_config import setup_logfire
from text_search.services.map_generator import generate_map
from text_search.services.search_index import SearchEngine, rebuild_search_engine
from text_search.services.site_checker import check_site
from text_search.sheets.client import build_sheets_store
from text_search.sheets.oauth import get_credentials

app = typer.Typer(help="Edu365 text search tools")


@app.callback()
def _configure():
    """Configure logging before any command runs."""
    setup_logfire()


def _fail(message: str) -> NoReturn:
    typer.echo(f"✗ {message}", err=True)
    raise typer.Exit(1)


@app.command("check-site")
def check_site_command():
    """Probe the catalog pages and store the text of the changed ones."""
    settings = get_settings()
    try:
        store = build_sheets_store(settings)
        report = asyncio.run(check_site(settings, store))
    except TextSearchError as e:
        _fail(str(e))

    typer.echo(f"✓ {report.summary()}")
    for outcome in report.failed:
        typer.echo(f"  {outcome.path}: {outcome.stage} failed: {outcome.error}", err=True)


@app.command("generate-map")
def generate_map_command():
    """Rewrite the catalog sheet from the Edu365 map spreadsheet."""
    settings = get_settings()
    try:
        store = build_sheets_store(settings)
        items = asyncio.run(generate_map(settings, store))
    except TextSearchError as e:
        _fail(str(e))
    typer.echo(f"✓ {items} items written to the catalog")


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to search for"),
    limit: int = typer.Option(10, "--limit", "-n", min=1, help="Max results shown"),
):
    """Build the search index from the catalog and run one query."""
    settings = get_settings()
    try:
        store = build_sheets_store(settings)
        index = asyncio.run(
            rebuild_search_engine(store, settings, engine=SearchEngine())
        )
    except TextSearchError as e:
        _fail(str(e))

    hits = index.search(query[: settings.query_max_length])
    if not hits:
        typer.echo("No results")
        return
    for hit in hits[:limit]:
        typer.echo(f"{hit.score:6.1f}  {hit.entry.title}  {hit.entry.url}")


@app.command()
def authorize():
    """Request consent for the Google Sheets API and store the token."""
    settings = get_settings()
    typer.echo(
        f"Open the URL printed below and grant access (callback on port {settings.oauth2_callback_port})."
    )
    try:
        get_credentials(
            settings.credentials_path,
            settings.token_path,
            settings.google_scopes,
            callback_port=settings.oauth2_callback_port,
            interactive=True,
        )
    except TextSearchError as e:
        _fail(str(e))
    typer.echo(f"✓ Token stored in {settings.token_path}")


@app.command()
def migrate():
    """Apply the query log SQL migrations."""
    from text_search.db.migrate import run_migrations

    run_migrations()


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Port (defaults to $PORT or 8000)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Run the search API."""
    from text_search.main import run

    run(host=host, port=port, reload=reload)


if __name__ == "__main__":
    app()
