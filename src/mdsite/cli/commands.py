"""CLI command implementations"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from sqlmodel import SQLModel

from mdsite.config import Settings, load_config
from mdsite.core.cache import TtlCache
from mdsite.core.models import BuildSummary
from mdsite.core.parse import parse_file
from mdsite.core.pipeline import build_site, make_context, render_body
from mdsite.crud.database import init_db, make_engine
from mdsite.errors import MdsiteError
from mdsite.server import serve, tree_lines


def _fail(msg: str, cause: Exception = None) -> None:
    """Print a user-friendly error to stderr and exit 1."""
    typer.echo(f"Error: {msg}", err=True)
    if cause:
        typer.echo(f"  {cause}", err=True)
    raise typer.Exit(1)


def _settings(overrides: dict = None) -> Settings:
    """Load config with standard CLI error handling."""
    try:
        return load_config(overrides=overrides)
    except ValueError as e:
        _fail(str(e))


def _echo_summary(summary: BuildSummary) -> None:
    """Print failures, the slowest documents and a summary line."""
    for path, reason in summary.failures:
        typer.echo(f"  failed: {path}: {reason}", err=True)
    for path, seconds in summary.slowest(3):
        typer.echo(f"  {seconds * 1000:.1f} ms  {path}")
    typer.echo(
        f"Build complete - "
        f"{summary.succeeded} succeeded, "
        f"{summary.failed} failed, "
        f"{summary.cached} cached, "
        f"{summary.skipped} unchanged"
    )


def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug output")] = False,
    ):
    """Static site generator for markdown content."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


def build_cmd(
    content: Annotated[Optional[str], typer.Option("--content-dir", help="Markdown source directory")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Output directory")] = None,
    workers: Annotated[Optional[int], typer.Option("--workers", help="Render worker pool size")] = None,
    no_images: Annotated[bool, typer.Option("--no-optimize", help="Skip WebP image optimization")] = False,
    incremental: Annotated[bool, typer.Option("--incremental", help="Skip documents unchanged since the last build")] = False,
    strict: Annotated[bool, typer.Option("--strict", help="Exit 1 when any document fails")] = False,
    ):
    """Render every markdown file in the content directory to HTML."""
    settings = _settings(overrides={
        "content_dir": content, "output_dir": out, "workers": workers,
        "optimize_images": False if no_images else None,
        "incremental": True if incremental else None,
        "fail_on_error": True if strict else None,
    })
    if not Path(settings.content_dir).is_dir():
        _fail(f"Content directory not found: {settings.content_dir}")

    cache = TtlCache(ttl=settings.cache_ttl, max_size=settings.cache_size)
    try:
        summary = build_site(settings, cache=cache)
    except (OSError, MdsiteError) as e:
        _fail("Build failed", e)
    _echo_summary(summary)
    if summary.failed and settings.fail_on_error:
        raise typer.Exit(1)


def render_cmd(
    path: Annotated[str, typer.Argument(help="Markdown file to render")],
    content: Annotated[Optional[str], typer.Option("--content-dir", help="Markdown source directory")] = None,
    ):
    """Print the rendered HTML body of a single document."""
    settings = _settings(overrides={"content_dir": content})
    source = Path(path)
    if not source.is_file():
        _fail(f"File not found: {path}")
    ctx = make_context(settings, navigation=[])
    try:
        body, _ = render_body(parse_file(source), ctx)
    except (OSError, UnicodeDecodeError, MdsiteError) as e:
        _fail(f"Could not render {path}", e)
    typer.echo(body)


def serve_cmd(
    port: Annotated[Optional[int], typer.Option("--port", help="Port to listen on")] = None,
    out: Annotated[Optional[str], typer.Option("--out-dir", help="Directory to serve")] = None,
    ):
    """Serve the built site with clean URLs and index fallback."""
    settings = _settings(overrides={"port": port, "output_dir": out})
    directory = Path(settings.output_dir)
    if not directory.is_dir():
        _fail(f"Output directory not found: {directory}. Run 'mdsite build' first.")
    typer.echo(f"{directory}/")
    for line in tree_lines(directory):
        typer.echo(line)
    typer.echo(f"Serving at http://localhost:{settings.port}")
    try:
        serve(directory, settings.port, TtlCache(ttl=settings.cache_ttl, max_size=settings.cache_size))
    except OSError as e:
        _fail(f"Could not listen on port {settings.port}", e)


def init_cmd(
    reset: Annotated[bool, typer.Option("--reset", help="Drop and recreate the build manifest")] = False,
    ):
    """Initialize the build manifest used by incremental builds."""
    settings = _settings()
    engine = make_engine(settings.db_url)
    if reset:
        SQLModel.metadata.drop_all(engine)
        typer.echo("Existing data cleared.")
    init_db(engine)
    typer.echo(f"Database initialized at: {settings.db_url}")
