"""Build driver: shared read-only context, per-document rendering, and the worker-pool build"""

import logging
import os
import shutil
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sqlmodel import Session

from mdsite.config import Settings
from mdsite.core.assets import copy_assets, optimize_images, scan_webp_index
from mdsite.core.cache import TtlCache
from mdsite.core.interpolate import has_directives, resolve_directives, resolve_toc
from mdsite.core.models import BuildSummary, NavItem, RenderedPage, SourceDocument
from mdsite.core.navigation import build_navigation, navigation_html
from mdsite.core.parse import discover_files, output_path_for, parse_file, url_for
from mdsite.core.render.pipeline import MarkdownRenderer, RenderOptions
from mdsite.core.scripts import ScriptRunner, SubprocessScriptRunner
from mdsite.core.template import (
    apply_page_template, compose_page, load_components, load_template, page_title,
)
from mdsite.core.utils.hashing import sha256
from mdsite.crud.database import init_db, make_engine
from mdsite.crud.manifest import list_records, upsert_record
from mdsite.errors import RenderError


logger = logging.getLogger(__name__)


@dataclass
class BuildContext:
    """Everything a worker needs; nothing in here is mutated while documents render."""
    content_root: Path
    output_dir:   Path
    renderer:     MarkdownRenderer
    runner:       Optional[ScriptRunner]
    template:     str
    site_name:    str = "mdsite"
    components:   dict[str, str] = field(default_factory=dict)
    navigation:   list[NavItem] = field(default_factory=list)
    cache:        Optional[TtlCache] = None
    records:      dict[str, tuple[str, str]] = field(default_factory=dict)   # source path -> (source hash, layout hash)
    layout_hash:  str = ""


def layout_signature(ctx: BuildContext) -> str:
    """Hash of everything a page depends on besides its own source file.

    Covers the shell, components, site name, navigation tree and render options,
    so adding or retitling any page invalidates every recorded build.
    """
    opts = ctx.renderer.options
    parts = [
        ctx.template,
        ctx.site_name,
        *(f"{name}={markup}" for name, markup in sorted(ctx.components.items())),
        *(item.model_dump_json() for item in ctx.navigation),
        f"optimized_images={opts.optimized_images} external_links={opts.external_links}",
        *sorted(opts.webp_index),
    ]
    return sha256('\0'.join(parts))


def make_context(
    settings: Settings,
    cache: TtlCache = None,
    runner: ScriptRunner = None,
    webp_index: frozenset[str] = frozenset(),
    navigation: list[NavItem] = None,
    ) -> BuildContext:
    """Assemble the per-build context from settings; runner defaults to the subprocess runner."""
    content_root = Path(settings.content_dir)
    if runner is None and settings.script_interpreter:
        runner = SubprocessScriptRunner(
            Path(settings.scripts_dir), settings.script_extension,
            settings.script_interpreter, settings.script_timeout,
        )
    options = RenderOptions(
        optimized_images=settings.optimize_images,
        external_links=settings.external_links,
        webp_index=webp_index,
    )
    ctx = BuildContext(
        content_root=content_root,
        output_dir=Path(settings.output_dir),
        renderer=MarkdownRenderer(options),
        runner=runner,
        template=load_template(Path(settings.template_file) if settings.template_file else None),
        site_name=settings.site_name,
        components=load_components(Path(settings.components_dir)),
        navigation=navigation if navigation is not None else build_navigation(content_root),
        cache=cache,
    )
    ctx.layout_hash = layout_signature(ctx)
    return ctx


def render_body(doc: SourceDocument, ctx: BuildContext) -> tuple[str, bool]:
    """Markdown body -> decorated HTML fragment. Returns (html, served_from_cache).

    Documents with directives are always rendered fresh and never cached.
    """
    dynamic = has_directives(doc.body)
    if ctx.cache is not None and not dynamic:
        hit = ctx.cache.get(doc.hash)
        if hit is not None:
            return hit, True

    body = ctx.renderer.render(doc.body)
    if ctx.runner is not None:
        body = resolve_directives(body, ctx.runner)
    body = resolve_toc(body, doc.path, ctx.content_root)
    body = apply_page_template(body, doc.meta)

    if ctx.cache is not None and not dynamic:
        ctx.cache.set(doc.hash, body)
    return body, False


def render_document(path: Path, ctx: BuildContext) -> RenderedPage:
    """Parse and render one content file into a composed page. Raises RenderError."""
    try:
        doc = parse_file(path)
        url = url_for(path, ctx.content_root)
        body, cached = render_body(doc, ctx)
        page = compose_page(
            ctx.template,
            page_title(doc.meta, ctx.site_name),
            body,
            navigation_html(ctx.navigation, url),
            ctx.components,
        )
    except Exception as e:
        raise RenderError(path, e) from e
    return RenderedPage(
        source=path,
        output=output_path_for(path, ctx.content_root, ctx.output_dir),
        url=url,
        html=page,
        meta=doc.meta,
        hash=doc.hash,
        cached=cached,
    )


def write_page(page: RenderedPage) -> None:
    """Write through a temporary file so a failed write never leaves partial HTML."""
    page.output.parent.mkdir(parents=True, exist_ok=True)
    tmp = page.output.with_name(page.output.name + '.tmp')
    tmp.write_text(page.html, encoding='utf-8')
    os.replace(tmp, page.output)


def _unchanged(path: Path, ctx: BuildContext) -> Optional[str]:
    """Return the source hash when the last build of path is still current, else None.

    Current means same source, same layout signature, output still on disk, no directives.
    """
    recorded = ctx.records.get(str(path))
    if recorded is None or recorded[1] != ctx.layout_hash:
        return None
    doc = parse_file(path)
    output = output_path_for(path, ctx.content_root, ctx.output_dir)
    if doc.hash == recorded[0] and output.exists() and not has_directives(doc.body):
        return doc.hash
    return None


def _build_one(path: Path, ctx: BuildContext) -> tuple[str, Optional[RenderedPage], float]:
    """Worker body: ('skipped' | 'built', page, seconds)."""
    start = time.perf_counter()
    if ctx.records and _unchanged(path, ctx):
        return 'skipped', None, time.perf_counter() - start
    page = render_document(path, ctx)
    write_page(page)
    return 'built', page, time.perf_counter() - start


def prepare_assets(settings: Settings) -> frozenset[str]:
    """Copy assets, optionally create WebP variants, and return the WebP index."""
    src, dest = Path(settings.assets_dir), Path(settings.output_dir) / 'assets'
    copy_assets(src, dest)
    favicon = src / 'favicon.ico'
    if favicon.is_file():
        shutil.copy2(favicon, Path(settings.output_dir) / 'favicon.ico')
    if settings.optimize_images:
        optimize_images(src, dest, settings.optimizer)
    return scan_webp_index(dest)


def build_site(
    settings: Settings,
    cache: TtlCache = None,
    runner: ScriptRunner = None,
    ) -> BuildSummary:
    """Render every content file on a worker pool; one failed document never stops the batch."""
    content_root = Path(settings.content_dir)
    output_dir = Path(settings.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    summary = BuildSummary()

    files = discover_files(content_root) if content_root.exists() else []
    if not files:
        logger.info("No markdown files found in %s", content_root)
        return summary

    webp_index = prepare_assets(settings)
    ctx = make_context(settings, cache=cache, runner=runner, webp_index=webp_index)

    engine = None
    if settings.incremental:
        engine = make_engine(settings.db_url)
        init_db(engine)
        with Session(engine) as session:
            ctx.records = {r.path: (r.hash, r.layout_hash) for r in list_records(session)}

    summary.total = len(files)
    built: list[RenderedPage] = []
    logger.info("Rendering %d document(s) with %d worker(s)", len(files), settings.workers)
    with ThreadPoolExecutor(max_workers=settings.workers) as pool:
        futures = {pool.submit(_build_one, path, ctx): path for path in files}
        for future in as_completed(futures):
            path = futures[future]
            try:
                status, page, seconds = future.result()
            except Exception as e:
                summary.failed += 1
                summary.failures.append((str(path), str(getattr(e, 'cause', e))))
                logger.error("Failed to render %s: %s", path, e)
                continue
            summary.timings[str(path)] = seconds
            if status == 'skipped':
                summary.skipped += 1
                logger.debug("Unchanged, skipped %s", path)
                continue
            summary.succeeded += 1
            summary.cached += int(page.cached)
            built.append(page)
            logger.info("Generated %s", page.output)

    if engine is not None and built:
        with Session(engine) as session:
            for page in built:
                upsert_record(session, str(page.source), page.hash, page.output, ctx.layout_hash)
            session.commit()

    logger.info("Build summary: %d succeeded, %d failed", summary.succeeded, summary.failed)
    return summary
