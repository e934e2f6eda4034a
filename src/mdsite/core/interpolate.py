"""Directive resolution: {{lua:name[:args]}} script output and {{routes:toc}} content cards"""

import html
import logging
import re
from pathlib import Path
from typing import Callable

from mdsite.core.content import list_siblings, newest_first_key
from mdsite.core.models import ContentSummary, Directive
from mdsite.core.parse import is_directory_index
from mdsite.core.scripts import ScriptRunner


logger = logging.getLogger(__name__)

DIRECTIVE_PREFIX = '{{lua:'
DIRECTIVE_RE = re.compile(r'\{\{lua:([^:}]+)(?::([^}]+))?\}\}')
TOC_MARKER = '{{routes:toc}}'
TOC_ERROR = '<p>Error loading posts.</p>'
# A marker alone in its paragraph takes the paragraph tags with it.
TOC_RE = re.compile(r'<p>\{\{routes:toc\}\}</p>|\{\{routes:toc\}\}')

Lister = Callable[[Path, Path], list[ContentSummary]]


def _directive(m: re.Match) -> Directive:
    args = tuple(arg.strip() for arg in m.group(2).split(',')) if m.group(2) else None
    return Directive(script=m.group(1).strip(), args=args, raw_match=m.group(0))


def parse_directives(text: str) -> list[Directive]:
    """Every {{lua:...}} marker in text, in document order."""
    return [_directive(m) for m in DIRECTIVE_RE.finditer(text)]


def has_directives(text: str) -> bool:
    return DIRECTIVE_PREFIX in text or TOC_MARKER in text


def resolve_directives(text: str, runner: ScriptRunner) -> str:
    """Replace each marker with its script's trimmed output, inserted as raw HTML.

    Every occurrence is an independent call; results are not rescanned.
    """
    if DIRECTIVE_PREFIX not in text:
        return text

    def _resolve(m: re.Match) -> str:
        directive = _directive(m)
        logger.debug("Resolving %s", directive.raw_match)
        return runner.run(directive.script, list(directive.args or ()))
    return DIRECTIVE_RE.sub(_resolve, text)


def content_card(post: ContentSummary) -> str:
    """Summary card markup for one listed content file."""
    esc = html.escape
    author = f'<span class="content-card-author">by {esc(post.author)}</span>' if post.author else ''
    excerpt = f'<p class="content-card-excerpt">{esc(post.excerpt)}</p>' if post.excerpt else ''
    tags = ''
    if post.tags:
        tags = '<div class="content-card-tags">' + ''.join(
            f'<span class="content-card-tag">{esc(tag)}</span>' for tag in post.tags
        ) + '</div>'
    return (
        f'<div class="content-card"><a href="{esc(post.url)}" class="content-card-link">'
        f'<div class="content-card-header"><h3 class="content-card-title">{esc(post.title)}</h3>'
        f'<div class="content-card-meta"><span class="content-card-date">{esc(post.date)}</span>'
        f'{author}</div></div>{excerpt}{tags}</a></div>'
    )


def resolve_toc(
    text: str,
    source: Path,
    content_root: Path,
    lister: Lister = list_siblings,
    ) -> str:
    """Expand {{routes:toc}} into newest-first cards, only inside a subdirectory index page."""
    if TOC_MARKER not in text or not is_directory_index(source, content_root):
        return text
    try:
        posts = sorted(lister(source.parent, content_root), key=lambda p: newest_first_key(p.date, p.title))
    except (OSError, ValueError) as e:
        logger.error("Could not build table of contents for %s: %s", source, e)
        return TOC_RE.sub(TOC_ERROR, text)
    cards = '\n'.join(content_card(p) for p in posts)
    return TOC_RE.sub(lambda m: cards, text)
