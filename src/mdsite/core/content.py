"""Content collaborator: sibling listing, plain-text excerpts and date ordering"""

import logging
from datetime import date
from pathlib import Path
from typing import Optional

from markdown_it import MarkdownIt

from mdsite.core.models import ContentSummary, MetaValue
from mdsite.core.parse import MD_EXTENSIONS, parse_file, url_for
from mdsite.core.utils.slug import humanize


logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 150
_TEXT_TOKENS = {'text', 'code_inline'}
_BREAK_TOKENS = {'softbreak', 'hardbreak'}


def _make_parser() -> MarkdownIt:
    return MarkdownIt('commonmark', options_update={"linkify": False})


def plain_text(markdown: str) -> str:
    """Flatten markdown to its visible text using the markdown-it token stream."""
    chunks = []
    for tok in _make_parser().parse(markdown):
        if tok.type != 'inline' or not tok.children:
            continue
        parts = []
        for child in tok.children:
            if child.type in _TEXT_TOKENS:
                parts.append(child.content)
            elif child.type in _BREAK_TOKENS:
                parts.append(' ')
        chunks.append(''.join(parts).strip())
    return ' '.join(c for c in chunks if c)


def excerpt(body: str, limit: int = EXCERPT_LENGTH) -> str:
    """First paragraph of body as plain text, capped at limit characters with an ellipsis."""
    first = body.strip().split('\n\n')[0]
    text = plain_text(first)
    return text[:limit] + '...' if len(text) > limit else text


def parse_date(value: str) -> Optional[date]:
    """Leading YYYY-MM-DD of value, or None when it is not a date."""
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def newest_first_key(dated: str, title: str) -> tuple:
    """Sort key: dated entries first, newest first; undated entries by title."""
    parsed = parse_date(dated) if dated else None
    if parsed is None:
        return (1, 0, title.lower())
    return (0, -parsed.toordinal(), title.lower())


def _text(meta: dict[str, MetaValue], key: str) -> str:
    value = meta.get(key, '')
    return ', '.join(value) if isinstance(value, list) else value


def _tags(meta: dict[str, MetaValue]) -> list[str]:
    value = meta.get('tags', [])
    if isinstance(value, str):
        return [value] if value else []
    return list(value)


def summarize(path: Path, content_root: Path) -> ContentSummary:
    """Build the listing entry for one content file."""
    doc = parse_file(path)
    return ContentSummary(
        title=_text(doc.meta, 'title') or humanize(path.stem),
        date=_text(doc.meta, 'date'),
        author=_text(doc.meta, 'author'),
        tags=_tags(doc.meta),
        excerpt=excerpt(doc.body),
        url=url_for(path, content_root),
    )


def list_siblings(directory: Path, content_root: Path, exclude: str = 'index.md') -> list[ContentSummary]:
    """Summaries of the content files directly inside directory, excluding `exclude`.

    Unreadable files are logged and left out of the listing.
    """
    summaries = []
    for path in sorted(directory.iterdir()):
        if not path.is_file() or path.suffix not in MD_EXTENSIONS or path.name == exclude:
            continue
        try:
            summaries.append(summarize(path, content_root))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Skipping unreadable content file %s: %s", path, e)
    return summaries
