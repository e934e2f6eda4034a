"""Page composition: single-use template markers and the page decorator"""

import html
import logging
import re
from pathlib import Path
from typing import Mapping, Optional

from mdsite.core.models import MetaValue


logger = logging.getLogger(__name__)

MARKER_RE = re.compile(r'\{\{(title|content|navigation|component:([\w-]+))\}\}')
BLOCKQUOTE_RE = re.compile(r'<blockquote>(.*?)</blockquote>', re.DOTALL)
ATTRIBUTED_QUOTE_RE = re.compile(r'^"([^"]+)"\s*-\s*(.+)$')

DEFAULT_TEMPLATE = """\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{title}}</title>
    <link rel="icon" type="image/x-icon" href="/assets/favicon.ico">
    <link rel="stylesheet" href="/assets/styles.css">
</head>
<body>
    <nav class="navbar">
        <div class="navbar-container">
            <a href="/" class="navbar-brand">{{component:brand}}</a>
            <ul class="navbar-nav" id="navbar-nav">
                {{navigation}}
            </ul>
        </div>
    </nav>
    <div class="page">
        <main class="main">
            <div class="container">
                {{content}}
            </div>
        </main>
    </div>
    {{component:footer}}
</body>
</html>
"""


def load_template(path: Optional[Path]) -> str:
    """Read the page shell, or return the built-in one when no path is configured."""
    if path is None:
        return DEFAULT_TEMPLATE
    return Path(path).read_text(encoding='utf-8')


def load_components(directory: Path) -> dict[str, str]:
    """Map component name -> markup for every <name>.html in directory."""
    directory = Path(directory)
    if not directory.is_dir():
        return {}
    return {p.stem: p.read_text(encoding='utf-8') for p in sorted(directory.glob('*.html'))}


def page_title(meta: Mapping[str, MetaValue], site_name: str) -> str:
    title = meta.get('title')
    if isinstance(title, list):
        title = ', '.join(title)
    return f"{title} | {site_name}" if title else site_name


def compose_page(
    template: str,
    title: str,
    content: str,
    navigation: str,
    components: Mapping[str, str] = None,
    ) -> str:
    """Fill each named marker once, first occurrence only.

    Inserted values are never rescanned, so marker text inside content survives.
    Unknown components are dropped with a warning.
    """
    components = components or {}
    values = {'title': html.escape(title), 'content': content, 'navigation': navigation}
    used: set[str] = set()

    def _fill(m: re.Match) -> str:
        key = m.group(1)
        if key in used:
            return m.group(0)
        used.add(key)
        if m.group(2) is not None:
            name = m.group(2)
            if name not in components:
                logger.warning("Template component not found: %s", name)
                return ''
            return components[name]
        return values[key]
    return MARKER_RE.sub(_fill, template)


def _metadata_block(meta: Mapping[str, MetaValue]) -> str:
    parts = []
    if meta.get('author'):
        parts.append(f'<span class="author">By {html.escape(str(meta["author"]))}</span>')
    if meta.get('date'):
        parts.append(f'<span class="date">{html.escape(str(meta["date"]))}</span>')
    tags = meta.get('tags')
    if isinstance(tags, list) and tags:
        parts.append('<div class="tags">' + ''.join(
            f'<span class="tag">#{html.escape(tag)}</span>' for tag in tags
        ) + '</div>')
    return f'<div class="metadata">{"".join(parts)}</div>' if parts else ''


def _attributed_quote(m: re.Match) -> str:
    text = re.sub(r'\s+', ' ', m.group(1)).strip()
    quote = ATTRIBUTED_QUOTE_RE.match(text)
    if not quote:
        return f"<blockquote>{text}</blockquote>"
    return f'<blockquote>"{quote.group(1)}"<cite>- {quote.group(2)}</cite></blockquote>'


def apply_page_template(content: str, meta: Mapping[str, MetaValue]) -> str:
    """Prepend the author/date/tags block and attribute '"quote" - author' blockquotes.

    Code containers hold escaped markup only, so their contents never match.
    """
    return _metadata_block(meta) + BLOCKQUOTE_RE.sub(_attributed_quote, content)
