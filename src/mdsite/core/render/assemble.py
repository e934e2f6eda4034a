"""Paragraph and line-break assembly plus cleanup of wrapping artifacts"""

import re


BLOCK_TAGS = (
    'ul', 'ol', 'li', 'dl', 'dt', 'dd', 'table', 'thead', 'tbody', 'tr', 'th', 'td',
    'div', 'h[1-6]', 'p', 'blockquote', 'hr', 'pre', 'section', 'picture', 'figure',
    'script', 'style', 'nav', 'header', 'footer', 'article', 'aside', 'details',
    'summary', 'iframe', 'form', 'video', 'audio',
)
CARD_CLASSES = (
    'content-card', 'content-card-header', 'content-card-title', 'content-card-meta',
    'content-card-date', 'content-card-author', 'content-card-excerpt',
    'content-card-tags', 'content-card-tag', 'content-card-link',
    'blog-card', 'blog-card-header', 'blog-card-title', 'blog-card-meta',
    'blog-card-date', 'blog-card-author', 'blog-card-excerpt', 'blog-card-tags',
    'blog-card-tag', 'blog-card-link',
)

_BLOCK = '|'.join(BLOCK_TAGS)
BLOCK_START_RE = re.compile(rf'^\s*(?:</?(?:{_BLOCK})\b|@@CODEBLOCK\d+@@)', re.IGNORECASE)
BLOCK_END_RE = re.compile(rf'(?:</?(?:{_BLOCK})\b[^>]*>|@@CODEBLOCK\d+@@)\s*$', re.IGNORECASE)
PARAGRAPH_SPLIT_RE = re.compile(r'\n[ \t]*\n+')

_CARD = '|'.join(re.escape(c) for c in CARD_CLASSES)
_CLEANUP: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r'<p>\s*</p>'), ''),
    (re.compile(r'<p>(?:\s*<br>\s*)+</p>'), ''),
    (re.compile(r'<br>\s*(?=</?d[ltd]\b)'), ''),
    (re.compile(r'(</?d[ltd]>)\s*<br>'), r'\1'),
    (re.compile(rf'<br>\s*(?=<\w+ class="(?:{_CARD})")'), ''),
    (re.compile(rf'(</?(?:{_BLOCK})\b[^>]*>)\s*<br>', re.IGNORECASE), r'\1'),
    (re.compile(rf'<br>\s*(?=</?(?:{_BLOCK})\b)', re.IGNORECASE), ''),
)


def _is_block_edge(previous: str, line: str) -> bool:
    return bool(BLOCK_START_RE.match(line) or BLOCK_END_RE.search(previous))


def insert_breaks(block: str) -> str:
    """Join the lines of one paragraph block with <br>, except next to block-level tags."""
    lines = block.split('\n')
    parts = [lines[0]]
    for previous, line in zip(lines, lines[1:]):
        parts.append('\n' if _is_block_edge(previous, line) else '<br>')
        parts.append(line)
    return ''.join(parts)


def wrap_paragraphs(block: str) -> str:
    """Wrap every line that is not block-level HTML or a code token in <p>."""
    out = []
    for line in block.split('\n'):
        stripped = line.strip()
        if not stripped:
            continue
        if BLOCK_START_RE.match(stripped):
            out.append(stripped)
        else:
            out.append(f"<p>{stripped}</p>")
    return '\n'.join(out)


def cleanup(text: str) -> str:
    """Drop empty paragraphs and stray <br> tags around block and card elements."""
    text = re.sub(r'<dd>(.*?)</dd>', lambda m: '<dd>' + m.group(1).replace('<br>', ' ') + '</dd>', text)
    for pattern, repl in _CLEANUP:
        text = pattern.sub(repl, text)
    return text


def assemble(text: str) -> str:
    """Split on blank lines into paragraph blocks, insert breaks, wrap, then clean up."""
    blocks = [b for b in PARAGRAPH_SPLIT_RE.split(text) if b.strip()]
    return cleanup('\n'.join(wrap_paragraphs(insert_breaks(b)) for b in blocks))
