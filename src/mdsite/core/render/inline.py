"""Regex span transforms: images, links, headers, emphasis, quotes, rules, footnotes, abbreviations"""

import html
import re
from collections.abc import Container

from mdsite.core.render.vault import PlaceholderVault
from mdsite.core.utils.slug import slugify


IMAGE_RE = re.compile(r'!\[([^\]]*)\]\(([^)]+)\)')
LINK_RE = re.compile(r'\[([^\]]+)\]\(([^)]+)\)')
HEADER_RE = re.compile(r'^[ \t]*(#{1,3})[ \t]+(.+?)[ \t]*$', re.MULTILINE)
BOLD_RE = re.compile(r'\*\*(.+?)\*\*')
ITALIC_STAR_RE = re.compile(r'\*([^*\n]+?)\*')
ITALIC_UNDERSCORE_RE = re.compile(r'(?<![\w\\])_(?![\s_])([^_\n]+?)(?<!\s)_(?!\w)')
STRIKE_RE = re.compile(r'~~(.+?)~~')
INLINE_CODE_RE = re.compile(r'`([^`\n]+)`')
INLINE_CODE_TOKEN = '@@INLINECODE{}@@'
QUOTE_LINE_RE = re.compile(r'^[ \t]*>(?: (.*))?$')
RULE_RE = re.compile(r'^[ ]*---[ ]*$', re.MULTILINE)
FOOTNOTE_DEF_RE = re.compile(r'^\[\^([^\]]+)\]:[ \t]*(.+)$\n?', re.MULTILINE)
FOOTNOTE_REF_RE = re.compile(r'\[\^([^\]]+)\](?!:)')
ABBR_DEF_RE = re.compile(r'^\\_\[(.+?)\]:[ \t]*(.+)$\n?', re.MULTILINE)
TAG_SPLIT_RE = re.compile(r'(<[^>]+>)')

ASSETS_PREFIX = '/assets/'


# --- images and links ---

def asset_url(src: str) -> str:
    """Map a markdown image path to its public URL under /assets/."""
    if src.startswith(('http://', 'https://', ASSETS_PREFIX)):
        return src
    return ASSETS_PREFIX + re.sub(r'^\.?/?', '', src)


def webp_url(url: str) -> str:
    """Return the sibling .webp URL for an image URL, dropping any query or fragment."""
    url = re.sub(r'[#?].*$', '', url)
    return re.sub(r'\.[^./]+$', '.webp', url)


def render_images(text: str, webp_index: Container[str] = frozenset()) -> str:
    """Convert ![alt](src) to <img>, or to <picture> when a WebP variant is known to exist."""
    def _image(m: re.Match) -> str:
        alt, src = m.group(1), asset_url(m.group(2).strip())
        webp = webp_url(src)
        if webp != src and webp in webp_index:
            return (
                f'<picture><source srcset="{webp}" type="image/webp">'
                f'<img src="{src}" alt="{alt}"></picture>'
            )
        return f'<img src="{src}" alt="{alt}">'
    return IMAGE_RE.sub(_image, text)


def render_links(text: str, external: bool = True) -> str:
    """Convert [text](url) to anchors; external=True opens them in a new tab."""
    attrs = ' target="_blank" rel="noopener noreferrer"' if external else ''
    return LINK_RE.sub(lambda m: f'<a href="{m.group(2).strip()}"{attrs}>{m.group(1)}</a>', text)


# --- headers, emphasis, quotes, rules ---

def heading_id(title: str) -> str:
    """Anchor id for a heading: tags dropped, then slugified."""
    return slugify(re.sub(r'<[^>]+>', '', title))


def render_headers(text: str) -> str:
    """Convert #, ## and ### lines to headings wrapping a self-link anchor."""
    def _header(m: re.Match) -> str:
        level, title = len(m.group(1)), m.group(2)
        anchor = heading_id(title)
        return f'<h{level} id="{anchor}"><a href="#{anchor}" class="header-anchor">{title}</a></h{level}>'
    return HEADER_RE.sub(_header, text)


def _code_span(code: str, index: int) -> str:
    # Braces are entity-encoded so directive markers inside code are shown, not resolved.
    escaped = html.escape(code, quote=False).replace('{', '&#123;').replace('}', '&#125;')
    return f'<code>{escaped}</code>'


def render_emphasis(text: str) -> str:
    """Apply bold, italic and strikethrough around inline code, whose text is escaped verbatim."""
    code = PlaceholderVault(INLINE_CODE_TOKEN, INLINE_CODE_RE, capture=lambda m: m.group(1))
    text = code.protect(text)
    text = BOLD_RE.sub(r'<strong>\1</strong>', text)
    text = ITALIC_STAR_RE.sub(r'<em>\1</em>', text)
    text = ITALIC_UNDERSCORE_RE.sub(r'<em>\1</em>', text)
    text = STRIKE_RE.sub(r'<del>\1</del>', text)
    return code.restore(text, render=_code_span)


def render_blockquotes(text: str) -> str:
    """Collapse each run of '> ' lines into one <blockquote>, joining lines with a space."""
    out: list[str] = []
    quote: list[str] = []

    def _flush() -> None:
        if quote:
            inner = ' '.join(part.strip() for part in quote if part.strip())
            out.append(f"<blockquote>{inner}</blockquote>")
            quote.clear()

    for line in text.split('\n'):
        m = QUOTE_LINE_RE.match(line)
        if m:
            quote.append(m.group(1) or '')
        else:
            _flush()
            out.append(line)
    _flush()
    return '\n'.join(out)


def render_rules(text: str) -> str:
    return RULE_RE.sub('<hr>', text)


# --- abbreviations ---

def collect_abbreviations(text: str) -> tuple[str, dict[str, str]]:
    """Remove '\\_[term]: definition' lines; return (text, {term: definition})."""
    found: dict[str, str] = {}

    def _collect(m: re.Match) -> str:
        found[m.group(1)] = m.group(2).strip()
        return ''
    return ABBR_DEF_RE.sub(_collect, text), found


def apply_abbreviations(text: str, definitions: dict[str, str]) -> str:
    """Wrap every whole-word, case-insensitive term occurrence in <abbr>, outside of tags."""
    if not definitions:
        return text
    lookup = {term.lower(): definition for term, definition in definitions.items()}
    terms = sorted(definitions, key=len, reverse=True)
    pattern = re.compile(r'\b(?:' + '|'.join(re.escape(t) for t in terms) + r')\b', re.IGNORECASE)

    def _wrap(m: re.Match) -> str:
        title = html.escape(lookup[m.group(0).lower()], quote=True)
        return f'<abbr title="{title}">{m.group(0)}</abbr>'

    parts = TAG_SPLIT_RE.split(text)
    return ''.join(part if part.startswith('<') else pattern.sub(_wrap, part) for part in parts)


# --- footnotes ---

def collect_footnotes(text: str) -> tuple[str, dict[str, str]]:
    """Remove '[^name]: text' definition lines; return (text, {name: text}).

    Runs before reference rewriting so definitions are never mistaken for references.
    """
    found: dict[str, str] = {}

    def _collect(m: re.Match) -> str:
        found.setdefault(m.group(1), m.group(2).strip())
        return ''
    return FOOTNOTE_DEF_RE.sub(_collect, text), found


def apply_footnote_refs(text: str) -> tuple[str, dict[str, int]]:
    """Number [^name] references in first-seen order; return (text, {name: number})."""
    numbers: dict[str, int] = {}

    def _ref(m: re.Match) -> str:
        num = numbers.setdefault(m.group(1), len(numbers) + 1)
        return (
            f'<sup class="footnote-ref"><a href="#footnote-{num}" '
            f'id="footnote-ref-{num}">[{num}]</a></sup>'
        )
    return FOOTNOTE_REF_RE.sub(_ref, text), numbers


def render_footnote_section(definitions: dict[str, str], numbers: dict[str, int]) -> str:
    """Ordered footnote list for every referenced definition, with back references."""
    items = [
        f'<li id="footnote-{num}">{definitions[name]} '
        f'<a href="#footnote-ref-{num}" class="footnote-backref">&#8617;</a></li>'
        for name, num in sorted(numbers.items(), key=lambda item: item[1])
        if name in definitions
    ]
    if not items:
        return ''
    return '<section class="footnotes"><hr><ol>' + ''.join(items) + '</ol></section>'
