"""File discovery, frontmatter extraction, and source-to-output path mapping"""

import logging
from pathlib import Path

import yaml

from mdsite.core.models import MetaValue, SourceDocument
from mdsite.core.utils.hashing import sha256


MD_EXTENSIONS = {'.md'}
FENCE = '---'

logger = logging.getLogger(__name__)


class _StringLoader(yaml.SafeLoader):
    """SafeLoader without implicit typing; every plain scalar stays a string."""


_StringLoader.yaml_implicit_resolvers = {}


def _coerce(value) -> MetaValue:
    if isinstance(value, list):
        return [str(item) for item in value]
    return str(value)


def parse_frontmatter(text: str) -> tuple[dict[str, MetaValue], str]:
    """Return (metadata, body) for a '---' delimited YAML header.

    A missing closing fence leaves the whole text as body with empty metadata.
    A header that is not a valid YAML mapping gives empty metadata; the body
    still renders. Values are strings, or lists of strings for `[a, b]`.
    """
    lines = text.splitlines()
    if not lines or lines[0].strip() != FENCE:
        return {}, text

    end = next((i for i in range(1, len(lines)) if lines[i].strip() == FENCE), None)
    if end is None:
        return {}, text

    body = '\n'.join(lines[end + 1:]).strip('\n')
    try:
        loaded = yaml.load('\n'.join(lines[1:end]), Loader=_StringLoader) or {}
    except yaml.YAMLError as e:
        logger.warning("Invalid YAML frontmatter, using empty metadata: %s", e)
        return {}, body
    if not isinstance(loaded, dict):
        logger.warning("Frontmatter is not a mapping (got %s), using empty metadata", type(loaded).__name__)
        return {}, body
    return {str(key): _coerce(value) for key, value in loaded.items()}, body


def discover_files(path: Path) -> list[Path]:
    """Return sorted .md files under path, or [path] if a single file."""
    if path.is_file():
        return [path] if path.suffix in MD_EXTENSIONS else []
    return sorted(p for p in path.rglob('*') if p.is_file() and p.suffix in MD_EXTENSIONS)


def parse_file(path: Path) -> SourceDocument:
    """Read a content file once and split it into metadata and body."""
    raw = path.read_text(encoding='utf-8')
    meta, body = parse_frontmatter(raw)
    return SourceDocument(path=path, raw=raw, meta=meta, body=body, hash=sha256(raw))


def url_for(source: Path, content_root: Path) -> str:
    """Public URL: routes/index.md -> '/', routes/blog/index.md -> '/blog', routes/a/b.md -> '/a/b'."""
    rel = source.relative_to(content_root).with_suffix('')
    if rel.name == 'index':
        rel = rel.parent
    return '/' + rel.as_posix() if rel.parts else '/'


def output_path_for(source: Path, content_root: Path, output_dir: Path) -> Path:
    """index.md maps to <dir>/index.html, every other file to <dir>/<stem>.html."""
    rel = source.relative_to(content_root)
    return output_dir / rel.with_suffix('.html')


def is_directory_index(source: Path, content_root: Path) -> bool:
    """True for index.md inside a subdirectory of the content root (not the site root)."""
    try:
        rel = source.relative_to(content_root)
    except ValueError:
        return False
    return rel.name == 'index.md' and len(rel.parts) > 1
