"""Navigation tree: top-level pages plus one level of directory dropdowns"""

import html
import logging
from pathlib import Path

from mdsite.core.content import newest_first_key
from mdsite.core.models import NavItem
from mdsite.core.parse import MD_EXTENSIONS, parse_file
from mdsite.core.utils.slug import humanize


logger = logging.getLogger(__name__)


def _child(path: Path, folder: str) -> NavItem:
    title, date = humanize(path.stem), ''
    try:
        meta = parse_file(path).meta
    except (OSError, UnicodeDecodeError) as e:
        logger.info("Could not read metadata from %s: %s", path, e)
    else:
        if isinstance(meta.get('title'), str) and meta['title']:
            title = meta['title']
        if isinstance(meta.get('date'), str):
            date = meta['date']
    return NavItem(title=title, url=f"/{folder}/{path.stem}", date=date)


def build_navigation(content_root: Path) -> list[NavItem]:
    """Computed once per build; directories without pages are left out."""
    items: list[NavItem] = []
    if not content_root.is_dir():
        logger.error("Content directory %s not found; navigation is empty", content_root)
        return items

    for entry in sorted(content_root.iterdir()):
        if entry.is_file() and entry.suffix in MD_EXTENSIONS:
            if entry.stem != 'index':
                items.append(NavItem(title=humanize(entry.stem), url=f"/{entry.stem}"))
        elif entry.is_dir():
            children = [
                _child(p, entry.name) for p in sorted(entry.iterdir())
                if p.is_file() and p.suffix in MD_EXTENSIONS and p.stem != 'index'
            ]
            if children:
                children.sort(key=lambda c: newest_first_key(c.date, c.title))
                items.append(NavItem(title=humanize(entry.name), url=f"/{entry.name}", children=children))
    return items


def navigation_html(items: list[NavItem], current_url: str = '') -> str:
    """Render <li> entries, marking the current page and its dropdown active."""
    out = []
    for item in items:
        title = html.escape(item.title)
        if item.children:
            active = current_url == item.url or any(c.url == current_url for c in item.children)
            flag = ' active' if active else ''
            links = ''.join(
                f'<a href="{c.url}" class="nav-dropdown-item{" active" if c.url == current_url else ""}">'
                f'{html.escape(c.title)}</a>'
                for c in item.children
            )
            out.append(
                f'<li class="nav-item nav-dropdown{flag}">'
                f'<button type="button" class="nav-link nav-dropdown-toggle{flag}">{title}</button>'
                f'<div class="nav-dropdown-content">{links}</div></li>'
            )
        else:
            flag = ' active' if current_url == item.url else ''
            out.append(f'<li class="nav-item{flag}"><a href="{item.url}" class="nav-link{flag}">{title}</a></li>')
    return ''.join(out)
