"""Slug generation for heading anchors and navigation titles"""

import re


_NON_ALNUM = re.compile(r'[^a-z0-9]+')


def slugify(text: str) -> str:
    """Lowercase text, collapse non-alphanumeric runs to one hyphen and trim hyphens."""
    return _NON_ALNUM.sub('-', text.lower()).strip('-')


def humanize(stem: str) -> str:
    """Turn a file or folder stem into a display title ('my_post-1' -> 'My post 1')."""
    text = stem.replace('_', ' ').replace('-', ' ')
    return text[:1].upper() + text[1:]
