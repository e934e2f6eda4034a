"""Data models shared by the content, render and build stages"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel, Field


MetaValue = Union[str, list[str]]


@dataclass
class SourceDocument:
    """One content file split into frontmatter metadata and markdown body; immutable during rendering."""
    path:  Path
    raw:   str                      # full file content (includes frontmatter)
    meta:  dict[str, MetaValue]
    body:  str                      # markdown without frontmatter
    hash:  str                      # sha256 of raw


@dataclass(frozen=True)
class Directive:
    """One {{lua:name[:args]}} marker found in a document."""
    script:    str
    args:      Optional[tuple[str, ...]]
    raw_match: str


class ContentSummary(BaseModel):
    """Listing entry for a sibling content file, as used by {{routes:toc}} cards."""
    title:   str
    date:    str = ""
    author:  str = ""
    tags:    list[str] = []
    excerpt: str = ""
    url:     str


class NavItem(BaseModel):
    """Navigation node: top-level page, or a directory dropdown with one level of children."""
    title:    str
    url:      str
    date:     str = ""
    children: list["NavItem"] = []


@dataclass
class RenderedPage:
    """A fully composed page ready to be written."""
    source: Path
    output: Path
    url:    str
    html:   str
    meta:   dict[str, MetaValue]
    hash:   str = ""
    cached: bool = False


class BuildSummary(BaseModel):
    """Outcome of one build run."""
    total:     int = 0
    succeeded: int = 0
    failed:    int = 0
    cached:    int = 0
    skipped:   int = 0
    failures:  list[tuple[str, str]] = Field(default_factory=list)   # (source path, error text)
    timings:   dict[str, float] = Field(default_factory=dict)        # source path -> seconds

    def slowest(self, n: int = 3) -> list[tuple[str, float]]:
        return sorted(self.timings.items(), key=lambda item: item[1], reverse=True)[:n]
