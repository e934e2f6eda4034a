"""Unit tests for core/parse.py"""

from pathlib import Path

import pytest

from mdsite.core.parse import (
    discover_files, is_directory_index, output_path_for, parse_file, parse_frontmatter, url_for,
)
from mdsite.core.utils.hashing import sha256


def test_parse_frontmatter_array_tags():
    """tags: [a, b, c] parses to an ordered list with no surrounding whitespace."""
    meta, body = parse_frontmatter("---\ntitle: Hello\ntags: [a, b, c]\n---\n\n# Body\n")
    assert meta == {"title": "Hello", "tags": ["a", "b", "c"]}
    assert body == "# Body"


def test_parse_frontmatter_no_frontmatter():
    """Text without a leading fence is returned whole with empty metadata."""
    text = "# No frontmatter\n"
    assert parse_frontmatter(text) == ({}, text)


def test_parse_frontmatter_unclosed():
    """A missing closing fence falls back to empty metadata and the full text."""
    text = "---\ntitle: Broken\n# Body"
    assert parse_frontmatter(text) == ({}, text)


def test_parse_frontmatter_keeps_scalars_as_strings():
    """Dates, numbers and times come back exactly as written."""
    meta, _ = parse_frontmatter("---\ndate: 2024-01-15\ntime: 10:30\ndraft: true\nyear: 2024\n---\nbody")
    assert meta == {"date": "2024-01-15", "time": "10:30", "draft": "true", "year": "2024"}


def test_parse_frontmatter_malformed_yaml(caplog):
    """An unparseable header gives empty metadata but keeps the body."""
    with caplog.at_level("WARNING"):
        meta, body = parse_frontmatter("---\ntitle: [unclosed\n---\n# Body\n")
    assert meta == {}
    assert body == "# Body"
    assert "Invalid YAML frontmatter" in caplog.text


def test_parse_frontmatter_non_mapping():
    meta, body = parse_frontmatter("---\n- just\n- a list\n---\nBody")
    assert (meta, body) == ({}, "Body")


def test_parse_frontmatter_quoted_values_and_order():
    meta, _ = parse_frontmatter("---\nzeta: \"a: b\"\nTitle: x\ntags: [1, two]\n---\n")
    assert list(meta) == ["zeta", "Title", "tags"]
    assert meta == {"zeta": "a: b", "Title": "x", "tags": ["1", "two"]}


def test_parse_frontmatter_empty_array():
    meta, _ = parse_frontmatter("---\ntags: []\n---\n")
    assert meta == {"tags": []}


def test_parse_file_hashes_raw_content(tmp_path):
    """parse_file splits metadata from body and hashes the full file."""
    raw = "---\ntitle: T\n---\nBody\n"
    f = tmp_path / "doc.md"
    f.write_text(raw)
    doc = parse_file(f)
    assert doc.meta == {"title": "T"}
    assert doc.body == "Body"
    assert doc.hash == sha256(raw)


def test_discover_files_single(tmp_path):
    """discover_files returns a list with one file when given a file path."""
    f = tmp_path / "doc.md"
    f.write_text("# Hello")
    assert discover_files(f) == [f]


def test_discover_files_recursive_and_filtered(tmp_path):
    """discover_files finds .md files recursively and ignores everything else."""
    (tmp_path / "sub").mkdir()
    (tmp_path / "a.md").write_text("a")
    (tmp_path / "sub" / "b.md").write_text("b")
    (tmp_path / "notes.txt").write_text("text")
    assert discover_files(tmp_path) == [tmp_path / "a.md", tmp_path / "sub" / "b.md"]


@pytest.mark.parametrize("rel,url", [
    ("index.md", "/"),
    ("about.md", "/about"),
    ("blog/index.md", "/blog"),
    ("blog/post.md", "/blog/post"),
])
def test_url_for(rel, url):
    root = Path("routes")
    assert url_for(root / rel, root) == url


@pytest.mark.parametrize("rel,out", [
    ("index.md", "index.html"),
    ("about.md", "about.html"),
    ("blog/index.md", "blog/index.html"),
    ("blog/post.md", "blog/post.html"),
])
def test_output_path_for(rel, out):
    """Content files map 1:1 to output files; index.md maps to the directory index."""
    root, dist = Path("routes"), Path("dist")
    assert output_path_for(root / rel, root, dist) == dist / out


def test_is_directory_index():
    root = Path("routes")
    assert is_directory_index(root / "blog" / "index.md", root)
    assert not is_directory_index(root / "index.md", root)
    assert not is_directory_index(root / "blog" / "post.md", root)
