"""Unit tests for core/content.py"""

from datetime import date

from mdsite.core.content import excerpt, list_siblings, newest_first_key, parse_date, plain_text, summarize


def test_plain_text_strips_markup():
    assert plain_text("Some **bold** and `code` with [link](/x).") == "Some bold and code with link."


def test_excerpt_first_paragraph_only():
    assert excerpt("First para.\n\nSecond para.") == "First para."


def test_excerpt_truncates_with_ellipsis():
    """Long paragraphs are capped at the limit and end with '...'."""
    text = excerpt("word " * 100)
    assert len(text) == 153
    assert text.endswith("...")


def test_parse_date():
    assert parse_date("2024-01-05T10:00") == date(2024, 1, 5)
    assert parse_date("soon") is None


def test_newest_first_key_orders_dated_then_undated():
    """Dated entries come first, newest first; undated entries follow by title."""
    items = [("2024-01-15", "a"), ("", "zed"), ("2024-02-01", "b"), ("", "Alpha")]
    ordered = sorted(items, key=lambda i: newest_first_key(*i))
    assert [title for _, title in ordered] == ["b", "a", "Alpha", "zed"]


def test_summarize_reads_frontmatter(content_root):
    post = summarize(content_root / "blog" / "first.md", content_root)
    assert post.title == "T1"
    assert post.date == "2024-01-15"
    assert post.author == "Ann"
    assert post.tags == ["x", "y"]
    assert post.excerpt == "Body text."
    assert post.url == "/blog/first"


def test_summarize_falls_back_to_stem(tmp_path):
    f = tmp_path / "release-notes.md"
    f.write_text("No frontmatter here.")
    assert summarize(f, tmp_path).title == "Release notes"


def test_list_siblings_excludes_index(content_root):
    """Every content file in the directory except index.md is listed."""
    posts = list_siblings(content_root / "blog", content_root)
    assert [p.title for p in posts] == ["T1", "T2", "T3"]


def test_list_siblings_skips_unreadable(content_root, caplog):
    """Files that fail to decode are logged and left out."""
    (content_root / "blog" / "binary.md").write_bytes(b"\xff\xfe\x00bad")
    posts = list_siblings(content_root / "blog", content_root)
    assert len(posts) == 3
    assert "binary.md" in caplog.text
