"""Unit tests for core/template.py"""

from mdsite.core.template import (
    DEFAULT_TEMPLATE, apply_page_template, compose_page, load_components, load_template,
    page_title,
)


def test_compose_page_fills_markers_once():
    """Each marker is filled at its first occurrence only."""
    out = compose_page("{{title}}|{{content}}|{{content}}|{{navigation}}", "T", "BODY", "NAV")
    assert out == "T|BODY|{{content}}|NAV"


def test_compose_page_does_not_rescan_content():
    """Marker text inside inserted content survives untouched."""
    out = compose_page("{{content}}|{{navigation}}", "T", "see {{navigation}}", "NAV")
    assert out == "see {{navigation}}|NAV"


def test_compose_page_escapes_title():
    assert compose_page("<title>{{title}}</title>", "Q&A", "", "") == "<title>Q&amp;A</title>"


def test_compose_page_components(caplog):
    """Known components are inlined; unknown ones are dropped with a warning."""
    out = compose_page("{{component:footer}}[{{component:ghost}}]", "", "", "", {"footer": "<footer/>"})
    assert out == "<footer/>[]"
    assert "ghost" in caplog.text


def test_load_template_default_and_file(tmp_path):
    assert load_template(None) == DEFAULT_TEMPLATE
    f = tmp_path / "shell.html"
    f.write_text("<main>{{content}}</main>")
    assert load_template(f) == "<main>{{content}}</main>"


def test_load_components(tmp_path):
    (tmp_path / "footer.html").write_text("<footer>f</footer>")
    (tmp_path / "notes.txt").write_text("ignored")
    assert load_components(tmp_path) == {"footer": "<footer>f</footer>"}
    assert load_components(tmp_path / "missing") == {}


def test_page_title():
    assert page_title({"title": "About"}, "mdsite") == "About | mdsite"
    assert page_title({}, "mdsite") == "mdsite"


def test_apply_page_template_metadata_block():
    meta = {"author": "Ann", "date": "2024-01-01", "tags": ["a", "b"]}
    out = apply_page_template("<p>x</p>", meta)
    assert out == (
        '<div class="metadata"><span class="author">By Ann</span>'
        '<span class="date">2024-01-01</span><div class="tags">'
        '<span class="tag">#a</span><span class="tag">#b</span></div></div><p>x</p>'
    )


def test_apply_page_template_attributed_quote():
    out = apply_page_template('<blockquote>"Stay hungry" - Jobs</blockquote>', {})
    assert out == '<blockquote>"Stay hungry"<cite>- Jobs</cite></blockquote>'


def test_apply_page_template_plain_quote_unchanged():
    assert apply_page_template("<blockquote>just text</blockquote>", {}) == "<blockquote>just text</blockquote>"
