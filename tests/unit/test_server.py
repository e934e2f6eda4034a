"""Unit tests for server.py"""

import os
import threading
import urllib.error
import urllib.request

import pytest

from mdsite.core.cache import TtlCache
from mdsite.server import make_server, tree_lines


@pytest.fixture(name="site")
def site_fixture(tmp_path):
    dist = tmp_path / "dist"
    (dist / "blog").mkdir(parents=True)
    (dist / "assets").mkdir()
    (dist / "index.html").write_text("home")
    (dist / "about.html").write_text("about")
    (dist / "blog" / "index.html").write_text("blog")
    (dist / "assets" / "styles.css").write_text("body {}")
    return dist


@pytest.fixture(name="base_url")
def base_url_fixture(site):
    """Run the server on a free port in a background thread."""
    httpd = make_server(site, 0, TtlCache(), host="127.0.0.1")
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{httpd.server_address[1]}"
    httpd.shutdown()
    httpd.server_close()


def _get(url):
    with urllib.request.urlopen(url) as resp:
        return resp.read().decode(), resp.headers


@pytest.mark.parametrize("path,body", [
    ("/", "home"),
    ("/about", "about"),
    ("/about.html", "about"),
    ("/blog", "blog"),
    ("/blog/", "blog"),
    ("/no/such/route", "home"),
])
def test_clean_urls_and_fallback(base_url, path, body):
    """Extensionless paths resolve to .html, then index.html, then the root index."""
    assert _get(base_url + path)[0] == body


def test_pages_are_not_cached_by_clients(base_url):
    _, headers = _get(base_url + "/about")
    assert headers["Cache-Control"] == "no-cache, no-store, must-revalidate"


def test_static_assets_served(base_url):
    body, headers = _get(base_url + "/assets/styles.css")
    assert body == "body {}"
    assert headers["Content-Type"].startswith("text/css")


def test_missing_asset_is_404(base_url):
    with pytest.raises(urllib.error.HTTPError) as exc:
        _get(base_url + "/assets/missing.css")
    assert exc.value.code == 404


def test_cached_body_refreshes_on_change(base_url, site):
    """A rewritten file is served fresh because the cache key includes its mtime."""
    assert _get(base_url + "/about")[0] == "about"
    (site / "about.html").write_text("about v2")
    stat = (site / "about.html").stat()
    os.utime(site / "about.html", ns=(stat.st_atime_ns, stat.st_mtime_ns + 1_000_000_000))
    assert _get(base_url + "/about")[0] == "about v2"


def test_tree_lines(site):
    assert tree_lines(site) == [
        "├── assets/",
        "│   └── styles.css",
        "├── blog/",
        "│   └── index.html",
        "├── about.html",
        "└── index.html",
    ]
