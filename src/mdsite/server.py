"""Development server for the rendered site: clean URLs, index fallback, cached responses"""

import http.server
import io
import logging
from functools import partial
from http import HTTPStatus
from pathlib import Path
from typing import Optional

from mdsite.core.cache import TtlCache


logger = logging.getLogger(__name__)

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


class SiteRequestHandler(http.server.SimpleHTTPRequestHandler):
    """Serve the output directory; /blog/post resolves to post.html or post/index.html.

    Unknown extensionless routes fall back to the root index.html. File bodies
    pass through the injected cache, keyed by path and modification time.
    """

    def __init__(self, *args, cache: TtlCache = None, **kwargs):
        self.cache = cache
        super().__init__(*args, **kwargs)

    def resolve(self, url_path: str) -> Optional[Path]:
        root = Path(self.directory)
        path = Path(self.translate_path(url_path))
        if path.is_file():
            return path
        if path.is_dir():
            candidates = [path / 'index.html']
        elif not path.suffix:
            candidates = [path.with_name(path.name + '.html'), path / 'index.html']
        else:
            return None
        candidates.append(root / 'index.html')
        return next((c for c in candidates if c.is_file()), None)

    def _read(self, path: Path) -> bytes:
        if self.cache is None:
            return path.read_bytes()
        key = (str(path), path.stat().st_mtime_ns)
        body = self.cache.get(key)
        if body is None:
            body = path.read_bytes()
            self.cache.set(key, body)
        return body

    def send_head(self):
        path = self.resolve(self.path)
        if path is None:
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
            return None
        try:
            body = self._read(path)
        except OSError:
            self.send_error(HTTPStatus.NOT_FOUND, "File not found")
            return None

        self.send_response(HTTPStatus.OK)
        self.send_header("Content-Type", self.guess_type(str(path)))
        self.send_header("Content-Length", str(len(body)))
        if path.suffix == '.html':
            for name, value in NO_CACHE_HEADERS.items():
                self.send_header(name, value)
        self.end_headers()
        return io.BytesIO(body)

    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def tree_lines(directory: Path, prefix: str = '') -> list[str]:
    """Directory listing drawn as a tree; directories first, then files, by name."""
    entries = sorted(Path(directory).iterdir(), key=lambda p: (not p.is_dir(), p.name))
    lines = []
    for i, entry in enumerate(entries):
        last = i == len(entries) - 1
        lines.append(f"{prefix}{'└── ' if last else '├── '}{entry.name}{'/' if entry.is_dir() else ''}")
        if entry.is_dir():
            lines.extend(tree_lines(entry, prefix + ('    ' if last else '│   ')))
    return lines


def make_server(directory: Path, port: int, cache: TtlCache = None, host: str = '') -> http.server.ThreadingHTTPServer:
    handler = partial(SiteRequestHandler, directory=str(directory), cache=cache)
    return http.server.ThreadingHTTPServer((host, port), handler)


def serve(directory: Path, port: int = 8000, cache: TtlCache = None) -> None:
    """Block serving directory until interrupted."""
    httpd = make_server(directory, port, cache)
    logger.info("Serving %s at http://localhost:%d", directory, port)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down")
    finally:
        httpd.server_close()
