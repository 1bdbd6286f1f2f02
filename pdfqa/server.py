"""Local content server: serves the fixture PDF and the render harness."""

from __future__ import annotations

import asyncio
import errno
import logging
import random
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from urllib.parse import quote, urlsplit

from pdfqa.errors import MissingFixtureError
from pdfqa.fixtures import PdfFixture
from pdfqa.harness.page import PDF_ROUTE

logger = logging.getLogger(__name__)


def content_disposition(filename: str) -> str:
    """``inline`` disposition with an ASCII ``filename`` and RFC 5987 ``filename*``."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace('"', "_").replace("\\", "_")
    value = f'inline; filename="{fallback}"'
    if fallback != filename:
        value += f"; filename*=UTF-8''{quote(filename, safe='')}"
    return value


class _HarnessRequestHandler(BaseHTTPRequestHandler):
    server: "_HarnessHTTPServer"

    def do_GET(self) -> None:  # noqa: N802
        path = urlsplit(self.path).path
        if path == PDF_ROUTE:
            self._send_pdf()
        elif path in ("/", "/index.html"):
            self._send(200, self.server.html.encode("utf-8"), "text/html; charset=utf-8")
        else:
            self._send(404, b"Not found", "text/plain; charset=utf-8")

    def _send_pdf(self) -> None:
        fixture = self.server.fixture
        try:
            body = fixture.read_bytes()
        except MissingFixtureError as e:
            logger.warning("%s", e)
            self._send(404, b"Not found", "text/plain; charset=utf-8")
            return
        self._send(
            200,
            body,
            "application/pdf",
            {"Content-Disposition": content_disposition(fixture.filename)},
        )

    def _send(self, status: int, body: bytes, content_type: str, extra: dict[str, str] | None = None) -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        for key, value in (extra or {}).items():
            self.send_header(key, value)
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)


class _HarnessHTTPServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], fixture: PdfFixture, html: str):
        self.fixture = fixture
        self.html = html
        super().__init__(address, _HarnessRequestHandler)


class ContentServer:
    """One server per test, bound to a random local port.

    Use as a context manager (``with`` or ``async with``); the listening
    socket is closed on every exit path.
    """

    def __init__(
        self,
        fixture: PdfFixture,
        html: str,
        port_range: tuple[int, int] = (3000, 3999),
        bind_attempts: int = 5,
        host: str = "127.0.0.1",
    ):
        self.fixture = fixture
        self.html = html
        self.port_range = port_range
        self.bind_attempts = bind_attempts
        self.host = host
        self._httpd: _HarnessHTTPServer | None = None
        self._thread: threading.Thread | None = None

    @property
    def port(self) -> int:
        if self._httpd is None:
            raise RuntimeError("Server is not running")
        return self._httpd.server_address[1]

    @property
    def url(self) -> str:
        return f"http://localhost:{self.port}/"

    @property
    def running(self) -> bool:
        return self._httpd is not None

    def start(self) -> "ContentServer":
        if self._httpd is not None:
            return self
        low, high = self.port_range
        last_error: OSError | None = None
        for _ in range(max(1, self.bind_attempts)):
            port = random.randint(low, high)
            try:
                self._httpd = _HarnessHTTPServer((self.host, port), self.fixture, self.html)
                break
            except OSError as e:
                if e.errno != errno.EADDRINUSE:
                    raise
                logger.debug("Port %d in use, trying another", port)
                last_error = e
        else:
            raise OSError(f"No free port found in range {low}-{high}") from last_error

        self._thread = threading.Thread(
            target=self._httpd.serve_forever, name=f"pdfqa-server-{self.port}", daemon=True
        )
        self._thread.start()
        logger.debug("Content server listening on %s", self.url)
        return self

    def stop(self) -> None:
        if self._httpd is None:
            return
        self._httpd.shutdown()
        self._httpd.server_close()
        if self._thread is not None:
            self._thread.join(timeout=5)
        logger.debug("Content server stopped")
        self._httpd = None
        self._thread = None

    def __enter__(self) -> "ContentServer":
        return self.start()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    async def __aenter__(self) -> "ContentServer":
        return self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await asyncio.to_thread(self.stop)
