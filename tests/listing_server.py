"""
Helpers shared by the crawl tests: a static directory-listing HTTP server,
an in-memory fetcher, and a fake clock.
"""

import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import requests

from webfind.extraction.anchors import Anchor

HOME = "home"
FILE_NAME = "File"
DIR_NAME = "Dir"
FILES = ["hello", "world"]
SUBDIRS = ["foo", "bar", "baz"]


def listing(title: str, hrefs: list[str]) -> str:
    """Render an nginx-style autoindex page linking *hrefs*."""
    links = "\n".join(f'<a href="{h}">{h}</a>' for h in hrefs)
    return (
        "<html>\n"
        f"<head><title>Index of {title}</title></head>\n"
        "<body>\n"
        f'<h1>Index of {title}</h1><hr><pre><a href="../">../</a>\n'
        f"{links}\n"
        "</pre><hr></body>\n"
        "</html>\n"
    )


def hierarchy(dot_slash: bool = False) -> dict[str, str]:
    """
    Path -> body map of a three-level tree:

        /home/{foo,bar,baz}/  each holding ``File`` and ``Dir/``
        /home/                also holding ``hello`` and ``world``
    """
    prefix = "./" if dot_slash else ""
    pages = {
        f"/{HOME}/": listing(f"/{HOME}/", [f"{d}/" for d in SUBDIRS] + FILES),
    }
    for d in SUBDIRS:
        pages[f"/{HOME}/{d}/"] = listing(
            f"/{HOME}/{d}/", [f"{prefix}{DIR_NAME}/", f"{prefix}{FILE_NAME}"]
        )
        pages[f"/{HOME}/{d}/{DIR_NAME}/"] = ""
        pages[f"/{HOME}/{d}/{FILE_NAME}"] = ""
    return pages


class ListingServer:
    """Serve a path -> body map on 127.0.0.1 from a background thread."""

    def __init__(self, pages: dict[str, str],
                 redirects: dict[str, str] | None = None) -> None:
        self.pages = pages
        self.redirects = redirects or {}
        self.requests: list[str] = []
        server = self

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self):  # noqa: N802
                path = self.path.split("?", 1)[0]
                server.requests.append(path)
                location = server.redirects.get(path)
                if location is not None:
                    self.send_response(302)
                    self.send_header("Location", location)
                    self.send_header("Content-Length", "0")
                    self.end_headers()
                    return
                body = server.pages.get(path)
                if body is None:
                    body = server.pages.get(path + "/")
                if body is None:
                    self.send_response(404)
                    self.end_headers()
                    return
                data = body.encode("utf-8")
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", str(len(data)))
                self.end_headers()
                self.wfile.write(data)

            def log_message(self, format, *args):  # noqa: A002
                pass

        self.httpd = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self.thread = threading.Thread(target=self.httpd.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self.httpd.server_address[:2]
        return f"http://{host}:{port}"

    def start(self) -> "ListingServer":
        self.thread.start()
        return self

    def stop(self) -> None:
        self.httpd.shutdown()
        self.httpd.server_close()
        self.thread.join(timeout=5)


class FakeFetcher:
    """
    In-memory fetch collaborator: *listings* maps a URL to the hrefs on
    that page; *failures* maps a URL to exceptions raised, in order, by
    its next visits.
    """

    def __init__(self, listings: dict[str, list[str]],
                 failures: dict[str, list[BaseException]] | None = None) -> None:
        self.listings = listings
        self.failures = {k: list(v) for k, v in (failures or {}).items()}
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def visit(self, url: str):
        with self._lock:
            self.calls.append(url)
            pending = self.failures.get(url)
            if pending:
                raise pending.pop(0)
        if url not in self.listings:
            raise requests.HTTPError(f"404 Client Error: Not Found for url: {url}")
        return iter([Anchor.of(href, url) for href in self.listings[url]])


class FakeClock:
    """Deterministic clock: ``sleep`` advances ``now`` instantly."""

    def __init__(self) -> None:
        self.t = 0.0
        self.sleeps: list[float] = []

    def now(self) -> float:
        return self.t

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.t += seconds
