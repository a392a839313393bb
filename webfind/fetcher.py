"""
Fetching and parsing of directory listings.

The :class:`Fetcher` issues one GET per visit (plus one per redirect hop),
refuses hosts outside the seeds' allow-list before contacting them, reads
at most ``max_response_bytes`` of the body and hands back the page's
anchors as a lazy sequence.
"""

import logging
from typing import Iterator
from urllib.parse import urljoin

import requests

from webfind.core.policy import EntryType, Policy
from webfind.errors import DisallowedHostError, SkippedVisitError
from webfind.extraction.anchors import Anchor, extract_anchors
from webfind.session import TransportOptions, build_session
from webfind.utils.log import log
from webfind.utils.url import host_of, hostnames_from_urls

_CHUNK_SIZE = 16 * 1024


class Fetcher:
    """Fetch/parse collaborator used by the crawler."""

    def __init__(
        self,
        policy: Policy,
        session: requests.Session | None = None,
        transport: TransportOptions | None = None,
        verify_ssl: bool = True,
        logger: logging.Logger | None = None,
    ) -> None:
        self.transport = transport or TransportOptions()
        self.session = session or build_session(self.transport, verify_ssl=verify_ssl)
        self.timeout = self.transport.request_timeout()
        self.allowed_hosts = frozenset(hostnames_from_urls(policy.seeds))
        self.max_body_size = policy.max_response_bytes
        self.directories_only = policy.entry_type == EntryType.DIRECTORY
        self.log = logger or log

    def visit(self, url: str) -> Iterator[Anchor]:
        """Fetch *url* and return an iterator over its anchors.

        Network and HTTP errors are raised here, before iteration starts.
        """
        body, final_url = self.fetch(url)
        return extract_anchors(body, final_url)

    def fetch(self, url: str) -> tuple[bytes, str]:
        """Return ``(body, final_url)`` for *url*, body truncated to the
        configured limit."""
        self._check_allowed(url)
        if self.directories_only and not url.split("?", 1)[0].endswith("/"):
            raise SkippedVisitError(url)

        resp = self._follow(url)
        with resp:
            resp.raise_for_status()
            body = self._read_body(resp, url)
        return body, resp.url or url

    def _follow(self, url: str) -> requests.Response:
        """GET *url*, following redirects one hop at a time so that every
        target host is checked before it is contacted."""
        current = url
        for _ in range(self.session.max_redirects + 1):
            resp = self.session.get(current, timeout=self.timeout, stream=True,
                                    allow_redirects=False)
            if not resp.is_redirect:
                return resp
            target = urljoin(current, resp.headers["Location"])
            resp.close()
            self.log.debug("  Redirect: %s → %s", current, target)
            self._check_allowed(target)
            current = target
        raise requests.TooManyRedirects(
            f"exceeded {self.session.max_redirects} redirects: {url}"
        )

    def _check_allowed(self, url: str) -> None:
        if host_of(url) not in self.allowed_hosts:
            raise DisallowedHostError(url)

    def _read_body(self, resp: requests.Response, url: str) -> bytes:
        limit = self.max_body_size
        buf = bytearray()
        for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
            buf.extend(chunk)
            if limit and len(buf) >= limit:
                if len(buf) > limit:
                    self.log.debug("[SKIP] body of %s truncated at %d bytes", url, limit)
                del buf[limit:]
                break
        return bytes(buf)

    def close(self) -> None:
        self.session.close()
