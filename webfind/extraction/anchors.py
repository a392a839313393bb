"""
Anchor extraction from directory-listing HTML via BeautifulSoup.
"""

from dataclasses import dataclass
from typing import Iterator

from bs4 import BeautifulSoup

from webfind.utils.url import resolve_href

_BS4_PARSER = "lxml"


@dataclass(frozen=True)
class Anchor:
    """One hyperlink discovered on a visited page."""

    href: str
    request_url: str
    absolute_url: str

    @classmethod
    def of(cls, href: str, request_url: str) -> "Anchor":
        return cls(href, request_url, resolve_href(request_url, href))


def extract_anchors(html: bytes | str, page_url: str) -> Iterator[Anchor]:
    """
    Yield an :class:`Anchor` for every ``<a href>`` in *html*, in document
    order.  Truncated markup is fine: whatever anchors the parser recovers
    are yielded.
    """
    soup = BeautifulSoup(html, _BS4_PARSER)
    for el in soup.find_all("a", href=True):
        href = el.get("href")
        if href:
            yield Anchor.of(href, page_url)
