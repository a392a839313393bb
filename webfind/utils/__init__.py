"""Utility helpers for URL handling and logging."""

from webfind.utils.url import (
    base_name,
    ensure_trailing_slash,
    hostnames_from_urls,
    is_valid_url,
    resolve_href,
    url_key,
)
from webfind.utils.log import setup_logging, log

__all__ = [
    "base_name",
    "ensure_trailing_slash",
    "hostnames_from_urls",
    "is_valid_url",
    "resolve_href",
    "url_key",
    "setup_logging",
    "log",
]
