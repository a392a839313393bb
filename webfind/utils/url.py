"""
URL normalisation and matching helpers.
"""

import posixpath
import urllib.parse


def ensure_trailing_slash(url: str) -> str:
    """Return *url* with a trailing ``/`` so it names a directory."""
    return url if url.endswith("/") else url + "/"


def is_valid_url(raw: str) -> bool:
    """
    Return ``True`` if *raw* is an absolute ``http(s)`` URL with a host.

    ``urllib.parse`` accepts almost any string, so the scheme and network
    location are checked explicitly.
    """
    try:
        parsed = urllib.parse.urlparse(raw)
        # Accessing .port validates the port component.
        parsed.port
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def resolve_href(page_url: str, href: str) -> str:
    """
    Resolve *href* against the page it was found on.

    ``./foo`` and ``foo`` resolve to the same absolute URL.  Fragments are
    dropped since they never address a different listing.
    """
    absolute = urllib.parse.urljoin(page_url, href.strip())
    return urllib.parse.urldefrag(absolute).url


def base_name(ref: str) -> str:
    """
    Return the last path segment of *ref* (an href or an absolute URL),
    ignoring trailing slashes, query and fragment: ``a/b/`` -> ``b``.
    Percent-escapes are kept, so the name reads as it does in the URL.
    """
    path = urllib.parse.urlparse(ref).path
    return posixpath.basename(path.rstrip("/"))


def url_key(url: str) -> str:
    """Comparison key: lower-cased scheme and host, path, query."""
    p = urllib.parse.urlparse(url)
    return urllib.parse.urlunparse(
        (p.scheme.lower(), p.netloc.lower(), p.path or "/", "", p.query, "")
    )


def host_of(url: str) -> str:
    """Network location (``host[:port]``) of *url*, lower-cased."""
    return urllib.parse.urlparse(url).netloc.lower()


def hostnames_from_urls(urls) -> list[str]:
    """Return the distinct network locations of *urls*, in order."""
    hosts: list[str] = []
    for u in urls:
        host = host_of(u)
        if host and host not in hosts:
            hosts.append(host)
    return hosts
