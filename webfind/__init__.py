"""
webfind
=======
Find files and directories exposed through HTTP(S) directory listings,
like ``find`` does on a local file system.

Package structure
-----------------
webfind/
├── __init__.py       – package init and public API
├── config.py         – configuration constants
├── errors.py         – exception hierarchy
├── session.py        – requests.Session factory (transport)
├── fetcher.py        – fetch a listing, enforce host allow-list and size limit
├── cli.py            – argparse CLI (``python -m webfind``)
├── core/             – crawl engine
│   ├── policy.py     – Policy, validation and pattern sanitization
│   ├── classifier.py – file / directory / match / descend decisions
│   ├── backoff.py    – failure classification and exponential retry
│   ├── crawler.py    – Finder: sequential and concurrent traversal
│   └── result.py     – Result and its thread-safe accumulator
├── extraction/       – anchor extraction via BeautifulSoup
└── utils/            – URL helpers and logging setup

Quick start
-----------
    from webfind import Policy, EntryType, find

    result = find(Policy(
        seeds=["https://mirrors.edge.kernel.org/centos/8-stream/"],
        name_pattern="repomd.xml$",
        entry_type=EntryType.FILE,
        recursive=True,
    ))
    for name, url in result:
        print(name, url)
"""

from webfind.core import (
    DEFAULT_BACKOFF,
    BackoffSpec,
    ConcurrencyMode,
    EntryType,
    Finder,
    Policy,
    Result,
    find,
    validate_policy,
)
from webfind.errors import ConfigError, CrawlError, WebfindError
from webfind.session import TransportOptions, build_session

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_BACKOFF",
    "BackoffSpec",
    "ConcurrencyMode",
    "EntryType",
    "Finder",
    "Policy",
    "Result",
    "find",
    "validate_policy",
    "ConfigError",
    "CrawlError",
    "WebfindError",
    "TransportOptions",
    "build_session",
]
