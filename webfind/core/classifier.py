"""
Link classification.

Decides, for every anchor found on a listing, whether it references a file
or a directory, whether it matches the policy's name pattern, and whether
the crawl may descend into it.
"""

import re
from dataclasses import dataclass
from enum import Enum

from webfind.config import FOLDER_HREF_RE, ROOT_DIR, UP_DIR
from webfind.core.policy import EntryType, Policy
from webfind.utils.url import base_name, resolve_href, url_key

_FOLDER_RE = re.compile(FOLDER_HREF_RE)


class Verdict(str, Enum):
    NOT_RELEVANT = "not-relevant"
    MATCHED_FILE = "matched-file"
    MATCHED_DIRECTORY = "matched-directory"
    DESCEND_CANDIDATE = "descend-candidate"


@dataclass(frozen=True)
class Classification:
    """Outcome for one anchor.

    ``descend`` is also set on a ``MATCHED_DIRECTORY`` verdict when the
    crawl is recursive: matched directories are searched as well.
    """

    verdict: Verdict
    name: str | None = None
    url: str | None = None
    descend: bool = False

    @property
    def is_match(self) -> bool:
        return self.verdict in (Verdict.MATCHED_FILE, Verdict.MATCHED_DIRECTORY)


NOT_RELEVANT = Classification(Verdict.NOT_RELEVANT)


def is_directory_ref(href: str) -> bool:
    return _FOLDER_RE.search(href) is not None


def is_backward_ref(href: str) -> bool:
    """True for ``../``, anything containing it, and the site root ``/``.
    Compared literally, before any URL resolution."""
    return href == ROOT_DIR or UP_DIR in href


class LinkClassifier:
    """Classifies hrefs against one validated :class:`Policy`."""

    def __init__(self, policy: Policy) -> None:
        self.policy = policy
        self.entry_type = EntryType(policy.entry_type or EntryType.FILE)
        self.pattern = policy.pattern
        self.seed_keys = frozenset(url_key(s) for s in policy.seeds)

    def classify(self, href: str, request_url: str) -> Classification:
        href = (href or "").strip()
        if not href or is_backward_ref(href):
            return NOT_RELEVANT

        absolute = resolve_href(request_url, href)
        recursive = self.policy.recursive

        if self.entry_type is EntryType.FILE:
            if is_directory_ref(href):
                if recursive:
                    return Classification(Verdict.DESCEND_CANDIDATE, url=absolute, descend=True)
                return NOT_RELEVANT
            name = base_name(href)
            if name and self.pattern.fullmatch(name):
                return Classification(Verdict.MATCHED_FILE, name=name, url=absolute)
            return NOT_RELEVANT

        if not is_directory_ref(href):
            return NOT_RELEVANT

        if self.pattern.search(href) and url_key(absolute) not in self.seed_keys:
            return Classification(
                Verdict.MATCHED_DIRECTORY,
                name=base_name(absolute),
                url=absolute,
                descend=recursive,
            )
        if recursive:
            return Classification(Verdict.DESCEND_CANDIDATE, url=absolute, descend=True)
        return NOT_RELEVANT


def classify(href: str, request_url: str, policy: Policy) -> Classification:
    """Classify a single *href* found on *request_url* under *policy*."""
    return LinkClassifier(policy).classify(href, request_url)
