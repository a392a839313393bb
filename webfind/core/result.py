"""
Result accumulation for a crawl run.
"""

import threading
from dataclasses import dataclass, field


@dataclass
class Result:
    """Matches of one crawl, index-aligned: ``base_names[i]`` is the last
    path segment of ``urls[i]``."""

    base_names: list[str] = field(default_factory=list)
    urls: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.urls)

    def __iter__(self):
        return iter(zip(self.base_names, self.urls))


class ResultAccumulator:
    """Append-only, thread-safe collector of matches in discovery order.

    No deduplication: two anchors resolving to the same URL are both kept.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._names: list[str] = []
        self._urls: list[str] = []

    def add(self, name: str, url: str) -> None:
        with self._lock:
            self._names.append(name)
            self._urls.append(url)

    def __len__(self) -> int:
        with self._lock:
            return len(self._urls)

    def result(self) -> Result:
        with self._lock:
            return Result(base_names=list(self._names), urls=list(self._urls))
