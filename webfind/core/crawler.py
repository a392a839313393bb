"""
Recursive crawl engine.

Visits each seed listing, classifies every anchor it finds, collects the
matches and, when the policy is recursive, descends into sub-directory
listings.  Two scheduling modes are supported:

* sequential – one visit at a time, depth first, in the order anchors
  appear; the result order is deterministic
* concurrent – every visit is a task on a thread pool; tasks spawned while
  processing a page are tracked by a pending counter and the crawl returns
  once it drains to zero

A failed visit is handed to the backoff supervisor.  If it cannot be
recovered the failure is logged and the branch is abandoned; only a seed
whose own visit fails aborts the crawl with :class:`CrawlError`.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterator

import requests

from webfind.core.backoff import BackoffSupervisor, FailureKind, classify_failure
from webfind.core.classifier import LinkClassifier
from webfind.core.policy import Policy, validate_policy
from webfind.core.result import Result, ResultAccumulator
from webfind.errors import (
    CrawlError,
    DisallowedHostError,
    SkippedVisitError,
    TransientNetworkFailure,
    WebfindError,
)
from webfind.extraction.anchors import Anchor
from webfind.session import TransportOptions
from webfind.utils.log import log
from webfind.utils.url import url_key


class VisitOutcome(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass
class VisitRecord:
    url: str
    seed: bool = False
    outcome: VisitOutcome = VisitOutcome.PENDING
    failure: FailureKind | None = None


class Finder:
    """
    Find files or directories below one or more directory listings.

    ``fetcher`` is anything with a ``visit(url)`` method returning an
    iterator of :class:`Anchor` (and raising on failure); by default a
    :class:`webfind.fetcher.Fetcher` is built for the policy.  In concurrent
    mode ``workers`` defaults to the per-host connection pool size of the
    transport, so the pool is the only limit on in-flight visits.
    """

    def __init__(
        self,
        policy: Policy,
        fetcher=None,
        *,
        logger: logging.Logger | None = None,
        workers: int | None = None,
        on_visit: Callable[[VisitRecord], None] | None = None,
        transport=None,
    ) -> None:
        self.policy = validate_policy(policy)
        self.log = logger or log
        self._owns_fetcher = fetcher is None
        if fetcher is None:
            from webfind.fetcher import Fetcher
            fetcher = Fetcher(self.policy, transport=transport, logger=self.log)
        self.fetcher = fetcher
        self.classifier = LinkClassifier(self.policy)
        self.supervisor = BackoffSupervisor.from_policy(self.policy, logger=self.log)
        if workers is None:
            # Fan-out is bounded by the transport pool only.
            options = getattr(self.fetcher, "transport", None) or transport or TransportOptions()
            workers = options.max_idle_conns_per_host
        self.workers = max(1, workers)
        self.on_visit = on_visit

        self._seed_keys = frozenset(url_key(s) for s in self.policy.seeds)
        self._lock = threading.Lock()
        self.visits: list[VisitRecord] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find(self) -> Result:
        accumulator = ResultAccumulator()
        self.visits = []

        self.log.debug("Seeds       : %s", ", ".join(self.policy.seeds))
        self.log.debug("Pattern     : %s", self.policy.name_pattern)
        self.log.debug("Entry type  : %s", self.policy.entry_type.name)
        self.log.debug("Recursive   : %s", self.policy.recursive)
        self.log.debug("Concurrency : %s", self.policy.concurrency.value)

        try:
            if self.policy.concurrent:
                self._crawl_concurrent(accumulator)
            else:
                self._crawl_sequential(accumulator)
        finally:
            if self._owns_fetcher:
                self.fetcher.close()

        result = accumulator.result()
        self.log.debug("Crawl complete. visited=%d  matches=%d",
                       len(self.visits), len(result))
        return result

    # ------------------------------------------------------------------
    # Visits
    # ------------------------------------------------------------------

    def _open(self, url: str, seed: bool = False) -> Iterator[Anchor] | None:
        """
        Visit *url* and return its anchors, or ``None`` if the visit was
        abandoned.  Raises :class:`CrawlError` for an unrecoverable seed.
        """
        record = VisitRecord(url, seed=seed)
        with self._lock:
            self.visits.append(record)

        if self.policy.verbose:
            self.log.info("[VISIT] %s", url)
        else:
            self.log.debug("[VISIT] %s", url)

        try:
            anchors = self.fetcher.visit(url)
        except (SkippedVisitError, DisallowedHostError) as exc:
            self._finish(record, VisitOutcome.FAILED, FailureKind.OTHER)
            if seed:
                raise CrawlError(url, exc) from exc
            self.log.debug("[SKIP] %s", exc)
            return None
        except (requests.RequestException, WebfindError, OSError) as exc:
            kind = classify_failure(exc)
            recovered: list[Iterator[Anchor]] = []

            def retry() -> None:
                recovered.append(self.fetcher.visit(url))

            if self.supervisor.recover(exc, retry, url=url):
                self._finish(record, VisitOutcome.SUCCEEDED)
                return recovered[-1]

            self._finish(record, VisitOutcome.FAILED, kind)
            if seed:
                cause = exc if kind is FailureKind.OTHER else TransientNetworkFailure(kind, exc)
                raise CrawlError(url, cause) from exc
            self.log.warning("[ABANDON] %s – %s", url, exc)
            return None

        self._finish(record, VisitOutcome.SUCCEEDED)
        return anchors

    def _finish(self, record: VisitRecord, outcome: VisitOutcome,
                failure: FailureKind | None = None) -> None:
        record.outcome = outcome
        record.failure = failure
        if self.on_visit is not None:
            self.on_visit(record)

    def _process(self, anchor: Anchor, accumulator: ResultAccumulator) -> str | None:
        """Classify one anchor; record a match and return the URL to
        descend into, if any."""
        c = self.classifier.classify(anchor.href, anchor.request_url)
        if c.is_match:
            self.log.debug("[MATCH] %s", c.url)
            accumulator.add(c.name, c.url)
        if not c.descend:
            return None
        key = url_key(c.url)
        # Seeds are visited once, as seeds; a self-link would loop forever.
        if key in self._seed_keys or key == url_key(anchor.request_url):
            return None
        return c.url

    # ------------------------------------------------------------------
    # Sequential mode
    # ------------------------------------------------------------------

    def _crawl_sequential(self, accumulator: ResultAccumulator) -> None:
        for seed in self.policy.seeds:
            anchors = self._open(seed, seed=True)
            if anchors is None:
                continue
            # Depth first: a child listing is processed as soon as its
            # anchor is seen, before the parent's remaining anchors.
            stack = [anchors]
            while stack:
                anchor = next(stack[-1], None)
                if anchor is None:
                    stack.pop()
                    continue
                child = self._process(anchor, accumulator)
                if child is not None:
                    child_anchors = self._open(child)
                    if child_anchors is not None:
                        stack.append(child_anchors)

    # ------------------------------------------------------------------
    # Concurrent mode
    # ------------------------------------------------------------------

    def _crawl_concurrent(self, accumulator: ResultAccumulator) -> None:
        pending = 0
        drained = threading.Condition()
        errors: list[BaseException] = []

        with ThreadPoolExecutor(max_workers=self.workers,
                                thread_name_prefix="webfind") as pool:

            def submit(url: str, seed: bool = False) -> None:
                nonlocal pending
                with drained:
                    pending += 1
                pool.submit(run, url, seed)

            def run(url: str, seed: bool) -> None:
                nonlocal pending
                try:
                    anchors = self._open(url, seed=seed)
                    for anchor in anchors or ():
                        child = self._process(anchor, accumulator)
                        if child is not None:
                            submit(child)
                except Exception as exc:
                    with drained:
                        errors.append(exc)
                finally:
                    with drained:
                        pending -= 1
                        if pending == 0:
                            drained.notify_all()

            for seed in self.policy.seeds:
                submit(seed, seed=True)

            with drained:
                drained.wait_for(lambda: pending == 0)

        if errors:
            raise errors[0]


def find(policy: Policy, fetcher=None, **kwargs) -> Result:
    """Run one crawl for *policy* and return its :class:`Result`."""
    return Finder(policy, fetcher, **kwargs).find()
