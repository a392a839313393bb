"""
Backoff supervision for transient network failures.

A failed visit is classified into a :class:`FailureKind`.  Deadline,
connect-timeout and connection-reset failures each map to an optional
:class:`BackoffSpec`; when one is configured the visit is retried on an
exponential schedule until it succeeds or the elapsed-time budget runs out.
Anything else is logged and abandoned.
"""

import errno
import logging
import random
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

import requests
from urllib3.exceptions import ConnectTimeoutError, ReadTimeoutError

from webfind.config import (
    BACKOFF_INITIAL_INTERVAL,
    BACKOFF_MAX_ELAPSED_TIME,
    BACKOFF_MAX_INTERVAL,
    BACKOFF_MULTIPLIER,
    BACKOFF_RANDOMIZATION_FACTOR,
)
from webfind.errors import ConfigError
from webfind.utils.log import log


class FailureKind(str, Enum):
    CONTEXT_DEADLINE_EXCEEDED = "context-deadline-exceeded"
    CONNECTION_TIMED_OUT = "connection-timed-out"
    CONNECTION_RESET = "connection-reset"
    OTHER = "other"


class SystemClock:
    """Wall clock used by default; tests substitute a fake one."""

    def now(self) -> float:
        return time.monotonic()

    def sleep(self, seconds: float) -> None:
        time.sleep(seconds)


@dataclass(frozen=True)
class BackoffSpec:
    """Tunable parameters of one exponential retry schedule (seconds)."""

    initial_interval: float = BACKOFF_INITIAL_INTERVAL
    max_interval: float = BACKOFF_MAX_INTERVAL
    max_elapsed_time: float = BACKOFF_MAX_ELAPSED_TIME
    multiplier: float = BACKOFF_MULTIPLIER
    randomization_factor: float = BACKOFF_RANDOMIZATION_FACTOR
    clock: SystemClock = field(default_factory=SystemClock, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.initial_interval <= 0:
            raise ConfigError("backoff initial interval must be positive")
        if self.max_interval < self.initial_interval:
            raise ConfigError("backoff max interval must be >= initial interval")
        if self.max_elapsed_time < 0:
            raise ConfigError("backoff max elapsed time must not be negative")
        if self.multiplier < 1:
            raise ConfigError("backoff multiplier must be >= 1")
        if not 0 <= self.randomization_factor < 1:
            raise ConfigError("backoff randomization factor must be in [0, 1)")


DEFAULT_BACKOFF = BackoffSpec()


class ExponentialBackOff:
    """Stateful schedule: each call to :meth:`next_backoff` returns the next
    randomized delay, or ``None`` once the elapsed-time budget is spent.

    ``max_elapsed_time == 0`` means the schedule never stops on its own.
    """

    def __init__(self, spec: BackoffSpec, rng: random.Random | None = None) -> None:
        self.spec = spec
        self._rng = rng or random.Random()
        self.reset()

    def reset(self) -> None:
        self.current_interval = self.spec.initial_interval
        self.start_time = self.spec.clock.now()

    def elapsed(self) -> float:
        return self.spec.clock.now() - self.start_time

    def next_backoff(self) -> float | None:
        elapsed = self.elapsed()
        budget = self.spec.max_elapsed_time
        delay = self._randomize(self.current_interval)
        self.current_interval = min(
            self.current_interval * self.spec.multiplier, self.spec.max_interval
        )
        if budget and elapsed + delay > budget:
            return None
        return delay

    def _randomize(self, interval: float) -> float:
        rf = self.spec.randomization_factor
        if not rf:
            return interval
        delta = rf * interval
        return self._rng.uniform(interval - delta, interval + delta)


def _causes(exc: BaseException):
    """Yield *exc* and every exception reachable through its cause chain,
    its context, and exceptions stored in its args (urllib3 wraps the
    socket error that way)."""
    seen: set[int] = set()
    pending = [exc]
    while pending:
        cur = pending.pop(0)
        if cur is None or id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur
        pending.append(cur.__cause__)
        pending.append(cur.__context__)
        pending.append(getattr(cur, "reason", None))
        pending.extend(a for a in cur.args if isinstance(a, BaseException))


def classify_failure(exc: BaseException) -> FailureKind:
    """Map a transport exception onto a :class:`FailureKind`."""
    chain = list(_causes(exc))
    if any(isinstance(e, (requests.exceptions.ReadTimeout, ReadTimeoutError))
           for e in chain):
        return FailureKind.CONTEXT_DEADLINE_EXCEEDED
    if any(isinstance(e, (requests.exceptions.Timeout, ConnectTimeoutError, TimeoutError))
           for e in chain):
        return FailureKind.CONNECTION_TIMED_OUT
    if any(isinstance(e, ConnectionResetError)
           or (isinstance(e, OSError) and e.errno == errno.ECONNRESET)
           for e in chain):
        return FailureKind.CONNECTION_RESET
    return FailureKind.OTHER


class BackoffSupervisor:
    """Retries failed operations according to per-failure-kind policies."""

    def __init__(
        self,
        policies: dict[FailureKind, BackoffSpec | None] | None = None,
        logger: logging.Logger | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.policies = dict(policies or {})
        self.log = logger or log
        self._rng = rng

    @classmethod
    def from_policy(cls, policy, logger: logging.Logger | None = None) -> "BackoffSupervisor":
        return cls(
            {
                FailureKind.CONTEXT_DEADLINE_EXCEEDED: policy.on_context_deadline,
                FailureKind.CONNECTION_TIMED_OUT: policy.on_connection_timeout,
                FailureKind.CONNECTION_RESET: policy.on_connection_reset,
            },
            logger=logger,
        )

    def spec_for(self, kind: FailureKind) -> BackoffSpec | None:
        if kind is FailureKind.OTHER:
            return None
        return self.policies.get(kind)

    def recover(
        self,
        exc: BaseException,
        retry: Callable[[], object],
        url: str = "",
        cancel: threading.Event | None = None,
    ) -> bool:
        """Classify *exc* and hand it to :meth:`handle`."""
        kind = classify_failure(exc)
        spec = self.spec_for(kind)
        if spec is None:
            self.log.debug("[ERR] %s – %s (no retry policy for %s)",
                           url or "request", exc, kind.value)
            return False
        self.log.info("[RETRY] %s failed (%s) – retrying with exponential backoff",
                      url or "request", kind.value)
        return self.handle(kind, retry, spec, url=url, cancel=cancel)

    def handle(
        self,
        failure: FailureKind,
        retry: Callable[[], object],
        spec: BackoffSpec | None,
        url: str = "",
        cancel: threading.Event | None = None,
    ) -> bool:
        """
        Re-invoke *retry* on an exponential schedule.

        Returns ``True`` as soon as *retry* returns without raising, and
        ``False`` when no schedule applies, the elapsed-time budget is
        exhausted, or *cancel* is set.  Never raises for a failed retry.

        Ticks are scheduled on absolute times: if *retry* itself takes
        longer than the next delay, the following attempt starts at once.
        """
        if failure is FailureKind.OTHER or spec is None:
            return False

        schedule = ExponentialBackOff(spec, self._rng)
        clock = spec.clock
        next_tick = clock.now()
        attempts = 0
        last_exc: BaseException | None = None

        while True:
            wait = next_tick - clock.now()
            if wait > 0:
                clock.sleep(wait)
            if cancel is not None and cancel.is_set():
                self.log.info("[ABANDON] retry of %s cancelled after %d attempt(s)",
                              url or "request", attempts)
                return False

            attempts += 1
            try:
                retry()
            except Exception as exc:
                last_exc = exc
                self.log.debug("[RETRY] attempt %d for %s failed: %s",
                               attempts, url or "request", exc)
            else:
                self.log.info("[RETRY] %s succeeded after %d attempt(s)",
                              url or "request", attempts)
                return True

            delay = schedule.next_backoff()
            if delay is None:
                self.log.warning(
                    "[ABANDON] %s: giving up after %d attempt(s) in %.1f s (%s) – %s",
                    url or "request", attempts, schedule.elapsed(),
                    failure.value, last_exc,
                )
                return False
            next_tick += delay
