"""Core crawl engine – policy, classification, backoff and traversal."""

from webfind.core.backoff import (
    DEFAULT_BACKOFF,
    BackoffSpec,
    BackoffSupervisor,
    FailureKind,
    classify_failure,
)
from webfind.core.classifier import Classification, LinkClassifier, Verdict, classify
from webfind.core.crawler import Finder, VisitOutcome, VisitRecord, find
from webfind.core.policy import ConcurrencyMode, EntryType, Policy, validate_policy
from webfind.core.result import Result, ResultAccumulator

__all__ = [
    "DEFAULT_BACKOFF",
    "BackoffSpec",
    "BackoffSupervisor",
    "FailureKind",
    "classify_failure",
    "Classification",
    "LinkClassifier",
    "Verdict",
    "classify",
    "Finder",
    "VisitOutcome",
    "VisitRecord",
    "find",
    "ConcurrencyMode",
    "EntryType",
    "Policy",
    "validate_policy",
    "Result",
    "ResultAccumulator",
]
