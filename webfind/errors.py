"""
Exception hierarchy raised by webfind.
"""


class WebfindError(Exception):
    """Base class for every error raised by webfind."""


class ConfigError(WebfindError):
    """The crawl policy is invalid.  Raised before any network activity."""


class CrawlError(WebfindError):
    """The initial visit to a seed failed and the crawl was aborted."""

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"error crawling seed {url}: {cause}")
        self.url = url
        self.cause = cause


class DisallowedHostError(WebfindError):
    """A visit was refused because its host is not one of the seed hosts."""

    def __init__(self, url: str) -> None:
        super().__init__(f"host not allowed: {url}")
        self.url = url


class SkippedVisitError(WebfindError):
    """A visit was refused because its URL does not name a directory."""

    def __init__(self, url: str) -> None:
        super().__init__(f"not a directory: {url}")
        self.url = url


class TransientNetworkFailure(WebfindError):
    """A retryable network failure; handled by the backoff supervisor."""

    def __init__(self, kind, cause: BaseException) -> None:
        super().__init__(f"{kind.value}: {cause}")
        self.kind = kind
        self.cause = cause
