"""
Crawl policy: the validated, immutable configuration of one crawl run.
"""

import dataclasses
import re
from dataclasses import dataclass
from enum import Enum

from webfind.config import DEFAULT_MAX_BODY_SIZE, FILE_TYPE_DIR, FILE_TYPE_REG
from webfind.core.backoff import BackoffSpec
from webfind.errors import ConfigError
from webfind.utils.url import ensure_trailing_slash, is_valid_url

# Optional leading "./" accepted in front of anchored patterns.
DOT_SLASH_PREFIX = r"^(\./)?"
# Optional trailing "/" accepted at the end of anchored directory patterns.
SLASH_SUFFIX = "/?$"


class EntryType(str, Enum):
    FILE = FILE_TYPE_REG
    DIRECTORY = FILE_TYPE_DIR


class ConcurrencyMode(str, Enum):
    SEQUENTIAL = "sequential"
    CONCURRENT = "concurrent"


@dataclass(frozen=True)
class Policy:
    """Configuration for one crawl.

    Build it with keyword arguments, then call :meth:`validated` (the
    crawler does this for you) to obtain the normalized copy.
    """

    seeds: tuple[str, ...] = ()
    name_pattern: str = ""
    entry_type: EntryType | str | None = None
    recursive: bool = False
    concurrency: ConcurrencyMode | str = ConcurrencyMode.SEQUENTIAL
    max_response_bytes: int | None = DEFAULT_MAX_BODY_SIZE
    on_context_deadline: BackoffSpec | None = None
    on_connection_timeout: BackoffSpec | None = None
    on_connection_reset: BackoffSpec | None = None
    verbose: bool = False

    def __post_init__(self) -> None:
        if isinstance(self.seeds, str):
            object.__setattr__(self, "seeds", (self.seeds,))
        else:
            object.__setattr__(self, "seeds", tuple(self.seeds))

    def validated(self) -> "Policy":
        return validate_policy(self)

    @property
    def pattern(self) -> re.Pattern:
        return re.compile(self.name_pattern)

    @property
    def concurrent(self) -> bool:
        return self.concurrency == ConcurrencyMode.CONCURRENT


def sanitize_pattern(pattern: str, entry_type: EntryType) -> str:
    """
    Make an anchored pattern tolerant of the ways listings render links.

    ``^foo`` also accepts ``./foo``; for directories, ``foo$`` also accepts
    ``foo/``.  Already-tolerant patterns are returned unchanged, so the
    rewrite can be applied any number of times.
    """
    if (pattern.startswith("^")
            and not pattern.startswith("^./")
            and not pattern.startswith(DOT_SLASH_PREFIX)):
        pattern = pattern.replace("^", DOT_SLASH_PREFIX, 1)

    if entry_type is EntryType.DIRECTORY:
        if (pattern.endswith("$")
                and not pattern.endswith(("/$", SLASH_SUFFIX, r"\$"))):
            pattern = pattern[:-1] + SLASH_SUFFIX

    return pattern


def _entry_type(value) -> EntryType:
    if value is None or value == "":
        return EntryType.FILE
    try:
        return EntryType(value)
    except ValueError:
        raise ConfigError(f"file type not supported: {value!r}") from None


def _concurrency(value) -> ConcurrencyMode:
    try:
        return ConcurrencyMode(value)
    except ValueError:
        raise ConfigError(f"concurrency mode not supported: {value!r}") from None


def validate_policy(policy: Policy) -> Policy:
    """
    Validate *policy* and return its normalized copy.

    Raises :class:`ConfigError` when there are no seeds, a seed is not a
    valid http(s) URL, the name pattern is empty or does not compile, or
    the entry type is unknown.  Seeds gain a trailing slash, an empty
    entry type becomes ``File``, and the name pattern is sanitized.
    """
    if not policy.seeds:
        raise ConfigError("no seed URLs specified")

    seeds = []
    for seed in policy.seeds:
        if not isinstance(seed, str) or not is_valid_url(seed.strip()):
            raise ConfigError(f"a seed URL is not a valid URL: {seed!r}")
        seeds.append(ensure_trailing_slash(seed.strip()))

    if not policy.name_pattern:
        raise ConfigError("no filename regular expression specified")
    try:
        re.compile(policy.name_pattern)
    except re.error as exc:
        raise ConfigError(f"error validating the file name expression: {exc}") from exc

    entry_type = _entry_type(policy.entry_type)
    concurrency = _concurrency(policy.concurrency)

    max_bytes = policy.max_response_bytes or DEFAULT_MAX_BODY_SIZE
    if max_bytes < 0:
        raise ConfigError("max response size must not be negative")

    for name in ("on_context_deadline", "on_connection_timeout", "on_connection_reset"):
        spec = getattr(policy, name)
        if spec is not None and not isinstance(spec, BackoffSpec):
            raise ConfigError(f"{name} must be a BackoffSpec or None")

    pattern = sanitize_pattern(policy.name_pattern, entry_type)
    try:
        re.compile(pattern)
    except re.error as exc:
        raise ConfigError(f"error sanitizing the file name expression: {exc}") from exc

    return dataclasses.replace(
        policy,
        seeds=tuple(seeds),
        name_pattern=pattern,
        entry_type=entry_type,
        concurrency=concurrency,
        max_response_bytes=max_bytes,
    )
