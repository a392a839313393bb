"""
Tests for crawl policy validation and pattern sanitization.
"""

import re
import unittest

from webfind.config import DEFAULT_MAX_BODY_SIZE
from webfind.core.backoff import BackoffSpec
from webfind.core.policy import (
    ConcurrencyMode,
    EntryType,
    Policy,
    sanitize_pattern,
    validate_policy,
)
from webfind.errors import ConfigError

SEED = "https://mirror.example.com/pub"


class TestValidation(unittest.TestCase):
    def test_no_seeds(self):
        with self.assertRaises(ConfigError):
            validate_policy(Policy(name_pattern=".+"))

    def test_invalid_seed(self):
        for seed in ("not a url", "ftp://example.com/", "http://", "http://h:99999/"):
            with self.subTest(seed=seed):
                with self.assertRaises(ConfigError):
                    validate_policy(Policy(seeds=[seed], name_pattern=".+"))

    def test_empty_pattern(self):
        with self.assertRaises(ConfigError):
            validate_policy(Policy(seeds=[SEED], name_pattern=""))

    def test_pattern_does_not_compile(self):
        with self.assertRaises(ConfigError) as ctx:
            validate_policy(Policy(seeds=[SEED], name_pattern="(unclosed"))
        self.assertIsInstance(ctx.exception.__cause__, re.error)

    def test_unsupported_entry_type(self):
        with self.assertRaises(ConfigError):
            validate_policy(Policy(seeds=[SEED], name_pattern=".+", entry_type="x"))

    def test_unsupported_concurrency(self):
        with self.assertRaises(ConfigError):
            validate_policy(Policy(seeds=[SEED], name_pattern=".+", concurrency="many"))

    def test_negative_body_size(self):
        with self.assertRaises(ConfigError):
            validate_policy(Policy(seeds=[SEED], name_pattern=".+", max_response_bytes=-1))

    def test_backoff_must_be_spec(self):
        with self.assertRaises(ConfigError):
            validate_policy(Policy(seeds=[SEED], name_pattern=".+",
                                   on_connection_reset={"initial_interval": 1}))

    def test_seeds_get_trailing_slash(self):
        p = validate_policy(Policy(seeds=[SEED, SEED + "/other/"], name_pattern=".+"))
        self.assertEqual(p.seeds, (SEED + "/", SEED + "/other/"))

    def test_string_seed_becomes_tuple(self):
        p = Policy(seeds=SEED, name_pattern=".+")
        self.assertEqual(p.seeds, (SEED,))

    def test_defaults(self):
        p = validate_policy(Policy(seeds=[SEED], name_pattern=".+", max_response_bytes=None))
        self.assertIs(p.entry_type, EntryType.FILE)
        self.assertIs(p.concurrency, ConcurrencyMode.SEQUENTIAL)
        self.assertEqual(p.max_response_bytes, DEFAULT_MAX_BODY_SIZE)
        self.assertFalse(p.recursive)

    def test_entry_type_from_flag_value(self):
        p = validate_policy(Policy(seeds=[SEED], name_pattern=".+", entry_type="d"))
        self.assertIs(p.entry_type, EntryType.DIRECTORY)

    def test_concurrency_from_string(self):
        p = validate_policy(Policy(seeds=[SEED], name_pattern=".+", concurrency="concurrent"))
        self.assertTrue(p.concurrent)

    def test_input_policy_is_not_modified(self):
        original = Policy(seeds=[SEED], name_pattern="^README$")
        validate_policy(original)
        self.assertEqual(original.seeds, (SEED,))
        self.assertEqual(original.name_pattern, "^README$")

    def test_validate_is_idempotent(self):
        spec = BackoffSpec(initial_interval=1, max_interval=2, max_elapsed_time=10)
        policies = [
            Policy(seeds=[SEED], name_pattern="^README$"),
            Policy(seeds=[SEED], name_pattern="^docs$", entry_type=EntryType.DIRECTORY),
            Policy(seeds=[SEED + "/"], name_pattern=".+", recursive=True,
                   concurrency=ConcurrencyMode.CONCURRENT, on_context_deadline=spec),
            Policy(seeds=[SEED], name_pattern=r"^(\./)?x/?$", entry_type="d"),
        ]
        for p in policies:
            with self.subTest(pattern=p.name_pattern):
                once = validate_policy(p)
                self.assertEqual(validate_policy(once), once)
                self.assertEqual(once.validated(), once)


class TestSanitization(unittest.TestCase):
    def _pattern(self, pattern, entry_type=EntryType.FILE):
        p = validate_policy(Policy(seeds=[SEED], name_pattern=pattern, entry_type=entry_type))
        return p.pattern

    def test_file_pattern_accepts_dot_slash(self):
        pattern = self._pattern("^README$")
        self.assertTrue(pattern.fullmatch("README"))
        self.assertTrue(pattern.fullmatch("./README"))
        self.assertFalse(pattern.fullmatch("README.md"))

    def test_directory_pattern_accepts_trailing_slash(self):
        pattern = self._pattern("^docs$", EntryType.DIRECTORY)
        self.assertTrue(pattern.search("docs"))
        self.assertTrue(pattern.search("docs/"))
        self.assertTrue(pattern.search("./docs/"))
        self.assertFalse(pattern.search("docs2/"))

    def test_file_pattern_end_anchor_untouched(self):
        self.assertEqual(sanitize_pattern("^README$", EntryType.FILE), r"^(\./)?README$")

    def test_unanchored_pattern_untouched(self):
        self.assertEqual(sanitize_pattern("repomd.xml", EntryType.FILE), "repomd.xml")
        self.assertEqual(sanitize_pattern(".+", EntryType.DIRECTORY), ".+")

    def test_already_tolerant_pattern_untouched(self):
        for pattern in (r"^(\./)?docs/?$", "^./docs/$"):
            with self.subTest(pattern=pattern):
                self.assertEqual(sanitize_pattern(pattern, EntryType.DIRECTORY), pattern)

    def test_escaped_dollar_untouched(self):
        self.assertEqual(sanitize_pattern(r"price\$", EntryType.DIRECTORY), r"price\$")

    def test_not_applied_twice(self):
        once = sanitize_pattern("^docs$", EntryType.DIRECTORY)
        self.assertEqual(sanitize_pattern(once, EntryType.DIRECTORY), once)
        self.assertEqual(once, r"^(\./)?docs/?$")


if __name__ == "__main__":
    unittest.main()
