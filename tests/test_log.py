"""
Tests for logging setup and category highlighting.
"""

import importlib
import logging
import os
import tempfile
import unittest

import colorlog

from webfind.utils.log import _apply_category_styles, _CIFormatter, log, setup_logging

log_module = importlib.import_module("webfind.utils.log")


class TestCategoryStyles(unittest.TestCase):
    def test_known_tag_coloured(self):
        styled = _apply_category_styles("[RETRY] http://h/ in 2.0s")
        self.assertIn("\033[36m[RETRY]\033[0m", styled)

    def test_plain_message_untouched(self):
        self.assertEqual(_apply_category_styles("hello"), "hello")

    def test_ci_prefix(self):
        fmt = _CIFormatter("%(message)s")
        rec = logging.LogRecord("webfind", logging.WARNING, __file__, 1,
                                "[ABANDON] x", None, None)
        self.assertTrue(fmt.format(rec).startswith("::warning::"))


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        self._handlers = list(log.handlers)
        self._level = log.level

    def tearDown(self):
        for h in log.handlers:
            if h not in self._handlers:
                h.close()
        log.handlers[:] = self._handlers
        log.setLevel(self._level)

    def test_levels(self):
        setup_logging(debug=True)
        self.assertEqual(log.level, logging.DEBUG)
        setup_logging()
        self.assertEqual(log.level, logging.INFO)
        self.assertEqual(len(log.handlers), 1)

    def test_console_handler(self):
        setup_logging()
        handler = log.handlers[0]
        if log_module._CI:
            self.assertIsInstance(handler.formatter, _CIFormatter)
        else:
            self.assertIsInstance(handler.formatter, colorlog.ColoredFormatter)

    def test_log_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "logs", "webfind.log")
            setup_logging(debug=True, log_file=path)
            log.debug("[VISIT] http://h/")
            for h in log.handlers:
                h.flush()
                h.close()
            with open(path, encoding="utf-8") as fh:
                self.assertIn("[VISIT] http://h/", fh.read())


if __name__ == "__main__":
    unittest.main()
