import os
import unittest
from pathlib import Path
from unittest.mock import patch

from pricetracker.config import DEFAULT_DB_PATH, Settings


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.db_path, DEFAULT_DB_PATH)
        self.assertEqual(settings.max_concurrent, 5)
        self.assertEqual(settings.navigation_timeout_ms, 30000)
        self.assertEqual(settings.selector_timeout_ms, 10000)
        self.assertEqual(settings.http_timeout_seconds, 10.0)
        self.assertTrue(settings.browser_headless)
        self.assertEqual(settings.default_unit, "each")

    def test_reads_environment(self):
        env = {
            "PRICETRACKER_DB_PATH": "/tmp/prices-test.db",
            "MAX_CONCURRENT_SCRAPES": "2",
            "SCRAPE_NAVIGATION_TIMEOUT_MS": "15000",
            "BROWSER_HEADLESS": "false",
            "DEFAULT_PRODUCT_UNIT": "lb",
            "LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        self.assertEqual(settings.db_path, Path("/tmp/prices-test.db"))
        self.assertEqual(settings.max_concurrent, 2)
        self.assertEqual(settings.navigation_timeout_ms, 15000)
        self.assertFalse(settings.browser_headless)
        self.assertEqual(settings.default_unit, "lb")
        self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_and_non_positive_capacity(self):
        with patch.dict(os.environ, {"MAX_CONCURRENT_SCRAPES": "lots"}, clear=True):
            self.assertEqual(Settings.from_env().max_concurrent, 5)
        with patch.dict(os.environ, {"MAX_CONCURRENT_SCRAPES": "0"}, clear=True):
            self.assertEqual(Settings.from_env().max_concurrent, 1)
