import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest.mock import patch


class TestCli(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmp.name) / "cli.db"
        env = patch.dict(os.environ, {"PRICETRACKER_DB_PATH": str(self.db_path)})
        env.start()
        self.addCleanup(env.stop)

    def tearDown(self):
        self._tmp.cleanup()

    def run_cli(self, *argv: str) -> tuple[int, str, str]:
        from pricetracker.cli import main

        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_add_and_list_retailers(self):
        code, out, _ = self.run_cli("--add-retailer", "Kroger", "--website", "https://www.kroger.com")
        self.assertEqual(code, 0)
        self.assertIn("id=1", out)

        code, out, _ = self.run_cli("--list")
        self.assertEqual(code, 0)
        self.assertIn("- walmart", out)
        self.assertIn("1. Kroger (https://www.kroger.com) -> kroger", out)

    def test_unknown_retailer_exits_with_error(self):
        code, _, err = self.run_cli("--retailer", "42")
        self.assertEqual(code, 1)
        self.assertIn("Retailer 42 not found or inactive", err)

    def test_runs_summary_on_empty_database(self):
        code, out, _ = self.run_cli("--runs")
        self.assertEqual(code, 0)
        self.assertIn("Runs: 0 total", out)
