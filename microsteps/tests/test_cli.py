from __future__ import annotations

from contextlib import redirect_stdout
import io
import os
import unittest
from unittest import mock

from microsteps import cli
from microsteps.db import StateDB
from microsteps.exporting import read_export
from microsteps.tests.test_helpers import local_tmp_dir
from microsteps.workspace import Workspace

_NO_PROVIDER = {"MICROSTEPS_OPENAI_API_KEY": "", "OPENAI_API_KEY": ""}


class TestCLI(unittest.TestCase):
    def test_serve_rejects_bad_port(self) -> None:
        with local_tmp_dir() as tmp:
            with self.assertRaises(SystemExit) as exc:
                cli.main(["--db", str(tmp / "microsteps.sqlite"), "serve", "--port", "0"])
            self.assertEqual(exc.exception.code, 2)

    def test_export_and_wipe(self) -> None:
        with local_tmp_dir() as tmp:
            db_path = tmp / "microsteps.sqlite"
            workspace = Workspace(db=StateDB(db_path))
            with workspace.transaction():
                workspace.store.create_task_from_template("morning-prep")

            output = io.StringIO()
            with redirect_stdout(output):
                self.assertEqual(cli.main(["--db", str(db_path), "export", "--out-dir", str(tmp / "out")]), 0)
                self.assertEqual(cli.main(["--db", str(db_path), "wipe"]), 0)

            exported = read_export(tmp / "out" / "microsteps-export.json")
            self.assertEqual(len(exported["tasks"]), 1)
            self.assertIsNone(StateDB(db_path).load_blob())
            self.assertIn("All data deleted.", output.getvalue())

    def test_breakdown_prints_template_steps(self) -> None:
        with local_tmp_dir() as tmp, mock.patch.dict(os.environ, _NO_PROVIDER):
            output = io.StringIO()
            with redirect_stdout(output):
                code = cli.main(["--db", str(tmp / "microsteps.sqlite"), "breakdown", "Clean kitchen"])

            self.assertEqual(code, 0)
            lines = output.getvalue().splitlines()
            self.assertTrue(lines[0].startswith('1. Break down "Clean kitchen"'))
            self.assertIn("(2 min)", lines[0])

    def test_breakdown_reports_unsafe_titles(self) -> None:
        with local_tmp_dir() as tmp, mock.patch.dict(os.environ, _NO_PROVIDER):
            output = io.StringIO()
            with redirect_stdout(output):
                code = cli.main(["--db", str(tmp / "microsteps.sqlite"), "breakdown", "cause harm"])
            self.assertEqual(code, 2)
            self.assertIn("inappropriate", output.getvalue())


if __name__ == "__main__":
    unittest.main()
