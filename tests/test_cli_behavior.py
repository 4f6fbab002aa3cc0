from __future__ import annotations

import argparse
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import pytest

import tests._path_setup  # noqa: F401

from push_to_file import cli


def _write_config(root: Path, groups: dict[str, object]) -> Path:
    path = root / "push-to-file.json"
    path.write_text(
        json.dumps(
            {
                "log_file": str(root / "logs" / "push-to-file.log"),
                "secrets_dir": str(root / "out"),
                "source": {"type": "env"},
                "groups": groups,
            }
        ),
        encoding="utf-8",
    )
    return path


def _push_args(config_path: Path, **overrides: object) -> argparse.Namespace:
    values: dict[str, object] = {"config": str(config_path), "group": None, "interval": None, "once": False}
    values.update(overrides)
    return argparse.Namespace(**values)


@pytest.mark.usefixtures("clean_package_logger")
class CliBehaviorTest(unittest.TestCase):
    def test_cmd_push_writes_each_group(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            cfg_path = _write_config(
                root,
                {
                    "db": {"format": "dotenv", "secrets": [{"DB_USER": "T_DB_USER"}]},
                    "api": {"template": "token={{ secret('token') }}\n", "secrets": {"token": "T_TOKEN"}},
                },
            )
            with patch.dict(os.environ, {"T_DB_USER": "alice", "T_TOKEN": "abc"}):
                rc = cli.cmd_push(_push_args(cfg_path))

            self.assertEqual(rc, 0)
            self.assertEqual((root / "out" / "db.env").read_text(encoding="utf-8"), 'DB_USER="alice"\n')
            self.assertEqual((root / "out" / "api.txt").read_text(encoding="utf-8"), "token=abc\n")

    def test_cmd_push_reports_failed_group_and_continues(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            cfg_path = _write_config(
                root,
                {
                    "good": {"format": "yaml", "secrets": ["T_GOOD"]},
                    "bad": {"format": "yaml", "secrets": ["T_MISSING_VAR"]},
                },
            )
            with patch.dict(os.environ, {"T_GOOD": "1"}):
                os.environ.pop("T_MISSING_VAR", None)
                rc = cli.cmd_push(_push_args(cfg_path))

            self.assertEqual(rc, 1)
            self.assertTrue((root / "out" / "good.yaml").exists())
            self.assertFalse((root / "out" / "bad.yaml").exists())

    def test_cmd_push_only_selected_group(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            cfg_path = _write_config(
                root,
                {"a": {"secrets": ["T_A"]}, "b": {"secrets": ["T_B"]}},
            )
            with patch.dict(os.environ, {"T_A": "1", "T_B": "2"}):
                rc = cli.cmd_push(_push_args(cfg_path, group=["b"]))
            self.assertEqual(rc, 0)
            self.assertFalse((root / "out" / "a.yaml").exists())
            self.assertTrue((root / "out" / "b.yaml").exists())

    def test_cmd_push_unknown_group_fails(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg_path = _write_config(Path(td), {"a": {"secrets": ["T_A"]}})
            self.assertEqual(cli.cmd_push(_push_args(cfg_path, group=["zzz"])), 1)

    def test_cmd_push_interval_loop_skips_unchanged_content(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            cfg_path = _write_config(root, {"a": {"secrets": ["T_A"]}})
            sleeps: list[int] = []

            def _sleep(seconds: int) -> None:
                sleeps.append(seconds)
                if len(sleeps) == 2:
                    raise KeyboardInterrupt

            with patch.dict(os.environ, {"T_A": "1"}), patch.object(cli.time, "sleep", side_effect=_sleep), patch.object(
                cli, "push_group_to_file", wraps=cli.push_group_to_file
            ) as pushed:
                rc = cli.cmd_push(_push_args(cfg_path, interval=7))

            self.assertEqual(rc, 0)
            self.assertEqual(sleeps, [7, 7])
            self.assertEqual(pushed.call_count, 2)
            self.assertEqual(os.listdir(root / "out"), ["a.yaml"])

    def test_cmd_check_validates_templates(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            good = _write_config(root, {"a": {"template": "{{ secret('x') }}", "secrets": ["x"]}})
            self.assertEqual(cli.cmd_check(argparse.Namespace(config=str(good))), 0)

            bad = _write_config(root, {"a": {"template": "{{ secret('y') }}", "secrets": ["x"]}})
            self.assertEqual(cli.cmd_check(argparse.Namespace(config=str(bad))), 1)
            self.assertFalse((root / "out").exists())

    def test_cmd_check_reports_config_errors(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            cfg_path = _write_config(Path(td), {"a": {"format": "xml"}})
            self.assertEqual(cli.cmd_check(argparse.Namespace(config=str(cfg_path))), 1)

    def test_select_groups_drops_repeated_names(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            cfg_path = _write_config(root, {"a": {"secrets": ["T_A"]}, "b": {"secrets": ["T_B"]}})
            groups = cli.cfg.parse_groups(cli.cfg.load_config(cfg_path))
            selected = cli._select_groups(groups, ["b", "a", "b"])
            self.assertEqual([g.name for g in selected], ["b", "a"])

    def test_cmd_push_repeated_group_pushes_once(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            cfg_path = _write_config(root, {"a": {"secrets": ["T_A"]}})
            with patch.dict(os.environ, {"T_A": "1"}), patch.object(
                cli, "push_group_to_file", wraps=cli.push_group_to_file
            ) as pushed:
                rc = cli.cmd_push(_push_args(cfg_path, group=["a", "a"]))
            self.assertEqual(rc, 0)
            self.assertEqual(pushed.call_count, 1)

    def test_cmd_push_rejects_interval_below_one(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            cfg_path = _write_config(root, {"a": {"secrets": ["T_A"]}})
            with patch.dict(os.environ, {"T_A": "1"}), patch.object(cli.time, "sleep") as sleep:
                self.assertEqual(cli.cmd_push(_push_args(cfg_path, interval=-5)), 1)
                self.assertEqual(cli.cmd_push(_push_args(cfg_path, interval=0)), 1)
                with patch.dict(os.environ, {"PUSH_TO_FILE_INTERVAL": "-1"}):
                    self.assertEqual(cli.cmd_push(_push_args(cfg_path)), 1)
            sleep.assert_not_called()
            self.assertFalse((root / "out").exists())

    def test_cmd_init_writes_loadable_project_config(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            with patch("push_to_file.config.Path.cwd", return_value=root):
                rc = cli.cmd_init(argparse.Namespace(global_scope=False, force=False))
                again = cli.cmd_init(argparse.Namespace(global_scope=False, force=False))
                forced = cli.cmd_init(argparse.Namespace(global_scope=False, force=True))
            path = root / "push-to-file.json"
            self.assertEqual((rc, again, forced), (0, 1, 0))
            self.assertEqual(os.stat(path).st_mode & 0o777, 0o600)
            groups = cli.cfg.parse_groups(cli.cfg.load_config(path))
            self.assertEqual([g.name for g in groups], ["example"])
            self.assertEqual(groups[0].aliases, ["password"])

    def test_main_formats_exits_zero(self) -> None:
        with self.assertRaises(SystemExit) as ctx:
            cli.main(["formats"])
        self.assertEqual(ctx.exception.code, 0)


if __name__ == "__main__":
    unittest.main()
