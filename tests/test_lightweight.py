# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

import os
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
UPDATE_PROPERTY = ROOT / "scripts" / "lib" / "update_property.py"


def _env():
    env = os.environ.copy()
    src = str(ROOT / "src")
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [src, env.get("PYTHONPATH")]))
    return env


def run_script(*args):
    return subprocess.run(
        [sys.executable, str(UPDATE_PROPERTY), *args],
        cwd=ROOT,
        env=_env(),
        capture_output=True,
        text=True,
    )


def test_update_property_help():
    result = run_script("--help")
    assert result.returncode == 0
    assert "usage: update_property" in result.stdout


def test_update_property_script_updates_file(tmp_path):
    target = tmp_path / "app.conf"
    target.write_text("# settings\nfoo=bar\n")

    result = run_script("-e", str(target), "foo", "baz")
    assert result.returncode == 0
    assert result.stdout == "foo=baz\n"
    assert target.read_text() == "# settings\nfoo=baz\n"


def test_update_property_script_missing_key(tmp_path):
    target = tmp_path / "app.conf"
    target.write_text("foo=bar\n")

    result = run_script(str(target), "baz", "qux")
    assert result.returncode == 1
    assert result.stdout == ""
    assert "[update-property]" in result.stderr
    assert target.read_text() == "foo=bar\n"


def test_module_entry_point(tmp_path):
    target = tmp_path / "app.conf"
    target.write_text("foo=bar\n")

    result = subprocess.run(
        [sys.executable, "-m", "adminkit.update_property", "-f", str(target), "baz", "qux"],
        cwd=ROOT,
        env=_env(),
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert target.read_text() == "foo=bar\nbaz=qux\n"
