"""Tests for external command helpers."""

from __future__ import annotations

import sys

import pytest

from bundlekit.exceptions import ConfigError, PackagingError
from bundlekit.tools import format_command, run_command


class TestRunCommand:
    def test_returns_stdout(self, tmp_path):
        out = run_command([sys.executable, "-c", "print('ok')"], tmp_path)
        assert out.strip() == "ok"

    def test_runs_in_cwd(self, tmp_path):
        out = run_command([sys.executable, "-c", "import os; print(os.getcwd())"], tmp_path)
        assert out.strip() == str(tmp_path.resolve())

    def test_nonzero_exit(self, tmp_path):
        cmd = [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"]
        with pytest.raises(PackagingError) as exc:
            run_command(cmd, tmp_path)
        assert exc.value.returncode == 3
        assert "boom" in str(exc.value)

    def test_missing_executable(self, tmp_path):
        with pytest.raises(PackagingError) as exc:
            run_command(["definitely-not-a-real-tool-xyz"], tmp_path)
        assert exc.value.returncode == 127


class TestFormatCommand:
    def test_placeholders(self):
        cmd = format_command(["pack", "{out_dir}", "--name={product_name}"], out_dir="/o", product_name="App")
        assert cmd == ["pack", "/o", "--name=App"]

    def test_unknown_placeholder(self):
        with pytest.raises(ConfigError, match="arch"):
            format_command(["pack", "{arch}"], out_dir="/o")
