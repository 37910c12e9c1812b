"""Tests for rp.platform.process module."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

from rp.core.result import Err, Ok
from rp.platform.process import ProcessError, child_env, run, run_streaming

PY = sys.executable


class TestProcessError:
    def test_str_short_command(self) -> None:
        error = ProcessError(command=("gh", "auth"), returncode=1, stdout="", stderr="")
        assert str(error) == "gh auth failed (exit 1)"

    def test_str_long_command_truncated(self) -> None:
        error = ProcessError(
            command=("gh", "release", "create", "v1.2.3", "--draft"),
            returncode=1,
            stdout="",
            stderr="",
        )
        assert str(error) == "gh release create ... failed (exit 1)"

    def test_frozen(self) -> None:
        error = ProcessError(("cmd",), 1, "", "")
        with pytest.raises(AttributeError):
            error.returncode = 2  # type: ignore[misc]


class TestChildEnv:
    def test_no_overlay_inherits(self) -> None:
        assert child_env(None) is None
        assert child_env({}) is None

    def test_overlay_merges_over_current_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RP_TEST_BASE", "base")
        env = child_env({"GH_TOKEN": "t0ken"})

        assert env is not None
        assert env["GH_TOKEN"] == "t0ken"
        assert env["RP_TEST_BASE"] == "base"


class TestRun:
    def test_success_returns_stdout(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "print('hello')"], cwd=tmp_path)

        assert isinstance(result, Ok)
        assert "hello" in result.value

    def test_failure_returns_error(self, tmp_path: Path) -> None:
        result = run(
            [PY, "-c", "import sys; sys.stderr.write('boom'); sys.exit(42)"],
            cwd=tmp_path,
        )

        assert isinstance(result, Err)
        assert result.error.returncode == 42
        assert "boom" in result.error.stderr

    def test_command_not_found(self, tmp_path: Path) -> None:
        result = run(["nonexistent_command_12345"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert len(result.error.stderr) > 0

    def test_env_overlay_reaches_child_only(self, tmp_path: Path) -> None:
        result = run(
            [PY, "-c", "import os; print(os.environ['RP_TEST_SECRET'])"],
            cwd=tmp_path,
            env_overlay={"RP_TEST_SECRET": "s3cret"},
        )

        assert isinstance(result, Ok)
        assert result.value.strip() == "s3cret"
        assert "RP_TEST_SECRET" not in os.environ

    def test_timeout(self, tmp_path: Path) -> None:
        result = run([PY, "-c", "import time; time.sleep(5)"], cwd=tmp_path, timeout=0.2)

        assert isinstance(result, Err)
        assert result.error.returncode == -1
        assert "timed out" in result.error.stderr


class TestRunStreaming:
    def test_success(self, tmp_path: Path) -> None:
        assert run_streaming([PY, "-c", "pass"], cwd=tmp_path) == Ok(None)

    def test_failure_carries_exit_code(self, tmp_path: Path) -> None:
        result = run_streaming([PY, "-c", "import sys; sys.exit(101)"], cwd=tmp_path)

        assert isinstance(result, Err)
        assert result.error.returncode == 101

    def test_uses_cwd(self, tmp_path: Path) -> None:
        result = run_streaming(
            [PY, "-c", "open('marker', 'w').close()"],
            cwd=tmp_path,
        )

        assert isinstance(result, Ok)
        assert (tmp_path / "marker").exists()
