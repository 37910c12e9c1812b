from __future__ import annotations

import os
import stat
from collections.abc import Mapping
from pathlib import Path

import pytest

from rp.core.config import ArtifactConfig, BuildConfig, PipelineConfig
from rp.core.project import Project
from rp.core.result import Err, Ok, Result
from rp.output.console import MockConsole
from rp.pipeline import build as build_mod
from rp.pipeline.build import BuildStage, cargo_build_command
from rp.pipeline.errors import BuildFailure, EmptyArtifactError, OutputMissing
from rp.platform.process import ProcessError
from rp.test._fakes import FakeArtifactStore, make_rust_project


def _stage(
    root: Path, store: FakeArtifactStore, config: PipelineConfig | None = None
) -> tuple[BuildStage, MockConsole]:
    console = MockConsole()
    stage = BuildStage(
        project=Project(root=root),
        config=config or PipelineConfig(),
        store=store,
        console=console,
    )
    return stage, console


def _cargo_ok(calls: list[tuple[list[str], Mapping[str, str] | None]]):
    def fake_run(
        cmd: list[str], cwd: Path, env_overlay: Mapping[str, str] | None = None
    ) -> Result[None, ProcessError]:
        del cwd
        calls.append((cmd, env_overlay))
        return Ok(None)

    return fake_run


@pytest.fixture
def cargo_on_path(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(build_mod.shutil, "which", lambda name: f"/usr/bin/{name}")


def test_cargo_build_command_profiles() -> None:
    assert cargo_build_command(PipelineConfig()) == ["cargo", "build", "--release"]
    custom = PipelineConfig(build=BuildConfig(profile="dist"))
    assert cargo_build_command(custom) == ["cargo", "build", "--profile", "dist"]


@pytest.mark.usefixtures("cargo_on_path")
def test_run_publishes_renamed_binary(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    make_rust_project(tmp_path)
    calls: list[tuple[list[str], Mapping[str, str] | None]] = []
    monkeypatch.setattr(build_mod, "run_streaming", _cargo_ok(calls))
    store = FakeArtifactStore()
    stage, console = _stage(tmp_path, store)

    result = stage.run()

    assert isinstance(result, Ok)
    assert result.value.name == "rmenu-linux"
    assert result.value.file_names == ("rmenu-linux",)
    assert calls == [(["cargo", "build", "--release"], {"CARGO_TERM_COLOR": "always"})]
    assert (tmp_path / "dist" / "rmenu-linux").read_bytes() == b"\x7fELF fake binary"
    assert list(store.blobs) == ["rmenu-linux"]
    assert console.find("published artifact 'rmenu-linux'")


@pytest.mark.usefixtures("cargo_on_path")
def test_compile_failure_is_fatal_and_publishes_nothing(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    make_rust_project(tmp_path)

    def failing_run(
        cmd: list[str], cwd: Path, env_overlay: Mapping[str, str] | None = None
    ) -> Result[None, ProcessError]:
        del cwd, env_overlay
        return Err(ProcessError(command=tuple(cmd), returncode=101, stdout="", stderr=""))

    monkeypatch.setattr(build_mod, "run_streaming", failing_run)
    store = FakeArtifactStore()
    stage, _ = _stage(tmp_path, store)

    result = stage.run()

    assert isinstance(result, Err)
    assert isinstance(result.error, BuildFailure)
    assert result.error.returncode == 101
    assert not result.error.toolchain_missing
    assert store.publish_calls == []
    assert not (tmp_path / "dist").exists()


def test_missing_cargo_is_build_failure(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    make_rust_project(tmp_path)
    monkeypatch.setattr(build_mod.shutil, "which", lambda name: None)
    store = FakeArtifactStore()
    stage, _ = _stage(tmp_path, store)

    result = stage.compile()

    assert isinstance(result, Err)
    assert result.error.toolchain_missing
    assert result.error.hint is not None and "rustup" in result.error.hint


def test_stage_binary_is_idempotent_on_existing_dir(tmp_path: Path) -> None:
    make_rust_project(tmp_path)
    (tmp_path / "dist").mkdir()
    stage, _ = _stage(tmp_path, FakeArtifactStore())

    first = stage.stage_binary()
    second = stage.stage_binary()

    assert isinstance(first, Ok) and isinstance(second, Ok)
    assert second.value == tmp_path / "dist" / "rmenu-linux"


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_stage_binary_keeps_executable_bit(tmp_path: Path) -> None:
    make_rust_project(tmp_path)
    src = tmp_path / "target" / "release" / "rmenu-ng"
    src.chmod(0o755)
    stage, _ = _stage(tmp_path, FakeArtifactStore())

    result = stage.stage_binary()

    assert isinstance(result, Ok)
    assert result.value.stat().st_mode & stat.S_IXUSR


def test_stage_binary_missing_output(tmp_path: Path) -> None:
    make_rust_project(tmp_path, built=False)
    stage, _ = _stage(tmp_path, FakeArtifactStore())

    result = stage.stage_binary()

    assert isinstance(result, Err)
    assert result.error == OutputMissing(path=tmp_path / "target" / "release" / "rmenu-ng")
    # mkdir -p happens before the copy.
    assert (tmp_path / "dist").is_dir()


def test_publish_with_empty_staging_dir_fails(tmp_path: Path) -> None:
    make_rust_project(tmp_path)
    (tmp_path / "dist").mkdir()
    store = FakeArtifactStore()
    stage, _ = _stage(tmp_path, store)

    result = stage.publish()

    assert isinstance(result, Err)
    assert isinstance(result.error, EmptyArtifactError)
    assert result.error.name == "rmenu-linux"
    assert store.blobs == {}


def test_custom_artifact_file_name(tmp_path: Path) -> None:
    make_rust_project(tmp_path)
    config = PipelineConfig(artifact=ArtifactConfig(name="rmenu-linux", file_name="rmenu"))
    store = FakeArtifactStore()
    stage, _ = _stage(tmp_path, store, config)

    assert isinstance(stage.stage_binary(), Ok)
    result = stage.publish()

    assert isinstance(result, Ok)
    assert result.value.file_names == ("rmenu",)
