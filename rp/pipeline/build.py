"""Build stage: compile the release binary and publish it as an artifact.

Steps, each fatal on failure:

1. ``cargo build --release`` in the project root.
2. ``mkdir -p`` the staging directory.
3. Copy ``target/release/<binary>`` to ``<staging>/<artifact file name>``.
4. Publish that file under the artifact name; zero files is an error.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from rp.core.config import PipelineConfig
from rp.core.project import Project
from rp.core.result import Err, Ok, Result
from rp.output.console import ConsoleProtocol, Style
from rp.pipeline.errors import ArtifactPublishError, BuildFailure, OutputMissing, PipelineError
from rp.pipeline.model import Artifact
from rp.pipeline.store import ArtifactStore
from rp.platform.files import copy_file
from rp.platform.process import run_streaming

__all__ = ["BuildStage", "cargo_build_command"]

CARGO_INSTALL_HINT = "Install Rust via https://rustup.rs/"


def cargo_build_command(config: PipelineConfig) -> list[str]:
    profile = config.build.profile
    if profile == "release":
        return ["cargo", "build", "--release"]
    return ["cargo", "build", "--profile", profile]


class BuildStage:
    def __init__(
        self,
        *,
        project: Project,
        config: PipelineConfig,
        store: ArtifactStore,
        console: ConsoleProtocol,
    ) -> None:
        self._project = project
        self._config = config
        self._store = store
        self._console = console

    @property
    def staged_binary(self) -> Path:
        return self._project.staged_binary(self._config)

    def compile(self) -> Result[None, BuildFailure]:
        if shutil.which("cargo") is None:
            return Err(BuildFailure(returncode=-1, message="cargo: missing", hint=CARGO_INSTALL_HINT))

        cmd = cargo_build_command(self._config)
        self._console.print(" ".join(cmd), Style.DIM)
        result = run_streaming(cmd, cwd=self._project.root, env_overlay=self._config.build.env)
        if isinstance(result, Err):
            e = result.error
            return Err(
                BuildFailure(
                    returncode=e.returncode,
                    message=f"cargo build failed (exit {e.returncode})",
                    hint=e.stderr.strip() or None,
                )
            )
        return Ok(None)

    def stage_binary(self) -> Result[Path, OutputMissing]:
        src = self._project.release_binary(self._config)
        staging_dir = self._project.staging_dir(self._config)
        staging_dir.mkdir(parents=True, exist_ok=True)

        if not src.is_file():
            return Err(OutputMissing(path=src))

        dst = copy_file(src, self.staged_binary)
        self._console.print(f"staged {src} -> {dst}", Style.DIM)
        return Ok(dst)

    def publish(self) -> Result[Artifact, ArtifactPublishError]:
        name = self._config.artifact.name
        result = self._store.publish(name, [self.staged_binary])
        if isinstance(result, Ok):
            self._console.success(f"published artifact '{name}' ({result.value.artifact_id})")
        return result

    def run(self) -> Result[Artifact, PipelineError]:
        self._console.header("Build")

        compiled = self.compile()
        if isinstance(compiled, Err):
            return compiled

        staged = self.stage_binary()
        if isinstance(staged, Err):
            return staged

        return self.publish()
