"""Project detection and paths.

The project is the root of the Rust crate being released, identified by its
``Cargo.toml``. All pipeline paths (cargo output, staging directory,
download directory, local artifact store) are resolved from it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .config import CONFIG_FILE_NAME, PipelineConfig
from .result import Err, Ok, Result

__all__ = [
    "PROJECT_ENV_VAR",
    "Project",
    "ProjectError",
    "detect_project",
    "find_project_upward",
    "is_project_root",
]

PROJECT_ENV_VAR = "RP_PROJECT_ROOT"


@dataclass(frozen=True)
class ProjectError:
    """Error when the project root cannot be detected."""

    message: str
    searched_from: Path | None = None


@dataclass(frozen=True, slots=True)
class Project:
    """A detected Rust project.

    The root contains:
    - Cargo.toml (required)
    - release.toml (optional pipeline overrides)
    - target/ cargo output (generated)
    - dist/ staging and download directory (generated)
    - .rp/ local artifact store (generated, gitignored)
    """

    root: Path

    @property
    def manifest_path(self) -> Path:
        return self.root / "Cargo.toml"

    @property
    def config_path(self) -> Path:
        return self.root / CONFIG_FILE_NAME

    @property
    def state_dir(self) -> Path:
        return self.root / ".rp"

    @property
    def artifact_store_dir(self) -> Path:
        """Root of the run-scoped local artifact store (.rp/artifacts/<run-id>/).

        The store is local to this checkout. When ``rp build`` and
        ``rp release`` run as separate CI jobs, ``.rp/artifacts/<run-id>/``
        has to be carried between them with the CI platform's artifact
        upload and download steps, under the same run id.
        """
        return self.state_dir / "artifacts"

    def release_binary(self, config: PipelineConfig) -> Path:
        """Canonical cargo output for the configured profile.

        cargo writes the ``release`` profile to ``target/release``; custom
        profiles go to ``target/<profile>``.
        """
        build = config.build
        return self.root / build.target_dir / build.profile / build.binary

    def staging_dir(self, config: PipelineConfig) -> Path:
        return self.root / config.artifact.staging_dir

    def staged_binary(self, config: PipelineConfig) -> Path:
        return self.staging_dir(config) / config.artifact.staged_file_name

    def download_dir(self, config: PipelineConfig) -> Path:
        return self.root / config.release.download_dir

    def __str__(self) -> str:
        return str(self.root)


def is_project_root(path: Path) -> bool:
    return Project(root=path).manifest_path.is_file()


def find_project_upward(start: Path) -> Path | None:
    for parent in (start, *start.parents):
        if is_project_root(parent):
            return parent
    return None


def detect_project(
    *,
    start_dir: Path | None = None,
    env_var: str = PROJECT_ENV_VAR,
) -> Result[Project, ProjectError]:
    """Detect the project root.

    Detection order:
    1. $RP_PROJECT_ROOT (if set it must be valid, no fallback)
    2. Search upward from start_dir (or cwd) for Cargo.toml
    """
    env_value = os.environ.get(env_var)
    if env_value:
        env_path = Path(env_value).expanduser().resolve()
        if env_path.is_dir() and is_project_root(env_path):
            return Ok(Project(root=env_path))
        return Err(
            ProjectError(
                message=f"${env_var} is set to '{env_value}' but it has no Cargo.toml",
                searched_from=env_path if env_path.is_dir() else None,
            )
        )

    search_start = (start_dir or Path.cwd()).resolve()
    found = find_project_upward(search_start)
    if found is None:
        return Err(
            ProjectError(
                message="Could not find project (Cargo.toml not found)",
                searched_from=search_start,
            )
        )
    return Ok(Project(root=found))
