"""Error types for the release pipeline.

Every error here is fatal to the stage that produced it and, through the
workflow, to the pipeline run. None of them is retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

__all__ = [
    "ArtifactNotFoundError",
    "ArtifactPublishError",
    "BuildFailure",
    "DuplicateArtifactError",
    "EmptyArtifactError",
    "OutputMissing",
    "PipelineError",
    "RegistryError",
    "RegistryErrorKind",
]


@dataclass(frozen=True, slots=True)
class BuildFailure:
    """The toolchain could not be run or exited non-zero.

    ``returncode`` is -1 when cargo never started (e.g. not on PATH).
    """

    returncode: int
    message: str
    hint: str | None = None

    @property
    def toolchain_missing(self) -> bool:
        return self.returncode == -1


@dataclass(frozen=True, slots=True)
class OutputMissing:
    """cargo succeeded but the release binary is not where it should be."""

    path: Path


@dataclass(frozen=True, slots=True)
class EmptyArtifactError:
    """Publish resolved zero files ("if no files found: error")."""

    name: str
    paths: tuple[Path, ...]

    @property
    def message(self) -> str:
        shown = ", ".join(str(p) for p in self.paths) or "(no paths)"
        return f"no files found for artifact '{self.name}': {shown}"


@dataclass(frozen=True, slots=True)
class DuplicateArtifactError:
    """An artifact with this name was already published in this run."""

    name: str
    run_id: str

    @property
    def message(self) -> str:
        return f"artifact '{self.name}' already exists in run {self.run_id}"


@dataclass(frozen=True, slots=True)
class ArtifactNotFoundError:
    """Release stage found nothing to download or attach."""

    root: Path
    message: str


RegistryErrorKind = Literal["auth", "conflict", "network", "unavailable", "invalid"]


@dataclass(frozen=True, slots=True)
class RegistryError:
    """The release registry rejected or could not process the draft release."""

    kind: RegistryErrorKind
    message: str
    hint: str | None = None


ArtifactPublishError = EmptyArtifactError | DuplicateArtifactError

PipelineError = (
    BuildFailure
    | OutputMissing
    | EmptyArtifactError
    | DuplicateArtifactError
    | ArtifactNotFoundError
    | RegistryError
)
