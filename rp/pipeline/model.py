from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class ArtifactFile:
    """One file inside an artifact, addressed by its path relative to the artifact root."""

    relative_path: str  # posix
    size: int
    sha256: str


@dataclass(frozen=True, slots=True)
class Artifact:
    """Immutable named bundle of files published by the build stage."""

    name: str
    artifact_id: str
    run_id: str
    files: tuple[ArtifactFile, ...]

    @property
    def file_names(self) -> tuple[str, ...]:
        return tuple(f.relative_path for f in self.files)


@dataclass(frozen=True, slots=True)
class ReleaseRecord:
    """A draft release created in the registry for one tag."""

    release_id: str
    tag: str
    draft: bool
    assets: tuple[Path, ...]
    url: str | None = None


@dataclass(frozen=True, slots=True)
class RegistryCredentials:
    """Opaque token handed to the registry.

    The token is excluded from ``repr`` so it cannot leak through console
    output or test failure messages.
    """

    token: str = field(repr=False)

    @property
    def is_empty(self) -> bool:
        return not self.token.strip()


def credentials_from_env(env: Mapping[str, str], var: str) -> RegistryCredentials | None:
    """Read the registry token supplied by the execution environment."""
    value = env.get(var)
    if value is None or not value.strip():
        return None
    return RegistryCredentials(token=value)
