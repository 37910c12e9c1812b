"""Artifact store: the hand-off point between the build and release stages.

The stages may run in separate environments; the only state they share is
what the build stage publishes here and the release stage downloads. Every
store instance is scoped to one pipeline run, so concurrent runs never see
each other's artifacts.

Local layout (``LocalArtifactStore``)::

    <root>/<run-id>/<artifact-name>/<files...>
    <root>/<run-id>/<artifact-name>.artifact.json

The manifest is written last; an artifact without a manifest is not visible
to ``download_all``. Separate environments only share a local store if
``<root>/<run-id>/`` is copied between them (a CI artifact upload in the
build job, a download to the same path in the release job).
"""

from __future__ import annotations

import json
import os
import shutil
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from rp.core.result import Err, Ok, Result
from rp.core.structured import as_obj_list, as_str_dict, get_int, get_str
from rp.pipeline.errors import (
    ArtifactNotFoundError,
    ArtifactPublishError,
    DuplicateArtifactError,
    EmptyArtifactError,
)
from rp.pipeline.model import Artifact, ArtifactFile
from rp.platform.files import (
    atomic_write_text,
    copy_file,
    iter_regular_files,
    remove_path,
    sha256_file,
)

__all__ = ["ArtifactStore", "LocalArtifactStore", "new_run_id", "resolve_artifact_files"]

_MANIFEST_SUFFIX = ".artifact.json"
_MANIFEST_SCHEMA = 1


class ArtifactStore(Protocol):
    def publish(
        self, name: str, paths: Sequence[Path]
    ) -> Result[Artifact, ArtifactPublishError]: ...

    def download_all(self, destination: Path) -> Result[frozenset[Path], ArtifactNotFoundError]: ...


def new_run_id() -> str:
    return f"run-{uuid4().hex[:12]}"


def resolve_artifact_files(paths: Sequence[Path]) -> list[tuple[Path, str]]:
    """Expand publish paths into (source, relative path) pairs.

    A file lands at its base name; a directory contributes its contents
    relative to itself. Missing paths contribute nothing.
    """
    out: list[tuple[Path, str]] = []
    for path in paths:
        if path.is_file():
            out.append((path, path.name))
        elif path.is_dir():
            for f in iter_regular_files(path):
                out.append((f, f.relative_to(path).as_posix()))
    return out


class LocalArtifactStore:
    """Filesystem-backed store, scoped to a single run."""

    def __init__(self, root: Path, run_id: str) -> None:
        if not run_id or "/" in run_id or "\\" in run_id or run_id in (".", ".."):
            raise ValueError(f"invalid run id: {run_id!r}")
        self._root = root
        self._run_id = run_id

    @property
    def run_id(self) -> str:
        return self._run_id

    @property
    def run_dir(self) -> Path:
        return self._root / self._run_id

    def _manifest_path(self, name: str) -> Path:
        return self.run_dir / f"{name}{_MANIFEST_SUFFIX}"

    def publish(self, name: str, paths: Sequence[Path]) -> Result[Artifact, ArtifactPublishError]:
        if not name or Path(name).name != name or name.startswith("."):
            raise ValueError(f"invalid artifact name: {name!r}")

        files = resolve_artifact_files(paths)
        if not files:
            return Err(EmptyArtifactError(name=name, paths=tuple(paths)))

        artifact_dir = self.run_dir / name
        if artifact_dir.exists() or self._manifest_path(name).exists():
            return Err(DuplicateArtifactError(name=name, run_id=self._run_id))

        staging = self.run_dir / f".{name}.{uuid4().hex[:8]}.tmp"
        try:
            entries: list[ArtifactFile] = []
            for src, rel in files:
                dst = copy_file(src, staging / rel)
                entries.append(
                    ArtifactFile(relative_path=rel, size=dst.stat().st_size, sha256=sha256_file(dst))
                )
            os.replace(staging, artifact_dir)
        finally:
            if staging.exists():
                shutil.rmtree(staging, ignore_errors=True)

        artifact = Artifact(
            name=name,
            artifact_id=uuid4().hex[:12],
            run_id=self._run_id,
            files=tuple(entries),
        )
        atomic_write_text(self._manifest_path(name), _dump_manifest(artifact))
        return Ok(artifact)

    def _load_artifacts(self) -> Result[list[Artifact], ArtifactNotFoundError]:
        if not self.run_dir.is_dir():
            return Ok([])

        artifacts: list[Artifact] = []
        for manifest in sorted(self.run_dir.glob(f"*{_MANIFEST_SUFFIX}")):
            artifact = _parse_manifest(manifest.read_text(encoding="utf-8"))
            if artifact is None or artifact.run_id != self._run_id:
                return Err(
                    ArtifactNotFoundError(
                        root=manifest, message=f"corrupt artifact manifest: {manifest}"
                    )
                )
            artifacts.append(artifact)
        return Ok(artifacts)

    def download_all(self, destination: Path) -> Result[frozenset[Path], ArtifactNotFoundError]:
        loaded = self._load_artifacts()
        if isinstance(loaded, Err):
            return loaded
        if not loaded.value:
            return Err(
                ArtifactNotFoundError(
                    root=self.run_dir,
                    message=f"no artifacts published for run {self._run_id}",
                )
            )

        for artifact in loaded.value:
            source_dir = self.run_dir / artifact.name
            for entry in artifact.files:
                if not (source_dir / entry.relative_path).is_file():
                    return Err(
                        ArtifactNotFoundError(
                            root=source_dir,
                            message=f"artifact '{artifact.name}' is missing {entry.relative_path}",
                        )
                    )

        # Only <destination>/<name> is replaced; the rest of the directory is left alone.
        downloaded: set[Path] = set()
        for artifact in loaded.value:
            target = destination / artifact.name
            remove_path(target)
            for entry in artifact.files:
                src = self.run_dir / artifact.name / entry.relative_path
                downloaded.add(copy_file(src, target / entry.relative_path))
        return Ok(frozenset(downloaded))


def _dump_manifest(artifact: Artifact) -> str:
    data = {
        "schema": _MANIFEST_SCHEMA,
        "name": artifact.name,
        "id": artifact.artifact_id,
        "run_id": artifact.run_id,
        "files": [
            {"path": f.relative_path, "size": f.size, "sha256": f.sha256} for f in artifact.files
        ],
    }
    return json.dumps(data, indent=2, sort_keys=True) + "\n"


def _parse_manifest(text: str) -> Artifact | None:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError:
        return None

    data = as_str_dict(obj)
    if data is None or get_int(data, "schema") != _MANIFEST_SCHEMA:
        return None

    name = get_str(data, "name")
    artifact_id = get_str(data, "id")
    run_id = get_str(data, "run_id")
    raw_files = as_obj_list(data.get("files"))
    if name is None or artifact_id is None or run_id is None or raw_files is None:
        return None

    files: list[ArtifactFile] = []
    for item in raw_files:
        d = as_str_dict(item)
        if d is None:
            return None
        rel = get_str(d, "path")
        size = get_int(d, "size")
        sha = get_str(d, "sha256")
        if rel is None or size is None or sha is None:
            return None
        files.append(ArtifactFile(relative_path=rel, size=size, sha256=sha))

    return Artifact(name=name, artifact_id=artifact_id, run_id=run_id, files=tuple(files))
