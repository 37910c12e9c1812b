"""Release stage: download the run's artifacts and create a draft release."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from rp.core.result import Err, Ok, Result
from rp.output.console import ConsoleProtocol, Style
from rp.pipeline.errors import ArtifactNotFoundError, PipelineError
from rp.pipeline.model import RegistryCredentials, ReleaseRecord
from rp.pipeline.registry import ReleaseRegistry
from rp.pipeline.store import ArtifactStore
from rp.platform.files import iter_regular_files, remove_path

__all__ = ["ReleaseStage"]


class ReleaseStage:
    def __init__(
        self,
        *,
        download_dir: Path,
        store: ArtifactStore,
        registry: ReleaseRegistry,
        console: ConsoleProtocol,
        stale_paths: Sequence[Path] = (),
    ) -> None:
        self._download_dir = download_dir
        self._stale_paths = tuple(stale_paths)
        self._store = store
        self._registry = registry
        self._console = console

    @property
    def download_dir(self) -> Path:
        return self._download_dir

    def download(self) -> Result[frozenset[Path], ArtifactNotFoundError]:
        """Materialize every artifact of the run under the download dir.

        Each artifact replaces ``<download dir>/<name>``. Once the download
        succeeded, ``stale_paths`` (such as a binary staged by a build in the
        same tree) are removed so they are not attached twice. Nothing is
        removed when the download fails.
        """
        result = self._store.download_all(self._download_dir)
        if isinstance(result, Err):
            return result

        for path in self._stale_paths:
            if any(f == path or path in f.parents for f in result.value):
                continue
            if remove_path(path):
                self._console.print(f"removed stale {path}", Style.DIM)

        self._console.print(
            f"downloaded {len(result.value)} file(s) into {self._download_dir}", Style.DIM
        )
        return result

    def collect(self) -> Result[list[Path], ArtifactNotFoundError]:
        """Every regular file under the download dir (``dist/**/*``)."""
        files = iter_regular_files(self._download_dir)
        if not files:
            return Err(
                ArtifactNotFoundError(
                    root=self._download_dir,
                    message=f"no files to attach under {self._download_dir}",
                )
            )
        return Ok(files)

    def run(self, tag: str, credentials: RegistryCredentials) -> Result[ReleaseRecord, PipelineError]:
        self._console.header(f"Release {tag}")

        downloaded = self.download()
        if isinstance(downloaded, Err):
            return downloaded

        collected = self.collect()
        if isinstance(collected, Err):
            return collected

        for f in collected.value:
            self._console.print(f"attach {f}", Style.DIM)

        created = self._registry.create_draft_release(tag, collected.value, credentials)
        if isinstance(created, Err):
            return created

        record = created.value
        self._console.success(f"draft release {record.tag}: {record.url or record.release_id}")
        return Ok(record)
