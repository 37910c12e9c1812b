from __future__ import annotations

import json
from pathlib import Path

import pytest

from rp.core.result import Err, Ok
from rp.pipeline.errors import ArtifactNotFoundError, DuplicateArtifactError, EmptyArtifactError
from rp.pipeline.store import LocalArtifactStore, new_run_id, resolve_artifact_files


def _binary(tmp_path: Path) -> Path:
    staged = tmp_path / "work" / "dist" / "rmenu-linux"
    staged.parent.mkdir(parents=True)
    staged.write_bytes(b"binary")
    return staged


class TestPublish:
    def test_single_file_lands_at_base_name(self, tmp_path: Path) -> None:
        store = LocalArtifactStore(tmp_path / "store", "run-1")

        result = store.publish("rmenu-linux", [_binary(tmp_path)])

        assert isinstance(result, Ok)
        artifact = result.value
        assert artifact.file_names == ("rmenu-linux",)
        assert artifact.run_id == "run-1"
        assert artifact.files[0].size == len(b"binary")
        assert (tmp_path / "store" / "run-1" / "rmenu-linux" / "rmenu-linux").read_bytes() == (
            b"binary"
        )

    def test_manifest_written(self, tmp_path: Path) -> None:
        store = LocalArtifactStore(tmp_path / "store", "run-1")
        store.publish("rmenu-linux", [_binary(tmp_path)])

        manifest = tmp_path / "store" / "run-1" / "rmenu-linux.artifact.json"
        data = json.loads(manifest.read_text(encoding="utf-8"))
        assert data["name"] == "rmenu-linux"
        assert data["files"][0]["path"] == "rmenu-linux"

    def test_missing_path_is_empty_artifact(self, tmp_path: Path) -> None:
        store = LocalArtifactStore(tmp_path / "store", "run-1")

        result = store.publish("rmenu-linux", [tmp_path / "dist" / "rmenu-linux"])

        assert isinstance(result, Err)
        assert isinstance(result.error, EmptyArtifactError)
        assert not (tmp_path / "store").exists()

    def test_empty_directory_is_empty_artifact(self, tmp_path: Path) -> None:
        (tmp_path / "dist").mkdir()
        store = LocalArtifactStore(tmp_path / "store", "run-1")

        result = store.publish("rmenu-linux", [tmp_path / "dist"])

        assert isinstance(result, Err)
        assert isinstance(result.error, EmptyArtifactError)

    def test_artifacts_are_immutable(self, tmp_path: Path) -> None:
        store = LocalArtifactStore(tmp_path / "store", "run-1")
        staged = _binary(tmp_path)
        assert isinstance(store.publish("rmenu-linux", [staged]), Ok)

        again = store.publish("rmenu-linux", [staged])

        assert isinstance(again, Err)
        assert again.error == DuplicateArtifactError(name="rmenu-linux", run_id="run-1")

    def test_directory_keeps_relative_layout(self, tmp_path: Path) -> None:
        bundle = tmp_path / "bundle"
        (bundle / "share").mkdir(parents=True)
        (bundle / "rmenu").write_bytes(b"bin")
        (bundle / "share" / "rmenu.desktop").write_text("[Desktop Entry]\n")

        files = resolve_artifact_files([bundle])

        assert [rel for _, rel in files] == ["rmenu", "share/rmenu.desktop"]

    @pytest.mark.parametrize("name", ["", "a/b", "..", ".hidden"])
    def test_invalid_artifact_name(self, tmp_path: Path, name: str) -> None:
        store = LocalArtifactStore(tmp_path / "store", "run-1")
        with pytest.raises(ValueError):
            store.publish(name, [_binary(tmp_path)])


class TestDownloadAll:
    def test_materializes_per_artifact_directory(self, tmp_path: Path) -> None:
        store = LocalArtifactStore(tmp_path / "store", "run-1")
        store.publish("rmenu-linux", [_binary(tmp_path)])
        dest = tmp_path / "release" / "dist"

        result = store.download_all(dest)

        assert isinstance(result, Ok)
        assert result.value == frozenset({dest / "rmenu-linux" / "rmenu-linux"})
        assert sorted(p for p in dest.rglob("*") if p.is_file()) == [
            dest / "rmenu-linux" / "rmenu-linux"
        ]

    def test_no_artifacts_is_not_found(self, tmp_path: Path) -> None:
        store = LocalArtifactStore(tmp_path / "store", "run-1")

        result = store.download_all(tmp_path / "dist")

        assert isinstance(result, Err)
        assert isinstance(result.error, ArtifactNotFoundError)

    def test_replaces_only_the_artifact_path(self, tmp_path: Path) -> None:
        store = LocalArtifactStore(tmp_path / "store", "run-1")
        store.publish("rmenu-linux", [_binary(tmp_path)])
        dest = tmp_path / "tree" / "dist"
        dest.mkdir(parents=True)
        (dest / "rmenu-linux").write_bytes(b"staged file with the artifact's name")
        (dest / "CHANGELOG.md").write_text("keep me", encoding="utf-8")

        result = store.download_all(dest)

        assert isinstance(result, Ok)
        assert (dest / "rmenu-linux" / "rmenu-linux").read_bytes() == b"binary"
        assert (dest / "CHANGELOG.md").read_text(encoding="utf-8") == "keep me"

    def test_failed_download_touches_nothing(self, tmp_path: Path) -> None:
        store = LocalArtifactStore(tmp_path / "store", "run-1")
        dest = tmp_path / "tree" / "dist"
        dest.mkdir(parents=True)
        (dest / "rmenu-linux").write_bytes(b"staged")

        result = store.download_all(dest)

        assert isinstance(result, Err)
        assert (dest / "rmenu-linux").read_bytes() == b"staged"

    def test_runs_are_isolated(self, tmp_path: Path) -> None:
        LocalArtifactStore(tmp_path / "store", "run-1").publish("rmenu-linux", [_binary(tmp_path)])
        other = LocalArtifactStore(tmp_path / "store", "run-2")

        result = other.download_all(tmp_path / "dist")

        assert isinstance(result, Err)

    def test_unfinished_publish_is_invisible(self, tmp_path: Path) -> None:
        # Files without a manifest (e.g. a crashed publish) are ignored.
        leftover = tmp_path / "store" / "run-1" / "rmenu-linux"
        leftover.mkdir(parents=True)
        (leftover / "rmenu-linux").write_bytes(b"partial")
        store = LocalArtifactStore(tmp_path / "store", "run-1")

        result = store.download_all(tmp_path / "dist")

        assert isinstance(result, Err)

    def test_corrupt_manifest(self, tmp_path: Path) -> None:
        run_dir = tmp_path / "store" / "run-1"
        run_dir.mkdir(parents=True)
        (run_dir / "rmenu-linux.artifact.json").write_text("{not json", encoding="utf-8")
        store = LocalArtifactStore(tmp_path / "store", "run-1")

        result = store.download_all(tmp_path / "dist")

        assert isinstance(result, Err)
        assert "corrupt" in result.error.message


def test_invalid_run_id_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        LocalArtifactStore(tmp_path, "../escape")


def test_new_run_id_is_unique() -> None:
    assert new_run_id() != new_run_id()
    assert new_run_id().startswith("run-")
