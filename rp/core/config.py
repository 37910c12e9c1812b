"""Typed pipeline configuration.

The pipeline runs with built-in defaults. A project may override them with a
``release.toml`` next to its ``Cargo.toml``:

    [build]
    binary = "rmenu-ng"
    profile = "release"
    target_dir = "target"

    [build.env]
    CARGO_TERM_COLOR = "always"

    [artifact]
    name = "rmenu-linux"
    staging_dir = "dist"

    [release]
    download_dir = "dist"
    draft = true
    repo = "owner/rmenu-ng"
    token_env = "GITHUB_TOKEN"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_str, get_str_map, get_table

__all__ = [
    "ArtifactConfig",
    "BuildConfig",
    "ConfigError",
    "PipelineConfig",
    "ReleaseConfig",
    "CONFIG_FILE_NAME",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "release.toml"

DEFAULT_BINARY = "rmenu-ng"
DEFAULT_PROFILE = "release"
DEFAULT_TARGET_DIR = "target"
DEFAULT_ARTIFACT_NAME = "rmenu-linux"
DEFAULT_STAGING_DIR = "dist"
DEFAULT_DOWNLOAD_DIR = "dist"
DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"


def _default_build_env() -> dict[str, str]:
    return {"CARGO_TERM_COLOR": "always"}


def _subdir(
    table: Mapping[str, object], key: str, default: str, *, reserved: frozenset[str]
) -> str:
    """A directory strictly inside the project root.

    Downloads replace files under this directory, so it may not be the
    project root, escape it, or overlap a hidden directory (``.rp`` holds
    the artifact store) or any of ``reserved`` (sources, cargo output).
    """
    value = get_str(table, key) or default
    path = PurePosixPath(value.replace("\\", "/"))
    if path.is_absolute() or not path.parts or ".." in path.parts or str(path) == ".":
        raise ValueError(f"{key} must be a subdirectory of the project: {value!r}")
    top = path.parts[0]
    if top.startswith(".") or top in reserved:
        raise ValueError(f"{key} may not be inside {top!r}: {value!r}")
    return value


def _file_name(table: Mapping[str, object], key: str) -> str | None:
    """A single path component without a leading dot, or None if unset."""
    value = get_str(table, key)
    if value is None:
        return None
    if "/" in value or "\\" in value or value.startswith("."):
        raise ValueError(f"{key} must be a plain file name: {value!r}")
    return value


def _top_level(path: str) -> tuple[str, ...]:
    """First component of a project-relative path; nothing for absolute ones."""
    p = PurePosixPath(path.replace("\\", "/"))
    if p.is_absolute() or not p.parts:
        return ()
    return (p.parts[0],)


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when release.toml cannot be read or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """How the release binary is compiled and where cargo leaves it."""

    binary: str = DEFAULT_BINARY
    profile: str = DEFAULT_PROFILE
    target_dir: str = DEFAULT_TARGET_DIR
    env: dict[str, str] = field(default_factory=_default_build_env)


@dataclass(frozen=True, slots=True)
class ArtifactConfig:
    """Artifact identity and staging location.

    ``file_name`` is the platform-qualified name the binary is renamed to;
    it defaults to the artifact name.
    """

    name: str = DEFAULT_ARTIFACT_NAME
    staging_dir: str = DEFAULT_STAGING_DIR
    file_name: str | None = None

    @property
    def staged_file_name(self) -> str:
        return self.file_name or self.name


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Where artifacts are downloaded and how the draft release is created."""

    download_dir: str = DEFAULT_DOWNLOAD_DIR
    draft: bool = True
    repo: str | None = None
    token_env: str = DEFAULT_TOKEN_ENV


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    """Main configuration container."""

    build: BuildConfig = field(default_factory=BuildConfig)
    artifact: ArtifactConfig = field(default_factory=ArtifactConfig)
    release: ReleaseConfig = field(default_factory=ReleaseConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> PipelineConfig:
        """Create a config from parsed TOML, falling back to defaults per key."""
        build: StrDict = get_table(data, "build") or {}
        artifact: StrDict = get_table(data, "artifact") or {}
        release: StrDict = get_table(data, "release") or {}

        env = get_str_map(build, "env")
        if "env" in build and env is None:
            raise ValueError("[build.env] values must be strings")

        draft = get_bool(release, "draft")
        if draft is False:
            # Publishing is owned by maintainers, never by the pipeline.
            raise ValueError("[release] draft = false is not supported")

        target_dir = get_str(build, "target_dir") or DEFAULT_TARGET_DIR
        reserved = frozenset({"src", *_top_level(target_dir)})

        return cls(
            build=BuildConfig(
                binary=_file_name(build, "binary") or DEFAULT_BINARY,
                profile=get_str(build, "profile") or DEFAULT_PROFILE,
                target_dir=target_dir,
                env=env if env is not None else _default_build_env(),
            ),
            artifact=ArtifactConfig(
                name=_file_name(artifact, "name") or DEFAULT_ARTIFACT_NAME,
                staging_dir=_subdir(
                    artifact, "staging_dir", DEFAULT_STAGING_DIR, reserved=reserved
                ),
                file_name=_file_name(artifact, "file_name"),
            ),
            release=ReleaseConfig(
                download_dir=_subdir(
                    release, "download_dir", DEFAULT_DOWNLOAD_DIR, reserved=reserved
                ),
                repo=get_str(release, "repo"),
                token_env=get_str(release, "token_env") or DEFAULT_TOKEN_ENV,
            ),
        )


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data = as_str_dict(tomllib.loads(path.read_bytes().decode("utf-8")))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[PipelineConfig, ConfigError]:
    """Load and validate ``release.toml``.

    Returns:
        Ok(PipelineConfig) on success, Err(ConfigError) on failure.
    """
    parsed = _parse_toml(path)
    if isinstance(parsed, Err):
        return parsed

    try:
        return Ok(PipelineConfig.from_dict(parsed.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[PipelineConfig, ConfigError]:
    """Like ``load_config`` but a missing file yields the defaults.

    A file that exists and is broken is still an error: silently building
    with defaults would ship the wrong artifact name.
    """
    if not path.exists():
        return Ok(PipelineConfig())
    return load_config(path)
